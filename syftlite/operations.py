"""Named tensor operations dispatched to torch."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence

import torch

from .errors import OperationError, TensorNotFoundError, UnsupportedOperationError
from .observer import Event, Observer
from .store import TensorStore

logger = logging.getLogger(__name__)


def _reverse_dims(t: torch.Tensor) -> torch.Tensor:
    return t.permute(*reversed(range(t.dim())))


@dataclass(frozen=True)
class Operation:
    fn: Callable[..., torch.Tensor]
    arity: int


OPERATIONS: Dict[str, Operation] = {
    "add": Operation(torch.add, 2),
    "sub": Operation(torch.sub, 2),
    "mul": Operation(torch.mul, 2),
    "div": Operation(torch.div, 2),
    "pow": Operation(torch.pow, 2),
    "maximum": Operation(torch.maximum, 2),
    "minimum": Operation(torch.minimum, 2),
    "matmul": Operation(torch.matmul, 2),
    "dot": Operation(torch.dot, 2),
    "neg": Operation(torch.neg, 1),
    "abs": Operation(torch.abs, 1),
    "exp": Operation(torch.exp, 1),
    "log": Operation(torch.log, 1),
    "sqrt": Operation(torch.sqrt, 1),
    "square": Operation(torch.square, 1),
    "relu": Operation(torch.relu, 1),
    "sigmoid": Operation(torch.sigmoid, 1),
    "tanh": Operation(torch.tanh, 1),
    "transpose": Operation(_reverse_dims, 1),
    "sum": Operation(torch.sum, 1),
    "mean": Operation(torch.mean, 1),
}


def supported_operations() -> List[str]:
    return sorted(OPERATIONS)


class OperationRunner:
    """Resolve operands from a store, run ``func`` and announce the result."""

    def __init__(self, store: TensorStore, observer: Observer):
        self.store = store
        self.observer = observer

    def run(self, func: str, tensor_ids: Sequence[str]) -> torch.Tensor:
        operation = OPERATIONS.get(func)
        if operation is None:
            raise UnsupportedOperationError(func)
        if isinstance(tensor_ids, str):
            tensor_ids = [tensor_ids]
        if len(tensor_ids) != operation.arity:
            raise OperationError(
                f"Operation {func!r} takes {operation.arity} tensor(s), got {len(tensor_ids)}"
            )

        operands = []
        for tensor_id in tensor_ids:
            tensor = self.store.get(tensor_id)
            if tensor is None:
                raise TensorNotFoundError(tensor_id)
            operands.append(tensor.data)

        try:
            result = operation.fn(*operands)
        except (RuntimeError, TypeError) as exc:
            raise OperationError(f"Operation {func!r} failed: {exc}") from exc

        logger.debug("Ran %s on %s -> shape %s", func, list(tensor_ids), list(result.shape))
        self.observer.broadcast(Event.OPERATION_RUN, {"func": func, "result": result})
        return result
