"""Ordered, id-addressed collection of tensors."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Iterator, List, Optional

import numpy as np
import torch

from .errors import DuplicateTensorError, InvalidTensorDataError, TensorNotFoundError
from .messages import dtype_name
from .observer import Event, Observer

logger = logging.getLogger(__name__)

_NUMERIC_KINDS = {"b", "i", "u", "f"}


@dataclass(frozen=True, eq=False)
class Tensor:
    id: str
    data: torch.Tensor

    @property
    def size(self) -> int:
        return int(self.data.numel())

    @property
    def shape(self) -> List[int]:
        return list(self.data.shape)

    @property
    def dtype(self) -> str:
        return dtype_name(self.data)


def to_torch(raw_data: Any) -> torch.Tensor:
    """Coerce nested lists, numpy arrays or tensors into a standalone tensor.

    Python and numpy input is stored as ``float32``; tensors keep their dtype
    and are cloned so later in-place edits by the caller do not leak in.
    """
    if isinstance(raw_data, torch.Tensor):
        return raw_data.detach().clone()
    try:
        arr = np.asarray(raw_data)
    except (TypeError, ValueError) as exc:
        raise InvalidTensorDataError(f"Cannot build a tensor from {type(raw_data).__name__}: {exc}") from exc
    if arr.dtype.kind not in _NUMERIC_KINDS:
        raise InvalidTensorDataError(f"Tensor data must be numeric, got dtype {arr.dtype}")
    return torch.from_numpy(np.ascontiguousarray(arr)).to(torch.float32)


class TensorStore:
    """Tensors in insertion order, each mutation announced on the observer."""

    def __init__(self, observer: Observer):
        self.observer = observer
        self._tensors: List[Tensor] = []
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._tensors)

    def __iter__(self) -> Iterator[Tensor]:
        return iter(self.all())

    def __contains__(self, tensor_id: object) -> bool:
        return self.index(tensor_id) != -1

    @property
    def tensors(self) -> List[Tensor]:
        """The live list; callers should treat it as read-only."""
        return self._tensors

    def all(self) -> List[Tensor]:
        with self._lock:
            return list(self._tensors)

    def get(self, tensor_id: str) -> Optional[Tensor]:
        with self._lock:
            for tensor in self._tensors:
                if tensor.id == tensor_id:
                    return tensor
        return None

    def index(self, tensor_id: str) -> int:
        with self._lock:
            for idx, tensor in enumerate(self._tensors):
                if tensor.id == tensor_id:
                    return idx
        return -1

    def add(self, tensor_id: str, raw_data: Any) -> List[Tensor]:
        with self._lock:
            if self.index(tensor_id) != -1:
                raise DuplicateTensorError(tensor_id)
            tensor = Tensor(id=tensor_id, data=to_torch(raw_data))
            self._tensors.append(tensor)
            tensors = list(self._tensors)
        logger.debug("Added tensor %s with shape %s", tensor_id, tensor.shape)
        self.observer.broadcast(
            Event.TENSOR_ADDED,
            {"id": tensor_id, "tensor": tensor, "tensors": tensors},
        )
        return tensors

    def clear(self) -> None:
        """Drop every tensor without announcing removals."""
        with self._lock:
            count = len(self._tensors)
            self._tensors.clear()
        logger.debug("Cleared %d tensor(s)", count)

    def remove(self, tensor_id: str) -> List[Tensor]:
        with self._lock:
            idx = self.index(tensor_id)
            if idx == -1:
                raise TensorNotFoundError(tensor_id)
            self._tensors.pop(idx)
            tensors = list(self._tensors)
        logger.debug("Removed tensor %s", tensor_id)
        self.observer.broadcast(Event.TENSOR_REMOVED, {"id": tensor_id, "tensors": tensors})
        return tensors
