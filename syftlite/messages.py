"""JSON envelopes exchanged with the remote peer.

Every frame is a JSON object ``{"type": ..., "data": {...}}``.  Tensors are
carried inside ``data`` as ``{"data_b64", "dtype", "shape"}``: the raw bytes
of the contiguous array, base64 encoded, so values round-trip exactly.
"""

from __future__ import annotations

import base64
import binascii
from typing import Any, Dict, List, Optional, Type, TypeVar

import numpy as np
import torch
from pydantic import BaseModel, Field, StrictStr, ValidationError

from .errors import MessageFormatError

ADD_TENSOR = "add-tensor"
REMOVE_TENSOR = "remove-tensor"
RUN_OPERATION = "run-operation"
ERROR = "error"

_NUMPY_DTYPES = {
    "float16": np.float16,
    "float32": np.float32,
    "float64": np.float64,
    "int8": np.int8,
    "int16": np.int16,
    "int32": np.int32,
    "int64": np.int64,
    "uint8": np.uint8,
    "bool": np.bool_,
}


class Message(BaseModel):
    type: str
    data: Dict[str, Any] = Field(default_factory=dict)


class TensorPayload(BaseModel):
    data_b64: str
    dtype: str = "float32"
    shape: Optional[List[int]] = None


class AddTensorData(BaseModel):
    id: StrictStr
    tensor: TensorPayload


class RemoveTensorData(BaseModel):
    id: StrictStr


class RunOperationData(BaseModel):
    func: StrictStr
    tensors: List[StrictStr]


DataModel = TypeVar("DataModel", bound=BaseModel)


def parse_data(model: Type[DataModel], message: Message) -> DataModel:
    try:
        return model.model_validate(message.data)
    except ValidationError as exc:
        raise MessageFormatError(f"Invalid {message.type} message: {exc}") from exc


def dtype_name(tensor: torch.Tensor) -> str:
    return str(tensor.dtype).replace("torch.", "")


def encode_tensor(tensor: torch.Tensor) -> Dict[str, Any]:
    arr = tensor.detach().cpu().contiguous().numpy()
    return {
        "data_b64": base64.b64encode(arr.tobytes()).decode("utf-8"),
        "dtype": dtype_name(tensor),
        "shape": list(arr.shape),
    }


def decode_tensor(payload: Any) -> torch.Tensor:
    try:
        payload_model = TensorPayload.model_validate(payload)
    except ValidationError as exc:
        raise MessageFormatError(f"Invalid tensor payload: {exc}") from exc

    np_dtype = _NUMPY_DTYPES.get(payload_model.dtype.replace("torch.", ""))
    if np_dtype is None:
        raise MessageFormatError(f"Unsupported tensor dtype: {payload_model.dtype}")
    try:
        raw = base64.b64decode(payload_model.data_b64, validate=True)
        np_array = np.frombuffer(raw, dtype=np_dtype).copy()
        if payload_model.shape is not None:
            np_array = np_array.reshape(tuple(payload_model.shape))
    except (binascii.Error, ValueError) as exc:
        raise MessageFormatError(f"Corrupt tensor payload: {exc}") from exc
    return torch.from_numpy(np_array)


def make_message(message_type: str, data: Optional[Dict[str, Any]] = None) -> Message:
    return Message(type=message_type, data=data or {})


def dump_message(message: Message) -> str:
    return message.model_dump_json()


def parse_message(text: str) -> Message:
    try:
        return Message.model_validate_json(text)
    except ValidationError as exc:
        raise MessageFormatError(f"Invalid message: {exc}") from exc
