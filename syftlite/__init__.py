"""syftlite: named tensors mirrored to a remote peer over a WebSocket."""

from .connection import SocketConnection
from .errors import (
    DuplicateTensorError,
    InvalidTensorDataError,
    MessageFormatError,
    NotConnectedError,
    OperationError,
    SyftError,
    TensorNotFoundError,
    UnsupportedOperationError,
)
from .logger import Logger
from .messages import Message, decode_tensor, encode_tensor
from .observer import Event, Observer
from .operations import OperationRunner, supported_operations
from .store import Tensor, TensorStore
from .syft import Syft

__all__ = [
    "Syft",
    "Tensor",
    "TensorStore",
    "Observer",
    "Event",
    "Logger",
    "OperationRunner",
    "supported_operations",
    "SocketConnection",
    "Message",
    "encode_tensor",
    "decode_tensor",
    "SyftError",
    "TensorNotFoundError",
    "DuplicateTensorError",
    "InvalidTensorDataError",
    "UnsupportedOperationError",
    "OperationError",
    "NotConnectedError",
    "MessageFormatError",
]
