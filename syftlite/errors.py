"""Exceptions raised by the syftlite client."""


class SyftError(Exception):
    """Base class for every error raised by this package."""


class TensorNotFoundError(SyftError, KeyError):
    def __init__(self, tensor_id: str):
        self.tensor_id = tensor_id
        super().__init__(f"Tensor not found: {tensor_id}")

    def __str__(self) -> str:
        return self.args[0]


class DuplicateTensorError(SyftError, ValueError):
    def __init__(self, tensor_id: str):
        self.tensor_id = tensor_id
        super().__init__(f"Tensor already exists: {tensor_id}")


class InvalidTensorDataError(SyftError, ValueError):
    pass


class UnsupportedOperationError(SyftError, ValueError):
    def __init__(self, func: str):
        self.func = func
        super().__init__(f"Unsupported operation: {func}")


class OperationError(SyftError, RuntimeError):
    pass


class NotConnectedError(SyftError, RuntimeError):
    pass


class MessageFormatError(SyftError, ValueError):
    pass
