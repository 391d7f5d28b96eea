"""The ``Syft`` facade: local tensors mirrored to a remote peer."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import torch

from . import messages
from .connection import SocketConnection
from .errors import NotConnectedError
from .logger import Logger
from .observer import Event, Handler, Observer
from .operations import OperationRunner
from .store import Tensor, TensorStore

logger = logging.getLogger(__name__)


class Syft:
    """Keep named tensors, run operations on them and mirror changes over a socket.

    ``url`` opens a connection straight away; ``verbose`` turns on console
    progress output.  With ``mirror`` enabled every successful local mutation
    is sent to the peer while a socket is connected.  Frames received from the
    peer are applied locally and never echoed back.
    """

    def __init__(self, url: Optional[str] = None, verbose: bool = False, mirror: bool = True):
        self.url = url
        self.mirror = mirror
        self.observer = Observer()
        self.logger = Logger(verbose)
        self.store = TensorStore(self.observer)
        self.runner = OperationRunner(self.store, self.observer)
        self.socket: Optional[SocketConnection] = None

        if url:
            self.start(url)

    @property
    def tensors(self) -> List[Tensor]:
        return self.store.tensors

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def get_tensors(self) -> List[Tensor]:
        return self.store.all()

    def get_tensor_by_id(self, tensor_id: str) -> Optional[Tensor]:
        return self.store.get(tensor_id)

    def get_tensor_index(self, tensor_id: str) -> int:
        return self.store.index(tensor_id)

    # ------------------------------------------------------------------ #
    # Functionality
    # ------------------------------------------------------------------ #

    def add_tensor(self, tensor_id: str, data: Any) -> List[Tensor]:
        return self._add_tensor(tensor_id, data, mirror=self.mirror)

    def remove_tensor(self, tensor_id: str) -> List[Tensor]:
        return self._remove_tensor(tensor_id, mirror=self.mirror)

    def run_operation(self, func: str, tensor_ids: Sequence[str]) -> torch.Tensor:
        return self._run_operation(func, tensor_ids, mirror=self.mirror)

    def _add_tensor(self, tensor_id: str, data: Any, mirror: bool) -> List[Tensor]:
        tensors = self.store.add(tensor_id, data)
        self.logger.log("Added tensor %s (%d in total)", tensor_id, len(tensors))
        if mirror:
            tensor = self.store.get(tensor_id)
            self._mirror(messages.ADD_TENSOR, {"id": tensor_id, "tensor": messages.encode_tensor(tensor.data)})
        return tensors

    def _remove_tensor(self, tensor_id: str, mirror: bool) -> List[Tensor]:
        tensors = self.store.remove(tensor_id)
        self.logger.log("Removed tensor %s (%d left)", tensor_id, len(tensors))
        if mirror:
            self._mirror(messages.REMOVE_TENSOR, {"id": tensor_id})
        return tensors

    def _run_operation(self, func: str, tensor_ids: Sequence[str], mirror: bool) -> torch.Tensor:
        if isinstance(tensor_ids, str):
            tensor_ids = [tensor_ids]
        result = self.runner.run(func, tensor_ids)
        self.logger.log("Ran %s on %s", func, ", ".join(tensor_ids))
        if mirror:
            self._mirror(messages.RUN_OPERATION, {"func": func, "tensors": list(tensor_ids)})
        return result

    def _mirror(self, message_type: str, data: Dict[str, Any]) -> None:
        if self.socket is None or not self.socket.connected:
            return
        try:
            self.send_message(message_type, data)
        except NotConnectedError as exc:
            logger.warning("Skipped mirroring %s: %s", message_type, exc)

    # ------------------------------------------------------------------ #
    # Event handlers
    # ------------------------------------------------------------------ #

    def on_tensor_added(self, handler: Handler) -> Handler:
        return self.observer.subscribe(Event.TENSOR_ADDED, handler)

    def on_tensor_removed(self, handler: Handler) -> Handler:
        return self.observer.subscribe(Event.TENSOR_REMOVED, handler)

    def on_run_operation(self, handler: Handler) -> Handler:
        return self.observer.subscribe(Event.OPERATION_RUN, handler)

    def on_message_sent(self, handler: Handler) -> Handler:
        return self.observer.subscribe(Event.MESSAGE_SENT, handler)

    def on_message_received(self, handler: Handler) -> Handler:
        return self.observer.subscribe(Event.MESSAGE_RECEIVED, handler)

    # ------------------------------------------------------------------ #
    # Socket communication
    # ------------------------------------------------------------------ #

    def create_socket_connection(self, url: Optional[str] = None) -> Optional[SocketConnection]:
        if not url:
            return None
        return SocketConnection(url, on_message=self.receive_message)

    def start(self, url: Optional[str] = None) -> Optional[SocketConnection]:
        url = url or self.url
        if self.socket is not None:
            self.stop()
        self.socket = self.create_socket_connection(url)
        if self.socket is not None:
            self.url = url
            self.logger.log("Opening socket to %s", url)
            self.socket.open()
        return self.socket

    def stop(self) -> None:
        if self.socket is None:
            return
        self.logger.log("Closing socket to %s", self.socket.url)
        self.socket.close()
        self.socket = None
        self.store.clear()

    def send_message(self, message_type: str, data: Optional[Dict[str, Any]] = None) -> messages.Message:
        if self.socket is None:
            raise NotConnectedError("No active socket; call start() first")
        message = messages.make_message(message_type, data)
        self.socket.send(messages.dump_message(message))
        logger.debug("Sent %s message", message_type)
        self.observer.broadcast(Event.MESSAGE_SENT, message.model_dump())
        return message

    def receive_message(self, text: str) -> messages.Message:
        """Parse a frame from the peer, announce it and apply it locally."""
        message = messages.parse_message(text)
        logger.debug("Received %s message", message.type)
        self.observer.broadcast(Event.MESSAGE_RECEIVED, message.model_dump())
        self._apply(message)
        return message

    def _apply(self, message: messages.Message) -> None:
        if message.type == messages.ADD_TENSOR:
            add = messages.parse_data(messages.AddTensorData, message)
            self._add_tensor(add.id, messages.decode_tensor(add.tensor), mirror=False)
        elif message.type == messages.REMOVE_TENSOR:
            remove = messages.parse_data(messages.RemoveTensorData, message)
            self._remove_tensor(remove.id, mirror=False)
        elif message.type == messages.RUN_OPERATION:
            run = messages.parse_data(messages.RunOperationData, message)
            self._run_operation(run.func, run.tensors, mirror=False)
        elif message.type == messages.ERROR:
            logger.warning("Peer reported an error: %s", message.data.get("message"))
        else:
            logger.debug("Ignoring message of type %s", message.type)
