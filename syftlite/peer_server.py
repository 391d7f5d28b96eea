import argparse
import logging
import sys
from typing import List, Optional

import uvicorn
from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect

from .errors import SyftError
from .messages import ERROR, dump_message, make_message
from .syft import Syft

logger = logging.getLogger("syftlite.peer")
app = FastAPI(title="Syft Peer", version="0.1.0")

peer = Syft(mirror=False)
clients: List[WebSocket] = []


def _drop(websocket: WebSocket) -> None:
    # WebSocket compares by scope, so match on identity.
    for idx, client in enumerate(clients):
        if client is websocket:
            del clients[idx]
            return


def _tensor_info(tensor) -> dict:
    return {
        "id": tensor.id,
        "shape": tensor.shape,
        "dtype": tensor.dtype,
        "size": tensor.size,
    }


@app.get("/")
async def root():
    return {"message": "Syft peer is running"}


@app.get("/tensors")
async def list_tensors():
    tensor_list = [_tensor_info(tensor) for tensor in peer.get_tensors()]
    return {
        "tensors": tensor_list,
        "count": len(tensor_list),
    }


@app.get("/tensors/{tensor_id}")
async def get_tensor(tensor_id: str):
    tensor = peer.get_tensor_by_id(tensor_id)
    if tensor is None:
        raise HTTPException(status_code=404, detail="Tensor not found")

    info = _tensor_info(tensor)
    info["data"] = tensor.data.tolist()
    return info


@app.websocket("/ws")
async def peer_socket(websocket: WebSocket):
    await websocket.accept()
    clients.append(websocket)
    logger.info("Peer client connected (%d total)", len(clients))
    try:
        while True:
            text = await websocket.receive_text()
            try:
                peer.receive_message(text)
            except SyftError as exc:
                logger.warning("Rejected message: %s", exc)
                await websocket.send_text(dump_message(make_message(ERROR, {"message": str(exc)})))
                continue

            for other in list(clients):
                if other is websocket:
                    continue
                try:
                    await other.send_text(text)
                except Exception as exc:
                    logger.warning("Dropping client after failed relay: %s", exc)
                    _drop(other)
    except WebSocketDisconnect:
        pass
    finally:
        _drop(websocket)
        logger.info("Peer client disconnected (%d left)", len(clients))


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down peer, dropping %d tensor(s)", len(peer.get_tensors()))
    for tensor in peer.get_tensors():
        peer.remove_tensor(tensor.id)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a reference Syft peer (FastAPI + WebSocket).")
    parser.add_argument("--host", default="127.0.0.1", help="Host interface to bind (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8080, help="Port to listen on (default: 8080)")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host=args.host, port=args.port, access_log=False)


if __name__ == "__main__":
    main(sys.argv[1:])
