import json

import pytest
import torch
from fastapi.testclient import TestClient

from syftlite import peer_server
from syftlite.messages import encode_tensor
from syftlite.peer_server import app, peer

client = TestClient(app)


def _add_frame(tensor_id, data):
    return json.dumps({"type": "add-tensor", "data": {"id": tensor_id, "tensor": encode_tensor(torch.tensor(data))}})


@pytest.fixture(autouse=True)
def empty_peer():
    yield
    for tensor in peer.get_tensors():
        peer.remove_tensor(tensor.id)


class TestPeerServer:

    def test_root_endpoint(self):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json() == {"message": "Syft peer is running"}

    def test_list_tensors_empty(self):
        response = client.get("/tensors")
        assert response.status_code == 200
        assert response.json() == {"tensors": [], "count": 0}

    def test_get_nonexistent_tensor(self):
        response = client.get("/tensors/nonexistent-tensor-id")
        assert response.status_code == 404
        assert "Tensor not found" in response.json()["detail"]

    def test_websocket_add_is_visible_over_http(self):
        with client.websocket_connect("/ws") as ws:
            ws.send_text(_add_frame("first-tensor", [[1.0, 2.0], [3.0, 4.0]]))
            ws.send_text(json.dumps({"type": "ping"}))

        list_response = client.get("/tensors")
        assert list_response.json()["count"] == 1
        info = list_response.json()["tensors"][0]
        assert info == {"id": "first-tensor", "shape": [2, 2], "dtype": "float32", "size": 4}

        tensor_response = client.get("/tensors/first-tensor")
        assert tensor_response.status_code == 200
        assert tensor_response.json()["data"] == [[1.0, 2.0], [3.0, 4.0]]

    def test_websocket_remove(self):
        peer.add_tensor("first-tensor", [1, 2])
        with client.websocket_connect("/ws") as ws:
            ws.send_text(json.dumps({"type": "remove-tensor", "data": {"id": "first-tensor"}}))
            ws.send_text(json.dumps({"type": "ping"}))

        assert client.get("/tensors/first-tensor").status_code == 404

    def test_websocket_rejects_bad_message(self):
        with client.websocket_connect("/ws") as ws:
            ws.send_text(json.dumps({"type": "remove-tensor", "data": {"id": "missing"}}))
            reply = ws.receive_json()

        assert reply["type"] == "error"
        assert "missing" in reply["data"]["message"]

    @pytest.mark.parametrize("tensors", [None, 3, {"a": 1}, [1, 2]])
    def test_websocket_rejects_bad_operand_list(self, tensors):
        with client.websocket_connect("/ws") as ws:
            ws.send_text(json.dumps({"type": "run-operation", "data": {"func": "neg", "tensors": tensors}}))
            reply = ws.receive_json()
            ws.send_text(json.dumps({"type": "remove-tensor", "data": {"id": "still-open"}}))
            second = ws.receive_json()

        assert reply["type"] == "error"
        assert "run-operation" in reply["data"]["message"]
        assert second["type"] == "error"

    def test_websocket_rejects_non_string_id(self):
        frame = json.loads(_add_frame("ignored", [1.0]))
        frame["data"]["id"] = 5
        with client.websocket_connect("/ws") as ws:
            ws.send_text(json.dumps(frame))
            reply = ws.receive_json()

        assert reply["type"] == "error"
        assert client.get("/tensors").json()["count"] == 0

    def test_websocket_relays_to_other_clients(self):
        frame = _add_frame("shared", [5, 6])
        with client.websocket_connect("/ws") as sender, client.websocket_connect("/ws") as listener:
            for ws in (sender, listener):
                ws.send_text(json.dumps({"type": "remove-tensor", "data": {"id": "not-there"}}))
                assert ws.receive_json()["type"] == "error"
            sender.send_text(frame)
            relayed = listener.receive_text()

        assert relayed == frame
        assert peer.get_tensor_by_id("shared").data.tolist() == [5, 6]


def test_parse_args_defaults():
    args = peer_server.parse_args([])
    assert args.host == "127.0.0.1"
    assert args.port == 8080


def test_main_runs_uvicorn(monkeypatch):
    called = {}

    def fake_run(app_obj, host, port, access_log):
        called.update(app=app_obj, host=host, port=port)

    monkeypatch.setattr(peer_server.uvicorn, "run", fake_run)
    peer_server.main(["--port", "9001"])
    assert called == {"app": app, "host": "127.0.0.1", "port": 9001}
