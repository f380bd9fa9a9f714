import asyncio
import pytest
from fastapi import WebSocketDisconnect
from fastapi.testclient import TestClient
from typing import Any, Iterator

from flippeer.broker import WEBSOCKET_PATH
from flippeer.broker.models import DataEvent
from flippeer.broker.registry import Broker
from flippeer.broker.server import ServerState, app, get_server_state


@pytest.fixture()
def client() -> Iterator[TestClient]:
    state = ServerState()
    state.broker = Broker(id_factory=iter(["alice", "bob", "carol"]).__next__)
    app.dependency_overrides[get_server_state] = lambda: state

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


def test_get_peers_empty(client: TestClient) -> None:
    response = client.get("/api/peers")

    assert response.status_code == 200
    assert response.json() == {"peers": []}


def test_get_peer_not_found(client: TestClient) -> None:
    response = client.get("/api/peers/nobody")

    assert response.status_code == 404
    assert response.json() == {"detail": "Peer nobody not found"}


def test_open(client: TestClient) -> None:
    with client.websocket_connect(WEBSOCKET_PATH) as alice:
        assert alice.receive_json() == {"event": "open", "id": "alice"}

        assert client.get("/api/peers").json() == {"peers": ["alice"]}
        assert client.get("/api/peers/alice").json() == {
            "id": "alice",
            "connected_to": None,
        }


@pytest.mark.parametrize(
    ["text"],
    [
        pytest.param("not json", id="not-json"),
        pytest.param('{"action": "dance"}', id="unknown-action"),
        pytest.param('{"action": "connect"}', id="missing-target"),
    ],
)
def test_invalid_frame(client: TestClient, text: str) -> None:
    with client.websocket_connect(WEBSOCKET_PATH) as alice:
        alice.receive_json()

        alice.send_text(text)
        assert alice.receive_json() == {
            "event": "error",
            "detail": "Invalid frame: 1 error(s)",
        }


def test_connect_unknown_peer(client: TestClient) -> None:
    with client.websocket_connect(WEBSOCKET_PATH) as alice:
        alice.receive_json()

        alice.send_json({"action": "connect", "target": "nobody"})
        assert alice.receive_json() == {
            "event": "error",
            "detail": "Peer nobody not found",
        }


def test_relay_between_peers(client: TestClient) -> None:
    move = {"type": "move", "data": {"x": 2, "y": 3, "color": "black"}}

    with client.websocket_connect(WEBSOCKET_PATH) as alice:
        alice.receive_json()

        with client.websocket_connect(WEBSOCKET_PATH) as bob:
            assert bob.receive_json() == {"event": "open", "id": "bob"}

            bob.send_json({"action": "connect", "target": "alice"})

            assert alice.receive_json() == {"event": "connection", "peer": "bob"}
            assert alice.receive_json() == {"event": "ready", "peer": "bob"}
            assert bob.receive_json() == {"event": "ready", "peer": "alice"}

            assert client.get("/api/peers/alice").json()["connected_to"] == "bob"

            alice.send_json({"action": "send", "payload": move})
            assert bob.receive_json() == {"event": "data", "payload": move}

            bob.send_json({"action": "close"})
            assert alice.receive_json() == {"event": "close", "peer": "bob"}
            assert bob.receive_json() == {"event": "close", "peer": "alice"}

            assert client.get("/api/peers/alice").json()["connected_to"] is None


def test_disconnect_closes_link(client: TestClient) -> None:
    with client.websocket_connect(WEBSOCKET_PATH) as alice:
        alice.receive_json()

        with client.websocket_connect(WEBSOCKET_PATH) as bob:
            bob.receive_json()
            bob.send_json({"action": "connect", "target": "alice"})
            bob.receive_json()

        assert alice.receive_json() == {"event": "connection", "peer": "bob"}
        assert alice.receive_json() == {"event": "ready", "peer": "bob"}
        assert alice.receive_json() == {"event": "close", "peer": "bob"}


class RecordingSocket:
    def __init__(self) -> None:
        self.sent: list[str] = []

    async def send_text(self, text: str) -> None:
        self.sent.append(text)


class DeadSocket:
    async def send_text(self, text: str) -> None:
        raise WebSocketDisconnect(1006)


def test_send_all_skips_dead_socket() -> None:
    state = ServerState()
    alice = RecordingSocket()
    sockets: dict[str, Any] = {"alice": alice, "bob": DeadSocket()}
    state.sockets = sockets

    outbound = [
        ("bob", DataEvent(payload={"type": "reset", "data": {}})),
        ("carol", DataEvent(payload={})),
        ("alice", DataEvent(payload={"type": "reset", "data": {}})),
    ]

    asyncio.run(state.send_all(outbound))

    assert alice.sent == [outbound[2][1].model_dump_json()]
