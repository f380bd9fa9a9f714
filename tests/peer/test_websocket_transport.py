import json
import pytest
from typing import Any

from flippeer.broker.models import (
    CloseEvent,
    ConnectionEvent,
    DataEvent,
    ErrorEvent,
    OpenEvent,
    ReadyEvent,
)
from flippeer.othello.board import BLACK, WHITE
from flippeer.peer.coordinator import Coordinator
from flippeer.peer.session import SessionState
from flippeer.peer.websocket_transport import WebSocketTransport


class FakeSocket:
    def __init__(self) -> None:
        self.sent: list[str] = []
        self.closed = False

    def send(self, text: str) -> None:
        self.sent.append(text)

    def close(self) -> None:
        self.closed = True

    def sent_frames(self) -> list[dict[str, Any]]:
        return [json.loads(text) for text in self.sent]


@pytest.fixture()
def socket() -> FakeSocket:
    return FakeSocket()


@pytest.fixture()
def transport(socket: FakeSocket) -> WebSocketTransport:
    transport = WebSocketTransport("ws://broker.invalid/ws")
    transport.ws = socket  # type:ignore[assignment]
    transport.is_running = True
    transport.emit_open("alice")
    return transport


def test_open_frame_sets_id(transport: WebSocketTransport) -> None:
    opened: list[str] = []
    transport.on_open(opened.append)

    transport.events.put(OpenEvent(id="alice-2"))
    assert transport.poll()

    assert transport.local_id == "alice-2"
    assert opened == ["alice", "alice-2"]


def test_incoming_game(transport: WebSocketTransport, socket: FakeSocket) -> None:
    coordinator = Coordinator(transport)

    transport.events.put(ConnectionEvent(peer="bob"))
    transport.events.put(ReadyEvent(peer="bob"))
    assert transport.poll()

    assert coordinator.session.state == SessionState.ACTIVE
    assert coordinator.session.color == BLACK

    assert coordinator.submit_local_move(2, 3)
    assert socket.sent_frames() == [
        {
            "action": "send",
            "payload": {"type": "move", "data": {"x": 2, "y": 3, "color": "black"}},
        }
    ]

    transport.events.put(
        DataEvent(payload={"type": "move", "data": {"x": 2, "y": 2, "color": "white"}})
    )
    assert transport.poll()

    assert coordinator.session.board.get_square(2, 2) == WHITE
    assert coordinator.session.is_local_turn()

    transport.events.put(CloseEvent(peer="bob"))
    assert transport.poll()

    assert coordinator.session.state == SessionState.UNCONNECTED
    assert transport.connection is None


def test_outgoing_connect(transport: WebSocketTransport, socket: FakeSocket) -> None:
    coordinator = Coordinator(transport)
    coordinator.connect("bob")

    assert socket.sent_frames() == [{"action": "connect", "target": "bob"}]
    assert coordinator.session.state == SessionState.CONNECTING

    transport.events.put(ReadyEvent(peer="bob"))
    transport.poll()

    assert coordinator.session.state == SessionState.ACTIVE
    assert coordinator.session.color == WHITE

    coordinator.disconnect()
    assert socket.sent_frames()[-1] == {"action": "close"}


def test_refused_connect(transport: WebSocketTransport) -> None:
    coordinator = Coordinator(transport)
    coordinator.connect("nobody")

    transport.events.put(ErrorEvent(detail="Peer nobody not found"))
    transport.poll()

    assert coordinator.session.state == SessionState.UNCONNECTED
    assert coordinator.session.status == "Could not connect to nobody."


def test_connect_without_broker() -> None:
    transport = WebSocketTransport("ws://broker.invalid/ws")
    coordinator = Coordinator(transport)

    coordinator.connect("bob")
    transport.poll()

    assert coordinator.session.state == SessionState.UNCONNECTED


def test_broker_lost(transport: WebSocketTransport) -> None:
    coordinator = Coordinator(transport)

    transport.events.put(ConnectionEvent(peer="bob"))
    transport.events.put(ReadyEvent(peer="bob"))
    transport.events.put(None)

    assert not transport.poll()
    assert not transport.is_running
    assert coordinator.session.state == SessionState.UNCONNECTED
    assert coordinator.session.status == "Connection lost."


def test_stop(transport: WebSocketTransport, socket: FakeSocket) -> None:
    transport.stop()

    assert socket.closed
    assert transport.ws is None
    assert not transport.is_running
