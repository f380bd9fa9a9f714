from __future__ import annotations

import queue
import threading
import websocket
from pydantic import BaseModel, ValidationError
from typing import Any, Callable, Optional

from flippeer.broker.models import (
    CloseAction,
    CloseEvent,
    ConnectAction,
    ConnectionEvent,
    DataEvent,
    ErrorEvent,
    OpenEvent,
    ReadyEvent,
    SendAction,
    ServerFrame,
    server_frame_adapter,
)
from flippeer.config import get_broker_url
from flippeer.peer.transport import Connection, Transport, TransportClosed


class WebSocketConnection(Connection):
    def __init__(self, transport: WebSocketTransport, peer: str) -> None:
        super().__init__(peer)
        self.transport = transport
        self.close_requested = False

    def send(self, payload: Any) -> None:
        if self.close_requested or self.is_closed:
            raise TransportClosed

        self.transport.send_frame(SendAction(payload=payload))

    def close(self) -> None:
        if self.close_requested or self.is_closed:
            return

        self.close_requested = True
        self.transport.send_frame(CloseAction())


class WebSocketTransport(Transport):
    """
    Transport over the relay broker.

    A reader thread only puts frames on a queue. Callbacks run from `poll()`, on
    the thread calling it, so the session is only ever touched from one thread.
    """

    def __init__(self, url: Optional[str] = None) -> None:
        super().__init__()
        self.url = url or get_broker_url()
        self.ws: Optional[websocket.WebSocket] = None
        self.connection: Optional[WebSocketConnection] = None

        # None signals the broker connection was lost.
        self.events: queue.Queue[Optional[ServerFrame]] = queue.Queue()
        self.is_running = False

        self.handlers: dict[str, Callable[[Any], None]] = {
            "open": self._handle_open,
            "connection": self._handle_connection,
            "ready": self._handle_ready,
            "data": self._handle_data,
            "close": self._handle_close,
            "error": self._handle_error,
        }

    def start(self, timeout: float = 10.0) -> str:
        """Connect to the broker and wait for it to assign our id."""
        try:
            ws = websocket.create_connection(self.url, timeout=timeout)
            frame = self._receive_frame(ws)
        except (websocket.WebSocketException, OSError) as e:
            raise TransportClosed(f"Could not reach broker at {self.url}") from e

        if not isinstance(frame, OpenEvent):
            raise TransportClosed(f"Expected open frame, got {frame.event}")

        ws.settimeout(None)
        self.ws = ws
        self.is_running = True
        self.emit_open(frame.id)

        threading.Thread(target=self._reader_loop, args=(ws,), daemon=True).start()
        return frame.id

    def stop(self) -> None:
        self.is_running = False
        if self.ws:
            self.ws.close()
            self.ws = None

    def _receive_frame(self, ws: websocket.WebSocket) -> ServerFrame:
        raw = ws.recv()
        if not raw:
            raise websocket.WebSocketConnectionClosedException("Broker closed the connection")
        return server_frame_adapter.validate_json(raw)

    def _reader_loop(self, ws: websocket.WebSocket) -> None:
        while True:
            try:
                frame = self._receive_frame(ws)
            except ValidationError as e:
                print(f"Ignoring invalid frame from broker: {e}")
                continue
            except (websocket.WebSocketException, OSError):
                self.events.put(None)
                return

            self.events.put(frame)

    def send_frame(self, frame: BaseModel) -> None:
        if self.ws is None:
            raise TransportClosed("Not connected to broker")

        try:
            self.ws.send(frame.model_dump_json())
        except (websocket.WebSocketException, OSError) as e:
            raise TransportClosed("Lost connection to broker") from e

    def connect(self, remote_id: str) -> Connection:
        connection = WebSocketConnection(self, remote_id)
        self.connection = connection

        try:
            self.send_frame(ConnectAction(target=remote_id))
        except TransportClosed:
            self.events.put(CloseEvent(peer=remote_id))

        return connection

    def poll(self, timeout: float = 0.0) -> bool:
        """
        Run callbacks for all received frames.

        Waits up to `timeout` seconds for the first one. Returns False once the
        broker connection is gone.
        """

        try:
            frame = self.events.get(timeout=timeout) if timeout else self.events.get_nowait()
        except queue.Empty:
            return self.is_running

        while True:
            if frame is None:
                self._handle_lost()
                return False

            self.handlers[frame.event](frame)

            try:
                frame = self.events.get_nowait()
            except queue.Empty:
                return self.is_running

    def _handle_open(self, frame: OpenEvent) -> None:
        self.emit_open(frame.id)

    def _handle_connection(self, frame: ConnectionEvent) -> None:
        connection = WebSocketConnection(self, frame.peer)

        # Keep tracking a pending outgoing connection, the session refuses this one.
        if self.connection is None:
            self.connection = connection

        self.emit_connection(connection)

    def _handle_ready(self, frame: ReadyEvent) -> None:
        if self.connection and self.connection.peer == frame.peer:
            self.connection.emit_ready()

    def _handle_data(self, frame: DataEvent) -> None:
        if self.connection:
            self.connection.emit_message(frame.payload)

    def _handle_close(self, frame: CloseEvent) -> None:
        connection = self.connection

        if connection and connection.peer == frame.peer:
            self.connection = None
            connection.emit_closed()

    def _handle_error(self, frame: ErrorEvent) -> None:
        print(f"Broker error: {frame.detail}")

        # A refused connect never becomes ready.
        connection = self.connection
        if connection and not connection.is_open:
            self.connection = None
            connection.emit_closed()

    def _handle_lost(self) -> None:
        self.is_running = False

        connection = self.connection
        self.connection = None
        if connection:
            connection.emit_closed()
