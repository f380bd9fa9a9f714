from __future__ import annotations

from typing import Any, Optional

from flippeer.peer import session
from flippeer.peer.messages import dump_message
from flippeer.peer.session import (
    Close,
    Connect,
    GameSession,
    Notify,
    Render,
    Send,
    SessionView,
    Transition,
)
from flippeer.peer.transport import Connection, Transport, TransportClosed


class Presenter:
    """Receives what the user should see. The default shows nothing."""

    def render(self, view: SessionView) -> None:
        pass

    def notify(self, text: str) -> None:
        pass


class Coordinator:
    """
    Owns one `GameSession` and at most one connection.

    Transport events and user input come in through the methods below, get turned
    into session transitions and the resulting effects are performed here.
    """

    def __init__(self, transport: Transport, presenter: Optional[Presenter] = None) -> None:
        self.transport = transport
        self.presenter = presenter or Presenter()
        self.session = GameSession()
        self.connection: Optional[Connection] = None

        transport.on_connection(self.on_incoming_connection)

    def __repr__(self) -> str:
        return f"Coordinator({self.transport.local_id!r}, {self.session!r})"

    def view(self) -> SessionView:
        return self.session.view()

    def on_incoming_connection(self, connection: Connection) -> None:
        transition = session.on_incoming_connection(self.session, connection.peer, connection)

        refused = any(isinstance(effect, Close) for effect in transition.effects)
        if not refused:
            self._bind(connection)

        self._perform(transition)

    def connect(self, target_id: str) -> None:
        self._perform(session.on_outgoing_connect(self.session, target_id))

    def submit_local_move(self, x: int, y: int) -> bool:
        transition = session.submit_local_move(self.session, x, y)
        self._perform(transition)
        return len(transition.messages()) > 0

    def request_reset(self) -> None:
        self._perform(session.request_reset(self.session))

    def disconnect(self) -> None:
        if self.connection is not None:
            self.connection.close()

    def _bind(self, connection: Connection) -> None:
        self.connection = connection

        connection.on_ready(lambda: self._on_ready(connection))
        connection.on_message(lambda payload: self._on_message(connection, payload))
        connection.on_closed(lambda: self._on_closed(connection))

    def _on_ready(self, connection: Connection) -> None:
        if connection is not self.connection:
            return

        self._perform(session.on_ready(self.session))

    def _on_message(self, connection: Connection, payload: Any) -> None:
        if connection is not self.connection:
            return

        self._perform(session.on_remote_message(self.session, payload))

    def _on_closed(self, connection: Connection) -> None:
        if connection is not self.connection:
            return

        self.connection = None
        self._perform(session.on_connection_closed(self.session))

    def _perform(self, transition: Transition) -> None:
        for effect in transition.effects:
            if isinstance(effect, Send):
                self._send(dump_message(effect.message))
            elif isinstance(effect, Notify):
                self.presenter.notify(effect.text)
            elif isinstance(effect, Render):
                self.presenter.render(self.view())
            elif isinstance(effect, Connect):
                self._bind(self.transport.connect(effect.target_id))
            elif isinstance(effect, Close):
                if effect.connection is not None:
                    effect.connection.close()

    def _send(self, payload: dict[str, Any]) -> None:
        if self.connection is None:
            return

        try:
            self.connection.send(payload)
        except TransportClosed:
            # The closed event will reset the session.
            pass
