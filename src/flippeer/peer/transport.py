from __future__ import annotations

import secrets
from collections import deque
from copy import deepcopy
from typing import Any, Callable, Optional

ReadyCallback = Callable[[], None]
MessageCallback = Callable[[Any], None]
ClosedCallback = Callable[[], None]


class TransportClosed(Exception):
    pass


class Connection:
    """
    One reliable, ordered channel to a remote peer.

    Implementations call the `emit_*` methods when the channel becomes ready,
    delivers a payload or closes. `closed` is emitted at most once.
    """

    def __init__(self, peer: str) -> None:
        self.peer = peer
        self.is_open = False
        self.is_closed = False

        self._ready_callbacks: list[ReadyCallback] = []
        self._message_callbacks: list[MessageCallback] = []
        self._closed_callbacks: list[ClosedCallback] = []

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.peer!r})"

    def on_ready(self, callback: ReadyCallback) -> None:
        self._ready_callbacks.append(callback)

    def on_message(self, callback: MessageCallback) -> None:
        self._message_callbacks.append(callback)

    def on_closed(self, callback: ClosedCallback) -> None:
        self._closed_callbacks.append(callback)

    def emit_ready(self) -> None:
        if self.is_closed:
            return

        self.is_open = True
        for callback in list(self._ready_callbacks):
            callback()

    def emit_message(self, payload: Any) -> None:
        if self.is_closed:
            return

        for callback in list(self._message_callbacks):
            callback(payload)

    def emit_closed(self) -> None:
        if self.is_closed:
            return

        self.is_open = False
        self.is_closed = True
        for callback in list(self._closed_callbacks):
            callback()

    def send(self, payload: Any) -> None:
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError


ConnectionCallback = Callable[[Connection], None]
OpenCallback = Callable[[str], None]


class Transport:
    """Connection broker as seen from one peer."""

    def __init__(self) -> None:
        self.local_id: Optional[str] = None

        self._connection_callbacks: list[ConnectionCallback] = []
        self._open_callbacks: list[OpenCallback] = []

    def on_connection(self, callback: ConnectionCallback) -> None:
        self._connection_callbacks.append(callback)

    def on_open(self, callback: OpenCallback) -> None:
        self._open_callbacks.append(callback)

        if self.local_id is not None:
            callback(self.local_id)

    def emit_connection(self, connection: Connection) -> None:
        for callback in list(self._connection_callbacks):
            callback(connection)

    def emit_open(self, local_id: str) -> None:
        self.local_id = local_id
        for callback in list(self._open_callbacks):
            callback(local_id)

    def connect(self, remote_id: str) -> Connection:
        raise NotImplementedError


class LocalNetwork:
    """
    In-process broker connecting `LocalTransport`s.

    Events are queued and only run by `deliver_all()`, in the order they were
    queued. Handlers that send while handling an event keep that order.
    """

    def __init__(self) -> None:
        self.transports: dict[str, LocalTransport] = {}
        self.pending: deque[Callable[[], None]] = deque()

    def register(self, transport: LocalTransport, peer_id: Optional[str]) -> str:
        if peer_id is None:
            peer_id = secrets.token_hex(4)

        if peer_id in self.transports:
            raise ValueError(f'Peer id "{peer_id}" is already taken')

        self.transports[peer_id] = transport
        return peer_id

    def schedule(self, event: Callable[[], None]) -> None:
        self.pending.append(event)

    def deliver_all(self) -> int:
        delivered = 0
        while self.pending:
            event = self.pending.popleft()
            event()
            delivered += 1
        return delivered

    def connect(self, source: LocalTransport, remote_id: str) -> LocalConnection:
        try:
            target = self.transports[remote_id]
        except KeyError:
            connection = LocalConnection(self, remote_id)
            self.schedule(connection.emit_closed)
            return connection

        assert source.local_id is not None

        outgoing = LocalConnection(self, remote_id)
        incoming = LocalConnection(self, source.local_id)
        outgoing.partner = incoming
        incoming.partner = outgoing

        self.schedule(lambda: target.emit_connection(incoming))
        self.schedule(incoming.emit_ready)
        self.schedule(outgoing.emit_ready)
        return outgoing


class LocalConnection(Connection):
    def __init__(self, network: LocalNetwork, peer: str) -> None:
        super().__init__(peer)
        self.network = network
        self.partner: Optional[LocalConnection] = None
        self.close_requested = False

    def emit_ready(self) -> None:
        if self.close_requested or (self.partner and self.partner.close_requested):
            return
        super().emit_ready()

    def send(self, payload: Any) -> None:
        if self.close_requested or self.is_closed:
            raise TransportClosed

        partner = self.partner
        if partner is None:
            raise TransportClosed

        if partner.close_requested:
            # Remote side is closing, nothing will read this.
            return

        # Copy, as if the payload went over the wire.
        copied = deepcopy(payload)
        self.network.schedule(lambda: partner.emit_message(copied))

    def close(self) -> None:
        if self.close_requested:
            return

        self.close_requested = True
        self.network.schedule(self.emit_closed)

        partner = self.partner
        if partner is not None:
            self.network.schedule(partner.emit_closed)


class LocalTransport(Transport):
    def __init__(self, network: LocalNetwork, peer_id: Optional[str] = None) -> None:
        super().__init__()
        self.network = network
        self.emit_open(network.register(self, peer_id))

    def connect(self, remote_id: str) -> Connection:
        return self.network.connect(self, remote_id)
