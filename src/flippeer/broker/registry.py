from __future__ import annotations

import secrets
from pydantic import BaseModel
from typing import Any, Callable, Optional

from flippeer.broker import PEER_ID_BYTES
from flippeer.broker.models import (
    CloseEvent,
    ConnectionEvent,
    DataEvent,
    ErrorEvent,
    OpenEvent,
    ReadyEvent,
)

# Frame to be sent to a peer, in order.
Outbound = tuple[str, BaseModel]


class UnknownPeer(Exception):
    pass


class PeerBusy(Exception):
    pass


def generate_peer_id() -> str:
    return secrets.token_urlsafe(PEER_ID_BYTES)


class Broker:
    """
    Connection broker state, independent of the network layer.

    Every method returns the frames to send, in the order they must be sent.
    A peer is linked to at most one other peer at a time.
    """

    def __init__(self, id_factory: Optional[Callable[[], str]] = None) -> None:
        self.id_factory = id_factory or generate_peer_id
        self.peers: set[str] = set()
        self.links: dict[str, str] = {}

    def register(self) -> tuple[str, list[Outbound]]:
        peer_id = self.id_factory()
        while peer_id in self.peers:
            peer_id = self.id_factory()

        self.peers.add(peer_id)
        return peer_id, [(peer_id, OpenEvent(id=peer_id))]

    def unregister(self, peer_id: str) -> list[Outbound]:
        outbound = self.close(peer_id)
        self.peers.discard(peer_id)
        return [(target, frame) for target, frame in outbound if target != peer_id]

    def linked_peer(self, peer_id: str) -> Optional[str]:
        if peer_id not in self.peers:
            raise UnknownPeer(peer_id)
        return self.links.get(peer_id)

    def _check_can_link(self, source: str, target: str) -> None:
        if target not in self.peers:
            raise UnknownPeer(target)

        for peer_id in [source, target]:
            if peer_id in self.links:
                raise PeerBusy(peer_id)

    def connect(self, source: str, target: str) -> list[Outbound]:
        if source == target:
            return [(source, ErrorEvent(detail="Cannot connect to yourself"))]

        try:
            self._check_can_link(source, target)
        except UnknownPeer:
            return [(source, ErrorEvent(detail=f"Peer {target} not found"))]
        except PeerBusy as e:
            return [(source, ErrorEvent(detail=f"Peer {e.args[0]} is busy"))]

        self.links[source] = target
        self.links[target] = source

        return [
            (target, ConnectionEvent(peer=source)),
            (target, ReadyEvent(peer=source)),
            (source, ReadyEvent(peer=target)),
        ]

    def relay(self, source: str, payload: Any) -> list[Outbound]:
        try:
            target = self.links[source]
        except KeyError:
            return [(source, ErrorEvent(detail="Not connected to a peer"))]

        return [(target, DataEvent(payload=payload))]

    def close(self, source: str) -> list[Outbound]:
        try:
            target = self.links.pop(source)
        except KeyError:
            return []

        del self.links[target]
        return [
            (target, CloseEvent(peer=source)),
            (source, CloseEvent(peer=target)),
        ]
