from __future__ import annotations

from pydantic import BaseModel, Field, TypeAdapter
from typing import Annotated, Any, Literal, Union


class ConnectAction(BaseModel):
    action: Literal["connect"] = "connect"
    target: str


class SendAction(BaseModel):
    action: Literal["send"] = "send"
    payload: Any


class CloseAction(BaseModel):
    action: Literal["close"] = "close"


ClientFrame = Annotated[
    Union[ConnectAction, SendAction, CloseAction], Field(discriminator="action")
]


class OpenEvent(BaseModel):
    event: Literal["open"] = "open"
    id: str


class ConnectionEvent(BaseModel):
    event: Literal["connection"] = "connection"
    peer: str


class ReadyEvent(BaseModel):
    event: Literal["ready"] = "ready"
    peer: str


class DataEvent(BaseModel):
    event: Literal["data"] = "data"
    payload: Any


class CloseEvent(BaseModel):
    event: Literal["close"] = "close"
    peer: str


class ErrorEvent(BaseModel):
    event: Literal["error"] = "error"
    detail: str


ServerFrame = Annotated[
    Union[OpenEvent, ConnectionEvent, ReadyEvent, DataEvent, CloseEvent, ErrorEvent],
    Field(discriminator="event"),
]

client_frame_adapter: TypeAdapter[ClientFrame] = TypeAdapter(ClientFrame)
server_frame_adapter: TypeAdapter[ServerFrame] = TypeAdapter(ServerFrame)


class PeerResponse(BaseModel):
    id: str
    connected_to: str | None


class PeersResponse(BaseModel):
    peers: list[str]
