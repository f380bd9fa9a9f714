from __future__ import annotations

from pydantic import BaseModel, Field, TypeAdapter
from typing import Annotated, Any, Literal, Optional, Union

from flippeer.othello.board import BOARD_SIZE, color_name, parse_color


class MoveData(BaseModel):
    x: int = Field(ge=0, lt=BOARD_SIZE)
    y: int = Field(ge=0, lt=BOARD_SIZE)
    color: Literal["black", "white"]


class MoveMessage(BaseModel):
    type: Literal["move"] = "move"
    data: MoveData

    @classmethod
    def create(cls, x: int, y: int, color: int) -> MoveMessage:
        return cls(data=MoveData(x=x, y=y, color=color_name(color)))

    def get_color(self) -> int:
        return parse_color(self.data.color)


class ResetMessage(BaseModel):
    type: Literal["reset"] = "reset"
    data: dict[str, Any] = Field(default_factory=dict)


Message = Annotated[Union[MoveMessage, ResetMessage], Field(discriminator="type")]

MESSAGE_KINDS = {"move", "reset"}

_message_adapter: TypeAdapter[Message] = TypeAdapter(Message)


def parse_message(payload: Any) -> Optional[Message]:
    """
    Parse a payload received from the peer.

    Returns None for payloads that are not messages we know about, so newer peers
    can add message kinds. Raises pydantic.ValidationError for a known kind with
    invalid fields.
    """

    if not isinstance(payload, dict):
        return None

    if payload.get("type") not in MESSAGE_KINDS:
        return None

    return _message_adapter.validate_python(payload)


def dump_message(message: Message) -> dict[str, Any]:
    return message.model_dump()
