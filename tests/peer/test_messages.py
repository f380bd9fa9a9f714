import pytest
from pydantic import ValidationError
from typing import Any

from flippeer.othello.board import BLACK, WHITE
from flippeer.peer.messages import (
    MoveMessage,
    ResetMessage,
    dump_message,
    parse_message,
)


def test_move_message_wire_format() -> None:
    message = MoveMessage.create(2, 3, BLACK)

    assert dump_message(message) == {
        "type": "move",
        "data": {"x": 2, "y": 3, "color": "black"},
    }
    assert message.get_color() == BLACK


def test_reset_message_wire_format() -> None:
    assert dump_message(ResetMessage()) == {"type": "reset", "data": {}}


def test_parse_move() -> None:
    message = parse_message({"type": "move", "data": {"x": 7, "y": 0, "color": "white"}})

    assert isinstance(message, MoveMessage)
    assert (message.data.x, message.data.y) == (7, 0)
    assert message.get_color() == WHITE


def test_parse_reset() -> None:
    assert isinstance(parse_message({"type": "reset", "data": {}}), ResetMessage)
    assert isinstance(parse_message({"type": "reset"}), ResetMessage)


@pytest.mark.parametrize(
    ["payload"],
    [
        pytest.param({"type": "chat", "data": {"text": "hi"}}, id="unknown-kind"),
        pytest.param({"data": {}}, id="no-kind"),
        pytest.param("move", id="not-a-dict"),
        pytest.param(None, id="none"),
    ],
)
def test_parse_ignored(payload: Any) -> None:
    assert parse_message(payload) is None


@pytest.mark.parametrize(
    ["payload"],
    [
        pytest.param({"type": "move", "data": {"x": 8, "y": 0, "color": "black"}}, id="x-too-big"),
        pytest.param({"type": "move", "data": {"x": 0, "y": -1, "color": "black"}}, id="y-too-small"),
        pytest.param({"type": "move", "data": {"x": 0, "y": 0, "color": "red"}}, id="bad-color"),
        pytest.param({"type": "move", "data": {"x": 0, "y": 0}}, id="missing-color"),
        pytest.param({"type": "move"}, id="missing-data"),
    ],
)
def test_parse_malformed(payload: Any) -> None:
    with pytest.raises(ValidationError):
        parse_message(payload)
