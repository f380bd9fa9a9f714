"""
Session state machine for a two-player game over a peer connection.

Every transition takes the `GameSession`, updates it and returns a `Transition`
listing the effects the caller should perform: send a message, show a notice,
re-render, open or close a connection. Nothing in here talks to the network.

Both peers derive passes and the end of the game from the same ordered move
sequence, so those are never sent over the connection.
"""

from __future__ import annotations

from enum import Enum
from pydantic import ValidationError
from typing import Any, Optional, Union

from flippeer.othello.board import BLACK, WHITE, Board, Score, color_name, opponent
from flippeer.peer.messages import Message, MoveMessage, ResetMessage, parse_message


class SessionState(Enum):
    UNCONNECTED = "unconnected"
    CONNECTING = "connecting"
    ACTIVE = "active"
    ENDED = "ended"


class ColorNotAssigned(Exception):
    pass


class Send:
    def __init__(self, message: Message) -> None:
        self.message = message

    def __repr__(self) -> str:
        return f"Send({self.message!r})"


class Notify:
    def __init__(self, text: str) -> None:
        self.text = text

    def __repr__(self) -> str:
        return f"Notify({self.text!r})"


class Render:
    def __repr__(self) -> str:
        return "Render()"


class Connect:
    def __init__(self, target_id: str) -> None:
        self.target_id = target_id

    def __repr__(self) -> str:
        return f"Connect({self.target_id!r})"


class Close:
    def __init__(self, connection: Any) -> None:
        self.connection = connection

    def __repr__(self) -> str:
        return f"Close({self.connection!r})"


Effect = Union[Send, Notify, Render, Connect, Close]


class Transition:
    def __init__(self, session: GameSession, effects: list[Effect]) -> None:
        self.session = session
        self.effects = effects

    def messages(self) -> list[Message]:
        return [effect.message for effect in self.effects if isinstance(effect, Send)]

    def notices(self) -> list[str]:
        return [effect.text for effect in self.effects if isinstance(effect, Notify)]


class SessionView:
    """Read-only snapshot of a session for the presentation layer."""

    def __init__(self, session: GameSession) -> None:
        board = session.board

        self.board = Board.from_squares(board.squares(), board.turn)
        self.turn = board.turn
        self.color = session.color
        self.peer = session.peer
        self.state = session.state
        self.status = session.status
        self.turn_text = session.turn_text()
        self.is_local_turn = session.is_local_turn()

        self.legal_moves: set[tuple[int, int]] = set()
        if self.is_local_turn:
            assert session.color is not None
            self.legal_moves = board.legal_moves(session.color)

        self.score: Optional[Score] = None
        if session.state == SessionState.ENDED:
            self.score = board.score()


class GameSession:
    def __init__(self) -> None:
        self.board = Board()
        self.state = SessionState.UNCONNECTED
        self.color: Optional[int] = None
        self.peer: Optional[str] = None
        self.status = ""

    def __repr__(self) -> str:
        return f"GameSession({self.state}, color={self.color}, peer={self.peer})"

    def local_color(self) -> int:
        if self.color not in [BLACK, WHITE]:
            raise ColorNotAssigned
        assert self.color is not None
        return self.color

    def is_local_turn(self) -> bool:
        return self.state == SessionState.ACTIVE and self.board.turn == self.color

    def turn_text(self) -> str:
        if self.state != SessionState.ACTIVE or self.color is None:
            return ""

        turn = color_name(self.board.turn).capitalize()
        role = color_name(self.color).capitalize()
        return f"Turn: {turn} (You are {role})"

    def view(self) -> SessionView:
        return SessionView(self)

    def notify(self, text: str) -> Notify:
        self.status = text
        return Notify(text)


def on_incoming_connection(
    session: GameSession, peer: str, connection: Any = None
) -> Transition:
    if session.state != SessionState.UNCONNECTED:
        # Only one connection per session.
        return Transition(session, [Close(connection)])

    # The accepting side moves first.
    session.color = BLACK
    session.peer = peer
    session.state = SessionState.CONNECTING

    effects: list[Effect] = [session.notify(f"Incoming connection from {peer}.")]
    return Transition(session, effects)


def on_outgoing_connect(session: GameSession, target_id: str) -> Transition:
    target_id = target_id.strip()

    if not target_id:
        return Transition(session, [session.notify("Please enter an opponent's ID.")])

    if session.state != SessionState.UNCONNECTED:
        return Transition(session, [session.notify(f"Already connected to {session.peer}.")])

    session.color = WHITE
    session.peer = target_id
    session.state = SessionState.CONNECTING

    effects: list[Effect] = [
        session.notify(f"Connecting to {target_id}..."),
        Connect(target_id),
    ]
    return Transition(session, effects)


def on_ready(session: GameSession) -> Transition:
    if session.state != SessionState.CONNECTING:
        return Transition(session, [])

    notice = session.notify(f"Connected to {session.peer}.")
    transition = start_game(session)
    return Transition(session, [notice, *transition.effects])


def start_game(session: GameSession) -> Transition:
    if session.state == SessionState.UNCONNECTED:
        return Transition(session, [])

    try:
        session.local_color()
    except ColorNotAssigned:
        return Transition(session, [session.notify("Cannot start game: no color assigned.")])

    session.board.reset()
    session.state = SessionState.ACTIVE

    return Transition(session, [session.notify("Game started!"), Render()])


def _after_move(session: GameSession) -> list[Effect]:
    result = session.board.advance_if_no_moves()

    if result.terminal:
        session.state = SessionState.ENDED
        return [session.notify(session.board.score().summary()), Render()]

    if result.passed:
        passer = color_name(opponent(result.turn)).capitalize()
        return [session.notify(f"{passer} has no moves, passes turn."), Render()]

    return [Render()]


def submit_local_move(session: GameSession, x: int, y: int) -> Transition:
    if not session.is_local_turn():
        return Transition(session, [])

    color = session.local_color()
    outcome = session.board.apply(x, y, color)

    if not outcome:
        return Transition(session, [])

    effects: list[Effect] = [Send(MoveMessage.create(x, y, color))]
    effects += _after_move(session)
    return Transition(session, effects)


def _on_remote_move(session: GameSession, message: MoveMessage) -> Transition:
    if session.state != SessionState.ACTIVE:
        return Transition(session, [])

    data = message.data
    outcome = session.board.apply(data.x, data.y, message.get_color())

    if not outcome:
        field = Board.coords_to_field(data.x, data.y)
        return Transition(session, [session.notify(f"Could not apply move {field} from peer.")])

    return Transition(session, _after_move(session))


def _on_remote_reset(session: GameSession) -> Transition:
    # The game only starts once the connection is ready.
    if session.state not in [SessionState.ACTIVE, SessionState.ENDED]:
        return Transition(session, [])

    transition = start_game(session)
    notice = session.notify("Opponent requested a game reset.")
    return Transition(session, [*transition.effects, notice])


def on_remote_message(session: GameSession, payload: Any) -> Transition:
    try:
        message = parse_message(payload)
    except ValidationError:
        return Transition(session, [session.notify("Ignored malformed message from peer.")])

    if isinstance(message, MoveMessage):
        return _on_remote_move(session, message)
    elif isinstance(message, ResetMessage):
        return _on_remote_reset(session)

    # Unknown message kinds are ignored.
    return Transition(session, [])


def request_reset(session: GameSession) -> Transition:
    if session.state in [SessionState.ACTIVE, SessionState.ENDED]:
        transition = start_game(session)
        effects: list[Effect] = [*transition.effects, Send(ResetMessage())]
    else:
        # No channel to tell the peer about it yet.
        session.board.reset()
        effects = [Render()]

    effects.append(session.notify("Game has been reset."))
    return Transition(session, effects)


def on_connection_closed(session: GameSession) -> Transition:
    if session.state == SessionState.UNCONNECTED:
        return Transition(session, [])

    if session.state == SessionState.CONNECTING:
        text = f"Could not connect to {session.peer}."
    else:
        text = "Connection lost."

    session.state = SessionState.UNCONNECTED
    session.color = None
    session.peer = None
    session.board.reset()

    return Transition(session, [session.notify(text), Render()])
