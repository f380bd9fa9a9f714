from __future__ import annotations

import queue
import sys
from typing import Optional

from flippeer.othello.board import Board
from flippeer.peer.coordinator import Coordinator, Presenter
from flippeer.peer.session import SessionView

HELP_TEXT = "Commands: a move like d3, reset, connect <id>, quit"


class TerminalPresenter(Presenter):
    def __init__(self, prefix: str = "", show_board: bool = True) -> None:
        self.prefix = prefix
        self.show_board = show_board

    def render(self, view: SessionView) -> None:
        if not self.show_board:
            return

        view.board.show(view.color if view.is_local_turn else None)

        if view.turn_text:
            print(view.turn_text)

    def notify(self, text: str) -> None:
        print(f"{self.prefix}{text}")


def read_lines(lines: queue.Queue[Optional[str]]) -> None:
    for line in sys.stdin:
        lines.put(line.strip())

    # End of input
    lines.put(None)


def handle_command(coordinator: Coordinator, line: str) -> bool:
    """Runs one line of user input. Returns False when the user wants to quit."""
    if line in ["quit", "exit", "q"]:
        return False

    if not line.strip():
        return True

    if line == "reset":
        coordinator.request_reset()
        return True

    words = line.split(maxsplit=1)
    if words[0] == "connect":
        coordinator.connect(words[1] if len(words) > 1 else "")
        return True

    try:
        x, y = Board.field_to_coords(line)
    except ValueError as e:
        print(f"{e}. {HELP_TEXT}")
        return True

    # Illegal moves are ignored without a message.
    coordinator.submit_local_move(x, y)
    return True
