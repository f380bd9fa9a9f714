from flippeer.commands.terminal import HELP_TEXT, TerminalPresenter, handle_command
from flippeer.othello.board import BLACK
from flippeer.peer.coordinator import Coordinator
from flippeer.peer.transport import LocalNetwork, LocalTransport


def hotseat() -> None:
    """Two sessions in one process, taking turns on the same terminal."""
    network = LocalNetwork()

    black = Coordinator(LocalTransport(network, "black"), TerminalPresenter("[black] "))
    white = Coordinator(
        LocalTransport(network, "white"), TerminalPresenter("[white] ", show_board=False)
    )

    white.connect("black")
    network.deliver_all()

    print(HELP_TEXT)

    while True:
        if black.session.board.turn == BLACK:
            current = black
        else:
            current = white

        try:
            line = input(f"{current.transport.local_id}> ").strip()
        except EOFError:
            break

        if line.split(maxsplit=1)[:1] == ["connect"]:
            print("Not available in hotseat mode.")
            continue

        if not handle_command(current, line):
            break

        network.deliver_all()
