import queue
import requests
import threading
import typer
from typing import Optional

from flippeer.broker.api_client import BrokerAPIClient
from flippeer.commands.terminal import (
    HELP_TEXT,
    TerminalPresenter,
    handle_command,
    read_lines,
)
from flippeer.config import get_invite_base_url
from flippeer.peer.coordinator import Coordinator
from flippeer.peer.invite import build_invite_link, parse_invite_link
from flippeer.peer.transport import TransportClosed
from flippeer.peer.websocket_transport import WebSocketTransport


def check_opponent(opponent: str) -> bool:
    try:
        available = BrokerAPIClient().is_available(opponent)
    except requests.RequestException as e:
        # Not fatal, the broker will refuse the connection if needed.
        print(f"Could not look up peer {opponent}: {e}")
        return True

    if not available:
        print(f"Peer {opponent} is not online or already playing.")
    return available


def play(opponent: Optional[str], invite: Optional[str], broker_url: Optional[str]) -> None:
    if invite is not None:
        opponent = parse_invite_link(invite)
        if opponent is None:
            print("Invite link does not contain an opponent ID.")
            raise typer.Exit(1)

    transport = WebSocketTransport(broker_url)

    try:
        local_id = transport.start()
    except TransportClosed as e:
        print(e)
        raise typer.Exit(1)

    print(f"Your ID: {local_id}")
    print(f"Invite link: {build_invite_link(get_invite_base_url(), local_id)}")
    print(HELP_TEXT)

    coordinator = Coordinator(transport, TerminalPresenter())

    if opponent is not None and check_opponent(opponent):
        coordinator.connect(opponent)
    else:
        print("Waiting for an opponent to connect...")

    lines: queue.Queue[Optional[str]] = queue.Queue()
    threading.Thread(target=read_lines, args=(lines,), daemon=True).start()

    try:
        while transport.poll(timeout=0.1):
            try:
                line = lines.get_nowait()
            except queue.Empty:
                continue

            if line is None or not handle_command(coordinator, line):
                break
        else:
            print("Lost connection to broker.")
    finally:
        try:
            coordinator.disconnect()
        except TransportClosed:
            pass
        transport.stop()
