import typer
from typing import Annotated, Optional

from flippeer.commands.broker import run_broker
from flippeer.commands.hotseat import hotseat as hotseat_
from flippeer.commands.play import play as play_

app = typer.Typer(pretty_exceptions_enable=False)


@app.command()
def play(
    opponent: Annotated[Optional[str], typer.Option("-o", "--opponent")] = None,
    invite: Annotated[Optional[str], typer.Option("-i", "--invite")] = None,
    broker: Annotated[Optional[str], typer.Option("-b", "--broker")] = None,
) -> None:
    """Play against someone else over the broker."""
    play_(opponent, invite, broker)


@app.command()
def hotseat() -> None:
    """Play both colors on this terminal."""
    hotseat_()


@app.command()
def broker(
    host: Annotated[Optional[str], typer.Option("--host")] = None,
    port: Annotated[Optional[int], typer.Option("--port")] = None,
) -> None:
    """Run the connection broker."""
    run_broker(host, port)


if __name__ == "__main__":
    app()
