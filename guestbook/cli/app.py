"""Main Typer application — imports and registers all CLI commands.

Entry point: ``guestbook`` (configured via pyproject.toml project.scripts).
"""

from __future__ import annotations

import logging

import typer
from rich.logging import RichHandler

from guestbook.cli.commands.bootstrap import bootstrap_cmd
from guestbook.cli.commands.decode import decode_cmd
from guestbook.cli.commands.demo import demo_cmd
from guestbook.cli.commands.index_cmd import index_cmd
from guestbook.config import config

app = typer.Typer(
    name="guestbook",
    help="Guestbook: signature records mirrored across every registered chain.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="decode", help="Decode an inter-chain signature payload.")(decode_cmd)
app.command(name="demo", help="Broadcast a signature across an in-process mesh.")(demo_cmd)
app.command(name="bootstrap", help="Replay historical signatures from a CSV file.")(bootstrap_cmd)
app.command(name="index", help="List signatures recorded in a public log.")(index_cmd)


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        config.log_level, "--log-level", help="Logging level for guestbook modules."
    ),
) -> None:
    """Configure logging before any command runs."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=config.debug, show_path=False)],
        force=True,
    )


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
