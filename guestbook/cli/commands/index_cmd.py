"""``guestbook index`` — list signatures from a public log database.

A read-only projection: the log is re-read on every invocation and never
written to.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from guestbook.cli.render import signatures_table
from guestbook.config import config
from guestbook.core.public_log import LogIntegrityError, PublicLog
from guestbook.indexer.projection import SignatureIndexer

console = Console()


def index_cmd(
    log_path: Path = typer.Option(
        None, "--log", "-l", help="Public log database (default: configured log path)."
    ),
    emitter: str = typer.Option(None, "--emitter", "-e", help="Only this guestbook instance."),
    signer: str = typer.Option(None, "--signer", "-s", help="Only this signer."),
    origin: int = typer.Option(None, "--origin", "-o", help="Only records from this origin chain."),
    verify_chain: bool = typer.Option(
        False, "--verify-chain", "-V", help="Verify the hash chain of every emitter first."
    ),
) -> None:
    """Show signatures recorded in the public log."""
    db_path = log_path if log_path is not None else config.log_path
    if not Path(db_path).exists():
        console.print(f"[bold red]Public log not found:[/bold red] {db_path}")
        raise typer.Exit(code=1)

    log = PublicLog(db_path)
    try:
        if verify_chain:
            for address in log.emitters():
                try:
                    log.verify_chain(address)
                    console.print(f"[green]Chain valid[/green] for {address}")
                except LogIntegrityError as exc:
                    console.print(f"[bold red]Chain verification failed:[/bold red] {exc}")
                    raise typer.Exit(code=1)

        try:
            indexer = SignatureIndexer(log, emitter=emitter)
            signatures = indexer.signatures(signer=signer, origin_chain_id=origin)
        except ValueError as exc:
            console.print(f"[bold red]Invalid filter:[/bold red] {exc}")
            raise typer.Exit(code=1)
    finally:
        log.close()

    if not signatures:
        console.print("[dim]No signatures found.[/dim]")
        return
    console.print(signatures_table(signatures))
