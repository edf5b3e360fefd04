"""``guestbook bootstrap FILE`` — replay historical signatures into a log.

Reads a bootstrap CSV, then republishes the records in chunks through an
owner-triggered replay into the public log at ``--log``.  No broadcast
and no fees are involved.  ``--dry-run`` only parses and lists.
"""

from __future__ import annotations

import time
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from guestbook.bootstrap import BootstrapFormatError, chunked, load_bootstrap
from guestbook.bridge.transport import LocalTransport
from guestbook.cli.render import format_timestamp
from guestbook.config import config
from guestbook.core.guestbook import Guestbook
from guestbook.core.public_log import PublicLog
from guestbook.models.records import normalize_address

console = Console()


def bootstrap_cmd(
    bootstrap_file: Path = typer.Argument(..., help="CSV of address,name,message[,chain,timestamp]."),
    owner: str = typer.Option(..., "--owner", help="Owner address performing the replay."),
    log_path: Path = typer.Option(
        None, "--log", "-l", help="Public log database (default: configured log path)."
    ),
    chain_id: int = typer.Option(
        None, "--chain-id", "-c", help="Local chain id (default: configured chain)."
    ),
    batch_size: int = typer.Option(
        None, "--batch-size", help="Records per replay call (default: configured size)."
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Parse and list only."),
) -> None:
    """Replay a bootstrap file into the public log."""
    if not bootstrap_file.exists():
        console.print(f"[bold red]Bootstrap file not found:[/bold red] {bootstrap_file}")
        raise typer.Exit(code=1)

    try:
        owner = normalize_address(owner)
    except ValueError as exc:
        console.print(f"[bold red]Invalid owner:[/bold red] {exc}")
        raise typer.Exit(code=1)

    local_chain_id = chain_id if chain_id is not None else config.local_chain_id
    size = batch_size if batch_size is not None else config.replay_batch_size

    try:
        records = load_bootstrap(
            bootstrap_file,
            default_chain_id=local_chain_id,
            default_timestamp=int(time.time()),
        )
    except BootstrapFormatError as exc:
        console.print(f"[bold red]Invalid bootstrap file:[/bold red] {exc}")
        raise typer.Exit(code=1)

    console.print(f"Found [green]{len(records)}[/green] entries to process")
    if not records:
        return

    if dry_run:
        table = Table(title="Bootstrap entries (dry run)")
        table.add_column("#", justify="right", style="dim")
        table.add_column("Signer", style="cyan")
        table.add_column("Name", style="green")
        table.add_column("Message")
        table.add_column("Origin", justify="right")
        table.add_column("Timestamp", style="dim")
        for index, record in enumerate(records, start=1):
            table.add_row(
                str(index),
                record.signer,
                record.name,
                record.message,
                str(record.origin_chain_id),
                format_timestamp(record.timestamp),
            )
        console.print(table)
        console.print("[yellow]DRY RUN - nothing was replayed[/yellow]")
        return

    log = PublicLog(log_path if log_path is not None else config.log_path)
    try:
        guestbook = Guestbook(
            local_chain_id=local_chain_id,
            owner=owner,
            transport=LocalTransport(local_chain_id),
            log=log,
        )
        replayed = 0
        batches = list(chunked(records, size))
        for number, batch in enumerate(batches, start=1):
            replayed += guestbook.replay(batch, sender=owner)
            console.print(f"[blue][{number}/{len(batches)}][/blue] replayed {len(batch)} record(s)")
    finally:
        log.close()

    console.print(
        f"[bold green]Bootstrap complete:[/bold green] {replayed} record(s) "
        f"into {log.db_path} as {guestbook.address}"
    )
