"""Rich renderables shared by the CLI commands."""

from __future__ import annotations

from datetime import datetime, timezone

from rich.table import Table

from guestbook.indexer.projection import IndexedSignature
from guestbook.models.records import SignatureRecord


def format_timestamp(timestamp: int) -> str:
    try:
        moment = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return str(timestamp)
    return moment.strftime("%Y-%m-%d %H:%M:%S UTC")


def record_table(record: SignatureRecord, local_chain_id: int | None = None) -> Table:
    """Two-column field/value table for a single record."""
    table = Table(title="Signature", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Signer", record.signer)
    table.add_row("Origin chain", str(record.origin_chain_id))
    table.add_row("Name", record.name)
    table.add_row("Message", record.message)
    table.add_row("Timestamp", format_timestamp(record.timestamp))
    if local_chain_id is not None:
        kind = (
            "[green]local[/green]"
            if record.origin_chain_id == local_chain_id
            else "[magenta]replicated[/magenta]"
        )
        table.add_row("Kind", kind)
    return table


def signatures_table(signatures: list[IndexedSignature], title: str = "Signatures") -> Table:
    table = Table(title=title)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Seen on", justify="right")
    table.add_column("Origin", justify="right")
    table.add_column("Signer", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Message")
    table.add_column("Timestamp", style="dim")
    for index, sig in enumerate(signatures, start=1):
        origin = str(sig.record.origin_chain_id)
        if sig.is_replicated:
            origin = f"[magenta]{origin}[/magenta]"
        table.add_row(
            str(index),
            str(sig.seen_on_chain),
            origin,
            sig.record.signer,
            sig.record.name,
            sig.record.message,
            format_timestamp(sig.record.timestamp),
        )
    return table
