"""``guestbook decode PAYLOAD`` — decode an inter-chain payload.

Prints the record fields and whether the record is local to, or
replicated onto, the given chain.
"""

from __future__ import annotations

import typer
from rich.console import Console

from guestbook.cli.render import record_table
from guestbook.config import config
from guestbook.core.codec import PayloadDecodeError, decode_hex

console = Console()


def decode_cmd(
    payload: str = typer.Argument(..., help="Hex payload, with or without 0x."),
    local_chain_id: int = typer.Option(
        None,
        "--local-chain-id",
        "-c",
        help="Chain to compare the origin against (default: configured chain).",
    ),
) -> None:
    """Decode a signature payload and show its fields."""
    try:
        record = decode_hex(payload)
    except PayloadDecodeError as exc:
        console.print(f"[bold red]Cannot decode payload:[/bold red] {exc}")
        raise typer.Exit(code=1)

    chain_id = local_chain_id if local_chain_id is not None else config.local_chain_id
    console.print(record_table(record, local_chain_id=chain_id))
