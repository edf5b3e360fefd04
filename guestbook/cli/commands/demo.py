"""``guestbook demo`` — broadcast one signature across an in-process mesh.

Builds a ``LocalMesh``, registers every chain with every other, publishes
a signature from the first chain with the given budget, delivers the
packets and shows each chain's view of the signature.
"""

from __future__ import annotations

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from guestbook.bridge.local_mesh import LocalMesh
from guestbook.cli.render import signatures_table
from guestbook.core.errors import GuestbookError
from guestbook.indexer.projection import SignatureIndexer

console = Console()

DEMO_OWNER = "0x00000000000000000000000000000000000000a1"
DEMO_SIGNER = "0x00000000000000000000000000000000000000b2"


def _parse_chains(value: str) -> list[int]:
    try:
        chains = [int(part) for part in value.split(",") if part.strip()]
    except ValueError as exc:
        raise typer.BadParameter(f"chain ids must be integers: {value!r}") from exc
    if len(chains) < 2:
        raise typer.BadParameter("the demo needs at least two chains")
    if len(set(chains)) != len(chains):
        raise typer.BadParameter("chain ids must be unique")
    return chains


def demo_cmd(
    chains: str = typer.Option(
        "1,2,3", "--chains", help="Comma-separated chain ids; the first one publishes."
    ),
    fee: int = typer.Option(1000, "--fee", help="Flat transport fee per destination."),
    budget: int = typer.Option(
        None, "--budget", "-b", help="Budget attached to the publish (default: quote + 500)."
    ),
    name: str = typer.Option("Ada", "--name"),
    message: str = typer.Option("hello from every chain", "--message"),
    shuffle: bool = typer.Option(
        True, "--shuffle/--in-order", help="Deliver packets in random order."
    ),
    seed: int = typer.Option(None, "--seed", help="Seed for shuffled delivery."),
) -> None:
    """Publish one signature and watch it arrive on every chain."""
    chain_ids = _parse_chains(chains)
    mesh = LocalMesh(base_fee=fee, shuffle=shuffle, seed=seed)
    for chain_id in chain_ids:
        mesh.add_chain(chain_id, owner=DEMO_OWNER)
    mesh.wire_all()

    origin = mesh.guestbooks[chain_ids[0]]
    quote = origin.quote(DEMO_SIGNER, name, message)
    attached = budget if budget is not None else quote + 500

    console.print()
    console.print(
        Panel(
            f"[bold]Guestbook Demo[/bold]\n\n"
            f"Chains: {', '.join(str(c) for c in chain_ids)}\n"
            f"Publishing from chain {origin.local_chain_id}\n"
            f"Quote: [green]{quote}[/green]   Budget: [green]{attached}[/green]",
            border_style="cyan",
            padding=(1, 2),
        )
    )

    try:
        outcome = origin.publish(name, message, sender=DEMO_SIGNER, value=attached)
    except GuestbookError as exc:
        console.print(f"[bold red]Publish aborted:[/bold red] {exc}")
        raise typer.Exit(code=1)

    sends = Table(title="Dispatched sends")
    sends.add_column("Destination", justify="right")
    sends.add_column("Fee", justify="right", style="green")
    sends.add_column("GUID", style="dim")
    for receipt in outcome.receipts:
        sends.add_row(str(receipt.destination), str(receipt.fee), receipt.guid[:16])
    console.print(sends)
    console.print(
        f"Fees paid: [green]{outcome.fees_paid}[/green]   "
        f"Refunded: [green]{outcome.refunded}[/green]"
    )

    reports = mesh.deliver_all()
    delivered = sum(1 for r in reports if r.delivered)
    console.print(f"Delivered {delivered}/{len(reports)} packet(s)")
    for report in reports:
        if not report.delivered:
            console.print(f"  [red]{report.src_chain_id} -> {report.dst_chain_id}:[/red] {report.error}")

    for chain_id in chain_ids:
        guestbook = mesh.guestbooks[chain_id]
        indexer = SignatureIndexer(guestbook.log, emitter=guestbook.address)
        console.print(signatures_table(indexer.signatures(), title=f"Chain {chain_id}"))
