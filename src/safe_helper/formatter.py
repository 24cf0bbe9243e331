"""Rich console output for the CLI."""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .domain import DelegateRecord, OnChainResult, PendingTransaction, SafeInfo


def _format_wei(wei: int) -> str:
    """Format wei value to human-readable ETH amount."""
    return f"{wei / 1e18:.6f}"


def _truncate_address(address: str) -> str:
    """Truncate address for display."""
    return f"{address[:10]}...{address[-4:]}"


def _truncate_hash(value: str) -> str:
    return f"{value[:10]}...{value[-6:]}"


def format_safe_info(info: SafeInfo, console: Console | None = None) -> None:
    console = console or Console()

    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Key", style="dim")
    table.add_column("Value", style="cyan")
    table.add_row("Address", info.address)
    table.add_row("Version", info.version)
    table.add_row("Nonce", str(info.nonce))
    table.add_row("Threshold", f"{info.threshold} of {len(info.owners)}")
    for index, owner in enumerate(info.owners, start=1):
        table.add_row(f"Owner {index}", owner)

    console.print(Panel(table, title="[bold]Safe Info[/]", border_style="blue"))


def format_delegates(
    delegates: list[DelegateRecord], console: Console | None = None
) -> None:
    console = console or Console()

    table = Table(expand=True)
    table.add_column("Delegate", style="cyan", no_wrap=True)
    table.add_column("Delegator", style="dim", no_wrap=True)
    table.add_column("Label")
    for entry in delegates:
        table.add_row(entry.delegate, entry.delegator, entry.label)

    console.print(
        Panel(
            table,
            title=f"[bold]Delegates ({len(delegates)})[/]",
            border_style="cyan",
        )
    )


def format_pending_transactions(
    pending: list[PendingTransaction], console: Console | None = None
) -> None:
    console = console or Console()

    table = Table(expand=True)
    table.add_column("Nonce", justify="right")
    table.add_column("Safe Tx Hash", style="cyan", no_wrap=True)
    table.add_column("To", no_wrap=True)
    table.add_column("Value (ETH)", justify="right", style="green")
    table.add_column("Op", justify="center", style="dim")
    table.add_column("Confirmations", justify="right", style="yellow")
    for entry in pending:
        required = (
            "?" if entry.confirmations_required is None else entry.confirmations_required
        )
        table.add_row(
            str(entry.nonce),
            _truncate_hash(entry.safe_tx_hash),
            _truncate_address(entry.to),
            _format_wei(entry.value),
            entry.operation.name,
            f"{len(entry.confirmations)}/{required}",
        )

    console.print(
        Panel(
            table,
            title=f"[bold]Pending Transactions ({len(pending)})[/]",
            border_style="yellow",
        )
    )


def format_onchain_result(
    label: str, result: OnChainResult, console: Console | None = None
) -> None:
    console = console or Console()
    status = "[green]success[/]" if result.succeeded else "[red]reverted[/]"
    console.print(f"{label}: {result.tx_hash} ({status})")
