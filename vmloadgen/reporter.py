from __future__ import annotations

from typing import Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from vmloadgen.domain.models import DEFAULT_TIERS, TIER_PROFILES
from vmloadgen.workers.abstract import TierStats


def _fmt_ms(value: Optional[float]) -> str:
    return f"{value:,.2f}" if value is not None else "-"


def print_tiers(console: Optional[Console] = None) -> None:
    """
    Render the static tier table: quota and delay per tier, in drain order.
    """
    console = console or Console()
    table = Table(title="Load Tiers", box=box.ROUNDED, caption="Pool drains top to bottom")
    table.add_column("Tier", style="cyan", no_wrap=True)
    table.add_column("Quota (items)", justify="right", style="magenta")
    table.add_column("Delay (ms)", justify="right", style="green")

    for tier in DEFAULT_TIERS:
        profile = TIER_PROFILES[tier]
        table.add_row(tier.label, f"{profile.quota:,}", f"{profile.delay_ms:,}")

    console.print(table)


def print_stats(stats: Sequence[TierStats], console: Optional[Console] = None) -> None:
    """
    Render per-tier run statistics as a rich table.

    Tiers that failed at least one chunk get their failure count highlighted.
    """
    console = console or Console()

    if not stats:
        console.print("[yellow]No tier statistics to display.[/yellow]")
        return

    table = Table(title="Load Generator Results", box=box.ROUNDED)
    table.add_column("Tier", style="cyan", no_wrap=True)
    table.add_column("Items", justify="right", style="magenta")
    table.add_column("Chunks/cycle", justify="right")
    table.add_column("Cycles", justify="right", style="blue")
    table.add_column("Sent", justify="right", style="green")
    table.add_column("Failed", justify="right")
    table.add_column("Last cycle (ms)", justify="right")
    table.add_column("Avg cycle (ms)", justify="right", style="bold green")

    for entry in stats:
        failed = f"[bold red]{entry.chunks_failed:,}[/bold red]" if entry.chunks_failed else "0"
        table.add_row(
            entry.tier,
            f"{entry.items:,}",
            f"{entry.chunks_per_cycle:,}",
            f"{entry.cycles:,}",
            f"{entry.chunks_sent:,}",
            failed,
            _fmt_ms(entry.last_cycle_ms),
            _fmt_ms(entry.avg_cycle_ms),
        )

    console.print(table)


__all__ = ["print_stats", "print_tiers"]
