"""Rendering of catalog listings and probe outcomes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from ..engine.records import ProbeOutcome, ProbeTarget

ONLINE_STYLE = "green"
OFFLINE_STYLE = "red"


def format_target(target: ProbeTarget) -> str:
    return (
        f"{target.country_short:<3} {target.ip:<17} {target.host_name:<17} "
        f"{target.speed_mbps:>7.2f} Mbps"
    )


def format_outcome(outcome: ProbeOutcome) -> str:
    line = format_target(outcome.target)
    if outcome.error:
        return f"{line}  error: {outcome.error}"
    if outcome.reachable:
        return f"{line}  online ({outcome.latency_ms or 0.0:.1f} ms)"
    return f"{line}  offline"


@dataclass
class SinkSummary:
    online: int = 0
    offline: int = 0

    @property
    def total(self) -> int:
        return self.online + self.offline


class ResultSink:
    """Print one line per outcome, in arrival order.

    ``color`` selects between the two-state green/red rendering and plain
    rows carrying the same text.
    """

    def __init__(self, console: Console | None = None, color: bool = True) -> None:
        self.console = console or Console()
        self.color = color
        self.summary = SinkSummary()

    def header(self) -> None:
        self.console.print(
            f"{'':<3} {'IP':<17} {'Host':<17} {'Speed':>12}",
            style="bold" if self.color else None,
            highlight=False,
            soft_wrap=True,
        )

    def emit(self, outcome: ProbeOutcome) -> None:
        if outcome.reachable:
            self.summary.online += 1
            style = ONLINE_STYLE
        else:
            self.summary.offline += 1
            style = OFFLINE_STYLE
        text = Text(format_outcome(outcome), style=style if self.color else "")
        self.console.print(text, highlight=False, soft_wrap=True)

    def consume(self, outcomes: Iterable[ProbeOutcome]) -> SinkSummary:
        for outcome in outcomes:
            self.emit(outcome)
        return self.close()

    def close(self) -> SinkSummary:
        self.console.file.flush()
        return self.summary


def render_records_table(targets: Sequence[ProbeTarget]) -> Table:
    table = Table(
        title=f"VPN servers · {len(targets)} total",
        box=box.SIMPLE_HEAD,
        show_lines=False,
    )
    table.add_column("CC", style="magenta", no_wrap=True)
    table.add_column("IP", style="cyan", no_wrap=True)
    table.add_column("Host", style="bold", no_wrap=True)
    table.add_column("Speed", style="green", justify="right")
    table.add_column("Ping", style="yellow", justify="right")
    for target in targets:
        table.add_row(
            target.country_short,
            target.ip,
            target.host_name,
            f"{target.speed_mbps:.2f} Mbps",
            f"{target.ping} ms",
        )
    return table


__all__ = ["ResultSink", "SinkSummary", "format_outcome", "format_target", "render_records_table"]
