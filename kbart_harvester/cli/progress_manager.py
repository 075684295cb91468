"""
Manages a Rich Live display for concurrent downloads.
Shows overall progress, active transfers and real-time outcome counters.
"""

import asyncio
import logging
from datetime import datetime

from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    DownloadColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TransferSpeedColumn,
)
from rich.table import Table
from rich.text import Text

from kbart_harvester.models.outcome import FetchOutcome, OutcomeKind

log = logging.getLogger("kbart_harvester")


class ProgressManager:
    """
    Tracks active transfers and outcome counters, and renders them in a Live
    display while the harvest runs.
    """

    def __init__(self, console: Console, enabled: bool = True):
        self.console = console
        self.enabled = enabled

        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}", justify="left"),
            BarColumn(bar_width=20),
            "•",
            DownloadColumn(),
            "•",
            TransferSpeedColumn(),
            console=console,
        )
        self.overall_progress = Progress(
            TextColumn("[bold blue]{task.description}"),
            BarColumn(bar_width=40),
            MofNCompleteColumn(),
            console=console,
        )

        self._live: Live | None = None
        self._overall_task_id: TaskID | None = None
        self._active: set[TaskID] = set()
        self._stats = {
            "queued": 0,
            "active": 0,
            "peak_concurrent": 0,
            "start_time": None,
            **{kind.value: 0 for kind in OutcomeKind},
        }

    def initialize_session(self) -> None:
        self._stats["start_time"] = datetime.now()
        self._overall_task_id = self.overall_progress.add_task(
            "Overall Progress", total=None
        )

    def add_to_total(self, count: int = 1) -> None:
        self._stats["queued"] += count
        if self._overall_task_id is not None:
            self.overall_progress.update(
                self._overall_task_id, total=self._stats["queued"]
            )
        self._refresh()

    def add_transfer(self, description: str, total_size: int | None) -> TaskID:
        """Adds a progress bar for one download and returns its task id."""
        if len(description) > 50:
            description = description[:47] + "..."
        task_id = self.progress.add_task(description, total=total_size, start=True)
        self._active.add(task_id)
        self._stats["active"] = len(self._active)
        self._stats["peak_concurrent"] = max(
            self._stats["peak_concurrent"], self._stats["active"]
        )
        self._refresh()
        return task_id

    def update_transfer(self, task_id: TaskID, completed: int) -> None:
        if task_id in self._active:
            self.progress.update(task_id, completed=completed)

    def remove_transfer(self, task_id: TaskID) -> None:
        if task_id not in self._active:
            return
        self.progress.remove_task(task_id)
        self._active.discard(task_id)
        self._stats["active"] = len(self._active)
        self._refresh()

    def record_outcome(self, outcome: FetchOutcome) -> None:
        self._stats[outcome.kind.value] += 1
        if self._overall_task_id is not None:
            self.overall_progress.advance(self._overall_task_id)
        self._refresh()

    def get_statistics(self) -> dict:
        return self._stats.copy()

    def _generate_display(self) -> Group:
        stats_table = Table.grid(padding=(0, 2))
        stats_table.add_column(style="bold cyan", justify="right")
        stats_table.add_column(style="white")
        stats_table.add_column(style="bold cyan", justify="right")
        stats_table.add_column(style="white")
        stats_table.add_row(
            "Written:",
            f"[green]{self._stats[OutcomeKind.WRITTEN.value]}[/green]",
            "Rejected:",
            f"[yellow]{self._stats[OutcomeKind.REJECTED.value]}[/yellow]",
        )
        failed = (
            self._stats[OutcomeKind.NAMING_FAILED.value]
            + self._stats[OutcomeKind.TRANSFER_FAILED.value]
        )
        stats_table.add_row(
            "Failed:",
            f"[red]{failed}[/red]",
            "Active:",
            f"[cyan]{self._stats['active']}[/cyan] "
            f"[dim](peak {self._stats['peak_concurrent']})[/dim]",
        )

        body = Table.grid()
        body.add_row(stats_table)
        body.add_row("")
        body.add_row(self.overall_progress)
        panels = [
            Panel(body, title="[bold]📊 Harvest[/bold]", border_style="blue"),
        ]
        if self._active:
            panels.append(
                Panel(
                    self.progress,
                    title=f"[bold]📥 Active Downloads ({len(self._active)})[/bold]",
                    border_style="green",
                )
            )
        else:
            panels.append(
                Panel(
                    Text("Waiting for downloads...", style="dim italic"),
                    title="[bold]📥 Active Downloads[/bold]",
                    border_style="green",
                )
            )
        return Group(*panels)

    def _refresh(self) -> None:
        if self._live:
            self._live.update(self._generate_display())

    async def __aenter__(self):
        if not self.enabled:
            return self
        self._live = Live(
            self._generate_display(),
            console=self.console,
            refresh_per_second=8,
            transient=True,
        )
        self._live.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._live:
            await asyncio.sleep(0.1)
            self._live.stop()
            self._live = None
