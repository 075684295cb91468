"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from kbart_harvester.models.config import HarvestConfig
from kbart_harvester.models.outcome import NamingFailed, TransferFailed
from kbart_harvester.models.stats import HarvestReport
from kbart_harvester.utils.formatting import format_duration, format_size

MAX_LISTED_FAILURES = 20


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "ConfigurationError": [
            "• Check the values in your configuration file.",
            "• Run `kbart-harvester show-config` to see the effective settings.",
            "• Make sure the output directory is writable.",
        ],
        "ClientConnectorError": [
            "• A network connection issue occurred.",
            "• Check your internet connection and proxy settings.",
        ],
        "TimeoutError": [
            "• A server did not answer in time.",
            "• Raise `--read-timeout` or reduce the number of `--workers`.",
        ],
        "PermissionError": [
            "• The output directory is not writable by the current user.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(Text("\n".join(suggestions)))

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_config(config_path: Path, config: HarvestConfig, console: Console):
    """Displays the effective configuration."""
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    table.add_row("Config File:", f"[dim]{escape(str(config_path))}[/dim]")
    table.add_row("Max Workers:", str(config.max_workers))
    table.add_row(
        "Header Check:", "✓ Enabled" if config.check_validity else "✗ Disabled"
    )
    table.add_row("Connect Timeout:", f"{config.connect_timeout:g}s")
    table.add_row("Read Timeout:", f"{config.read_timeout:g}s")
    table.add_row(
        "Total Timeout:",
        f"{config.total_timeout:g}s" if config.total_timeout else "none",
    )
    table.add_row("Chunk Size:", format_size(config.chunk_size))
    table.add_row("User Agent:", escape(config.user_agent))

    console.print(
        Panel(
            table,
            title="[bold green]✓ Effective Settings[/bold green]",
            border_style="green",
        )
    )


def print_summary_panel(
    report: HarvestReport, console: Console, progress_stats: dict | None = None
):
    """Displays the final summary of the harvest."""
    stats_table = Table(show_header=False, box=None, padding=(0, 2))
    stats_table.add_column(style="bold cyan", justify="right", width=20)
    stats_table.add_column(style="white", justify="left")

    stats_table.add_row("✓ Written:", f"[bold green]{report.written}[/bold green]")
    if report.rejected > 0:
        stats_table.add_row(
            "○ Rejected:", f"[yellow]{report.rejected} (invalid header)[/yellow]"
        )
    if report.naming_failed > 0:
        stats_table.add_row(
            "✗ Naming Failed:", f"[bold red]{report.naming_failed}[/bold red]"
        )
    if report.transfer_failed > 0:
        stats_table.add_row(
            "✗ Transfer Failed:", f"[bold red]{report.transfer_failed}[/bold red]"
        )

    stats_table.add_row("", "")  # Spacer
    stats_table.add_row("Total Size:", f"[cyan]{format_size(report.total_bytes)}[/cyan]")
    avg_speed = report.total_bytes / report.duration_s if report.duration_s > 0 else 0
    stats_table.add_row(
        "Avg. Speed:", f"[magenta]{format_size(int(avg_speed))}/s[/magenta]"
    )
    stats_table.add_row(
        "Time Elapsed:", f"[blue]{format_duration(report.duration_s)}[/blue]"
    )
    if progress_stats:
        stats_table.add_row(
            "Peak Concurrent:",
            f"[green]{progress_stats.get('peak_concurrent', 0)}[/green]",
        )

    if report.all_failed:
        title = "✗ [bold]Harvest Failed[/bold]"
        border_color = "red"
    elif report.failed:
        title = "⚠ [bold]Harvest Completed With Errors[/bold]"
        border_color = "yellow"
    else:
        title = "📚 [bold]Harvest Complete![/bold]"
        border_color = "green"

    console.print()
    console.print(
        Panel(
            stats_table,
            title=title,
            border_style=border_color,
            box=box.DOUBLE,
            expand=False,
            padding=(1, 2),
        )
    )

    failures = report.failures()
    if failures:
        print_failures_table(failures, console)
    console.print()


def print_failures_table(
    failures: list[NamingFailed | TransferFailed], console: Console
):
    """Lists the URLs that failed and why."""
    table = Table(title="Failed URLs", box=box.ROUNDED, title_style="bold red")
    table.add_column("URL", style="cyan", overflow="fold")
    table.add_column("Reason", style="red")
    for outcome in failures[:MAX_LISTED_FAILURES]:
        reason = outcome.reason if isinstance(outcome, NamingFailed) else outcome.cause
        table.add_row(escape(outcome.url), escape(reason))
    console.print(table)
    if len(failures) > MAX_LISTED_FAILURES:
        console.print(
            f"[dim]... and {len(failures) - MAX_LISTED_FAILURES} more "
            "(see the log above).[/dim]"
        )
