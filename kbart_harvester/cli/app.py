"""
Defines the command-line interface for the application using Typer.
URLs are read from a file or, when no file is given, from stdin.
"""

import asyncio
import logging
import os
import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from kbart_harvester import __version__
from kbart_harvester.core.harvest_manager import HarvestManager, UrlSource
from kbart_harvester.exceptions import ConfigurationError, HarvesterError
from kbart_harvester.models.config import HarvestConfig
from kbart_harvester.models.stats import HarvestReport
from kbart_harvester.storage.config_manager import ConfigManager
from kbart_harvester.storage.history import save_session_stats
from kbart_harvester.utils.path import create_dir
from kbart_harvester.utils.url_source import read_url_file, stream_urls

from .formatters import format_error_with_suggestions, print_config, print_summary_panel
from .progress_manager import ProgressManager

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("kbart_harvester")

app = typer.Typer(
    name="kbart-harvester",
    help=(
        "Concurrent harvester for KBART holdings files. Use 'kbart-harvester"
        " <command> --help' for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / "kbart-harvester"


CONFIG_DIR = get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.ini"


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
):
    """KBART File Harvester"""
    if version:
        console.print(
            f"[bold]kbart-harvester[/bold] version [cyan]{__version__}[/cyan]"
        )
        raise typer.Exit()

    log_level = "INFO"
    if verbose >= 2:
        log_level = "DEBUG"
    logging.getLogger("kbart_harvester").setLevel(log_level)

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


def _prepare_output_dir(output_dir: Path) -> None:
    """Creates the output directory and checks that it can be written to."""
    try:
        create_dir(output_dir)
    except OSError as e:
        raise ConfigurationError(
            f"Cannot create output directory '{output_dir}': {e}"
        ) from e
    if not os.access(output_dir, os.W_OK):
        raise ConfigurationError(f"Output directory '{output_dir}' is not writable.")


def _stream_urls_from_stdin() -> UrlSource:
    """Streams URLs from stdin, one per line, as they are piped in."""
    if sys.stdin.isatty():
        console.print(
            "[yellow]⚠️  No input file given and nothing piped on stdin.[/yellow]"
        )
        console.print(
            "[dim]Examples:[/dim]\n"
            "  [cyan]kbart-harvester harvest -i urls.txt -o kbart/[/cyan]\n"
            "  [cyan]cat urls.txt | kbart-harvester harvest -o kbart/[/cyan]"
        )
        raise typer.Exit(code=1)

    return stream_urls(sys.stdin)


async def _harvest_async(
    config: HarvestConfig, urls: UrlSource, show_progress: bool
) -> tuple[HarvestReport, dict]:
    async with ProgressManager(console, enabled=show_progress) as progress_manager:
        progress_manager.initialize_session()
        manager = HarvestManager(config, progress_manager=progress_manager)
        report = await manager.run(urls)
        return report, progress_manager.get_statistics()


@app.command(name="harvest")
def harvest_command(
    output_dir: Path = typer.Option(  # noqa: B008
        ...,
        "-o",
        "--output-dir",
        help="Directory the KBART files are written to (created if missing).",
    ),
    input_file: Path | None = typer.Option(  # noqa: B008
        None,
        "-i",
        "--input",
        help="File containing one URL per line. If not set, URLs are read from stdin.",
    ),
    workers: int | None = typer.Option(
        None,
        "-w",
        "--workers",
        help="Number of simultaneous downloads (default: number of CPUs).",
    ),
    nocheck: bool = typer.Option(
        False,
        "-n",
        "--nocheck",
        help="Don't check the KBART header before downloading.",
    ),
    connect_timeout: float | None = typer.Option(
        None, "--connect-timeout", help="Seconds allowed to establish a connection."
    ),
    read_timeout: float | None = typer.Option(
        None, "--read-timeout", help="Seconds allowed between two reads from a server."
    ),
    no_progress: bool = typer.Option(
        False, "--no-progress", help="Disable the live progress display."
    ),
):
    """Download KBART files from a list of URLs."""
    cli_options = {
        key: value
        for key, value in {
            "output_dir": output_dir,
            "max_workers": workers,
            "connect_timeout": connect_timeout,
            "read_timeout": read_timeout,
        }.items()
        if value is not None
    }
    if nocheck:
        cli_options["check_validity"] = False

    try:
        config = ConfigManager(CONFIG_FILE).load_config(cli_options)
        _prepare_output_dir(config.output_dir)
        if input_file:
            urls: UrlSource = read_url_file(input_file)
            source = f"{len(urls)} URLs"
        else:
            urls = _stream_urls_from_stdin()
            source = "URLs from stdin"
    except HarvesterError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e

    log.info(
        f"[bold cyan]📚 Harvesting {source} with {config.max_workers} "
        f"workers[/bold cyan] "
        f"[dim](header check {'on' if config.check_validity else 'off'})[/dim]"
    )
    show_progress = not no_progress and console.is_terminal
    try:
        report, progress_stats = asyncio.run(
            _harvest_async(config, urls, show_progress)
        )
    except KeyboardInterrupt:
        # asyncio.run has cancelled the workers, which removed their .part files.
        console.print(
            "\n[yellow]⚠️  Harvest interrupted. Partial downloads were removed.[/yellow]"
        )
        raise typer.Exit(code=130) from None

    print_summary_panel(report, console, progress_stats)
    save_session_stats(config, report)
    raise typer.Exit(code=report.exit_code)


@app.command()
def init(
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing configuration file."
    ),
):
    """Write a configuration file holding the default settings."""
    if (
        CONFIG_FILE.exists()
        and not force
        and not typer.confirm("Configuration file already exists. Overwrite it?")
    ):
        raise typer.Abort()

    try:
        ConfigManager(CONFIG_FILE).save_new_config()
    except ConfigurationError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1) from e
    console.print(f"[bold green]✓ Configuration saved to '{CONFIG_FILE}'[/bold green]")


@app.command(name="show-config")
def show_config():
    """Display the effective configuration."""
    try:
        config = ConfigManager(CONFIG_FILE).load_config({"output_dir": Path.cwd()})
    except ConfigurationError as e:
        console.print(f"[red]✗ Configuration is invalid: {e}[/red]")
        raise typer.Exit(code=1) from e
    print_config(CONFIG_FILE, config, console)
