"""
Main entry point for the kbart-harvester application.
This module handles top-level setup, exception handling, and CLI invocation.
"""

import logging
import os
import sys

import typer
from rich.console import Console

from kbart_harvester.cli.app import app
from kbart_harvester.cli.formatters import format_error_with_suggestions
from kbart_harvester.exceptions import HarvesterError


def main() -> None:
    """Main entry point function."""
    if os.name == "nt":
        try:
            sys.stdout.reconfigure(encoding="utf-8")
            sys.stderr.reconfigure(encoding="utf-8")
        except (TypeError, AttributeError):
            pass

    log = logging.getLogger("kbart_harvester")
    console = Console()

    try:
        app()
    except (typer.Exit, typer.Abort):
        pass
    except HarvesterError as e:
        console.print()
        console.print(format_error_with_suggestions(e))
        sys.exit(1)
    except Exception as e:
        console.print()
        console.print(format_error_with_suggestions(e, {"type": "Unexpected"}))
        log.debug("Full traceback:", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
