"""
Utilities for turning URLs into safe output file paths.
"""

import os
from pathlib import Path
from urllib.parse import unquote, urlsplit

from pathvalidate import sanitize_filename

from kbart_harvester.exceptions import NamingError

_CONTROL_CHARS = dict.fromkeys(range(32))


def sanitize_url_filename(url: str) -> str:
    """
    Derives a single, safe filename from the last non-empty path segment of a URL.

    The segment is percent-decoded, then separators, null bytes and characters
    that are invalid on common filesystems are removed. Query strings and
    fragments are ignored.

    Raises:
        NamingError: If the URL has no path segment, or nothing safe remains.
    """
    path = urlsplit(url.strip()).path
    segments = [s for s in path.split("/") if s]
    if not segments:
        raise NamingError(
            f"URL has no path segment to name the file after: {url}"
        )

    segment = unquote(segments[-1])
    if segment.strip() in ("", ".", ".."):
        raise NamingError(f"URL path segment '{segment}' is not a usable filename.")

    cleaned = segment.translate(_CONTROL_CHARS).replace("/", "").replace("\\", "")
    name = (
        sanitize_filename(cleaned, platform="universal").strip()
        if cleaned.strip()
        else ""
    )

    if not name or name.strip(".") == "":
        raise NamingError(
            f"URL path segment '{segment}' is empty after sanitization."
        )
    if os.path.basename(name) != name:
        raise NamingError(f"Sanitized name '{name}' is not a single path component.")
    return name


def resolve_destination(output_dir: Path, name: str) -> Path:
    """
    Joins a sanitized name onto the output directory, refusing any result that
    would land outside of it.
    """
    root = output_dir.resolve()
    destination = Path(os.path.normpath(root / name))
    if destination.parent != root or destination.name != name:
        raise NamingError(f"'{name}' resolves outside of the output directory.")
    return destination


def create_dir(directory_path: Path) -> None:
    """Creates a directory if it does not already exist."""
    directory_path.mkdir(parents=True, exist_ok=True)
