"""
Reads the list of URLs to harvest from a file or a text stream.
"""

import asyncio
import logging
from pathlib import Path
from typing import AsyncIterator, Iterable, Iterator, TextIO

from kbart_harvester.exceptions import ConfigurationError

log = logging.getLogger(__name__)


def iter_urls(lines: Iterable[str]) -> Iterator[str]:
    """Yields trimmed URLs, skipping blank lines and '#' comments."""
    for line in lines:
        url = line.strip()
        if url and not url.startswith("#"):
            yield url


def read_url_stream(stream: TextIO) -> list[str]:
    """Reads every URL from an open text stream."""
    return list(iter_urls(stream))


async def stream_urls(stream: TextIO) -> AsyncIterator[str]:
    """
    Yields URLs from a text stream as lines arrive. Lines are read in a worker
    thread, off the event loop.
    """
    while line := await asyncio.to_thread(stream.readline):
        for url in iter_urls((line,)):
            yield url


def read_url_file(path: Path) -> list[str]:
    """
    Reads URLs from a file, one per line.

    Raises:
        ConfigurationError: If the file cannot be read.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            urls = read_url_stream(f)
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Could not read URL file '{path}': {e}") from e
    log.debug(f"Read {len(urls)} URLs from {path}")
    return urls
