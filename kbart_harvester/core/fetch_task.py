"""
Handles the processing of a single URL, from naming to the file on disk.
"""

import asyncio
import logging
import os
import uuid
from pathlib import Path
from typing import Optional

import aiofiles
import aiohttp
from rich.markup import escape
from rich.progress import TaskID

from kbart_harvester.cli.progress_manager import ProgressManager
from kbart_harvester.exceptions import (
    NamingError,
    TransferError,
    ValidationRejection,
    WriteError,
)
from kbart_harvester.fetch.stream import PeekableStream
from kbart_harvester.models.config import HarvestConfig
from kbart_harvester.models.outcome import (
    FetchOutcome,
    NamingFailed,
    RejectedByValidity,
    TransferFailed,
    Written,
)
from kbart_harvester.utils.path import resolve_destination, sanitize_url_filename
from kbart_harvester.validation import (
    KBART_SIGNATURE,
    HeaderSignature,
    Validity,
    ValidityPrechecker,
)

log = logging.getLogger(__name__)


def describe_transfer_error(error: BaseException) -> str:
    """Builds a short, readable cause from a network exception."""
    if isinstance(error, aiohttp.ClientResponseError):
        return f"HTTP {error.status} {error.message}".strip()
    if isinstance(error, asyncio.TimeoutError):
        return "timed out"
    message = str(error)
    return f"{type(error).__name__}: {message}" if message else type(error).__name__


class FetchProcessor:
    """
    Runs a single URL through naming, fetching, the optional header precheck and
    writing.

    Every per-URL error is converted into a FetchOutcome; nothing raised here is
    allowed to abort the batch.
    """

    def __init__(
        self,
        config: HarvestConfig,
        session: aiohttp.ClientSession,
        signature: HeaderSignature = KBART_SIGNATURE,
        progress_manager: Optional[ProgressManager] = None,
    ):
        self.config = config
        self.session = session
        self.prechecker = (
            ValidityPrechecker(signature) if config.check_validity else None
        )
        self.progress_manager = progress_manager
        self._claimed_names: dict[str, str] = {}
        self._names_lock = asyncio.Lock()

    async def fetch(self, url: str) -> FetchOutcome:
        """Fetches one URL and returns its terminal outcome."""
        try:
            return await self._fetch(url)
        except NamingError as e:
            log.error(f"[red]✗ Naming failed:[/] {escape(url)} ({escape(str(e))})")
            return NamingFailed(url=url, reason=str(e))
        except ValidationRejection:
            log.warning(
                f"[yellow]○ Rejected:[/] {escape(url)} (invalid KBART header)"
            )
            return RejectedByValidity(url=url)
        except (TransferError, WriteError) as e:
            log.error(f"[red]✗ Failed:[/] {escape(url)} ({escape(str(e))})")
            return TransferFailed(url=url, cause=str(e))

    async def _fetch(self, url: str) -> FetchOutcome:
        name = sanitize_url_filename(url)
        destination = resolve_destination(self.config.output_dir, name)
        await self._claim_name(name, url)

        # Fixed-length name: a long destination name must not overflow NAME_MAX.
        temp_path = destination.with_name(f".{uuid.uuid4().hex}.part")
        task_id: Optional[TaskID] = None
        committed = False

        log.debug(f"Fetching {url} -> {destination.name}")
        try:
            try:
                async with self.session.get(url, allow_redirects=True) as response:
                    response.raise_for_status()
                    stream = PeekableStream(response.content)

                    if (
                        self.prechecker
                        and await self.prechecker.check(stream) is Validity.INVALID
                    ):
                        # Drop the connection instead of draining the body.
                        response.close()
                        raise ValidationRejection(f"{url} has an invalid KBART header")

                    if self.progress_manager:
                        task_id = self.progress_manager.add_transfer(
                            name, total_size=response.content_length
                        )
                    byte_count = await self._write(
                        stream, temp_path, destination.name, task_id
                    )
            except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
                raise TransferError(describe_transfer_error(e)) from e

            await self._commit(temp_path, destination)
            committed = True
        finally:
            if self.progress_manager and task_id is not None:
                self.progress_manager.remove_transfer(task_id)
            if not committed:
                self._discard(temp_path)

        log.info(
            f"[green]✓ Saved[/] [dim]{escape(destination.name)}[/dim] "
            f"({byte_count} bytes)"
        )
        return Written(url=url, path=destination, byte_count=byte_count)

    async def _write(
        self,
        stream: PeekableStream,
        temp_path: Path,
        name: str,
        task_id: Optional[TaskID],
    ) -> int:
        """Streams the response into a temporary file and returns the byte count."""
        byte_count = 0
        try:
            handle = await aiofiles.open(temp_path, "wb")
        except OSError as e:
            raise WriteError(f"cannot create a temporary file for '{name}': {e}") from e

        try:
            async for chunk in stream.iter_chunks(self.config.chunk_size):
                try:
                    await handle.write(chunk)
                except OSError as e:
                    raise WriteError(f"cannot write '{name}': {e}") from e
                byte_count += len(chunk)
                if self.progress_manager and task_id is not None:
                    self.progress_manager.update_transfer(task_id, completed=byte_count)
        finally:
            try:
                await handle.close()
            except OSError as e:
                raise WriteError(f"cannot close '{name}': {e}") from e
        return byte_count

    async def _commit(self, temp_path: Path, destination: Path) -> None:
        """Moves the finished download into place, replacing any existing file."""
        try:
            await asyncio.to_thread(os.replace, temp_path, destination)
        except OSError as e:
            raise WriteError(f"cannot save '{destination.name}': {e}") from e

    @staticmethod
    def _discard(temp_path: Path) -> None:
        """Best-effort removal of a partial download."""
        try:
            temp_path.unlink(missing_ok=True)
        except OSError:
            log.debug(f"Could not remove partial file '{temp_path}'")

    async def _claim_name(self, name: str, url: str) -> None:
        """Records which URL owns an output name; later claims overwrite."""
        async with self._names_lock:
            previous = self._claimed_names.get(name)
            self._claimed_names[name] = url
        if previous and previous != url:
            log.warning(
                f"[yellow]⚠ '{escape(name)}' is shared by {escape(previous)} and "
                f"{escape(url)}; the last download wins.[/yellow]"
            )
