"""
The main orchestrator: feeds URLs to a fixed pool of fetch workers and
aggregates their outcomes into a report.
"""

import asyncio
import logging
import time
from typing import AsyncIterable, AsyncIterator, Iterable, Optional, Protocol, Union

from rich.markup import escape

from kbart_harvester.cli.progress_manager import ProgressManager
from kbart_harvester.fetch.connection import create_connection_pool
from kbart_harvester.models.config import HarvestConfig
from kbart_harvester.models.outcome import FetchOutcome, TransferFailed
from kbart_harvester.models.stats import HarvestReport
from kbart_harvester.validation import KBART_SIGNATURE, HeaderSignature

from .fetch_task import FetchProcessor

log = logging.getLogger(__name__)

UrlSource = Union[Iterable[str], AsyncIterable[str]]

_DONE = object()


class Fetcher(Protocol):
    async def fetch(self, url: str) -> FetchOutcome: ...


async def _iterate(urls: UrlSource) -> AsyncIterator[str]:
    if isinstance(urls, AsyncIterable):
        async for url in urls:
            yield url
    else:
        for url in urls:
            yield url


class HarvestManager:
    """
    Runs fetch tasks over a sequence of URLs with exactly `max_workers`
    concurrent workers.

    Each worker claims the next URL from a shared queue, runs it to a terminal
    outcome, then claims the next one. A failing URL never stops the batch.
    """

    def __init__(
        self,
        config: HarvestConfig,
        signature: HeaderSignature = KBART_SIGNATURE,
        progress_manager: Optional[ProgressManager] = None,
        processor: Optional[Fetcher] = None,
    ):
        self.config = config
        self.signature = signature
        self.progress_manager = progress_manager
        self.processor = processor

    async def run(self, urls: UrlSource) -> HarvestReport:
        """Processes every URL and returns the aggregated report."""
        report = HarvestReport()
        start_time = time.monotonic()

        async for outcome in self.iter_outcomes(urls):
            report.record(outcome)
            if self.progress_manager:
                self.progress_manager.record_outcome(outcome)

        report.duration_s = time.monotonic() - start_time
        if report.total == 0:
            log.warning("[yellow]No URLs to process.[/yellow]")
        return report

    async def iter_outcomes(self, urls: UrlSource) -> AsyncIterator[FetchOutcome]:
        """Yields each URL's outcome as soon as it completes."""
        if self.processor is not None:
            async for outcome in self._schedule(self.processor, urls):
                yield outcome
            return

        async with create_connection_pool(self.config) as session:
            processor = FetchProcessor(
                self.config, session, self.signature, self.progress_manager
            )
            async for outcome in self._schedule(processor, urls):
                yield outcome

    async def _schedule(
        self, processor: Fetcher, urls: UrlSource
    ) -> AsyncIterator[FetchOutcome]:
        worker_count = self.config.max_workers
        backlog: asyncio.Queue = asyncio.Queue(maxsize=worker_count * 2)
        results: asyncio.Queue = asyncio.Queue()

        async def stop_workers() -> None:
            for _ in range(worker_count):
                await backlog.put(_DONE)

        async def produce() -> None:
            try:
                async for url in _iterate(urls):
                    if self.progress_manager:
                        self.progress_manager.add_to_total()
                    await backlog.put(url)
            except Exception:
                # Let the workers drain what was already queued.
                await stop_workers()
                raise
            await stop_workers()

        async def work(worker_id: int) -> None:
            while True:
                url = await backlog.get()
                if url is _DONE:
                    break
                await results.put(await self._fetch_one(processor, url))
            log.debug(f"Worker {worker_id} finished")

        producer = asyncio.create_task(produce())
        workers = [asyncio.create_task(work(i)) for i in range(worker_count)]
        log.debug(f"Started {worker_count} workers")

        async def close_results() -> None:
            await asyncio.gather(*workers)
            await results.put(_DONE)

        closer = asyncio.create_task(close_results())
        try:
            while (outcome := await results.get()) is not _DONE:
                yield outcome
            await producer
        finally:
            pending = [t for t in (producer, closer, *workers) if not t.done()]
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

    @staticmethod
    async def _fetch_one(processor: Fetcher, url: str) -> FetchOutcome:
        try:
            return await processor.fetch(url)
        except Exception as e:
            log.error(
                f"[red]✗ Unexpected error for {escape(url)}: {e}[/red]",
                exc_info=log.getEffectiveLevel() == logging.DEBUG,
            )
            return TransferFailed(url=url, cause=f"{type(e).__name__}: {e}")
