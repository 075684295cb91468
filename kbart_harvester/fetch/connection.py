"""
Creates the HTTP connection pool shared by all fetch workers of a run.
"""

import logging

import aiohttp

from kbart_harvester.models.config import HarvestConfig

log = logging.getLogger(__name__)


def build_timeout(config: HarvestConfig) -> aiohttp.ClientTimeout:
    """
    Bounds every network operation so an unresponsive host only ever stalls the
    worker that is talking to it.
    """
    return aiohttp.ClientTimeout(
        total=config.total_timeout,
        sock_connect=config.connect_timeout,
        sock_read=config.read_timeout,
    )


def create_connection_pool(config: HarvestConfig) -> aiohttp.ClientSession:
    """
    Creates an aiohttp ClientSession sized for the worker pool.

    The caller owns the session and must close it (it is an async context
    manager).
    """
    connector = aiohttp.TCPConnector(
        limit=config.max_workers,  # One connection per worker
        ttl_dns_cache=600,  # 10 minutes
        keepalive_timeout=30,
        force_close=False,
    )
    session = aiohttp.ClientSession(
        connector=connector,
        timeout=build_timeout(config),
        headers={
            "User-Agent": config.user_agent,
            "Accept-Charset": "utf-8",
        },
    )
    log.debug(f"Created connection pool with limit={config.max_workers}")
    return session
