"""
Shared fixtures: KBART sample content and a local HTTP server serving it.
"""

import asyncio
import codecs
import socket
from collections import Counter

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from kbart_harvester.models.config import HarvestConfig
from kbart_harvester.validation.signature import KBART_COLUMNS, KBART_COLUMNS_5321

KBART_HEADER = "\t".join(KBART_COLUMNS)
KBART_HEADER_5321 = "\t".join(KBART_COLUMNS_5321)
KBART_ROW = "\t".join(
    [
        "Journal of Harvesting",
        "1234-5678",
        "8765-4321",
        "2001-01-01",
        "1",
        "1",
        "",
        "",
        "",
        "https://example.org/joh",
        "",
        "joh",
        "",
        "fulltext",
        "",
        "Example Press",
        "serial",
    ]
)

VALID_BODY = f"{KBART_HEADER}\n{KBART_ROW}\n".encode("utf-8")
VARIANT_BODY = f"{KBART_HEADER_5321}\r\n{KBART_ROW}\r\n".encode("utf-8")
EXTRA_COLUMNS_BODY = (
    f"{KBART_HEADER}\tlocal_shelf\tlocal_note\n{KBART_ROW}\tA1\tok\n".encode("utf-8")
)
UTF16_BODY = codecs.BOM_UTF16_LE + f"{KBART_HEADER}\n{KBART_ROW}\n".encode(
    "utf-16-le"
)
HTML_BODY = b"<!DOCTYPE html><html><body>Not found</body></html>" + b" " * 500_000

HITS = web.AppKey("hits", Counter)
RELEASE = web.AppKey("release", asyncio.Event)


def build_app() -> web.Application:
    app = web.Application()
    app[HITS] = Counter()
    app[RELEASE] = asyncio.Event()

    def serve(body: bytes):
        async def handler(request: web.Request) -> web.Response:
            request.app[HITS][request.path] += 1
            return web.Response(body=body, content_type="text/plain")

        return handler

    async def slow(request: web.Request) -> web.Response:
        request.app[HITS][request.path] += 1
        await asyncio.sleep(1.0)
        return web.Response(body=VALID_BODY)

    async def stall(request: web.Request) -> web.StreamResponse:
        # Sends the header row, then holds the body open until released.
        request.app[HITS][request.path] += 1
        response = web.StreamResponse()
        await response.prepare(request)
        await response.write(VALID_BODY)
        try:
            await asyncio.wait_for(request.app[RELEASE].wait(), timeout=5)
            await response.write(VALID_BODY)
        except (asyncio.TimeoutError, ConnectionResetError):
            pass
        return response

    async def missing(request: web.Request) -> web.Response:
        request.app[HITS][request.path] += 1
        raise web.HTTPNotFound()

    app.router.add_get("/kbart/{name}", serve(VALID_BODY))
    app.router.add_get("/v5321/{name}", serve(VARIANT_BODY))
    app.router.add_get("/extra/{name}", serve(EXTRA_COLUMNS_BODY))
    app.router.add_get("/utf16/{name}", serve(UTF16_BODY))
    app.router.add_get("/html/{name}", serve(HTML_BODY))
    app.router.add_get("/slow/{name}", slow)
    app.router.add_get("/stall/{name}", stall)
    app.router.add_get("/missing/{name}", missing)
    app.router.add_get("/", serve(b"root"))
    return app


@pytest_asyncio.fixture
async def kbart_server():
    """A running HTTP server exposing the sample files above."""
    server = TestServer(build_app())
    await server.start_server()
    yield server
    await server.close()


@pytest.fixture
def server_url(kbart_server):
    def make(path: str) -> str:
        return str(kbart_server.make_url(path))

    return make


@pytest.fixture
def server_hits(kbart_server) -> Counter:
    return kbart_server.app[HITS]


@pytest.fixture
def release_stalled(kbart_server) -> asyncio.Event:
    """Lets /stall/ responses finish."""
    return kbart_server.app[RELEASE]


@pytest.fixture
def refused_url() -> str:
    """A URL on a local port nothing listens on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    return f"http://127.0.0.1:{port}/kbart/unreachable.txt"


@pytest.fixture
def output_dir(tmp_path):
    directory = tmp_path / "kbart"
    directory.mkdir()
    return directory


@pytest.fixture
def make_config(output_dir):
    def make(**overrides) -> HarvestConfig:
        settings = {
            "output_dir": output_dir,
            "max_workers": 2,
            "connect_timeout": 2.0,
            "read_timeout": 2.0,
            "config_path": "",
        }
        settings.update(overrides)
        return HarvestConfig(**settings)

    return make
