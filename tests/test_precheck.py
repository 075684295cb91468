"""
Tests for the KBART header signature and the streaming validity precheck.

Test coverage:
- Both header variants, extra trailing columns, BOMs and UTF-16
- Short-circuit: a rejected stream is read no further than the header budget
- The inspected prefix stays available to the writer
- Signature construction rules
"""

import codecs

import pytest

from conftest import (
    EXTRA_COLUMNS_BODY,
    KBART_HEADER,
    UTF16_BODY,
    VALID_BODY,
    VARIANT_BODY,
)
from kbart_harvester.fetch.stream import PeekableStream
from kbart_harvester.validation.precheck import (
    Validity,
    ValidityPrechecker,
    detect_encoding,
)
from kbart_harvester.validation.signature import (
    AUTHORITATIVE_COLUMNS,
    KBART_COLUMNS,
    KBART_COLUMNS_5321,
    KBART_SIGNATURE,
    HeaderSignature,
)


class FakeReader:
    """An aiohttp-style reader over bytes that records how much was read."""

    def __init__(self, data: bytes, max_chunk: int | None = None):
        self._data = data
        self._max_chunk = max_chunk
        self.bytes_read = 0

    async def read(self, n: int = -1) -> bytes:
        remaining = len(self._data) - self.bytes_read
        size = remaining if n < 0 else min(n, remaining)
        if self._max_chunk:
            size = min(size, self._max_chunk)
        chunk = self._data[self.bytes_read : self.bytes_read + size]
        self.bytes_read += len(chunk)
        return chunk


async def drain(stream: PeekableStream) -> bytes:
    return b"".join([chunk async for chunk in stream.iter_chunks(4096)])


@pytest.fixture
def prechecker():
    return ValidityPrechecker(KBART_SIGNATURE)


class TestValidityPrechecker:
    """Test suite for ValidityPrechecker.check."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [VALID_BODY, VARIANT_BODY, EXTRA_COLUMNS_BODY, UTF16_BODY],
        ids=["kbart", "kbart-5321", "extra-columns", "utf16"],
    )
    async def test_accepts_kbart_headers(self, prechecker, body):
        stream = PeekableStream(FakeReader(body))

        assert await prechecker.check(stream) is Validity.VALID

    @pytest.mark.asyncio
    async def test_accepts_utf8_bom(self, prechecker):
        stream = PeekableStream(FakeReader(codecs.BOM_UTF8 + VALID_BODY))

        assert await prechecker.check(stream) is Validity.VALID

    @pytest.mark.asyncio
    async def test_accepts_header_only_file(self, prechecker):
        leading = "\t".join(KBART_COLUMNS[:AUTHORITATIVE_COLUMNS])
        stream = PeekableStream(FakeReader(leading.encode()))

        assert await prechecker.check(stream) is Validity.VALID

    @pytest.mark.asyncio
    async def test_accepts_small_network_chunks(self, prechecker):
        reader = FakeReader(VALID_BODY, max_chunk=7)
        stream = PeekableStream(reader)

        assert await prechecker.check(stream) is Validity.VALID
        assert reader.bytes_read == KBART_SIGNATURE.prefix_size("utf-8")

    @pytest.mark.asyncio
    async def test_rejection_reads_only_the_header_budget(self, prechecker):
        body = b"<!DOCTYPE html>" + b"x" * 1_000_000
        reader = FakeReader(body)
        stream = PeekableStream(reader)

        assert await prechecker.check(stream) is Validity.INVALID
        assert reader.bytes_read == prechecker.prefix_budget(body[:3])
        assert reader.bytes_read == KBART_SIGNATURE.prefix_size("utf-8")
        assert reader.bytes_read < len(body)

    @pytest.mark.asyncio
    async def test_utf16_budget_includes_the_byte_order_mark(self, prechecker):
        reader = FakeReader(UTF16_BODY)

        assert await prechecker.check(PeekableStream(reader)) is Validity.VALID
        assert reader.bytes_read == prechecker.prefix_budget(UTF16_BODY[:3])
        assert reader.bytes_read == 2 + KBART_SIGNATURE.prefix_size("utf-16-le")

    @pytest.mark.asyncio
    async def test_rejects_extended_last_authoritative_field(self, prechecker):
        columns = list(KBART_COLUMNS)
        columns[AUTHORITATIVE_COLUMNS - 1] += "_extended"
        stream = PeekableStream(FakeReader("\t".join(columns).encode()))

        assert await prechecker.check(stream) is Validity.INVALID

    @pytest.mark.asyncio
    async def test_rejects_reordered_columns(self, prechecker):
        columns = list(KBART_COLUMNS)
        columns[0], columns[1] = columns[1], columns[0]
        stream = PeekableStream(FakeReader("\t".join(columns).encode()))

        assert await prechecker.check(stream) is Validity.INVALID

    @pytest.mark.asyncio
    async def test_rejects_comma_separated_header(self, prechecker):
        stream = PeekableStream(FakeReader(",".join(KBART_COLUMNS).encode()))

        assert await prechecker.check(stream) is Validity.INVALID

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [b"", b"publication_title\n", b"\n\n"])
    async def test_rejects_short_files(self, prechecker, body):
        stream = PeekableStream(FakeReader(body))

        assert await prechecker.check(stream) is Validity.INVALID

    @pytest.mark.asyncio
    async def test_prefix_remains_readable_after_check(self, prechecker):
        stream = PeekableStream(FakeReader(VALID_BODY, max_chunk=100))

        await prechecker.check(stream)

        assert await drain(stream) == VALID_BODY
        assert stream.bytes_received == len(VALID_BODY)


class TestDetectEncoding:
    @pytest.mark.parametrize(
        "head,expected",
        [
            (codecs.BOM_UTF8 + b"pub", (codecs.BOM_UTF8, "utf-8")),
            (codecs.BOM_UTF16_LE + b"p", (codecs.BOM_UTF16_LE, "utf-16-le")),
            (codecs.BOM_UTF16_BE + b"p", (codecs.BOM_UTF16_BE, "utf-16-be")),
            (b"pub", (b"", "utf-8")),
        ],
    )
    def test_detects_byte_order_marks(self, head, expected):
        assert detect_encoding(head) == expected


class TestHeaderSignature:
    """Test suite for HeaderSignature."""

    def test_variants_share_the_authoritative_prefix(self):
        assert KBART_SIGNATURE.leading_columns == (
            KBART_COLUMNS[:AUTHORITATIVE_COLUMNS],
        )

    def test_prefix_size_covers_prefix_and_one_delimiter(self):
        leading = "\t".join(KBART_COLUMNS[:AUTHORITATIVE_COLUMNS])

        assert KBART_SIGNATURE.prefix_size("utf-8") == len(leading) + 1
        assert KBART_SIGNATURE.prefix_size("utf-16-le") == 2 * (len(leading) + 1)

    def test_full_width_signature_accepts_each_variant(self):
        signature = HeaderSignature(
            variants=(KBART_COLUMNS, KBART_COLUMNS_5321),
            authoritative_columns=len(KBART_COLUMNS),
        )

        assert len(signature.leading_columns) == 2
        assert signature.matches(list(KBART_COLUMNS))
        assert signature.matches(list(KBART_COLUMNS_5321))
        assert not signature.matches(list(KBART_COLUMNS[:-1]))

    def test_matches_ignores_surrounding_whitespace(self):
        fields = [f" {c} " for c in KBART_COLUMNS]

        assert KBART_SIGNATURE.matches(fields)

    @pytest.mark.parametrize("columns", [0, len(KBART_COLUMNS) + 1])
    def test_rejects_out_of_range_prefix_length(self, columns):
        with pytest.raises(ValueError):
            HeaderSignature(variants=(KBART_COLUMNS,), authoritative_columns=columns)

    def test_requires_a_variant(self):
        with pytest.raises(ValueError):
            HeaderSignature(variants=())

    def test_is_immutable(self):
        with pytest.raises(AttributeError):
            KBART_SIGNATURE.authoritative_columns = 3

    def test_header_constant_matches_columns(self):
        assert KBART_HEADER.split("\t") == list(KBART_COLUMNS)
