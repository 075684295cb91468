"""
Checks that a streamed file starts with a KBART header before it is downloaded.
"""

import codecs
import logging
from enum import Enum

from kbart_harvester.fetch.stream import PeekableStream

from .signature import KBART_SIGNATURE, HeaderSignature

log = logging.getLogger(__name__)

# Checked in order: the UTF-8 BOM must be tested before the two-byte ones.
_BYTE_ORDER_MARKS = (
    (codecs.BOM_UTF8, "utf-8"),
    (codecs.BOM_UTF16_LE, "utf-16-le"),
    (codecs.BOM_UTF16_BE, "utf-16-be"),
)
_MAX_BOM_SIZE = max(len(bom) for bom, _ in _BYTE_ORDER_MARKS)


class Validity(Enum):
    """Result of a header precheck."""

    VALID = "valid"
    INVALID = "invalid"


def detect_encoding(head: bytes) -> tuple[bytes, str]:
    """
    Detects the text encoding of a file from its byte order mark.

    Returns:
        A (bom, encoding) tuple. Files without a BOM are treated as UTF-8.
    """
    for bom, encoding in _BYTE_ORDER_MARKS:
        if head.startswith(bom):
            return bom, encoding
    return b"", "utf-8"


class ValidityPrechecker:
    """Compares the opening bytes of a stream against a header signature."""

    def __init__(self, signature: HeaderSignature = KBART_SIGNATURE):
        self.signature = signature

    def prefix_budget(self, head: bytes = b"") -> int:
        """Total number of bytes the check reads for a stream starting with `head`."""
        bom, encoding = detect_encoding(head)
        return len(bom) + self.signature.prefix_size(encoding)

    async def check(self, stream: PeekableStream) -> Validity:
        """
        Reads only the bytes needed to compare the header row.

        The inspected bytes stay in the stream's read-ahead buffer, so on a valid
        result the whole file is still available to the writer.
        """
        head = await stream.peek(_MAX_BOM_SIZE)
        bom, encoding = detect_encoding(head)
        prefix = await stream.peek(self.prefix_budget(head))

        text = prefix[len(bom) :].decode(encoding, errors="replace")
        header_line = text.replace("\r", "\n").split("\n", 1)[0]
        fields = header_line.split(self.signature.delimiter)

        if self.signature.matches(fields):
            return Validity.VALID

        log.debug(
            f"Header mismatch ({encoding}, {len(prefix)} bytes read): "
            f"{header_line[:80]!r}"
        )
        return Validity.INVALID
