"""
Per-URL results produced by a fetch task.

Each URL ends in exactly one of four terminal outcomes. Outcomes are frozen: a
fetch task creates one and hands it to the report, nothing modifies it after.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import ClassVar, Union


class OutcomeKind(str, Enum):
    """Terminal states of a fetch task."""

    WRITTEN = "written"
    REJECTED = "rejected"
    NAMING_FAILED = "naming_failed"
    TRANSFER_FAILED = "transfer_failed"


@dataclass(frozen=True)
class Written:
    """The file was downloaded and saved."""

    url: str
    path: Path
    byte_count: int

    kind: ClassVar[OutcomeKind] = OutcomeKind.WRITTEN
    failed: ClassVar[bool] = False


@dataclass(frozen=True)
class RejectedByValidity:
    """The file did not start with a KBART header and was not downloaded."""

    url: str

    kind: ClassVar[OutcomeKind] = OutcomeKind.REJECTED
    failed: ClassVar[bool] = False


@dataclass(frozen=True)
class NamingFailed:
    """No safe filename could be derived from the URL."""

    url: str
    reason: str

    kind: ClassVar[OutcomeKind] = OutcomeKind.NAMING_FAILED
    failed: ClassVar[bool] = True


@dataclass(frozen=True)
class TransferFailed:
    """The file could not be fetched or written."""

    url: str
    cause: str

    kind: ClassVar[OutcomeKind] = OutcomeKind.TRANSFER_FAILED
    failed: ClassVar[bool] = True


FetchOutcome = Union[Written, RejectedByValidity, NamingFailed, TransferFailed]
