"""
Data Models Layer.

This package contains the Pydantic configuration model, the per-URL fetch
outcomes, and the run report that aggregates them.
"""

from .config import HarvestConfig
from .outcome import (
    FetchOutcome,
    NamingFailed,
    OutcomeKind,
    RejectedByValidity,
    TransferFailed,
    Written,
)
from .stats import HarvestReport

__all__ = [
    "FetchOutcome",
    "HarvestConfig",
    "HarvestReport",
    "NamingFailed",
    "OutcomeKind",
    "RejectedByValidity",
    "TransferFailed",
    "Written",
]
