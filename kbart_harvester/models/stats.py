"""
Aggregation of fetch outcomes into the final report of a harvest run.
"""

from dataclasses import dataclass, field

from .outcome import FetchOutcome, OutcomeKind


@dataclass
class HarvestReport:
    """Counts outcomes per terminal kind and keeps the full outcome list."""

    written: int = 0
    rejected: int = 0
    naming_failed: int = 0
    transfer_failed: int = 0
    total_bytes: int = 0
    duration_s: float = 0.0
    outcomes: list[FetchOutcome] = field(default_factory=list, repr=False)

    def record(self, outcome: FetchOutcome) -> None:
        """Adds a single outcome to the report."""
        self.outcomes.append(outcome)
        if outcome.kind is OutcomeKind.WRITTEN:
            self.written += 1
            self.total_bytes += outcome.byte_count
        elif outcome.kind is OutcomeKind.REJECTED:
            self.rejected += 1
        elif outcome.kind is OutcomeKind.NAMING_FAILED:
            self.naming_failed += 1
        else:
            self.transfer_failed += 1

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def failed(self) -> int:
        return self.naming_failed + self.transfer_failed

    @property
    def all_failed(self) -> bool:
        """True when there was work and every single URL failed."""
        return self.total > 0 and self.failed == self.total

    @property
    def exit_code(self) -> int:
        """
        Process exit status for the run. Partial success and rejections count as
        a completed run; only a batch where every URL failed is an error.
        """
        return 1 if self.all_failed else 0

    def counts(self) -> dict[str, int]:
        return {
            OutcomeKind.WRITTEN.value: self.written,
            OutcomeKind.REJECTED.value: self.rejected,
            OutcomeKind.NAMING_FAILED.value: self.naming_failed,
            OutcomeKind.TRANSFER_FAILED.value: self.transfer_failed,
        }

    def failures(self) -> list[FetchOutcome]:
        return [o for o in self.outcomes if o.failed]
