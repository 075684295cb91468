"""
The KBART header signature used as a cheap validity fingerprint for holdings files.
"""

from dataclasses import dataclass

# Number of leading header columns that must match. The first 14 columns are
# shared by every known KBART header variant; later columns drift between
# versions (e.g. 'notes' became 'coverage_notes').
AUTHORITATIVE_COLUMNS = 14

KBART_COLUMNS = (
    "publication_title",
    "print_identifier",
    "online_identifier",
    "date_first_issue_online",
    "num_first_vol_online",
    "num_first_issue_online",
    "date_last_issue_online",
    "num_last_vol_online",
    "num_last_issue_online",
    "title_url",
    "first_author",
    "title_id",
    "embargo_info",
    "coverage_depth",
    "notes",
    "publisher_name",
    "publication_type",
)

KBART_COLUMNS_5321 = (
    *KBART_COLUMNS[:14],
    "coverage_notes",
    *KBART_COLUMNS[15:],
)


@dataclass(frozen=True)
class HeaderSignature:
    """
    The expected leading columns of a valid tabular header.

    A header matches when its first `authoritative_columns` fields equal the
    leading fields of any known variant. Fields past that prefix are ignored,
    which tolerates editor-added trailing columns.
    """

    variants: tuple[tuple[str, ...], ...]
    authoritative_columns: int = AUTHORITATIVE_COLUMNS
    delimiter: str = "\t"

    def __post_init__(self):
        if not self.variants:
            raise ValueError("A header signature needs at least one variant.")
        shortest = min(len(v) for v in self.variants)
        if not 1 <= self.authoritative_columns <= shortest:
            raise ValueError(
                f"authoritative_columns must be between 1 and {shortest}, "
                f"got {self.authoritative_columns}."
            )

    @property
    def leading_columns(self) -> tuple[tuple[str, ...], ...]:
        """The distinct authoritative prefixes, in variant order."""
        prefixes = (v[: self.authoritative_columns] for v in self.variants)
        return tuple(dict.fromkeys(prefixes))

    def prefix_size(self, encoding: str = "utf-8") -> int:
        """
        Number of bytes needed to compare a header in the given encoding: the
        longest authoritative prefix plus one delimiter, so that a truncated or
        extended last field is detected.
        """
        longest = max(
            len(self.delimiter.join(columns).encode(encoding))
            for columns in self.leading_columns
        )
        return longest + len(self.delimiter.encode(encoding))

    def matches(self, fields: list[str]) -> bool:
        """Checks the leading fields of a header row against every variant."""
        leading = tuple(f.strip() for f in fields[: self.authoritative_columns])
        return leading in self.leading_columns


KBART_SIGNATURE = HeaderSignature(variants=(KBART_COLUMNS, KBART_COLUMNS_5321))
