"""Duplicate detection for customer import.

Incoming rows are compared against stored customers by national ID
(T.C. Kimlik No). Detection is read-only: it reports conflicts and leaves
the decision to the resolution policy of the import.

Example usage:
    detector = get_duplicate_detector()
    context = build_detection_context(rows, customer_service)
    result = detector.detect_all(rows, context)
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Protocol

from acente_crm.customers.service import customer_to_record
from acente_crm.db.models import Customer
from acente_crm.imports.fields import NATIONAL_ID_FIELD
from acente_crm.imports.schemas import DuplicateCheckResult, DuplicateConflict


class CustomerLookup(Protocol):
    """Read access to stored customers keyed by national ID."""

    def find_by_national_ids(self, national_ids: set[str]) -> dict[str, Customer]:
        """Return the stored customer for each known national ID.

        Args:
            national_ids: National IDs to look up.

        Returns:
            Map of national ID -> first stored customer with that ID.
        """
        ...


@dataclass
class DetectionContext:
    """Context passed to all detectors.

    Attributes:
        existing_by_national_id: Stored customers for the IDs in the batch.
        all_rows: All incoming rows for cross-row analysis.
        row_numbers: Row number of each incoming row.
    """

    existing_by_national_id: dict[str, Customer] = field(default_factory=dict)
    all_rows: list[dict] = field(default_factory=list)
    row_numbers: list[int] = field(default_factory=list)


class ConflictDetector(Protocol):
    """Protocol for conflict detection strategies."""

    def detect(
        self,
        row: dict,
        row_number: int,
        context: DetectionContext,
    ) -> list[DuplicateConflict]:
        """Detect conflicts for a single incoming row.

        Args:
            row: Decoded incoming row.
            row_number: 1-based row number.
            context: Detection context.

        Returns:
            List of detected conflicts (empty if none).
        """
        ...


def national_id_of(row: dict[str, Any]) -> str | None:
    """Get the normalized national ID of a decoded row.

    Args:
        row: Decoded row.

    Returns:
        str | None: Trimmed national ID or None when absent.
    """
    value = row.get(NATIONAL_ID_FIELD)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


class NationalIdDetector:
    """Matches an incoming row to a stored customer with the same national ID.

    Every row is checked on its own: two incoming rows with the same ID
    yield two conflicts against the same stored customer.
    """

    def detect(
        self,
        row: dict,
        row_number: int,
        context: DetectionContext,
    ) -> list[DuplicateConflict]:
        """Detect a stored customer sharing the row's national ID."""
        national_id = national_id_of(row)
        if national_id is None:
            return []

        existing = context.existing_by_national_id.get(national_id)
        if existing is None:
            return []

        return [
            DuplicateConflict(
                row=row_number,
                tc_kimlik_no=national_id,
                existing=customer_to_record(existing),
                incoming=row,
            )
        ]


class CompositeDetector:
    """Runs all registered detectors and combines their conflicts."""

    def __init__(self, detectors: list[ConflictDetector]):
        """Initialize with list of detectors.

        Args:
            detectors: List of detector instances to run.
        """
        self.detectors = detectors

    def detect(
        self,
        row: dict,
        row_number: int,
        context: DetectionContext,
    ) -> list[DuplicateConflict]:
        """Run all detectors on one row."""
        all_conflicts = []
        for detector in self.detectors:
            all_conflicts.extend(detector.detect(row, row_number, context))
        return all_conflicts

    def detect_all(
        self,
        rows: list[dict],
        context: DetectionContext,
    ) -> DuplicateCheckResult:
        """Detect conflicts in all rows.

        Args:
            rows: Decoded incoming rows.
            context: Detection context.

        Returns:
            DuplicateCheckResult: Conflicts plus repeated IDs inside the batch.
        """
        row_numbers = context.row_numbers or list(range(1, len(rows) + 1))
        duplicates = []
        for row, row_number in zip(rows, row_numbers):
            duplicates.extend(self.detect(row, row_number, context))

        return DuplicateCheckResult(
            has_duplicates=bool(duplicates),
            duplicates=duplicates,
            batch_duplicates=find_batch_duplicates(rows, row_numbers),
        )


def find_batch_duplicates(rows: list[dict], row_numbers: list[int]) -> dict[str, list[int]]:
    """Find national IDs that occur more than once inside the incoming rows.

    Args:
        rows: Decoded incoming rows.
        row_numbers: Row number of each row.

    Returns:
        Map of repeated national ID -> row numbers carrying it.
    """
    seen: dict[str, list[int]] = defaultdict(list)
    for row, row_number in zip(rows, row_numbers):
        national_id = national_id_of(row)
        if national_id is not None:
            seen[national_id].append(row_number)
    return {national_id: numbers for national_id, numbers in seen.items() if len(numbers) > 1}


def build_detection_context(
    rows: list[dict],
    lookup: CustomerLookup,
    row_numbers: list[int] | None = None,
) -> DetectionContext:
    """Load the stored customers a batch can collide with.

    Args:
        rows: Decoded incoming rows.
        lookup: Customer storage.
        row_numbers: Row number of each row (defaults to 1..n).

    Returns:
        DetectionContext: Context for ``detect_all``.
    """
    national_ids = {nid for nid in (national_id_of(row) for row in rows) if nid is not None}
    existing = lookup.find_by_national_ids(national_ids) if national_ids else {}
    return DetectionContext(
        existing_by_national_id=existing,
        all_rows=rows,
        row_numbers=row_numbers or list(range(1, len(rows) + 1)),
    )


def get_duplicate_detector() -> CompositeDetector:
    """Factory function to create the duplicate detector.

    Returns:
        CompositeDetector configured with the national ID detector.
    """
    detectors: list[ConflictDetector] = [NationalIdDetector()]
    return CompositeDetector(detectors)
