"""Pydantic schemas for the policy export import."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ResolutionPolicy(str, Enum):
    """How rows whose national ID already exists in storage are handled."""

    OVERWRITE_ALL = "overwrite_all"  # Replace the existing record with the incoming row
    SKIP_DUPLICATES = "skip_duplicates"  # Keep the existing record, drop the incoming row
    NONE_FOUND = "none_found"  # Caller checked first and saw no duplicates


class ExportFormat(str, Enum):
    """Delimited export families of the policy-management system."""

    SEMICOLON = "semicolon"  # Reconciliation export, header names, cp1254
    COMMA = "comma"  # Quote-aware export with a frozen column layout


class CamelModel(BaseModel):
    """Base for payloads exchanged with the dashboard frontend."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RowError(CamelModel):
    """A row that was rejected before persistence.

    Attributes:
        row: 1-based data row number.
        message: Why the row was rejected.
    """

    row: int
    message: str


class BatchError(CamelModel):
    """A persistence batch that was rolled back.

    Attributes:
        start_row: First row number in the batch.
        end_row: Last row number in the batch.
        row_count: Rows lost with the batch.
        message: Database error or timeout description.
        timed_out: Whether the batch hit the write timeout.
    """

    start_row: int
    end_row: int
    row_count: int
    message: str
    timed_out: bool = False


class DuplicateConflict(CamelModel):
    """An incoming row whose national ID matches an existing customer.

    Attributes:
        row: 1-based number of the incoming row.
        tc_kimlik_no: Shared national ID.
        existing: Stored record.
        incoming: Decoded incoming row (serialized as ``new``).
    """

    row: int
    tc_kimlik_no: str
    existing: dict[str, Any] = Field(default_factory=dict)
    incoming: dict[str, Any] = Field(default_factory=dict, alias="new")


class DuplicateCheckResult(CamelModel):
    """Outcome of a duplicate check.

    Attributes:
        has_duplicates: Whether any incoming row matched storage.
        duplicates: One conflict per matching incoming row.
        batch_duplicates: National IDs repeated inside the incoming batch,
            mapped to their row numbers. Informational only.
    """

    has_duplicates: bool = False
    duplicates: list[DuplicateConflict] = Field(default_factory=list)
    batch_duplicates: dict[str, list[int]] = Field(default_factory=dict)


class CheckDuplicatesRequest(CamelModel):
    """Rows to check, keyed by export header or field name."""

    customers: list[dict[str, Any]] = Field(default_factory=list)


class ImportRequest(CamelModel):
    """Rows to import, keyed by export header or field name.

    Attributes:
        customers: Incoming rows.
        overwrite: Replace existing customers sharing a national ID.
        sync_profiles: Rebuild customer profiles after a successful import.
    """

    customers: list[dict[str, Any]] = Field(default_factory=list)
    overwrite: bool = False
    sync_profiles: bool = False


class ImportBatchResult(CamelModel):
    """Counts and problems of one import.

    Attributes:
        total_rows: Rows in the file or request, including rejected ones.
        created: New customers inserted.
        updated: Existing customers replaced.
        skipped: Conflicting rows dropped by the resolution policy.
        duplicates: Incoming rows whose national ID already existed.
        errors: Rows that were not persisted because of an error.
        not_attempted: Rows left unprocessed after cancellation or a timeout.
        unconfirmed: Rows of a timed-out batch whose write may still complete.
        row_errors: Rows rejected while decoding.
        batch_errors: Batches rolled back.
        warnings: Non-fatal notes (repaired dates, unparseable cells).
        cancelled: Whether the import stopped on a cancellation request.
        profiles_synced: Whether customer profiles were rebuilt afterwards.
    """

    total_rows: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    duplicates: int = 0
    errors: int = 0
    not_attempted: int = 0
    unconfirmed: int = 0
    row_errors: list[RowError] = Field(default_factory=list)
    batch_errors: list[BatchError] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    cancelled: bool = False
    profiles_synced: bool = False
