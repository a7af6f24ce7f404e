"""Import orchestration for policy export rows.

``ImportService.import_batch`` takes decoded rows, splits them into new and
conflicting rows with the duplicate detector, applies the resolution policy
and writes the result in fixed-size batches. Each batch is its own
transaction in a session of its own, runs in a worker thread and is bounded
by a timeout. A failed batch is rolled back and reported while later batches
continue.
"""

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.orm import Session

from acente_crm.config import Settings, get_settings
from acente_crm.customers.service import CustomerService
from acente_crm.db.database import session_factory_for
from acente_crm.db.models import Customer
from acente_crm.imports.conflict_detectors import (
    build_detection_context,
    get_duplicate_detector,
    national_id_of,
)
from acente_crm.imports.exceptions import BatchPersistError, NoValidRowsError
from acente_crm.imports.fields import ACCOUNT_FIELD, CUSTOMER_FIELDS
from acente_crm.imports.parsers import CsvFormat, SEMICOLON_EXPORT, decode_records, decode_upload
from acente_crm.imports.schemas import (
    BatchError,
    DuplicateCheckResult,
    ImportBatchResult,
    ResolutionPolicy,
)
from acente_crm.profiles.service import ProfileService

logger = logging.getLogger(__name__)

MAX_REPORTED_WARNINGS = 200


class CancellationToken:
    """Cooperative cancellation flag, checked between persistence batches.

    Safe to set from another thread or a signal handler.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        """Whether cancellation was requested."""
        return self._event.is_set()


@dataclass
class _RowOp:
    row_number: int
    row: dict[str, Any]
    existing_id: str | None = None


@dataclass
class _Batch:
    start_row: int
    end_row: int
    ops: list[_RowOp] = field(default_factory=list)
    skipped: int = 0


def policy_from_flag(overwrite: bool) -> ResolutionPolicy:
    """Map the ``overwrite`` request flag to a resolution policy.

    Args:
        overwrite: Replace existing customers.

    Returns:
        ResolutionPolicy: OVERWRITE_ALL or SKIP_DUPLICATES.
    """
    return ResolutionPolicy.OVERWRITE_ALL if overwrite else ResolutionPolicy.SKIP_DUPLICATES


def _cap_warnings(warnings: list[str]) -> list[str]:
    if len(warnings) <= MAX_REPORTED_WARNINGS:
        return warnings
    hidden = len(warnings) - MAX_REPORTED_WARNINGS
    return warnings[:MAX_REPORTED_WARNINGS] + [f"... and {hidden} more warnings"]


class ImportService:
    """Service class for customer import operations."""

    def __init__(self, db: Session, settings: Settings | None = None):
        """Initialize import service.

        Args:
            db: Database session.
            settings: Application settings (defaults to the cached settings).
        """
        self.db = db
        self.settings = settings or get_settings()
        self.customers = CustomerService(db)
        self.batch_sessions = session_factory_for(db.get_bind())
        self.detector = get_duplicate_detector()

    def check_duplicates(
        self,
        rows: list[dict],
        row_numbers: list[int] | None = None,
    ) -> DuplicateCheckResult:
        """Find stored customers sharing a national ID with incoming rows.

        Read-only; drives the confirmation step before an import.

        Args:
            rows: Decoded incoming rows.
            row_numbers: Row number of each row (defaults to 1..n).

        Returns:
            DuplicateCheckResult: Conflicts and repeated IDs within the batch.
        """
        context = build_detection_context(rows, self.customers, row_numbers)
        return self.detector.detect_all(rows, context)

    def check_raw_duplicates(self, raw_rows: list[dict]) -> DuplicateCheckResult:
        """Decode header-keyed rows, then check them for duplicates.

        Args:
            raw_rows: Rows keyed by export header or field name.

        Returns:
            DuplicateCheckResult: Conflicts for the decodable rows.
        """
        decoded = decode_records(raw_rows, self.settings.repair_zero_date_parts)
        return self.check_duplicates(decoded.records, decoded.row_numbers)

    def _plan_batches(
        self,
        rows: list[dict],
        row_numbers: list[int],
        policy: ResolutionPolicy,
        check: DuplicateCheckResult,
        existing_by_national_id: dict[str, Customer],
    ) -> list[_Batch]:
        conflicting_rows = {conflict.row for conflict in check.duplicates}
        size = self.settings.import_batch_size
        batches = []

        for start in range(0, len(rows), size):
            chunk_rows = rows[start : start + size]
            chunk_numbers = row_numbers[start : start + size]
            batch = _Batch(start_row=chunk_numbers[0], end_row=chunk_numbers[-1])

            for row, row_number in zip(chunk_rows, chunk_numbers):
                if row_number not in conflicting_rows:
                    batch.ops.append(_RowOp(row_number, row))
                elif policy == ResolutionPolicy.OVERWRITE_ALL:
                    existing = existing_by_national_id[national_id_of(row)]
                    batch.ops.append(_RowOp(row_number, row, existing.id))
                else:
                    if policy == ResolutionPolicy.NONE_FOUND:
                        logger.warning(
                            f"Row {row_number} matches an existing customer although "
                            f"no duplicates were expected, skipping"
                        )
                    batch.skipped += 1

            batches.append(batch)

        return batches

    def _apply_batch(self, session: Session, batch: _Batch) -> tuple[int, int, set[str]]:
        """Stage inserts and whole-record replacements for one batch."""
        created = updated = 0
        accounts: set[str] = set()

        for op in batch.ops:
            values = {spec.target: op.row.get(spec.target) for spec in CUSTOMER_FIELDS}
            existing = session.get(Customer, op.existing_id) if op.existing_id else None
            if existing is None:
                session.add(Customer(**values))
                created += 1
            else:
                if existing.hesap_kodu:
                    accounts.add(existing.hesap_kodu)
                for name, value in values.items():
                    setattr(existing, name, value)
                updated += 1
            if values[ACCOUNT_FIELD]:
                accounts.add(values[ACCOUNT_FIELD])

        session.flush()
        return created, updated, accounts

    def _persist_batch(self, batch: _Batch) -> tuple[int, int, set[str]]:
        """Write one batch in its own session and transaction.

        Any failure, including values the driver cannot bind, rolls the
        batch back.

        Raises:
            BatchPersistError: If the batch was rolled back.
        """
        with self.batch_sessions() as session:
            try:
                counts = self._apply_batch(session, batch)
                session.commit()
            except Exception as e:
                session.rollback()
                raise BatchPersistError(batch.start_row, batch.end_row, str(e)) from e
        return counts

    async def import_batch(
        self,
        rows: list[dict],
        policy: ResolutionPolicy,
        *,
        row_numbers: list[int] | None = None,
        cancel_token: CancellationToken | None = None,
        sync_profiles: bool = False,
    ) -> ImportBatchResult:
        """Import decoded rows under a resolution policy.

        New rows are inserted. Rows whose national ID already exists replace
        the stored record (every field, absent values included) under
        OVERWRITE_ALL and are dropped otherwise. A failing batch is rolled
        back and reported with its row range; later batches still run. A
        timed-out batch stops the import. Its worker may still commit, so its
        rows are counted as unconfirmed rather than as errors.

        Args:
            rows: Decoded rows.
            policy: Resolution policy for conflicting rows.
            row_numbers: Row number of each row (defaults to 1..n).
            cancel_token: Checked before every batch.
            sync_profiles: Rebuild the profiles of touched accounts afterwards.

        Returns:
            ImportBatchResult: Counts and problems.
        """
        row_numbers = row_numbers or list(range(1, len(rows) + 1))
        result = ImportBatchResult(total_rows=len(rows))
        if not rows:
            return result

        logger.info(f"Importing {len(rows)} rows with policy {policy.value}")

        context = await asyncio.to_thread(
            build_detection_context, rows, self.customers, row_numbers
        )
        check = self.detector.detect_all(rows, context)
        result.duplicates = len(check.duplicates)
        if check.batch_duplicates:
            result.warnings.append(
                f"{len(check.batch_duplicates)} national IDs occur more than once in the file"
            )

        batches = self._plan_batches(
            rows, row_numbers, policy, check, context.existing_by_national_id
        )
        timeout = self.settings.import_batch_timeout_seconds
        touched_accounts: set[str] = set()

        for index, batch in enumerate(batches):
            if cancel_token is not None and cancel_token.is_cancelled:
                remaining = batches[index:]
                result.cancelled = True
                result.not_attempted = sum(len(b.ops) + b.skipped for b in remaining)
                logger.warning(
                    f"Import cancelled before rows {batch.start_row}-{batch.end_row}, "
                    f"{result.not_attempted} rows not attempted"
                )
                break

            result.skipped += batch.skipped
            try:
                created, updated, accounts = await asyncio.wait_for(
                    asyncio.to_thread(self._persist_batch, batch), timeout=timeout
                )
            except BatchPersistError as e:
                logger.error(f"Batch failed, rows {e.start_row}-{e.end_row}: {e.reason}")
                result.errors += len(batch.ops)
                result.batch_errors.append(
                    BatchError(
                        start_row=e.start_row,
                        end_row=e.end_row,
                        row_count=len(batch.ops),
                        message=e.reason,
                    )
                )
                continue
            except asyncio.TimeoutError:
                remaining = batches[index + 1 :]
                logger.error(
                    f"Batch rows {batch.start_row}-{batch.end_row} timed out after "
                    f"{timeout}s, aborting remaining batches"
                )
                result.unconfirmed += len(batch.ops)
                result.batch_errors.append(
                    BatchError(
                        start_row=batch.start_row,
                        end_row=batch.end_row,
                        row_count=len(batch.ops),
                        message=f"Write timed out after {timeout}s, outcome unknown",
                        timed_out=True,
                    )
                )
                result.not_attempted = sum(len(b.ops) + b.skipped for b in remaining)
                break

            result.created += created
            result.updated += updated
            touched_accounts |= accounts

        if sync_profiles and touched_accounts:
            # Batches committed through their own sessions
            self.db.expire_all()
            await asyncio.to_thread(ProfileService(self.db).sync, touched_accounts)
            result.profiles_synced = True

        logger.info(
            f"Import finished: {result.created} created, {result.updated} updated, "
            f"{result.skipped} skipped, {result.duplicates} duplicates, "
            f"{result.errors} errors, {result.unconfirmed} unconfirmed"
        )
        return result

    async def import_file(
        self,
        filename: str,
        data: bytes,
        policy: ResolutionPolicy,
        *,
        fmt: CsvFormat = SEMICOLON_EXPORT,
        cancel_token: CancellationToken | None = None,
        clear_existing: bool = False,
        sync_profiles: bool = False,
    ) -> ImportBatchResult:
        """Decode an export file and import its rows.

        Args:
            filename: Original file name (selects CSV or Excel decoding).
            data: File content.
            policy: Resolution policy for conflicting rows.
            fmt: Layout for delimited files.
            cancel_token: Checked before every batch.
            clear_existing: Delete every stored customer first.
            sync_profiles: Rebuild the profiles of touched accounts afterwards.

        Returns:
            ImportBatchResult: Counts and problems, decode rejections included.

        Raises:
            ImportFileError: If the file cannot be decoded at all.
            NoValidRowsError: If every data row was rejected.
        """
        fmt = fmt.model_copy(update={"encoding": self.settings.legacy_encoding})
        decoded = await asyncio.to_thread(
            decode_upload, filename, data, fmt, self.settings.repair_zero_date_parts
        )
        if not decoded.records:
            raise NoValidRowsError(decoded.total_rows, decoded.errors)
        if decoded.unmapped_columns:
            logger.info(f"Ignoring unmapped columns: {', '.join(decoded.unmapped_columns)}")

        if clear_existing:
            deleted = await asyncio.to_thread(self.customers.delete_all)
            logger.warning(f"Cleared {deleted} existing customers before import")

        result = await self.import_batch(
            decoded.records,
            policy,
            row_numbers=decoded.row_numbers,
            cancel_token=cancel_token,
            sync_profiles=sync_profiles,
        )
        result.total_rows = decoded.total_rows
        result.row_errors = decoded.errors + result.row_errors
        result.errors += len(decoded.errors)
        result.warnings = _cap_warnings(decoded.warnings + result.warnings)
        return result


def get_import_service(db: Session, settings: Settings | None = None) -> ImportService:
    """Factory function for ImportService.

    Args:
        db: Database session.
        settings: Application settings.

    Returns:
        ImportService: Import service instance.
    """
    return ImportService(db, settings)
