"""Command-line interface for imports and data maintenance."""

import asyncio
import logging
import signal
import sys
from pathlib import Path

import click

from acente_crm import __version__
from acente_crm.config import get_settings
from acente_crm.db.database import SessionLocal, init_db
from acente_crm.imports.exceptions import ImportFileError, NoValidRowsError
from acente_crm.imports.parsers import EXPORT_FORMATS, read_file_bytes
from acente_crm.imports.schemas import ExportFormat
from acente_crm.imports.service import CancellationToken, ImportService, policy_from_flag
from acente_crm.maintenance.premium_correction import CorrectionThresholds, PremiumCorrector
from acente_crm.profiles.service import ProfileService


def setup_logging(level: str) -> None:
    """Set up logging configuration.

    Args:
        level: Log level string.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )


@click.group()
@click.version_option(version=__version__)
@click.option("--log-level", default="INFO", help="Logging level (DEBUG, INFO, WARNING, ERROR)")
def main(log_level: str):
    """acente-crm - policy export import and maintenance.

    Imports agency policy exports into the CRM database, rebuilds
    customer profiles and repairs premiums damaged by older imports.
    """
    setup_logging(log_level)
    init_db()


@main.command("import-file")
@click.argument("path", type=click.Path(path_type=Path))
@click.option(
    "--format",
    "export_format",
    type=click.Choice([f.value for f in ExportFormat]),
    default=ExportFormat.SEMICOLON.value,
    help="Export layout of delimited files (ignored for .xlsx)",
)
@click.option("--overwrite", is_flag=True, help="Replace customers whose national ID already exists")
@click.option("--clear-existing", is_flag=True, help="Delete every stored customer first")
@click.option("--batch-size", type=click.IntRange(1, 1000), help="Rows per transaction")
@click.option("--sync-profiles", is_flag=True, help="Rebuild profiles of touched accounts")
def import_file(
    path: Path,
    export_format: str,
    overwrite: bool,
    clear_existing: bool,
    batch_size: int | None,
    sync_profiles: bool,
):
    """Import a policy export file.

    Press Ctrl+C to stop after the batch currently being written;
    committed batches are kept.
    """
    try:
        data = read_file_bytes(path)
    except ImportFileError as e:
        click.echo(f"Error: {e}")
        sys.exit(1)

    settings = get_settings()
    if batch_size:
        settings = settings.model_copy(update={"import_batch_size": batch_size})

    token = CancellationToken()

    def _on_interrupt(signum, frame):
        click.echo("\nCancelling after the current batch...")
        token.cancel()

    previous_handler = signal.signal(signal.SIGINT, _on_interrupt)
    db = SessionLocal()
    try:
        service = ImportService(db, settings)
        result = asyncio.run(
            service.import_file(
                path.name,
                data,
                policy_from_flag(overwrite),
                fmt=EXPORT_FORMATS[ExportFormat(export_format)],
                cancel_token=token,
                clear_existing=clear_existing,
                sync_profiles=sync_profiles,
            )
        )
    except NoValidRowsError as e:
        click.echo(f"Error: {e}")
        for err in e.row_errors[:20]:
            click.echo(f"  Row {err.row}: {err.message}")
        sys.exit(1)
    except ImportFileError as e:
        click.echo(f"Error: {e}")
        sys.exit(1)
    finally:
        db.close()
        signal.signal(signal.SIGINT, previous_handler)

    click.echo(f"\nRows:       {result.total_rows}")
    click.echo(f"Created:    {result.created}")
    click.echo(f"Updated:    {result.updated}")
    click.echo(f"Skipped:    {result.skipped}")
    click.echo(f"Duplicates: {result.duplicates}")
    click.echo(f"Errors:     {result.errors}")
    if result.not_attempted:
        click.echo(f"Not attempted: {result.not_attempted}")
    if result.unconfirmed:
        click.echo(f"Unconfirmed: {result.unconfirmed}")

    for err in result.row_errors[:20]:
        click.echo(f"  Row {err.row}: {err.message}")
    for batch in result.batch_errors:
        click.echo(f"  Rows {batch.start_row}-{batch.end_row}: {batch.message}")

    if result.cancelled:
        click.echo("\nImport cancelled")
        sys.exit(130)
    if result.batch_errors:
        sys.exit(1)


@main.command("sync-profiles")
def sync_profiles():
    """Rebuild every customer profile from stored policies."""
    db = SessionLocal()
    try:
        result = ProfileService(db).sync()
    finally:
        db.close()

    click.echo(result.message)
    if result.deleted:
        click.echo(f"{result.deleted} orphaned profiles removed")


@main.command("fix-premiums")
@click.option("--apply", "apply_changes", is_flag=True, help="Write corrections (default: dry run)")
@click.option("--ratio", type=float, help="Gross/net ratio above which a premium is suspicious")
@click.option(
    "--absolute",
    type=float,
    help="Gross premium reported when no net premium is stored",
)
@click.option(
    "--audit-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the full change report as JSON",
)
def fix_premiums(
    apply_changes: bool,
    ratio: float | None,
    absolute: float | None,
    audit_file: Path | None,
):
    """Find and repair gross premiums stored ten times too large.

    Runs as a dry run unless --apply is given. Every change is logged with
    its old and new value.
    """
    settings = get_settings()
    update = {}
    if ratio is not None:
        update["correction_ratio_threshold"] = ratio
    if absolute is not None:
        update["correction_absolute_threshold"] = absolute
    if update:
        settings = settings.model_copy(update=update)

    db = SessionLocal()
    try:
        corrector = PremiumCorrector(db, CorrectionThresholds.from_settings(settings))
        report = corrector.run(dry_run=not apply_changes)
    finally:
        db.close()

    mode = "Applied" if apply_changes else "Dry run"
    click.echo(f"\n=== Premium correction ({mode}) ===\n")
    click.echo(f"Scanned:    {report.scanned}")
    click.echo(f"Suspicious: {report.suspicious}")
    click.echo(f"Corrected:  {report.corrected}")
    click.echo(f"Skipped:    {report.skipped}")

    for change in report.changes:
        click.echo(
            f"  {change.police_numarasi or change.customer_id} {change.column}: "
            f"{change.old_value} -> {change.new_value}"
        )

    if audit_file:
        audit_file.write_text(report.model_dump_json(indent=2), encoding="utf-8")
        click.echo(f"\nReport written to {audit_file}")

    if not apply_changes and report.corrected:
        click.echo("\nRun with --apply to write these corrections.")


if __name__ == "__main__":
    main()
