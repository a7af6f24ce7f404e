"""Customer import API routes."""

import asyncio
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from acente_crm.dependencies import AppSettings, get_db
from acente_crm.imports.exceptions import ImportFileError, NoValidRowsError
from acente_crm.imports.parsers import EXPORT_FORMATS, decode_records
from acente_crm.imports.schemas import (
    CheckDuplicatesRequest,
    DuplicateCheckResult,
    ExportFormat,
    ImportBatchResult,
    ImportRequest,
)
from acente_crm.imports.service import ImportService, get_import_service, policy_from_flag

logger = logging.getLogger(__name__)

router = APIRouter()


def get_service(
    db: Annotated[Session, Depends(get_db)],
    settings: AppSettings,
) -> ImportService:
    """Get import service dependency."""
    return get_import_service(db, settings)


async def _read_upload(file: UploadFile, settings: AppSettings) -> bytes:
    """Read an uploaded file, enforcing the size limit.

    Raises:
        HTTPException: If the file is larger than allowed.
    """
    data = await file.read()
    limit = settings.import_max_upload_mb * 1024 * 1024
    if len(data) > limit:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds {settings.import_max_upload_mb} MB",
        )
    return data


async def _import_upload(
    service: ImportService,
    file: UploadFile,
    data: bytes,
    overwrite: bool,
    export_format: ExportFormat,
    clear_existing: bool = False,
    sync_profiles: bool = False,
) -> ImportBatchResult:
    """Run a file import and translate file-level errors to HTTP 400.

    Raises:
        HTTPException: If the file cannot be imported at all.
    """
    try:
        return await service.import_file(
            file.filename or "",
            data,
            policy_from_flag(overwrite),
            fmt=EXPORT_FORMATS[export_format],
            clear_existing=clear_existing,
            sync_profiles=sync_profiles,
        )
    except NoValidRowsError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": str(e),
                "totalRows": e.total_rows,
                "errors": [err.model_dump(by_alias=True) for err in e.row_errors[:20]],
            },
        ) from e
    except ImportFileError as e:
        logger.warning(f"Rejected upload {file.filename!r}: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e


@router.post("/check-duplicates", response_model=DuplicateCheckResult)
async def check_duplicates(
    data: CheckDuplicatesRequest,
    service: Annotated[ImportService, Depends(get_service)],
):
    """Report incoming rows whose national ID already exists.

    Args:
        data: Rows keyed by export header or field name.
        service: Import service.

    Returns:
        DuplicateCheckResult: ``hasDuplicates`` and the conflict pairs.
    """
    return await asyncio.to_thread(service.check_raw_duplicates, data.customers)


@router.post("/import", response_model=ImportBatchResult)
async def import_customers(
    data: ImportRequest,
    service: Annotated[ImportService, Depends(get_service)],
):
    """Import rows sent as JSON.

    Args:
        data: Rows plus the overwrite flag.
        service: Import service.

    Returns:
        ImportBatchResult: Counts and problems.

    Raises:
        HTTPException: If the request carries no rows.
    """
    if not data.customers:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No customers in request",
        )

    decoded = await asyncio.to_thread(
        decode_records, data.customers, service.settings.repair_zero_date_parts
    )
    result = await service.import_batch(
        decoded.records,
        policy_from_flag(data.overwrite),
        row_numbers=decoded.row_numbers,
        sync_profiles=data.sync_profiles,
    )
    result.total_rows = decoded.total_rows
    result.row_errors = decoded.errors + result.row_errors
    result.errors += len(decoded.errors)
    result.warnings = decoded.warnings + result.warnings
    return result


@router.post("/import-excel", response_model=ImportBatchResult)
async def import_excel(
    file: Annotated[UploadFile, File(description="Excel workbook (.xlsx)")],
    service: Annotated[ImportService, Depends(get_service)],
    settings: AppSettings,
    overwrite: bool = Form(False),
    clear_existing: bool = Form(False, alias="clearExisting"),
    sync_profiles: bool = Form(False, alias="syncProfiles"),
):
    """Import a spreadsheet export.

    Args:
        file: Uploaded workbook.
        service: Import service.
        settings: Application settings.
        overwrite: Replace existing customers sharing a national ID.
        clear_existing: Delete every stored customer first.
        sync_profiles: Rebuild profiles of touched accounts afterwards.

    Returns:
        ImportBatchResult: Counts and problems.

    Raises:
        HTTPException: If the file is not a workbook or has no valid rows.
    """
    filename = (file.filename or "").lower()
    if not filename.endswith((".xlsx", ".xlsm")):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Unsupported file format. Use Excel (.xlsx)",
        )

    data = await _read_upload(file, settings)
    return await _import_upload(
        service,
        file,
        data,
        overwrite,
        ExportFormat.SEMICOLON,
        clear_existing=clear_existing,
        sync_profiles=sync_profiles,
    )


@router.post("/import-csv", response_model=ImportBatchResult)
async def import_csv(
    file: Annotated[UploadFile, File(description="Delimited export (.csv)")],
    service: Annotated[ImportService, Depends(get_service)],
    settings: AppSettings,
    overwrite: bool = Form(False),
    export_format: ExportFormat = Form(ExportFormat.SEMICOLON, alias="format"),
    sync_profiles: bool = Form(False, alias="syncProfiles"),
):
    """Import a semicolon- or comma-delimited export.

    Args:
        file: Uploaded export.
        service: Import service.
        settings: Application settings.
        overwrite: Replace existing customers sharing a national ID.
        export_format: Export family of the file.
        sync_profiles: Rebuild profiles of touched accounts afterwards.

    Returns:
        ImportBatchResult: Counts and problems.

    Raises:
        HTTPException: If the file cannot be decoded or has no valid rows.
    """
    data = await _read_upload(file, settings)
    return await _import_upload(
        service,
        file,
        data,
        overwrite,
        export_format,
        sync_profiles=sync_profiles,
    )
