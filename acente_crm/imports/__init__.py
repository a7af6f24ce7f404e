"""Imports module for policy export CSV/Excel import."""

from acente_crm.imports.exceptions import (
    BatchPersistError,
    ImportFileError,
    NoValidRowsError,
    RowDecodeError,
)
from acente_crm.imports.fields import (
    CUSTOMER_FIELDS,
    FieldSpec,
    FieldType,
    map_columns_by_index,
    map_columns_by_name,
)
from acente_crm.imports.parsers import (
    COMMA_EXPORT,
    SEMICOLON_EXPORT,
    CsvFormat,
    decode_bytes,
    decode_records,
    decode_text,
    decode_upload,
    parse_date,
    parse_decimal,
    parse_integer,
    parse_text,
)
from acente_crm.imports.schemas import (
    DuplicateCheckResult,
    DuplicateConflict,
    ExportFormat,
    ImportBatchResult,
    ResolutionPolicy,
)

__all__ = [
    "CUSTOMER_FIELDS",
    "FieldSpec",
    "FieldType",
    "map_columns_by_index",
    "map_columns_by_name",
    # Decoding
    "CsvFormat",
    "SEMICOLON_EXPORT",
    "COMMA_EXPORT",
    "decode_bytes",
    "decode_text",
    "decode_records",
    "decode_upload",
    "parse_date",
    "parse_decimal",
    "parse_integer",
    "parse_text",
    # Results
    "ExportFormat",
    "ResolutionPolicy",
    "DuplicateConflict",
    "DuplicateCheckResult",
    "ImportBatchResult",
    # Errors
    "ImportFileError",
    "NoValidRowsError",
    "RowDecodeError",
    "BatchPersistError",
]
