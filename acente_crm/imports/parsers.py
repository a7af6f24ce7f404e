"""Decoding of policy export files into customer records.

The export comes in two delimited families and as a spreadsheet:

- semicolon-delimited, Windows Turkish code page, columns matched by header
- comma-delimited with quoting, columns matched by a frozen position layout
- ``.xlsx`` workbooks, columns matched by header, cells read by pandas

Every path ends in ``decode_row``, which applies the value parsers below to
the mapped cells. Unparseable or blank cells become ``None``.
"""

import codecs
import csv
import io
import logging
import numbers
import re
from collections.abc import Iterator
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, BinaryIO

import pandas as pd
from pydantic import BaseModel, Field

from acente_crm.imports.exceptions import ImportFileError, RowDecodeError
from acente_crm.imports.fields import (
    NATIONAL_ID_FIELD,
    TAX_ID_FIELD,
    FieldSpec,
    FieldType,
    map_columns_by_index,
    map_columns_by_name,
)
from acente_crm.imports.schemas import ExportFormat, RowError

logger = logging.getLogger(__name__)


# --- Encoding ---

LEGACY_ENCODING = "cp1254"
_PASSTHROUGH_ERRORS = "legacy-passthrough"


def _passthrough_undecodable(error: UnicodeDecodeError) -> tuple[str, int]:
    """Map bytes the code page leaves undefined to the same code point."""
    chunk = error.object[error.start : error.end]
    return "".join(chr(b) for b in chunk), error.end


codecs.register_error(_PASSTHROUGH_ERRORS, _passthrough_undecodable)


def decode_bytes(data: bytes, encoding: str = LEGACY_ENCODING) -> str:
    """Decode an export file into text.

    Files re-saved by spreadsheet tools carry a UTF-8 byte order mark and
    are decoded as UTF-8; everything else is read with the legacy code
    page. Bytes the code page does not define are kept as the code point of
    the same value.

    Args:
        data: Raw file content.
        encoding: Legacy code page of the export.

    Returns:
        str: Decoded text.
    """
    if data.startswith(codecs.BOM_UTF8):
        try:
            return data[len(codecs.BOM_UTF8) :].decode("utf-8")
        except UnicodeDecodeError:
            logger.warning("File has a UTF-8 BOM but is not UTF-8, using legacy code page")
    return data.decode(encoding, errors=_PASSTHROUGH_ERRORS)


def read_file_bytes(path: str | Path) -> bytes:
    """Read an export file from disk.

    Args:
        path: File path.

    Returns:
        bytes: File content.

    Raises:
        ImportFileError: If the file cannot be read.
    """
    try:
        return Path(path).read_bytes()
    except OSError as e:
        raise ImportFileError(f"Cannot read {path}: {e}") from e


# --- Value parsers ---

_DMY_PATTERN = re.compile(r"^(\d{1,2})[-./](\d{1,2})[-./](\d{2}|\d{4})$")
_ISO_PATTERN = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})(?:[ T].*)?$")
_INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")
_DECIMAL_PATTERN = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)$")

# Two-digit years from this value upward belong to the 1900s
CENTURY_PIVOT = 51
# Integer columns are stored as signed 64-bit values
INTEGER_MIN = -(2**63)
INTEGER_MAX = 2**63 - 1
DECIMAL_ABSENT_SENTINEL = ".00"


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and value != value:
        return True
    return isinstance(value, str) and not value.strip()


def parse_text(value: Any) -> str | None:
    """Parse a text cell.

    Args:
        value: Raw cell.

    Returns:
        str | None: Trimmed text, or None for blank cells.
    """
    if _is_missing(value):
        return None
    if isinstance(value, float) and value.is_integer():
        # Spreadsheets store ID and phone columns as numbers
        return str(int(value))
    text = str(value).strip()
    return text or None


def _split_date(text: str) -> tuple[int, int, int] | None:
    match = _DMY_PATTERN.match(text)
    if match:
        day, month, year = (int(part) for part in match.groups())
        if len(match.group(3)) == 2:
            year += 1900 if year >= CENTURY_PIVOT else 2000
        return year, month, day
    match = _ISO_PATTERN.match(text)
    if match:
        year, month, day = (int(part) for part in match.groups())
        return year, month, day
    return None


def has_zero_date_part(value: Any) -> bool:
    """Check whether a date cell carries a "00" day or month.

    Args:
        value: Raw cell.

    Returns:
        bool: True for cells like "00-05-24".
    """
    if not isinstance(value, str):
        return False
    parts = _split_date(value.strip())
    return parts is not None and (parts[1] == 0 or parts[2] == 0)


def parse_date(value: Any, repair_zero_parts: bool = True) -> date | None:
    """Parse a date cell.

    Accepts ``DD-MM-YY`` and ``DD-MM-YYYY`` (also with "." or "/"), ISO
    ``YYYY-MM-DD``, and native date values from spreadsheets. Two-digit
    years of 51 and above map to 19YY, the rest to 20YY; this is a sliding
    window, not a real epoch rule.

    Args:
        value: Raw cell.
        repair_zero_parts: Turn a "00" day or month into "01". When False
            such dates are dropped.

    Returns:
        date | None: Parsed date, or None for blank or impossible dates.
    """
    if _is_missing(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    parts = _split_date(str(value).strip())
    if parts is None:
        logger.debug(f"Unrecognized date value: {value!r}")
        return None

    year, month, day = parts
    if month == 0 or day == 0:
        if not repair_zero_parts:
            return None
        month = month or 1
        day = day or 1

    try:
        return date(year, month, day)
    except ValueError:
        logger.debug(f"Impossible calendar date: {value!r}")
        return None


def parse_decimal(value: Any) -> Decimal | None:
    """Parse a Turkish-formatted amount.

    Text cells use "." for thousands and "," for decimals: every "." is
    removed, then "," becomes the decimal point. The literal ".00" is a
    placeholder for a missing amount in one export variant. Native numbers
    from spreadsheets are taken as they are; rendering them to text first
    and applying the Turkish rule turns 9394.4 into 93944.

    Args:
        value: Raw cell.

    Returns:
        Decimal | None: Parsed amount, or None for blank or invalid cells.
    """
    if _is_missing(value) or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, numbers.Integral):
        return Decimal(int(value))
    if isinstance(value, numbers.Real):
        number = float(value)
        if number != number or number in (float("inf"), float("-inf")):
            return None
        return Decimal(repr(number))

    text = str(value).strip().replace(" ", "")
    if text == DECIMAL_ABSENT_SENTINEL:
        return None

    cleaned = text.replace(".", "").replace(",", ".")
    if not _DECIMAL_PATTERN.match(cleaned):
        logger.debug(f"Unrecognized decimal value: {value!r}")
        return None
    try:
        return Decimal(cleaned)
    except InvalidOperation:
        return None


def parse_integer(value: Any) -> int | None:
    """Parse a base-10 integer cell.

    Args:
        value: Raw cell.

    Returns:
        int | None: Parsed integer, or None for blank, non-numeric or
            out-of-range cells.
    """
    if _is_missing(value) or isinstance(value, bool):
        return None
    if isinstance(value, numbers.Integral):
        number = int(value)
    elif isinstance(value, (numbers.Real, Decimal)):
        if not float(value).is_integer():
            return None
        number = int(value)
    else:
        text = str(value).strip()
        if not _INTEGER_PATTERN.match(text):
            return None
        number = int(text)

    if not INTEGER_MIN <= number <= INTEGER_MAX:
        logger.debug(f"Integer out of range: {value!r}")
        return None
    return number


def parse_value(value: Any, value_type: FieldType, repair_zero_parts: bool = True) -> Any:
    """Parse a cell with the parser of its column type.

    Args:
        value: Raw cell.
        value_type: Column type.
        repair_zero_parts: Passed to the date parser.

    Returns:
        Parsed value or None.
    """
    if value_type == FieldType.DATE:
        return parse_date(value, repair_zero_parts=repair_zero_parts)
    if value_type == FieldType.DECIMAL:
        return parse_decimal(value)
    if value_type == FieldType.INTEGER:
        return parse_integer(value)
    return parse_text(value)


# --- Row decoding ---


class CsvFormat(BaseModel):
    """Layout of one delimited export family.

    Attributes:
        name: Export family.
        delimiter: Cell separator.
        quote_aware: Whether cells may be quoted to contain the delimiter.
        match_by_index: Map cells by fixed position instead of header name.
        min_columns: Rows with fewer cells are rejected.
        encoding: Legacy code page of the file.
    """

    name: ExportFormat
    delimiter: str = Field(..., min_length=1, max_length=1)
    quote_aware: bool = False
    match_by_index: bool = False
    min_columns: int = 1
    encoding: str = LEGACY_ENCODING


SEMICOLON_EXPORT = CsvFormat(
    name=ExportFormat.SEMICOLON,
    delimiter=";",
    quote_aware=False,
    match_by_index=False,
    min_columns=10,
)

COMMA_EXPORT = CsvFormat(
    name=ExportFormat.COMMA,
    delimiter=",",
    quote_aware=True,
    match_by_index=True,
    min_columns=100,
)

EXPORT_FORMATS: dict[ExportFormat, CsvFormat] = {
    ExportFormat.SEMICOLON: SEMICOLON_EXPORT,
    ExportFormat.COMMA: COMMA_EXPORT,
}


class DecodedRow(BaseModel):
    """A successfully decoded export row.

    Attributes:
        row_number: 1-based data row number.
        record: Target field -> parsed value (None when absent).
        warnings: Non-fatal notes about individual cells.
    """

    row_number: int
    record: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)


class DecodeResult(BaseModel):
    """Result of decoding a whole file or request body."""

    records: list[dict[str, Any]] = Field(default_factory=list)
    row_numbers: list[int] = Field(default_factory=list)
    errors: list[RowError] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    total_rows: int = 0
    unmapped_columns: list[str] = Field(default_factory=list)


def _reader_options(fmt: CsvFormat) -> dict[str, Any]:
    if fmt.quote_aware:
        return {"delimiter": fmt.delimiter, "quotechar": '"', "quoting": csv.QUOTE_MINIMAL}
    return {"delimiter": fmt.delimiter, "quoting": csv.QUOTE_NONE}


def split_line(line: str, fmt: CsvFormat) -> list[str]:
    """Split one export line into trimmed cells.

    Args:
        line: Line without its terminator.
        fmt: Export layout.

    Returns:
        list[str]: Cells.
    """
    reader = csv.reader([line], **_reader_options(fmt))
    return [cell.strip() for cell in next(reader, [])]


def decode_row(
    cells: list[Any],
    column_map: dict[int, FieldSpec],
    row_number: int,
    min_columns: int = 1,
    repair_zero_parts: bool = True,
) -> DecodedRow:
    """Decode the cells of one row into a record.

    Rows shorter than ``min_columns`` are rejected outright rather than
    partially decoded. When the layout carries identity columns, a row
    needs a national ID or a tax ID.

    Args:
        cells: Raw cells in header order.
        column_map: Position -> FieldSpec mapping.
        row_number: 1-based data row number.
        min_columns: Minimum number of cells.
        repair_zero_parts: Passed to the date parser.

    Returns:
        DecodedRow: Parsed record and cell warnings.

    Raises:
        RowDecodeError: If the row is too short or has no identity.
    """
    if len(cells) < min_columns:
        raise RowDecodeError(
            row_number, f"expected at least {min_columns} columns, got {len(cells)}"
        )

    record: dict[str, Any] = {}
    warnings: list[str] = []

    for position, spec in column_map.items():
        raw = cells[position] if position < len(cells) else None
        value = parse_value(raw, spec.value_type, repair_zero_parts=repair_zero_parts)
        record[spec.target] = value

        if spec.value_type == FieldType.DATE and has_zero_date_part(raw):
            action = "repaired to 01" if value is not None else "dropped"
            warnings.append(f"Row {row_number}: {spec.headers[0]} '{raw}' has a 00 part, {action}")
        elif (
            value is None
            and not _is_missing(raw)
            and spec.value_type != FieldType.TEXT
            and raw != DECIMAL_ABSENT_SENTINEL
        ):
            warnings.append(f"Row {row_number}: {spec.headers[0]} '{raw}' could not be parsed")

    identity_fields = {NATIONAL_ID_FIELD, TAX_ID_FIELD} & record.keys()
    if identity_fields and all(record[name] is None for name in identity_fields):
        raise RowDecodeError(row_number, "missing national ID and tax ID")

    return DecodedRow(row_number=row_number, record=record, warnings=warnings)


def _collect(
    result: DecodeResult,
    cells: list[Any],
    column_map: dict[int, FieldSpec],
    row_number: int,
    min_columns: int,
    repair_zero_parts: bool,
) -> None:
    result.total_rows += 1
    try:
        decoded = decode_row(cells, column_map, row_number, min_columns, repair_zero_parts)
    except RowDecodeError as e:
        result.errors.append(RowError(row=e.row_number, message=e.reason))
        return
    result.records.append(decoded.record)
    result.row_numbers.append(decoded.row_number)
    result.warnings.extend(decoded.warnings)


def _split_lines(text: str, fmt: CsvFormat) -> Iterator[tuple[int, list[str] | csv.Error]]:
    """Yield (line_number, cells or csv.Error) for each non-blank line.

    Lines are split one at a time so a stray quote or an oversized cell
    only affects its own line.
    """
    for line_number, line in enumerate(io.StringIO(text, newline=None), start=1):
        line = line.rstrip("\n")
        if not line.strip():
            continue
        try:
            cells = split_line(line, fmt)
        except csv.Error as e:
            yield line_number, e
            continue
        if any(cells):
            yield line_number, cells


def decode_text(text: str, fmt: CsvFormat, repair_zero_parts: bool = True) -> DecodeResult:
    """Decode a delimited export.

    Each physical line is one row. A line the CSV reader cannot split is
    rejected as a row error and decoding continues with the next line.

    Args:
        text: Decoded file content.
        fmt: Export layout.
        repair_zero_parts: Passed to the date parser.

    Returns:
        DecodeResult: Records, rejected rows and warnings.

    Raises:
        ImportFileError: If the file is empty, has no data rows, or its
            header does not match the layout.
    """
    lines = _split_lines(text.lstrip("\ufeff"), fmt)
    first = next(lines, None)
    if first is None:
        raise ImportFileError("File is empty")
    _, header = first
    if isinstance(header, csv.Error):
        raise ImportFileError(f"Malformed header row: {header}")

    unmapped: list[str] = []
    if fmt.match_by_index:
        column_map = map_columns_by_index(header)
    else:
        column_map, unmapped = map_columns_by_name(header)
        if not column_map:
            raise ImportFileError("No recognized columns in header row")

    result = DecodeResult(unmapped_columns=unmapped)
    for row_number, (_, cells) in enumerate(lines, start=1):
        if isinstance(cells, csv.Error):
            result.total_rows += 1
            result.errors.append(RowError(row=row_number, message=f"malformed line: {cells}"))
            continue
        _collect(result, cells, column_map, row_number, fmt.min_columns, repair_zero_parts)

    if not result.total_rows:
        raise ImportFileError("No data rows in file")

    logger.info(
        f"Decoded {fmt.name.value} export: {len(result.records)} records, "
        f"{len(result.errors)} rejected rows"
    )
    return result


def decode_records(
    raw_rows: list[dict[str, Any]],
    repair_zero_parts: bool = True,
) -> DecodeResult:
    """Decode header-keyed rows (spreadsheet rows or JSON request rows).

    Keys may be export headers ("TC Kimlik No") or field names
    ("tc_kimlik_no"). Rows sharing the same keys share one column mapping.

    Args:
        raw_rows: Header -> raw value dictionaries.
        repair_zero_parts: Passed to the date parser.

    Returns:
        DecodeResult: Records, rejected rows and warnings.
    """
    result = DecodeResult()
    mappings: dict[tuple[str, ...], dict[int, FieldSpec]] = {}
    unmapped: set[str] = set()

    for row_number, raw_row in enumerate(raw_rows, start=1):
        columns = tuple(str(key) for key in raw_row)
        if columns not in mappings:
            column_map, missing = map_columns_by_name(list(columns))
            mappings[columns] = column_map
            unmapped.update(missing)
        cells = list(raw_row.values())
        _collect(result, cells, mappings[columns], row_number, 0, repair_zero_parts)

    result.unmapped_columns = sorted(unmapped)
    return result


def parse_excel_raw(file: BinaryIO) -> tuple[list[str], list[dict]]:
    """Parse Excel file into column names and raw row dictionaries.

    Cells keep their native types: numbers stay numbers and dates stay
    dates, so amounts are never re-read with the Turkish text rule.

    Args:
        file: File-like object containing Excel data.

    Returns:
        tuple: (list of column names, list of raw row dicts).

    Raises:
        ImportFileError: If the workbook cannot be read.
    """
    try:
        df = pd.read_excel(file, engine="openpyxl", dtype=object)
    except Exception as e:
        raise ImportFileError(f"Cannot read workbook: {e}") from e

    columns = [str(c).strip() for c in df.columns]

    rows = []
    for _, row in df.iterrows():
        row_dict = {}
        for col, value in zip(columns, row.tolist()):
            if pd.isna(value):
                row_dict[col] = None
            elif isinstance(value, pd.Timestamp):
                row_dict[col] = value.to_pydatetime()
            else:
                row_dict[col] = value
        if any(value is not None for value in row_dict.values()):
            rows.append(row_dict)

    return columns, rows


def decode_upload(
    filename: str,
    data: bytes,
    fmt: CsvFormat = SEMICOLON_EXPORT,
    repair_zero_parts: bool = True,
) -> DecodeResult:
    """Decode an uploaded export by file extension.

    Args:
        filename: Original file name.
        data: File content.
        fmt: Layout used for delimited files.
        repair_zero_parts: Passed to the date parser.

    Returns:
        DecodeResult: Records, rejected rows and warnings.

    Raises:
        ImportFileError: If the file is empty or its format is unsupported.
    """
    name = (filename or "").lower()
    if not data:
        raise ImportFileError("File is empty")

    if name.endswith((".csv", ".txt")):
        return decode_text(decode_bytes(data, fmt.encoding), fmt, repair_zero_parts)
    if name.endswith((".xlsx", ".xlsm")):
        _, raw_rows = parse_excel_raw(io.BytesIO(data))
        if not raw_rows:
            raise ImportFileError("No data rows in file")
        return decode_records(raw_rows, repair_zero_parts)

    raise ImportFileError("Unsupported file format. Use CSV or Excel (.xlsx)")
