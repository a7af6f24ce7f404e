"""Errors raised by the policy export import pipeline."""


class ImportFileError(Exception):
    """The uploaded or local file cannot be imported at all.

    Raised for unreadable files, unsupported extensions, empty files and
    header rows that do not match the expected layout. Aborts the whole
    import; routers translate it to HTTP 400.
    """


class NoValidRowsError(ImportFileError):
    """Every data row of the file was rejected while decoding.

    Attributes:
        total_rows: Data rows in the file.
        row_errors: Rejection reasons, one per row.
    """

    def __init__(self, total_rows: int, row_errors: list):
        super().__init__(f"No valid rows to import: all {total_rows} rows were rejected")
        self.total_rows = total_rows
        self.row_errors = row_errors


class RowDecodeError(Exception):
    """A single export line could not be decoded into a record.

    Attributes:
        row_number: 1-based data row number (header excluded).
        reason: Human-readable description.
    """

    def __init__(self, row_number: int, reason: str):
        super().__init__(f"Row {row_number}: {reason}")
        self.row_number = row_number
        self.reason = reason


class BatchPersistError(Exception):
    """A persistence batch failed and was rolled back.

    Attributes:
        start_row: First row number of the batch.
        end_row: Last row number of the batch.
    """

    def __init__(self, start_row: int, end_row: int, reason: str):
        super().__init__(f"Rows {start_row}-{end_row}: {reason}")
        self.start_row = start_row
        self.end_row = end_row
        self.reason = reason
