"""Tests for export decoding and value parsing."""

import io
from datetime import date, datetime
from decimal import Decimal

import pandas as pd
import pytest

from acente_crm.imports.exceptions import ImportFileError, RowDecodeError
from acente_crm.imports.fields import map_columns_by_name
from acente_crm.imports.parsers import (
    COMMA_EXPORT,
    SEMICOLON_EXPORT,
    decode_bytes,
    decode_records,
    decode_row,
    decode_text,
    decode_upload,
    has_zero_date_part,
    parse_date,
    parse_decimal,
    parse_integer,
    parse_text,
    read_file_bytes,
    split_line,
)

SEMICOLON_HEADER = (
    "Tanzim Tarihi;Müşteri İsmi;Hesap Kodu;Poliçe Numarası;Başlangıç Tarihi;"
    "Bitiş Tarihi;Brüt;Net;TC Kimlik No;Vergi Kimlik No"
)


def _semicolon_line(**values) -> str:
    cells = {
        "tanzim": "15-01-24",
        "isim": "Ayşe Yılmaz",
        "hesap": "H-001",
        "police": "P-1",
        "baslangic": "15-01-24",
        "bitis": "15-01-25",
        "brut": "12.345,67",
        "net": "11.000,00",
        "tc": "11111111111",
        "vkn": "",
    }
    cells.update(values)
    return ";".join(cells.values())


def _comma_line(overrides: dict[int, str], width: int = 117) -> str:
    cells = [""] * width
    for position, value in overrides.items():
        cells[position] = value
    return ",".join(cells)


class TestParseDate:
    """Tests for date cell parsing."""

    def test_two_digit_years_use_pivot(self):
        """Test years 51-99 map to 19YY and 00-50 to 20YY."""
        assert parse_date("15-06-99") == date(1999, 6, 15)
        assert parse_date("15-06-51") == date(1951, 6, 15)
        assert parse_date("15-06-50") == date(2050, 6, 15)
        assert parse_date("01-02-24") == date(2024, 2, 1)

    def test_four_digit_and_separators(self):
        """Test four-digit years and dot/slash separators."""
        assert parse_date("15.06.2024") == date(2024, 6, 15)
        assert parse_date("15/06/2024") == date(2024, 6, 15)
        assert parse_date("2024-06-15") == date(2024, 6, 15)

    def test_native_values(self):
        """Test spreadsheet datetimes are taken as dates."""
        assert parse_date(datetime(2024, 6, 15, 10, 30)) == date(2024, 6, 15)
        assert parse_date(date(2024, 6, 15)) == date(2024, 6, 15)

    def test_zero_parts_repaired(self):
        """Test a 00 day or month becomes 01."""
        assert parse_date("00-05-24") == date(2024, 5, 1)
        assert parse_date("15-00-24") == date(2024, 1, 15)
        assert parse_date("00-00-24") == date(2024, 1, 1)

    def test_zero_parts_dropped_when_repair_disabled(self):
        """Test zero-part dates become None without repair."""
        assert parse_date("00-05-24", repair_zero_parts=False) is None

    def test_invalid_dates(self):
        """Test blank, malformed and impossible dates."""
        assert parse_date(None) is None
        assert parse_date("") is None
        assert parse_date("   ") is None
        assert parse_date("not a date") is None
        assert parse_date("31-02-24") is None

    def test_has_zero_date_part(self):
        """Test detection of 00 parts."""
        assert has_zero_date_part("00-05-24")
        assert not has_zero_date_part("01-05-24")
        assert not has_zero_date_part(None)


class TestParseDecimal:
    """Tests for Turkish-formatted amounts."""

    def test_thousands_and_decimal_comma(self):
        """Test dots are thousands separators and comma is the decimal point."""
        assert parse_decimal("12.345,67") == Decimal("12345.67")
        assert parse_decimal("1.234.567,89") == Decimal("1234567.89")
        assert parse_decimal("-1.234,50") == Decimal("-1234.50")
        assert parse_decimal("500") == Decimal("500")
        assert parse_decimal("0,5") == Decimal("0.5")

    def test_absent_sentinel(self):
        """Test the '.00' placeholder means no amount."""
        assert parse_decimal(".00") is None

    def test_invalid_values(self):
        """Test non-numeric cells become None."""
        assert parse_decimal(None) is None
        assert parse_decimal("") is None
        assert parse_decimal("abc") is None
        assert parse_decimal("1,2,3") is None

    def test_native_numbers_not_reinterpreted(self):
        """Test spreadsheet floats keep their value instead of losing the point."""
        assert parse_decimal(9394.4) == Decimal("9394.4")
        assert parse_decimal(12345.67) == Decimal("12345.67")
        assert parse_decimal(1500) == Decimal("1500")
        assert parse_decimal(Decimal("10.25")) == Decimal("10.25")
        assert parse_decimal(float("nan")) is None

    def test_native_float_never_needs_rescaling(self):
        """Test parsed amounts are never ten times the cell value."""
        for value in (9394.4, 123.45, 0.1, 99999.99):
            assert parse_decimal(value) == Decimal(str(value))


class TestParseTextAndInteger:
    """Tests for text and integer cells."""

    def test_text_trimmed(self):
        """Test text cells are trimmed and blanks become None."""
        assert parse_text("  Ankara ") == "Ankara"
        assert parse_text("") is None
        assert parse_text(None) is None

    def test_numeric_ids_keep_digits(self):
        """Test numeric ID cells from spreadsheets lose the float suffix."""
        assert parse_text(12345678901.0) == "12345678901"
        assert parse_text(12345678901) == "12345678901"

    def test_integer(self):
        """Test integer parsing."""
        assert parse_integer("12") == 12
        assert parse_integer("-3") == -3
        assert parse_integer(2019.0) == 2019
        assert parse_integer("12,5") is None
        assert parse_integer("") is None

    def test_integer_out_of_range(self):
        """Test integers beyond the 64-bit column range are rejected."""
        assert parse_integer("99999999999999999999999") is None
        assert parse_integer(10**22) is None
        assert parse_integer(str(2**63 - 1)) == 2**63 - 1
        assert parse_integer(str(-(2**63) - 1)) is None


class TestDecodeBytes:
    """Tests for export encoding handling."""

    def test_legacy_code_page(self):
        """Test Turkish letters survive the legacy code page."""
        data = "Müşteri İsmi;Şehir\n".encode("cp1254")
        assert decode_bytes(data) == "Müşteri İsmi;Şehir\n"

    def test_utf8_with_bom(self):
        """Test BOM-marked files are read as UTF-8."""
        data = b"\xef\xbb\xbf" + "Müşteri İsmi".encode("utf-8")
        assert decode_bytes(data) == "Müşteri İsmi"

    def test_undefined_bytes_pass_through(self):
        """Test bytes the code page leaves undefined are not dropped."""
        assert decode_bytes(b"A\x81B") == "A\x81B"

    def test_read_missing_file(self, tmp_path):
        """Test a missing file raises ImportFileError."""
        with pytest.raises(ImportFileError):
            read_file_bytes(tmp_path / "missing.csv")


class TestSplitLine:
    """Tests for line splitting."""

    def test_semicolon_ignores_quotes(self):
        """Test the semicolon format treats quotes as data."""
        assert split_line('a;"b;c', SEMICOLON_EXPORT) == ["a", '"b', "c"]

    def test_comma_respects_quotes(self):
        """Test the comma format keeps quoted delimiters inside a cell."""
        assert split_line('1,"Yılmaz, Ali",3', COMMA_EXPORT) == ["1", "Yılmaz, Ali", "3"]
        assert split_line('"say ""hi""",x', COMMA_EXPORT) == ['say "hi"', "x"]


class TestDecodeRow:
    """Tests for single row decoding."""

    def test_short_row_rejected(self):
        """Test rows below the minimum width are rejected, not padded."""
        column_map, _ = map_columns_by_name(SEMICOLON_HEADER.split(";"))
        with pytest.raises(RowDecodeError) as exc_info:
            decode_row(["a", "b"], column_map, row_number=7, min_columns=10)
        assert exc_info.value.row_number == 7

    def test_missing_identity_rejected(self):
        """Test a row without national ID and tax ID is rejected."""
        column_map, _ = map_columns_by_name(SEMICOLON_HEADER.split(";"))
        cells = _semicolon_line(tc="", vkn="").split(";")
        with pytest.raises(RowDecodeError, match="national ID"):
            decode_row(cells, column_map, row_number=1, min_columns=10)

    def test_tax_id_is_enough(self):
        """Test a corporate row with only a tax ID is accepted."""
        column_map, _ = map_columns_by_name(SEMICOLON_HEADER.split(";"))
        cells = _semicolon_line(tc="", vkn="1234567890").split(";")
        decoded = decode_row(cells, column_map, row_number=1, min_columns=10)
        assert decoded.record["vergi_kimlik_no"] == "1234567890"
        assert decoded.record["tc_kimlik_no"] is None

    def test_warnings_for_repaired_and_unparseable_cells(self):
        """Test zero date parts and bad amounts are reported."""
        column_map, _ = map_columns_by_name(SEMICOLON_HEADER.split(";"))
        cells = _semicolon_line(tanzim="00-05-24", brut="abc", net=".00").split(";")
        decoded = decode_row(cells, column_map, row_number=3, min_columns=10)

        assert decoded.record["tanzim_tarihi"] == date(2024, 5, 1)
        assert decoded.record["brut"] is None
        assert decoded.record["net"] is None
        assert len(decoded.warnings) == 2
        assert any("repaired to 01" in w for w in decoded.warnings)
        assert any("'abc' could not be parsed" in w for w in decoded.warnings)


class TestDecodeText:
    """Tests for delimited export decoding."""

    def test_semicolon_export(self):
        """Test a semicolon export decodes every mapped column."""
        text = "\n".join([SEMICOLON_HEADER, _semicolon_line(), _semicolon_line(tc="222")])
        result = decode_text(text, SEMICOLON_EXPORT)

        assert result.total_rows == 2
        assert result.row_numbers == [1, 2]
        record = result.records[0]
        assert record["musteri_ismi"] == "Ayşe Yılmaz"
        assert record["tanzim_tarihi"] == date(2024, 1, 15)
        assert record["brut"] == Decimal("12345.67")
        assert record["net"] == Decimal("11000.00")
        assert record["vergi_kimlik_no"] is None
        assert result.records[1]["tc_kimlik_no"] == "222"

    def test_reordered_columns_and_unmapped_headers(self):
        """Test columns are matched by name regardless of order."""
        header = SEMICOLON_HEADER.split(";")
        header.reverse()
        header.append("Bilinmeyen Sütun")
        line = _semicolon_line().split(";")
        line.reverse()
        line.append("x")
        result = decode_text(";".join(header) + "\n" + ";".join(line), SEMICOLON_EXPORT)

        assert result.records[0]["hesap_kodu"] == "H-001"
        assert result.unmapped_columns == ["Bilinmeyen Sütun"]

    def test_bad_rows_do_not_abort(self):
        """Test rejected rows are reported while good rows are kept."""
        text = "\n".join(
            [SEMICOLON_HEADER, _semicolon_line(), "too;short", _semicolon_line(tc="", vkn="")]
        )
        result = decode_text(text, SEMICOLON_EXPORT)

        assert result.total_rows == 3
        assert len(result.records) == 1
        assert [e.row for e in result.errors] == [2, 3]

    def test_blank_lines_skipped(self):
        """Test empty lines are not counted as rows."""
        text = SEMICOLON_HEADER + "\n\n" + _semicolon_line() + "\n\n"
        result = decode_text(text, SEMICOLON_EXPORT)
        assert result.total_rows == 1

    def test_file_level_errors(self):
        """Test empty files and unknown headers abort the import."""
        with pytest.raises(ImportFileError, match="empty"):
            decode_text("", SEMICOLON_EXPORT)
        with pytest.raises(ImportFileError, match="No recognized columns"):
            decode_text("a;b;c\n1;2;3", SEMICOLON_EXPORT)
        with pytest.raises(ImportFileError, match="No data rows"):
            decode_text(SEMICOLON_HEADER, SEMICOLON_EXPORT)

    def test_comma_export_by_position(self):
        """Test the comma layout reads cells by fixed position."""
        header = _comma_line({i: f"col{i}" for i in range(117)})
        line = _comma_line(
            {0: "15-01-24", 1: '"Yılmaz, Ali"', 2: "H-9", 18: '"1.500,00"', 57: "33333333333"}
        )
        result = decode_text(header + "\n" + line, COMMA_EXPORT)

        record = result.records[0]
        assert record["musteri_ismi"] == "Yılmaz, Ali"
        assert record["hesap_kodu"] == "H-9"
        assert record["brut"] == Decimal("1500.00")
        assert record["tc_kimlik_no"] == "33333333333"

    def test_comma_header_too_narrow(self):
        """Test a header narrower than the fixed layout aborts the import."""
        header = _comma_line({i: f"col{i}" for i in range(100)}, width=100)
        with pytest.raises(ImportFileError, match="fixed layout"):
            decode_text(header + "\n" + header, COMMA_EXPORT)

    def test_comma_short_row_rejected(self):
        """Test comma rows with fewer than 100 cells are rejected."""
        header = _comma_line({i: f"col{i}" for i in range(117)})
        line = _comma_line({57: "33333333333"}, width=99)
        result = decode_text(header + "\n" + line, COMMA_EXPORT)
        assert result.records == []
        assert result.errors[0].row == 1

    def test_stray_quote_confined_to_its_line(self):
        """Test an unbalanced quote does not swallow the following rows."""
        header = _comma_line({i: f"col{i}" for i in range(117)})
        good = _comma_line({2: "H-1", 57: "11111111111"})
        broken = _comma_line({1: '"Yılmaz, Ali', 57: "22222222222"})
        other = _comma_line({2: "H-3", 57: "33333333333"})

        result = decode_text("\n".join([header, good, broken, other]), COMMA_EXPORT)

        assert result.total_rows == 3
        assert [r["tc_kimlik_no"] for r in result.records] == ["11111111111", "33333333333"]
        assert result.row_numbers == [1, 3]
        assert [e.row for e in result.errors] == [2]

    def test_oversized_cell_is_row_error(self):
        """Test a line the CSV reader refuses becomes a row error."""
        header = _comma_line({i: f"col{i}" for i in range(117)})
        good = _comma_line({57: "11111111111"})
        huge = '"' + "x" * 200_000

        result = decode_text("\n".join([header, huge, good]), COMMA_EXPORT)

        assert result.total_rows == 2
        assert result.row_numbers == [2]
        assert result.errors[0].row == 1
        assert "malformed line" in result.errors[0].message

    def test_malformed_header_is_file_error(self):
        """Test a header the CSV reader refuses aborts the import."""
        with pytest.raises(ImportFileError, match="Malformed header"):
            decode_text("x" * 200_000 + "\n" + _semicolon_line(), SEMICOLON_EXPORT)


class TestDecodeRecords:
    """Tests for header-keyed row decoding."""

    def test_headers_and_field_names(self):
        """Test rows keyed by export header or field name decode alike."""
        rows = [
            {"TC Kimlik No": "111", "Müşteri İsmi": "Ali", "Brüt": "1.234,50"},
            {"tc_kimlik_no": "222", "musteri_ismi": "Veli", "brut": 99.5},
        ]
        result = decode_records(rows)

        assert result.records[0]["brut"] == Decimal("1234.50")
        assert result.records[1]["brut"] == Decimal("99.5")
        assert result.records[1]["musteri_ismi"] == "Veli"

    def test_integer_overflow_warns(self):
        """Test an out-of-range model year is dropped with a warning."""
        result = decode_records([{"TC Kimlik No": "111", "Model Yılı": "99999999999999999999999"}])

        assert result.records[0]["model_yili"] is None
        assert any("could not be parsed" in w for w in result.warnings)


class TestDecodeUpload:
    """Tests for extension dispatch."""

    def test_unsupported_extension(self):
        """Test unknown extensions are rejected."""
        with pytest.raises(ImportFileError, match="Unsupported"):
            decode_upload("export.pdf", b"data")

    def test_empty_file(self):
        """Test empty uploads are rejected."""
        with pytest.raises(ImportFileError, match="empty"):
            decode_upload("export.csv", b"")

    def test_csv_upload_in_legacy_code_page(self):
        """Test a cp1254 CSV upload decodes Turkish text."""
        text = SEMICOLON_HEADER + "\n" + _semicolon_line(isim="Şükrü Öztürk")
        result = decode_upload("export.csv", text.encode("cp1254"))
        assert result.records[0]["musteri_ismi"] == "Şükrü Öztürk"

    def test_excel_keeps_native_amounts(self):
        """Test workbook amounts are read as numbers, not Turkish text."""
        frame = pd.DataFrame(
            [
                {
                    "Tanzim Tarihi": datetime(2024, 3, 1),
                    "Müşteri İsmi": "Ayşe Yılmaz",
                    "Hesap Kodu": "H-001",
                    "Brüt": 9394.4,
                    "Net": 8900.0,
                    "TC Kimlik No": 11111111111,
                }
            ]
        )
        buffer = io.BytesIO()
        frame.to_excel(buffer, index=False, engine="openpyxl")

        result = decode_upload("export.xlsx", buffer.getvalue())

        record = result.records[0]
        assert record["brut"] == Decimal("9394.4")
        assert record["net"] == Decimal("8900")
        assert record["tanzim_tarihi"] == date(2024, 3, 1)
        assert record["tc_kimlik_no"] == "11111111111"

    def test_corrupt_workbook(self):
        """Test unreadable workbooks raise ImportFileError."""
        with pytest.raises(ImportFileError, match="workbook"):
            decode_upload("export.xlsx", b"not a zip file")
