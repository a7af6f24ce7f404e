"""Tests for the import API routes."""

import io

import pandas as pd

from acente_crm.db.models import Customer

CSV_HEADER = (
    "Tanzim Tarihi;Müşteri İsmi;Hesap Kodu;Poliçe Numarası;Başlangıç Tarihi;"
    "Bitiş Tarihi;Brüt;Net;TC Kimlik No;Vergi Kimlik No"
)
CSV_ROW = "15-01-24;Ayşe Yılmaz;H-1;P-1;15-01-24;15-01-25;1.500,00;1.400,00;11111111111;"


class TestCheckDuplicatesEndpoint:
    """Tests for POST /api/customers/check-duplicates."""

    def test_reports_conflicts(self, client, make_customer):
        """Test conflicts are returned with camelCase keys."""
        make_customer(tc_kimlik_no="11111111111", musteri_ismi="Eski")

        response = client.post(
            "/api/customers/check-duplicates",
            json={"customers": [{"TC Kimlik No": "11111111111", "Müşteri İsmi": "Yeni"}]},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["hasDuplicates"] is True
        conflict = data["duplicates"][0]
        assert conflict["tcKimlikNo"] == "11111111111"
        assert conflict["existing"]["musteri_ismi"] == "Eski"
        assert conflict["new"]["musteri_ismi"] == "Yeni"

    def test_no_conflicts(self, client):
        """Test an empty store reports no duplicates."""
        response = client.post(
            "/api/customers/check-duplicates",
            json={"customers": [{"TC Kimlik No": "11111111111"}]},
        )
        assert response.status_code == 200
        assert response.json()["hasDuplicates"] is False


class TestImportEndpoint:
    """Tests for POST /api/customers/import."""

    def test_import_json_rows(self, client, db):
        """Test rows sent as JSON are stored."""
        response = client.post(
            "/api/customers/import",
            json={
                "customers": [
                    {"TC Kimlik No": "11111111111", "Müşteri İsmi": "Ali", "Brüt": "1.234,50"},
                    {"TC Kimlik No": "22222222222", "Müşteri İsmi": "Veli", "Brüt": 99.5},
                ],
                "overwrite": False,
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["created"] == 2
        assert data["totalRows"] == 2
        assert db.query(Customer).count() == 2

    def test_overwrite(self, client, make_customer):
        """Test overwrite replaces the stored customer."""
        make_customer(tc_kimlik_no="11111111111", musteri_ismi="Eski")

        response = client.post(
            "/api/customers/import",
            json={
                "customers": [{"TC Kimlik No": "11111111111", "Müşteri İsmi": "Yeni"}],
                "overwrite": True,
            },
        )

        data = response.json()
        assert data["updated"] == 1
        assert data["duplicates"] == 1
        assert data["created"] == 0

    def test_empty_request(self, client):
        """Test a request without rows is rejected."""
        response = client.post("/api/customers/import", json={"customers": []})
        assert response.status_code == 400


class TestImportExcelEndpoint:
    """Tests for POST /api/customers/import-excel."""

    def test_rejects_non_excel(self, client):
        """Test non-workbook uploads are rejected."""
        response = client.post(
            "/api/customers/import-excel",
            files={"file": ("export.csv", b"a;b", "text/csv")},
        )
        assert response.status_code == 400
        assert "Excel" in response.json()["detail"]

    def test_import_workbook(self, client, db):
        """Test a workbook upload is stored without inflating amounts."""
        frame = pd.DataFrame(
            [{"Müşteri İsmi": "Ayşe", "Hesap Kodu": "H-1", "Brüt": 9394.4, "TC Kimlik No": "111"}]
        )
        buffer = io.BytesIO()
        frame.to_excel(buffer, index=False, engine="openpyxl")

        response = client.post(
            "/api/customers/import-excel",
            files={"file": ("export.xlsx", buffer.getvalue(), "application/octet-stream")},
            data={"overwrite": "false", "syncProfiles": "true"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["created"] == 1
        assert data["profilesSynced"] is True
        stored = db.query(Customer).one()
        assert float(stored.brut) == 9394.4

    def test_all_rows_rejected(self, client):
        """Test a workbook without valid rows returns the row errors."""
        frame = pd.DataFrame([{"Müşteri İsmi": "Ayşe", "TC Kimlik No": None}])
        buffer = io.BytesIO()
        frame.to_excel(buffer, index=False, engine="openpyxl")

        response = client.post(
            "/api/customers/import-excel",
            files={"file": ("export.xlsx", buffer.getvalue(), "application/octet-stream")},
        )

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["totalRows"] == 1
        assert "national ID" in detail["errors"][0]["message"]


class TestImportCsvEndpoint:
    """Tests for POST /api/customers/import-csv."""

    def test_semicolon_upload(self, client, db):
        """Test a cp1254 semicolon export upload."""
        data = (CSV_HEADER + "\n" + CSV_ROW).encode("cp1254")

        response = client.post(
            "/api/customers/import-csv",
            files={"file": ("export.csv", data, "text/csv")},
            data={"format": "semicolon"},
        )

        assert response.status_code == 200
        assert response.json()["created"] == 1
        assert db.query(Customer).one().musteri_ismi == "Ayşe Yılmaz"

    def test_unknown_header(self, client):
        """Test a file with no recognized columns is rejected."""
        response = client.post(
            "/api/customers/import-csv",
            files={"file": ("export.csv", b"a;b;c\n1;2;3", "text/csv")},
        )
        assert response.status_code == 400

    def test_invalid_format(self, client):
        """Test an unknown export format fails validation."""
        response = client.post(
            "/api/customers/import-csv",
            files={"file": ("export.csv", b"a;b", "text/csv")},
            data={"format": "tab"},
        )
        assert response.status_code == 422


class TestHealth:
    """Tests for the health endpoint."""

    def test_health(self, client):
        """Test the service reports healthy."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
