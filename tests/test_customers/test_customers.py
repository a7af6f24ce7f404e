"""Tests for customer storage and routes."""

from datetime import date

from acente_crm.customers.schemas import CustomerSearchParams
from acente_crm.customers.service import CustomerService, customer_to_record
from acente_crm.imports.fields import CUSTOMER_FIELDS


class TestCustomerService:
    """Tests for CustomerService."""

    def test_find_by_national_ids(self, db, make_customer):
        """Test stored customers are keyed by national ID."""
        first = make_customer(tc_kimlik_no="111")
        make_customer(tc_kimlik_no="222")

        found = CustomerService(db).find_by_national_ids({"111", "333"})

        assert set(found) == {"111"}
        assert found["111"].id == first.id

    def test_find_by_national_ids_chunks(self, db, make_customer, monkeypatch):
        """Test lookups are split into bounded IN queries."""
        monkeypatch.setattr("acente_crm.customers.service.LOOKUP_CHUNK_SIZE", 2)
        for i in range(5):
            make_customer(tc_kimlik_no=str(i))

        found = CustomerService(db).find_by_national_ids({str(i) for i in range(5)})
        assert len(found) == 5

    def test_customer_to_record(self, make_customer):
        """Test records carry every export field."""
        customer = make_customer(musteri_ismi="Ayşe")
        record = customer_to_record(customer)

        assert record["id"] == customer.id
        assert record["musteri_ismi"] == "Ayşe"
        for spec in CUSTOMER_FIELDS:
            assert spec.target in record

    def test_list_customers_search(self, db, make_customer):
        """Test search by name and pagination."""
        make_customer(musteri_ismi="Ayşe Yılmaz", tc_kimlik_no="1")
        make_customer(musteri_ismi="Mehmet Demir", tc_kimlik_no="2")
        make_customer(musteri_ismi="Ayten Kaya", tc_kimlik_no="3")

        result = CustomerService(db).list_customers(
            CustomerSearchParams(query="Ay", page=1, page_size=1)
        )

        assert result.total == 2
        assert result.pages == 2
        assert len(result.items) == 1

    def test_get_policies_for_account(self, db, make_customer):
        """Test policies of an account are newest first."""
        make_customer(hesap_kodu="H-1", tanzim_tarihi=date(2023, 1, 1), police_numarasi="OLD")
        make_customer(hesap_kodu="H-1", tanzim_tarihi=date(2024, 1, 1), police_numarasi="NEW")
        make_customer(hesap_kodu="H-2")

        policies = CustomerService(db).get_policies_for_account("H-1")
        assert [p.police_numarasi for p in policies] == ["NEW", "OLD"]

    def test_delete_all(self, db, make_customer):
        """Test every row is removed."""
        make_customer(tc_kimlik_no="1")
        make_customer(tc_kimlik_no="2")
        assert CustomerService(db).delete_all() == 2


class TestCustomerRoutes:
    """Tests for the customer API routes."""

    def test_list(self, client, make_customer):
        """Test the paginated list."""
        make_customer(hesap_kodu="H-1")
        response = client.get("/api/customers", params={"hesap_kodu": "H-1"})

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["hesap_kodu"] == "H-1"

    def test_get(self, client, make_customer):
        """Test fetching one customer."""
        customer = make_customer()
        response = client.get(f"/api/customers/{customer.id}")

        assert response.status_code == 200
        assert response.json()["police_numarasi"] == customer.police_numarasi

    def test_get_not_found(self, client):
        """Test unknown IDs return 404."""
        response = client.get("/api/customers/does-not-exist")
        assert response.status_code == 404
