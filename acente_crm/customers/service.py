"""Customer service layer."""

from typing import Any

from sqlalchemy import delete, or_
from sqlalchemy.orm import Session

from acente_crm.customers.schemas import CustomerListResponse, CustomerSearchParams
from acente_crm.db.models import Customer
from acente_crm.imports.fields import CUSTOMER_FIELDS

# Bound on IN (...) parameters per query
LOOKUP_CHUNK_SIZE = 500


def customer_to_record(customer: Customer) -> dict[str, Any]:
    """Convert a customer model to a plain record.

    Args:
        customer: Customer model.

    Returns:
        dict: ``id``, every export field, and the timestamps.
    """
    record: dict[str, Any] = {"id": customer.id}
    for spec in CUSTOMER_FIELDS:
        record[spec.target] = getattr(customer, spec.target)
    record["created_at"] = customer.created_at
    record["updated_at"] = customer.updated_at
    return record


class CustomerService:
    """Service class for customer storage access."""

    def __init__(self, db: Session):
        """Initialize customer service.

        Args:
            db: Database session.
        """
        self.db = db

    def find_by_national_ids(self, national_ids: set[str]) -> dict[str, Customer]:
        """Find stored customers by national ID.

        When several stored rows share an ID the oldest one is returned.

        Args:
            national_ids: National IDs to look up.

        Returns:
            Map of national ID -> stored customer.
        """
        found: dict[str, Customer] = {}
        ids = sorted(national_ids)
        for start in range(0, len(ids), LOOKUP_CHUNK_SIZE):
            chunk = ids[start : start + LOOKUP_CHUNK_SIZE]
            customers = (
                self.db.query(Customer)
                .filter(Customer.tc_kimlik_no.in_(chunk))
                .order_by(Customer.created_at, Customer.id)
                .all()
            )
            for customer in customers:
                found.setdefault(customer.tc_kimlik_no, customer)
        return found

    def get_customer(self, customer_id: str) -> Customer | None:
        """Get a customer by ID.

        Args:
            customer_id: Customer UUID.

        Returns:
            Customer | None: Customer if found.
        """
        return self.db.query(Customer).filter(Customer.id == customer_id).first()

    def list_customers(self, params: CustomerSearchParams) -> CustomerListResponse:
        """List customers with filtering and pagination.

        Args:
            params: Search and pagination parameters.

        Returns:
            CustomerListResponse: Paginated customer list.
        """
        query = self.db.query(Customer)

        if params.query:
            search_term = f"%{params.query}%"
            query = query.filter(
                or_(
                    Customer.musteri_ismi.ilike(search_term),
                    Customer.police_numarasi.ilike(search_term),
                    Customer.arac_plakasi.ilike(search_term),
                )
            )
        if params.hesap_kodu:
            query = query.filter(Customer.hesap_kodu == params.hesap_kodu)
        if params.tc_kimlik_no:
            query = query.filter(Customer.tc_kimlik_no == params.tc_kimlik_no)

        total = query.count()
        offset = (params.page - 1) * params.page_size
        customers = (
            query.order_by(Customer.tanzim_tarihi.desc(), Customer.id)
            .offset(offset)
            .limit(params.page_size)
            .all()
        )

        return CustomerListResponse(
            items=[customer_to_record(c) for c in customers],
            total=total,
            page=params.page,
            page_size=params.page_size,
            pages=(total + params.page_size - 1) // params.page_size,
        )

    def get_policies_for_account(self, hesap_kodu: str) -> list[Customer]:
        """Get every policy row of a customer account.

        Args:
            hesap_kodu: Account code.

        Returns:
            list[Customer]: Policies, newest issue date first.
        """
        return (
            self.db.query(Customer)
            .filter(Customer.hesap_kodu == hesap_kodu)
            .order_by(Customer.tanzim_tarihi.desc(), Customer.id)
            .all()
        )

    def delete_all(self) -> int:
        """Delete every stored customer row.

        Returns:
            int: Number of deleted rows.
        """
        result = self.db.execute(delete(Customer))
        self.db.commit()
        return result.rowcount or 0


def get_customer_service(db: Session) -> CustomerService:
    """Factory function for CustomerService.

    Args:
        db: Database session.

    Returns:
        CustomerService: Customer service instance.
    """
    return CustomerService(db)
