"""Customers API routes."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from acente_crm.customers.schemas import CustomerListResponse, CustomerSearchParams
from acente_crm.customers.service import (
    CustomerService,
    customer_to_record,
    get_customer_service,
)
from acente_crm.dependencies import get_db

router = APIRouter()


def get_service(db: Annotated[Session, Depends(get_db)]) -> CustomerService:
    """Get customer service dependency."""
    return get_customer_service(db)


@router.get("", response_model=CustomerListResponse)
async def list_customers(
    service: Annotated[CustomerService, Depends(get_service)],
    query: str | None = Query(None, description="Name, policy number or plate"),
    hesap_kodu: str | None = Query(None, description="Filter by account code"),
    tc_kimlik_no: str | None = Query(None, description="Filter by national ID"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    """List customers with filtering and pagination.

    Args:
        service: Customer service.
        query: Search query.
        hesap_kodu: Account code filter.
        tc_kimlik_no: National ID filter.
        page: Page number.
        page_size: Items per page.

    Returns:
        CustomerListResponse: Paginated customer list.
    """
    params = CustomerSearchParams(
        query=query,
        hesap_kodu=hesap_kodu,
        tc_kimlik_no=tc_kimlik_no,
        page=page,
        page_size=page_size,
    )
    return service.list_customers(params)


@router.get("/{customer_id}")
async def get_customer(
    customer_id: str,
    service: Annotated[CustomerService, Depends(get_service)],
) -> dict[str, Any]:
    """Get a customer by ID.

    Args:
        customer_id: Customer UUID.
        service: Customer service.

    Returns:
        dict: Customer record.

    Raises:
        HTTPException: If customer not found.
    """
    customer = service.get_customer(customer_id)
    if not customer:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Customer not found",
        )
    return customer_to_record(customer)
