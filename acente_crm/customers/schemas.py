"""Pydantic schemas for customers."""

from typing import Any

from pydantic import BaseModel


class CustomerListResponse(BaseModel):
    """Schema for paginated customer list response.

    Items are full records keyed by field name.
    """

    items: list[dict[str, Any]]
    total: int
    page: int
    page_size: int
    pages: int


class CustomerSearchParams(BaseModel):
    """Schema for customer search parameters."""

    query: str | None = None
    hesap_kodu: str | None = None
    tc_kimlik_no: str | None = None
    page: int = 1
    page_size: int = 20
