"""Customer profile API routes."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from acente_crm.customers.service import customer_to_record, get_customer_service
from acente_crm.dependencies import get_db
from acente_crm.profiles.schemas import (
    CustomerProfileResponse,
    ProfileListResponse,
    ProfileSyncResult,
)
from acente_crm.profiles.service import ProfileService, get_profile_service

router = APIRouter()


def get_service(db: Annotated[Session, Depends(get_db)]) -> ProfileService:
    """Get profile service dependency."""
    return get_profile_service(db)


@router.post("/sync", response_model=ProfileSyncResult)
async def sync_profiles(service: Annotated[ProfileService, Depends(get_service)]):
    """Rebuild every customer profile from the policy rows."""
    return service.sync()


@router.get("", response_model=ProfileListResponse)
async def list_profiles(
    service: Annotated[ProfileService, Depends(get_service)],
    query: str | None = Query(None, description="Name or account code"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    """List customer profiles.

    Args:
        service: Profile service.
        query: Search query.
        page: Page number.
        page_size: Items per page.

    Returns:
        ProfileListResponse: Paginated profile list.
    """
    return service.list_profiles(query=query, page=page, page_size=page_size)


@router.get("/{profile_id}", response_model=CustomerProfileResponse)
async def get_profile(
    profile_id: str,
    service: Annotated[ProfileService, Depends(get_service)],
):
    """Get a customer profile by ID.

    Raises:
        HTTPException: If profile not found.
    """
    profile = service.get_profile(profile_id)
    if not profile:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found",
        )
    return profile


@router.get("/{profile_id}/policies")
async def get_profile_policies(
    profile_id: str,
    service: Annotated[ProfileService, Depends(get_service)],
) -> list[dict[str, Any]]:
    """Get the policy rows behind a customer profile.

    Raises:
        HTTPException: If profile not found.
    """
    profile = service.get_profile(profile_id)
    if not profile:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found",
        )
    customers = get_customer_service(service.db)
    return [customer_to_record(c) for c in customers.get_policies_for_account(profile.hesap_kodu)]
