"""Customer profile synchronization.

Profiles are a read model over the ``customers`` table, one per account
code. A sync recomputes every aggregate from the policy rows instead of
adjusting stored totals, so profiles always equal the sum over their
policies. ``ai_analiz`` is written elsewhere and survives syncs.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from sqlalchemy import delete
from sqlalchemy.orm import Session

from acente_crm.db.models import PROFILE_COPIED_FIELDS, Customer, CustomerProfile
from acente_crm.profiles.schemas import (
    CustomerProfileResponse,
    ProfileListResponse,
    ProfileSyncResult,
)

logger = logging.getLogger(__name__)


@dataclass
class ProfileAggregate:
    """Running totals for one account during a sync."""

    hesap_kodu: str
    toplam_police: int = 0
    aktif_police: int = 0
    toplam_brut_prim: Decimal = Decimal("0")
    toplam_net_prim: Decimal = Decimal("0")
    urunler: list[str] = field(default_factory=list)
    police_turleri: list[str] = field(default_factory=list)
    plakalar: set[str] = field(default_factory=set)
    araclar: list[dict] = field(default_factory=list)
    copied: dict = field(default_factory=dict)

    def add(self, policy: Customer, today: date) -> None:
        """Fold one policy row into the totals.

        Rows must arrive newest first so copied contact fields come from
        the latest policy that carries them.
        """
        self.toplam_police += 1
        ends = policy.bitis_tarihi
        if ends is not None and ends >= today and not policy.iptal_sebebi:
            self.aktif_police += 1
        self.toplam_brut_prim += policy.brut or Decimal("0")
        self.toplam_net_prim += policy.net or Decimal("0")

        if policy.ana_brans and policy.ana_brans not in self.urunler:
            self.urunler.append(policy.ana_brans)
        if policy.police_turu and policy.police_turu not in self.police_turleri:
            self.police_turleri.append(policy.police_turu)

        if policy.arac_plakasi and policy.arac_plakasi not in self.plakalar:
            self.plakalar.add(policy.arac_plakasi)
            self.araclar.append(
                {
                    "marka": policy.arac_markasi,
                    "model": policy.arac_modeli,
                    "yil": policy.model_yili,
                }
            )

        for name in PROFILE_COPIED_FIELDS:
            if self.copied.get(name) is None:
                self.copied[name] = getattr(policy, name)

    def apply_to(self, profile: CustomerProfile) -> None:
        """Overwrite the profile's derived columns."""
        for name in PROFILE_COPIED_FIELDS:
            setattr(profile, name, self.copied.get(name))
        profile.toplam_police = self.toplam_police
        profile.aktif_police = self.aktif_police
        profile.toplam_brut_prim = self.toplam_brut_prim
        profile.toplam_net_prim = self.toplam_net_prim
        profile.sahip_olunan_urunler = ", ".join(self.urunler) or None
        profile.sahip_olunan_police_turleri = ", ".join(self.police_turleri) or None
        profile.arac_sayisi = len(self.plakalar)
        profile.arac_bilgileri = (
            json.dumps(self.araclar, ensure_ascii=False) if self.araclar else None
        )


class ProfileService:
    """Service class for customer profile operations."""

    def __init__(self, db: Session):
        """Initialize profile service.

        Args:
            db: Database session.
        """
        self.db = db

    def _aggregate(self, accounts: set[str] | None, today: date) -> dict[str, ProfileAggregate]:
        query = self.db.query(Customer).filter(Customer.hesap_kodu.isnot(None))
        if accounts is not None:
            query = query.filter(Customer.hesap_kodu.in_(accounts))
        query = query.order_by(
            Customer.hesap_kodu,
            Customer.tanzim_tarihi.desc().nulls_last(),
            Customer.created_at.desc(),
        )

        aggregates: dict[str, ProfileAggregate] = {}
        for policy in query.yield_per(1000):
            aggregate = aggregates.get(policy.hesap_kodu)
            if aggregate is None:
                aggregate = aggregates[policy.hesap_kodu] = ProfileAggregate(policy.hesap_kodu)
            aggregate.add(policy, today)
        return aggregates

    def sync(self, accounts: set[str] | None = None, today: date | None = None) -> ProfileSyncResult:
        """Rebuild customer profiles from policy rows.

        Args:
            accounts: Restrict the rebuild to these account codes. None
                rebuilds every profile.
            today: Reference date for active policy counting.

        Returns:
            ProfileSyncResult: Created, updated and deleted profile counts.
        """
        today = today or date.today()
        aggregates = self._aggregate(accounts, today)

        query = self.db.query(CustomerProfile)
        if accounts is not None:
            query = query.filter(CustomerProfile.hesap_kodu.in_(accounts))
        existing = {profile.hesap_kodu: profile for profile in query.all()}

        created = updated = 0
        for hesap_kodu, aggregate in aggregates.items():
            profile = existing.get(hesap_kodu)
            if profile is None:
                profile = CustomerProfile(hesap_kodu=hesap_kodu)
                self.db.add(profile)
                created += 1
            else:
                updated += 1
            aggregate.apply_to(profile)

        # Accounts without any remaining policy row
        orphaned = [code for code in existing if code not in aggregates]
        if orphaned:
            self.db.execute(delete(CustomerProfile).where(CustomerProfile.hesap_kodu.in_(orphaned)))

        self.db.commit()
        logger.info(
            f"Profile sync: {created} created, {updated} updated, {len(orphaned)} deleted"
        )
        return ProfileSyncResult(
            success=True,
            message=f"{created} profiles created, {updated} profiles updated",
            created=created,
            updated=updated,
            deleted=len(orphaned),
        )

    def get_profile(self, profile_id: str) -> CustomerProfile | None:
        """Get a profile by ID.

        Args:
            profile_id: Profile UUID.

        Returns:
            CustomerProfile | None: Profile if found.
        """
        return self.db.query(CustomerProfile).filter(CustomerProfile.id == profile_id).first()

    def list_profiles(
        self, query: str | None = None, page: int = 1, page_size: int = 20
    ) -> ProfileListResponse:
        """List profiles with optional name search.

        Args:
            query: Name or account code search.
            page: Page number.
            page_size: Items per page.

        Returns:
            ProfileListResponse: Paginated profile list.
        """
        q = self.db.query(CustomerProfile)
        if query:
            search_term = f"%{query}%"
            q = q.filter(
                CustomerProfile.musteri_ismi.ilike(search_term)
                | CustomerProfile.hesap_kodu.ilike(search_term)
            )

        total = q.count()
        profiles = (
            q.order_by(CustomerProfile.toplam_brut_prim.desc(), CustomerProfile.hesap_kodu)
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return ProfileListResponse(
            items=[CustomerProfileResponse.model_validate(p) for p in profiles],
            total=total,
            page=page,
            page_size=page_size,
            pages=(total + page_size - 1) // page_size,
        )


def get_profile_service(db: Session) -> ProfileService:
    """Factory function for ProfileService.

    Args:
        db: Database session.

    Returns:
        ProfileService: Profile service instance.
    """
    return ProfileService(db)
