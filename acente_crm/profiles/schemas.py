"""Pydantic schemas for customer profiles."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class CustomerProfileResponse(BaseModel):
    """Schema for customer profile response."""

    id: str
    hesap_kodu: str
    tc_kimlik_no: str | None = None
    vergi_kimlik_no: str | None = None
    musteri_ismi: str | None = None
    musteri_tipi: str | None = None
    telefon_1: str | None = None
    telefon_2: str | None = None
    gsm_no: str | None = None
    e_posta: str | None = None
    faks_no: str | None = None
    sehir: str | None = None
    semt: str | None = None
    ilce: str | None = None
    adres_1: str | None = None
    adres_2: str | None = None
    dogum_tarihi: date | None = None
    cinsiyet: str | None = None
    meslek_grubu: str | None = None
    referans_grubu: str | None = None
    musteri_karti_tipi: str | None = None
    alternatif_hesap_kodu: str | None = None
    hesap_temsilci_adi: str | None = None
    sube_adi: str | None = None
    izinli_pazarlama: str | None = None
    kvkk: str | None = None
    toplam_police: int = 0
    aktif_police: int = 0
    toplam_brut_prim: Decimal = Decimal("0")
    toplam_net_prim: Decimal = Decimal("0")
    sahip_olunan_urunler: str | None = None
    sahip_olunan_police_turleri: str | None = None
    arac_sayisi: int = 0
    arac_bilgileri: str | None = None
    ai_analiz: str | None = None
    ai_analiz_tarihi: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class ProfileListResponse(BaseModel):
    """Schema for paginated profile list response."""

    items: list[CustomerProfileResponse]
    total: int
    page: int
    page_size: int
    pages: int


class ProfileSyncResult(BaseModel):
    """Counts of one profile synchronization run."""

    success: bool = True
    message: str = ""
    created: int = 0
    updated: int = 0
    deleted: int = 0
