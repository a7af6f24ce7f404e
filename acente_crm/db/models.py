"""SQLAlchemy database models."""

from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import Date, DateTime, Index, Integer, Numeric, String, Text
from sqlalchemy.dialects.mysql import CHAR
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


def generate_uuid() -> str:
    """Generate a UUID string for primary keys.

    Returns:
        str: UUID as 36-character string.
    """
    return str(uuid4())


# Money columns; exchange rate and percentages keep their own precision
Money = Numeric(15, 2)
Percent = Numeric(10, 2)
Rate = Numeric(15, 4)


class Customer(Base):
    """One row of the policy-management system's reconciliation export.

    Every column except ``id`` and the timestamps is nullable: a value the
    export leaves blank or that cannot be parsed is stored as NULL, never as
    zero or an empty string. ``hesap_kodu`` identifies the customer account
    across policies; ``tc_kimlik_no`` is the national ID used for duplicate
    detection.
    """

    __tablename__ = "customers"
    __table_args__ = (
        Index("ix_customers_hesap_kodu", "hesap_kodu"),
        Index("ix_customers_tc_kimlik_no", "tc_kimlik_no"),
        Index("ix_customers_police_numarasi", "police_numarasi"),
    )

    id: Mapped[str] = mapped_column(CHAR(36), primary_key=True, default=generate_uuid)

    # Policy identity
    tanzim_tarihi: Mapped[date | None] = mapped_column(Date, nullable=True)
    musteri_ismi: Mapped[str | None] = mapped_column(String(255), nullable=True)
    hesap_kodu: Mapped[str | None] = mapped_column(String(100), nullable=True)
    sigorta_sirketi_adi: Mapped[str | None] = mapped_column(String(255), nullable=True)
    arac_plakasi: Mapped[str | None] = mapped_column(String(50), nullable=True)
    ana_brans: Mapped[str | None] = mapped_column(String(100), nullable=True)
    police_kodu: Mapped[str | None] = mapped_column(String(100), nullable=True)
    police_turu: Mapped[str | None] = mapped_column(String(100), nullable=True)
    donem: Mapped[str | None] = mapped_column(String(50), nullable=True)
    police_numarasi: Mapped[str | None] = mapped_column(String(100), nullable=True)
    zeyl_numarasi: Mapped[str | None] = mapped_column(String(50), nullable=True)
    produktor_tali_kodu: Mapped[str | None] = mapped_column(String(100), nullable=True)
    produktor_tali_adi: Mapped[str | None] = mapped_column(String(255), nullable=True)
    police_kayit_tipi: Mapped[str | None] = mapped_column(String(100), nullable=True)
    baslangic_tarihi: Mapped[date | None] = mapped_column(Date, nullable=True)
    bitis_tarihi: Mapped[date | None] = mapped_column(Date, nullable=True)
    sigorta_sirketi_kodu: Mapped[str | None] = mapped_column(String(100), nullable=True)
    para_birimi: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # Premiums and commissions
    brut: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    net: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    komisyon: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    tali_komisyonu: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    acente_komisyonu_yuzde: Mapped[Decimal | None] = mapped_column(Percent, nullable=True)
    tali_komisyonu_yuzde: Mapped[Decimal | None] = mapped_column(Percent, nullable=True)
    temsilci_adi: Mapped[str | None] = mapped_column(String(255), nullable=True)
    hesap_olusturma_tarihi: Mapped[date | None] = mapped_column(Date, nullable=True)
    police_aciklamasi: Mapped[str | None] = mapped_column(Text, nullable=True)
    ozel_kod: Mapped[str | None] = mapped_column(String(100), nullable=True)
    pesin_vadeli: Mapped[str | None] = mapped_column(String(50), nullable=True)
    pesinat: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    taksit_sayisi: Mapped[int | None] = mapped_column(Integer, nullable=True)
    kur: Mapped[Decimal | None] = mapped_column(Rate, nullable=True)

    # Branch and vehicle
    brans_kodu: Mapped[str | None] = mapped_column(String(50), nullable=True)
    ruhsat_sahibi: Mapped[str | None] = mapped_column(String(255), nullable=True)
    yenileme_no: Mapped[str | None] = mapped_column(String(50), nullable=True)
    evrak_no: Mapped[str | None] = mapped_column(String(100), nullable=True)
    brans_adi: Mapped[str | None] = mapped_column(String(255), nullable=True)
    arac_markasi: Mapped[str | None] = mapped_column(String(100), nullable=True)
    arac_modeli: Mapped[str | None] = mapped_column(String(255), nullable=True)
    arac_kullanim_tarzi: Mapped[str | None] = mapped_column(String(100), nullable=True)
    riziko_adresi_1: Mapped[str | None] = mapped_column(Text, nullable=True)
    riziko_adresi_2: Mapped[str | None] = mapped_column(Text, nullable=True)
    riziko_ili: Mapped[str | None] = mapped_column(String(100), nullable=True)
    riziko_ilcesi: Mapped[str | None] = mapped_column(String(100), nullable=True)
    ara_brans_kodu: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Collections
    odenen: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    kalan: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    sirkete_borc: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    sirkete_kalan: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    sirkete_odenen: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    iptal_sebebi: Mapped[str | None] = mapped_column(String(255), nullable=True)
    sirkete_kartla_odeme_durumu: Mapped[str | None] = mapped_column(String(100), nullable=True)
    ara_brans: Mapped[str | None] = mapped_column(String(100), nullable=True)
    yenilenme_durumu: Mapped[str | None] = mapped_column(String(100), nullable=True)
    yenileme_durumu: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # Customer identity
    tc_kimlik_no: Mapped[str | None] = mapped_column(String(20), nullable=True)
    vergi_kimlik_no: Mapped[str | None] = mapped_column(String(20), nullable=True)
    sube_adi: Mapped[str | None] = mapped_column(String(255), nullable=True)
    teknik_personel_adi: Mapped[str | None] = mapped_column(String(255), nullable=True)
    yenileme_donemi: Mapped[str | None] = mapped_column(String(50), nullable=True)
    yenileme_kodu: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Contact and address
    sehir: Mapped[str | None] = mapped_column(String(100), nullable=True)
    semt: Mapped[str | None] = mapped_column(String(100), nullable=True)
    ilce: Mapped[str | None] = mapped_column(String(100), nullable=True)
    tecdit: Mapped[str | None] = mapped_column(String(50), nullable=True)
    tahsildar_adi: Mapped[str | None] = mapped_column(String(255), nullable=True)
    telefon_1: Mapped[str | None] = mapped_column(String(50), nullable=True)
    telefon_2: Mapped[str | None] = mapped_column(String(50), nullable=True)
    faks_no: Mapped[str | None] = mapped_column(String(50), nullable=True)
    gsm_no: Mapped[str | None] = mapped_column(String(50), nullable=True)
    e_posta: Mapped[str | None] = mapped_column(String(255), nullable=True)
    motor_no: Mapped[str | None] = mapped_column(String(100), nullable=True)
    sase_no: Mapped[str | None] = mapped_column(String(100), nullable=True)
    ruhsat_no: Mapped[str | None] = mapped_column(String(100), nullable=True)
    referans_grubu: Mapped[str | None] = mapped_column(String(100), nullable=True)
    ozel_kod_adi: Mapped[str | None] = mapped_column(String(255), nullable=True)
    meslek_grubu: Mapped[str | None] = mapped_column(String(100), nullable=True)
    model_yili: Mapped[int | None] = mapped_column(Integer, nullable=True)
    alternatif_hesap_kodu: Mapped[str | None] = mapped_column(String(100), nullable=True)
    musteri_tipi: Mapped[str | None] = mapped_column(String(50), nullable=True)
    adres_1: Mapped[str | None] = mapped_column(Text, nullable=True)
    adres_2: Mapped[str | None] = mapped_column(Text, nullable=True)
    normal_kayit_tipi: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # Renewal history
    eski_police_brut_prim: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    eski_police_net_prim: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    eski_police_acente_komisyonu: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    eski_police_no: Mapped[str | None] = mapped_column(String(100), nullable=True)
    eski_police_turu: Mapped[str | None] = mapped_column(String(100), nullable=True)
    eski_police_sigorta_sirketi: Mapped[str | None] = mapped_column(String(255), nullable=True)
    eski_police_tanzim_tarihi: Mapped[date | None] = mapped_column(Date, nullable=True)
    eski_police_ana_brans: Mapped[str | None] = mapped_column(String(100), nullable=True)
    eski_police_bitis_tarihi: Mapped[date | None] = mapped_column(Date, nullable=True)
    yeni_police_brut_prim: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    yeni_police_net_prim: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    yeni_police_acente_komisyonu: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    yeni_police_no: Mapped[str | None] = mapped_column(String(100), nullable=True)
    yeni_police_turu: Mapped[str | None] = mapped_column(String(100), nullable=True)
    yeni_police_sigorta_sirketi: Mapped[str | None] = mapped_column(String(255), nullable=True)
    yeni_police_tanzim_tarihi: Mapped[date | None] = mapped_column(Date, nullable=True)
    yeni_police_ana_brans: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # Account card
    hesap_adi_2: Mapped[str | None] = mapped_column(String(255), nullable=True)
    portfoy_hakki: Mapped[str | None] = mapped_column(String(100), nullable=True)
    ozel_saha_1: Mapped[str | None] = mapped_column(String(255), nullable=True)
    ozel_saha_2: Mapped[str | None] = mapped_column(String(255), nullable=True)
    ozel_saha_3: Mapped[str | None] = mapped_column(String(255), nullable=True)
    ortaklik_katki_payi: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    musteri_karti_tipi: Mapped[str | None] = mapped_column(String(100), nullable=True)
    duzenleme_nedeni: Mapped[str | None] = mapped_column(String(255), nullable=True)
    dask_police_no: Mapped[str | None] = mapped_column(String(100), nullable=True)
    dogum_tarihi: Mapped[date | None] = mapped_column(Date, nullable=True)
    izinli_pazarlama: Mapped[str | None] = mapped_column(String(50), nullable=True)
    kvkk: Mapped[str | None] = mapped_column(String(50), nullable=True)
    hesap_temsilci_adi: Mapped[str | None] = mapped_column(String(255), nullable=True)
    cinsiyet: Mapped[str | None] = mapped_column(String(20), nullable=True)
    police_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    firma_tipi: Mapped[str | None] = mapped_column(String(100), nullable=True)
    kur_farki_zeyli: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Earned premium and loss ratio
    kazanilmis_net_prim: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    kazanilmis_brut_prim: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    kazanilmis_net_prim_dvz: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    hasar_karlilik_tl: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    hasar_karlilik_dvz: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    hasar_karlilik_orani_yuzde: Mapped[Decimal | None] = mapped_column(Percent, nullable=True)
    sigortali_tckn: Mapped[str | None] = mapped_column(String(20), nullable=True)
    riziko_uavt_kodu: Mapped[str | None] = mapped_column(String(50), nullable=True)
    arac_bedeli: Mapped[Decimal | None] = mapped_column(Money, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )


class CustomerProfile(Base):
    """Aggregate read model, one row per customer account.

    Rebuilt from the ``customers`` table by the profile synchronization job;
    aggregate columns are never patched incrementally.

    Attributes:
        hesap_kodu: Account code shared by every policy of the customer.
        toplam_police: Number of policies.
        aktif_police: Policies whose end date has not passed.
        toplam_brut_prim: Sum of gross premiums.
        toplam_net_prim: Sum of net premiums.
        sahip_olunan_urunler: Comma-separated distinct primary branches.
        sahip_olunan_police_turleri: Comma-separated distinct policy types.
        arac_sayisi: Distinct vehicle plates.
        arac_bilgileri: JSON list of ``{"marka", "model", "yil"}`` objects.
        ai_analiz: Free-text analysis written by the insights module; kept across syncs.
    """

    __tablename__ = "customer_profiles"

    id: Mapped[str] = mapped_column(CHAR(36), primary_key=True, default=generate_uuid)
    hesap_kodu: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    tc_kimlik_no: Mapped[str | None] = mapped_column(String(20), nullable=True)
    vergi_kimlik_no: Mapped[str | None] = mapped_column(String(20), nullable=True)
    musteri_ismi: Mapped[str | None] = mapped_column(String(255), nullable=True)
    musteri_tipi: Mapped[str | None] = mapped_column(String(50), nullable=True)

    telefon_1: Mapped[str | None] = mapped_column(String(50), nullable=True)
    telefon_2: Mapped[str | None] = mapped_column(String(50), nullable=True)
    gsm_no: Mapped[str | None] = mapped_column(String(50), nullable=True)
    e_posta: Mapped[str | None] = mapped_column(String(255), nullable=True)
    faks_no: Mapped[str | None] = mapped_column(String(50), nullable=True)

    sehir: Mapped[str | None] = mapped_column(String(100), nullable=True)
    semt: Mapped[str | None] = mapped_column(String(100), nullable=True)
    ilce: Mapped[str | None] = mapped_column(String(100), nullable=True)
    adres_1: Mapped[str | None] = mapped_column(Text, nullable=True)
    adres_2: Mapped[str | None] = mapped_column(Text, nullable=True)

    dogum_tarihi: Mapped[date | None] = mapped_column(Date, nullable=True)
    cinsiyet: Mapped[str | None] = mapped_column(String(20), nullable=True)
    meslek_grubu: Mapped[str | None] = mapped_column(String(100), nullable=True)
    referans_grubu: Mapped[str | None] = mapped_column(String(100), nullable=True)
    musteri_karti_tipi: Mapped[str | None] = mapped_column(String(100), nullable=True)
    alternatif_hesap_kodu: Mapped[str | None] = mapped_column(String(100), nullable=True)
    hesap_temsilci_adi: Mapped[str | None] = mapped_column(String(255), nullable=True)
    sube_adi: Mapped[str | None] = mapped_column(String(255), nullable=True)
    izinli_pazarlama: Mapped[str | None] = mapped_column(String(50), nullable=True)
    kvkk: Mapped[str | None] = mapped_column(String(50), nullable=True)

    toplam_police: Mapped[int] = mapped_column(Integer, default=0)
    aktif_police: Mapped[int] = mapped_column(Integer, default=0)
    toplam_brut_prim: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"))
    toplam_net_prim: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"))
    sahip_olunan_urunler: Mapped[str | None] = mapped_column(Text, nullable=True)
    sahip_olunan_police_turleri: Mapped[str | None] = mapped_column(Text, nullable=True)
    arac_sayisi: Mapped[int] = mapped_column(Integer, default=0)
    arac_bilgileri: Mapped[str | None] = mapped_column(Text, nullable=True)

    ai_analiz: Mapped[str | None] = mapped_column(Text, nullable=True)
    ai_analiz_tarihi: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )


# Contact/identity columns a profile copies from the customer's latest policy
PROFILE_COPIED_FIELDS: tuple[str, ...] = (
    "tc_kimlik_no",
    "vergi_kimlik_no",
    "musteri_ismi",
    "musteri_tipi",
    "telefon_1",
    "telefon_2",
    "gsm_no",
    "e_posta",
    "faks_no",
    "sehir",
    "semt",
    "ilce",
    "adres_1",
    "adres_2",
    "dogum_tarihi",
    "cinsiyet",
    "meslek_grubu",
    "referans_grubu",
    "musteri_karti_tipi",
    "alternatif_hesap_kodu",
    "hesap_temsilci_adi",
    "sube_adi",
    "izinli_pazarlama",
    "kvkk",
)
