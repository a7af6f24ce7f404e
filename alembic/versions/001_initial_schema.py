"""Initial database schema.

Revision ID: 001
Revises:
Create Date: 2026-10-18

Schema for the policy export import service:
- Customers (one row per policy line of the reconciliation export)
- Customer profiles (aggregate read model per account code)
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import mysql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all tables."""

    # Customers table (policy rows)
    op.create_table(
        "customers",
        sa.Column("id", mysql.CHAR(36), primary_key=True),
        # Policy identity
        sa.Column("tanzim_tarihi", sa.Date(), nullable=True),
        sa.Column("musteri_ismi", sa.String(255), nullable=True),
        sa.Column("hesap_kodu", sa.String(100), nullable=True),
        sa.Column("sigorta_sirketi_adi", sa.String(255), nullable=True),
        sa.Column("arac_plakasi", sa.String(50), nullable=True),
        sa.Column("ana_brans", sa.String(100), nullable=True),
        sa.Column("police_kodu", sa.String(100), nullable=True),
        sa.Column("police_turu", sa.String(100), nullable=True),
        sa.Column("donem", sa.String(50), nullable=True),
        sa.Column("police_numarasi", sa.String(100), nullable=True),
        sa.Column("zeyl_numarasi", sa.String(50), nullable=True),
        sa.Column("produktor_tali_kodu", sa.String(100), nullable=True),
        sa.Column("produktor_tali_adi", sa.String(255), nullable=True),
        sa.Column("police_kayit_tipi", sa.String(100), nullable=True),
        sa.Column("baslangic_tarihi", sa.Date(), nullable=True),
        sa.Column("bitis_tarihi", sa.Date(), nullable=True),
        sa.Column("sigorta_sirketi_kodu", sa.String(100), nullable=True),
        sa.Column("para_birimi", sa.String(20), nullable=True),

        # Premiums and commissions
        sa.Column("brut", sa.Numeric(15, 2), nullable=True),
        sa.Column("net", sa.Numeric(15, 2), nullable=True),
        sa.Column("komisyon", sa.Numeric(15, 2), nullable=True),
        sa.Column("tali_komisyonu", sa.Numeric(15, 2), nullable=True),
        sa.Column("acente_komisyonu_yuzde", sa.Numeric(10, 2), nullable=True),
        sa.Column("tali_komisyonu_yuzde", sa.Numeric(10, 2), nullable=True),
        sa.Column("temsilci_adi", sa.String(255), nullable=True),
        sa.Column("hesap_olusturma_tarihi", sa.Date(), nullable=True),
        sa.Column("police_aciklamasi", sa.Text(), nullable=True),
        sa.Column("ozel_kod", sa.String(100), nullable=True),
        sa.Column("pesin_vadeli", sa.String(50), nullable=True),
        sa.Column("pesinat", sa.Numeric(15, 2), nullable=True),
        sa.Column("taksit_sayisi", sa.Integer(), nullable=True),
        sa.Column("kur", sa.Numeric(15, 4), nullable=True),

        # Branch and vehicle
        sa.Column("brans_kodu", sa.String(50), nullable=True),
        sa.Column("ruhsat_sahibi", sa.String(255), nullable=True),
        sa.Column("yenileme_no", sa.String(50), nullable=True),
        sa.Column("evrak_no", sa.String(100), nullable=True),
        sa.Column("brans_adi", sa.String(255), nullable=True),
        sa.Column("arac_markasi", sa.String(100), nullable=True),
        sa.Column("arac_modeli", sa.String(255), nullable=True),
        sa.Column("arac_kullanim_tarzi", sa.String(100), nullable=True),
        sa.Column("riziko_adresi_1", sa.Text(), nullable=True),
        sa.Column("riziko_adresi_2", sa.Text(), nullable=True),
        sa.Column("riziko_ili", sa.String(100), nullable=True),
        sa.Column("riziko_ilcesi", sa.String(100), nullable=True),
        sa.Column("ara_brans_kodu", sa.String(50), nullable=True),

        # Collections
        sa.Column("odenen", sa.Numeric(15, 2), nullable=True),
        sa.Column("kalan", sa.Numeric(15, 2), nullable=True),
        sa.Column("sirkete_borc", sa.Numeric(15, 2), nullable=True),
        sa.Column("sirkete_kalan", sa.Numeric(15, 2), nullable=True),
        sa.Column("sirkete_odenen", sa.Numeric(15, 2), nullable=True),
        sa.Column("iptal_sebebi", sa.String(255), nullable=True),
        sa.Column("sirkete_kartla_odeme_durumu", sa.String(100), nullable=True),
        sa.Column("ara_brans", sa.String(100), nullable=True),
        sa.Column("yenilenme_durumu", sa.String(100), nullable=True),
        sa.Column("yenileme_durumu", sa.String(100), nullable=True),

        # Customer identity
        sa.Column("tc_kimlik_no", sa.String(20), nullable=True),
        sa.Column("vergi_kimlik_no", sa.String(20), nullable=True),
        sa.Column("sube_adi", sa.String(255), nullable=True),
        sa.Column("teknik_personel_adi", sa.String(255), nullable=True),
        sa.Column("yenileme_donemi", sa.String(50), nullable=True),
        sa.Column("yenileme_kodu", sa.String(50), nullable=True),

        # Contact and address
        sa.Column("sehir", sa.String(100), nullable=True),
        sa.Column("semt", sa.String(100), nullable=True),
        sa.Column("ilce", sa.String(100), nullable=True),
        sa.Column("tecdit", sa.String(50), nullable=True),
        sa.Column("tahsildar_adi", sa.String(255), nullable=True),
        sa.Column("telefon_1", sa.String(50), nullable=True),
        sa.Column("telefon_2", sa.String(50), nullable=True),
        sa.Column("faks_no", sa.String(50), nullable=True),
        sa.Column("gsm_no", sa.String(50), nullable=True),
        sa.Column("e_posta", sa.String(255), nullable=True),
        sa.Column("motor_no", sa.String(100), nullable=True),
        sa.Column("sase_no", sa.String(100), nullable=True),
        sa.Column("ruhsat_no", sa.String(100), nullable=True),
        sa.Column("referans_grubu", sa.String(100), nullable=True),
        sa.Column("ozel_kod_adi", sa.String(255), nullable=True),
        sa.Column("meslek_grubu", sa.String(100), nullable=True),
        sa.Column("model_yili", sa.Integer(), nullable=True),
        sa.Column("alternatif_hesap_kodu", sa.String(100), nullable=True),
        sa.Column("musteri_tipi", sa.String(50), nullable=True),
        sa.Column("adres_1", sa.Text(), nullable=True),
        sa.Column("adres_2", sa.Text(), nullable=True),
        sa.Column("normal_kayit_tipi", sa.String(100), nullable=True),

        # Renewal history
        sa.Column("eski_police_brut_prim", sa.Numeric(15, 2), nullable=True),
        sa.Column("eski_police_net_prim", sa.Numeric(15, 2), nullable=True),
        sa.Column("eski_police_acente_komisyonu", sa.Numeric(15, 2), nullable=True),
        sa.Column("eski_police_no", sa.String(100), nullable=True),
        sa.Column("eski_police_turu", sa.String(100), nullable=True),
        sa.Column("eski_police_sigorta_sirketi", sa.String(255), nullable=True),
        sa.Column("eski_police_tanzim_tarihi", sa.Date(), nullable=True),
        sa.Column("eski_police_ana_brans", sa.String(100), nullable=True),
        sa.Column("eski_police_bitis_tarihi", sa.Date(), nullable=True),
        sa.Column("yeni_police_brut_prim", sa.Numeric(15, 2), nullable=True),
        sa.Column("yeni_police_net_prim", sa.Numeric(15, 2), nullable=True),
        sa.Column("yeni_police_acente_komisyonu", sa.Numeric(15, 2), nullable=True),
        sa.Column("yeni_police_no", sa.String(100), nullable=True),
        sa.Column("yeni_police_turu", sa.String(100), nullable=True),
        sa.Column("yeni_police_sigorta_sirketi", sa.String(255), nullable=True),
        sa.Column("yeni_police_tanzim_tarihi", sa.Date(), nullable=True),
        sa.Column("yeni_police_ana_brans", sa.String(100), nullable=True),

        # Account card
        sa.Column("hesap_adi_2", sa.String(255), nullable=True),
        sa.Column("portfoy_hakki", sa.String(100), nullable=True),
        sa.Column("ozel_saha_1", sa.String(255), nullable=True),
        sa.Column("ozel_saha_2", sa.String(255), nullable=True),
        sa.Column("ozel_saha_3", sa.String(255), nullable=True),
        sa.Column("ortaklik_katki_payi", sa.Numeric(15, 2), nullable=True),
        sa.Column("musteri_karti_tipi", sa.String(100), nullable=True),
        sa.Column("duzenleme_nedeni", sa.String(255), nullable=True),
        sa.Column("dask_police_no", sa.String(100), nullable=True),
        sa.Column("dogum_tarihi", sa.Date(), nullable=True),
        sa.Column("izinli_pazarlama", sa.String(50), nullable=True),
        sa.Column("kvkk", sa.String(50), nullable=True),
        sa.Column("hesap_temsilci_adi", sa.String(255), nullable=True),
        sa.Column("cinsiyet", sa.String(20), nullable=True),
        sa.Column("police_id", sa.String(100), nullable=True),
        sa.Column("firma_tipi", sa.String(100), nullable=True),
        sa.Column("kur_farki_zeyli", sa.String(50), nullable=True),

        # Earned premium and loss ratio
        sa.Column("kazanilmis_net_prim", sa.Numeric(15, 2), nullable=True),
        sa.Column("kazanilmis_brut_prim", sa.Numeric(15, 2), nullable=True),
        sa.Column("kazanilmis_net_prim_dvz", sa.Numeric(15, 2), nullable=True),
        sa.Column("hasar_karlilik_tl", sa.Numeric(15, 2), nullable=True),
        sa.Column("hasar_karlilik_dvz", sa.Numeric(15, 2), nullable=True),
        sa.Column("hasar_karlilik_orani_yuzde", sa.Numeric(10, 2), nullable=True),
        sa.Column("sigortali_tckn", sa.String(20), nullable=True),
        sa.Column("riziko_uavt_kodu", sa.String(50), nullable=True),
        sa.Column("arac_bedeli", sa.Numeric(15, 2), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_customers_hesap_kodu", "customers", ["hesap_kodu"])
    op.create_index("ix_customers_tc_kimlik_no", "customers", ["tc_kimlik_no"])
    op.create_index("ix_customers_police_numarasi", "customers", ["police_numarasi"])

    # Customer profiles table (rebuilt by the sync job)
    op.create_table(
        "customer_profiles",
        sa.Column("id", mysql.CHAR(36), primary_key=True),
        sa.Column("hesap_kodu", sa.String(100), nullable=False, unique=True),
        sa.Column("tc_kimlik_no", sa.String(20), nullable=True),
        sa.Column("vergi_kimlik_no", sa.String(20), nullable=True),
        sa.Column("musteri_ismi", sa.String(255), nullable=True),
        sa.Column("musteri_tipi", sa.String(50), nullable=True),

        sa.Column("telefon_1", sa.String(50), nullable=True),
        sa.Column("telefon_2", sa.String(50), nullable=True),
        sa.Column("gsm_no", sa.String(50), nullable=True),
        sa.Column("e_posta", sa.String(255), nullable=True),
        sa.Column("faks_no", sa.String(50), nullable=True),

        sa.Column("sehir", sa.String(100), nullable=True),
        sa.Column("semt", sa.String(100), nullable=True),
        sa.Column("ilce", sa.String(100), nullable=True),
        sa.Column("adres_1", sa.Text(), nullable=True),
        sa.Column("adres_2", sa.Text(), nullable=True),

        sa.Column("dogum_tarihi", sa.Date(), nullable=True),
        sa.Column("cinsiyet", sa.String(20), nullable=True),
        sa.Column("meslek_grubu", sa.String(100), nullable=True),
        sa.Column("referans_grubu", sa.String(100), nullable=True),
        sa.Column("musteri_karti_tipi", sa.String(100), nullable=True),
        sa.Column("alternatif_hesap_kodu", sa.String(100), nullable=True),
        sa.Column("hesap_temsilci_adi", sa.String(255), nullable=True),
        sa.Column("sube_adi", sa.String(255), nullable=True),
        sa.Column("izinli_pazarlama", sa.String(50), nullable=True),
        sa.Column("kvkk", sa.String(50), nullable=True),


        sa.Column("toplam_police", sa.Integer(), server_default="0"),
        sa.Column("aktif_police", sa.Integer(), server_default="0"),
        sa.Column("toplam_brut_prim", sa.Numeric(15, 2), server_default="0"),
        sa.Column("toplam_net_prim", sa.Numeric(15, 2), server_default="0"),
        sa.Column("sahip_olunan_urunler", sa.Text(), nullable=True),
        sa.Column("sahip_olunan_police_turleri", sa.Text(), nullable=True),
        sa.Column("arac_sayisi", sa.Integer(), server_default="0"),
        sa.Column("arac_bilgileri", sa.Text(), nullable=True),
        sa.Column("ai_analiz", sa.Text(), nullable=True),
        sa.Column("ai_analiz_tarihi", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("customer_profiles")
    op.drop_index("ix_customers_police_numarasi", table_name="customers")
    op.drop_index("ix_customers_tc_kimlik_no", table_name="customers")
    op.drop_index("ix_customers_hesap_kodu", table_name="customers")
    op.drop_table("customers")
