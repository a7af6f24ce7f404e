"""Column table for the policy-management system's reconciliation export.

Every export column the CRM understands is declared once in
``CUSTOMER_FIELDS``: the target ``Customer`` column, the value type used to
parse the raw cell, the header spellings seen across export variants, and
the fixed column position in the comma-delimited layout (``None`` for
columns that layout does not carry).
"""

import enum
from dataclasses import dataclass

from acente_crm.imports.exceptions import ImportFileError


class FieldType(str, enum.Enum):
    """Value type of an export column."""

    TEXT = "text"
    DATE = "date"
    DECIMAL = "decimal"
    INTEGER = "integer"


@dataclass(frozen=True)
class FieldSpec:
    """One export column.

    Attributes:
        target: ``Customer`` attribute the value is stored in.
        value_type: Parser applied to the raw cell.
        headers: Header spellings, first one canonical.
        index: Position in the comma-delimited layout.
    """

    target: str
    value_type: FieldType
    headers: tuple[str, ...]
    index: int | None = None


T = FieldType.TEXT
D = FieldType.DATE
N = FieldType.DECIMAL
I = FieldType.INTEGER  # noqa: E741


def _field(target: str, value_type: FieldType, *headers: str, index: int | None = None) -> FieldSpec:
    return FieldSpec(target=target, value_type=value_type, headers=headers, index=index)


CUSTOMER_FIELDS: tuple[FieldSpec, ...] = (
    _field("tanzim_tarihi", D, "Tanzim Tarihi", index=0),
    _field("musteri_ismi", T, "Müşteri İsmi", "Ünvan", "Sigorta Ettiren", index=1),
    _field("hesap_kodu", T, "Hesap Kodu", index=2),
    _field("sigorta_sirketi_adi", T, "Sigorta Şirketi Adı", index=3),
    _field("arac_plakasi", T, "Araç Plakası", index=4),
    _field("ana_brans", T, "Ana Branş", index=5),
    _field("police_kodu", T, "Poliçe Kodu", index=6),
    _field("police_turu", T, "Poliçe Türü", index=7),
    _field("donem", T, "Dönem", index=8),
    _field("police_numarasi", T, "Poliçe Numarası", "Poliçe No", index=9),
    _field("zeyl_numarasi", T, "Zeyl Numarası", "Zeyl No", index=10),
    _field(
        "produktor_tali_kodu",
        T,
        "Prodüktör (Tali) Kodu",
        "Prodüktör Tali Kodu",
        "Prodüktör / Tali Kodu",
        index=11,
    ),
    _field(
        "produktor_tali_adi",
        T,
        "Prodüktör (Tali) Adı",
        "Prodüktör Tali Adı",
        "Prodüktör/ Tali Adı",
        index=12,
    ),
    _field("police_kayit_tipi", T, "Poliçe Kayıt Tipi", index=13),
    _field("baslangic_tarihi", D, "Başlangıç Tarihi", "Poliçe Başlangıç Tarihi", index=14),
    _field("bitis_tarihi", D, "Bitiş Tarihi", "Poliçe Bitiş Tarihi", index=15),
    _field("sigorta_sirketi_kodu", T, "Sigorta Şirketi Kodu", index=16),
    _field("para_birimi", T, "Para Birimi", index=17),
    _field("brut", N, "Brüt", index=18),
    _field("net", N, "Net", index=19),
    _field("komisyon", N, "Komisyon", index=20),
    _field("tali_komisyonu", N, "Tali Komisyonu", index=21),
    _field("acente_komisyonu_yuzde", N, "Acente Komisyonu %", index=22),
    _field("tali_komisyonu_yuzde", N, "Tali Komisyonu %", index=23),
    _field("temsilci_adi", T, "Temsilci Adı", index=25),
    _field("hesap_olusturma_tarihi", D, "Hesap Oluşturma Tarihi", index=26),
    _field("police_aciklamasi", T, "Poliçe Açıklaması", index=27),
    _field("ozel_kod", T, "Özel Kod", index=28),
    _field("pesin_vadeli", T, "Peşin/Vadeli", index=29),
    _field("pesinat", N, "Peşinat", index=30),
    _field("taksit_sayisi", I, "Taksit Sayısı", index=31),
    _field("kur", N, "Kur", index=32),
    _field("brans_kodu", T, "Branş Kodu", index=33),
    _field("ruhsat_sahibi", T, "Ruhsat Sahibi", index=34),
    _field("yenileme_no", T, "Yenileme No", index=35),
    _field("evrak_no", T, "Evrak No", index=36),
    _field("brans_adi", T, "Branş Adı", index=37),
    _field("arac_markasi", T, "Araç Markası", "Araç Marka", index=38),
    _field("arac_modeli", T, "Araç Modeli", "Araç Model", index=39),
    _field("arac_kullanim_tarzi", T, "Araç Kullanım Tarzı", index=40),
    _field("riziko_adresi_1", T, "Riziko Adresi 1", index=41),
    _field("riziko_adresi_2", T, "Riziko Adresi 2", index=42),
    _field("riziko_ili", T, "Riziko İli", index=43),
    _field("riziko_ilcesi", T, "Riziko İlçesi", index=44),
    _field("ara_brans_kodu", T, "Ara Branş Kodu"),
    _field("odenen", N, "Ödenen", index=45),
    _field("kalan", N, "Kalan", index=46),
    _field("sirkete_borc", N, "Şirkete Borç", index=47),
    _field("sirkete_kalan", N, "Şirkete Kalan", index=48),
    _field("sirkete_odenen", N, "Şirkete Ödenen", index=49),
    _field("iptal_sebebi", T, "İptal Sebebi", index=50),
    _field("sirkete_kartla_odeme_durumu", T, "Şirkete Kartla Ödeme Durumu", index=53),
    _field("ara_brans", T, "Ara Branş", index=54),
    _field("yenilenme_durumu", T, "Yenilenme Durumu", index=55),
    _field("yenileme_durumu", T, "Yenileme Durumu", index=56),
    _field("tc_kimlik_no", T, "T.C. Kimlik No", "TC Kimlik No", index=57),
    _field("vergi_kimlik_no", T, "Vergi Kimlik No", index=58),
    _field("sube_adi", T, "Şube Adı", index=59),
    _field("teknik_personel_adi", T, "Teknik Personel Adı", index=60),
    _field("yenileme_donemi", T, "Yenileme Dönemi", index=61),
    _field("yenileme_kodu", T, "Yenileme Kodu", index=62),
    _field("sehir", T, "Şehir", index=63),
    _field("semt", T, "Semt", index=64),
    _field("ilce", T, "İlçe"),
    _field("tecdit", T, "Tecdit"),
    _field("tahsildar_adi", T, "Tahsildar Adı", index=65),
    _field("telefon_1", T, "Telefon 1", index=66),
    _field("telefon_2", T, "Telefon 2", index=67),
    _field("faks_no", T, "Faks No", index=68),
    _field("gsm_no", T, "GSM No", index=69),
    _field("e_posta", T, "E-Posta", index=70),
    _field("motor_no", T, "Motor No", index=71),
    _field("sase_no", T, "Şase No", index=72),
    _field("ruhsat_no", T, "Ruhsat No", index=73),
    _field("referans_grubu", T, "Referans Grubu", index=74),
    _field("ozel_kod_adi", T, "Özel Kod Adı", index=75),
    _field("meslek_grubu", T, "Meslek Grubu", index=76),
    _field("model_yili", I, "Model Yılı", index=77),
    _field("alternatif_hesap_kodu", T, "Alternatif Hesap Kodu", index=78),
    _field("musteri_tipi", T, "Müşteri Tipi", index=79),
    _field("adres_1", T, "Adres 1", index=80),
    _field("adres_2", T, "Adres 2", index=81),
    _field("normal_kayit_tipi", T, "Normal Kayıt Tipi", index=82),
    _field("eski_police_brut_prim", N, "Eski Poliçe Brüt Prim", index=83),
    _field("eski_police_net_prim", N, "Eski Poliçe Net Prim", index=84),
    _field("eski_police_acente_komisyonu", N, "Eski Poliçe Acente Komisyonu", index=85),
    _field("eski_police_no", T, "Eski Poliçe No", index=86),
    _field("eski_police_turu", T, "Eski Poliçe Türü", index=87),
    _field("eski_police_sigorta_sirketi", T, "Eski Poliçe Sigorta Şirketi", index=88),
    _field("eski_police_tanzim_tarihi", D, "Eski Poliçe Tanzim Tarihi", index=89),
    _field("eski_police_ana_brans", T, "Eski Poliçe Ana Branş", index=90),
    _field("eski_police_bitis_tarihi", D, "Eski Poliçe Bitiş Tarihi", index=91),
    _field("yeni_police_brut_prim", N, "Yeni Poliçe Brüt Prim", index=92),
    _field("yeni_police_net_prim", N, "Yeni Poliçe Net Prim", index=93),
    _field("yeni_police_acente_komisyonu", N, "Yeni Poliçe Acente Komisyonu", index=94),
    _field("yeni_police_no", T, "Yeni Poliçe No", index=95),
    _field("yeni_police_turu", T, "Yeni Poliçe Türü", index=96),
    _field("yeni_police_sigorta_sirketi", T, "Yeni Poliçe Sigorta Şirketi", index=97),
    _field("yeni_police_tanzim_tarihi", D, "Yeni Poliçe Tanzim Tarihi", index=98),
    _field("yeni_police_ana_brans", T, "Yeni Poliçe Ana Branş", index=99),
    _field("hesap_adi_2", T, "Hesap Adı 2"),
    _field("portfoy_hakki", T, "Portföy Hakkı"),
    _field("ozel_saha_1", T, "Özel Saha 1"),
    _field("ozel_saha_2", T, "Özel Saha 2"),
    _field("ortaklik_katki_payi", N, "Ortaklık Katkı Payı"),
    _field("musteri_karti_tipi", T, "Müşteri Kartı Tipi"),
    _field("duzenleme_nedeni", T, "Düzenleme Nedeni"),
    _field("dask_police_no", T, "DASK Poliçe No"),
    _field("dogum_tarihi", D, "Doğum Tarihi", index=111),
    _field("izinli_pazarlama", T, "İzinli Pazarlama"),
    _field("kvkk", T, "KVKK"),
    _field("hesap_temsilci_adi", T, "Hesap Temsilci Adı"),
    _field("cinsiyet", T, "Cinsiyet", index=116),
    _field("ozel_saha_3", T, "Özel Saha 3"),
    _field("police_id", T, "Poliçe ID"),
    _field("firma_tipi", T, "Firma Tipi"),
    _field("kur_farki_zeyli", T, "Kur Farkı Zeyli"),
    _field("kazanilmis_net_prim", N, "Kazanılmış Net Prim"),
    _field("kazanilmis_brut_prim", N, "Kazanılmış Brüt Prim"),
    _field("kazanilmis_net_prim_dvz", N, "Kazanılmış Net Prim (Dvz)"),
    _field("hasar_karlilik_tl", N, "Hasar Karlılık (TL)"),
    _field("hasar_karlilik_dvz", N, "Hasar Karlılık (Dvz)"),
    _field("hasar_karlilik_orani_yuzde", N, "Hasar Karlılık Oranı (%)"),
    _field("sigortali_tckn", T, "Sigortalı TCKN"),
    _field("riziko_uavt_kodu", T, "Riziko UAVT Kodu"),
    _field("arac_bedeli", N, "Araç Bedeli"),
)

# Identity keys of a record; every other field is optional
ACCOUNT_FIELD = "hesap_kodu"
NATIONAL_ID_FIELD = "tc_kimlik_no"
TAX_ID_FIELD = "vergi_kimlik_no"

FIELDS_BY_TARGET: dict[str, FieldSpec] = {spec.target: spec for spec in CUSTOMER_FIELDS}


def normalize_header(header: object) -> str:
    """Normalize a header cell for lookup.

    Case-folds and collapses whitespace so "TC KIMLIK  No" and
    "tc kimlik no" compare equal.

    Args:
        header: Raw header cell.

    Returns:
        str: Lookup key.
    """
    return " ".join(str(header).casefold().split())


HEADER_LOOKUP: dict[str, FieldSpec] = {
    normalize_header(header): spec for spec in CUSTOMER_FIELDS for header in spec.headers
}

INDEXED_FIELDS: tuple[FieldSpec, ...] = tuple(
    spec for spec in CUSTOMER_FIELDS if spec.index is not None
)


def lookup_field(header: object) -> FieldSpec | None:
    """Find the field for a header cell, by alias or by target name.

    Args:
        header: Raw header cell ("Brüt", "Poliçe No", or "brut").

    Returns:
        FieldSpec | None: Matching field or None if not recognized.
    """
    key = normalize_header(header)
    spec = HEADER_LOOKUP.get(key)
    if spec is None:
        spec = FIELDS_BY_TARGET.get(key)
    return spec


def map_columns_by_name(header: list[str]) -> tuple[dict[int, FieldSpec], list[str]]:
    """Map header positions to fields by header name.

    Tolerates reordered columns; the first occurrence of a field wins when
    two headers resolve to the same target.

    Args:
        header: Header row cells.

    Returns:
        tuple: (position -> FieldSpec mapping, unmapped header names).
    """
    column_map: dict[int, FieldSpec] = {}
    seen: set[str] = set()
    unmapped: list[str] = []

    for position, name in enumerate(header):
        spec = lookup_field(name)
        if spec is None:
            if str(name).strip():
                unmapped.append(str(name).strip())
            continue
        if spec.target in seen:
            continue
        seen.add(spec.target)
        column_map[position] = spec

    return column_map, unmapped


def map_columns_by_index(
    header: list[str],
    fields: tuple[FieldSpec, ...] = INDEXED_FIELDS,
) -> dict[int, FieldSpec]:
    """Map fixed positions to fields for the frozen comma-delimited layout.

    The header row must be at least as wide as the layout; a narrower header
    means an upstream column was removed and every later column would be
    read from the wrong position.

    Args:
        header: Header row cells.
        fields: Fields carrying a fixed index.

    Returns:
        dict[int, FieldSpec]: Position -> FieldSpec mapping.

    Raises:
        ImportFileError: If the header has fewer columns than the layout needs.
    """
    required = max(spec.index for spec in fields) + 1
    if len(header) < required:
        raise ImportFileError(
            f"Header has {len(header)} columns, fixed layout needs at least {required}"
        )
    return {spec.index: spec for spec in fields}
