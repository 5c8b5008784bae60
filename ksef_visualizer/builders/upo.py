"""
Layout builder for UPO (Urzedowe Poswiadczenie Odbioru) v4.2 documents.

A UPO confirms that KSeF accepted one or more invoices in a session. It is
rendered as a landscape page: submission metadata first, then one table row
per confirmed document.
"""

import logging

from ..constants import CONTEXT_ID_KINDS
from ..errors import MissingRequiredStructure
from ..formatters import display, format_date, format_datetime, optional_field, required_field
from ..layout import Rule, Table, Text, section
from ..xml_tree import attr, child, children, text

logger = logging.getLogger(__name__)

TITLE = "Urzedowe Poswiadczenie Odbioru Dokumentu Elektronicznego KSeF"

# Confirmed documents table: (key, header, formatter, relative width)
DOCUMENT_COLUMNS = [
    ("nr_ksef", "Numer KSeF dokumentu", None, 48),
    ("numer", "Numer faktury", None, 30),
    ("nip", "NIP sprzedawcy", None, 20),
    ("data_wystawienia", "Data wystawienia", format_date, 18),
    ("data_przeslania", "Data przeslania", format_datetime, 26),
    ("data_nadania", "Data nadania numeru KSeF", format_datetime, 26),
    ("skrot", "Skrot dokumentu", None, 60),
    ("tryb", "Tryb wysylki", None, 16),
]


def _context_id(potwierdzenie):
    """First identifier found under ``Uwierzytelnienie/IdKontekstu``."""
    kontekst = child(potwierdzenie, "Uwierzytelnienie", "IdKontekstu")
    for tag, label in CONTEXT_ID_KINDS.items():
        value = text(kontekst, tag)
        if value:
            return f"{label}: {value}"
    return None


def parse_potwierdzenie(potwierdzenie: dict) -> dict:
    """Flatten a ``Potwierdzenie`` node into the dict the layout works from."""
    if not isinstance(potwierdzenie, dict):
        raise MissingRequiredStructure("Niepoprawny XML UPO: brak elementu Potwierdzenie")

    uwierzytelnienie = child(potwierdzenie, "Uwierzytelnienie")
    opis = child(potwierdzenie, "OpisPotwierdzenia")
    return {
        "podmiot": text(potwierdzenie, "NazwaPodmiotuPrzyjmujacego"),
        "sesja": text(potwierdzenie, "NumerReferencyjnySesji"),
        "kontekst": _context_id(potwierdzenie),
        "skrot_uwierzytelnienia": (text(uwierzytelnienie, "SkrotDokumentuUwierzytelniajacego")
                                   or text(uwierzytelnienie, "NumerReferencyjnyTokenaKSeF")),
        "struktura": text(potwierdzenie, "NazwaStrukturyLogicznej"),
        "kod_formularza": text(potwierdzenie, "KodFormularza"),
        "kod_systemowy": attr(child(potwierdzenie, "KodFormularza"), "kodSystemowy"),
        "strona": text(opis, "Strona"),
        "liczba_stron": text(opis, "LiczbaStron"),
        "zakres_od": text(opis, "ZakresDokumentowOd"),
        "zakres_do": text(opis, "ZakresDokumentowDo"),
        "liczba_dokumentow": text(opis, "CalkowitaLiczbaDokumentow"),
        "dokumenty": [
            {
                "nip": text(dok, "NipSprzedawcy"),
                "nr_ksef": text(dok, "NumerKSeFDokumentu"),
                "numer": text(dok, "NumerFaktury"),
                "data_wystawienia": text(dok, "DataWystawieniaFaktury"),
                "data_przeslania": text(dok, "DataPrzeslaniaDokumentu"),
                "data_nadania": text(dok, "DataNadaniaNumeruKSeF"),
                "skrot": text(dok, "SkrotDokumentu"),
                "tryb": text(dok, "TrybWysylki"),
            }
            for dok in children(potwierdzenie, "Dokument")
        ],
    }


def _header_rows(u):
    rows = [
        required_field("Nazwa podmiotu przyjmujacego", u["podmiot"]),
        required_field("Numer referencyjny sesji", u["sesja"]),
        required_field("Identyfikator kontekstu", u["kontekst"]),
        required_field("Skrot dokumentu uwierzytelniajacego", u["skrot_uwierzytelnienia"]),
        required_field("Nazwa struktury logicznej", u["struktura"]),
        required_field("Kod formularza", u["kod_systemowy"] or u["kod_formularza"]),
    ]
    if u["strona"] or u["liczba_stron"]:
        rows.append(required_field("Strona", f"{display(u['strona'])} z {display(u['liczba_stron'])}"))
    rows += optional_field("Zakres dokumentow od", u["zakres_od"])
    rows += optional_field("Zakres dokumentow do", u["zakres_do"])
    rows += optional_field("Calkowita liczba dokumentow", u["liczba_dokumentow"])
    return rows


def _documents_table(dokumenty):
    return Table(
        header=[col[1] for col in DOCUMENT_COLUMNS],
        rows=[[display(dok[key], formatter) for key, _, formatter, _ in DOCUMENT_COLUMNS] for dok in dokumenty],
        widths=[col[3] for col in DOCUMENT_COLUMNS],
    )


def build(potwierdzenie: dict) -> list:
    """Build the layout of a UPO document."""
    u = parse_potwierdzenie(potwierdzenie)
    logger.debug("UPO for session %s: %d document(s)", u["sesja"], len(u["dokumenty"]))

    nodes = [Text(TITLE, style="title", align="C"), Rule()]
    nodes += section("upo_naglowek", "Dane przeslania", _header_rows(u))
    nodes += section("upo_dokumenty", "Potwierdzone dokumenty",
                     [_documents_table(u["dokumenty"])] if u["dokumenty"] else [])
    return nodes
