"""
Layout builder for FA (1) invoices.

Schema: http://crd.gov.pl/wzor/2021/11/29/11089/
"""

import logging

from ..errors import MissingRequiredStructure
from ..formatters import (
    format_address_lines,
    format_currency,
    format_date,
    format_flag,
    format_quantity,
    optional_field,
)
from ..layout import section
from ..xml_tree import child, children, text
from . import common

logger = logging.getLogger(__name__)

# VAT summary rows: (net field, VAT field, VAT in PLN field, rate label)
VAT_SUMMARY_FIELDS = [
    ("P_13_1", "P_14_1", "P_14_1W", "23% lub 22%"),
    ("P_13_2", "P_14_2", "P_14_2W", "8% lub 7%"),
    ("P_13_3", "P_14_3", "P_14_3W", "5%"),
    ("P_13_4", "P_14_4", "P_14_4W", "Ryczalt dla taksowek"),
    ("P_13_5", "P_14_5", None, "Procedura szczegolna OSS"),
    ("P_13_6", None, None, "0%"),
    ("P_13_7", None, None, "Zwolnione z podatku"),
]

# FaWiersz tags: key -> tag
LINE_FIELDS = {
    "nr": "NrWierszaFa",
    "uu_id": "UU_ID",
    "p_6a": "P_6A",
    "nazwa": "P_7",
    "indeks": "Indeks",
    "gtin": "GTIN",
    "pkwiu": "PKWiU",
    "cn": "CN",
    "pkob": "PKOB",
    "jm": "P_8A",
    "ilosc": "P_8B",
    "cena_netto": "P_9A",
    "cena_brutto": "P_9B",
    "rabat": "P_10",
    "netto": "P_11",
    "brutto": "P_11A",
    "stawka": "P_12",
    "stawka_oss": "P_12_XII",
    "gtu": "GTU",
    "procedura": "Procedura",
    "kurs": "KursWaluty",
    "stan_przed": "StanPrzed",
}

OPTIONAL_LINE_COLUMNS = [
    ("indeks", "Indeks", None, "L", 16),
    ("gtin", "GTIN", None, "L", 18),
    ("pkwiu", "PKWiU", None, "L", 16),
    ("cn", "CN", None, "L", 14),
    ("pkob", "PKOB", None, "L", 14),
    ("cena_brutto", "Cena jedn. brutto", format_currency, "R", 20),
    ("rabat", "Rabat", format_currency, "R", 14),
    ("brutto", "Wartosc brutto", format_currency, "R", 20),
    ("stawka_oss", "Stawka OSS", format_quantity, "C", 12),
    ("p_6a", "Data dostawy", format_date, "C", 18),
    ("gtu", "GTU", None, "C", 12),
    ("procedura", "Procedura", None, "C", 16),
    ("kurs", "Kurs waluty", format_quantity, "R", 14),
    ("stan_przed", "Stan przed", format_flag, "C", 12),
]


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

def _parse_podmiot(podmiot) -> dict:
    """Parse Podmiot1, Podmiot2 or Podmiot3; contact data sits directly on the party."""
    dane = child(podmiot, "DaneIdentyfikacyjne")
    return {
        "nip": text(dane, "NIP"),
        "kod_ue": text(dane, "KodUE"),
        "nr_vat_ue": text(dane, "NrVatUE"),
        "kod_kraju_id": text(dane, "KodKraju"),
        "nr_id": text(dane, "NrID"),
        "brak_id": text(dane, "BrakID"),
        "nazwa": text(dane, "PelnaNazwa") or text(dane, "ImieNazwisko"),
        "nazwa_handlowa": text(dane, "NazwaHandlowa"),
        "prefiks": text(podmiot, "PrefiksPodatnika"),
        "nr_eori": text(podmiot, "NrEORI"),
        "adres": format_address_lines(child(podmiot, "Adres")),
        "adres_koresp": format_address_lines(child(podmiot, "AdresKoresp")),
        "kontakty": [(text(podmiot, "Email"), text(podmiot, "Telefon"))],
        "nr_klienta": text(podmiot, "NrKlienta"),
        "status": text(podmiot, "StatusInfoPodatnika"),
        "rola": text(podmiot, "Rola"),
        "opis_roli": text(podmiot, "OpisRoli"),
        "udzial": text(podmiot, "Udzial"),
    }


def _parse_korekta(fa) -> dict:
    dane = []
    for el in children(fa, "DaneFaKorygowanej"):
        dane.append({
            "data": text(el, "DataWystFaKorygowanej"),
            "numer": text(el, "NrFaKorygowanej"),
            "nr_ksef": text(el, "NrKSeFFaKorygowanej"),
            "poza_ksef": text(el, "NrKSeFN"),
        })
    return {
        "przyczyna": text(fa, "PrzyczynaKorekty"),
        "typ": text(fa, "TypKorekty"),
        "dane": dane,
        "okres": text(fa, "OkresFaKorygowanej"),
        "nr_fa_korygowany": text(fa, "NrFaKorygowany"),
    }


def _parse_adnotacje(adnotacje) -> dict:
    """FA (1) keeps every annotation marker directly under ``Adnotacje``."""
    flags = [
        "P_16", "P_17", "P_18", "P_18A", "P_19", "P_19A", "P_19B", "P_19C",
        "P_20", "P_20A", "P_20B", "P_21", "P_21A", "P_21B", "P_21C", "P_22", "P_23",
        "P_PMarzy", "P_PMarzy_2", "P_PMarzy_3_1", "P_PMarzy_3_2", "P_PMarzy_3_3",
    ]
    parsed = {tag.lower(): text(adnotacje, tag) for tag in flags}
    parsed["p_42_5"] = text(adnotacje, "P_42_5")
    parsed["srodki_transportu"] = [
        {
            "data": text(el, "P_22A"),
            "marka": text(el, "P_22BMK"),
            "model": text(el, "P_22BMD"),
            "vin": text(el, "P_22BVIN"),
        }
        for el in children(adnotacje, "NowySrodekTransportu")
    ]
    return parsed


def _parse_platnosc(platnosc) -> dict:
    if not isinstance(platnosc, dict):
        return {}
    return {
        "zaplacono": text(platnosc, "Zaplacono"),
        "data_zaplaty": text(platnosc, "DataZaplaty"),
        "terminy": [
            (text(t, "TerminPlatnosci"), text(t, "TerminPlatnosciOpis"))
            for t in children(platnosc, "TerminyPlatnosci")
        ],
        "forma": text(platnosc, "FormaPlatnosci"),
        "platnosc_inna": text(platnosc, "PlatnoscInna"),
        "opis_platnosci": text(platnosc, "OpisPlatnosci"),
        "rachunki": [
            {
                "nr": text(r, "NrRB"),
                "swift": text(r, "SWIFT"),
                "nazwa_banku": text(r, "NazwaBanku"),
                "opis": text(r, "OpisRachunku"),
            }
            for r in children(platnosc, "RachunekBankowy")
        ],
        "skonto_warunki": text(platnosc, "Skonto", "WarunkiSkonta"),
        "skonto_wysokosc": text(platnosc, "Skonto", "WysokoscSkonta"),
    }


def _parse_warunki(warunki) -> dict:
    if not isinstance(warunki, dict):
        return {}
    return {
        "umowy": [(text(u, "DataUmowy"), text(u, "NrUmowy")) for u in children(warunki, "Umowy")],
        "zamowienia": [(text(z, "DataZamowienia"), text(z, "NrZamowienia")) for z in children(warunki, "Zamowienia")],
        "partie": [text(p) for p in children(warunki, "NrPartiiTowaru") if text(p)],
        "warunki_dostawy": text(warunki, "WarunkiDostawy"),
        "kurs_umowny": text(warunki, "KursUmowny"),
        "waluta_umowna": text(warunki, "WalutaUmowna"),
        "posrednik": text(warunki, "PodmiotPosredniczacy"),
    }


def parse_faktura(faktura: dict) -> dict:
    """Flatten an FA (1) ``Faktura`` node into the dict the layout works from."""
    fa = child(faktura, "Fa")
    if not isinstance(fa, dict):
        raise MissingRequiredStructure("Niepoprawny XML faktury: brak elementu Fa")

    naglowek = child(faktura, "Naglowek")
    stopka = child(faktura, "Stopka")
    wiersze = child(fa, "FaWiersze")
    return {
        "data_wytworzenia": text(naglowek, "DataWytworzeniaFa"),
        "system_info": text(naglowek, "SystemInfo"),
        "sprzedawca": _parse_podmiot(child(faktura, "Podmiot1")),
        "nabywca": _parse_podmiot(child(faktura, "Podmiot2")),
        "podmioty3": [_parse_podmiot(p) for p in children(faktura, "Podmiot3")],
        "waluta": text(fa, "KodWaluty"),
        "data_wystawienia": text(fa, "P_1"),
        "miejsce_wystawienia": text(fa, "P_1M"),
        "numer": text(fa, "P_2"),
        "data_dostawy": text(fa, "P_6"),
        "okres_od": text(fa, "OkresFa", "P_6_Od"),
        "okres_do": text(fa, "OkresFa", "P_6_Do"),
        "vat": [
            (label, text(fa, net), text(fa, vat) if vat else None, text(fa, vat_pln) if vat_pln else None)
            for net, vat, vat_pln, label in VAT_SUMMARY_FIELDS
            if text(fa, net) is not None
        ],
        "brutto": text(fa, "P_15"),
        "kurs": text(fa, "KursWalutyZ"),
        "rodzaj": text(fa, "RodzajFaktury"),
        "korekta": _parse_korekta(fa),
        "fp": text(fa, "FP"),
        "tp": text(fa, "TP"),
        "adnotacje": _parse_adnotacje(child(fa, "Adnotacje")),
        "opisy": [(None, text(o, "Klucz"), text(o, "Wartosc")) for o in children(fa, "DodatkowyOpis")],
        "wiersze": [
            {key: text(w, tag) for key, tag in LINE_FIELDS.items()} for w in children(wiersze, "FaWiersz")
        ],
        "liczba_wierszy": text(wiersze, "LiczbaWierszyFaktury"),
        "wartosc_wierszy_netto": text(wiersze, "WartoscWierszyFaktury1"),
        "wartosc_wierszy_brutto": text(wiersze, "WartoscWierszyFaktury2"),
        "platnosc": _parse_platnosc(child(fa, "Platnosc")),
        "warunki": _parse_warunki(child(fa, "WarunkiTransakcji")),
        "stopka_teksty": [text(i, "StopkaFaktury") for i in children(stopka, "Informacje") if text(i, "StopkaFaktury")],
        "rejestry": [
            (text(r, "PelnaNazwa"), text(r, "KRS"), text(r, "REGON"), text(r, "BDO"))
            for r in children(stopka, "Rejestry")
        ],
    }


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------

def _line_rows(d):
    if not d["wiersze"]:
        return []
    rows = [common.line_items_table(d["wiersze"], OPTIONAL_LINE_COLUMNS)]
    rows += optional_field("Liczba wierszy faktury", d["liczba_wierszy"])
    rows += optional_field("Suma wartosci netto wierszy", d["wartosc_wierszy_netto"], format_currency)
    rows += optional_field("Suma wartosci brutto wierszy", d["wartosc_wierszy_brutto"], format_currency)
    return rows


def build(faktura: dict, additional) -> list:
    """Build the layout of an FA (1) invoice."""
    d = parse_faktura(faktura)
    logger.debug("FA (1) invoice %s: %d line(s)", d["numer"], len(d["wiersze"]))

    nodes = common.title_block(d["numer"], d["rodzaj"], additional)
    nodes += common.parties(d["sprzedawca"], d["nabywca"], d["podmioty3"])
    nodes += section("szczegoly", "Szczegoly", common.details_rows(d))
    nodes += section("korekta", "Dane faktury korygowanej", common.correction_rows(d["korekta"]))
    nodes += section("wiersze", "Pozycje", _line_rows(d))
    nodes += section("podsumowanie", "Podsumowanie stawek podatku",
                     common.summary_rows(d["vat"], d["brutto"], d["waluta"]))
    nodes += section("adnotacje", "Adnotacje", common.annotation_rows(d["adnotacje"]))
    nodes += section("platnosc", "Platnosc", common.payment_rows(d["platnosc"]))
    nodes += section("warunki", "Warunki transakcji", common.terms_rows(d["warunki"]))
    if d["opisy"]:
        nodes += section("opis", "Dodatkowe informacje", [common.description_table(d["opisy"])])
    nodes += section("stopka", "Pozostale informacje", common.footer_rows(d["stopka_teksty"], d["rejestry"]))
    nodes += common.qr_section(additional)
    nodes += common.generation_info(d["data_wytworzenia"], d["system_info"])
    return nodes
