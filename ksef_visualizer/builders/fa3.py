"""
Layout builder for FA (3) invoices.

Schema: http://crd.gov.pl/wzor/2025/06/25/13775/
"""

import logging

from ..errors import MissingRequiredStructure
from ..formatters import (
    display,
    format_address_lines,
    format_currency,
    format_date,
    format_flag,
    format_money,
    format_quantity,
    join_nonempty,
    optional_field,
)
from ..layout import Table, Text, label_value, section
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
    ("P_13_6_1", None, None, "0% (kraj)"),
    ("P_13_6_2", None, None, "0% (WDT)"),
    ("P_13_6_3", None, None, "0% (eksport)"),
    ("P_13_7", None, None, "Zwolnione z podatku"),
    ("P_13_8", None, None, "Niepodlegajace opodatkowaniu"),
    ("P_13_9", None, None, "Uslugi z art. 100 ust. 1 pkt 4"),
    ("P_13_10", None, None, "Odwrotne obciazenie"),
    ("P_13_11", None, None, "Procedura marzy"),
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
    "kwota_vat": "P_11Vat",
    "stawka": "P_12",
    "stawka_oss": "P_12_XII",
    "akcyza": "KwotaAkcyzy",
    "gtu": "GTU",
    "procedura": "Procedura",
    "kurs": "KursWaluty",
    "stan_przed": "StanPrzed",
    "zal_15": "P_12_Zal_15",
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
    ("kwota_vat", "Kwota VAT", format_currency, "R", 18),
    ("stawka_oss", "Stawka OSS", format_quantity, "C", 12),
    ("akcyza", "Akcyza", format_currency, "R", 14),
    ("p_6a", "Data dostawy", format_date, "C", 18),
    ("gtu", "GTU", None, "C", 12),
    ("procedura", "Procedura", None, "C", 16),
    ("kurs", "Kurs waluty", format_quantity, "R", 14),
    ("stan_przed", "Stan przed", format_flag, "C", 12),
    ("zal_15", "Zal. 15", format_flag, "C", 12),
]


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

def _parse_podmiot(podmiot) -> dict:
    """Parse Podmiot1, Podmiot2, Podmiot3 or their correction counterparts."""
    dane = child(podmiot, "DaneIdentyfikacyjne")
    return {
        "nip": text(dane, "NIP"),
        "kod_ue": text(dane, "KodUE"),
        "nr_vat_ue": text(dane, "NrVatUE"),
        "kod_kraju_id": text(dane, "KodKraju"),
        "nr_id": text(dane, "NrID"),
        "brak_id": text(dane, "BrakID"),
        "nazwa": text(dane, "Nazwa"),
        "prefiks": text(podmiot, "PrefiksPodatnika"),
        "nr_eori": text(podmiot, "NrEORI"),
        "adres": format_address_lines(child(podmiot, "Adres")),
        "adres_koresp": format_address_lines(child(podmiot, "AdresKoresp")),
        "kontakty": [(text(k, "Email"), text(k, "Telefon")) for k in children(podmiot, "DaneKontaktowe")],
        "nr_klienta": text(podmiot, "NrKlienta"),
        "id_nabywcy": text(podmiot, "IDNabywcy"),
        "status": text(podmiot, "StatusInfoPodatnika"),
        "rola": text(podmiot, "Rola"),
        "opis_roli": text(podmiot, "OpisRoli"),
        "udzial": text(podmiot, "Udzial"),
        "jst": text(podmiot, "JST"),
        "gv": text(podmiot, "GV"),
    }


def _parse_wiersz(wiersz) -> dict:
    return {key: text(wiersz, tag) for key, tag in LINE_FIELDS.items()}


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
        "podmiot1k": _parse_podmiot(child(fa, "Podmiot1K")) if child(fa, "Podmiot1K") is not None else None,
        "podmiot2k": [_parse_podmiot(p) for p in children(fa, "Podmiot2K")],
    }


def _parse_adnotacje(adnotacje) -> dict:
    return {
        "p_16": text(adnotacje, "P_16"),
        "p_17": text(adnotacje, "P_17"),
        "p_18": text(adnotacje, "P_18"),
        "p_18a": text(adnotacje, "P_18A"),
        "p_19": text(adnotacje, "Zwolnienie", "P_19"),
        "p_19a": text(adnotacje, "Zwolnienie", "P_19A"),
        "p_19b": text(adnotacje, "Zwolnienie", "P_19B"),
        "p_19c": text(adnotacje, "Zwolnienie", "P_19C"),
        "p_22": text(adnotacje, "NoweSrodkiTransportu", "P_22"),
        "p_42_5": text(adnotacje, "NoweSrodkiTransportu", "P_42_5"),
        "srodki_transportu": [
            {
                "data": text(el, "P_22A"),
                "marka": text(el, "P_22BMK"),
                "model": text(el, "P_22BMD"),
                "vin": text(el, "P_22BVIN"),
            }
            for el in children(adnotacje, "NoweSrodkiTransportu", "NowySrodekTransportu")
        ],
        "p_23": text(adnotacje, "P_23"),
        "p_pmarzy": text(adnotacje, "PMarzy", "P_PMarzy"),
        "p_pmarzy_2": text(adnotacje, "PMarzy", "P_PMarzy_2"),
        "p_pmarzy_3_1": text(adnotacje, "PMarzy", "P_PMarzy_3_1"),
        "p_pmarzy_3_2": text(adnotacje, "PMarzy", "P_PMarzy_3_2"),
        "p_pmarzy_3_3": text(adnotacje, "PMarzy", "P_PMarzy_3_3"),
    }


def _payment_term(opis):
    """Structured ``TerminOpis``, e.g. ``14 dni od dnia wystawienia``."""
    if isinstance(opis, dict):
        return join_nonempty(" ", text(opis, "Ilosc"), text(opis, "Jednostka"), text(opis, "ZdarzeniePoczatkowe"))
    return text(opis)


def _parse_platnosc(platnosc) -> dict:
    if not isinstance(platnosc, dict):
        return {}

    def rachunki(tag):
        return [
            {
                "nr": text(r, "NrRB"),
                "swift": text(r, "SWIFT"),
                "nazwa_banku": text(r, "NazwaBanku"),
                "opis": text(r, "OpisRachunku"),
            }
            for r in children(platnosc, tag)
        ]

    return {
        "zaplacono": text(platnosc, "Zaplacono"),
        "data_zaplaty": text(platnosc, "DataZaplaty"),
        "znacznik_czesciowej": text(platnosc, "ZnacznikZaplatyCzesciowej"),
        "czesciowe": [
            (text(z, "KwotaZaplatyCzesciowej"), text(z, "DataZaplatyCzesciowej"))
            for z in children(platnosc, "ZaplataCzesciowa")
        ],
        "terminy": [
            (text(t, "Termin"), _payment_term(child(t, "TerminOpis")))
            for t in children(platnosc, "TerminPlatnosci")
        ],
        "forma": text(platnosc, "FormaPlatnosci"),
        "platnosc_inna": text(platnosc, "PlatnoscInna"),
        "opis_platnosci": text(platnosc, "OpisPlatnosci"),
        "rachunki": rachunki("RachunekBankowy"),
        "rachunki_faktora": rachunki("RachunekBankowyFaktora"),
        "skonto_warunki": text(platnosc, "Skonto", "WarunkiSkonta"),
        "skonto_wysokosc": text(platnosc, "Skonto", "WysokoscSkonta"),
        "link": text(platnosc, "LinkDoPlatnosci"),
        "ipksef": text(platnosc, "IPKSeF"),
    }


def _parse_rozliczenie(rozliczenie) -> dict:
    if not isinstance(rozliczenie, dict):
        return {}
    return {
        "obciazenia": [(text(o, "Kwota"), text(o, "Powod")) for o in children(rozliczenie, "Obciazenia")],
        "suma_obciazen": text(rozliczenie, "SumaObciazen"),
        "odliczenia": [(text(o, "Kwota"), text(o, "Powod")) for o in children(rozliczenie, "Odliczenia")],
        "suma_odliczen": text(rozliczenie, "SumaOdliczen"),
        "do_zaplaty": text(rozliczenie, "DoZaplaty"),
        "do_rozliczenia": text(rozliczenie, "DoRozliczenia"),
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


def _parse_zamowienie(zamowienie) -> dict:
    if not isinstance(zamowienie, dict):
        return {}
    return {
        "wartosc": text(zamowienie, "WartoscZamowienia"),
        "wiersze": [
            {
                "nr": text(w, "NrWierszaZam"),
                "nazwa": text(w, "P_7Z"),
                "jm": text(w, "P_8AZ"),
                "ilosc": text(w, "P_8BZ"),
                "cena_netto": text(w, "P_9AZ"),
                "netto": text(w, "P_11NettoZ"),
                "kwota_vat": text(w, "P_11VatZ"),
                "stawka": text(w, "P_12Z"),
            }
            for w in children(zamowienie, "ZamowienieWiersz")
        ],
    }


def _parse_zaliczki(fa) -> list:
    """Advance invoices settled by this one (``FakturaZaliczkowa``)."""
    zaliczki = []
    for el in children(fa, "FakturaZaliczkowa"):
        if text(el, "NrKSeFZN") == "1":
            zaliczki.append(("Faktura wystawiona poza KSeF", text(el, "NrFaZaliczkowej")))
        else:
            zaliczki.append(("Numer KSeF", text(el, "NrKSeFFaZaliczkowej")))
    return zaliczki


def _parse_tabela(tabela) -> dict:
    return {
        "meta": [(text(m, "TKlucz"), text(m, "TWartosc")) for m in children(tabela, "TMetaDane")],
        "opis": text(tabela, "Opis"),
        "naglowek": [text(k, "NKom", default="") for k in children(tabela, "TNaglowek", "Kol")],
        "wiersze": [[text(c, default="") for c in children(w, "WKom")] for w in children(tabela, "Wiersz")],
        "suma": [text(c, default="") for c in children(tabela, "Suma", "SKom")],
    }


def _parse_zalacznik(zalacznik) -> list:
    """Data blocks of the invoice attachment."""
    bloki = []
    for blok in children(zalacznik, "BlokDanych"):
        bloki.append({
            "naglowek": text(blok, "ZNaglowek"),
            "meta": [(text(m, "ZKlucz"), text(m, "ZWartosc")) for m in children(blok, "MetaDane")],
            "akapity": [text(a) for t in children(blok, "Tekst") for a in children(t, "Akapit") if text(a)],
            "tabele": [_parse_tabela(t) for t in children(blok, "Tabela")],
        })
    return bloki


def parse_faktura(faktura: dict) -> dict:
    """Flatten an FA (3) ``Faktura`` node into the dict the layout works from."""
    fa = child(faktura, "Fa")
    if not isinstance(fa, dict):
        raise MissingRequiredStructure("Niepoprawny XML faktury: brak elementu Fa")

    naglowek = child(faktura, "Naglowek")
    stopka = child(faktura, "Stopka")
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
        "wz": [text(w) for w in children(fa, "WZ") if text(w)],
        "data_dostawy": text(fa, "P_6"),
        "okres_od": text(fa, "OkresFa", "P_6_Od"),
        "okres_do": text(fa, "OkresFa", "P_6_Do"),
        "vat": [
            (label, text(fa, net), text(fa, vat) if vat else None, text(fa, vat_pln) if vat_pln else None)
            for net, vat, vat_pln, label in VAT_SUMMARY_FIELDS
            if text(fa, net) is not None
        ],
        "brutto": text(fa, "P_15"),
        "p_15zk": text(fa, "P_15ZK"),
        "kurs_zk": text(fa, "KursWalutyZK"),
        "zaliczki": _parse_zaliczki(fa),
        "zaliczki_czesciowe": [
            (text(z, "P_6Z"), text(z, "P_15Z"), text(z, "KursWalutyZW")) for z in children(fa, "ZaliczkaCzesciowa")
        ],
        "kurs": text(fa, "KursWalutyZ"),
        "rodzaj": text(fa, "RodzajFaktury"),
        "korekta": _parse_korekta(fa),
        "fp": text(fa, "FP"),
        "tp": text(fa, "TP"),
        "adnotacje": _parse_adnotacje(child(fa, "Adnotacje")),
        "opisy": [
            (text(o, "NrWiersza"), text(o, "Klucz"), text(o, "Wartosc")) for o in children(fa, "DodatkowyOpis")
        ],
        "wiersze": [_parse_wiersz(w) for w in children(fa, "FaWiersz")],
        "zamowienie": _parse_zamowienie(child(fa, "Zamowienie")),
        "rozliczenie": _parse_rozliczenie(child(fa, "Rozliczenie")),
        "platnosc": _parse_platnosc(child(fa, "Platnosc")),
        "warunki": _parse_warunki(child(fa, "WarunkiTransakcji")),
        "stopka_teksty": [text(i, "StopkaFaktury") for i in children(stopka, "Informacje") if text(i, "StopkaFaktury")],
        "rejestry": [
            (text(r, "PelnaNazwa"), text(r, "KRS"), text(r, "REGON"), text(r, "BDO"))
            for r in children(stopka, "Rejestry")
        ],
        "zalacznik": _parse_zalacznik(child(faktura, "Zalacznik")),
    }


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------

def _details_rows(d):
    rows = common.details_rows(d)
    if d["zaliczki"]:
        rows.append(Text("Faktury zaliczkowe", style="small_label"))
        rows.append(Table(header=["Rodzaj numeru", "Numer faktury zaliczkowej"],
                          rows=[[rodzaj, display(numer)] for rodzaj, numer in d["zaliczki"]],
                          widths=[60, 130]))
    if d["zaliczki_czesciowe"]:
        rows.append(Text("Zaliczki czesciowe", style="small_label"))
        rows.append(Table(header=["Data otrzymania zaplaty", "Kwota zaplaty", "Kurs waluty"],
                          rows=[[format_date(data), format_currency(kwota), format_quantity(kurs)]
                                for data, kwota, kurs in d["zaliczki_czesciowe"]],
                          align=["C", "R", "R"]))
    return rows


def _summary_rows(d):
    rows = common.summary_rows(d["vat"], d["brutto"], d["waluta"])
    rows += optional_field("Kwota pozostala do zaplaty", d["p_15zk"], lambda v: format_money(v, d["waluta"]))
    rows += optional_field("Kurs waluty dla zaliczek", d["kurs_zk"], format_quantity)
    return rows


def _payment_rows(p):
    rows = common.payment_rows(p)
    rows += optional_field("Link do platnosci", p.get("link"))
    rows += optional_field("Identyfikator platnosci KSeF", p.get("ipksef"))
    return rows


def _attachment_table(tabela):
    rows = [label_value(klucz or "-", wartosc or "") for klucz, wartosc in tabela["meta"]]
    if tabela["opis"]:
        rows.append(Text(tabela["opis"], style="small_label"))
    if tabela["naglowek"]:
        body = [list(w) + [""] * (len(tabela["naglowek"]) - len(w)) for w in tabela["wiersze"]]
        if tabela["suma"]:
            body.append(tabela["suma"] + [""] * (len(tabela["naglowek"]) - len(tabela["suma"])))
        rows.append(Table(header=tabela["naglowek"], rows=[w[:len(tabela["naglowek"])] for w in body]))
    return rows


def _attachment_rows(bloki):
    rows = []
    for blok in bloki:
        if blok["naglowek"]:
            rows.append(Text(blok["naglowek"], style="label"))
        rows += [label_value(klucz or "-", wartosc or "") for klucz, wartosc in blok["meta"]]
        rows += [Text(akapit) for akapit in blok["akapity"]]
        for tabela in blok["tabele"]:
            rows += _attachment_table(tabela)
    return rows


def build(faktura: dict, additional) -> list:
    """Build the layout of an FA (3) invoice."""
    d = parse_faktura(faktura)
    logger.debug("FA (3) invoice %s: %d line(s), %d attachment block(s)",
                 d["numer"], len(d["wiersze"]), len(d["zalacznik"]))

    nodes = common.title_block(d["numer"], d["rodzaj"], additional)
    nodes += common.parties(d["sprzedawca"], d["nabywca"], d["podmioty3"])
    nodes += section("szczegoly", "Szczegoly", _details_rows(d))
    nodes += section("korekta", "Dane faktury korygowanej", common.correction_rows(d["korekta"]))
    if d["wiersze"]:
        nodes += section("wiersze", "Pozycje", [common.line_items_table(d["wiersze"], OPTIONAL_LINE_COLUMNS)])
    nodes += section("zamowienie", "Zamowienie", common.order_rows(d["zamowienie"], d["waluta"]))
    nodes += section("podsumowanie", "Podsumowanie stawek podatku", _summary_rows(d))
    nodes += section("adnotacje", "Adnotacje", common.annotation_rows(d["adnotacje"]))
    nodes += section("rozliczenie", "Rozliczenie", common.settlement_rows(d["rozliczenie"], d["waluta"]))
    nodes += section("platnosc", "Platnosc", _payment_rows(d["platnosc"]))
    nodes += section("warunki", "Warunki transakcji", common.terms_rows(d["warunki"]))
    if d["opisy"]:
        nodes += section("opis", "Dodatkowe informacje", [common.description_table(d["opisy"])])
    nodes += section("zalacznik", "Zalacznik do faktury", _attachment_rows(d["zalacznik"]))
    nodes += section("stopka", "Pozostale informacje", common.footer_rows(d["stopka_teksty"], d["rejestry"]))
    nodes += common.qr_section(additional)
    nodes += common.generation_info(d["data_wytworzenia"], d["system_info"])
    return nodes
