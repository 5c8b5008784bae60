"""
Layout blocks shared by the invoice builders.

Every function here works on the plain dicts a version module extracted
from its own schema, never on the XML tree itself.
"""

from ..constants import CORRECTION_TYPES, INVOICE_KINDS, TAXPAYER_STATUS, THIRD_PARTY_ROLES
from ..formatters import (
    display,
    format_code,
    format_currency,
    format_date,
    format_datetime,
    format_flag,
    format_money,
    format_payment_method,
    format_quantity,
    format_vat_rate,
    join_nonempty,
    optional_field,
    required_field,
    sum_amounts,
)
from ..layout import QrCode, Rule, Stack, Table, Text, columns, label_value, section

# Line item columns: (key, header, formatter, align, width); None width takes the rest
FIXED_LINE_COLUMNS = [
    ("nr", "Lp.", None, "C", 8),
    ("nazwa", "Nazwa towaru lub uslugi", None, "L", None),
    ("ilosc", "Ilosc", format_quantity, "R", 14),
    ("jm", "J.m.", None, "C", 10),
    ("cena_netto", "Cena jedn. netto", format_currency, "R", 20),
    ("netto", "Wartosc netto", format_currency, "R", 20),
    ("stawka", "Stawka VAT", format_vat_rate, "C", 14),
]
LINE_TABLE_WIDTH = 190
MIN_NAME_WIDTH = 40
# Third parties are laid out in rows of this many columns
THIRD_PARTY_COLUMNS = 2

QR_TITLE = "Sprawdz, czy Twoja faktura znajduje sie w KSeF!"


# ---------------------------------------------------------------------------
# Header
# ---------------------------------------------------------------------------

def title_block(numer, rodzaj, additional) -> list:
    """Invoice number, invoice kind and KSeF number above everything else."""
    left = Stack([
        Text("Krajowy System e-Faktur", style="brand"),
        label_value("Numer KSeF", additional.ksef_number),
    ])
    right = Stack([
        Text("Numer faktury", style="label", align="R"),
        Text(display(numer), style="title", align="R"),
        Text(display(rodzaj, lambda v: format_code(v, INVOICE_KINDS)), align="R"),
    ])
    return [columns(left, right), Rule()]


def party_block(title, party, required=True):
    """Identity, address and contact data of a single party."""
    items = [Text(title, style="label")]
    if required or party.get("nazwa"):
        items.append(Text(display(party.get("nazwa")), bold=True))
    items += optional_field("Nazwa handlowa", party.get("nazwa_handlowa"))
    items += optional_field("Prefiks VAT", party.get("prefiks"))
    # a buyer may be identified by an EU VAT number, a foreign id or BrakID instead of NIP
    alternative = party.get("nr_vat_ue") or party.get("nr_id") or party.get("brak_id") == "1"
    if required and not alternative:
        items.append(required_field("NIP", party.get("nip")))
    else:
        items += optional_field("NIP", party.get("nip"))
    items += optional_field("Numer VAT UE", join_nonempty("", party.get("kod_ue"), party.get("nr_vat_ue")))
    items += optional_field("Identyfikator podatkowy",
                            join_nonempty(" ", party.get("kod_kraju_id"), party.get("nr_id")))
    if party.get("brak_id") == "1":
        items.append(Text("Brak identyfikatora podatkowego"))
    items += optional_field("Numer EORI", party.get("nr_eori"))
    if party.get("adres"):
        items.append(Text("Adres", style="small_label"))
        items += [Text(line) for line in party["adres"]]
    if party.get("adres_koresp"):
        items.append(Text("Adres do korespondencji", style="small_label"))
        items += [Text(line) for line in party["adres_koresp"]]
    for email, telefon in party.get("kontakty", []):
        items += optional_field("E-mail", email)
        items += optional_field("Tel.", telefon)
    items += optional_field("Numer klienta", party.get("nr_klienta"))
    items += optional_field("Identyfikator nabywcy", party.get("id_nabywcy"))
    items += optional_field("Status podatnika", party.get("status"), lambda v: format_code(v, TAXPAYER_STATUS))
    items += optional_field("Rola", party.get("rola"), lambda v: format_code(v, THIRD_PARTY_ROLES))
    items += optional_field("Opis roli", party.get("opis_roli"))
    items += optional_field("Udzial", party.get("udzial"), lambda v: f"{format_quantity(v)}%")
    if party.get("jst") == "1":
        items.append(Text("Jednostka podrzedna JST"))
    if party.get("gv") == "1":
        items.append(Text("Czlonek grupy VAT"))
    return Stack(items)


def parties(sprzedawca, nabywca, podmioty3) -> list:
    """Seller and buyer side by side, followed by third parties if any."""
    nodes = [columns(party_block("Sprzedawca", sprzedawca), party_block("Nabywca", nabywca))]
    if podmioty3:
        blocks = [party_block("Podmiot trzeci", p, required=False) for p in podmioty3]
        rows = [columns(*blocks[i:i + THIRD_PARTY_COLUMNS]) for i in range(0, len(blocks), THIRD_PARTY_COLUMNS)]
        nodes += section("podmiot3", "Podmioty trzecie", rows)
    return nodes


def details_rows(d) -> list:
    """Rows of the details section common to all versions."""
    rows = [required_field("Data wystawienia", d["data_wystawienia"], format_date)]
    rows += optional_field("Miejsce wystawienia", d.get("miejsce_wystawienia"))
    rows += optional_field("Data dokonania lub zakonczenia dostawy towarow lub wykonania uslugi",
                           d.get("data_dostawy"), format_date)
    if d.get("okres_od") or d.get("okres_do"):
        rows.append(label_value(
            "Okres, ktorego dotyczy faktura",
            f"od {display(d.get('okres_od'), format_date)} do {display(d.get('okres_do'), format_date)}",
        ))
    rows.append(required_field("Kod waluty", d["waluta"]))
    rows += optional_field("Kurs waluty", d.get("kurs"), format_quantity)
    rows += optional_field("Faktura, o ktorej mowa w art. 109 ust. 3d ustawy", d.get("fp"), format_flag)
    rows += optional_field("Istniejace powiazania miedzy nabywca a dokonujacym dostawy", d.get("tp"), format_flag)
    rows += optional_field("Numery dokumentow WZ", ", ".join(d.get("wz", [])))
    return rows


# ---------------------------------------------------------------------------
# Correction
# ---------------------------------------------------------------------------

def correction_rows(k) -> list:
    rows = optional_field("Przyczyna korekty", k.get("przyczyna"))
    rows += optional_field("Typ skutku korekty", k.get("typ"), lambda v: format_code(v, CORRECTION_TYPES))
    if k.get("dane"):
        rows.append(Table(
            header=["Data wystawienia", "Numer faktury korygowanej", "Numer KSeF faktury korygowanej"],
            rows=[
                [display(f["data"], format_date), display(f["numer"]),
                 f["nr_ksef"] or ("Faktura wystawiona poza KSeF" if f["poza_ksef"] == "1" else display(None))]
                for f in k["dane"]
            ],
            widths=[30, 60, 100],
        ))
    rows += optional_field("Okres, ktorego dotyczy rabat", k.get("okres"))
    rows += optional_field("Poprawny numer faktury korygowanej", k.get("nr_fa_korygowany"))
    if k.get("podmiot1k") is not None:
        rows.append(party_block("Dane sprzedawcy z faktury korygowanej", k["podmiot1k"], required=False))
    for party in k.get("podmiot2k", []):
        rows.append(party_block("Dane nabywcy z faktury korygowanej", party, required=False))
    return rows


# ---------------------------------------------------------------------------
# Line items
# ---------------------------------------------------------------------------

def _line_columns(wiersze, optional_columns):
    present = [col for col in optional_columns if any(w.get(col[0]) for w in wiersze)]
    cols = FIXED_LINE_COLUMNS + present
    fixed_width = sum(col[4] for col in cols if col[4] is not None)
    name_width = max(MIN_NAME_WIDTH, LINE_TABLE_WIDTH - fixed_width)
    return cols, [col[4] if col[4] is not None else name_width for col in cols]


def line_items_table(wiersze, optional_columns):
    """One row per invoice line; optional columns only when some line fills them."""
    cols, widths = _line_columns(wiersze, optional_columns)
    fixed = {col[0] for col in FIXED_LINE_COLUMNS}
    rows = []
    for index, w in enumerate(wiersze, start=1):
        row = []
        for key, _, formatter, _, _ in cols:
            value = w.get(key)
            if key == "nr":
                row.append(value or str(index))
            elif key in fixed:
                row.append(display(value, formatter))
            elif value:
                row.append(formatter(value) if formatter else value)
            else:
                row.append("")
        rows.append(row)
    return Table(header=[col[1] for col in cols], rows=rows, widths=widths, align=[col[3] for col in cols])


def order_rows(z, waluta) -> list:
    rows = optional_field("Wartosc zamowienia", z.get("wartosc"), lambda v: format_money(v, waluta))
    if z.get("wiersze"):
        rows.append(Table(
            header=["Lp.", "Nazwa", "Ilosc", "J.m.", "Cena jedn. netto", "Wartosc netto", "Kwota VAT", "Stawka VAT"],
            rows=[
                [w["nr"] or str(i), display(w["nazwa"]), format_quantity(w["ilosc"]), w["jm"] or "",
                 format_currency(w["cena_netto"]), format_currency(w["netto"]),
                 format_currency(w["kwota_vat"]), format_vat_rate(w["stawka"])]
                for i, w in enumerate(z["wiersze"], start=1)
            ],
            widths=[8, 62, 16, 12, 24, 24, 22, 22],
            align=["C", "L", "R", "C", "R", "R", "R", "C"],
        ))
    return rows


# ---------------------------------------------------------------------------
# Totals
# ---------------------------------------------------------------------------

def vat_summary_table(vat):
    """Rate breakdown from ``(label, net, vat, vat_pln)`` tuples."""
    with_pln = any(vat_pln for _, _, _, vat_pln in vat)
    header = ["Stawka podatku", "Kwota netto", "Kwota podatku", "Kwota brutto"]
    if with_pln:
        header.append("Kwota podatku w PLN")
    rows = []
    for label, netto, kwota_vat, vat_pln in vat:
        row = [label, format_currency(netto), format_currency(kwota_vat),
               sum_amounts(netto, kwota_vat) if kwota_vat is not None else format_currency(netto)]
        if with_pln:
            row.append(format_currency(vat_pln))
        rows.append(row)
    return Table(header=header, rows=rows, align=["L"] + ["R"] * (len(header) - 1))


def summary_rows(vat, brutto, waluta) -> list:
    rows = [vat_summary_table(vat)] if vat else []
    rows.append(required_field("Kwota naleznosci ogolem", brutto, lambda v: format_money(v, waluta), style="total"))
    return rows


def annotation_rows(a) -> list:
    """Affirmative annotation markers only; a ``2`` (no) marker prints nothing."""
    rows = []
    if a.get("p_16") == "1":
        rows.append(Text("Metoda kasowa"))
    if a.get("p_17") == "1":
        rows.append(Text("Samofakturowanie"))
    if a.get("p_18") == "1":
        rows.append(Text("Odwrotne obciazenie"))
    if a.get("p_18a") == "1":
        rows.append(Text("Mechanizm podzielonej platnosci"))
    if a.get("p_19") == "1":
        rows.append(Text("Dostawa towarow lub swiadczenie uslug zwolnionych od podatku"))
        rows += optional_field("Podstawa zwolnienia (przepis ustawy)", a.get("p_19a"))
        rows += optional_field("Podstawa zwolnienia (przepis dyrektywy)", a.get("p_19b"))
        rows += optional_field("Podstawa zwolnienia (inna)", a.get("p_19c"))
    if a.get("p_20") == "1":
        rows.append(Text("Egzekucja - art. 106c ustawy"))
        rows += optional_field("Organ egzekucyjny", a.get("p_20a"))
        rows += optional_field("Nazwa komornika", a.get("p_20b"))
    if a.get("p_21") == "1":
        rows.append(Text("Faktura wystawiona przez przedstawiciela podatkowego"))
        rows += optional_field("Przedstawiciel podatkowy", join_nonempty(", ", a.get("p_21a"), a.get("p_21b"),
                                                                         a.get("p_21c")))
    if a.get("p_22") == "1":
        rows.append(Text("Wewnatrzwspolnotowa dostawa nowych srodkow transportu"))
        if a.get("p_42_5") == "1":
            rows.append(Text("Obowiazek wystawienia dokumentu z art. 42 ust. 5 ustawy"))
        if a.get("srodki_transportu"):
            rows.append(Table(
                header=["Data dopuszczenia do uzytku", "Marka", "Model", "Numer VIN"],
                rows=[[format_date(s["data"]), s["marka"] or "", s["model"] or "", s["vin"] or ""]
                      for s in a["srodki_transportu"]],
            ))
    if a.get("p_23") == "1":
        rows.append(Text("Procedura uproszczona - art. 135 ust. 1 pkt 4 lit. b i c ustawy"))
    if a.get("p_pmarzy") == "1":
        for key, label in [
            ("p_pmarzy_2", "Procedura marzy dla biur podrozy"),
            ("p_pmarzy_3_1", "Procedura marzy - towary uzywane"),
            ("p_pmarzy_3_2", "Procedura marzy - dziela sztuki"),
            ("p_pmarzy_3_3", "Procedura marzy - przedmioty kolekcjonerskie i antyki"),
        ]:
            if a.get(key) == "1":
                rows.append(Text(label))
    return rows


def settlement_rows(r, waluta) -> list:
    rows = []
    for title, entries in (("Obciazenia", r.get("obciazenia")), ("Odliczenia", r.get("odliczenia"))):
        if entries:
            rows.append(Text(title, style="small_label"))
            rows.append(Table(header=["Powod", "Kwota"],
                              rows=[[display(powod), format_currency(kwota)] for kwota, powod in entries],
                              widths=[140, 50], align=["L", "R"]))
    rows += optional_field("Suma obciazen", r.get("suma_obciazen"), format_currency)
    rows += optional_field("Suma odliczen", r.get("suma_odliczen"), format_currency)
    rows += optional_field("Do zaplaty", r.get("do_zaplaty"), lambda v: format_money(v, waluta))
    rows += optional_field("Do rozliczenia", r.get("do_rozliczenia"), lambda v: format_money(v, waluta))
    return rows


# ---------------------------------------------------------------------------
# Payment
# ---------------------------------------------------------------------------

def accounts_table(accounts):
    return Table(
        header=["Numer rachunku", "SWIFT", "Nazwa banku", "Opis"],
        rows=[[display(a["nr"]), a.get("swift") or "", a.get("nazwa_banku") or "", a.get("opis") or ""]
              for a in accounts],
        widths=[70, 25, 50, 45],
    )


def payment_rows(p) -> list:
    rows = []
    if p.get("zaplacono") == "1":
        rows.append(label_value("Informacja o platnosci", "Zaplacono"))
        rows += optional_field("Data zaplaty", p.get("data_zaplaty"), format_date)
    if p.get("znacznik_czesciowej") == "1":
        rows.append(label_value("Informacja o platnosci", "Zaplata czesciowa"))
    if p.get("czesciowe"):
        rows.append(Table(header=["Kwota zaplaty czesciowej", "Data zaplaty czesciowej"],
                          rows=[[format_currency(kwota), format_date(data)] for kwota, data in p["czesciowe"]],
                          align=["R", "C"]))
    for termin, opis in p.get("terminy", []):
        rows += optional_field("Termin platnosci", join_nonempty(" ", format_date(termin), opis))
    rows += optional_field("Forma platnosci", p.get("forma"), format_payment_method)
    if p.get("platnosc_inna") == "1":
        rows.append(required_field("Forma platnosci", p.get("opis_platnosci")))
    if p.get("rachunki"):
        rows.append(Text("Rachunek bankowy", style="small_label"))
        rows.append(accounts_table(p["rachunki"]))
    if p.get("rachunki_faktora"):
        rows.append(Text("Rachunek bankowy faktora", style="small_label"))
        rows.append(accounts_table(p["rachunki_faktora"]))
    rows += optional_field("Warunki skonta", p.get("skonto_warunki"))
    rows += optional_field("Wysokosc skonta", p.get("skonto_wysokosc"))
    return rows


def terms_rows(w) -> list:
    rows = []
    if w.get("umowy"):
        rows.append(Table(header=["Data umowy", "Numer umowy"],
                          rows=[[format_date(data), nr or ""] for data, nr in w["umowy"]], widths=[40, 150]))
    if w.get("zamowienia"):
        rows.append(Table(header=["Data zamowienia", "Numer zamowienia"],
                          rows=[[format_date(data), nr or ""] for data, nr in w["zamowienia"]], widths=[40, 150]))
    rows += optional_field("Numery partii towaru", ", ".join(w.get("partie", [])))
    rows += optional_field("Warunki dostawy", w.get("warunki_dostawy"))
    rows += optional_field("Kurs umowny", w.get("kurs_umowny"), format_quantity)
    rows += optional_field("Waluta umowna", w.get("waluta_umowna"))
    if w.get("posrednik") == "1":
        rows.append(Text("Dostawa z udzialem podmiotu posredniczacego (art. 22 ust. 2d ustawy)"))
    return rows


# ---------------------------------------------------------------------------
# Closing blocks
# ---------------------------------------------------------------------------

def description_table(opisy):
    """``(line number, key, value)`` triples as a table."""
    with_line = any(nr for nr, _, _ in opisy)
    header = (["Nr wiersza"] if with_line else []) + ["Rodzaj informacji", "Tresc informacji"]
    rows = [([nr or ""] if with_line else []) + [display(klucz), display(wartosc)] for nr, klucz, wartosc in opisy]
    return Table(header=header, rows=rows)


def footer_rows(teksty, rejestry) -> list:
    rows = [Text(tekst) for tekst in teksty]
    if rejestry:
        rows.append(Table(
            header=["Pelna nazwa", "KRS", "REGON", "BDO"],
            rows=[[nazwa or "", krs or "", regon or "", bdo or ""] for nazwa, krs, regon, bdo in rejestry],
            widths=[85, 35, 35, 35],
        ))
    return rows


def qr_section(additional) -> list:
    if not additional.qr_code:
        return []
    return section("qr", QR_TITLE, [QrCode(additional.qr_code, caption=additional.ksef_number)])


def generation_info(data_wytworzenia, system_info) -> list:
    rows = optional_field("Data wytworzenia faktury", data_wytworzenia, format_datetime, style="small")
    rows += optional_field("System", system_info, style="small")
    return [Rule()] + rows if rows else []
