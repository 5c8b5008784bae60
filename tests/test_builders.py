import copy

import pytest

from ksef_visualizer.builders import BUILDERS, build_upo
from ksef_visualizer.builders.common import QR_TITLE
from ksef_visualizer.classifier import InvoiceVersion, classify
from ksef_visualizer.config import NO_KSEF_NUMBER
from ksef_visualizer.errors import MissingRequiredStructure
from ksef_visualizer.layout import HORIZONTAL, Paragraph, QrCode, Stack, Table, find_sections, iter_nodes, plain_text
from ksef_visualizer.models import AdditionalData
from ksef_visualizer.xml_tree import normalize

MINIMAL = {
    InvoiceVersion.FA1: "fa1_minimal.xml",
    InvoiceVersion.FA2: "fa2_minimal.xml",
    InvoiceVersion.FA3: "fa3_minimal.xml",
}


def _minimal_tree(load_fixture, version):
    tree = normalize(load_fixture(MINIMAL[version]))
    # FA (1) minimal fixture carries lines; drop them to keep mandatory data only
    tree["Faktura"]["Fa"].pop("FaWiersze", None)
    return tree


def _build(tree, additional=None):
    envelope = classify(tree)
    return BUILDERS[envelope.version](envelope.root, additional or AdditionalData())


def _keys(nodes):
    return [s.key for s in find_sections(nodes)]


def _value(nodes, label):
    """Text printed next to ``label`` by a label/value row."""
    for node in iter_nodes(nodes):
        if isinstance(node, Paragraph) and len(node.runs) > 1 and node.runs[0].text == f"{label}: ":
            return node.runs[1].text
    return None


def _tables(nodes):
    return [node for node in iter_nodes(nodes) if isinstance(node, Table)]


# ---------------------------------------------------------------------------
# Section suppression
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("version", list(MINIMAL))
def test_mandatory_only_invoice_has_only_mandatory_sections(load_fixture, version):
    nodes = _build(_minimal_tree(load_fixture, version))
    assert _keys(nodes) == ["szczegoly", "podsumowanie"]

    text = plain_text(nodes)
    for absent in ("Platnosc", "Termin platnosci", "Adnotacje", "Pozycje", "Podmioty trzecie",
                   "Numer klienta", "Metoda kasowa", QR_TITLE):
        assert absent not in text


@pytest.mark.parametrize("version", list(MINIMAL))
def test_one_optional_field_adds_exactly_one_section(load_fixture, version):
    tree = _minimal_tree(load_fixture, version)
    before = _keys(_build(tree))

    enriched = copy.deepcopy(tree)
    enriched["Faktura"]["Fa"]["Platnosc"] = {"FormaPlatnosci": "6"}
    after = _keys(_build(enriched))

    assert sorted(set(after) - set(before)) == ["platnosc"]
    assert len(after) == len(before) + 1
    assert _value(_build(enriched), "Forma platnosci") == "Przelew"


@pytest.mark.parametrize("version", list(MINIMAL))
def test_missing_mandatory_value_shows_placeholder(load_fixture, version):
    tree = _minimal_tree(load_fixture, version)
    del tree["Faktura"]["Fa"]["KodWaluty"]
    nodes = _build(tree)
    assert _value(nodes, "Kod waluty") == "-"
    assert "szczegoly" in _keys(nodes)


def test_negative_annotation_markers_print_nothing(load_fixture):
    tree = _minimal_tree(load_fixture, InvoiceVersion.FA2)
    tree["Faktura"]["Fa"]["Adnotacje"]["P_16"] = "1"
    nodes = _build(tree)
    adnotacje = find_sections(nodes, "adnotacje")
    assert len(adnotacje) == 1
    assert plain_text(adnotacje) == "Adnotacje\nMetoda kasowa"


# ---------------------------------------------------------------------------
# Parties
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("version", [InvoiceVersion.FA2, InvoiceVersion.FA3])
def test_buyer_with_eu_vat_number_has_no_nip_placeholder(load_fixture, version):
    tree = _minimal_tree(load_fixture, version)
    tree["Faktura"]["Podmiot2"]["DaneIdentyfikacyjne"] = {"KodUE": "DE", "NrVatUE": "123456789", "Nazwa": "Kunde GmbH"}
    nodes = _build(tree)
    assert plain_text(nodes).count("NIP") == 1
    assert _value(nodes, "Numer VAT UE") == "DE123456789"


def test_buyer_without_tax_id(load_fixture):
    tree = _minimal_tree(load_fixture, InvoiceVersion.FA2)
    tree["Faktura"]["Podmiot2"]["DaneIdentyfikacyjne"] = {"BrakID": "1", "Nazwa": "Jan Kowalski"}
    text = plain_text(_build(tree))
    assert "Brak identyfikatora podatkowego" in text
    assert text.count("NIP") == 1


def test_buyer_nip_placeholder_when_no_identifier(load_fixture):
    tree = _minimal_tree(load_fixture, InvoiceVersion.FA2)
    tree["Faktura"]["Podmiot2"]["DaneIdentyfikacyjne"] = {"Nazwa": "Nabywca S.A."}
    nodes = _build(tree)
    assert _value(nodes, "NIP") == "-"


def test_many_third_parties_are_split_into_rows(load_fixture):
    tree = _minimal_tree(load_fixture, InvoiceVersion.FA2)
    tree["Faktura"]["Podmiot3"] = [
        {"DaneIdentyfikacyjne": {"NIP": f"{i:010d}", "Nazwa": f"Podmiot {i}"}, "Rola": "2"} for i in range(40)
    ]
    podmiot3 = find_sections(_build(tree), "podmiot3")
    rows = [node for node in iter_nodes(podmiot3) if isinstance(node, Stack) and node.direction == HORIZONTAL]
    assert len(rows) == 20
    assert all(len(row.children) <= 2 for row in rows)
    assert "Podmiot 39" in plain_text(podmiot3)


def test_missing_fa_block(load_fixture):
    tree = _minimal_tree(load_fixture, InvoiceVersion.FA2)
    del tree["Faktura"]["Fa"]
    with pytest.raises(MissingRequiredStructure):
        _build(tree)


# ---------------------------------------------------------------------------
# Header and additional data
# ---------------------------------------------------------------------------

def test_ksef_number_sentinel_and_qr(load_fixture):
    tree = _minimal_tree(load_fixture, InvoiceVersion.FA2)

    plain = _build(tree)
    assert _value(plain, "Numer KSeF") == NO_KSEF_NUMBER
    assert not [n for n in iter_nodes(plain) if isinstance(n, QrCode)]

    additional = AdditionalData.create("5260250274-20240201-ABCDEF-12", "https://ksef.mf.gov.pl/qr/abc")
    nodes = _build(tree, additional)
    assert _value(nodes, "Numer KSeF") == "5260250274-20240201-ABCDEF-12"
    qr = find_sections(nodes, "qr")
    assert len(qr) == 1 and qr[0].title == QR_TITLE
    codes = [n for n in iter_nodes(qr) if isinstance(n, QrCode)]
    assert codes[0].payload == "https://ksef.mf.gov.pl/qr/abc"
    assert codes[0].caption == "5260250274-20240201-ABCDEF-12"


# ---------------------------------------------------------------------------
# FA (1)
# ---------------------------------------------------------------------------

def test_fa1_lines_and_structured_address(load_fixture):
    nodes = _build(normalize(load_fixture("fa1_minimal.xml")))
    assert _keys(nodes) == ["szczegoly", "wiersze", "podsumowanie"]

    lines = _tables(find_sections(nodes, "wiersze"))[0]
    assert lines.header[:3] == ["Lp.", "Nazwa towaru lub uslugi", "Ilosc"]
    assert lines.rows[0][:3] == ["1", "Usluga programistyczna", "2"]
    assert sum(lines.widths) == pytest.approx(190)
    assert _value(nodes, "Liczba wierszy faktury") == "1"

    text = plain_text(nodes)
    assert "Sprzedawca Sp. z o.o." in text
    assert "Prosta 1/2" in text
    assert "00-001 Warszawa" in text
    assert _value(nodes, "Kwota naleznosci ogolem") == "123.00 PLN"
    assert _value(nodes, "Data wytworzenia faktury") == "01.06.2023 10:00:00"


def test_fa1_payment_terms(load_fixture):
    tree = normalize(load_fixture("fa1_minimal.xml"))
    tree["Faktura"]["Fa"]["Platnosc"] = {
        "TerminyPlatnosci": {"TerminPlatnosci": "2023-06-15", "TerminPlatnosciOpis": "przelew 14 dni"},
    }
    nodes = _build(tree)
    assert _value(nodes, "Termin platnosci") == "15.06.2023 przelew 14 dni"


# ---------------------------------------------------------------------------
# FA (2)
# ---------------------------------------------------------------------------

def test_fa2_full_invoice(load_fixture):
    nodes = _build(normalize(load_fixture("fa2_full.xml")),
                   AdditionalData.create("5260250274-20240315-0A1B2C3D4E5F-AB"))
    assert _keys(nodes) == ["podmiot3", "szczegoly", "wiersze", "podsumowanie", "adnotacje",
                            "platnosc", "warunki", "opis", "stopka"]

    text = plain_text(nodes)
    assert "Zakład Usług Łódź Sp. z o.o." in text
    assert "Faktura podstawowa" in text
    assert "FV/15/03/2024" in text
    assert "Odbiorca" in text
    assert "Mechanizm podzielonej platnosci" in text
    assert "Dziękujemy za współpracę" in text
    assert "ZAM/7" in text
    assert _value(nodes, "Termin platnosci") == "29.03.2024"
    assert _value(nodes, "Forma platnosci") == "Przelew"
    assert _value(nodes, "Numer klienta") == "K-42"
    assert _value(nodes, "Data wytworzenia faktury") == "15.03.2024 12:00:00"
    assert _value(nodes, "System") == "System ERP"


def test_fa2_line_items_show_only_filled_optional_columns(load_fixture):
    nodes = _build(normalize(load_fixture("fa2_full.xml")))
    lines = _tables(find_sections(nodes, "wiersze"))[0]
    assert "GTU" in lines.header
    assert "PKWiU" not in lines.header
    assert "Kwota VAT" not in lines.header
    assert len(lines.rows) == 2
    gtu = lines.header.index("GTU")
    assert [row[gtu] for row in lines.rows] == ["GTU_12", ""]
    assert lines.rows[1][2] == "2"


def test_fa2_vat_summary(load_fixture):
    nodes = _build(normalize(load_fixture("fa2_full.xml")))
    summary = _tables(find_sections(nodes, "podsumowanie"))[0]
    assert summary.header == ["Stawka podatku", "Kwota netto", "Kwota podatku", "Kwota brutto"]
    assert summary.rows == [
        ["23% lub 22%", "1000.00", "230.00", "1230.00"],
        ["8% lub 7%", "100.00", "8.00", "108.00"],
    ]
    assert _value(nodes, "Kwota naleznosci ogolem") == "1338.00 PLN"


def test_fa2_correction(load_fixture):
    tree = normalize(load_fixture("fa2_minimal.xml"))
    fa = tree["Faktura"]["Fa"]
    fa["RodzajFaktury"] = "KOR"
    fa["PrzyczynaKorekty"] = "Blad w cenie"
    fa["DaneFaKorygowanej"] = {"DataWystFaKorygowanej": "2024-01-10", "NrFaKorygowanej": "FV/1/2024",
                               "NrKSeFN": "1"}
    nodes = _build(tree)
    assert "korekta" in _keys(nodes)
    korekta = find_sections(nodes, "korekta")
    assert _value(korekta, "Przyczyna korekty") == "Blad w cenie"
    assert _tables(korekta)[0].rows == [["10.01.2024", "FV/1/2024", "Faktura wystawiona poza KSeF"]]
    assert "Faktura korygujaca" in plain_text(nodes)


# ---------------------------------------------------------------------------
# FA (3)
# ---------------------------------------------------------------------------

def test_fa3_full_invoice(load_fixture):
    nodes = _build(normalize(load_fixture("fa3_full.xml")))
    assert _keys(nodes) == ["szczegoly", "podsumowanie", "adnotacje", "platnosc", "zalacznik"]

    text = plain_text(nodes)
    assert "Faktura zaliczkowa" in text
    assert "Jednostka podrzedna JST" in text
    assert "Czlonek grupy VAT" not in text
    assert "Metoda kasowa" in text
    assert _value(nodes, "Informacja o platnosci") == "Zaplacono"
    assert _value(nodes, "Termin platnosci") == "14 dni od dnia wystawienia"
    assert _value(nodes, "Link do platnosci") == "https://pay.example.pl/abc"
    assert _value(nodes, "Identyfikator platnosci KSeF") == "ABC123XYZ"
    assert _value(nodes, "Kwota naleznosci ogolem") == "1230.00 EUR"


def test_fa3_vat_in_pln_and_partial_advances(load_fixture):
    nodes = _build(normalize(load_fixture("fa3_full.xml")))
    summary = _tables(find_sections(nodes, "podsumowanie"))[0]
    assert summary.header[-1] == "Kwota podatku w PLN"
    assert summary.rows[0][-1] == "985.32"

    details = _tables(find_sections(nodes, "szczegoly"))
    assert details[0].rows == [["30.01.2026", "1230.00", ""]]


def test_fa3_attachment(load_fixture):
    nodes = _build(normalize(load_fixture("fa3_full.xml")))
    attachment = find_sections(nodes, "zalacznik")[0]
    assert attachment.title == "Zalacznik do faktury"
    text = plain_text(attachment)
    assert "Harmonogram dostaw" in text
    assert "Dostawy realizowane co tydzien." in text
    assert _value(attachment, "Umowa") == "U/1/2026"

    table = _tables(attachment)[0]
    assert table.header == ["Data", "Ilosc"]
    assert table.rows == [["2026-02-09", "10"], ["2026-02-16", "12"]]


# ---------------------------------------------------------------------------
# UPO
# ---------------------------------------------------------------------------

def test_upo(load_fixture):
    envelope = classify(normalize(load_fixture("upo.xml")))
    nodes = build_upo(envelope.root)
    assert _keys(nodes) == ["upo_naglowek", "upo_dokumenty"]
    assert _value(nodes, "Identyfikator kontekstu") == "NIP: 5260250274"
    assert _value(nodes, "Kod formularza") == "FA (3)"
    assert _value(nodes, "Numer referencyjny sesji") == "20250625-SE-1234567890-ABCDEF1234-12"

    documents = _tables(find_sections(nodes, "upo_dokumenty"))[0]
    assert len(documents.rows) == 2
    assert documents.rows[0][0] == "5260250274-20250625-010080A1B2C3-E4"
    assert documents.rows[0][4] == "25.06.2025 10:00:00"
    assert [row[-1] for row in documents.rows] == ["Online", "Offline"]


def test_upo_without_documents(load_fixture):
    tree = normalize(load_fixture("upo.xml"))
    del tree["Potwierdzenie"]["Dokument"]
    nodes = build_upo(classify(tree).root)
    assert _keys(nodes) == ["upo_naglowek"]
