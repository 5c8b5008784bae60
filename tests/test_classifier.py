import pytest

from ksef_visualizer.classifier import DocumentType, Invoice, InvoiceVersion, ReceiptConfirmation, classify
from ksef_visualizer.errors import MissingRequiredStructure, UnknownSchemaVersion, UnrecognizedDocumentType
from ksef_visualizer.xml_tree import normalize


@pytest.mark.parametrize("name, version, tag", [
    ("fa1_minimal.xml", InvoiceVersion.FA1, "invoice-v1"),
    ("fa2_minimal.xml", InvoiceVersion.FA2, "invoice-v2"),
    ("fa2_full.xml", InvoiceVersion.FA2, "invoice-v2"),
    ("fa3_full.xml", InvoiceVersion.FA3, "invoice-v3"),
])
def test_invoice_versions(load_fixture, name, version, tag):
    envelope = classify(normalize(load_fixture(name)))
    assert isinstance(envelope, Invoice)
    assert envelope.version is version
    assert envelope.tag == tag
    assert "Fa" in envelope.root


def test_upo(load_fixture):
    envelope = classify(normalize(load_fixture("upo.xml")))
    assert isinstance(envelope, ReceiptConfirmation)
    assert envelope.tag == "upo"
    assert "Dokument" in envelope.root


def test_unknown_root(load_fixture):
    with pytest.raises(UnrecognizedDocumentType):
        classify(normalize(load_fixture("unknown_root.xml")))


def test_override_skips_detection(load_fixture):
    tree = normalize(load_fixture("upo.xml"))
    assert isinstance(classify(tree, "upo"), ReceiptConfirmation)
    assert isinstance(classify(tree, DocumentType.UPO), ReceiptConfirmation)
    with pytest.raises(MissingRequiredStructure):
        classify(tree, "invoice")


def test_invalid_override(load_fixture):
    with pytest.raises(UnrecognizedDocumentType):
        classify(normalize(load_fixture("upo.xml")), "paragon")


def test_missing_header():
    with pytest.raises(MissingRequiredStructure):
        classify(normalize("<Faktura><Fa><P_2>1</P_2></Fa></Faktura>"))


def test_missing_form_code():
    xml = "<Faktura><Naglowek><KodFormularza>FA</KodFormularza></Naglowek><Fa/></Faktura>"
    with pytest.raises(UnknownSchemaVersion):
        classify(normalize(xml))


def test_unsupported_form_code():
    xml = '<Faktura><Naglowek><KodFormularza kodSystemowy="FA (9)">FA</KodFormularza></Naglowek><Fa/></Faktura>'
    with pytest.raises(UnknownSchemaVersion, match="FA \\(9\\)"):
        classify(normalize(xml))
