import pytest

from ksef_visualizer import (
    DocumentType,
    MalformedInput,
    UnrecognizedDocumentType,
    build_document,
    generate,
    generate_pdf,
)
from ksef_visualizer.layout import LANDSCAPE, PORTRAIT, find_sections
from ksef_visualizer.models import AdditionalData


@pytest.mark.parametrize("name", ["fa1_minimal.xml", "fa2_minimal.xml", "fa2_full.xml", "fa3_minimal.xml",
                                  "fa3_full.xml", "upo.xml"])
def test_generate_produces_pdf(load_fixture, name):
    result = generate(load_fixture(name))
    assert result.content.startswith(b"%PDF")
    assert result.size == len(result.content) > 0


def test_generate_reports_document_type(load_fixture):
    assert generate(load_fixture("fa2_full.xml")).document_type is DocumentType.INVOICE
    assert generate(load_fixture("upo.xml")).document_type is DocumentType.UPO


def test_generate_with_qr_code(load_fixture):
    additional = AdditionalData.create("5260250274-20240201-ABCDEF-12", "https://ksef.mf.gov.pl/qr/abc")
    result = generate(load_fixture("fa2_minimal.xml"), additional=additional)
    assert result.content.startswith(b"%PDF")
    assert find_sections(result.document, "qr")


def test_generate_accepts_text(load_fixture):
    xml_text = load_fixture("fa3_full.xml").decode("utf-8")
    assert generate(xml_text, "invoice").content.startswith(b"%PDF")


def test_build_document_orientation(load_fixture):
    assert build_document(load_fixture("fa2_minimal.xml")).page.orientation == PORTRAIT
    assert build_document(load_fixture("upo.xml")).page.orientation == LANDSCAPE


def test_generate_pdf_writes_file(fixtures_dir, tmp_path):
    target = tmp_path / "faktura.pdf"
    result = generate_pdf(fixtures_dir / "fa2_full.xml", target, ksef_number="5260250274-20240315-AB")
    assert target.read_bytes() == result.content


def test_unknown_root_writes_nothing(fixtures_dir, tmp_path):
    target = tmp_path / "out.pdf"
    with pytest.raises(UnrecognizedDocumentType):
        generate_pdf(fixtures_dir / "unknown_root.xml", target)
    assert not target.exists()


def test_malformed_xml_writes_nothing(tmp_path):
    source = tmp_path / "broken.xml"
    source.write_text("<Faktura><Fa></Faktura>", encoding="utf-8")
    target = tmp_path / "broken.pdf"
    with pytest.raises(MalformedInput):
        generate_pdf(source, target)
    assert not target.exists()


def test_many_third_parties(load_fixture):
    third = "".join(
        f"<Podmiot3><DaneIdentyfikacyjne><NIP>{i:010d}</NIP><Nazwa>Podmiot {i}</Nazwa></DaneIdentyfikacyjne>"
        f"<Rola>2</Rola></Podmiot3>"
        for i in range(40)
    )
    xml = load_fixture("fa2_minimal.xml").replace(b"<Fa>", third.encode("utf-8") + b"<Fa>", 1)
    result = generate(xml)
    assert result.content.startswith(b"%PDF")
    assert find_sections(result.document, "podmiot3")
