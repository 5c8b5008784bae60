import logging

import pytest

from ksef_visualizer.errors import MalformedInput
from ksef_visualizer.xml_tree import attr, child, children, local_name, normalize, strip_prefixes, text

PLAIN = """<Faktura xmlns="urn:test">
  <Naglowek><KodFormularza kodSystemowy="FA (2)">FA</KodFormularza></Naglowek>
  <Fa>
    <P_2>FV/1</P_2>
    <FaWiersz><P_7>A</P_7></FaWiersz>
    <FaWiersz><P_7>B</P_7></FaWiersz>
    <Pusty/>
  </Fa>
</Faktura>"""

PREFIXED = """<tns:Faktura xmlns:tns="urn:test">
  <tns:Naglowek><tns:KodFormularza kodSystemowy="FA (2)">FA</tns:KodFormularza></tns:Naglowek>
  <tns:Fa>
    <tns:P_2>FV/1</tns:P_2>
    <tns:FaWiersz><tns:P_7>A</tns:P_7></tns:FaWiersz>
    <tns:FaWiersz><tns:P_7>B</tns:P_7></tns:FaWiersz>
    <tns:Pusty/>
  </tns:Fa>
</tns:Faktura>"""


def test_local_name():
    assert local_name("tns:Faktura") == "Faktura"
    assert local_name("{urn:test}Faktura") == "Faktura"
    assert local_name("@xsi:type") == "@type"
    assert local_name("P_1") == "P_1"


def test_compact_shape():
    tree = normalize(PLAIN)
    fa = tree["Faktura"]["Fa"]
    assert fa["P_2"] == "FV/1"
    assert isinstance(fa["FaWiersz"], list)
    assert [w["P_7"] for w in fa["FaWiersz"]] == ["A", "B"]
    assert fa["Pusty"] is None
    kod = tree["Faktura"]["Naglowek"]["KodFormularza"]
    assert kod["@kodSystemowy"] == "FA (2)"
    assert kod["#text"] == "FA"


def test_prefixed_and_plain_documents_normalize_alike():
    plain = normalize(PLAIN)["Faktura"]
    prefixed = normalize(PREFIXED)["Faktura"]
    assert plain["Naglowek"] == prefixed["Naglowek"]
    assert plain["Fa"] == prefixed["Fa"]


def _prefixed(node, prefix):
    if isinstance(node, dict):
        return {
            ("@" + prefix + ":" + key[1:] if key.startswith("@") else key if key == "#text" else prefix + ":" + key):
                _prefixed(value, prefix)
            for key, value in node.items()
        }
    if isinstance(node, list):
        return [_prefixed(item, prefix) for item in node]
    return node


def test_normalize_is_idempotent():
    tree = normalize(PREFIXED)
    assert strip_prefixes(tree) == tree


@pytest.mark.parametrize("prefix", ["tns", "fa", "ns2"])
def test_stripping_survives_reprefixing(load_fixture, prefix):
    tree = normalize(load_fixture("fa2_full.xml"))
    assert strip_prefixes(_prefixed(tree, prefix)) == tree


def test_bytes_with_bom_are_accepted():
    tree = normalize(b"\xef\xbb\xbf" + PLAIN.encode("utf-8"))
    assert "Faktura" in tree


def test_colliding_keys_keep_later_value(caplog):
    xml = '<a:Root xmlns:a="urn:a" xmlns:b="urn:b"><a:X>first</a:X><b:Y/><b:X>second</b:X></a:Root>'
    with caplog.at_level(logging.WARNING, logger="ksef_visualizer.xml_tree"):
        tree = normalize(xml)
    assert tree["Root"]["X"] == "second"
    assert any("collapses" in record.getMessage() for record in caplog.records)


@pytest.mark.parametrize("xml", ["", "   ", b"", "<Faktura><Fa></Faktura>", "not xml at all"])
def test_malformed_input(xml):
    with pytest.raises(MalformedInput):
        normalize(xml)


def test_entity_declarations_are_rejected():
    xml = '<?xml version="1.0"?><!DOCTYPE r [<!ENTITY e "boom">]><r>&e;</r>'
    with pytest.raises(MalformedInput):
        normalize(xml)


def test_non_utf8_bytes_are_rejected():
    with pytest.raises(MalformedInput):
        normalize("<r>zażółć</r>".encode("utf-16"))


def test_read_helpers():
    fa = normalize(PLAIN)["Faktura"]["Fa"]
    assert child(fa, "FaWiersz", "P_7") == "A"
    assert [text(w, "P_7") for w in children(fa, "FaWiersz")] == ["A", "B"]
    assert children(fa, "P_2") == ["FV/1"]
    assert children(fa, "Brak") == []
    assert text(fa, "Pusty") is None
    assert text(fa, "Brak", default="-") == "-"
    assert attr(normalize(PLAIN)["Faktura"]["Naglowek"]["KodFormularza"], "kodSystemowy") == "FA (2)"
    assert attr(fa, "brak") is None
