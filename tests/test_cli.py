import json
import shutil

from ksef_visualizer.cli import default_output, main


def test_default_output(tmp_path):
    assert default_output(tmp_path / "faktura.xml") == tmp_path / "faktura.pdf"
    assert default_output(tmp_path / "faktura.XML") == tmp_path / "faktura.pdf"
    assert default_output(tmp_path / "faktura") == tmp_path / "faktura.pdf"


def test_json_success(fixtures_dir, tmp_path, capsys):
    output = tmp_path / "upo.pdf"
    code = main([str(fixtures_dir / "upo.xml"), "-o", str(output), "--json"])
    assert code == 0
    report = json.loads(capsys.readouterr().out)
    assert report["success"] is True
    assert report["type"] == "upo"
    assert report["output"] == output.name
    assert report["size"] == output.stat().st_size > 0


def test_default_output_path(fixtures_dir, tmp_path, capsys):
    source = tmp_path / "fa2_minimal.xml"
    shutil.copy(fixtures_dir / "fa2_minimal.xml", source)
    assert main([str(source), "-k", "5260250274-20240201-ABCDEF-12"]) == 0
    assert (tmp_path / "fa2_minimal.pdf").read_bytes().startswith(b"%PDF")
    out = capsys.readouterr().out
    assert "Typ dokumentu: invoice" in out
    assert "Zapisano:" in out


def test_forced_type(fixtures_dir, tmp_path, capsys):
    output = tmp_path / "out.pdf"
    assert main([str(fixtures_dir / "fa3_full.xml"), "-o", str(output), "-t", "invoice", "-j"]) == 0
    assert json.loads(capsys.readouterr().out)["type"] == "invoice"


def test_missing_file(tmp_path, capsys):
    code = main([str(tmp_path / "brak.xml"), "--json"])
    assert code == 1
    report = json.loads(capsys.readouterr().out)
    assert report["success"] is False
    assert "Plik nie istnieje" in report["error"]


def test_empty_file(tmp_path, capsys):
    source = tmp_path / "pusty.xml"
    source.write_text("  \n", encoding="utf-8")
    assert main([str(source)]) == 1
    assert "Plik jest pusty" in capsys.readouterr().err


def test_unrecognized_document(fixtures_dir, tmp_path, capsys):
    output = tmp_path / "out.pdf"
    assert main([str(fixtures_dir / "unknown_root.xml"), "-o", str(output)]) == 1
    assert "Blad: " in capsys.readouterr().err
    assert not output.exists()


def test_unrecognized_document_json(fixtures_dir, tmp_path, capsys):
    output = tmp_path / "out.pdf"
    assert main([str(fixtures_dir / "unknown_root.xml"), "-o", str(output), "--json"]) == 1
    report = json.loads(capsys.readouterr().out)
    assert report == {"success": False, "error": report["error"], "input": "unknown_root.xml"}
    assert "-t invoice" in report["error"]


def test_json_reports_file_names(fixtures_dir, tmp_path, capsys):
    output = tmp_path / "wynik.pdf"
    assert main([str(fixtures_dir / "fa2_minimal.xml"), "-o", str(output), "-j"]) == 0
    report = json.loads(capsys.readouterr().out)
    assert report["input"] == "fa2_minimal.xml"
    assert report["output"] == "wynik.pdf"


def test_very_large_amount(fixtures_dir, tmp_path, capsys):
    source = tmp_path / "duza.xml"
    xml = (fixtures_dir / "fa2_minimal.xml").read_text(encoding="utf-8")
    source.write_text(xml.replace("<P_15>0</P_15>", f"<P_15>{'9' * 30}</P_15>"), encoding="utf-8")
    assert main([str(source), "--json"]) == 0
    report = json.loads(capsys.readouterr().out)
    assert report["success"] is True
    assert (tmp_path / "duza.pdf").read_bytes().startswith(b"%PDF")
