"""
Command line interface: ``ksef-pdf INPUT [-o OUTPUT] [-t invoice|upo] ...``.

Exit code 0 on success, 1 on any error. With ``--json`` exactly one JSON
object is printed to stdout and logging is silenced.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from .classifier import DocumentType
from .errors import KsefPdfError
from .generator import generate
from .models import AdditionalData

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def default_output(input_path: Path) -> Path:
    """``invoice.xml`` -> ``invoice.pdf``; other names get ``.pdf`` appended."""
    if input_path.suffix.lower() == ".xml":
        return input_path.with_suffix(".pdf")
    return input_path.with_name(input_path.name + ".pdf")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ksef-pdf",
        description="Generuje PDF z faktury KSeF (FA 1/2/3) lub UPO w formacie XML",
    )
    parser.add_argument("input", help="Plik XML faktury lub UPO")
    parser.add_argument("-o", "--output", help="Plik PDF (domyslnie: nazwa wejscia z rozszerzeniem .pdf)")
    parser.add_argument("-t", "--type", dest="document_type", choices=[t.value for t in DocumentType],
                        help="Wymus typ dokumentu zamiast wykrywania")
    parser.add_argument("-k", "--ksef", "--ksef-number", dest="ksef_number", help="Numer KSeF faktury")
    parser.add_argument("-q", "--qrcode", help="Tresc kodu QR (link weryfikacyjny)")
    parser.add_argument("-j", "--json", action="store_true", help="Wynik jako JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Szczegolowe logowanie")
    return parser


def _configure_logging(args):
    if args.json:
        level = logging.CRITICAL
    elif args.verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT)


def _report_error(args, message) -> int:
    if args.json:
        print(json.dumps({"success": False, "error": message, "input": Path(args.input).name}, ensure_ascii=False))
    else:
        print(f"Blad: {message}", file=sys.stderr)
    return 1


def run(args) -> int:
    """Generate one PDF as described by parsed ``args``; returns the exit code."""
    input_path = Path(args.input)
    output_path = Path(args.output) if args.output else default_output(input_path)

    if not input_path.is_file():
        return _report_error(args, f"Plik nie istnieje: {input_path}")
    try:
        xml_bytes = input_path.read_bytes()
    except OSError as exc:
        return _report_error(args, f"Nie mozna odczytac pliku {input_path}: {exc}")
    if not xml_bytes.strip():
        return _report_error(args, f"Plik jest pusty: {input_path}")

    if not args.json:
        print(f"Przetwarzanie: {input_path}")
    try:
        result = generate(xml_bytes, args.document_type,
                          AdditionalData.create(args.ksef_number, args.qrcode))
    except KsefPdfError as exc:
        logger.debug("Generation failed", exc_info=True)
        return _report_error(args, str(exc))

    try:
        output_path.write_bytes(result.content)
    except OSError as exc:
        return _report_error(args, f"Nie mozna zapisac pliku {output_path}: {exc}")

    if args.json:
        print(json.dumps({
            "success": True,
            "input": input_path.name,
            "output": output_path.name,
            "type": result.document_type.value,
            "size": result.size,
        }, ensure_ascii=False))
    else:
        print(f"Typ dokumentu: {result.document_type.value}")
        print(f"Zapisano: {output_path} ({result.size} B)")
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(args)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
