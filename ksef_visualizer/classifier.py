"""Decide which kind of KSeF document a normalized tree holds."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Union

from .constants import FORM_CODE_FA1, FORM_CODE_FA2, FORM_CODE_FA3
from .errors import MissingRequiredStructure, UnknownSchemaVersion, UnrecognizedDocumentType
from .xml_tree import attr, child

logger = logging.getLogger(__name__)

INVOICE_ROOT = "Faktura"
UPO_ROOT = "Potwierdzenie"


class DocumentType(str, Enum):
    INVOICE = "invoice"
    UPO = "upo"


class InvoiceVersion(str, Enum):
    """Invoice schema versions keyed by their form code."""

    FA1 = FORM_CODE_FA1
    FA2 = FORM_CODE_FA2
    FA3 = FORM_CODE_FA3

    @property
    def tag(self) -> str:
        return f"invoice-v{self.name[-1]}"


@dataclass(frozen=True)
class Invoice:
    version: InvoiceVersion
    root: dict

    @property
    def tag(self) -> str:
        return self.version.tag


@dataclass(frozen=True)
class ReceiptConfirmation:
    root: dict

    @property
    def tag(self) -> str:
        return "upo"


DocumentEnvelope = Union[Invoice, ReceiptConfirmation]


def detect_document_type(tree: dict) -> DocumentType:
    """Tell invoices from UPO documents by their root element."""
    if isinstance(tree, dict):
        if INVOICE_ROOT in tree:
            return DocumentType.INVOICE
        if UPO_ROOT in tree:
            return DocumentType.UPO
    raise UnrecognizedDocumentType(
        "Nie mozna rozpoznac typu dokumentu. Uzyj -t invoice lub -t upo")


def parse_document_type(value) -> DocumentType:
    """Validate a caller supplied type override."""
    if isinstance(value, DocumentType):
        return value
    try:
        return DocumentType(str(value).strip().lower())
    except ValueError:
        raise UnrecognizedDocumentType(
            f"Niepoprawny typ dokumentu: {value}. Dozwolone: invoice, upo") from None


def detect_invoice_version(faktura) -> InvoiceVersion:
    """Read the schema version from ``Naglowek/KodFormularza/@kodSystemowy``."""
    naglowek = child(faktura, "Naglowek")
    if not isinstance(naglowek, dict):
        raise MissingRequiredStructure("Niepoprawny XML faktury: brak elementu Naglowek")

    code = attr(child(naglowek, "KodFormularza"), "kodSystemowy")
    if code is None:
        raise UnknownSchemaVersion("Niepoprawny XML faktury: brak informacji o wersji schematu")
    try:
        return InvoiceVersion(code)
    except ValueError:
        raise UnknownSchemaVersion(f"Nieobslugiwana wersja schematu faktury: {code}") from None


def classify(tree: dict, document_type=None) -> DocumentEnvelope:
    """Wrap the tree into an envelope; ``document_type`` skips detection."""
    if document_type is None:
        kind = detect_document_type(tree)
    else:
        kind = parse_document_type(document_type)
        logger.debug("Document type forced to %s", kind.value)

    if kind is DocumentType.UPO:
        potwierdzenie = child(tree, UPO_ROOT)
        if not isinstance(potwierdzenie, dict):
            raise MissingRequiredStructure("Niepoprawny XML UPO: brak elementu Potwierdzenie")
        return ReceiptConfirmation(potwierdzenie)

    faktura = child(tree, INVOICE_ROOT)
    if not isinstance(faktura, dict):
        raise MissingRequiredStructure("Niepoprawny XML faktury: brak elementu Faktura")
    version = detect_invoice_version(faktura)
    logger.debug("Detected invoice schema %s", version.value)
    return Invoice(version, faktura)
