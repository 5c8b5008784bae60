"""
KSeF XML to PDF visualizer.

Turns KSeF e-invoices (FA (1), FA (2), FA (3) schemas) and UPO receipt
confirmations into readable A4 PDF documents using fpdf2.
"""

from .classifier import DocumentType, InvoiceVersion, classify
from .errors import (
    KsefPdfError,
    MalformedInput,
    MissingRequiredStructure,
    RenderingFailure,
    UnknownSchemaVersion,
    UnrecognizedDocumentType,
)
from .generator import build_document, generate, generate_pdf
from .models import AdditionalData, GenerationResult
from .renderer import render_pdf
from .xml_tree import normalize

__version__ = "1.0.0"

__all__ = [
    "AdditionalData",
    "DocumentType",
    "GenerationResult",
    "InvoiceVersion",
    "KsefPdfError",
    "MalformedInput",
    "MissingRequiredStructure",
    "RenderingFailure",
    "UnknownSchemaVersion",
    "UnrecognizedDocumentType",
    "build_document",
    "classify",
    "generate",
    "generate_pdf",
    "normalize",
    "render_pdf",
]
