"""
KSeF XML to PDF pipeline.

normalize -> classify -> build -> assemble -> render. Every step is a plain
function without shared state, so documents can be generated concurrently.
"""

import logging
from pathlib import Path
from typing import Optional

from .assembler import assemble
from .builders import BUILDERS, build_upo
from .classifier import DocumentType, Invoice, classify
from .layout import LayoutDocument
from .models import AdditionalData, GenerationResult
from .renderer import render_pdf
from .xml_tree import normalize

logger = logging.getLogger(__name__)


def _build(xml_text, document_type, additional):
    additional = additional or AdditionalData()
    envelope = classify(normalize(xml_text), document_type)
    logger.info("Building %s document", envelope.tag)

    if isinstance(envelope, Invoice):
        content = BUILDERS[envelope.version](envelope.root, additional)
        return DocumentType.INVOICE, assemble(content, DocumentType.INVOICE)
    return DocumentType.UPO, assemble(build_upo(envelope.root), DocumentType.UPO)


def build_document(xml_text, document_type=None, additional: Optional[AdditionalData] = None) -> LayoutDocument:
    """Turn XML text into a page-level layout document, without rendering it."""
    return _build(xml_text, document_type, additional)[1]


def generate(xml_text, document_type=None, additional: Optional[AdditionalData] = None) -> GenerationResult:
    """Generate PDF bytes from XML text."""
    kind, document = _build(xml_text, document_type, additional)
    return GenerationResult(document_type=kind, document=document, content=render_pdf(document))


def generate_pdf(xml_path, pdf_path, document_type=None, ksef_number=None, qr_code=None) -> GenerationResult:
    """Read ``xml_path`` and write the PDF to ``pdf_path``.

    Nothing is written when any step fails.
    """
    xml_path, pdf_path = Path(xml_path), Path(pdf_path)
    result = generate(xml_path.read_bytes(), document_type, AdditionalData.create(ksef_number, qr_code))
    pdf_path.write_bytes(result.content)
    logger.info("Wrote %s (%d bytes)", pdf_path, result.size)
    return result
