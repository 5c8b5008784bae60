"""Plain data passed into and out of the generation pipeline."""

from dataclasses import dataclass
from typing import Optional

from .classifier import DocumentType
from .config import NO_KSEF_NUMBER
from .layout import LayoutDocument


@dataclass(frozen=True)
class AdditionalData:
    """Values printed on an invoice that do not come from its XML."""

    ksef_number: str = NO_KSEF_NUMBER
    qr_code: Optional[str] = None

    @classmethod
    def create(cls, ksef_number=None, qr_code=None) -> "AdditionalData":
        """Build from optional CLI-style values, applying the sentinel."""
        return cls(ksef_number=ksef_number or NO_KSEF_NUMBER, qr_code=qr_code or None)


@dataclass(frozen=True)
class GenerationResult:
    document_type: DocumentType
    document: LayoutDocument
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)
