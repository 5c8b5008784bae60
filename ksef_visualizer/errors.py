"""Exceptions raised by the KSeF visualizer pipeline."""


class KsefPdfError(Exception):
    """Base class for every failure reported by the pipeline."""


class MalformedInput(KsefPdfError, ValueError):
    """Source text is not well-formed (or not safe) XML."""


class UnrecognizedDocumentType(KsefPdfError, ValueError):
    """Neither an invoice nor an UPO, or an unsupported type override."""


class UnknownSchemaVersion(KsefPdfError, ValueError):
    """Invoice form code is missing or not one of the supported versions."""


class MissingRequiredStructure(KsefPdfError):
    """A classified document lacks a block its builder cannot do without."""


class RenderingFailure(KsefPdfError):
    """The PDF engine failed or produced no output."""
