"""Per-schema layout builders."""

from ..classifier import InvoiceVersion
from . import fa1, fa2, fa3, upo

BUILDERS = {
    InvoiceVersion.FA1: fa1.build,
    InvoiceVersion.FA2: fa2.build,
    InvoiceVersion.FA3: fa3.build,
}

build_upo = upo.build

__all__ = ["BUILDERS", "build_upo"]
