"""
Runtime settings for layout and rendering.

Everything here is a plain module constant. The only value read from the
environment is the fonts directory (``KSEF_PDF_FONTS_DIR``).
"""

import os
from pathlib import Path

# Font directory relative to this package, overridable for deployments
FONTS_DIR = Path(os.environ.get("KSEF_PDF_FONTS_DIR") or Path(__file__).parent / "fonts")

# Preferred bundled font pair (regular, bold) looked up in FONTS_DIR
BUNDLED_FONT = ("Inter", "Inter-Regular.ttf", "Inter-Bold.ttf")

# System fonts with Polish glyphs: (family, regular path, bold path)
SYSTEM_FONT_CANDIDATES = [
    ("DejaVu", "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
               "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf"),
    ("DejaVu", "/usr/share/fonts/dejavu/DejaVuSans.ttf",
               "/usr/share/fonts/dejavu/DejaVuSans-Bold.ttf"),
    ("DejaVu", "/usr/share/fonts/TTF/DejaVuSans.ttf",
               "/usr/share/fonts/TTF/DejaVuSans-Bold.ttf"),
    ("DejaVu", "/opt/homebrew/share/fonts/truetype/dejavu/DejaVuSans.ttf",
               "/opt/homebrew/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf"),
]

# Core PDF font used when no TTF is available (Latin-1 only)
FALLBACK_FONT = "Helvetica"

# Page
PAGE_SIZE = "A4"
PAGE_MARGINS = (10, 10, 10)     # left, top, right in mm
PAGE_BREAK_MARGIN = 15          # bottom, in mm
BASE_FONT_SIZE = 9
LINE_HEIGHT = 5
FOOTER_TEMPLATE = "{page} z {pages}"

# Shown instead of the KSeF number when none was assigned
NO_KSEF_NUMBER = "Nie nadano"

# Shown in place of a mandatory value that is missing from the XML
PLACEHOLDER = "-"

# QR code size on the page, in mm
QR_SIZE = 30

# Narrower horizontal columns are stacked vertically instead, in mm
MIN_COLUMN_WIDTH = 30
