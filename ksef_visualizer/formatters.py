"""
Value formatters shared by every builder.

None of these raise on bad data: a value that cannot be interpreted is shown
exactly as it appears in the XML, so an imperfect invoice still renders.
"""

import re
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext

from .config import PLACEHOLDER
from .constants import FLAG_LABELS, PAYMENT_METHODS, VAT_RATES
from .layout import label_value
from .xml_tree import child, text

_CENTS = Decimal("0.01")
# Amounts with more integer digits than this are shown as written
_MAX_DIGITS = 60
_FRACTION_OVERFLOW = re.compile(r"(\.\d{6})\d+")


def _dec(value):
    """Convert value to a finite Decimal, or None."""
    if value is None:
        return None
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    return number if number.is_finite() else None


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _quantize(number, exponent):
    """Round ``number`` to ``exponent``, or None when it is too large to format."""
    if number.adjusted() >= _MAX_DIGITS:
        return None
    with localcontext() as ctx:
        ctx.prec = _MAX_DIGITS + 10
        return number.quantize(exponent, rounding=ROUND_HALF_UP)


# ---------------------------------------------------------------------------
# Numbers
# ---------------------------------------------------------------------------

def format_currency(value) -> str:
    """Format an amount with two decimal places; non-numbers pass through."""
    if value is None:
        return ""
    number = _dec(value)
    rounded = _quantize(number, _CENTS) if number is not None else None
    if rounded is None:
        return str(value)
    return f"{rounded:f}"


def format_money(value, currency) -> str:
    """Amount followed by the currency code, when there is one."""
    amount = format_currency(value)
    return f"{amount} {currency}" if amount and currency else amount


def sum_amounts(*values) -> str:
    """Sum of amounts as a formatted string, or ``""`` unless all are numbers."""
    numbers = [_dec(value) for value in values]
    if not numbers or any(number is None for number in numbers):
        return ""
    with localcontext() as ctx:
        ctx.prec = _MAX_DIGITS + 10
        total = sum(numbers, Decimal("0"))
    return format_currency(total)


def format_quantity(value) -> str:
    """Quantities and rates keep their precision but lose trailing zeros."""
    if value is None:
        return ""
    number = _dec(value)
    if number is None or number.adjusted() >= _MAX_DIGITS:
        return str(value)
    if number == number.to_integral_value():
        return f"{_quantize(number, Decimal(1)):f}"
    with localcontext() as ctx:
        ctx.prec = _MAX_DIGITS + 10
        return f"{number.normalize():f}"


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

def format_date(value) -> str:
    """ISO date (``2024-01-15``) to ``15.01.2024``."""
    if value is None:
        return ""
    raw = str(value).strip()
    try:
        return datetime.strptime(raw, "%Y-%m-%d").strftime("%d.%m.%Y")
    except ValueError:
        return str(value)


def format_datetime(value) -> str:
    """ISO timestamp to ``15.01.2024 10:20:30``; plain dates are handled too."""
    if value is None:
        return ""
    raw = str(value).strip()
    candidate = _FRACTION_OVERFLOW.sub(r"\1", raw)
    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"
    try:
        moment = datetime.fromisoformat(candidate)
    except ValueError:
        return format_date(value)
    if "T" not in raw and " " not in raw:
        return moment.strftime("%d.%m.%Y")
    return moment.strftime("%d.%m.%Y %H:%M:%S")


# ---------------------------------------------------------------------------
# Codes
# ---------------------------------------------------------------------------

def format_code(value, table: dict) -> str:
    """Look ``value`` up in a code table; unknown codes are shown raw."""
    if value is None:
        return ""
    return table.get(str(value).strip(), str(value))


def format_vat_rate(code) -> str:
    """VAT rate code (P_12) to its label."""
    return format_code(code, VAT_RATES)


def format_flag(value) -> str:
    """Schema yes/no marker (1 / 2) to Tak / Nie."""
    return format_code(value, FLAG_LABELS)


def format_payment_method(code) -> str:
    return format_code(code, PAYMENT_METHODS)


# ---------------------------------------------------------------------------
# Addresses
# ---------------------------------------------------------------------------

def join_nonempty(separator: str, *parts) -> str:
    return separator.join(str(part).strip() for part in parts if not _blank(part))


def _house_number(number, flat):
    if _blank(number):
        return None
    return f"{number}/{flat}" if not _blank(flat) else number


def format_address_lines(adres) -> list:
    """Address block (``Adres`` or ``AdresKoresp``) as printable lines.

    FA (2) and FA (3) give free-form ``AdresL1``/``AdresL2``; FA (1) gives
    either a structured Polish ``AdresPol`` or a foreign ``AdresZagr``.
    """
    if not isinstance(adres, dict):
        return []

    lines = []
    polish = child(adres, "AdresPol")
    foreign = child(adres, "AdresZagr")
    if isinstance(polish, dict):
        house = _house_number(text(polish, "NrDomu"), text(polish, "NrLokalu"))
        street = text(polish, "Ulica") or text(polish, "Miejscowosc")
        town = text(polish, "Poczta") or text(polish, "Miejscowosc")
        lines.append(join_nonempty(" ", street, house))
        lines.append(join_nonempty(" ", text(polish, "KodPocztowy"), town))
        country = text(polish, "KodKraju", default="PL")
    else:
        source = foreign if isinstance(foreign, dict) else adres
        lines.append(text(source, "AdresL1"))
        lines.append(text(source, "AdresL2"))
        country = text(source, "KodKraju")

    if country and country != "PL":
        lines.append(country)
    gln = text(adres, "GLN")
    if gln:
        lines.append(f"GLN: {gln}")
    return [line for line in lines if line]


# ---------------------------------------------------------------------------
# Labelled rows
# ---------------------------------------------------------------------------

def display(value, formatter=None, placeholder: str = PLACEHOLDER) -> str:
    """Formatted value, or the placeholder for a missing mandatory value."""
    if _blank(value):
        return placeholder
    return formatter(value) if formatter else str(value)


def optional_field(label: str, value, formatter=None, style: str = "normal") -> list:
    """One labelled row, or nothing at all when the value is absent."""
    if _blank(value):
        return []
    return [label_value(label, formatter(value) if formatter else str(value), style=style)]


def required_field(label: str, value, formatter=None, style: str = "normal"):
    """A labelled row that is always present; missing values show the placeholder."""
    return label_value(label, display(value, formatter), style=style)
