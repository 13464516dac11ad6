"""
Extraction abstractions — result types, error taxonomy and value normalisers.

ExtractedProduct / ExtractionResult are the canonical output every extraction
path must produce. Everything downstream (validator, API responses, the
purchase-order draft screen) operates on these types; only the parsers know
about PDF text layouts.
"""

import datetime
import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Optional

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)


# ── Extraction methods ────────────────────────────────────────────────────────


class ExtractionMethod:
    TEMPLATE = "template"  # a stored or draft ParsingTemplate was applied
    GENERIC = "generic"  # built-in fallback line pattern


# ── Result types ──────────────────────────────────────────────────────────────


@dataclass
class ExtractedProduct:
    """
    One purchase-order line item.

    Amounts are Decimal (never float). line_total is only set when the
    document prints it; it is not derived from quantity × unit_price.
    """

    description: str
    quantity: Decimal
    unit_price: Decimal
    sku: Optional[str] = None
    line_total: Optional[Decimal] = None
    line_number: Optional[int] = None  # 1-based line within the extracted text


@dataclass
class ExtractionResult:
    """Output of one extraction call. Ephemeral — never persisted by the engine."""

    products: list[ExtractedProduct] = field(default_factory=list)
    order_number: Optional[str] = None
    date: Optional[str] = None  # as printed on the document
    issue_date: Optional[datetime.date] = None  # parsed from `date` when possible
    document_total: Optional[Decimal] = None
    discount: Optional[Decimal] = None
    supplier_name: Optional[str] = None

    extraction_method: str = ExtractionMethod.GENERIC
    template_id: Optional[str] = None
    template_name: Optional[str] = None
    vendor_confirmed: Optional[bool] = None  # None = no vendor_regex configured
    skipped_lines: int = 0  # lines that matched but had unparseable numbers
    warnings: list[str] = field(default_factory=list)


# ── Errors ────────────────────────────────────────────────────────────────────


class ExtractionError(Exception):
    """Base class for extraction engine errors."""


class UnreadablePdf(ExtractionError):
    """The byte stream cannot be converted to text (corrupt, encrypted, not a PDF)."""


class MalformedTemplate(ExtractionError):
    """
    A template cannot be used: a regex fails to compile, a field mapping index
    is missing/duplicated/out of range, or the stored config has the wrong shape.

    `field` is the dotted path of the offending setting, e.g.
    "products_config.field_mapping.qty", so authoring UIs can highlight it.
    """

    def __init__(self, message: str, field: str, template_name: Optional[str] = None):
        self.field = field
        self.template_name = template_name
        prefix = f"Template {template_name!r}: " if template_name else ""
        super().__init__(f"{prefix}{field}: {message}")
        self.detail = message


class ParseError(ExtractionError):
    """A single value could not be normalised. Always recovered per line."""


# ── Value normalisers ─────────────────────────────────────────────────────────

# Everything that is not part of a number: currency symbols, letters, spaces
_NON_NUMERIC = re.compile(r"[^\d.,\-]")


def parse_amount(value: object) -> Decimal:
    """
    Normalise a locale-formatted number into a Decimal.

    Rules (fixed es-AR locale, tolerant of en-US documents):
      - whitespace and currency symbols are stripped ("$ 1.234,56" → "1.234,56")
      - both '.' and ',' present: the right-most one is the decimal separator,
        the other is a thousands separator ("1.234,56" and "1,234.56" → 1234.56)
      - only one kind present, more than once: thousands separator
        ("1.234.567" → 1234567)
      - a single ',' is the decimal separator ("1234,56" → 1234.56)
      - a single '.' is the decimal separator ("594710.00" → 594710.00)
      - a leading or trailing '-' makes the number negative ("-1.500,00",
        "1.500,00-"); a '-' anywhere else is not a number ("12-34")

    Raises ParseError for empty or non-numeric input.
    """
    if isinstance(value, Decimal):
        return value
    if value is None:
        raise ParseError("Cannot convert empty value to a number")

    raw = str(value).strip()
    cleaned = _NON_NUMERIC.sub("", raw)
    negative = False
    if cleaned.startswith("-"):
        negative, cleaned = True, cleaned[1:]
    elif cleaned.endswith("-"):
        negative, cleaned = True, cleaned[:-1]
    if "-" in cleaned:
        raise ParseError(f"Cannot convert {value!r} to a number")
    if not cleaned or not any(ch.isdigit() for ch in cleaned):
        raise ParseError(f"Cannot convert {value!r} to a number")

    dots = cleaned.count(".")
    commas = cleaned.count(",")

    if dots and commas:
        if cleaned.rfind(",") > cleaned.rfind("."):
            cleaned = cleaned.replace(".", "").replace(",", ".")
        else:
            cleaned = cleaned.replace(",", "")
    elif commas > 1:
        cleaned = cleaned.replace(",", "")
    elif dots > 1:
        cleaned = cleaned.replace(".", "")
    elif commas == 1:
        cleaned = cleaned.replace(",", ".")

    try:
        number = Decimal(cleaned)
    except InvalidOperation:
        raise ParseError(f"Cannot convert {value!r} to a number")
    return -number if negative else number


def to_date(value: object, dayfirst: bool = True) -> Optional[datetime.date]:
    """Attempt to parse a printed date. Returns None on failure."""
    if value is None or str(value).strip() == "":
        return None
    if isinstance(value, datetime.date):
        return value

    try:
        return date_parser.parse(str(value), dayfirst=dayfirst).date()
    except (ValueError, OverflowError):
        return None


def clean_str(value: object) -> Optional[str]:
    """Strip and collapse internal whitespace; return None if empty."""
    if value is None:
        return None
    s = " ".join(str(value).split())
    return s or None
