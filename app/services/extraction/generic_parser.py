"""
Generic fallback parser — used when no template matches the document.

Lower accuracy than a supplier template, but still produces a usable draft
for unknown suppliers instead of failing outright. Same line-by-line
machinery as the templated path, with one fixed pattern:

    <description>  <integer qty>  <decimal price>  <decimal total>

anchored at the line end so trailing text is never swallowed into a number.

Header fields come from built-in patterns that cover the most common
Spanish/English purchase-order wording.
"""

import logging
import re
from typing import Optional

from app.services.extraction.base import (
    ExtractionMethod,
    ExtractionResult,
    ParseError,
    clean_str,
    parse_amount,
    to_date,
)
from app.services.extraction.template_parser import parse_product_lines
from app.settings import settings

logger = logging.getLogger(__name__)

_DECIMAL = r"\d[\d.,]*[.,]\d{2}"

GENERIC_LINE_REGEX = re.compile(rf"^(.+?)\s+(\d+)\s+({_DECIMAL})\s+({_DECIMAL})$")
GENERIC_FIELD_MAPPING: dict[str, int] = {
    "description": 1,
    "qty": 2,
    "price": 3,
    "total": 4,
}

# ── Built-in header patterns (first match wins, in list order) ────────────────

ORDER_PATTERNS = [
    re.compile(r"Orden\s*(?:No:?)?\s*#?(\d+)", re.IGNORECASE),
    re.compile(r"Order\s*#?(\d+)", re.IGNORECASE),
    re.compile(r"Pedido\s*#?(\d+)", re.IGNORECASE),
    re.compile(r"N[°º]\s*(\d+)", re.IGNORECASE),
]

DATE_PATTERNS = [
    re.compile(r"Realizada\s+el\s+(\d{2}/\d{2}/\d{4})", re.IGNORECASE),
    re.compile(r"Fecha:?\s*(\d{2}/\d{2}/\d{4})", re.IGNORECASE),
    re.compile(r"(\d{2}/\d{2}/\d{4})"),
]

# \bTotal never matches inside "Subtotal"
TOTAL_PATTERN = re.compile(r"\bTotal[:\s]+\$?\s*([\d.,]+)", re.IGNORECASE)

DISCOUNT_PATTERNS = [
    re.compile(r"Descuento[:\s]+\$?\s*([\d.,]+)", re.IGNORECASE),
    re.compile(r"Discount[:\s]+\$?\s*([\d.,]+)", re.IGNORECASE),
]


def extract_generic(text: str) -> ExtractionResult:
    """Extract a best-effort result from text without a template."""
    result = ExtractionResult(extraction_method=ExtractionMethod.GENERIC)

    result.order_number = _first_of(ORDER_PATTERNS, text)
    result.date = _first_of(DATE_PATTERNS, text)
    result.issue_date = to_date(result.date, dayfirst=settings.date_dayfirst)
    result.document_total = _last_total(text)
    discount = _first_of(DISCOUNT_PATTERNS, text)
    if discount is not None:
        try:
            result.discount = parse_amount(discount)
        except ParseError as exc:
            result.warnings.append(f"Document discount ignored: {exc}")

    parse_product_lines(text, GENERIC_LINE_REGEX, GENERIC_FIELD_MAPPING, result)

    logger.info(
        "Generic parser extracted %d product(s), %d skipped line(s)",
        len(result.products),
        result.skipped_lines,
    )
    return result


# ── Private helpers ───────────────────────────────────────────────────────────


def _first_of(patterns: list[re.Pattern], text: str) -> Optional[str]:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return clean_str(match.group(1))
    return None


def _last_total(text: str):
    """
    The grand total is printed last; scan from the bottom so subtotals and
    per-page totals higher up lose.
    """
    for line in reversed(text.split("\n")):
        match = TOTAL_PATTERN.search(line)
        if match is None:
            continue
        try:
            return parse_amount(match.group(1))
        except ParseError:
            continue
    return None
