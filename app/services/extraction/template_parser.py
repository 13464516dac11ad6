"""
Templated extraction — applies a ParsingTemplate to extracted PDF text.

Steps:
  1. Header fields: each configured header regex runs once over the whole
     text (first match). Group 1 is the value when the regex has groups,
     otherwise the whole match. An unmatched regex leaves the field unset.
  2. Product block: keep text from the first table_start_marker occurrence,
     then cut at the first table_end_marker occurrence after that.
  3. Product rows: every non-blank, stripped line of the block is tried
     against line_regex. Non-matching lines (headings, footers, page
     furniture) are ignored silently. Matching lines whose numbers cannot
     be normalised are skipped and counted in `skipped_lines`.

Nothing here raises on bad document content — only compile_template()
raises, and only for a malformed template.
"""

import logging
import re
from typing import Any, Optional

from app.services.extraction.base import (
    ExtractedProduct,
    ExtractionMethod,
    ExtractionResult,
    ParseError,
    clean_str,
    parse_amount,
    to_date,
)
from app.services.extraction.templates import CompiledTemplate, compile_template
from app.settings import settings

logger = logging.getLogger(__name__)


def apply_template(text: str, template: Any) -> ExtractionResult:
    """
    Extract header fields and product rows from text using a template.

    Accepts a CompiledTemplate or anything compile_template() accepts.

    Raises:
        MalformedTemplate: the template fails compilation.
    """
    compiled = compile_template(template)

    result = ExtractionResult(
        extraction_method=ExtractionMethod.TEMPLATE,
        template_id=compiled.id,
        template_name=compiled.name,
        supplier_name=compiled.name,
    )

    _extract_header(text, compiled, result)

    block, first_line = isolate_product_block(
        text, compiled.table_start_marker, compiled.table_end_marker
    )
    if block is None:
        result.warnings.append(
            f"Table start marker {compiled.table_start_marker!r} not found — "
            f"no product rows read"
        )
        logger.warning(
            "Template %r: start marker %r not found",
            compiled.name,
            compiled.table_start_marker,
        )
    else:
        parse_product_lines(
            block, compiled.line_regex, compiled.field_mapping, result, first_line
        )

    logger.info(
        "Template %r extracted %d product(s), %d skipped line(s)",
        compiled.name,
        len(result.products),
        result.skipped_lines,
    )
    return result


def test_parse(text: str, template: Any) -> ExtractionResult:
    """
    Dry run for template authoring: same as apply_template(), for a template
    that may be unsaved or inactive.
    """
    return apply_template(text, template)


# Not a test function — keep pytest from collecting it when imported into tests
test_parse.__test__ = False


# ── Shared building blocks (also used by the generic parser) ──────────────────


def isolate_product_block(
    text: str, start_marker: Optional[str], end_marker: Optional[str]
) -> tuple[Optional[str], int]:
    """
    Cut the product table out of the document text.

    Returns (block, first_line_number). block is None when a start marker is
    configured but never occurs. first_line_number is the 1-based line of the
    document where the block begins.
    """
    start = 0
    if start_marker:
        start = text.find(start_marker)
        if start == -1:
            return None, 0

    block = text[start:]
    if end_marker:
        end = block.find(end_marker)
        if end != -1:
            block = block[:end]

    first_line = text.count("\n", 0, start) + 1
    return block, first_line


def parse_product_lines(
    block: str,
    line_regex: re.Pattern,
    field_mapping: dict[str, int],
    result: ExtractionResult,
    first_line: int = 1,
) -> None:
    """Append one ExtractedProduct per matching line of block to result."""
    for offset, raw_line in enumerate(block.split("\n")):
        line = raw_line.strip()
        if not line:
            continue
        match = line_regex.search(line)
        if match is None:
            continue

        line_number = first_line + offset
        try:
            product = _build_product(match, field_mapping, line_number)
        except ParseError as exc:
            result.skipped_lines += 1
            result.warnings.append(f"Line {line_number} skipped: {exc}")
            logger.debug("Skipping line %d %r: %s", line_number, line, exc)
            continue
        result.products.append(product)


def first_capture(regex: Optional[re.Pattern], text: str) -> Optional[str]:
    """First match of regex in text: group 1 if the regex has groups, else the match."""
    if regex is None:
        return None
    match = regex.search(text)
    if match is None:
        return None
    value = match.group(1) if regex.groups else match.group(0)
    return clean_str(value)


# ── Private helpers ───────────────────────────────────────────────────────────


def _extract_header(text: str, compiled: CompiledTemplate, result: ExtractionResult) -> None:
    result.order_number = first_capture(compiled.order_regex, text)

    result.date = first_capture(compiled.date_regex, text)
    result.issue_date = to_date(result.date, dayfirst=settings.date_dayfirst)

    result.document_total = _header_amount(compiled.total_regex, text, "total", result)
    result.discount = _header_amount(compiled.discount_regex, text, "discount", result)

    if compiled.vendor_regex is not None:
        vendor = first_capture(compiled.vendor_regex, text)
        result.vendor_confirmed = vendor is not None
        if vendor is not None:
            result.supplier_name = vendor
        else:
            result.warnings.append(
                f"Vendor pattern of template {compiled.name!r} did not match — "
                f"check that this document belongs to that supplier"
            )


def _header_amount(regex: Optional[re.Pattern], text: str, label: str, result: ExtractionResult):
    raw = first_capture(regex, text)
    if raw is None:
        return None
    try:
        return parse_amount(raw)
    except ParseError as exc:
        result.warnings.append(f"Document {label} ignored: {exc}")
        return None


def _build_product(
    match: re.Match, field_mapping: dict[str, int], line_number: int
) -> ExtractedProduct:
    def group(name: str) -> Optional[str]:
        index = field_mapping.get(name)
        return match.group(index) if index is not None else None

    total_raw = group("total")
    return ExtractedProduct(
        description=clean_str(group("description")) or "",
        sku=clean_str(group("sku")),
        quantity=parse_amount(group("qty")),
        unit_price=parse_amount(group("price")),
        line_total=parse_amount(total_raw) if total_raw is not None else None,
        line_number=line_number,
    )
