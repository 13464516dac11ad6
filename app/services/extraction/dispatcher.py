"""
Extraction dispatcher — routes a document to the right extraction path.

    bytes ─► extract_text ─► compile templates ─► choose_strategy
                                                   ├─ Matched  → apply_template
                                                   └─ Fallback → extract_generic

Only UnreadablePdf escapes from here. A malformed template is skipped (the
next matching template or the generic parser takes over), and any failure
while parsing text is absorbed into an empty result carrying a warning.
"""

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Optional

from app.services.extraction.base import ExtractionResult, ExtractionMethod
from app.services.extraction.generic_parser import extract_generic
from app.services.extraction.selector import Matched, candidate_keyword, choose_strategy
from app.services.extraction.template_parser import apply_template
from app.services.extraction.templates import compile_templates
from app.services.extraction.text_extractor import extract_text, has_text_layer

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPES = ("application/pdf", "application/x-pdf")


def extract_data_from_pdf(data: bytes, templates: Sequence[Any] = ()) -> ExtractionResult:
    """
    Full extraction for one uploaded PDF.

    Args:
        data:      Raw PDF bytes.
        templates: Candidate templates in priority order (typically
                   TemplateStore.list_active()).

    Raises:
        UnreadablePdf: the bytes cannot be converted to text.
    """
    logger.info("Extracting purchase order from PDF (%d bytes)", len(data))
    text = extract_text(data)
    result = extract_data_from_text(text, templates)
    if not has_text_layer(text):
        result.warnings.insert(
            0,
            "The PDF has no readable text layer (scanned image?). "
            "Scanned documents are not supported.",
        )
    return result


def extract_data_from_text(text: str, templates: Sequence[Any] = ()) -> ExtractionResult:
    """Template selection + extraction over already-extracted text."""
    compiled, failures = compile_templates(templates)

    # Only report broken templates that would have been candidates for this document
    skipped = [
        str(exc)
        for template, exc in failures
        if candidate_keyword(text, template) is not None
    ]

    strategy = choose_strategy(text, compiled)
    try:
        if isinstance(strategy, Matched):
            result = apply_template(text, strategy.template)
        else:
            result = extract_generic(text)
    except Exception as exc:
        logger.exception("Extraction failed while parsing document text")
        result = ExtractionResult(
            extraction_method=(
                ExtractionMethod.TEMPLATE
                if isinstance(strategy, Matched)
                else ExtractionMethod.GENERIC
            ),
            warnings=[f"Extraction stopped early: {exc}"],
        )

    for message in skipped:
        result.warnings.append(f"Template skipped: {message}")
    return result


def is_pdf_upload(filename: Optional[str], content_type: Optional[str]) -> bool:
    """
    Accept an upload as a PDF by content type, or by extension when the
    client sends a generic type (application/octet-stream or none at all).
    """
    content_type = (content_type or "").split(";")[0].strip().lower()
    if content_type in PDF_CONTENT_TYPES:
        return True
    if content_type and content_type != "application/octet-stream":
        return False
    return Path(filename or "").suffix.lower() == ".pdf"
