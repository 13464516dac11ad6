"""
Text extractor — PDF bytes → layout-preserving plain text.

Uses pdfplumber in layout mode so column gaps survive as runs of spaces and
every printed row becomes one text line. That is the shape both the template
line regexes and the generic fallback pattern expect.

Image-only PDFs (no text layer) are not an error here: they come back as
empty or near-empty text and the validator reports the empty product list.
OCR is out of scope.
"""

import io
import logging

import pdfplumber
from pdfminer.pdfdocument import PDFPasswordIncorrect
from pdfminer.pdfparser import PDFSyntaxError

from app.services.extraction.base import UnreadablePdf
from app.settings import settings

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF-"


def extract_text(data: bytes) -> str:
    """
    Convert raw PDF bytes into a single string, one page after another.

    Raises:
        UnreadablePdf: the bytes are not a parseable PDF (not a PDF at all,
            corrupt, or password protected).
    """
    if not data:
        raise UnreadablePdf("The uploaded file is empty.")
    # PDF readers tolerate leading junk up to 1 KiB before the header
    if PDF_MAGIC not in data[:1024]:
        raise UnreadablePdf("The uploaded file is not a PDF document.")

    try:
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            page_count = len(pdf.pages)
            pages = [page.extract_text(layout=True) or "" for page in pdf.pages]
    except PDFPasswordIncorrect as exc:
        raise UnreadablePdf("The PDF is password protected.") from exc
    except PDFSyntaxError as exc:
        raise UnreadablePdf(f"The PDF is corrupt: {exc}") from exc
    except Exception as exc:
        # pdfminer raises a wide range of low-level errors on damaged files
        logger.warning("pdfplumber failed to open document: %r", exc)
        raise UnreadablePdf(f"The PDF could not be read: {exc}") from exc

    text = "\n".join(pages)
    char_count = len("".join(text.split()))

    logger.info(
        "Extracted %d characters from %d page(s) (%d bytes)",
        char_count,
        page_count,
        len(data),
    )
    logger.debug("Raw text preview:\n%s", text[: settings.text_preview_chars])

    if char_count < settings.min_text_chars:
        logger.warning(
            "PDF has almost no text layer (%d chars) — probably scanned; "
            "OCR is not supported",
            char_count,
        )

    return text


def has_text_layer(text: str) -> bool:
    """True if the extracted text looks like a real text layer."""
    return len("".join(text.split())) >= settings.min_text_chars
