"""
Purchase-order PDF routes.

Workflow:
  POST /purchases/pdf             → extract + validate an uploaded PDF
  POST /purchases/pdf/text        → raw text only (diagnostics / template authoring)
  POST /purchases/pdf/test-parse  → dry run of an unsaved template over pasted text
  POST /purchases/pdf/validate    → re-validate a result after manual edits

Nothing here persists the extracted data. The caller shows it as a purchase
order draft and the user confirms or corrects it.
"""

import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.common import ErrorDetail
from app.schemas.extraction import (
    ExtractionResultSchema,
    LinePreviewSchema,
    PdfExtractionResponse,
    StrategyInfo,
    TestParseRequest,
    TestParseResponse,
    TextExtractionResponse,
    ValidationReportSchema,
)
from app.services.extraction.authoring import preview_first_line
from app.services.extraction.base import (
    ExtractedProduct,
    ExtractionResult,
    MalformedTemplate,
    UnreadablePdf,
)
from app.services.extraction.dispatcher import extract_data_from_pdf, is_pdf_upload
from app.services.extraction.template_parser import test_parse as run_test_parse
from app.services.extraction.text_extractor import extract_text
from app.services.templates.store import TemplateStore
from app.services.validation.extraction_validator import validate
from app.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/purchases", tags=["purchases"])


# ── Extract ───────────────────────────────────────────────────────────────────


@router.post("/pdf", response_model=PdfExtractionResponse)
def extract_purchase_pdf(
    pdf: UploadFile = File(...),
    db: Session = Depends(get_db),
) -> PdfExtractionResponse:
    """
    Extract products and header fields from a supplier purchase-order PDF.

    `partial` is true when validation reported errors or no products were
    found; the data is still returned so the user can correct it.
    """
    data = _read_pdf_upload(pdf)
    templates = TemplateStore(db).list_active()

    try:
        result = extract_data_from_pdf(data, templates)
    except UnreadablePdf as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unsupported or unreadable PDF: {exc}",
        )

    report = validate(result)
    partial = not report.valid or not result.products
    if partial:
        logger.warning(
            "Partial extraction for %r: %d product(s), %d error(s)",
            pdf.filename,
            len(result.products),
            len(report.errors),
        )

    return PdfExtractionResponse(
        success=True,
        partial=partial,
        data=ExtractionResultSchema.model_validate(result),
        validation=ValidationReportSchema.model_validate(report),
        strategy=StrategyInfo(
            method=result.extraction_method,
            template_id=result.template_id,
            template_name=result.template_name,
        ),
    )


# ── Text only ─────────────────────────────────────────────────────────────────


@router.post("/pdf/text", response_model=TextExtractionResponse)
def extract_pdf_text(pdf: UploadFile = File(...)) -> TextExtractionResponse:
    """Return the layout-preserving text the parsers see. Used to author templates."""
    data = _read_pdf_upload(pdf)
    try:
        text = extract_text(data)
    except UnreadablePdf as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unsupported or unreadable PDF: {exc}",
        )
    return TextExtractionResponse(success=True, text=text, char_count=len(text))


# ── Dry run ───────────────────────────────────────────────────────────────────


@router.post("/pdf/test-parse", response_model=TestParseResponse)
def dry_run_template(payload: TestParseRequest) -> TestParseResponse:
    """
    Run an unsaved template over text and report what it would extract.
    The template's active flag and keywords are ignored.
    """
    template = payload.template.model_dump()
    try:
        result = run_test_parse(payload.text, template)
        preview = preview_first_line(payload.text, template)
    except MalformedTemplate as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=ErrorDetail(field=exc.field, message=exc.detail).model_dump(),
        )

    report = validate(result)
    return TestParseResponse(
        success=bool(result.products),
        result=ExtractionResultSchema.model_validate(result),
        validation=ValidationReportSchema.model_validate(report),
        preview=LinePreviewSchema.model_validate(preview),
    )


# ── Validate ──────────────────────────────────────────────────────────────────


@router.post("/pdf/validate", response_model=ValidationReportSchema)
def validate_extraction(payload: ExtractionResultSchema) -> ValidationReportSchema:
    """Validate a (possibly hand-corrected) extraction result."""
    result = ExtractionResult(
        **payload.model_dump(exclude={"products"}),
        products=[ExtractedProduct(**p.model_dump()) for p in payload.products],
    )
    return ValidationReportSchema.model_validate(validate(result))


# ── Private helpers ───────────────────────────────────────────────────────────


def _read_pdf_upload(upload: UploadFile) -> bytes:
    if not is_pdf_upload(upload.filename, upload.content_type):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Expected a PDF file, got {upload.content_type or 'unknown type'}",
        )

    # Read one byte past the limit so oversize is detected without reading it all
    data = upload.file.read(settings.max_upload_bytes + 1)
    if len(data) == 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded file is empty",
        )
    if len(data) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"PDF exceeds the {settings.max_upload_bytes} byte upload limit",
        )
    return data
