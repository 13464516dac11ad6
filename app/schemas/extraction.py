"""
Extraction schemas — API shapes for the purchase-order PDF endpoints.

The engine works on dataclasses (app.services.extraction.base); these models
are built from them with from_attributes and serialise Decimals as strings.
"""

import datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from app.schemas.common import BaseSchema
from app.schemas.template import TemplateDraft


# ── Extraction result ─────────────────────────────────────────────────────────


class ExtractedProductSchema(BaseSchema):
    description: str
    quantity: Decimal
    unit_price: Decimal
    sku: Optional[str] = None
    line_total: Optional[Decimal] = None
    line_number: Optional[int] = None


class ExtractionResultSchema(BaseSchema):
    products: list[ExtractedProductSchema] = Field(default_factory=list)
    order_number: Optional[str] = None
    date: Optional[str] = None
    issue_date: Optional[datetime.date] = None
    document_total: Optional[Decimal] = None
    discount: Optional[Decimal] = None
    supplier_name: Optional[str] = None

    extraction_method: str = "generic"
    template_id: Optional[str] = None
    template_name: Optional[str] = None
    vendor_confirmed: Optional[bool] = None
    skipped_lines: int = 0
    warnings: list[str] = Field(default_factory=list)


# ── Validation ────────────────────────────────────────────────────────────────


class ValidationIssueSchema(BaseSchema):
    check: str
    severity: str
    message: str
    product_index: Optional[int] = None


class ValidationReportSchema(BaseSchema):
    valid: bool
    errors: list[str]
    warnings: list[str]
    issues: list[ValidationIssueSchema]


# ── Endpoint responses ────────────────────────────────────────────────────────


class StrategyInfo(BaseSchema):
    method: str  # "template" | "generic"
    template_id: Optional[str] = None
    template_name: Optional[str] = None


class PdfExtractionResponse(BaseSchema):
    success: bool
    partial: bool  # validation failed or nothing was found; review before use
    data: ExtractionResultSchema
    validation: ValidationReportSchema
    strategy: StrategyInfo


class TextExtractionResponse(BaseSchema):
    success: bool
    text: str
    char_count: int


class TestParseRequest(BaseSchema):
    text: str
    template: TemplateDraft


class LinePreviewSchema(BaseSchema):
    line: Optional[str] = None
    line_number: Optional[int] = None
    matched: bool
    groups: list[Optional[str]] = Field(default_factory=list)
    message: str


class TestParseResponse(BaseSchema):
    success: bool
    result: ExtractionResultSchema
    validation: ValidationReportSchema
    preview: LinePreviewSchema

