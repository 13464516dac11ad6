"""
Parsing template schemas — request and response shapes for the template
management and dry-run endpoints.

These models only check *shape* (types, required keys). Semantic checks —
regexes compile, mapped groups exist, mandatory fields are distinct — live in
app.services.extraction.templates.compile_template so stored rows and
unsaved drafts go through the same rules.
"""

import uuid
from typing import Optional

from pydantic import Field, field_validator

from app.schemas.common import BaseSchema, TimestampedSchema


def _blank_to_none(value):
    # The editor UI sends "" / 0 / "undefined" for unset optional values
    if value in ("", 0, "0", "undefined", "null"):
        return None
    return value


# ── Config blocks ─────────────────────────────────────────────────────────────


class FieldMapping(BaseSchema):
    """Semantic product field → 1-based capture group index in line_regex."""

    description: int = Field(..., ge=1)
    qty: int = Field(..., ge=1)
    price: int = Field(..., ge=1)
    sku: Optional[int] = Field(default=None, ge=1)
    total: Optional[int] = Field(default=None, ge=1)

    @field_validator("sku", "total", mode="before")
    @classmethod
    def _optional_index(cls, v):
        return _blank_to_none(v)


class HeaderConfig(BaseSchema):
    order_regex: Optional[str] = None
    date_regex: Optional[str] = None
    total_regex: Optional[str] = None
    vendor_regex: Optional[str] = None  # confirms the document really is from this supplier
    discount_regex: Optional[str] = None


class ProductsConfig(BaseSchema):
    table_start_marker: Optional[str] = None
    table_end_marker: Optional[str] = None
    line_regex: Optional[str] = None
    field_mapping: FieldMapping


# ── Templates ─────────────────────────────────────────────────────────────────


class TemplateBase(BaseSchema):
    name: str = Field(..., min_length=1, max_length=256)
    supplier_id: Optional[uuid.UUID] = None
    active: bool = True
    detect_keywords: list[str] = Field(default_factory=list)
    header_config: HeaderConfig = Field(default_factory=HeaderConfig)
    products_config: ProductsConfig
    notes: Optional[str] = None

    @field_validator("supplier_id", mode="before")
    @classmethod
    def _blank_supplier(cls, v):
        return _blank_to_none(v)

    @field_validator("detect_keywords", mode="before")
    @classmethod
    def _split_keywords(cls, v):
        # Accept the editor's comma-separated string as well as a list
        if isinstance(v, str):
            return [k.strip() for k in v.split(",") if k.strip()]
        return v


class TemplateCreate(TemplateBase):
    """Payload for POST /templates."""


class TemplateUpdate(BaseSchema):
    """Payload for PUT /templates/{id} — every field optional."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=256)
    supplier_id: Optional[uuid.UUID] = None
    active: Optional[bool] = None
    detect_keywords: Optional[list[str]] = None
    header_config: Optional[HeaderConfig] = None
    products_config: Optional[ProductsConfig] = None
    notes: Optional[str] = None

    @field_validator("supplier_id", mode="before")
    @classmethod
    def _blank_supplier(cls, v):
        return _blank_to_none(v)

    @field_validator("detect_keywords", mode="before")
    @classmethod
    def _split_keywords(cls, v):
        if isinstance(v, str):
            return [k.strip() for k in v.split(",") if k.strip()]
        return v


class TemplateDraft(TemplateBase):
    """
    An unsaved template sent by the authoring UI for a dry run.
    Name is optional because the editor previews before naming.
    """

    name: str = "draft"


class TemplateResponse(TimestampedSchema):
    name: str
    supplier_id: Optional[uuid.UUID] = None
    active: bool
    detect_keywords: list[str]
    header_config: dict
    products_config: dict
    notes: Optional[str] = None


# ── Authoring helpers ─────────────────────────────────────────────────────────


class ColumnKind:
    TEXT = "text"  # product description
    NUMBER = "number"  # quantity
    PRICE = "price"  # first = unit price, second = line total
    SKU = "sku"
    IGNORE = "ignore"

    ALL = [TEXT, NUMBER, PRICE, SKU, IGNORE]


class BuildRegexRequest(BaseSchema):
    columns: list[str] = Field(..., min_length=1)

    @field_validator("columns")
    @classmethod
    def _known_kinds(cls, v: list[str]) -> list[str]:
        unknown = [c for c in v if c not in ColumnKind.ALL]
        if unknown:
            raise ValueError(f"Unknown column kinds {unknown}; expected {ColumnKind.ALL}")
        return v


class BuildRegexResponse(BaseSchema):
    line_regex: str
    field_mapping: dict[str, int]
