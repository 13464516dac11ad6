"""
ParsingTemplate — a per-supplier recipe for reading purchase-order PDFs.

Config shapes (validated by app.services.extraction.templates.compile_template):

  detect_keywords:  ["DISTRIBUIDORA FENIX", "distribuidorafenix.com.ar"]
  header_config:    {"order_regex": "...", "date_regex": "...",
                     "total_regex": "...", "vendor_regex": "...",
                     "discount_regex": "..."}                 (all optional)
  products_config:  {"table_start_marker": "Descripcion",
                     "table_end_marker": "Subtotal",
                     "line_regex": "^(\\d+)\\s+(.+?)\\s+([\\d.,]+)$",
                     "field_mapping": {"qty": 1, "description": 2, "price": 3}}

field_mapping values are 1-based capture group indices into line_regex.
description, qty and price are mandatory; sku and total are optional.

The extraction engine only reads these rows. They are written by the
template management endpoints.
"""

import uuid
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, JSONType, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from app.models.supplier import Supplier


class ParsingTemplate(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "pdf_parsing_templates"
    __table_args__ = (
        Index("ix_pdf_parsing_templates_active_updated", "active", "updated_at"),
    )

    name: Mapped[str] = mapped_column(String(256), nullable=False)

    # NULL = generic template not tied to a supplier
    supplier_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("suppliers.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default="true",
        comment="Inactive templates are never auto-selected",
    )

    detect_keywords: Mapped[list] = mapped_column(
        JSONType,
        nullable=False,
        default=list,
        comment="Case-insensitive substrings; any match selects the template",
    )
    header_config: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    products_config: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Relationships
    supplier: Mapped[Optional["Supplier"]] = relationship(
        "Supplier", back_populates="templates"
    )

    def __repr__(self) -> str:
        return f"<ParsingTemplate name={self.name!r} active={self.active}>"
