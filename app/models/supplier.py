"""
Supplier — a vendor that sends purchase-order PDFs.

Only the fields the template store needs live here; the rest of the supplier
record (addresses, balances, contacts) belongs to the ERP side.
"""

from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from app.models.template import ParsingTemplate


class Supplier(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A vendor whose documents can be parsed with one or more templates."""

    __tablename__ = "suppliers"

    name: Mapped[str] = mapped_column(String(256), nullable=False)
    tax_id: Mapped[Optional[str]] = mapped_column(
        String(32), nullable=True, comment="CUIT / tax identifier"
    )
    email: Mapped[Optional[str]] = mapped_column(String(256), nullable=True)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default="true"
    )

    # Relationships
    templates: Mapped[list["ParsingTemplate"]] = relationship(
        "ParsingTemplate", back_populates="supplier"
    )

    def __repr__(self) -> str:
        return f"<Supplier name={self.name!r}>"
