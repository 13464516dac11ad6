"""
Template store — read access to persisted parsing templates.

The extraction engine only ever reads templates; writes go through the
/templates router. Ordering for auto-selection is most recently updated
first, then name, so ties resolve the same way on every call.
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.template import ParsingTemplate

logger = logging.getLogger(__name__)


class TemplateStore:
    def __init__(self, db: Session):
        self.db = db

    def list_active(self) -> list[ParsingTemplate]:
        """Active templates in selection priority order."""
        stmt = (
            select(ParsingTemplate)
            .where(ParsingTemplate.active.is_(True))
            .order_by(ParsingTemplate.updated_at.desc(), ParsingTemplate.name)
        )
        templates = list(self.db.scalars(stmt))
        logger.debug("Loaded %d active template(s)", len(templates))
        return templates

    def list_all(self) -> list[ParsingTemplate]:
        stmt = select(ParsingTemplate).order_by(
            ParsingTemplate.updated_at.desc(), ParsingTemplate.name
        )
        return list(self.db.scalars(stmt))

    def count_active(self) -> int:
        stmt = (
            select(func.count())
            .select_from(ParsingTemplate)
            .where(ParsingTemplate.active.is_(True))
        )
        return self.db.scalar(stmt) or 0

    def get(self, template_id: uuid.UUID) -> Optional[ParsingTemplate]:
        return self.db.get(ParsingTemplate, template_id)
