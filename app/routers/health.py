"""
Health check endpoint — polled by the hosting platform.

Reports whether the template store answers and how many templates are
active. A service with zero active templates is still healthy: every
upload simply takes the generic path.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.database import get_db
from app.services.templates.store import TemplateStore
from app.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    environment: str
    database: str
    active_templates: Optional[int] = None
    version: str = "1.0.0"


@router.get("/health", response_model=HealthResponse, include_in_schema=False)
def health_check(db: Session = Depends(get_db)) -> HealthResponse:
    """
    "ok" with the active template count when the store answers.
    "degraded" when it does not.
    """
    try:
        active = TemplateStore(db).count_active()
    except SQLAlchemyError as exc:
        logger.warning("Template store unreachable: %s", exc)
        return HealthResponse(
            status="degraded",
            environment=settings.environment,
            database="unreachable",
        )
    return HealthResponse(
        status="ok",
        environment=settings.environment,
        database="connected",
        active_templates=active,
    )
