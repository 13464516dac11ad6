"""
Parsing template management.

  GET    /templates               → all templates, selection order
  POST   /templates               → create (compiled first; 422 if malformed)
  GET    /templates/{id}          → one template
  PUT    /templates/{id}          → partial update (re-compiled; 422 if malformed)
  DELETE /templates/{id}          → remove
  POST   /templates/build-regex   → visual builder: column kinds → line_regex
"""

import logging
import uuid
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.supplier import Supplier
from app.models.template import ParsingTemplate
from app.schemas.common import ErrorDetail, MessageResponse
from app.schemas.template import (
    BuildRegexRequest,
    BuildRegexResponse,
    TemplateCreate,
    TemplateResponse,
    TemplateUpdate,
)
from app.services.extraction.authoring import build_line_regex
from app.services.extraction.base import MalformedTemplate
from app.services.extraction.templates import compile_template
from app.services.templates.store import TemplateStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/templates", tags=["templates"])


@router.get("", response_model=list[TemplateResponse])
def list_templates(db: Session = Depends(get_db)) -> list[ParsingTemplate]:
    return TemplateStore(db).list_all()


@router.post("", response_model=TemplateResponse, status_code=status.HTTP_201_CREATED)
def create_template(
    payload: TemplateCreate, db: Session = Depends(get_db)
) -> ParsingTemplate:
    values = payload.model_dump(exclude_none=False)
    _compile_or_422(values)
    _check_supplier(values.get("supplier_id"), db)

    template = ParsingTemplate(**values)
    db.add(template)
    db.commit()
    db.refresh(template)
    logger.info("Template %r created (id=%s)", template.name, template.id)
    return template


@router.post("/build-regex", response_model=BuildRegexResponse)
def build_regex(payload: BuildRegexRequest) -> BuildRegexResponse:
    line_regex, field_mapping = build_line_regex(payload.columns)
    return BuildRegexResponse(line_regex=line_regex, field_mapping=field_mapping)


@router.get("/{template_id}", response_model=TemplateResponse)
def get_template(template_id: uuid.UUID, db: Session = Depends(get_db)) -> ParsingTemplate:
    return _get_or_404(template_id, db)


@router.put("/{template_id}", response_model=TemplateResponse)
def update_template(
    template_id: uuid.UUID,
    payload: TemplateUpdate,
    db: Session = Depends(get_db),
) -> ParsingTemplate:
    template = _get_or_404(template_id, db)
    # Explicit nulls only clear the nullable columns
    changes = {
        key: value
        for key, value in payload.model_dump(exclude_unset=True).items()
        if value is not None or key in ("supplier_id", "notes")
    }

    merged = {
        "name": template.name,
        "supplier_id": template.supplier_id,
        "active": template.active,
        "detect_keywords": template.detect_keywords,
        "header_config": template.header_config,
        "products_config": template.products_config,
        **changes,
    }
    _compile_or_422(merged)
    if "supplier_id" in changes:
        _check_supplier(changes["supplier_id"], db)

    for key, value in changes.items():
        setattr(template, key, value)
    db.commit()
    db.refresh(template)
    logger.info("Template %r updated (%s)", template.name, ", ".join(changes) or "no changes")
    return template


@router.delete("/{template_id}", response_model=MessageResponse)
def delete_template(template_id: uuid.UUID, db: Session = Depends(get_db)) -> MessageResponse:
    template = _get_or_404(template_id, db)
    db.delete(template)
    db.commit()
    logger.info("Template %r deleted", template.name)
    return MessageResponse(message=f"Template '{template.name}' deleted")


# ── Private helpers ───────────────────────────────────────────────────────────


def _get_or_404(template_id: uuid.UUID, db: Session) -> ParsingTemplate:
    template = TemplateStore(db).get(template_id)
    if template is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Template not found"
        )
    return template


def _compile_or_422(values: dict[str, Any]) -> None:
    try:
        compile_template(values)
    except MalformedTemplate as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=ErrorDetail(field=exc.field, message=exc.detail).model_dump(),
        )


def _check_supplier(supplier_id: Optional[uuid.UUID], db: Session) -> None:
    if supplier_id is not None and db.get(Supplier, supplier_id) is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=ErrorDetail(field="supplier_id", message="Supplier not found").model_dump(),
        )
