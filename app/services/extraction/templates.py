"""
Template compilation — the single validation gate between stored/authored
template config and the parsing hot loop.

compile_template() turns a template (ORM row, pydantic schema or plain dict)
into an immutable CompiledTemplate with every regex pre-compiled and the
field mapping checked against line_regex's group count. Anything wrong
raises MalformedTemplate naming the offending field; low-level re.error and
pydantic.ValidationError never escape this module.

Regex flags:
  - header regexes: MULTILINE only (run once over the whole text, so ^/$
    anchor per line; case is kept so "Total:" never matches inside "Subtotal:")
  - line_regex: no flags (run per stripped line; authored against the exact
    casing the supplier prints)
"""

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import BaseModel, ValidationError

from app.schemas.template import HeaderConfig, ProductsConfig
from app.services.extraction.base import MalformedTemplate

logger = logging.getLogger(__name__)

HEADER_FLAGS = re.MULTILINE

MANDATORY_FIELDS = ("description", "qty", "price")
OPTIONAL_FIELDS = ("sku", "total")


@dataclass(frozen=True)
class CompiledTemplate:
    """A validated, ready-to-run template. Safe to share across threads."""

    name: str
    line_regex: re.Pattern
    field_mapping: dict[str, int]
    id: Optional[str] = None
    supplier_id: Optional[str] = None
    active: bool = True
    detect_keywords: tuple[str, ...] = ()
    order_regex: Optional[re.Pattern] = None
    date_regex: Optional[re.Pattern] = None
    total_regex: Optional[re.Pattern] = None
    vendor_regex: Optional[re.Pattern] = None
    discount_regex: Optional[re.Pattern] = None
    table_start_marker: Optional[str] = None
    table_end_marker: Optional[str] = None
    source: Any = field(default=None, compare=False, repr=False)


def compile_template(template: Any) -> CompiledTemplate:
    """
    Validate and compile a template.

    Raises:
        MalformedTemplate: config has the wrong shape, a regex does not
            compile, line_regex is missing, or the field mapping is invalid.
    """
    if isinstance(template, CompiledTemplate):
        return template

    name = _get(template, "name") or "draft"

    header = _validate_block(HeaderConfig, _get(template, "header_config"), "header_config", name)
    products = _validate_block(
        ProductsConfig, _get(template, "products_config"), "products_config", name
    )
    keywords = _normalise_keywords(_get(template, "detect_keywords"), name)

    if _blank(products.line_regex):
        raise MalformedTemplate(
            "a line regex is required to read product rows",
            field="products_config.line_regex",
            template_name=name,
        )
    line_regex = _compile(products.line_regex, "products_config.line_regex", 0, name)
    field_mapping = _check_field_mapping(products, line_regex, name)

    template_id = _get(template, "id")
    supplier_id = _get(template, "supplier_id")
    active = _get(template, "active")

    compiled = CompiledTemplate(
        id=str(template_id) if template_id is not None else None,
        name=name,
        supplier_id=str(supplier_id) if supplier_id is not None else None,
        active=True if active is None else bool(active),
        detect_keywords=keywords,
        order_regex=_compile(header.order_regex, "header_config.order_regex", HEADER_FLAGS, name),
        date_regex=_compile(header.date_regex, "header_config.date_regex", HEADER_FLAGS, name),
        total_regex=_compile(header.total_regex, "header_config.total_regex", HEADER_FLAGS, name),
        vendor_regex=_compile(
            header.vendor_regex, "header_config.vendor_regex", HEADER_FLAGS, name
        ),
        discount_regex=_compile(
            header.discount_regex, "header_config.discount_regex", HEADER_FLAGS, name
        ),
        table_start_marker=None if _blank(products.table_start_marker) else products.table_start_marker,
        table_end_marker=None if _blank(products.table_end_marker) else products.table_end_marker,
        line_regex=line_regex,
        field_mapping=field_mapping,
        source=template,
    )
    logger.debug("Compiled template %r (%d keyword(s))", name, len(keywords))
    return compiled


def compile_templates(
    templates: Iterable[Any],
) -> tuple[list[CompiledTemplate], list[tuple[Any, MalformedTemplate]]]:
    """
    Compile a batch of templates, keeping input order.

    A malformed template is logged and left out rather than aborting the
    batch. Returns (compiled templates, [(template, error), ...]).
    """
    compiled: list[CompiledTemplate] = []
    failures: list[tuple[Any, MalformedTemplate]] = []
    for template in templates:
        try:
            compiled.append(compile_template(template))
        except MalformedTemplate as exc:
            logger.warning("Skipping malformed template: %s", exc)
            failures.append((template, exc))
    return compiled, failures


# ── Private helpers ───────────────────────────────────────────────────────────


def _get(template: Any, key: str) -> Any:
    if isinstance(template, Mapping):
        return template.get(key)
    return getattr(template, key, None)


def _blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def _validate_block(model: type[BaseModel], value: Any, section: str, name: str):
    if value is None:
        value = {}
    if not isinstance(value, (Mapping, BaseModel)):
        raise MalformedTemplate(
            f"expected an object, got {type(value).__name__}", field=section, template_name=name
        )
    try:
        return model.model_validate(value)
    except ValidationError as exc:
        first = exc.errors()[0]
        loc = ".".join(str(part) for part in first["loc"])
        field_path = f"{section}.{loc}" if loc else section
        raise MalformedTemplate(first["msg"], field=field_path, template_name=name) from exc


def _normalise_keywords(value: Any, name: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, (list, tuple, set, frozenset)):
        raise MalformedTemplate(
            "expected a list of strings", field="detect_keywords", template_name=name
        )
    keywords = []
    for kw in value:
        if not isinstance(kw, str):
            raise MalformedTemplate(
                f"keyword {kw!r} is not a string", field="detect_keywords", template_name=name
            )
        if kw.strip():
            keywords.append(kw.strip())
    return tuple(keywords)


def _compile(pattern: Optional[str], field_path: str, flags: int, name: str) -> Optional[re.Pattern]:
    if _blank(pattern):
        return None
    try:
        return re.compile(pattern, flags)
    except re.error as exc:
        raise MalformedTemplate(
            f"invalid regular expression ({exc})", field=field_path, template_name=name
        ) from exc


def _check_field_mapping(
    products: ProductsConfig, line_regex: re.Pattern, name: str
) -> dict[str, int]:
    group_count = line_regex.groups
    raw = products.field_mapping.model_dump()
    mapping: dict[str, int] = {}
    used_by: dict[int, str] = {}

    for field_name in MANDATORY_FIELDS + OPTIONAL_FIELDS:
        index = raw.get(field_name)
        if index is None:
            continue
        path = f"products_config.field_mapping.{field_name}"
        if index > group_count:
            raise MalformedTemplate(
                f"capture group {index} does not exist "
                f"(line_regex has {group_count} group(s))",
                field=path,
                template_name=name,
            )
        if field_name in MANDATORY_FIELDS and index in used_by:
            raise MalformedTemplate(
                f"capture group {index} is already mapped to {used_by[index]!r}",
                field=path,
                template_name=name,
            )
        if field_name in MANDATORY_FIELDS:
            used_by[index] = field_name
        mapping[field_name] = index

    return mapping
