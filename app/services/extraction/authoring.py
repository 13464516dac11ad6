"""
Template authoring helpers used by the template editor.

build_line_regex()   — "visual builder": column kinds → line_regex + mapping
preview_first_line() — shows how line_regex treats the first candidate row
                       of the product block, before running a full dry run
"""

import re
from dataclasses import dataclass, field
from typing import Any, Optional

from app.schemas.template import ColumnKind
from app.services.extraction.templates import compile_template

_COLUMN_PATTERNS = {
    ColumnKind.TEXT: r"(.+?)",  # lazy so trailing numeric columns still match
    ColumnKind.NUMBER: r"([\d.,]+)",
    ColumnKind.PRICE: r"([\d.,]+)",
    ColumnKind.SKU: r"(\S+)",
    ColumnKind.IGNORE: r"\S+",
}

# Blank lines and ruler lines such as "-----" are never product rows
_SEPARATOR_LINE = re.compile(r"^[\s\-_=]*$")


def build_line_regex(columns: list[str]) -> tuple[str, dict[str, int]]:
    """
    Turn an ordered list of column kinds into (line_regex, field_mapping).

    The first "price" column is the unit price, a second one the line total.
    Columns are joined with \\s+ and the pattern is anchored at both ends.
    """
    parts: list[str] = []
    mapping: dict[str, int] = {}
    group = 0

    for kind in columns:
        parts.append(_COLUMN_PATTERNS[kind])
        if kind == ColumnKind.IGNORE:
            continue
        group += 1
        if kind == ColumnKind.TEXT:
            mapping["description"] = group
        elif kind == ColumnKind.NUMBER:
            mapping["qty"] = group
        elif kind == ColumnKind.SKU:
            mapping["sku"] = group
        elif "price" not in mapping:
            mapping["price"] = group
        else:
            mapping["total"] = group

    return "^" + r"\s+".join(parts) + "$", mapping


@dataclass
class LinePreview:
    line: Optional[str] = None
    line_number: Optional[int] = None
    matched: bool = False
    groups: list[Optional[str]] = field(default_factory=list)
    message: str = ""


def preview_first_line(text: str, template: Any) -> LinePreview:
    """
    Find the first candidate product row (after the start marker, before the
    end marker, skipping blank/ruler lines) and test line_regex against it.

    Raises:
        MalformedTemplate: the template fails compilation.
    """
    compiled = compile_template(template)
    start_marker = compiled.table_start_marker
    end_marker = compiled.table_end_marker
    found_start = start_marker is None

    for number, raw_line in enumerate(text.split("\n"), start=1):
        line = raw_line.strip()
        if not found_start:
            if start_marker in line:
                found_start = True
            continue
        if _SEPARATOR_LINE.match(line):
            continue
        if end_marker and end_marker in line:
            break

        match = compiled.line_regex.search(line)
        return LinePreview(
            line=line,
            line_number=number,
            matched=match is not None,
            groups=list(match.groups()) if match else [],
            message="MATCH" if match else "NO MATCH",
        )

    return LinePreview(message="No candidate product line found after the start marker.")
