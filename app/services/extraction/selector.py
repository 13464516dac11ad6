"""
Template selector — decides which extraction strategy a document gets.

Keyword gating keeps supplier-specific regexes away from documents of a
different shape, where they would silently mis-extract instead of cleanly
failing. Evaluation:
  1. Walk templates in the order given (the store returns most recently
     updated first — stable for equal timestamps).
  2. Skip inactive templates.
  3. First template with a keyword found in the text (case-insensitive
     substring) wins.
  4. Nothing matched → Fallback: the generic parser runs.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any, Optional, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ── Strategy variants ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Matched:
    template: Any
    keyword: str  # the keyword that selected it, for diagnostics


@dataclass(frozen=True)
class Fallback:
    reason: str = "no template keyword found in document"


Strategy = Union[Matched, Fallback]


# ── Selection ─────────────────────────────────────────────────────────────────


def matching_keyword(text: str, keywords: Iterable[str]) -> Optional[str]:
    """Return the first keyword occurring in text (case-insensitive), if any."""
    haystack = text.casefold()
    for keyword in keywords or ():
        needle = keyword.strip().casefold() if isinstance(keyword, str) else ""
        if needle and needle in haystack:
            return keyword
    return None


def select_template(text: str, templates: Sequence[T]) -> Optional[T]:
    """Return the first active template whose keywords occur in text, else None."""
    strategy = choose_strategy(text, templates)
    return strategy.template if isinstance(strategy, Matched) else None


def choose_strategy(text: str, templates: Sequence[Any]) -> Strategy:
    for template in templates:
        keyword = candidate_keyword(text, template)
        if keyword is not None:
            logger.info(
                "Template %r selected (keyword %r)", _name(template), keyword
            )
            return Matched(template=template, keyword=keyword)

    logger.info("No template matched among %d candidate(s) — using generic parser", len(templates))
    return Fallback()


def candidate_keyword(text: str, template: Any) -> Optional[str]:
    """The keyword that makes an active template a candidate for text, if any."""
    if not _is_active(template):
        return None
    return matching_keyword(text, _keywords(template))


# ── Private helpers ───────────────────────────────────────────────────────────


def _attr(template: Any, key: str) -> Any:
    if isinstance(template, dict):
        return template.get(key)
    return getattr(template, key, None)


def _is_active(template: Any) -> bool:
    active = _attr(template, "active")
    return True if active is None else bool(active)


def _keywords(template: Any) -> list[str]:
    keywords = _attr(template, "detect_keywords") or []
    if isinstance(keywords, str):
        keywords = keywords.split(",")
    if not isinstance(keywords, (list, tuple, set, frozenset)):
        return []
    return [k for k in keywords if isinstance(k, str)]


def _name(template: Any) -> str:
    return _attr(template, "name") or "unnamed"
