"""Rule engine filtering normalized items by their fields.

A rule is ``{type, key?, value}``. ``key`` names a NormalizedItem attribute
(default ``title``); text comparisons are case-insensitive. An item is kept
only when every rule of its source accepts it.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable

from common.config import RuleConfig
from common.utils import get_value
from fetch_sources.models import NormalizedItem

logger = logging.getLogger(__name__)

DEFAULT_RULE_KEY = "title"


def _as_text(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return " ".join(str(v) for v in value).lower()
    return str(value if value is not None else "").lower()


def _as_number(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _include(field_value: Any, value: Any) -> bool:
    if isinstance(field_value, (list, tuple)):
        return str(value).lower() in [str(v).lower() for v in field_value]
    return str(value).lower() in _as_text(field_value)


RULES: dict[str, Callable[[Any, Any], bool]] = {
    "greater": lambda field_value, value: _as_number(field_value) >= _as_number(value),
    "less": lambda field_value, value: _as_number(field_value) < _as_number(value),
    "include": _include,
    "notInclude": lambda field_value, value: not _include(field_value, value),
    "equal": lambda field_value, value: _as_text(field_value) == _as_text(value),
    "notEqual": lambda field_value, value: _as_text(field_value) != _as_text(value),
    "match": lambda field_value, value: re.search(str(value), _as_text(field_value), re.IGNORECASE) is not None,
    "notMatch": lambda field_value, value: re.search(str(value), _as_text(field_value), re.IGNORECASE) is None,
}


def validate_rules(rules: list[RuleConfig]) -> None:
    for rule in rules:
        if rule.type not in RULES:
            raise ValueError(f"Unknown rule type: {rule.type}. Valid types: {list(RULES.keys())}")


def accepts(item: NormalizedItem, rules: list[RuleConfig]) -> bool:
    """Return True when every rule accepts the item."""
    for rule in rules:
        field_value = get_value(item, rule.key or DEFAULT_RULE_KEY)
        if not RULES[rule.type](field_value, rule.value):
            logger.debug("Rule %s %s=%r rejected %s", rule.type, rule.key or DEFAULT_RULE_KEY, rule.value, item.url)
            return False
    return True


def filter_by_rules(items: list[NormalizedItem], rules: list[RuleConfig]) -> list[NormalizedItem]:
    """Keep the items every rule accepts, preserving order."""
    validate_rules(rules)
    return [item for item in items if accepts(item, rules)]
