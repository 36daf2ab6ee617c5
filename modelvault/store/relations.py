"""Normalization helpers for nested relation shapes returned by the store"""

import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)


def as_list(value: Any) -> list:
    """
    Coerce a nested relation into a list.

    A to-many join is expected to be a list, but an absent join comes back
    as None and a single-row join may come back as a bare mapping. Anything
    else is treated as malformed and replaced with an empty list.
    """
    if value is None:
        return []
    if isinstance(value, list):
        return value
    if isinstance(value, tuple):
        return list(value)
    if isinstance(value, dict):
        return [value]

    logger.warning(f"Malformed relation of type {type(value).__name__}, using empty list")
    return []


def first_or_none(value: Any) -> Optional[dict]:
    """Coerce a to-one relation (mapping or list of mappings) to a mapping or None"""
    for item in as_list(value):
        if isinstance(item, dict):
            return item
    return None


def related_value(record: Optional[dict], relation: str, field: str, default: Any = None) -> Any:
    """Read `field` from the first row of `record[relation]`, falling back to `default`"""
    if not record:
        return default

    related = first_or_none(record.get(relation))
    if related is None:
        return default

    value = related.get(field)
    return default if value is None else value
