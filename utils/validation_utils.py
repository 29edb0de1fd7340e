"""
utils/validation_utils.py

Purpose: Input validation

- ObjectId parsing for path and body identifiers
- Safe regex building for search filters
- Pagination parameter normalisation
- Mongo document serialization for JSON responses
"""

import math
import re
from datetime import datetime
from typing import Any, Iterable, List, Optional, Tuple

from bson import ObjectId
from bson.errors import InvalidId

from utils.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE


def parse_object_id(value: Any) -> Optional[ObjectId]:
    """
    Converts a string or ObjectId into an ObjectId.

    Args:
        value: Raw identifier from a path or body

    Returns:
        ObjectId, or None if the value is not a valid identifier
    """
    if isinstance(value, ObjectId):
        return value
    if not value:
        return None
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None


def parse_object_ids(values: Iterable[Any]) -> List[ObjectId]:
    """Parses many identifiers, silently skipping invalid ones."""
    parsed = (parse_object_id(v) for v in values or [])
    return [oid for oid in parsed if oid is not None]


def search_regex(term: str) -> dict:
    """
    Case-insensitive "contains" filter for a user-supplied search term.
    The term is escaped so it is matched literally.
    """
    return {"$regex": re.escape(term.strip()), "$options": "i"}


def exact_name_regex(name: str) -> dict:
    """Case-insensitive exact-match filter, used for name uniqueness checks."""
    return {"$regex": f"^{re.escape(name.strip())}$", "$options": "i"}


def normalize_pagination(page: Any, limit: Any, default_limit: int = DEFAULT_PAGE_SIZE) -> Tuple[int, int, int]:
    """
    Normalises page and limit query values.

    Returns:
        (page, limit, skip) with page >= 1 and 1 <= limit <= MAX_PAGE_SIZE
    """
    try:
        page = max(int(page), 1)
    except (TypeError, ValueError):
        page = 1
    try:
        limit = min(max(int(limit), 1), MAX_PAGE_SIZE)
    except (TypeError, ValueError):
        limit = default_limit
    return page, limit, (page - 1) * limit


def pagination_block(page: int, limit: int, total: int) -> dict:
    """Builds the pagination block returned by list endpoints."""
    return {
        "current": page,
        "pages": math.ceil(total / limit) if limit else 0,
        "total": total,
    }


def serialize_document(value: Any) -> Any:
    """
    Recursively converts ObjectIds to strings and datetimes to ISO strings
    so Mongo documents can be returned as JSON.
    """
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: serialize_document(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize_document(v) for v in value]
    return value
