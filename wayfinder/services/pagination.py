"""Limit/offset handling shared by the POI and route listings."""

from typing import Any, List, Optional, Sequence, TypeVar

from wayfinder.exceptions import ValidationError

T = TypeVar("T")

DEFAULT_LIMIT = 50
MAX_LIMIT = 500


def check_page(limit: int, offset: int) -> None:
    """Raise invalid_request unless 1 <= limit <= 500 and offset >= 0."""
    if limit < 1 or limit > MAX_LIMIT:
        raise ValidationError(
            message=f"Invalid limit. Must be 1..{MAX_LIMIT}.",
            context={"limit": limit},
        )
    if offset < 0:
        raise ValidationError(
            message="Invalid offset. Must be >= 0.",
            context={"offset": offset},
        )


def page(items: Sequence[T], limit: int, offset: int) -> List[T]:
    # Slicing past the end yields [], which is the documented behavior
    return list(items[offset:offset + limit])


def normalize_bool(name: str, value: Any) -> Optional[bool]:
    """
    Parse a boolean-ish filter value.

    None means "no filter". Accepts real booleans and the strings
    "true"/"1"/"false"/"0" (any case); anything else is invalid_request.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("true", "1"):
        return True
    if text in ("false", "0"):
        return False
    raise ValidationError(message=f"{name} must be a boolean.", context={name: value})
