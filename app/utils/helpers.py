"""
Common utility functions and helpers.
"""
from typing import Any, Optional
import uuid

from fastapi import HTTPException, status
from fastapi.exceptions import RequestValidationError


def parse_id(value: str, label: str) -> str:
    """
    Validate a path identifier and return its canonical form.

    Args:
        value: Raw identifier from the URL
        label: Resource name used in the error message ("publication")

    Raises:
        HTTPException: 400 when the value is not a valid identifier
    """
    try:
        return str(uuid.UUID(value))
    except (ValueError, AttributeError, TypeError):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {label} ID",
        )


def safe_int(value: Any, default: Optional[int] = None) -> Optional[int]:
    """Parse an integer query value, returning ``default`` when it is not numeric."""
    if value is None:
        return default
    try:
        return int(str(value).strip())
    except ValueError:
        return default


def raise_field_error(field: str, message: str, location: str = "body") -> None:
    """
    Report a validation failure found after request parsing (e.g. on a
    merged partial update) through the regular 400 validation envelope.
    """
    raise RequestValidationError(
        [{"loc": (location, field), "msg": message, "type": "value_error"}]
    )
