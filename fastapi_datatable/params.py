"""Request parameter helpers."""

from collections.abc import Mapping
from typing import Any, Optional, Union

from fastapi import Request

RequestLike = Union[Request, Mapping]


def get_params(request: RequestLike) -> Mapping:
    """
    Get the parameter mapping of a request.

    Args:
        request: Starlette/FastAPI request, or an already extracted mapping
            such as awaited form data

    Returns:
        Mapping: Parameter name to value
    """
    if isinstance(request, Mapping):
        return request
    return request.query_params


def is_true(value: Optional[str]) -> bool:
    """Control flags are set only by the exact literal "true"."""
    return value == "true"


def parse_bool(value: Optional[str]) -> bool:
    """Parse a boolean parameter; anything but "true" (any case) is False."""
    return value is not None and value.strip().lower() == "true"


def is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def parse_int(raw: Any, default: int) -> int:
    """
    Parse an integer parameter.

    Args:
        raw: Raw value
        default: Value returned when raw is missing or not an integer

    Returns:
        int: Parsed value or default
    """
    if raw is None:
        return default
    try:
        return int(str(raw).strip())
    except ValueError:
        return default
