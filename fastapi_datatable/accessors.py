"""Attribute access on arbitrary records.

Every dynamic lookup performed by the data table goes through this module.
A record attribute ``name`` is read by the first reader found among:

1. a ``get_name()`` or ``getName()`` method,
2. the attribute (or property, or mapping key) ``name`` itself.

When the caller asks for a boolean lookup and no such reader exists, the
``is`` prefix is tried the same way (``is_name()``, ``isName()``, then the
attribute ``is_name``).
"""

import inspect
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Callable, List, Optional

logger = logging.getLogger(__name__)

GETTER_PREFIX = "get"
BOOLEAN_GETTER_PREFIX = "is"

_MISSING = object()

Reader = Callable[[], Any]


class AccessStatus(StrEnum):
    """Outcome of reading an attribute"""

    FOUND = "found"
    NOT_FOUND = "not_found"  # no reader for the attribute
    FAILED = "failed"  # the reader raised


@dataclass(frozen=True)
class AccessResult:
    """Result of reading an attribute off a record."""

    status: AccessStatus
    value: Any = None
    error: Optional[Exception] = None

    @property
    def found(self) -> bool:
        return self.status == AccessStatus.FOUND


# Signature of a pluggable accessor: (record, attribute_name, boolean_fallback) -> result
AttributeAccessor = Callable[[Any, str, bool], AccessResult]


def _capitalize(name: str) -> str:
    return name[:1].upper() + name[1:]


def _method_names(name: str, prefix: str) -> List[str]:
    return [f"{prefix}_{name}", f"{prefix}{_capitalize(name)}"]


def _attribute_name(name: str, prefix: str) -> str:
    if prefix == GETTER_PREFIX:
        return name
    return f"{prefix}_{name}"


def _lookup(record: Any, name: str, prefix: str) -> Optional[Reader]:
    """
    Find a reader for an attribute using one getter prefix.

    Args:
        record: Object to read from
        name: Attribute name
        prefix: Getter prefix ("get" or "is")

    Returns:
        Optional[Reader]: Zero-argument callable or None if nothing matches
    """
    for method_name in _method_names(name, prefix):
        method = inspect.getattr_static(record, method_name, _MISSING)
        if method is _MISSING or isinstance(method, property):
            continue
        bound = getattr(record, method_name)
        if callable(bound):
            return bound

    attr = _attribute_name(name, prefix)
    if isinstance(record, Mapping):
        if attr in record:
            return lambda: record[attr]
        return None

    # getattr_static finds properties without running them; the reader runs them
    if inspect.getattr_static(record, attr, _MISSING) is not _MISSING:
        return lambda: getattr(record, attr)
    return None


def resolve_reader(record: Any, name: str, boolean_fallback: bool = False) -> Optional[Reader]:
    """
    Resolve a bound reader for a named attribute.

    Args:
        record: Object to read from
        name: Attribute name, e.g. "title"
        boolean_fallback: Also try the "is" prefix when no "get" reader exists

    Returns:
        Optional[Reader]: Zero-argument callable returning the value, or None
    """
    if not name:
        return None
    reader = _lookup(record, name, GETTER_PREFIX)
    if reader is None and boolean_fallback:
        reader = _lookup(record, name, BOOLEAN_GETTER_PREFIX)
    if reader is None:
        logger.debug("No reader for attribute '%s' on %s", name, type(record).__name__)
    return reader


def read_attribute(record: Any, name: str, boolean_fallback: bool = False) -> AccessResult:
    """
    Read a named attribute off a record.

    Never raises: a missing reader gives ``NOT_FOUND`` and a reader raising an
    exception gives ``FAILED`` with the exception attached.

    Args:
        record: Object to read from
        name: Attribute name
        boolean_fallback: Also try the "is" prefix when no "get" reader exists

    Returns:
        AccessResult: Outcome of the read
    """
    reader = resolve_reader(record, name, boolean_fallback)
    if reader is None:
        return AccessResult(AccessStatus.NOT_FOUND)
    try:
        return AccessResult(AccessStatus.FOUND, value=reader())
    except Exception as e:
        logger.exception("Reading attribute '%s' on %s failed", name, type(record).__name__)
        return AccessResult(AccessStatus.FAILED, error=e)


def to_text(value: Any) -> str:
    """Convert a value to its wire representation ("true"/"false" for booleans)."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
