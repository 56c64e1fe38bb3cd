"""Populate caller filter objects from filter values."""

import logging
import typing
from typing import Any, ClassVar, Dict, Mapping, Protocol, Set, TypeVar, runtime_checkable

from pydantic import BaseModel, PydanticSchemaGenerationError, TypeAdapter, ValidationError

logger = logging.getLogger(__name__)

K = TypeVar("K")


class BindingError(Exception):
    """A filter object could not be populated."""


@runtime_checkable
class FilterBindable(Protocol):
    """Objects that populate themselves from filter values."""

    def apply_filter_values(self, values: Dict[str, str]) -> Any: ...


def _convert(annotation: Any, raw: str, name: str) -> Any:
    try:
        return TypeAdapter(annotation).validate_python(raw)
    except ValidationError as e:
        raise BindingError(f"Invalid value {raw!r} for '{name}': {e}") from e
    except PydanticSchemaGenerationError as e:
        raise BindingError(f"Cannot convert a filter value to the type of '{name}': {e}") from e


def _type_hints(target: Any) -> Dict[str, Any]:
    if isinstance(target, BaseModel):
        return {name: info.annotation for name, info in type(target).model_fields.items()}
    try:
        return typing.get_type_hints(type(target))
    except (NameError, TypeError):
        return {}


def _class_vars(hints: Dict[str, Any]) -> Set[str]:
    return {
        name
        for name, hint in hints.items()
        if hint is ClassVar or typing.get_origin(hint) is ClassVar
    }


def bind_properties(target: K, values: Mapping[str, str]) -> K:
    """
    Copy filter values onto an object.

    Objects implementing ``apply_filter_values`` receive the whole mapping.
    Otherwise each value is assigned to the attribute of the same name,
    converted to the attribute's annotated type when there is one. Values
    without a matching attribute, or naming a class variable, are ignored.

    Args:
        target: Object to populate (pydantic model, dataclass or plain object)
        values: Filter values keyed by attribute name

    Returns:
        The populated target

    Raises:
        BindingError: If a value cannot be converted or assigned
    """
    if isinstance(target, FilterBindable):
        try:
            target.apply_filter_values(dict(values))
        except Exception as e:
            raise BindingError(f"{type(target).__name__} rejected filter values: {e}") from e
        return target

    hints = _type_hints(target)
    class_vars = _class_vars(hints)
    for name, raw in values.items():
        if name in class_vars:
            logger.debug("%s.%s is a class variable; not bound", type(target).__name__, name)
            continue
        if name in hints:
            value = _convert(hints[name], raw, name)
        elif hasattr(target, name):
            value = raw
        else:
            logger.debug("%s has no attribute '%s'", type(target).__name__, name)
            continue
        try:
            setattr(target, name, value)
        except (AttributeError, TypeError, ValidationError) as e:
            raise BindingError(f"Cannot set '{name}' on {type(target).__name__}: {e}") from e
    return target
