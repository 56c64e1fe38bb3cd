"""Sort engine for ordering in-memory records."""

import logging
from typing import Any, Collection, List, Optional, Sequence, Tuple

from fastapi import HTTPException, status

from fastapi_datatable.accessors import AttributeAccessor, read_attribute, to_text
from fastapi_datatable.config import DataTableConfig
from fastapi_datatable.models import DataTableSort
from fastapi_datatable.params import RequestLike, get_params, parse_bool

logger = logging.getLogger(__name__)


def _compare_values(a: Any, b: Any) -> int:
    """
    Compare two attribute values.

    None orders before any value. Values that cannot be compared with each
    other (e.g. int and str) are compared by their textual form.
    """
    if a is None and b is None:
        return 0
    if a is None:
        return -1
    if b is None:
        return 1
    try:
        if a < b:
            return -1
        if a > b:
            return 1
        return 0
    except TypeError:
        ta, tb = to_text(a), to_text(b)
        return (ta > tb) - (ta < tb)


def _value_key(value: Any) -> Tuple[int, Any]:
    return (0, "") if value is None else (1, value)


def _text_key(value: Any) -> Tuple[int, str]:
    return (0, "") if value is None else (1, to_text(value))


class AttributeComparator:
    """
    Orders records by one named attribute.

    Example:
        comparator = AttributeComparator("name", ascending=False)
        ordered = comparator.sort(users)
    """

    def __init__(
        self,
        attribute_name: str,
        ascending: bool = True,
        accessor: AttributeAccessor = read_attribute,
    ):
        self.attribute_name = attribute_name
        self.ascending = ascending
        self.accessor = accessor

    def value_of(self, record: Any) -> Any:
        """Attribute value of a record, None when it cannot be read."""
        result = self.accessor(record, self.attribute_name, True)
        return result.value if result.found else None

    def compare(self, a: Any, b: Any) -> int:
        """
        Compare two records.

        Returns:
            int: Negative, zero or positive, honouring the sort direction
        """
        result = _compare_values(self.value_of(a), self.value_of(b))
        return result if self.ascending else -result

    def sort(self, items: Sequence[Any]) -> List[Any]:
        """
        Return the records sorted by the attribute.

        The sort is stable in both directions: records with equal values keep
        their input order. When the values cannot all be compared with each
        other, every value is compared by its textual form.
        """
        decorated = [(self.value_of(item), item) for item in items]
        reverse = not self.ascending
        try:
            ordered = sorted(decorated, key=lambda pair: _value_key(pair[0]), reverse=reverse)
        except TypeError:
            # Mixed types: the whole column is ordered by text
            ordered = sorted(decorated, key=lambda pair: _text_key(pair[0]), reverse=reverse)
        return [item for _, item in ordered]


class SortEngine:
    """
    Engine keeping the sort state of a table and applying it to records.

    The sort state changes only when a request names a sort attribute;
    otherwise the previous attribute and direction are kept.
    """

    def __init__(
        self,
        config: Optional[DataTableConfig] = None,
        accessor: AttributeAccessor = read_attribute,
    ):
        """
        Initialize SortEngine.

        Args:
            config: Parameter names and strict mode; defaults to DataTableConfig()
            accessor: Function reading an attribute off a record
        """
        self.config = config or DataTableConfig()
        self.accessor = accessor

    @property
    def strict_mode(self) -> bool:
        return self.config.strict_mode

    def update_sort(
        self,
        sort: DataTableSort,
        request: RequestLike,
        sortable: Optional[Collection[str]] = None,
    ) -> DataTableSort:
        """
        Update a sort state from a request.

        Args:
            sort: Stored sort state, updated in place
            request: Inbound request or parameter mapping
            sortable: Names of the sortable columns, checked in strict mode

        Returns:
            DataTableSort: The updated state

        Raises:
            HTTPException: If strict_mode is True and the attribute is not sortable
        """
        params = get_params(request)
        attribute_name = params.get(self.config.sort_attribute_param)
        if attribute_name is None:
            return sort

        if self.strict_mode and sortable is not None and attribute_name not in sortable:
            available = ", ".join(sorted(sortable))
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=(
                    f"Unknown sort field '{attribute_name}'. Available fields: {available}"
                ),
            )

        sort.attribute_name = attribute_name
        sort.ascending = parse_bool(params.get(self.config.sort_ascending_param))
        logger.debug("Sort set to %s (ascending=%s)", sort.attribute_name, sort.ascending)
        return sort

    def apply_sort(self, items: Sequence[Any], sort: Optional[DataTableSort]) -> List[Any]:
        """
        Sort records.

        Args:
            items: Records to sort (not mutated)
            sort: Sort state

        Returns:
            List[Any]: Sorted records, or the records in input order when no
            attribute is set
        """
        if not sort or not sort.attribute_name:
            return list(items)
        comparator = AttributeComparator(sort.attribute_name, sort.ascending, self.accessor)
        return comparator.sort(items)
