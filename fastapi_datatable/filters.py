"""Filter panel and in-memory filter engine."""

import logging
from enum import StrEnum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from fastapi_datatable.accessors import (
    AccessResult,
    AccessStatus,
    AttributeAccessor,
    read_attribute,
    to_text,
)
from fastapi_datatable.config import DataTableConfig
from fastapi_datatable.models import DataTableFilter, FilterType
from fastapi_datatable.params import RequestLike, get_params, is_blank, is_true

logger = logging.getLogger(__name__)


class FilterAction(StrEnum):
    """How filter values are resolved for one request"""

    RESET = "reset"  # clear every value
    UPDATE = "update"  # read values from the request
    PERSIST = "persist"  # keep the stored values


class FilterPanel:
    """
    Ordered set of filter descriptors of one table.

    The panel owns the current value of every filter; values survive from one
    request to the next until they are reset or updated.
    """

    def __init__(self, filter_url: str):
        """
        Initialize FilterPanel.

        Args:
            filter_url: URL the filter form is submitted to
        """
        self.filter_url = filter_url
        self.filters: List[DataTableFilter] = []

    def add_filter(
        self, filter_type: FilterType, parameter_name: str, label: str
    ) -> DataTableFilter:
        """
        Add a filter.

        Args:
            filter_type: Type of the filter. Use add_dropdown_list_filter for drop-downs.
            parameter_name: Name of the record attribute to filter on
            label: Label describing the filter

        Returns:
            DataTableFilter: The registered descriptor
        """
        data_filter = DataTableFilter(
            parameter_name=parameter_name, filter_type=filter_type, label=label
        )
        self.filters.append(data_filter)
        return data_filter

    def add_dropdown_list_filter(
        self, parameter_name: str, label: str, options: Iterable[Tuple[str, str]]
    ) -> DataTableFilter:
        """
        Add a drop-down filter.

        Args:
            parameter_name: Name of the record attribute to filter on
            label: Label describing the filter
            options: (code, name) pairs offered by the drop-down

        Returns:
            DataTableFilter: The registered descriptor
        """
        data_filter = DataTableFilter(
            parameter_name=parameter_name,
            filter_type=FilterType.DROPDOWN,
            label=label,
            options=list(options),
        )
        self.filters.append(data_filter)
        return data_filter

    def get_filter(self, parameter_name: str) -> Optional[DataTableFilter]:
        for data_filter in self.filters:
            if data_filter.parameter_name == parameter_name:
                return data_filter
        return None

    def active_values(self) -> Dict[str, str]:
        """Non-blank filter values keyed by parameter name."""
        return {
            f.parameter_name: f.value for f in self.filters if not is_blank(f.value)
        }

    def __len__(self) -> int:
        return len(self.filters)

    def __iter__(self):
        return iter(self.filters)


class FilterEngine:
    """
    Engine resolving filter values from requests and applying them to records.

    A record is kept when it matches every filter with a non-blank value;
    matching compares the textual form of the record attribute with the
    filter value.
    """

    def __init__(
        self,
        config: Optional[DataTableConfig] = None,
        accessor: AttributeAccessor = read_attribute,
    ):
        """
        Initialize FilterEngine.

        Args:
            config: Parameter names; defaults to DataTableConfig()
            accessor: Function reading an attribute off a record
        """
        self.config = config or DataTableConfig()
        self.accessor = accessor

    def param_name(self, name: str) -> str:
        return self.config.filter_prefix + name

    def resolve_action(self, request: RequestLike) -> FilterAction:
        """
        Read the filter panel control flags.

        Args:
            request: Inbound request or parameter mapping

        Returns:
            FilterAction: RESET wins over UPDATE; PERSIST when neither is set
        """
        params = get_params(request)
        if is_true(params.get(self.param_name(self.config.reset_filters_param))):
            return FilterAction.RESET
        if is_true(params.get(self.param_name(self.config.update_filters_param))):
            return FilterAction.UPDATE
        return FilterAction.PERSIST

    def resolve_values(self, panel: FilterPanel, request: RequestLike) -> FilterAction:
        """
        Update the stored filter values from a request.

        Args:
            panel: Filter panel whose values are updated in place
            request: Inbound request or parameter mapping

        Returns:
            FilterAction: The action that was applied
        """
        action = self.resolve_action(request)
        if action == FilterAction.RESET:
            for data_filter in panel:
                data_filter.value = None
        elif action == FilterAction.UPDATE:
            params = get_params(request)
            for data_filter in panel:
                value = params.get(self.param_name(data_filter.parameter_name))
                # An unchecked checkbox sends nothing
                if value is None and data_filter.filter_type == FilterType.BOOLEAN:
                    value = "false"
                data_filter.value = value
        return action

    def _read(self, record: Any, data_filter: DataTableFilter) -> AccessResult:
        return self.accessor(
            record,
            data_filter.parameter_name,
            data_filter.filter_type == FilterType.BOOLEAN,
        )

    @staticmethod
    def _value_matches(result: AccessResult, data_filter: DataTableFilter) -> bool:
        if not result.found or result.value is None:
            return False
        return to_text(result.value) == data_filter.value

    def matches(self, record: Any, data_filter: DataTableFilter) -> bool:
        """
        Check a record against one filter value.

        Args:
            record: Record to test
            data_filter: Filter holding a non-blank value

        Returns:
            bool: True if the record attribute renders as the filter value
        """
        return self._value_matches(self._read(record, data_filter), data_filter)

    def filter_items(
        self, items: Sequence[Any], filters: Iterable[DataTableFilter]
    ) -> List[Any]:
        """
        Keep the records matching every filter with a non-blank value.

        Args:
            items: Records to filter (not mutated)
            filters: Filters with their resolved values

        Returns:
            List[Any]: Matching records in input order
        """
        result = list(items)
        for data_filter in filters:
            if is_blank(data_filter.value):
                continue
            kept = []
            readable = False
            for record in result:
                outcome = self._read(record, data_filter)
                readable = readable or outcome.status != AccessStatus.NOT_FOUND
                if self._value_matches(outcome, data_filter):
                    kept.append(record)
            if result and not readable:
                logger.warning(
                    "Filter '%s' matches no attribute of the filtered records; "
                    "check the filter parameter name",
                    data_filter.parameter_name,
                )
            result = kept
        return result

    def apply_filters(
        self, items: Sequence[Any], panel: FilterPanel, request: RequestLike
    ) -> List[Any]:
        """
        Resolve filter values from the request, then filter the records.

        Args:
            items: Records to filter
            panel: Filter panel holding the stored values
            request: Inbound request or parameter mapping

        Returns:
            List[Any]: Matching records in input order
        """
        action = self.resolve_values(panel, request)
        logger.debug("Filter action %s, values %s", action, panel.active_values())
        return self.filter_items(items, panel.filters)
