"""Data table manager: filter, sort and paginate records across requests."""

import logging
from dataclasses import dataclass, field
from typing import Any, Generic, Iterable, List, Optional, Sequence, Tuple, TypeVar

from sqlalchemy import Select
from sqlmodel import Session
from sqlmodel.ext.asyncio.session import AsyncSession

from fastapi_datatable import sql
from fastapi_datatable.accessors import AttributeAccessor, read_attribute
from fastapi_datatable.binding import BindingError, bind_properties
from fastapi_datatable.config import DataTableConfig
from fastapi_datatable.filters import FilterEngine, FilterPanel
from fastapi_datatable.models import (
    ColumnType,
    DataTableColumn,
    DataTablePaginationProperties,
    DataTableSort,
    FilterType,
    Meta,
    PaginatedResponse,
)
from fastapi_datatable.pagination import PaginationEngine, Paginator, parse_page_index
from fastapi_datatable.params import RequestLike
from fastapi_datatable.sorting import SortEngine

logger = logging.getLogger(__name__)

T = TypeVar("T")
K = TypeVar("K")


@dataclass
class DataTableState:
    """
    Mutable state of one table, kept between requests.

    Attributes:
        sort: Current sort attribute and direction
        current_page_index: Page index as received on the wire ("" = first page)
        items_per_page: Current page size (0 = not set yet)
        paginator: Page view of the last pipeline run or set_items call
        items: Unpaged result when pagination is disabled
    """

    sort: DataTableSort = field(default_factory=DataTableSort)
    current_page_index: str = ""
    items_per_page: int = 0
    paginator: Optional[Paginator] = None
    items: Optional[List[Any]] = None


class DataTableManager(Generic[T]):
    """
    Data table manager.

    Owns the columns, the filter panel and the sort and pagination state of
    one logical table, e.g. one list page of one user session. Not safe for
    concurrent use: callers serialise requests against an instance.

    Two ways of use, not to be mixed within one request:
    - filter_sort_and_paginate: filter, sort and slice an in-memory list
    - update_pagination_state / update_sort_state / update_filter_state, then
      set_items: the caller queries an external source with the returned
      state and hands back the page and the total count

    Example:
        manager = DataTableManager("/users", "/users", default_items_per_page=20)
        manager.add_column("Name", "name", sortable=True)
        manager.add_filter(FilterType.BOOLEAN, "active", "Active only")

        @app.get("/users")
        def list_users(request: Request):
            manager.filter_sort_and_paginate(request, load_users())
            return manager.build_response()
    """

    def __init__(
        self,
        sort_url: str,
        filter_url: str,
        default_items_per_page: Optional[int] = None,
        enable_paginator: bool = True,
        config: Optional[DataTableConfig] = None,
        accessor: AttributeAccessor = read_attribute,
    ):
        """
        Initialize DataTableManager.

        Args:
            sort_url: URL used by sort and page links
            filter_url: URL the filter form is submitted to
            default_items_per_page: Page size when none is requested;
                defaults to config.default_items_per_page
            enable_paginator: False to always expose the whole result
            config: Parameter names and bounds; defaults to DataTableConfig()
            accessor: Function reading an attribute off a record
        """
        self.config = config or DataTableConfig()
        self.sort_url = sort_url
        self.default_items_per_page = (
            default_items_per_page or self.config.default_items_per_page
        )
        self.enable_paginator = enable_paginator
        self.columns: List[DataTableColumn] = []
        self.filter_panel = FilterPanel(filter_url)
        self.state = DataTableState()

        self._filter_engine = FilterEngine(self.config, accessor)
        self._sort_engine = SortEngine(self.config, accessor)
        self._pagination_engine = PaginationEngine(self.config)

    # --- Columns ---

    def _add_column(self, column: DataTableColumn) -> "DataTableManager[T]":
        self.columns.append(column)
        return self

    def add_column(
        self, title: str, parameter_name: str, sortable: bool = False
    ) -> "DataTableManager[T]":
        """
        Add a text column.

        Args:
            title: I18n key of the column title
            parameter_name: Record attribute displayed in the column
            sortable: True if the column is sortable

        Returns:
            DataTableManager: Self for chaining
        """
        return self._add_column(
            DataTableColumn(title=title, parameter_name=parameter_name, sortable=sortable)
        )

    def add_label_column(
        self, title: str, parameter_name: str, sortable: bool = False
    ) -> "DataTableManager[T]":
        """Add a column whose cell values are i18n keys."""
        return self._add_column(
            DataTableColumn(
                title=title,
                parameter_name=parameter_name,
                sortable=sortable,
                column_type=ColumnType.LABEL,
            )
        )

    def add_action_column(self, title: str) -> "DataTableManager[T]":
        """Add the column holding actions on items. Its content is rendered by a macro."""
        return self._add_column(DataTableColumn(title=title, column_type=ColumnType.ACTION))

    def add_boolean_column(
        self, title: str, parameter_name: str, label_true: str, label_false: str
    ) -> "DataTableManager[T]":
        """
        Add a boolean column.

        Args:
            title: I18n key of the column title
            parameter_name: Record attribute displayed in the column
            label_true: I18n key displayed for true
            label_false: I18n key displayed for false

        Returns:
            DataTableManager: Self for chaining
        """
        return self._add_column(
            DataTableColumn(
                title=title,
                parameter_name=parameter_name,
                column_type=ColumnType.BOOLEAN,
                label_true=label_true,
                label_false=label_false,
            )
        )

    def add_free_column(self, title: str, macro_name: str) -> "DataTableManager[T]":
        """Add a column rendered by the named macro, which receives the item."""
        return self._add_column(
            DataTableColumn(title=title, parameter_name=macro_name, column_type=ColumnType.ACTION)
        )

    def add_email_column(
        self, title: str, parameter_name: str, sortable: bool = False
    ) -> "DataTableManager[T]":
        """Add a column rendered as a mailto: link."""
        return self._add_column(
            DataTableColumn(
                title=title,
                parameter_name=parameter_name,
                sortable=sortable,
                column_type=ColumnType.EMAIL,
            )
        )

    @property
    def sortable_attributes(self) -> List[str]:
        return [c.parameter_name for c in self.columns if c.sortable and c.parameter_name]

    # --- Filters ---

    def add_filter(
        self, filter_type: FilterType, parameter_name: str, label: str
    ) -> "DataTableManager[T]":
        """
        Add a filter to the filter panel.

        Args:
            filter_type: Type of the filter. Use add_dropdown_list_filter for drop-downs.
            parameter_name: Record attribute to filter on, e.g. "title"
            label: Label describing the filter

        Returns:
            DataTableManager: Self for chaining
        """
        self.filter_panel.add_filter(filter_type, parameter_name, label)
        return self

    def add_dropdown_list_filter(
        self, parameter_name: str, label: str, options: Iterable[Tuple[str, str]]
    ) -> "DataTableManager[T]":
        """Add a drop-down filter offering the given (code, name) options."""
        self.filter_panel.add_dropdown_list_filter(parameter_name, label, options)
        return self

    @property
    def filter_panel_prefix(self) -> str:
        """Prefix of the filter form field names."""
        return self.config.filter_prefix

    # --- In-memory pipeline ---

    def filter_sort_and_paginate(self, request: RequestLike, items: Sequence[T]) -> None:
        """
        Filter, sort and paginate records, keeping the page for display.

        Args:
            request: Inbound request or parameter mapping
            items: Records to display; not mutated

        Raises:
            HTTPException: If strict_mode is True and the sort attribute is not sortable
        """
        filtered = self._filter_engine.apply_filters(items, self.filter_panel, request)
        self._sort_engine.update_sort(self.state.sort, request, self.sortable_attributes)
        ordered = self._sort_engine.apply_sort(filtered, self.state.sort)

        if self.enable_paginator:
            self._update_page_state(request)
            self.state.paginator = self._pagination_engine.paginate(
                ordered,
                self.state.items_per_page,
                self.state.current_page_index,
                self.sort_url,
            )
            self.state.items = None
        else:
            self.state.paginator = None
            self.state.items = ordered

    # --- Delegated state ---

    def _update_page_state(self, request: RequestLike) -> None:
        self.state.current_page_index = self._pagination_engine.resolve_page_index(
            request, self.state.current_page_index
        )
        self.state.items_per_page = self._pagination_engine.resolve_items_per_page(
            request, self.state.items_per_page, self.default_items_per_page
        )

    def update_pagination_state(
        self, request: RequestLike
    ) -> Optional[DataTablePaginationProperties]:
        """
        Update the pagination state from a request.

        Args:
            request: Inbound request or parameter mapping

        Returns:
            Optional[DataTablePaginationProperties]: Current page and page size,
            or None when pagination is disabled
        """
        if not self.enable_paginator:
            return None
        self._update_page_state(request)
        return DataTablePaginationProperties(
            current_page_index=parse_page_index(self.state.current_page_index),
            items_per_page=self.state.items_per_page,
        )

    def update_sort_state(self, request: RequestLike) -> DataTableSort:
        """
        Update the sort state from a request.

        Args:
            request: Inbound request or parameter mapping

        Returns:
            DataTableSort: Copy of the current sort state

        Raises:
            HTTPException: If strict_mode is True and the sort attribute is not sortable
        """
        self._sort_engine.update_sort(self.state.sort, request, self.sortable_attributes)
        return self.state.sort.model_copy()

    def update_filter_state(self, request: RequestLike, filter_object: K) -> Optional[K]:
        """
        Update the filter values from a request and copy them onto an object.

        Values are resolved like in filter_sort_and_paginate (reset, update or
        keep); every non-blank value is bound to the attribute of the same name.
        Request values are therefore read only when the update flag is set, and
        an absent boolean filter binds as "false" rather than being left unset.

        Args:
            request: Inbound request or parameter mapping
            filter_object: Object receiving the filter values

        Returns:
            Optional[K]: The populated object, or None if binding failed
        """
        self._filter_engine.resolve_values(self.filter_panel, request)
        try:
            return bind_properties(filter_object, self.filter_panel.active_values())
        except BindingError as e:
            logger.error("Could not bind filter values: %s", e, exc_info=True)
            return None

    def set_items(self, items: Sequence[T], total_items: int) -> None:
        """
        Set the page to display, already filtered, sorted and sliced.

        update_pagination_state, update_sort_state and update_filter_state
        must have been called for the request beforehand.

        Args:
            items: Records of the current page
            total_items: Number of records across all pages
        """
        if not self.enable_paginator:
            self.state.paginator = None
            self.state.items = list(items)
            return
        self.state.paginator = self._pagination_engine.delegate(
            items,
            total_items,
            self.state.items_per_page or self.default_items_per_page,
            self.state.current_page_index,
            self.sort_url,
        )
        self.state.items = None

    def clear_items(self) -> None:
        """Drop the stored page. Columns, filters and state are kept."""
        self.state.paginator = None
        self.state.items = None

    # --- Results ---

    @property
    def paginator(self) -> Optional[Paginator]:
        return self.state.paginator

    @property
    def sort(self) -> DataTableSort:
        return self.state.sort.model_copy()

    @property
    def items(self) -> List[T]:
        """Records to display: the current page, or the whole result when unpaginated."""
        if self.state.paginator is not None:
            return self.state.paginator.page_items
        if self.state.items is not None:
            return self.state.items
        return []

    def build_response(self) -> PaginatedResponse[Any]:
        """
        Build a response with the records to display.

        Returns:
            PaginatedResponse: Records, pagination, filter and sort state, and
            page links when paginated
        """
        paginator = self.state.paginator
        return PaginatedResponse(
            data=self.items,
            meta=Meta(
                pagination=paginator.to_pagination() if paginator else None,
                filters=[f.model_copy() for f in self.filter_panel],
                sort=self.sort if self.state.sort.attribute_name else None,
            ),
            links=paginator.links() if paginator else None,
        )

    # --- SQL delegated mode ---

    def _prepare_query(self, request: RequestLike, query: Select) -> Tuple[Select, Select]:
        self._filter_engine.resolve_values(self.filter_panel, request)
        sort = self.update_sort_state(request)
        pagination = self.update_pagination_state(request)

        filtered = sql.apply_filter_values(query, self.filter_panel.active_values())
        page_query = sql.apply_pagination(sql.apply_sort(filtered, sort), pagination)
        return filtered, page_query

    def fetch_page(
        self, request: RequestLike, query: Select, session: Session
    ) -> PaginatedResponse[Any]:
        """
        Let the database filter, sort and slice a query with the table state.

        Args:
            request: Inbound request or parameter mapping
            query: Base SQLModel select query
            session: Database session

        Returns:
            PaginatedResponse: Complete response
        """
        filtered, page_query = self._prepare_query(request, query)
        total_items = sql.count_total(filtered, session)
        self.set_items(session.exec(page_query).all(), total_items)
        return self.build_response()

    async def fetch_page_async(
        self, request: RequestLike, query: Select, session: AsyncSession
    ) -> PaginatedResponse[Any]:
        """Async version of fetch_page."""
        filtered, page_query = self._prepare_query(request, query)
        total_items = await sql.count_total_async(filtered, session)
        result = await session.exec(page_query)
        self.set_items(result.all(), total_items)
        return self.build_response()
