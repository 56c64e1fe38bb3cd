"""Pagination engine and paginators for in-memory and delegated pages."""

import logging
from math import ceil
from typing import Generic, List, Optional, Sequence, TypeVar

from fastapi.datastructures import URL

from fastapi_datatable.config import DataTableConfig
from fastapi_datatable.models import Links, Pagination
from fastapi_datatable.params import RequestLike, get_params, parse_int

logger = logging.getLogger(__name__)

T = TypeVar("T")


def parse_page_index(page_index: Optional[str]) -> int:
    """
    Parse a stored page index.

    Args:
        page_index: Page index as received on the wire; empty means first page

    Returns:
        int: 1-based page index, never below 1
    """
    if not page_index:
        return 1
    return max(1, parse_int(page_index, 1))


class Paginator(Generic[T]):
    """
    Page view over an in-memory sequence.

    The current page is clamped to [1, page_count]; an empty sequence has a
    single empty page.
    """

    def __init__(
        self,
        items: Sequence[T],
        items_per_page: int,
        base_url: str,
        page_index: Optional[str] = None,
        page_index_param: str = "page_index",
        items_per_page_param: str = "items_per_page",
    ):
        """
        Initialize Paginator.

        Args:
            items: Full sequence (filtered and sorted)
            items_per_page: Page size
            base_url: URL the page links point to
            page_index: Requested page index as text
            page_index_param: Query parameter name of the page index in links
            items_per_page_param: Query parameter name of the page size in links
        """
        self._items = list(items)
        self.items_per_page = max(1, items_per_page)
        self.base_url = base_url
        self.page_index_param = page_index_param
        self.items_per_page_param = items_per_page_param
        self.total_items = len(self._items)
        self.current_page = min(parse_page_index(page_index), self.page_count)

    @property
    def page_count(self) -> int:
        return max(1, ceil(self.total_items / self.items_per_page))

    @property
    def offset(self) -> int:
        """Index of the first item of the current page in the full sequence."""
        return (self.current_page - 1) * self.items_per_page

    @property
    def page_items(self) -> List[T]:
        return self._items[self.offset : self.offset + self.items_per_page]

    def page_url(self, page: int) -> str:
        """
        Build the link to a page.

        Args:
            page: 1-based page index

        Returns:
            str: base_url with page index and page size parameters
        """
        url = URL(self.base_url).include_query_params(
            **{self.page_index_param: page, self.items_per_page_param: self.items_per_page}
        )
        return str(url)

    def links(self) -> Links:
        """Navigation links for the current page."""
        return Links(
            self=self.page_url(self.current_page),
            first=self.page_url(1),
            last=self.page_url(self.page_count),
            next=(
                self.page_url(self.current_page + 1)
                if self.current_page < self.page_count
                else None
            ),
            prev=self.page_url(self.current_page - 1) if self.current_page > 1 else None,
        )

    def to_pagination(self) -> Pagination:
        return Pagination(
            total_items=self.total_items,
            per_page=self.items_per_page,
            current_page=self.current_page,
            total_pages=self.page_count,
        )

    def __len__(self) -> int:
        return len(self.page_items)


class DelegatePaginator(Paginator[T]):
    """
    Page view over a page that was sliced by an external source.

    The page items are exposed unchanged; the total item count drives the
    page count and the links.
    """

    def __init__(
        self,
        page_items: Sequence[T],
        items_per_page: int,
        base_url: str,
        page_index: Optional[str],
        total_items: int,
        page_index_param: str = "page_index",
        items_per_page_param: str = "items_per_page",
    ):
        super().__init__(
            page_items,
            items_per_page,
            base_url,
            page_index=page_index,
            page_index_param=page_index_param,
            items_per_page_param=items_per_page_param,
        )
        self.total_items = max(0, total_items)
        self.current_page = min(parse_page_index(page_index), self.page_count)

    @property
    def page_items(self) -> List[T]:
        return self._items


class PaginationEngine:
    """
    Engine reading pagination state from requests and building page views.
    """

    def __init__(self, config: Optional[DataTableConfig] = None):
        """
        Initialize PaginationEngine.

        Args:
            config: Parameter names and page size bounds; defaults to DataTableConfig()
        """
        self.config = config or DataTableConfig()

    def resolve_page_index(self, request: RequestLike, current: str) -> str:
        """
        Get the page index of a request.

        Args:
            request: Inbound request or parameter mapping
            current: Stored page index

        Returns:
            str: Requested page index, or the stored one when absent
        """
        page_index = get_params(request).get(self.config.page_index_param)
        return current if page_index is None else page_index

    def resolve_items_per_page(self, request: RequestLike, current: int, default: int) -> int:
        """
        Get the page size of a request.

        An unparseable requested size falls back to the default; an absent one
        to the stored size, then to the default.

        Args:
            request: Inbound request or parameter mapping
            current: Stored page size, 0 when unset
            default: Default page size

        Returns:
            int: Page size within the configured bounds
        """
        raw = get_params(request).get(self.config.items_per_page_param)
        if raw is not None:
            items_per_page = parse_int(raw, default)
        elif current:
            items_per_page = current
        else:
            items_per_page = default
        if items_per_page < 1:
            items_per_page = default
        return self.config.validate_items_per_page(items_per_page)

    def paginate(
        self, items: Sequence[T], items_per_page: int, page_index: str, base_url: str
    ) -> Paginator[T]:
        """
        Build a page view over an in-memory sequence.

        Args:
            items: Filtered and sorted records
            items_per_page: Page size
            page_index: Page index as text
            base_url: URL used by page links

        Returns:
            Paginator: Page view
        """
        paginator = Paginator(
            items,
            items_per_page,
            base_url,
            page_index=page_index,
            page_index_param=self.config.page_index_param,
            items_per_page_param=self.config.items_per_page_param,
        )
        logger.debug(
            "Page %d/%d of %d items",
            paginator.current_page,
            paginator.page_count,
            paginator.total_items,
        )
        return paginator

    def delegate(
        self,
        page_items: Sequence[T],
        total_items: int,
        items_per_page: int,
        page_index: str,
        base_url: str,
    ) -> DelegatePaginator[T]:
        """
        Wrap an externally sliced page.

        Args:
            page_items: Records of the current page
            total_items: Number of records across all pages
            items_per_page: Page size
            page_index: Page index as text
            base_url: URL used by page links

        Returns:
            DelegatePaginator: Page view
        """
        return DelegatePaginator(
            page_items,
            items_per_page,
            base_url,
            page_index,
            total_items,
            page_index_param=self.config.page_index_param,
            items_per_page_param=self.config.items_per_page_param,
        )
