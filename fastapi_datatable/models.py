"""Data table models"""

from enum import StrEnum
from typing import Generic, List, Optional, Tuple, TypeVar

from pydantic import BaseModel, ConfigDict


class ColumnType(StrEnum):
    """Column types"""

    STRING = "string"  # plain text
    LABEL = "label"  # value is an i18n key
    ACTION = "action"  # rendered by a custom macro
    BOOLEAN = "boolean"  # rendered with true/false labels
    EMAIL = "email"  # rendered as a mailto: link


class FilterType(StrEnum):
    """Filter types"""

    STRING = "string"  # free text
    BOOLEAN = "boolean"  # checkbox
    DROPDOWN = "dropdown"  # enumerated values


T = TypeVar("T")


class DataTableColumn(BaseModel):
    """Column descriptor"""

    model_config = ConfigDict(frozen=True)

    title: str
    parameter_name: Optional[str] = None
    sortable: bool = False
    column_type: ColumnType = ColumnType.STRING
    label_true: Optional[str] = None
    label_false: Optional[str] = None


class DataTableFilter(BaseModel):
    """Filter descriptor.

    ``value`` holds the filter value kept between requests. It is the only
    mutable part of the descriptor.
    """

    parameter_name: str
    filter_type: FilterType = FilterType.STRING
    label: str = ""
    value: Optional[str] = None
    options: List[Tuple[str, str]] = []


class DataTableSort(BaseModel):
    """Sort snapshot"""

    attribute_name: Optional[str] = None
    ascending: bool = False


class DataTablePaginationProperties(BaseModel):
    """Pagination snapshot"""

    current_page_index: int = 1
    items_per_page: int

    @property
    def offset(self) -> int:
        return (self.current_page_index - 1) * self.items_per_page


class Pagination(BaseModel):
    """Pagination model"""

    total_items: Optional[int] = None
    per_page: int
    current_page: int
    total_pages: Optional[int] = None


class Meta(BaseModel):
    """Meta model"""

    pagination: Optional[Pagination] = None
    filters: Optional[List[DataTableFilter]] = None
    sort: Optional[DataTableSort] = None


class Links(BaseModel):
    """Links model"""

    self: str
    first: str
    next: Optional[str] = None
    prev: Optional[str] = None
    last: Optional[str] = None


class PaginatedResponse(BaseModel, Generic[T]):
    """Paginated response model"""

    data: List[T]
    meta: Meta
    links: Optional[Links] = None
