"""fastapi-datatable: stateful filter, sort and paginate for FastAPI list pages."""

from . import models as models  # noqa: F401
from .accessors import AccessResult, AccessStatus, read_attribute, resolve_reader  # noqa: F401
from .binding import BindingError, bind_properties  # noqa: F401
from .config import DataTableConfig, DataTablePresets  # noqa: F401
from .filters import FilterAction, FilterEngine, FilterPanel  # noqa: F401
from .manager import DataTableManager, DataTableState  # noqa: F401
from .models import (  # noqa: F401
    ColumnType,
    DataTableColumn,
    DataTableFilter,
    DataTablePaginationProperties,
    DataTableSort,
    FilterType,
    Links,
    Meta,
    PaginatedResponse,
    Pagination,
)
from .pagination import DelegatePaginator, PaginationEngine, Paginator  # noqa: F401
from .sorting import AttributeComparator, SortEngine  # noqa: F401

__all__ = [
    # Main class
    "DataTableManager",
    "DataTableState",
    # Engines
    "FilterEngine",
    "SortEngine",
    "PaginationEngine",
    # Collaborators
    "FilterPanel",
    "FilterAction",
    "AttributeComparator",
    "Paginator",
    "DelegatePaginator",
    "bind_properties",
    "BindingError",
    # Attribute access
    "read_attribute",
    "resolve_reader",
    "AccessResult",
    "AccessStatus",
    # Configuration
    "DataTableConfig",
    "DataTablePresets",
    # Models
    "ColumnType",
    "FilterType",
    "DataTableColumn",
    "DataTableFilter",
    "DataTableSort",
    "DataTablePaginationProperties",
    "Pagination",
    "Meta",
    "Links",
    "PaginatedResponse",
    # Module
    "models",
]
