"""Configuration classes for fastapi-datatable."""

from dataclasses import dataclass


@dataclass
class DataTableConfig:
    """
    Configuration for DataTableManager behavior.

    Holds the request parameter names that form the wire contract with the
    HTML forms and links of a table, plus pagination bounds.

    Attributes:
        sort_attribute_param: Parameter carrying the sorted attribute name
        sort_ascending_param: Parameter carrying the ascending flag ("true" / other)
        page_index_param: Parameter carrying the current page index
        items_per_page_param: Parameter carrying the number of items per page
        filter_prefix: Prefix of every filter panel parameter
        reset_filters_param: Filter panel flag clearing every filter value
        update_filters_param: Filter panel flag reading filter values from the request
        default_items_per_page: Items per page when the request and state carry none
        max_items_per_page: Upper bound for a requested number of items per page
        strict_mode: If True, reject sort attributes that are not sortable columns

    Example:
        config = DataTableConfig(default_items_per_page=20, strict_mode=True)
        manager = DataTableManager("/admin/users", "/admin/users", config=config)
    """

    # Wire parameter names
    sort_attribute_param: str = "sorted_attribute_name"
    sort_ascending_param: str = "asc_sort"
    page_index_param: str = "page_index"
    items_per_page_param: str = "items_per_page"
    filter_prefix: str = "filter_panel_"
    reset_filters_param: str = "resetFilters"
    update_filters_param: str = "updateFilters"

    # Pagination settings
    default_items_per_page: int = 10
    max_items_per_page: int = 1000

    # Validation settings
    strict_mode: bool = False

    def __post_init__(self):
        """Validate configuration values."""
        if self.default_items_per_page < 1:
            raise ValueError("default_items_per_page must be >= 1")
        if self.max_items_per_page < 1:
            raise ValueError("max_items_per_page must be >= 1")
        if self.default_items_per_page > self.max_items_per_page:
            raise ValueError("default_items_per_page cannot exceed max_items_per_page")
        if not self.filter_prefix:
            raise ValueError("filter_prefix must not be empty")

    def validate_items_per_page(self, items_per_page: int) -> int:
        """
        Constrain a number of items per page.

        Args:
            items_per_page: Requested items per page

        Returns:
            int: Value constrained to [1, max_items_per_page]
        """
        if items_per_page < 1:
            return self.default_items_per_page
        if items_per_page > self.max_items_per_page:
            return self.max_items_per_page
        return items_per_page


class DataTablePresets:
    """Pre-defined DataTableConfig presets for common use cases."""

    @staticmethod
    def default() -> DataTableConfig:
        """Default configuration with sensible defaults."""
        return DataTableConfig()

    @staticmethod
    def strict() -> DataTableConfig:
        """Strict mode configuration - rejects unknown sort attributes."""
        return DataTableConfig(strict_mode=True)

    @staticmethod
    def high_volume(
        max_items_per_page: int = 5000, default_items_per_page: int = 100
    ) -> DataTableConfig:
        """
        Configuration for large tables.

        Args:
            max_items_per_page: Maximum items per page
            default_items_per_page: Default items per page
        """
        return DataTableConfig(
            max_items_per_page=max_items_per_page,
            default_items_per_page=default_items_per_page,
        )
