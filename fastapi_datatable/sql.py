"""Apply data table state to SQLModel queries.

Used in delegated mode: the manager tracks filter, sort and pagination state
while the database filters, sorts and slices the rows.
"""

import logging
from datetime import datetime
from typing import Any, Mapping, Optional

from dateutil.parser import parse
from sqlalchemy import ColumnElement, Select, false, func
from sqlmodel import Session, select
from sqlmodel.ext.asyncio.session import AsyncSession

from fastapi_datatable.models import DataTablePaginationProperties, DataTableSort

logger = logging.getLogger(__name__)


def _coerce_value(column: ColumnElement[Any], raw: str) -> Any:
    """
    Coerce a raw filter value to the column's Python type.

    Args:
        column: SQLAlchemy column element
        raw: Raw string value

    Returns:
        Any: Coerced value, or raw when it cannot be coerced
    """
    try:
        pytype = getattr(column.type, "python_type", None)
    except NotImplementedError:
        pytype = None
    if pytype is None or isinstance(raw, pytype):
        return raw
    if pytype is bool:
        val = raw.strip().lower()
        if val in {"true", "1", "t", "yes", "y"}:
            return True
        if val in {"false", "0", "f", "no", "n"}:
            return False
        return raw
    if pytype is datetime:
        try:
            return datetime.fromisoformat(raw)
        except ValueError:
            try:
                return parse(raw)
            except ValueError:
                return raw
    try:
        return pytype(raw)
    except (TypeError, ValueError):
        return raw


def get_column(query: Select, name: str) -> Optional[ColumnElement[Any]]:
    """
    Resolve a selected column, or a column-like attribute of the query's entity.

    Args:
        query: SQLAlchemy Select query
        name: Column or attribute name

    Returns:
        Optional[ColumnElement]: The SQL expression, or None
    """
    column = query.selected_columns.get(name)
    if column is not None:
        return column

    descriptions = query.column_descriptions
    if not descriptions:
        return None
    entity = descriptions[0].get("entity")
    attr = getattr(entity, name, None) if entity is not None else None
    if isinstance(attr, ColumnElement):
        return attr
    if hasattr(attr, "__clause_element__"):
        return attr.__clause_element__()
    return None


def apply_filter_values(query: Select, values: Mapping[str, str]) -> Select:
    """
    Restrict a query to rows equal to every filter value.

    Args:
        query: Base SQLAlchemy Select query
        values: Non-blank filter values keyed by column name

    Returns:
        Select: Filtered query; a value for an unknown column matches no row
    """
    conditions = []
    for name, raw in values.items():
        column = get_column(query, name)
        if column is None:
            logger.warning(
                "Filter '%s' has no matching column; check the filter parameter name", name
            )
            conditions.append(false())
            continue
        conditions.append(column == _coerce_value(column, raw))
    if conditions:
        query = query.where(*conditions)
    return query


def apply_sort(query: Select, sort: Optional[DataTableSort]) -> Select:
    """
    Order a query by the sorted attribute.

    Args:
        query: SQLAlchemy Select query
        sort: Sort state

    Returns:
        Select: Ordered query; unchanged when no (known) attribute is set
    """
    if not sort or not sort.attribute_name:
        return query
    column = get_column(query, sort.attribute_name)
    if column is None:
        logger.warning("Sort attribute '%s' has no matching column", sort.attribute_name)
        return query
    return query.order_by(column.asc() if sort.ascending else column.desc())


def apply_pagination(
    query: Select, pagination: Optional[DataTablePaginationProperties]
) -> Select:
    """Slice a query to the current page; unchanged when pagination is disabled."""
    if pagination is None:
        return query
    return query.offset(pagination.offset).limit(pagination.items_per_page)


def count_total(query: Select, session: Session) -> int:
    """
    Count rows matching a query.

    Args:
        query: SQLAlchemy Select query with filters applied
        session: Database session

    Returns:
        int: Total count of rows
    """
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    return session.exec(count_query).one()


async def count_total_async(query: Select, session: AsyncSession) -> int:
    """Async version of count_total."""
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    result = await session.exec(count_query)
    return result.one()
