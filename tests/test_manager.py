"""Tests for DataTableManager."""

from dataclasses import dataclass
from typing import Optional
from unittest.mock import Mock

import pytest
from fastapi import HTTPException
from fastapi_datatable.config import DataTableConfig
from fastapi_datatable.manager import DataTableManager
from fastapi_datatable.models import ColumnType, DataTableSort, FilterType
from pydantic import BaseModel

PREFIX = "filter_panel_"


@dataclass
class Record:
    id: int
    active: bool
    name: str = ""


class RecordFilter(BaseModel):
    active: Optional[bool] = None
    name: Optional[str] = None


def make_records():
    return [
        Record(1, True, "e"),
        Record(2, False, "d"),
        Record(3, True, "c"),
        Record(4, False, "b"),
        Record(5, True, "a"),
    ]


def ids(records):
    return [r.id for r in records]


@pytest.fixture
def manager():
    m = DataTableManager("/records", "/records", default_items_per_page=2)
    m.add_column("record.id", "id", sortable=True)
    m.add_column("record.name", "name", sortable=True)
    m.add_filter(FilterType.BOOLEAN, "active", "record.active")
    return m


class TestSetup:
    def test_column_helpers(self):
        m = DataTableManager("/r", "/r")
        (
            m.add_column("t.name", "name", True)
            .add_label_column("t.status", "status")
            .add_boolean_column("t.active", "active", "yes", "no")
            .add_email_column("t.email", "email", True)
            .add_free_column("t.preview", "previewMacro")
            .add_action_column("t.actions")
        )
        types = [c.column_type for c in m.columns]
        assert types == [
            ColumnType.STRING,
            ColumnType.LABEL,
            ColumnType.BOOLEAN,
            ColumnType.EMAIL,
            ColumnType.ACTION,
            ColumnType.ACTION,
        ]
        assert m.columns[2].label_true == "yes"
        assert m.columns[4].parameter_name == "previewMacro"
        assert m.columns[5].parameter_name is None
        assert m.sortable_attributes == ["name", "email"]

    def test_filter_helpers(self):
        m = DataTableManager("/r", "/filter")
        m.add_filter(FilterType.STRING, "name", "Name")
        m.add_dropdown_list_filter("role", "Role", [("a", "Admin")])
        assert [f.parameter_name for f in m.filter_panel] == ["name", "role"]
        assert m.filter_panel.filter_url == "/filter"

    def test_filter_panel_prefix(self):
        assert DataTableManager("/r", "/r").filter_panel_prefix == "filter_panel_"
        config = DataTableConfig(filter_prefix="fp_")
        assert DataTableManager("/r", "/r", config=config).filter_panel_prefix == "fp_"

    def test_default_items_per_page_from_config(self):
        m = DataTableManager("/r", "/r", config=DataTableConfig(default_items_per_page=7))
        assert m.default_items_per_page == 7

    def test_items_empty_before_any_call(self, manager):
        assert manager.items == []
        assert manager.paginator is None


class TestFilterSortAndPaginate:
    def test_end_to_end_pages(self, manager):
        records = make_records()
        params = {f"{PREFIX}updateFilters": "true", f"{PREFIX}active": "true", "page_index": "1"}
        manager.filter_sort_and_paginate(params, records)
        assert ids(manager.items) == [1, 3]

        manager.filter_sort_and_paginate({"page_index": "2"}, records)
        assert ids(manager.items) == [5]
        assert manager.paginator.total_items == 3

    def test_pagination_defaults(self):
        m = DataTableManager("/r", "/r", default_items_per_page=3)
        m.filter_sort_and_paginate({}, list(range(10)))
        assert m.items == [0, 1, 2]
        assert m.paginator.current_page == 1

    def test_page_state_persists(self, manager):
        records = make_records()
        manager.filter_sort_and_paginate({"page_index": "2", "items_per_page": "1"}, records)
        manager.filter_sort_and_paginate({}, records)
        assert ids(manager.items) == [2]
        assert manager.state.current_page_index == "2"
        assert manager.state.items_per_page == 1

    def test_sort_then_paginate(self, manager):
        params = {"sorted_attribute_name": "name", "asc_sort": "true"}
        manager.filter_sort_and_paginate(params, make_records())
        assert ids(manager.items) == [5, 4]

    def test_sort_state_persists_and_toggles(self, manager):
        records = make_records()
        manager.filter_sort_and_paginate(
            {"sorted_attribute_name": "name", "asc_sort": "true"}, records
        )
        manager.filter_sort_and_paginate({}, records)
        assert ids(manager.items) == [5, 4]
        manager.filter_sort_and_paginate({"sorted_attribute_name": "name"}, records)
        assert ids(manager.items) == [1, 2]
        assert manager.sort == DataTableSort(attribute_name="name", ascending=False)

    def test_filter_applies_before_pagination(self, manager):
        records = make_records()
        params = {
            f"{PREFIX}updateFilters": "true",
            "sorted_attribute_name": "id",
            "items_per_page": "10",
        }
        manager.filter_sort_and_paginate(params, records)
        # No checkbox sent: the boolean filter resolves to "false"
        assert ids(manager.items) == [4, 2]

    def test_reset_shows_everything(self, manager):
        records = make_records()
        manager.filter_sort_and_paginate(
            {f"{PREFIX}updateFilters": "true", f"{PREFIX}active": "true"}, records
        )
        manager.filter_sort_and_paginate(
            {f"{PREFIX}resetFilters": "true", "items_per_page": "10"}, records
        )
        assert ids(manager.items) == [1, 2, 3, 4, 5]

    def test_input_not_mutated(self, manager):
        records = make_records()
        manager.filter_sort_and_paginate({"sorted_attribute_name": "name"}, records)
        assert ids(records) == [1, 2, 3, 4, 5]

    def test_paginator_disabled_exposes_everything(self):
        m = DataTableManager("/r", "/r", default_items_per_page=2, enable_paginator=False)
        m.filter_sort_and_paginate({"page_index": "2"}, make_records())
        assert ids(m.items) == [1, 2, 3, 4, 5]
        assert m.paginator is None

    def test_request_object(self, manager):
        request = Mock()
        request.query_params = {"sorted_attribute_name": "id", "asc_sort": "false"}
        manager.filter_sort_and_paginate(request, make_records())
        assert ids(manager.items) == [5, 4]

    def test_strict_mode_rejects_unsortable_column(self):
        m = DataTableManager("/r", "/r", config=DataTableConfig(strict_mode=True))
        m.add_column("record.name", "name", sortable=False)
        with pytest.raises(HTTPException) as exc_info:
            m.filter_sort_and_paginate({"sorted_attribute_name": "name"}, make_records())
        assert exc_info.value.status_code == 400

    def test_clear_items(self, manager):
        manager.filter_sort_and_paginate(
            {f"{PREFIX}updateFilters": "true", f"{PREFIX}active": "true"}, make_records()
        )
        manager.clear_items()
        assert manager.items == []
        assert manager.paginator is None
        assert manager.filter_panel.get_filter("active").value == "true"


class TestDelegatedState:
    def test_update_pagination_state(self, manager):
        props = manager.update_pagination_state({"page_index": "3", "items_per_page": "5"})
        assert props.current_page_index == 3
        assert props.items_per_page == 5
        assert props.offset == 10

    def test_update_pagination_state_defaults(self, manager):
        props = manager.update_pagination_state({})
        assert props.current_page_index == 1
        assert props.items_per_page == 2

    def test_update_pagination_state_disabled(self):
        m = DataTableManager("/r", "/r", enable_paginator=False)
        assert m.update_pagination_state({"page_index": "3"}) is None

    def test_update_sort_state(self, manager):
        sort = manager.update_sort_state({"sorted_attribute_name": "id", "asc_sort": "true"})
        assert sort == DataTableSort(attribute_name="id", ascending=True)
        assert manager.update_sort_state({}) == sort

    def test_update_sort_state_returns_copy(self, manager):
        sort = manager.update_sort_state({"sorted_attribute_name": "id"})
        sort.attribute_name = "name"
        assert manager.sort.attribute_name == "id"

    def test_update_filter_state_binds_values(self, manager):
        manager.add_filter(FilterType.STRING, "name", "record.name")
        params = {
            f"{PREFIX}updateFilters": "true",
            f"{PREFIX}active": "true",
            f"{PREFIX}name": "abc",
        }
        target = RecordFilter()
        result = manager.update_filter_state(params, target)
        assert result is target
        assert target.active is True
        assert target.name == "abc"

    def test_update_filter_state_skips_blank(self, manager):
        manager.add_filter(FilterType.STRING, "name", "record.name")
        params = {f"{PREFIX}updateFilters": "true", f"{PREFIX}name": " "}
        target = manager.update_filter_state(params, RecordFilter())
        assert target.name is None
        assert target.active is False

    def test_update_filter_state_persists(self, manager):
        manager.update_filter_state(
            {f"{PREFIX}updateFilters": "true", f"{PREFIX}active": "true"}, RecordFilter()
        )
        target = manager.update_filter_state({f"{PREFIX}active": "false"}, RecordFilter())
        assert target.active is True

    def test_update_filter_state_binding_failure(self, manager, caplog):
        class Strict(BaseModel):
            active: Optional[int] = None

        params = {f"{PREFIX}updateFilters": "true", f"{PREFIX}active": "true"}
        assert manager.update_filter_state(params, Strict()) is None
        assert "Could not bind filter values" in caplog.text

    def test_update_filter_state_unsupported_field_type(self, manager, caplog):
        class Owner:
            pass

        @dataclass
        class OwnerFilter:
            owner: Optional[Owner] = None

        manager.add_filter(FilterType.STRING, "owner", "record.owner")
        params = {f"{PREFIX}updateFilters": "true", f"{PREFIX}owner": "x"}
        assert manager.update_filter_state(params, OwnerFilter()) is None
        assert "Could not bind filter values" in caplog.text

    def test_set_items(self, manager):
        manager.update_pagination_state({"page_index": "2", "items_per_page": "2"})
        page = [Record(3, True), Record(4, False)]
        manager.set_items(page, 9)
        assert manager.items == page
        assert manager.paginator.total_items == 9
        assert manager.paginator.current_page == 2
        assert manager.paginator.page_count == 5

    def test_set_items_paginator_disabled(self):
        m = DataTableManager("/r", "/r", enable_paginator=False)
        m.set_items([1, 2, 3], 3)
        assert m.items == [1, 2, 3]
        assert m.paginator is None


class TestBuildResponse:
    def test_paginated_response(self, manager):
        manager.filter_sort_and_paginate(
            {"sorted_attribute_name": "id", "asc_sort": "true", "page_index": "2"},
            make_records(),
        )
        response = manager.build_response()
        assert ids(response.data) == [3, 4]
        assert response.meta.pagination.total_items == 5
        assert response.meta.pagination.total_pages == 3
        assert response.meta.sort == DataTableSort(attribute_name="id", ascending=True)
        assert [f.parameter_name for f in response.meta.filters] == ["active"]
        assert response.links.prev == "/records?page_index=1&items_per_page=2"
        assert response.links.next == "/records?page_index=3&items_per_page=2"

    def test_unpaginated_response(self):
        m = DataTableManager("/r", "/r", enable_paginator=False)
        m.filter_sort_and_paginate({}, [1, 2])
        response = m.build_response()
        assert response.data == [1, 2]
        assert response.meta.pagination is None
        assert response.meta.sort is None
        assert response.links is None
