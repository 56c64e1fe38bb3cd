"""End-to-end tests through a FastAPI application."""

from typing import List

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient
from fastapi_datatable import DataTableManager, FilterType, PaginatedResponse
from pydantic import BaseModel


class Product(BaseModel):
    id: int
    name: str
    category: str
    in_stock: bool


PRODUCTS: List[Product] = [
    Product(id=1, name="Desk", category="furniture", in_stock=True),
    Product(id=2, name="Lamp", category="lighting", in_stock=False),
    Product(id=3, name="Chair", category="furniture", in_stock=True),
    Product(id=4, name="Shelf", category="furniture", in_stock=False),
    Product(id=5, name="Bulb", category="lighting", in_stock=True),
    Product(id=6, name="Stool", category="furniture", in_stock=True),
]


@pytest.fixture(name="client")
def client_fixture():
    app = FastAPI()
    manager = DataTableManager("/products", "/products", default_items_per_page=2)
    manager.add_column("product.name", "name", sortable=True)
    manager.add_column("product.category", "category", sortable=True)
    manager.add_dropdown_list_filter(
        "category", "product.category", [("furniture", "Furniture"), ("lighting", "Lighting")]
    )
    manager.add_filter(FilterType.BOOLEAN, "in_stock", "product.in_stock")

    @app.get("/products", response_model=PaginatedResponse[Product])
    def list_products(request: Request):
        manager.filter_sort_and_paginate(request, PRODUCTS)
        return manager.build_response()

    return TestClient(app)


def names(response):
    return [p["name"] for p in response.json()["data"]]


def test_first_page_unfiltered(client):
    response = client.get("/products")
    assert response.status_code == 200
    body = response.json()
    assert names(response) == ["Desk", "Lamp"]
    assert body["meta"]["pagination"]["total_items"] == 6
    assert body["links"]["next"] == "/products?page_index=2&items_per_page=2"


def test_filter_sort_and_browse(client):
    response = client.get(
        "/products",
        params={
            "filter_panel_updateFilters": "true",
            "filter_panel_category": "furniture",
            "filter_panel_in_stock": "true",
            "sorted_attribute_name": "name",
            "asc_sort": "true",
        },
    )
    assert names(response) == ["Chair", "Desk"]
    assert response.json()["meta"]["sort"] == {"attribute_name": "name", "ascending": True}

    # Filters and sort are kept while browsing pages
    response = client.get("/products", params={"page_index": "2"})
    assert names(response) == ["Stool"]
    assert response.json()["meta"]["pagination"]["total_pages"] == 2


def test_reset_filters(client):
    client.get(
        "/products",
        params={"filter_panel_updateFilters": "true", "filter_panel_category": "lighting"},
    )
    response = client.get(
        "/products", params={"filter_panel_resetFilters": "true", "items_per_page": "10"}
    )
    assert len(response.json()["data"]) == 6
    filters = response.json()["meta"]["filters"]
    assert all(f["value"] is None for f in filters)
