"""Benchmark internal operations of fastapi-datatable to identify bottlenecks."""

import time
from dataclasses import dataclass
from datetime import datetime, timedelta

from fastapi_datatable.accessors import read_attribute
from fastapi_datatable.filters import FilterEngine
from fastapi_datatable.manager import DataTableManager
from fastapi_datatable.models import DataTableFilter, DataTableSort, FilterType
from fastapi_datatable.sorting import SortEngine


@dataclass
class Hero:
    """Hero record for benchmarking."""

    id: int
    name: str
    age: int
    city: str
    created_at: datetime
    deleted: bool


class LegacyHero:
    """Hero exposing getter methods instead of attributes."""

    def __init__(self, hero: Hero):
        self._hero = hero

    def get_name(self):
        return self._hero.name

    def is_deleted(self):
        return self._hero.deleted


def time_function(func, iterations: int = 1000):
    """Time a function execution."""
    # Warmup
    for _ in range(10):
        func()

    timings = []
    for _ in range(iterations):
        start = time.perf_counter()
        func()
        end = time.perf_counter()
        timings.append(end - start)

    timings.sort()
    avg = sum(timings) / len(timings)
    p50 = timings[int(len(timings) * 0.5)]
    p95 = timings[int(len(timings) * 0.95)]
    return {"avg": avg * 1000, "p50": p50 * 1000, "p95": p95 * 1000}


def make_heroes(num_records: int = 1000):
    """Build in-memory test records."""
    cities = ["New York", "Los Angeles", "Chicago", "Houston", "Phoenix"]
    base_time = datetime.now()
    return [
        Hero(
            id=i,
            name=f"Hero_{i}",
            age=20 + (i % 60),
            city=cities[i % len(cities)],
            created_at=base_time - timedelta(days=i % 365),
            deleted=i % 10 == 0,
        )
        for i in range(num_records)
    ]


def report(tests, iterations):
    for name, func in tests.items():
        result = time_function(func, iterations=iterations)
        print(
            f"  {name:30s} - Avg: {result['avg']:6.3f}ms, "
            f"P50: {result['p50']:6.3f}ms, P95: {result['p95']:6.3f}ms"
        )


def benchmark_read_attribute():
    """Benchmark read_attribute on attribute and getter records."""
    print("\n=== Benchmark: read_attribute ===")

    hero = make_heroes(1)[0]
    legacy = LegacyHero(hero)
    tests = {
        "Dataclass field": lambda: read_attribute(hero, "name"),
        "Getter method": lambda: read_attribute(legacy, "name"),
        "Boolean fallback": lambda: read_attribute(legacy, "deleted", True),
        "Missing attribute": lambda: read_attribute(hero, "missing"),
    }
    report(tests, 10000)


def benchmark_filter_items():
    """Benchmark FilterEngine.filter_items with 1, 2 and 3 filters."""
    print("\n=== Benchmark: filter_items (1000 records) ===")

    heroes = make_heroes(1000)
    engine = FilterEngine()
    city = DataTableFilter(parameter_name="city", value="Chicago")
    deleted = DataTableFilter(
        parameter_name="deleted", filter_type=FilterType.BOOLEAN, value="false"
    )
    age = DataTableFilter(parameter_name="age", value="42")

    tests = {
        "1 filter": lambda: engine.filter_items(heroes, [city]),
        "2 filters": lambda: engine.filter_items(heroes, [city, deleted]),
        "3 filters": lambda: engine.filter_items(heroes, [city, deleted, age]),
    }
    report(tests, 100)


def benchmark_apply_sort():
    """Benchmark SortEngine.apply_sort."""
    print("\n=== Benchmark: apply_sort (1000 records) ===")

    heroes = make_heroes(1000)
    engine = SortEngine()
    tests = {
        "Sort by name ASC": lambda: engine.apply_sort(
            heroes, DataTableSort(attribute_name="name", ascending=True)
        ),
        "Sort by age DESC": lambda: engine.apply_sort(
            heroes, DataTableSort(attribute_name="age", ascending=False)
        ),
        "Sort by date ASC": lambda: engine.apply_sort(
            heroes, DataTableSort(attribute_name="created_at", ascending=True)
        ),
    }
    report(tests, 100)


def benchmark_pipeline():
    """Benchmark the full filter_sort_and_paginate pipeline."""
    print("\n=== Benchmark: filter_sort_and_paginate ===")

    for num_records in [100, 1000, 10000]:
        print(f"\n  Records: {num_records}")
        heroes = make_heroes(num_records)
        manager = DataTableManager("/heroes", "/heroes", default_items_per_page=20)
        manager.add_column("hero.name", "name", sortable=True)
        manager.add_filter(FilterType.STRING, "city", "hero.city")
        manager.add_filter(FilterType.BOOLEAN, "deleted", "hero.deleted")

        simple = {"page_index": "1"}
        complex_params = {
            "filter_panel_updateFilters": "true",
            "filter_panel_city": "Chicago",
            "sorted_attribute_name": "name",
            "asc_sort": "true",
            "page_index": "2",
        }

        tests = {
            "Simple (no filters/sort)": lambda: manager.filter_sort_and_paginate(
                {"filter_panel_resetFilters": "true", **simple}, heroes
            ),
            "Complex (filters + sort)": lambda: manager.filter_sort_and_paginate(
                complex_params, heroes
            ),
        }
        report(tests, 20)


def main():
    """Run all internal benchmarks."""
    print("=" * 80)
    print("FASTAPI-DATATABLE INTERNAL BENCHMARKS")
    print("=" * 80)

    benchmark_read_attribute()
    benchmark_filter_items()
    benchmark_apply_sort()
    benchmark_pipeline()

    print("\n" + "=" * 80)
    print("BENCHMARKS COMPLETE")
    print("=" * 80)


if __name__ == "__main__":
    main()
