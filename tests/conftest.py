"""Shared fixtures: an in-memory Supabase stand-in and sample catalog data."""

import os
import re
from pathlib import Path
from typing import Any, Callable

import pytest

os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-key")
os.environ.setdefault("OPENAI_API_KEY", "")

from partfinder.config import DEFAULT_STATIC_CATALOG  # noqa: E402
from partfinder.core.enums import PartCategory  # noqa: E402
from partfinder.models.vehicle import Part, Vehicle  # noqa: E402
from partfinder.services.catalog import CatalogRepository  # noqa: E402
from partfinder.services.catalog_cache import CatalogCache  # noqa: E402

# ---------------------------------------------------------------------------
# Fake Supabase client
# ---------------------------------------------------------------------------


def _like_to_regex(pattern: str) -> "re.Pattern[str]":
    """Translate a SQL LIKE pattern (backslash escapes) to a case-insensitive regex."""
    out: list[str] = []
    chars = iter(pattern)
    for c in chars:
        if c == "\\":
            out.append(re.escape(next(chars, "\\")))
        elif c == "%":
            out.append(".*")
        elif c == "_":
            out.append(".")
        else:
            out.append(re.escape(c))
    return re.compile("".join(out), re.IGNORECASE | re.DOTALL)


class FakeResult:
    def __init__(self, data: list[dict[str, Any]]) -> None:
        self.data = data


class FakeQuery:
    """Subset of the postgrest query builder used by the repositories."""

    def __init__(self, db: "FakeSupabase", table: str) -> None:
        self.db = db
        self.table_name = table
        self.op = "select"
        self.payload: Any = None
        self.on_conflict: str | None = None
        self.filters: list[Callable[[dict[str, Any]], bool]] = []
        self.row_limit: int | None = None

    def select(self, *_columns: str) -> "FakeQuery":
        self.op = "select"
        return self

    def insert(self, payload: Any) -> "FakeQuery":
        self.op = "insert"
        self.payload = payload
        return self

    def upsert(self, payload: Any, on_conflict: str = "") -> "FakeQuery":
        self.op = "upsert"
        self.payload = payload
        self.on_conflict = on_conflict or None
        return self

    def delete(self) -> "FakeQuery":
        self.op = "delete"
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def ilike(self, column: str, pattern: str) -> "FakeQuery":
        regex = _like_to_regex(pattern)
        self.filters.append(
            lambda row: isinstance(row.get(column), str) and regex.fullmatch(row[column]) is not None
        )
        return self

    def limit(self, count: int) -> "FakeQuery":
        self.row_limit = count
        return self

    def _matches(self, row: dict[str, Any]) -> bool:
        return all(matches(row) for matches in self.filters)

    def execute(self) -> FakeResult:
        self.db.calls.append((self.table_name, self.op))
        if self.table_name in self.db.failing_tables:
            raise ConnectionError(f"{self.table_name} unavailable")

        rows = self.db.tables.setdefault(self.table_name, [])
        if self.op == "select":
            found = [dict(r) for r in rows if self._matches(r)]
            if self.row_limit is not None:
                found = found[: self.row_limit]
            return FakeResult(found)
        if self.op == "insert":
            new_rows = self.payload if isinstance(self.payload, list) else [self.payload]
            rows.extend(dict(r) for r in new_rows)
            return FakeResult([dict(r) for r in new_rows])
        if self.op == "upsert":
            keys = (self.on_conflict or "id").split(",")
            new_rows = self.payload if isinstance(self.payload, list) else [self.payload]
            for new in new_rows:
                for i, existing in enumerate(rows):
                    if all(existing.get(k) == new.get(k) for k in keys):
                        rows[i] = {**existing, **new}
                        break
                else:
                    rows.append(dict(new))
            return FakeResult([dict(r) for r in new_rows])
        if self.op == "delete":
            removed = [r for r in rows if self._matches(r)]
            self.db.tables[self.table_name] = [r for r in rows if not self._matches(r)]
            return FakeResult(removed)
        raise AssertionError(f"unsupported op {self.op}")


class FakeSupabase:
    def __init__(self, tables: dict[str, list[dict[str, Any]]] | None = None) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = tables or {}
        self.failing_tables: set[str] = set()
        self.calls: list[tuple[str, str]] = []

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def make_part(name: str, category: PartCategory = PartCategory.ENGINE, price: float = 10.0) -> Part:
    return Part(name=name, category=category, price=price, in_stock=True)


def make_vehicle(
    make: str, model: str, year: int, parts: list[Part], vehicle_id: int = 0
) -> Vehicle:
    return Vehicle(
        id=vehicle_id or year,
        make=make,
        model=model,
        year=year,
        image_key=f"{make.lower()}_{model.lower()}",
        parts=parts,
    )


@pytest.fixture
def fake_db() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def static_catalog_path() -> Path:
    return DEFAULT_STATIC_CATALOG


@pytest.fixture
def catalog_repo(fake_db: FakeSupabase, static_catalog_path: Path) -> CatalogRepository:
    return CatalogRepository(fake_db, static_catalog_path, CatalogCache(ttl=60))  # type: ignore[arg-type]
