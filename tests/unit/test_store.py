"""
Unit Tests - Catalog Store
"""
from contextlib import asynccontextmanager
from types import SimpleNamespace

import pytest

from catalog_importer.database.models import Category, Subcategory
from catalog_importer.ingestion.store import CatalogStore, DryRunStore, StoreUnavailableError


class FakeSession:
    """Session whose connection reports the given dialect"""

    def __init__(self, dialect_name: str):
        self.dialect_name = dialect_name
        self.executed = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    @asynccontextmanager
    async def begin(self):
        yield

    async def connection(self):
        return SimpleNamespace(dialect=SimpleNamespace(name=self.dialect_name))

    async def execute(self, stmt):
        self.executed.append(stmt)
        raise AssertionError("no statement should run")


class TestCatalogStore:
    """Tests for CatalogStore without a database"""

    async def test_unsupported_dialect_is_fatal(self):
        """A dialect without ON CONFLICT support cannot accept writes"""
        session = FakeSession("mysql")
        store = CatalogStore(lambda: session)

        with pytest.raises(StoreUnavailableError, match="Upsert not supported for dialect: mysql"):
            await store.upsert(Category, {"name": "Fruits"}, ["name"])

        assert session.executed == []


class TestDryRunStore:
    """Tests for DryRunStore"""

    async def test_ids_stable_per_natural_key(self):
        """The same natural key gets the same synthetic id"""
        store = DryRunStore()

        first = await store.upsert(Category, {"name": "Fruits"}, ["name"])
        again = await store.upsert(Category, {"name": "Fruits", "image": "x.png"}, ["name"])
        other = await store.upsert(Category, {"name": "Pets"}, ["name"])

        assert first.id == again.id == 1
        assert other.id == 2
        assert store.count("categories") == 2

    async def test_ids_are_per_table(self):
        """Each table numbers its rows independently"""
        store = DryRunStore()

        await store.upsert(Category, {"name": "Fruits"}, ["name"])
        result = await store.upsert(Subcategory, {"category_id": 1, "name": "Apples"}, ["category_id", "name"])

        assert result.id == 1
        assert result.row["name"] == "Apples"
        assert store.count("subcategories") == 1
