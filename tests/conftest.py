"""
Test Suite Configuration
"""
import copy
import json
from pathlib import Path
from typing import Any, AsyncGenerator, Dict

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from catalog_importer.config.settings import (
    DatabaseSettings,
    ImportSettings,
    MonitoringSettings,
    Settings,
)
from catalog_importer.database.connection import create_schema, create_session_factory
from catalog_importer.ingestion.store import CatalogStore


SAMPLE_DOCUMENT: Dict[str, Any] = {
    "productData": [
        {
            "cat_name": "Groceries",
            "image": "https://cdn.example.com/cat/groceries.png",
            "items": [
                {
                    "cat_name": "Snacks",
                    "products": [
                        {
                            "id": 101,
                            "productName": "Roasted Almonds",
                            "catImg": "https://cdn.example.com/p/101.png",
                            "description": "Salted roasted almonds",
                            "brand": "NutCo",
                            "price": "1,299",
                            "oldPrice": "1,499",
                            "discount": 13,
                            "rating": "4.5",
                            "type": "Nuts",
                            "productImages": [
                                "https://cdn.example.com/p/101-1.png",
                                "https://cdn.example.com/p/101-2.png",
                                "https://cdn.example.com/p/101-3.png",
                            ],
                            "weight": [250, 500],
                            "RAM": [4, 8],
                        },
                        {
                            "id": 102,
                            "productName": "Broken Price Chips",
                            "catImg": "https://cdn.example.com/p/102.png",
                            "description": "Price did not survive the export",
                            "brand": "CrunchCo",
                            "price": "abc",
                            "oldPrice": "20",
                            "rating": 3,
                            "type": "Chips",
                            "productImages": ["https://cdn.example.com/p/102-1.png"],
                            "SIZE": ["S", "M"],
                        },
                    ],
                }
            ],
        }
    ]
}


@pytest.fixture
def sample_document() -> Dict[str, Any]:
    """Raw catalog: 1 category, 1 subcategory, 1 valid and 1 malformed product"""
    return copy.deepcopy(SAMPLE_DOCUMENT)


@pytest.fixture
def sample_document_path(tmp_path: Path, sample_document: Dict[str, Any]) -> Path:
    """Sample catalog written to disk"""
    path = tmp_path / "db.json"
    path.write_text(json.dumps(sample_document), encoding="utf-8")
    return path


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}"


@pytest.fixture
def test_settings(database_url: str, sample_document_path: Path) -> Settings:
    """Create test settings"""
    return Settings(
        app_env="testing",
        debug=True,
        database=DatabaseSettings(url=database_url),
        importer=ImportSettings(source_path=str(sample_document_path), random_seed=7),
        monitoring=MonitoringSettings(log_level="WARNING", log_format="text"),
    )


@pytest.fixture
async def test_engine(database_url: str) -> AsyncGenerator[AsyncEngine, None]:
    """SQLite database with the catalog schema"""
    engine = create_async_engine(database_url, echo=False)
    await create_schema(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(test_engine)


@pytest.fixture
def store(session_factory: async_sessionmaker[AsyncSession]) -> CatalogStore:
    return CatalogStore(session_factory)
