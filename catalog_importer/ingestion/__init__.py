"""
Catalog Ingestion Module
"""
from .documents import CatalogDocument, load_catalog_document, parse_catalog_document
from .importer import (
    CatalogImporter,
    ImportReport,
    ImportStatus,
    RowError,
    create_importer,
    import_catalog,
    import_catalog_file,
)
from .store import CatalogStore, DryRunStore, StoreUnavailableError, UpsertResult

__all__ = [
    "CatalogDocument",
    "load_catalog_document",
    "parse_catalog_document",
    "CatalogImporter",
    "ImportReport",
    "ImportStatus",
    "RowError",
    "create_importer",
    "import_catalog",
    "import_catalog_file",
    "CatalogStore",
    "DryRunStore",
    "StoreUnavailableError",
    "UpsertResult",
]
