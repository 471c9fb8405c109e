"""
Catalog Importer

Upserts a nested catalog document into the relational store:
categories -> subcategories -> products -> images / variants.

Two tiers of failure:
- Row-level: the store rejects one upsert or a product field cannot be
  parsed. The failure is recorded in the report and traversal continues.
  A failed category or subcategory skips its subtree; a failed product
  skips only its own images and variants.
- Fatal: anything escaping the traversal (malformed document, lost store
  connection). Caught once, reported as success=False.

Every write is keyed by a natural key, so re-running the same document
converges to the same rows. The synthesized product placeholders are
insert-only and survive re-runs unchanged.
"""

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import structlog
from pydantic import BaseModel, Field, computed_field

from catalog_importer.config import Settings, get_settings
from catalog_importer.database.models import (
    DEFAULT_CATEGORY_COLOR,
    Category,
    Product,
    ProductImage,
    ProductVariant,
    Subcategory,
    VariantType,
)
from catalog_importer.ingestion.documents import (
    CatalogDocument,
    CategoryRecord,
    ProductRecord,
    SubcategoryRecord,
    load_catalog_document,
    parse_catalog_document,
)
from catalog_importer.ingestion.store import DryRunStore, UpsertStore
from catalog_importer.ingestion.transforms import (
    FieldParseError,
    PlaceholderGenerator,
    is_variant_scalar,
    parse_discount,
    parse_price,
    parse_rating,
    variant_value,
)

logger = structlog.get_logger(__name__)

PLACEHOLDER_COLUMNS = ("is_featured", "stock_quantity")

# Variant family tag -> ProductRecord attribute, in import order
VARIANT_FAMILIES = (
    (VariantType.WEIGHT, "weight"),
    (VariantType.RAM, "ram"),
    (VariantType.SIZE, "size"),
)

ENTITIES = ("category", "subcategory", "product", "product_image", "product_variant")


class ImportStatus(str, Enum):
    """Catalog import status"""
    RUNNING = "running"
    COMPLETED = "completed"
    PARTIAL = "partial"
    FAILED = "failed"


class RowError(BaseModel):
    """A single row the importer could not write"""
    entity: str
    natural_key: Dict[str, Any]
    message: str


class ImportReport(BaseModel):
    """Result of a catalog import run"""
    success: bool = False
    status: ImportStatus = ImportStatus.RUNNING
    dry_run: bool = False
    rows_written: Dict[str, int] = Field(default_factory=lambda: {entity: 0 for entity in ENTITIES})
    errors: List[RowError] = Field(default_factory=list)
    error_message: Optional[str] = None
    started_at: datetime = Field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None
    duration_seconds: float = 0

    @computed_field
    @property
    def failed_rows(self) -> int:
        """Number of row-level failures"""
        return len(self.errors)

    def finish(self) -> "ImportReport":
        self.completed_at = datetime.utcnow()
        self.duration_seconds = (self.completed_at - self.started_at).total_seconds()
        return self

    @classmethod
    def failed(cls, message: str, **kwargs) -> "ImportReport":
        """A report for a run that never reached the traversal"""
        report = cls(status=ImportStatus.FAILED, error_message=message, **kwargs)
        return report.finish()


class CatalogImporter:
    """
    Depth-first catalog importer.

    Example:
        importer = CatalogImporter(CatalogStore(session_factory))
        report = await importer.run(document)
        if report.success and report.failed_rows == 0:
            ...
    """

    def __init__(
        self,
        store: UpsertStore,
        placeholders: Optional[PlaceholderGenerator] = None,
        category_color: str = DEFAULT_CATEGORY_COLOR,
    ):
        self.store = store
        self.placeholders = placeholders or PlaceholderGenerator()
        self.category_color = category_color

    async def run(self, document: Union[CatalogDocument, Mapping[str, Any]]) -> ImportReport:
        """
        Import a whole catalog document.

        Args:
            document: Parsed document, or the decoded JSON object

        Returns:
            ImportReport: success is False only for a fatal error
        """
        report = ImportReport(dry_run=isinstance(self.store, DryRunStore))

        try:
            if not isinstance(document, CatalogDocument):
                document = parse_catalog_document(document)

            logger.info(
                "Starting catalog import",
                categories=len(document.categories),
                products=document.product_count,
                dry_run=report.dry_run,
            )

            for category in document.categories:
                await self._import_category(category, report)

            report.success = True
            report.status = ImportStatus.PARTIAL if report.errors else ImportStatus.COMPLETED
        except Exception as e:
            report.success = False
            report.status = ImportStatus.FAILED
            report.error_message = str(e) or type(e).__name__
            logger.error("Catalog import failed", error=report.error_message, exc_info=True)

        report.finish()
        logger.info(
            "Catalog import finished",
            status=report.status.value,
            rows_written=report.rows_written,
            failed_rows=report.failed_rows,
            duration_seconds=round(report.duration_seconds, 3),
        )
        return report

    def _record_failure(
        self,
        report: ImportReport,
        entity: str,
        natural_key: Dict[str, Any],
        message: Optional[str],
    ) -> None:
        message = message or "unknown error"
        report.errors.append(RowError(entity=entity, natural_key=natural_key, message=message))
        logger.warning(
            "Row import failed",
            entity=entity,
            natural_key=natural_key,
            error=message,
        )

    async def _import_category(self, category: CategoryRecord, report: ImportReport) -> None:
        natural_key = {"name": category.name}
        result = await self.store.upsert(
            Category,
            {"name": category.name, "image": category.image, "color": self.category_color},
            conflict_keys=["name"],
        )
        if not result.ok:
            # Subtree skipped: there is no parent id to hang it from
            self._record_failure(report, "category", natural_key, result.error)
            return

        report.rows_written["category"] += 1
        logger.info("Category imported", name=category.name, category_id=result.id)

        for subcategory in category.subcategories:
            await self._import_subcategory(subcategory, result.id, report)

    async def _import_subcategory(
        self,
        subcategory: SubcategoryRecord,
        category_id: Any,
        report: ImportReport,
    ) -> None:
        natural_key = {"category_id": category_id, "name": subcategory.name}
        result = await self.store.upsert(
            Subcategory,
            {"category_id": category_id, "name": subcategory.name},
            conflict_keys=["category_id", "name"],
        )
        if not result.ok:
            self._record_failure(report, "subcategory", natural_key, result.error)
            return

        report.rows_written["subcategory"] += 1
        logger.info("Subcategory imported", name=subcategory.name, subcategory_id=result.id)

        for product in subcategory.products:
            await self._import_product(product, result.id, report)

    def _product_row(self, product: ProductRecord, subcategory_id: Any) -> Dict[str, Any]:
        """Map a source product to a products row; raises FieldParseError"""
        return {
            "product_id": product.id,
            "subcategory_id": subcategory_id,
            "product_name": product.product_name,
            "cat_img": product.cat_img,
            "description": product.description,
            "brand": product.brand,
            "price": parse_price(product.price, "price"),
            "old_price": parse_price(product.old_price, "old_price"),
            "discount": parse_discount(product.discount),
            "rating": parse_rating(product.rating),
            "type": product.type,
            "is_featured": self.placeholders.is_featured(),
            "stock_quantity": self.placeholders.stock_quantity(),
        }

    async def _import_product(
        self,
        product: ProductRecord,
        subcategory_id: Any,
        report: ImportReport,
    ) -> None:
        natural_key = {"product_id": product.id}
        try:
            row = self._product_row(product, subcategory_id)
        except FieldParseError as e:
            self._record_failure(report, "product", natural_key, str(e))
            return

        result = await self.store.upsert(
            Product,
            row,
            conflict_keys=["product_id"],
            insert_only=PLACEHOLDER_COLUMNS,
        )
        if not result.ok:
            self._record_failure(report, "product", natural_key, result.error)
            return

        report.rows_written["product"] += 1
        logger.debug("Product imported", product_id=product.id, id=result.id)

        await self._import_images(product, result.id, report)
        await self._import_variants(product, result.id, report)

    async def _import_images(self, product: ProductRecord, product_pk: Any, report: ImportReport) -> None:
        for index, image_url in enumerate(product.images or []):
            sort_order = index + 1
            natural_key = {"product_id": product_pk, "sort_order": sort_order}
            if not isinstance(image_url, str):
                self._record_failure(
                    report, "product_image", natural_key, f"image entry is not a URL: {image_url!r}"
                )
                continue

            result = await self.store.upsert(
                ProductImage,
                {
                    "product_id": product_pk,
                    "image_url": image_url,
                    "is_primary": index == 0,
                    "sort_order": sort_order,
                },
                conflict_keys=["product_id", "sort_order"],
            )
            if result.ok:
                report.rows_written["product_image"] += 1
            else:
                self._record_failure(report, "product_image", natural_key, result.error)

    async def _import_variants(self, product: ProductRecord, product_pk: Any, report: ImportReport) -> None:
        for family, attribute in VARIANT_FAMILIES:
            for value in getattr(product, attribute) or []:
                if not is_variant_scalar(value):
                    self._record_failure(
                        report,
                        "product_variant",
                        {"product_id": product_pk, "variant_type": family.value, "variant_value": value},
                        f"variant value is not a scalar: {value!r}",
                    )
                    continue

                record = {
                    "product_id": product_pk,
                    "variant_type": family.value,
                    "variant_value": variant_value(value),
                }
                result = await self.store.upsert(
                    ProductVariant,
                    record,
                    conflict_keys=["product_id", "variant_type", "variant_value"],
                )
                if result.ok:
                    report.rows_written["product_variant"] += 1
                else:
                    self._record_failure(report, "product_variant", record, result.error)


def create_importer(store: UpsertStore, settings: Optional[Settings] = None) -> CatalogImporter:
    """Create an importer configured from settings"""
    settings = settings or get_settings()
    options = settings.importer
    return CatalogImporter(
        store,
        placeholders=PlaceholderGenerator(
            featured_probability=options.featured_probability,
            stock_min=options.stock_min,
            stock_max=options.stock_max,
            seed=options.random_seed,
        ),
        category_color=options.category_color,
    )


async def import_catalog(
    document: Union[CatalogDocument, Mapping[str, Any]],
    store: UpsertStore,
    settings: Optional[Settings] = None,
) -> ImportReport:
    """Import an in-memory document with a settings-configured importer"""
    return await create_importer(store, settings).run(document)


async def import_catalog_file(
    path: Union[str, Path],
    store: UpsertStore,
    settings: Optional[Settings] = None,
) -> ImportReport:
    """
    Load a catalog document from disk and import it.

    An unreadable or malformed file is a fatal failure: it is reported,
    not raised.
    """
    try:
        document = load_catalog_document(path)
    except (OSError, ValueError) as e:
        logger.error("Catalog document could not be loaded", path=str(path), error=str(e))
        return ImportReport.failed(str(e), dry_run=isinstance(store, DryRunStore))

    return await import_catalog(document, store, settings)
