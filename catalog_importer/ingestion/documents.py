"""
Catalog Source Document

Pydantic models for the nested JSON catalog the importer reads:
productData -> categories -> items (subcategories) -> products.

Structure is validated strictly (a missing productData or product id is a
structural error), scalar product fields and list entries are kept loose so
that an unparseable price or a null image stays a problem of that one row.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field

logger = structlog.get_logger(__name__)


class _SourceModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )


class ProductRecord(_SourceModel):
    """A product as it appears in the source catalog"""
    id: int
    product_name: Optional[str] = Field(default=None, alias="productName")
    cat_img: Optional[str] = Field(default=None, alias="catImg")
    description: Optional[str] = None
    brand: Optional[str] = None
    price: Any = None
    old_price: Any = Field(default=None, alias="oldPrice")
    discount: Any = None
    rating: Any = None
    type: Optional[str] = None

    # Optional lists; absent or empty means "nothing to import"
    images: Optional[List[Any]] = Field(default=None, alias="productImages")
    weight: Optional[List[Any]] = None
    ram: Optional[List[Any]] = Field(default=None, alias="RAM")
    size: Optional[List[Any]] = Field(default=None, alias="SIZE")


class SubcategoryRecord(_SourceModel):
    """A subcategory with its products"""
    name: Optional[str] = Field(default=None, alias="cat_name")
    products: List[ProductRecord] = Field(default_factory=list)


class CategoryRecord(_SourceModel):
    """A top-level category with its subcategories"""
    name: Optional[str] = Field(default=None, alias="cat_name")
    image: Optional[str] = None
    subcategories: List[SubcategoryRecord] = Field(default_factory=list, alias="items")


class CatalogDocument(_SourceModel):
    """The whole catalog document"""
    categories: List[CategoryRecord] = Field(alias="productData")

    @property
    def product_count(self) -> int:
        """Number of products across all subcategories"""
        return sum(
            len(sub.products)
            for category in self.categories
            for sub in category.subcategories
        )


def parse_catalog_document(data: Dict[str, Any]) -> CatalogDocument:
    """
    Validate an already-decoded JSON object as a catalog document.

    Raises:
        pydantic.ValidationError: If the structure does not match
    """
    return CatalogDocument.model_validate(data)


def load_catalog_document(path: Union[str, Path]) -> CatalogDocument:
    """
    Read and validate a catalog document from disk.

    Args:
        path: Location of the JSON file

    Returns:
        CatalogDocument: Parsed document

    Raises:
        FileNotFoundError: If the file does not exist
        json.JSONDecodeError: If the file is not valid JSON
        pydantic.ValidationError: If the structure does not match
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Catalog document not found: {path}")

    with open(path, "r", encoding="utf-8") as fh:
        data = json.load(fh)

    document = parse_catalog_document(data)
    logger.info(
        "Catalog document loaded",
        path=str(path),
        categories=len(document.categories),
        products=document.product_count,
    )
    return document
