"""
Catalog Accessors

Read/write helpers for the storefront over the imported catalog. Every
function takes the session factory explicitly. A failing query or an
unreachable store is logged and answered with the "no data" value
([] / None / False); callers never see the exception.
"""

from typing import List, Optional

import structlog
from pydantic import BaseModel
from sqlalchemy import and_, delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from catalog_importer.database.connection import session_scope
from catalog_importer.database.models import (
    CartItem,
    Category,
    Product,
    Review,
    Subcategory,
)
from catalog_importer.ingestion.store import CatalogStore, StoreUnavailableError

logger = structlog.get_logger(__name__)

SessionFactory = async_sessionmaker[AsyncSession]

# Anything meaning the store could not answer
ACCESS_ERRORS = (SQLAlchemyError, StoreUnavailableError, OSError)


class ProductFilters(BaseModel):
    """Optional product list filters"""
    subcategory_id: Optional[int] = None
    brand: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    rating: Optional[float] = None


async def get_categories(db: SessionFactory) -> List[Category]:
    """All categories with their subcategories, products, images and variants."""
    query = (
        select(Category)
        .options(
            selectinload(Category.subcategories)
            .selectinload(Subcategory.products)
            .options(
                selectinload(Product.images),
                selectinload(Product.variants),
            )
        )
        .order_by(Category.created_at, Category.id)
    )
    try:
        async with session_scope(db) as session:
            result = await session.execute(query)
            return list(result.scalars().all())
    except ACCESS_ERRORS as e:
        logger.error("Failed to fetch categories", error=str(e))
        return []


async def get_products(db: SessionFactory, filters: Optional[ProductFilters] = None) -> List[Product]:
    """
    Products with their subcategory and category, images and variants.

    The price range only applies when both bounds are given. Newest first.
    """
    filters = filters or ProductFilters()
    query = select(Product).options(
        selectinload(Product.subcategory).selectinload(Subcategory.category),
        selectinload(Product.images),
        selectinload(Product.variants),
    )

    conditions = []
    if filters.subcategory_id is not None:
        conditions.append(Product.subcategory_id == filters.subcategory_id)
    if filters.brand:
        conditions.append(Product.brand == filters.brand)
    if filters.min_price is not None and filters.max_price is not None:
        conditions.append(Product.price >= filters.min_price)
        conditions.append(Product.price <= filters.max_price)
    if filters.rating is not None:
        conditions.append(Product.rating >= filters.rating)

    if conditions:
        query = query.where(and_(*conditions))
    query = query.order_by(Product.created_at.desc(), Product.id.desc())

    try:
        async with session_scope(db) as session:
            result = await session.execute(query)
            return list(result.scalars().all())
    except ACCESS_ERRORS as e:
        logger.error("Failed to fetch products", error=str(e))
        return []


async def get_product_by_id(db: SessionFactory, product_id: int) -> Optional[Product]:
    """Single product by its catalog id, with reviews; None when absent."""
    query = (
        select(Product)
        .where(Product.product_id == product_id)
        .options(
            selectinload(Product.subcategory).selectinload(Subcategory.category),
            selectinload(Product.images),
            selectinload(Product.variants),
            selectinload(Product.reviews),
        )
    )
    try:
        async with session_scope(db) as session:
            result = await session.execute(query)
            return result.scalar_one_or_none()
    except ACCESS_ERRORS as e:
        logger.error("Failed to fetch product", product_id=product_id, error=str(e))
        return None


async def add_to_cart(db: SessionFactory, user_id: str, product_id: int, quantity: int = 1) -> bool:
    """Add a product to a cart; an existing line gets the new quantity."""
    try:
        result = await CatalogStore(db).upsert(
            CartItem,
            {"user_id": user_id, "product_id": product_id, "quantity": quantity},
            conflict_keys=["user_id", "product_id"],
        )
    except ACCESS_ERRORS as e:
        logger.error("Failed to add to cart", user_id=user_id, product_id=product_id, error=str(e))
        return False

    if not result.ok:
        logger.error("Failed to add to cart", user_id=user_id, product_id=product_id, error=result.error)
        return False
    return True


async def get_cart_items(db: SessionFactory, user_id: str) -> List[CartItem]:
    """Cart lines of a user with product and product images."""
    query = (
        select(CartItem)
        .where(CartItem.user_id == user_id)
        .options(selectinload(CartItem.product).selectinload(Product.images))
        .order_by(CartItem.id)
    )
    try:
        async with session_scope(db) as session:
            result = await session.execute(query)
            return list(result.scalars().all())
    except ACCESS_ERRORS as e:
        logger.error("Failed to fetch cart", user_id=user_id, error=str(e))
        return []


async def remove_from_cart(db: SessionFactory, user_id: str, product_id: int) -> bool:
    try:
        async with session_scope(db) as session:
            await session.execute(
                delete(CartItem).where(
                    and_(CartItem.user_id == user_id, CartItem.product_id == product_id)
                )
            )
        return True
    except ACCESS_ERRORS as e:
        logger.error("Failed to remove from cart", user_id=user_id, product_id=product_id, error=str(e))
        return False


async def add_review(
    db: SessionFactory,
    product_id: int,
    user_id: str,
    user_name: Optional[str],
    rating: int,
    review_text: Optional[str],
) -> bool:
    try:
        async with session_scope(db) as session:
            session.add(
                Review(
                    product_id=product_id,
                    user_id=user_id,
                    user_name=user_name,
                    rating=rating,
                    review_text=review_text,
                )
            )
        return True
    except ACCESS_ERRORS as e:
        logger.error("Failed to add review", product_id=product_id, error=str(e))
        return False
