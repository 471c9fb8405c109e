"""
Database Models - Normalized Catalog Schema

This module defines the relational catalog the importer writes to and the
storefront accessors read from:

Catalog Tables (written by the importer):
- Category: top-level catalog sections
- Subcategory: sections within a category
- Product: sellable items keyed by their external catalog id
- ProductImage: ordered gallery images per product
- ProductVariant: selectable weight / RAM / size options per product

Storefront Tables (written by accessors only):
- CartItem: one row per (user, product) in a shopping cart
- Review: customer reviews of a product

Every table carries an integer surrogate key. The unique constraints below
are the natural keys the importer upserts on.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, List

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


# =============================================================================
# ENUMERATIONS
# =============================================================================

class VariantType(str, Enum):
    """Product variant families"""
    WEIGHT = "weight"
    RAM = "ram"
    SIZE = "size"


DEFAULT_CATEGORY_COLOR = "#3bb77e"


# =============================================================================
# CATALOG TABLES
# =============================================================================

class Category(Base):
    """
    Category Table

    Natural key: name.
    """
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    image: Mapped[Optional[str]] = mapped_column(Text)
    color: Mapped[str] = mapped_column(String(20), default=DEFAULT_CATEGORY_COLOR)

    # Audit
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    subcategories: Mapped[List["Subcategory"]] = relationship(
        back_populates="category", order_by="Subcategory.id"
    )

    __table_args__ = (
        UniqueConstraint("name", name="uq_categories_name"),
    )


class Subcategory(Base):
    """
    Subcategory Table

    Natural key: (category_id, name). The same name may appear under
    several categories.
    """
    __tablename__ = "subcategories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    category_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("categories.id"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    category: Mapped["Category"] = relationship(back_populates="subcategories")
    products: Mapped[List["Product"]] = relationship(
        back_populates="subcategory", order_by="Product.id"
    )

    __table_args__ = (
        UniqueConstraint("category_id", "name", name="uq_subcategories_category_name"),
    )


class Product(Base):
    """
    Product Table

    Natural key: product_id, the numeric id carried by the source catalog.
    is_featured and stock_quantity are placeholders synthesized on first
    import; the source catalog has no such fields.
    """
    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    subcategory_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("subcategories.id"), nullable=False
    )

    # Product details
    product_name: Mapped[Optional[str]] = mapped_column(String(500))
    cat_img: Mapped[Optional[str]] = mapped_column(Text)
    description: Mapped[Optional[str]] = mapped_column(Text)
    brand: Mapped[Optional[str]] = mapped_column(String(200))
    type: Mapped[Optional[str]] = mapped_column(String(100))

    # Pricing
    price: Mapped[float] = mapped_column(Float, nullable=False)
    old_price: Mapped[float] = mapped_column(Float, nullable=False)
    discount: Mapped[float] = mapped_column(Float, default=0)

    # Ratings
    rating: Mapped[Optional[float]] = mapped_column(Float)

    # Placeholders
    is_featured: Mapped[bool] = mapped_column(Boolean, default=False)
    stock_quantity: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    subcategory: Mapped["Subcategory"] = relationship(back_populates="products")
    images: Mapped[List["ProductImage"]] = relationship(
        back_populates="product", order_by="ProductImage.sort_order"
    )
    variants: Mapped[List["ProductVariant"]] = relationship(
        back_populates="product", order_by="ProductVariant.id"
    )
    reviews: Mapped[List["Review"]] = relationship(
        back_populates="product", order_by="Review.id"
    )

    __table_args__ = (
        UniqueConstraint("product_id", name="uq_products_product_id"),
        Index("ix_products_subcategory", "subcategory_id"),
        Index("ix_products_brand", "brand"),
        Index("ix_products_price", "price"),
    )


class ProductImage(Base):
    """
    Product Image Table

    Natural key: (product_id, sort_order). sort_order is 1-based and only
    the first image is primary.
    """
    __tablename__ = "product_images"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("products.id"), nullable=False
    )
    image_url: Mapped[str] = mapped_column(Text, nullable=False)
    is_primary: Mapped[bool] = mapped_column(Boolean, default=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    product: Mapped["Product"] = relationship(back_populates="images")

    __table_args__ = (
        UniqueConstraint("product_id", "sort_order", name="uq_product_images_position"),
    )


class ProductVariant(Base):
    """
    Product Variant Table

    Natural key: (product_id, variant_type, variant_value). Values are
    stored as text whatever their type in the source catalog.
    """
    __tablename__ = "product_variants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("products.id"), nullable=False
    )
    variant_type: Mapped[str] = mapped_column(String(20), nullable=False)
    variant_value: Mapped[str] = mapped_column(String(100), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    product: Mapped["Product"] = relationship(back_populates="variants")

    __table_args__ = (
        UniqueConstraint(
            "product_id", "variant_type", "variant_value",
            name="uq_product_variants_type_value",
        ),
    )


# =============================================================================
# STOREFRONT TABLES
# =============================================================================

class CartItem(Base):
    """
    Cart Item Table

    One row per (user, product); adding the same product again overwrites
    the quantity.
    """
    __tablename__ = "cart_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    product_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("products.id"), nullable=False
    )
    quantity: Mapped[int] = mapped_column(Integer, default=1)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    product: Mapped["Product"] = relationship()

    __table_args__ = (
        UniqueConstraint("user_id", "product_id", name="uq_cart_items_user_product"),
    )


class Review(Base):
    """Customer Review Table"""
    __tablename__ = "reviews"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("products.id"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    user_name: Mapped[Optional[str]] = mapped_column(String(200))
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    review_text: Mapped[Optional[str]] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now()
    )

    product: Mapped["Product"] = relationship(back_populates="reviews")

    __table_args__ = (
        Index("ix_reviews_product", "product_id"),
    )
