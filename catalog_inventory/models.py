"""
SQLAlchemy 2.x models for the catalog and the stock ledger.
Contract: Use only 2.x syntax, avoid mixing v1 patterns.
"""
from sqlalchemy import (
    Column, Integer, String, Numeric, Boolean, DateTime, ForeignKey, Text, JSON, Table,
    CheckConstraint, Index, event,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from datetime import datetime, timezone

from catalog_inventory.database import Base
from catalog_inventory.exceptions import FailedPreconditionError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


product_categories = Table(
    "product_categories",
    Base.metadata,
    Column("product_id", Integer, ForeignKey("products.id", ondelete="CASCADE"), primary_key=True),
    Column("category_id", Integer, ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
)

class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    slug = Column(String(120), unique=True, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    products = relationship("Product", secondary=product_categories, back_populates="categories")

class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    slug = Column(String(220), unique=True)
    sku = Column(String(50), unique=True, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    has_variants = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    categories = relationship("Category", secondary=product_categories, back_populates="products")
    variants = relationship("Variant", back_populates="product")

class Variant(Base):
    __tablename__ = "variants"
    __table_args__ = (
        CheckConstraint("stock_quantity >= 0", name="ck_variants_stock_non_negative"),
        CheckConstraint("low_stock_threshold >= 0", name="ck_variants_threshold_non_negative"),
        CheckConstraint("price >= 0", name="ck_variants_price_non_negative"),
    )

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    sku = Column(String(50), unique=True, nullable=False, index=True)
    # Free-form attribute bag (size, color, ...), owned by product management
    attributes = Column(JSON, nullable=False, default=dict)
    price = Column(Numeric(10, 2), nullable=False)
    compare_at_price = Column(Numeric(10, 2))
    stock_quantity = Column(Integer, nullable=False, default=0, index=True)
    low_stock_threshold = Column(Integer, nullable=False, default=5)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    product = relationship("Product", back_populates="variants")
    transactions = relationship("InventoryTransaction", back_populates="variant")

    @property
    def is_low_stock(self) -> bool:
        return self.stock_quantity <= self.low_stock_threshold

class InventoryTransaction(Base):
    """Append-only ledger entry. ``quantity`` holds the persisted delta."""
    __tablename__ = "inventory_transactions"
    __table_args__ = (
        Index("ix_inventory_transactions_created_at", "created_at"),
    )

    id = Column(Integer, primary_key=True)
    variant_id = Column(Integer, ForeignKey("variants.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    type = Column(String(20), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    previous_quantity = Column(Integer, nullable=False)
    new_quantity = Column(Integer, nullable=False)
    note = Column(Text)
    reference_number = Column(String(100))
    created_by = Column(String(100), nullable=False, default="system")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Relationships
    variant = relationship("Variant", back_populates="transactions")
    product = relationship("Product")


@event.listens_for(InventoryTransaction, "before_update")
def _block_ledger_update(mapper, connection, target):
    raise FailedPreconditionError(
        "Ledger entries are immutable", code="LEDGER_IMMUTABLE", transaction_id=target.id
    )

@event.listens_for(InventoryTransaction, "before_delete")
def _block_ledger_delete(mapper, connection, target):
    raise FailedPreconditionError(
        "Ledger entries cannot be deleted", code="LEDGER_IMMUTABLE", transaction_id=target.id
    )
