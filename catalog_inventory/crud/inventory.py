"""
Inventory store operations with contract enforcement:
- Stock quantity changes only through a compare-and-swap write
- Append-only ledger
- Ledger insert and stock update commit together or not at all
"""
from sqlalchemy import select, insert, update, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from catalog_inventory.models import Product, Variant, InventoryTransaction
from catalog_inventory.crud.base import CRUDBase
from catalog_inventory.exceptions import InternalError
from catalog_inventory.schemas.inventory import StockStatus, TransactionType

logger = logging.getLogger(__name__)

class CRUDProduct(CRUDBase[Product]):
    def __init__(self):
        super().__init__(Product)

class CRUDVariant(CRUDBase[Variant]):
    def __init__(self):
        super().__init__(Variant)

    def _level_conditions(self, low_stock_only: bool, stock_status: Optional[StockStatus]) -> list:
        conditions = []
        if low_stock_only:
            conditions.append(Variant.stock_quantity <= Variant.low_stock_threshold)
        if stock_status == StockStatus.IN_STOCK:
            conditions.append(Variant.stock_quantity > 0)
        elif stock_status == StockStatus.OUT_OF_STOCK:
            conditions.append(Variant.stock_quantity == 0)
        return conditions

    def get_levels(
        self,
        db: Session,
        *,
        low_stock_only: bool = False,
        stock_status: Optional[StockStatus] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> List[Variant]:
        """Variants ordered most depleted first"""
        stmt = (
            select(Variant)
            .where(*self._level_conditions(low_stock_only, stock_status))
            .options(selectinload(Variant.product))
            .order_by(Variant.stock_quantity.asc(), Variant.id.asc())
            .offset(skip)
            .limit(limit)
        )
        return db.execute(stmt).scalars().all()

    def count_levels(
        self, db: Session, *, low_stock_only: bool = False, stock_status: Optional[StockStatus] = None
    ) -> int:
        stmt = (
            select(func.count())
            .select_from(Variant)
            .where(*self._level_conditions(low_stock_only, stock_status))
        )
        return db.execute(stmt).scalar_one()

    def get_low_stock(self, db: Session) -> List[Variant]:
        stmt = (
            select(Variant)
            .where(Variant.stock_quantity <= Variant.low_stock_threshold)
            .options(selectinload(Variant.product))
            .order_by(Variant.stock_quantity.asc(), Variant.id.asc())
        )
        return db.execute(stmt).scalars().all()

class CRUDInventoryTransaction(CRUDBase[InventoryTransaction]):
    def __init__(self):
        super().__init__(InventoryTransaction)

    def commit_stock_change(
        self,
        db: Session,
        *,
        variant_id: int,
        expected_quantity: int,
        new_quantity: int,
        entry: Dict[str, Any],
    ) -> Optional[Tuple[InventoryTransaction, Variant]]:
        """
        Swap the variant's stock from ``expected_quantity`` to ``new_quantity``
        and append the ledger entry in one database transaction.

        Returns the entry and the variant as of the commit, or None when the
        stored quantity no longer matches ``expected_quantity`` (another
        writer got there first); nothing is written in that case.
        """
        try:
            swap = (
                update(Variant)
                .where(Variant.id == variant_id, Variant.stock_quantity == expected_quantity)
                .values(stock_quantity=new_quantity)
                .execution_options(synchronize_session=False)
            )
            if db.execute(swap).rowcount != 1:
                db.rollback()
                return None

            stmt = insert(InventoryTransaction).values(**entry).returning(InventoryTransaction.id)
            transaction_id = db.execute(stmt).scalar_one()

            # read back while the row is still ours
            transaction = db.execute(
                select(InventoryTransaction)
                .where(InventoryTransaction.id == transaction_id)
                .options(selectinload(InventoryTransaction.variant))
            ).scalar_one()
            variant = db.execute(
                select(Variant)
                .where(Variant.id == variant_id)
                .execution_options(populate_existing=True)
            ).scalar_one()
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error committing stock change for variant {variant_id}: {e}")
            raise InternalError("Store unavailable while recording transaction") from e
        except BaseException:
            # cancellation mid-write must not leave a half-applied change
            db.rollback()
            raise
        return transaction, variant

    def _entry_conditions(
        self,
        *,
        product_id: Optional[int] = None,
        variant_id: Optional[int] = None,
        type: Optional[TransactionType] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list:
        conditions = []
        if product_id is not None:
            conditions.append(InventoryTransaction.product_id == product_id)
        if variant_id is not None:
            conditions.append(InventoryTransaction.variant_id == variant_id)
        if type is not None:
            conditions.append(InventoryTransaction.type == TransactionType(type).value)
        if start is not None:
            conditions.append(InventoryTransaction.created_at >= start)
        if end is not None:
            conditions.append(InventoryTransaction.created_at <= end)
        return conditions

    def get_entries(self, db: Session, *, skip: int = 0, limit: int = 20, **filters) -> List[InventoryTransaction]:
        """Ledger entries newest first"""
        stmt = (
            select(InventoryTransaction)
            .where(*self._entry_conditions(**filters))
            .options(selectinload(InventoryTransaction.variant))
            .order_by(InventoryTransaction.created_at.desc(), InventoryTransaction.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return db.execute(stmt).scalars().all()

    def count_entries(self, db: Session, **filters) -> int:
        stmt = (
            select(func.count())
            .select_from(InventoryTransaction)
            .where(*self._entry_conditions(**filters))
        )
        return db.execute(stmt).scalar_one()

    def get_variant_history(self, db: Session, variant_id: int) -> List[InventoryTransaction]:
        """
        Entries for one variant in the order they were applied.
        Used for ledger audits with ``replay``; the API pages through get_entries.
        """
        stmt = (
            select(InventoryTransaction)
            .where(InventoryTransaction.variant_id == variant_id)
            .order_by(InventoryTransaction.id.asc())
        )
        return db.execute(stmt).scalars().all()

# Create instances
crud_product = CRUDProduct()
crud_variant = CRUDVariant()
crud_inventory_transaction = CRUDInventoryTransaction()
