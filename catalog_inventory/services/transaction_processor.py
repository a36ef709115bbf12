"""
TransactionProcessor: validates and applies one stock transaction.

The read of the previous quantity, the computation of the new one and the
write are one logical step. The write is a compare-and-swap on the quantity
that was read, committed together with the ledger insert; when another
writer changed the variant in between, the whole step is re-run against the
fresh quantity. Retries are bounded, exhaustion raises ConflictError.

Quantity derivation:

    type        new quantity             persisted quantity
    ----------  -----------------------  ---------------------
    stock_in    previous + quantity      quantity
    stock_out   previous - |quantity|    quantity
    adjustment  quantity (target level)  quantity - previous
    returned    previous + quantity      quantity
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, Optional, Tuple, Union

from sqlalchemy.orm import Session

from catalog_inventory.config import settings
from catalog_inventory.crud.inventory import (
    crud_inventory_transaction, crud_product, crud_variant,
)
from catalog_inventory.exceptions import (
    ConflictError, FailedPreconditionError, InvalidArgumentError, NotFoundError,
)
from catalog_inventory.models import InventoryTransaction, Variant, utcnow
from catalog_inventory.schemas.inventory import TransactionType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StockChange:
    previous_quantity: int
    new_quantity: int
    recorded_quantity: int


def coerce_type(value: Union[str, TransactionType]) -> TransactionType:
    try:
        return TransactionType(value)
    except ValueError:
        raise InvalidArgumentError(f"Invalid transaction type: {value!r}", field="type")


def compute_stock_change(type: TransactionType, quantity: int, previous_quantity: int) -> StockChange:
    """Pure quantity derivation for one transaction against ``previous_quantity``."""
    type = coerce_type(type)
    if type == TransactionType.STOCK_IN:
        new_quantity = previous_quantity + quantity
        recorded = quantity
    elif type == TransactionType.STOCK_OUT:
        new_quantity = previous_quantity - abs(quantity)
        recorded = quantity
        if new_quantity < 0:
            raise FailedPreconditionError(
                "Insufficient stock quantity",
                code="INSUFFICIENT_STOCK",
                available=previous_quantity,
                requested=abs(quantity),
            )
    elif type == TransactionType.ADJUSTMENT:
        if quantity < 0:
            raise InvalidArgumentError(
                "Adjustment target level cannot be negative", field="quantity"
            )
        new_quantity = quantity
        recorded = quantity - previous_quantity
    else:
        new_quantity = previous_quantity + quantity
        recorded = quantity

    if new_quantity < 0:
        raise FailedPreconditionError(
            "Stock quantity cannot become negative",
            code="NEGATIVE_STOCK",
            previous=previous_quantity,
            computed=new_quantity,
        )
    return StockChange(previous_quantity, new_quantity, recorded)


def signed_delta(type: Union[str, TransactionType], recorded_quantity: int) -> int:
    """Quantity actually added to the previous level, from a persisted entry."""
    if coerce_type(type) == TransactionType.STOCK_OUT:
        return -abs(recorded_quantity)
    return recorded_quantity


def replay(entries: Iterable[InventoryTransaction]) -> Optional[int]:
    """
    Rebuild the stock level from ledger entries in applied order.
    Raises FailedPreconditionError on the first entry that does not chain.

    Audit helper, not on the request path: feed it
    ``crud_inventory_transaction.get_variant_history`` to check that the
    ledger still reproduces a variant's stored quantity.
    """
    level = None
    for entry in entries:
        if level is None:
            level = entry.previous_quantity
        if entry.previous_quantity != level:
            raise FailedPreconditionError(
                f"Ledger gap before transaction {entry.id}",
                code="LEDGER_INCONSISTENT",
                expected=level,
                found=entry.previous_quantity,
            )
        level += signed_delta(entry.type, entry.quantity)
        if level != entry.new_quantity:
            raise FailedPreconditionError(
                f"Ledger entry {entry.id} does not add up",
                code="LEDGER_INCONSISTENT",
                expected=entry.new_quantity,
                found=level,
            )
    return level


class TransactionProcessor:
    def __init__(self, max_retries: Optional[int] = None, clock: Callable[[], datetime] = utcnow):
        self.max_retries = settings.STOCK_CAS_MAX_RETRIES if max_retries is None else max_retries
        self.clock = clock

    def _load_variant(self, db: Session, variant_id: int, product_id: int) -> Variant:
        variant = crud_variant.get(db, variant_id)
        if not variant:
            raise NotFoundError("Variant not found", code="VARIANT_NOT_FOUND", variant_id=variant_id)
        if variant.product_id != product_id:
            if not crud_product.exists(db, product_id):
                raise NotFoundError("Product not found", code="PRODUCT_NOT_FOUND", product_id=product_id)
            logger.warning(f"Variant {variant_id} does not belong to product {product_id}")
            raise InvalidArgumentError(
                "Variant does not belong to the specified product",
                code="MISMATCHED_PRODUCT",
                variant_id=variant_id,
                product_id=product_id,
            )
        return variant

    def apply(
        self,
        db: Session,
        *,
        variant_id: int,
        product_id: int,
        type: Union[str, TransactionType],
        quantity: int,
        note: Optional[str] = None,
        reference_number: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> Tuple[InventoryTransaction, Variant]:
        """
        Apply one transaction. Returns the persisted ledger entry and the
        variant as committed. On any error neither store is changed.
        """
        type = coerce_type(type)

        for attempt in range(self.max_retries + 1):
            variant = self._load_variant(db, variant_id, product_id)
            try:
                change = compute_stock_change(type, quantity, variant.stock_quantity)
            except FailedPreconditionError:
                logger.warning(
                    f"Rejected {type.value} of {quantity} on variant {variant_id}: "
                    f"stock {variant.stock_quantity}"
                )
                raise

            entry = {
                "variant_id": variant_id,
                "product_id": product_id,
                "type": type.value,
                "quantity": change.recorded_quantity,
                "previous_quantity": change.previous_quantity,
                "new_quantity": change.new_quantity,
                "note": note,
                "reference_number": reference_number,
                "created_by": created_by or "system",
                "created_at": self.clock(),
            }
            committed = crud_inventory_transaction.commit_stock_change(
                db,
                variant_id=variant_id,
                expected_quantity=change.previous_quantity,
                new_quantity=change.new_quantity,
                entry=entry,
            )
            if committed is not None:
                transaction, variant = committed
                logger.info(
                    f"Transaction {transaction.id}: {type.value} on variant {variant_id} "
                    f"{change.previous_quantity} -> {change.new_quantity}"
                )
                return transaction, variant

            logger.warning(
                f"Stock of variant {variant_id} changed concurrently, "
                f"retrying ({attempt + 1}/{self.max_retries})"
            )

        raise ConflictError(
            "Variant stock kept changing concurrently, transaction not applied",
            code="STOCK_CONFLICT",
            variant_id=variant_id,
            attempts=self.max_retries + 1,
        )

transaction_processor = TransactionProcessor()
