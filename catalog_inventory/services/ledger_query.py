"""
LedgerQuery: filtered, paginated transaction history, newest first.
"""
from typing import List, Optional, Tuple, Union

from sqlalchemy.orm import Session

from catalog_inventory.crud.inventory import crud_inventory_transaction
from catalog_inventory.models import InventoryTransaction
from catalog_inventory.schemas.inventory import PaginationMeta, TransactionType
from catalog_inventory.services.transaction_processor import coerce_type
from catalog_inventory.utils.dates import DateInput, parse_date_range
from catalog_inventory.utils.pagination import build_pagination, page_offset


class LedgerQuery:
    def list(
        self,
        db: Session,
        *,
        product_id: Optional[int] = None,
        variant_id: Optional[int] = None,
        type: Union[str, TransactionType, None] = None,
        start_date: DateInput = None,
        end_date: DateInput = None,
        page: int = 1,
        page_size: int = 20,
    ) -> Tuple[List[InventoryTransaction], PaginationMeta]:
        skip = page_offset(page, page_size)
        date_range = parse_date_range(start_date, end_date)
        filters = {
            "product_id": product_id,
            "variant_id": variant_id,
            "type": coerce_type(type) if type else None,
            "start": date_range.start,
            "end": date_range.end,
        }

        def run():
            total = crud_inventory_transaction.count_entries(db, **filters)
            entries = crud_inventory_transaction.get_entries(db, skip=skip, limit=page_size, **filters)
            return entries, total

        entries, total = crud_inventory_transaction.retry_on_operational_error(db, run)
        return entries, build_pagination(page, page_size, total)

ledger_query = LedgerQuery()
