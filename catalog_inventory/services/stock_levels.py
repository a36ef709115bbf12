"""
StockLevelView: current quantities, most depleted first.
"""
from typing import List, Optional, Tuple, Union

from sqlalchemy.orm import Session

from catalog_inventory.crud.inventory import crud_variant
from catalog_inventory.exceptions import InvalidArgumentError
from catalog_inventory.models import Variant
from catalog_inventory.schemas.inventory import PaginationMeta, StockStatus
from catalog_inventory.utils.pagination import build_pagination, page_offset


class StockLevelView:
    def list(
        self,
        db: Session,
        *,
        low_stock_only: bool = False,
        stock_status: Union[str, StockStatus, None] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> Tuple[List[Variant], PaginationMeta]:
        skip = page_offset(page, page_size)
        if stock_status:
            try:
                stock_status = StockStatus(stock_status)
            except ValueError:
                raise InvalidArgumentError(f"Invalid stock status: {stock_status!r}", field="stockStatus")
        else:
            stock_status = None

        def run():
            total = crud_variant.count_levels(db, low_stock_only=low_stock_only, stock_status=stock_status)
            variants = crud_variant.get_levels(
                db, low_stock_only=low_stock_only, stock_status=stock_status, skip=skip, limit=page_size
            )
            return variants, total

        variants, total = crud_variant.retry_on_operational_error(db, run)
        return variants, build_pagination(page, page_size, total)

stock_level_view = StockLevelView()
