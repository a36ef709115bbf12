import math

from catalog_inventory.exceptions import InvalidArgumentError
from catalog_inventory.schemas.inventory import PaginationMeta


def page_offset(page: int, page_size: int) -> int:
    if page < 1:
        raise InvalidArgumentError("page must be >= 1", field="page")
    if page_size < 1:
        raise InvalidArgumentError("pageSize must be >= 1", field="pageSize")
    return (page - 1) * page_size

def build_pagination(page: int, page_size: int, total: int) -> PaginationMeta:
    total_pages = math.ceil(total / page_size) if page_size else 0
    return PaginationMeta(
        page=page,
        page_size=page_size,
        total_items=total,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_prev=page > 1,
    )
