"""
Inventory router: stock transactions, stock levels and ledger history.
Contract: stock changes only through the transaction processor, ledger is append-only
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from catalog_inventory.config import settings
from catalog_inventory.database import get_db
from catalog_inventory.schemas.inventory import (
    ApplyTransactionResponse, StockStatus, TransactionCreate, TransactionPage, TransactionResponse,
    TransactionResult, TransactionType, VariantPage, VariantResponse,
)
from catalog_inventory.services.ledger_query import ledger_query
from catalog_inventory.services.stock_levels import stock_level_view
from catalog_inventory.services.transaction_processor import transaction_processor

router = APIRouter(prefix="/inventory", tags=["inventory"])

# ====================
# STOCK OPERATIONS
# ====================

@router.post("/update", response_model=ApplyTransactionResponse, status_code=status.HTTP_201_CREATED)
def update_inventory(
    payload: TransactionCreate,
    db: Session = Depends(get_db)
):
    """
    Apply a stock transaction to a variant.
    Contract: ledger entry and stock level are committed together
    """
    transaction, variant = transaction_processor.apply(
        db,
        variant_id=payload.variant_id,
        product_id=payload.product_id,
        type=payload.type,
        quantity=payload.quantity,
        note=payload.note,
        reference_number=payload.reference_number,
        created_by=payload.created_by,
    )
    return ApplyTransactionResponse(
        data=TransactionResult(
            transaction=TransactionResponse.model_validate(transaction),
            variant=VariantResponse.model_validate(variant),
        )
    )

@router.get("/levels", response_model=VariantPage)
def get_inventory_levels(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    low_stock: bool = Query(False, alias="lowStock"),
    stock_status: Optional[StockStatus] = Query(None, alias="stockStatus"),
    db: Session = Depends(get_db)
):
    """
    Current stock levels, most depleted first
    """
    variants, pagination = stock_level_view.list(
        db, low_stock_only=low_stock, stock_status=stock_status, page=page, page_size=limit
    )
    return VariantPage(
        pagination=pagination,
        data=[VariantResponse.model_validate(v) for v in variants],
    )

# ====================
# LEDGER OPERATIONS
# ====================

def _ledger_page(db: Session, page: int, limit: int, **filters) -> TransactionPage:
    entries, pagination = ledger_query.list(db, page=page, page_size=limit, **filters)
    return TransactionPage(
        pagination=pagination,
        data=[TransactionResponse.model_validate(e) for e in entries],
    )

@router.get("/transactions", response_model=TransactionPage)
def get_all_inventory_transactions(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    type: Optional[TransactionType] = None,
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    db: Session = Depends(get_db)
):
    """
    Full ledger, newest first
    """
    return _ledger_page(db, page, limit, type=type, start_date=start_date, end_date=end_date)

@router.get("/product/{product_id}", response_model=TransactionPage)
def get_product_inventory_transactions(
    product_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    type: Optional[TransactionType] = None,
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    db: Session = Depends(get_db)
):
    """
    Ledger entries for one product
    """
    return _ledger_page(
        db, page, limit, product_id=product_id, type=type, start_date=start_date, end_date=end_date
    )

@router.get("/variant/{variant_id}", response_model=TransactionPage)
def get_variant_inventory_transactions(
    variant_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    type: Optional[TransactionType] = None,
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    db: Session = Depends(get_db)
):
    """
    Ledger entries for one variant
    """
    return _ledger_page(
        db, page, limit, variant_id=variant_id, type=type, start_date=start_date, end_date=end_date
    )
