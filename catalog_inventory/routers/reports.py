"""
Reporting router. All endpoints are read-only.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from catalog_inventory.database import get_db
from catalog_inventory.schemas.reports import (
    CatalogStatsResponse, InventoryValueResponse, LowStockReport, MovementReportResponse,
)
from catalog_inventory.services.reports import report_aggregator

router = APIRouter(prefix="/reports", tags=["reports"])

@router.get("/low-stock", response_model=LowStockReport)
def get_low_stock_report(db: Session = Depends(get_db)):
    """
    Variants at or below their low stock threshold, grouped by product
    """
    return report_aggregator.low_stock(db)

@router.get("/inventory-value", response_model=InventoryValueResponse)
def get_inventory_value_report(db: Session = Depends(get_db)):
    """
    Total inventory value and breakdown by product
    """
    return InventoryValueResponse(data=report_aggregator.inventory_value(db))

@router.get("/inventory-movements", response_model=MovementReportResponse)
def get_inventory_movements_report(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    db: Session = Depends(get_db)
):
    """
    Inventory movements by type and by day for a period
    """
    return MovementReportResponse(data=report_aggregator.movements(db, start_date, end_date))

@router.get("/catalog-stats", response_model=CatalogStatsResponse)
def get_catalog_stats(db: Session = Depends(get_db)):
    """
    Statistics about the product catalog
    """
    return CatalogStatsResponse(data=report_aggregator.catalog_stats(db))
