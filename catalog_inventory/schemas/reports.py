"""
Report payloads. Every report is a read-only snapshot of the stores.
"""
from typing import Dict, List, Optional
from datetime import datetime
from decimal import Decimal

from catalog_inventory.schemas.inventory import CamelModel, TransactionType, VariantResponse

class ProductRef(CamelModel):
    id: int
    name: str
    slug: Optional[str] = None
    sku: Optional[str] = None

class CategoryRef(CamelModel):
    id: int
    name: str
    slug: Optional[str] = None

# Low stock
class LowStockGroup(CamelModel):
    product: ProductRef
    variants: List[VariantResponse]

class LowStockReport(CamelModel):
    success: bool = True
    count: int
    data: List[LowStockGroup]

# Valuation
class ValuationSummary(CamelModel):
    total_value: Decimal = Decimal("0.00")
    total_items: int = 0
    variant_count: int = 0

class ProductValuation(ValuationSummary):
    product: ProductRef

class InventoryValueReport(CamelModel):
    summary: ValuationSummary
    by_product: List[ProductValuation]

# Movements
class MovementTotals(CamelModel):
    total_quantity: int
    transaction_count: int

class MovementTypeSummary(MovementTotals):
    type: TransactionType

class DailyMovement(CamelModel):
    date: str
    movements: Dict[str, MovementTotals]

class ReportDateRange(CamelModel):
    start_date: datetime
    end_date: datetime

class MovementReport(CamelModel):
    date_range: ReportDateRange
    summary: List[MovementTypeSummary]
    daily: List[DailyMovement]

# Catalog statistics
class ActiveCount(CamelModel):
    total: int
    active: int

class ProductCounts(ActiveCount):
    with_variants: int

class CategoryCount(CamelModel):
    category: CategoryRef
    count: int

class CatalogStats(CamelModel):
    products: ProductCounts
    variants: ActiveCount
    categories: ActiveCount
    products_by_category: List[CategoryCount]

# Envelopes
class InventoryValueResponse(CamelModel):
    success: bool = True
    data: InventoryValueReport

class MovementReportResponse(CamelModel):
    success: bool = True
    data: MovementReport

class CatalogStatsResponse(CamelModel):
    success: bool = True
    data: CatalogStats
