"""
ReportAggregator: read-only reports over variants, products and the ledger.

Each figure set that must agree with itself comes from a single statement
(valuation summary and top products, movement summary and daily buckets),
so a write racing with a report can make it stale but never inconsistent.
"""
from collections import OrderedDict
from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional

from sqlalchemy import desc, func, select
from sqlalchemy.orm import Session

from catalog_inventory.config import settings
from catalog_inventory.crud.inventory import crud_variant, crud_inventory_transaction, crud_product
from catalog_inventory.exceptions import InvalidArgumentError
from catalog_inventory.models import Category, InventoryTransaction, Product, Variant, product_categories
from catalog_inventory.schemas.inventory import TransactionType, VariantResponse
from catalog_inventory.schemas.reports import (
    ActiveCount, CatalogStats, CategoryCount, CategoryRef, DailyMovement, InventoryValueReport,
    LowStockGroup, LowStockReport, MovementReport, MovementTotals, MovementTypeSummary,
    ProductCounts, ProductRef, ProductValuation, ReportDateRange, ValuationSummary,
)
from catalog_inventory.utils.dates import DateInput, default_movement_range, parse_date_range

CENTS = Decimal("0.01")

def _money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENTS)

def _day(value) -> str:
    # SQLite returns the DATE() result as text, PostgreSQL as a date
    return value if isinstance(value, str) else value.isoformat()


class ReportAggregator:
    def low_stock(self, db: Session) -> LowStockReport:
        """Variants at or below their threshold, grouped by product"""
        variants = crud_variant.retry_on_operational_error(db, lambda: crud_variant.get_low_stock(db))

        groups: Dict[int, LowStockGroup] = OrderedDict()
        for variant in variants:
            group = groups.get(variant.product_id)
            if group is None:
                group = LowStockGroup(product=ProductRef.model_validate(variant.product), variants=[])
                groups[variant.product_id] = group
            group.variants.append(VariantResponse.model_validate(variant))

        return LowStockReport(count=len(variants), data=list(groups.values()))

    def inventory_value(self, db: Session, top_n: Optional[int] = None) -> InventoryValueReport:
        """Stock value of active variants, in total and for the top products"""
        top_n = settings.VALUATION_TOP_N if top_n is None else top_n
        stmt = (
            select(
                Product.id,
                Product.name,
                Product.slug,
                Product.sku,
                func.sum(Variant.stock_quantity * Variant.price).label("total_value"),
                func.sum(Variant.stock_quantity).label("total_items"),
                func.count(Variant.id).label("variant_count"),
            )
            .join(Product, Product.id == Variant.product_id)
            .where(Variant.is_active == True)
            .group_by(Product.id, Product.name, Product.slug, Product.sku)
        )
        rows = crud_variant.retry_on_operational_error(db, lambda: db.execute(stmt).all())

        by_product = [
            ProductValuation(
                product=ProductRef(id=row.id, name=row.name, slug=row.slug, sku=row.sku),
                total_value=_money(row.total_value),
                total_items=int(row.total_items or 0),
                variant_count=row.variant_count,
            )
            for row in rows
        ]
        summary = ValuationSummary(
            total_value=sum((p.total_value for p in by_product), Decimal("0.00")),
            total_items=sum(p.total_items for p in by_product),
            variant_count=sum(p.variant_count for p in by_product),
        )
        by_product.sort(key=lambda p: (-p.total_value, p.product.id))
        return InventoryValueReport(summary=summary, by_product=by_product[:top_n])

    def movements(
        self,
        db: Session,
        start_date: DateInput = None,
        end_date: DateInput = None,
        now: Optional[datetime] = None,
    ) -> MovementReport:
        """Ledger totals per type and per (day, type) inside a date range"""
        requested = parse_date_range(start_date, end_date)
        # a lone endDate anchors the default window at that day
        default = default_movement_range(settings.MOVEMENT_DEFAULT_DAYS, requested.end or now)
        start = requested.start or default.start
        end = requested.end or default.end
        if start > end:
            raise InvalidArgumentError("startDate must not be after endDate", field="startDate")

        day = func.date(InventoryTransaction.created_at).label("bucket_day")
        stmt = (
            select(
                day,
                InventoryTransaction.type,
                func.sum(InventoryTransaction.quantity).label("total_quantity"),
                func.count(InventoryTransaction.id).label("transaction_count"),
            )
            .where(InventoryTransaction.created_at >= start, InventoryTransaction.created_at <= end)
            .group_by(day, InventoryTransaction.type)
            .order_by(day, InventoryTransaction.type)
        )
        rows = crud_inventory_transaction.retry_on_operational_error(db, lambda: db.execute(stmt).all())

        totals: Dict[str, Dict[str, int]] = {}
        daily: Dict[str, DailyMovement] = OrderedDict()
        for row in rows:
            date_key = _day(row.bucket_day)
            quantity = int(row.total_quantity or 0)
            per_type = totals.setdefault(row.type, {"total_quantity": 0, "transaction_count": 0})
            per_type["total_quantity"] += quantity
            per_type["transaction_count"] += row.transaction_count

            bucket = daily.setdefault(date_key, DailyMovement(date=date_key, movements={}))
            bucket.movements[row.type] = MovementTotals(
                total_quantity=quantity, transaction_count=row.transaction_count
            )

        summary = [
            MovementTypeSummary(type=TransactionType(type_name), **values)
            for type_name, values in sorted(totals.items())
        ]
        return MovementReport(
            date_range=ReportDateRange(start_date=start, end_date=end),
            summary=summary,
            daily=list(daily.values()),
        )

    def catalog_stats(self, db: Session) -> CatalogStats:
        """Catalog-wide counts and products per category"""
        def count(model, *conditions):
            return select(func.count()).select_from(model).where(*conditions).scalar_subquery()

        counts_stmt = select(
            count(Product).label("products_total"),
            count(Product, Product.is_active == True).label("products_active"),
            count(Product, Product.has_variants == True).label("products_with_variants"),
            count(Variant).label("variants_total"),
            count(Variant, Variant.is_active == True).label("variants_active"),
            count(Category).label("categories_total"),
            count(Category, Category.is_active == True).label("categories_active"),
        )
        product_count = func.count(product_categories.c.product_id).label("product_count")
        by_category_stmt = (
            select(Category.id, Category.name, Category.slug, product_count)
            .join(product_categories, product_categories.c.category_id == Category.id)
            .group_by(Category.id, Category.name, Category.slug)
            .order_by(desc(product_count), Category.id)
        )

        def run():
            return db.execute(counts_stmt).one(), db.execute(by_category_stmt).all()

        counts, by_category = crud_product.retry_on_operational_error(db, run)
        return CatalogStats(
            products=ProductCounts(
                total=counts.products_total,
                active=counts.products_active,
                with_variants=counts.products_with_variants,
            ),
            variants=ActiveCount(total=counts.variants_total, active=counts.variants_active),
            categories=ActiveCount(total=counts.categories_total, active=counts.categories_active),
            products_by_category=[
                CategoryCount(
                    category=CategoryRef(id=row.id, name=row.name, slug=row.slug),
                    count=row.product_count,
                )
                for row in by_category
            ],
        )

report_aggregator = ReportAggregator()
