"""
Inventory schemas following contract:
- Stock quantity is an integer count, never negative
- Append-only ledger
- camelCase on the wire for existing clients
"""
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from typing import Dict, List, Optional
from datetime import datetime
from decimal import Decimal
from enum import Enum

from catalog_inventory.utils.dates import to_utc

class TransactionType(str, Enum):
    STOCK_IN = "stock_in"
    STOCK_OUT = "stock_out"
    ADJUSTMENT = "adjustment"
    RETURNED = "returned"

class StockStatus(str, Enum):
    IN_STOCK = "in_stock"
    OUT_OF_STOCK = "out_of_stock"

class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

def _utc(v: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands timestamps back naive; they are stored as UTC
    return to_utc(v) if isinstance(v, datetime) else v

# Embedded summaries
class ProductSummary(CamelModel):
    id: int
    name: str
    slug: Optional[str] = None

class VariantSummary(CamelModel):
    id: int
    name: str
    sku: str

# Variant (stock level view)
class VariantResponse(CamelModel):
    id: int
    product_id: int
    name: str
    sku: str
    attributes: Dict[str, str] = Field(default_factory=dict)
    price: Decimal
    compare_at_price: Optional[Decimal] = None
    stock_quantity: int
    low_stock_threshold: int
    is_active: bool
    is_low_stock: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    product: Optional[ProductSummary] = None

    @field_validator("created_at", "updated_at")
    @classmethod
    def timestamps_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _utc(v)

# Transaction request (validated shape, forwarded to the processor)
class TransactionCreate(CamelModel):
    variant_id: int = Field(..., gt=0, validation_alias=AliasChoices("variantId", "variant", "variant_id"))
    product_id: int = Field(..., gt=0, validation_alias=AliasChoices("productId", "product", "product_id"))
    type: TransactionType
    quantity: int
    note: Optional[str] = Field(None, max_length=1000)
    reference_number: Optional[str] = Field(None, max_length=100)
    created_by: Optional[str] = Field(None, max_length=100)

    @field_validator("note", "reference_number", "created_by")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v is not None else v

    @model_validator(mode="after")
    def check_quantity_sign(self) -> "TransactionCreate":
        """stock_in receives goods; a negative receipt is a stock_out"""
        if self.type == TransactionType.STOCK_IN and self.quantity < 0:
            raise ValueError("Quantity should be positive for stock_in")
        return self

class TransactionResponse(CamelModel):
    id: int
    variant_id: int
    product_id: int
    type: TransactionType
    quantity: int
    previous_quantity: int
    new_quantity: int
    note: Optional[str] = None
    reference_number: Optional[str] = None
    created_by: str
    created_at: datetime
    variant: Optional[VariantSummary] = None

    @field_validator("created_at")
    @classmethod
    def created_at_utc(cls, v: datetime) -> datetime:
        return _utc(v)

class TransactionResult(CamelModel):
    transaction: TransactionResponse
    variant: VariantResponse

class ApplyTransactionResponse(CamelModel):
    success: bool = True
    data: TransactionResult

# Pagination
class PaginationMeta(CamelModel):
    page: int
    page_size: int
    total_items: int
    total_pages: int
    has_next: bool
    has_prev: bool

class TransactionPage(CamelModel):
    success: bool = True
    pagination: PaginationMeta
    data: List[TransactionResponse]

class VariantPage(CamelModel):
    success: bool = True
    pagination: PaginationMeta
    data: List[VariantResponse]
