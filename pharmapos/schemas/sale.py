# pharmapos/schemas/sale.py

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List

from pydantic import BaseModel, Field


class PaymentMethod(str, Enum):
    cash = "cash"
    card = "card"
    transfer = "transfer"


class SaleItemCreate(BaseModel):
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0, strict=True)


class SaleCreate(BaseModel):
    items: List[SaleItemCreate] = Field(..., min_length=1)
    payment_method: PaymentMethod
    customer_name: str | None = None
    customer_phone: str | None = None
    tax: Decimal = Field(Decimal("0.00"), ge=0, lt=100_000_000, decimal_places=2)
    discount: Decimal = Field(Decimal("0.00"), ge=0, lt=100_000_000, decimal_places=2)


class SaleItemResponse(BaseModel):
    id: str
    product_id: str
    product_name: str | None = None
    quantity: int
    unit_price: Decimal
    total_price: Decimal

    class Config:
        from_attributes = True


class SaleResponse(BaseModel):
    id: str
    items: List[SaleItemResponse]
    total: Decimal
    tax: Decimal
    discount: Decimal
    final_total: Decimal
    payment_method: PaymentMethod
    customer_name: str | None
    customer_phone: str | None
    created_at: datetime

    class Config:
        from_attributes = True


class SalesSummaryResponse(BaseModel):
    count: int
    item_count: int
    revenue: Decimal


class SalesReportResponse(BaseModel):
    sales: List[SaleResponse]
    summary: SalesSummaryResponse
