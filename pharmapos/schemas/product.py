# pharmapos/schemas/product.py

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1)

    buy_price: Decimal = Field(
        ...,
        ge=0,
        lt=100_000_000,
        description="Buy price must be below 100 million",
    )

    sell_price: Decimal = Field(
        ...,
        ge=0,
        lt=100_000_000,
        description="Sell price must be below 100 million",
    )

    stock: int = Field(0, ge=0)
    category: str = Field(..., min_length=1)
    description: str | None = None
    barcode: str | None = None


class ProductUpdate(BaseModel):
    name: str | None = Field(None, min_length=1)
    buy_price: Decimal | None = Field(None, ge=0, lt=100_000_000)
    sell_price: Decimal | None = Field(None, ge=0, lt=100_000_000)
    stock: int | None = Field(None, ge=0)
    category: str | None = Field(None, min_length=1)
    description: str | None = None
    barcode: str | None = None


class StockUpdate(BaseModel):
    stock: int = Field(..., ge=0)


class ProductResponse(BaseModel):
    id: str
    name: str
    buy_price: Decimal
    sell_price: Decimal
    stock: int
    category: str
    description: str | None
    barcode: str | None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProductMarginResponse(ProductResponse):
    margin: Decimal
    margin_percentage: Decimal
