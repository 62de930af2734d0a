# pharmapos/models/products.py

from functools import partial

from sqlalchemy import CheckConstraint, Column, DateTime, Index, Integer, Numeric, String, Text
from sqlalchemy.sql import func

from pharmapos.database import Base, new_id


class Product(Base):
    __tablename__ = "products"

    id = Column(String, primary_key=True, default=partial(new_id, "prod"))
    name = Column(String, nullable=False)
    buy_price = Column(Numeric(10, 2), nullable=False)
    sell_price = Column(Numeric(10, 2), nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    category = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    barcode = Column(String, nullable=True, unique=True)

    created_at = Column(
        DateTime,
        server_default=func.now(),
        nullable=False,
    )
    updated_at = Column(
        DateTime,
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index("idx_products_category", "category"),
        Index("idx_products_name", "name"),
        Index("idx_products_barcode", "barcode"),
        Index("idx_products_buy_price", "buy_price"),
        Index("idx_products_sell_price", "sell_price"),
        CheckConstraint("buy_price >= 0", name="ck_products_buy_price_non_negative"),
        CheckConstraint("sell_price >= 0", name="ck_products_sell_price_non_negative"),
        CheckConstraint("sell_price >= buy_price", name="ck_products_sell_not_below_buy"),
        CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
    )
