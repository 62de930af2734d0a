# pharmapos/models/sale_items.py

from datetime import datetime
from functools import partial

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import relationship

from pharmapos.database import Base, new_id


class SaleItem(Base):
    __tablename__ = "sale_items"

    id = Column(String, primary_key=True, default=partial(new_id, "item"))

    sale_id = Column(String, ForeignKey("sales.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(String, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False)

    line_number = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)

    created_at = Column(DateTime, default=datetime.now, nullable=False)

    sale = relationship("Sale", back_populates="items")
    product = relationship("Product", lazy="joined")

    __table_args__ = (
        Index("idx_sale_items_sale_id", "sale_id"),
        Index("idx_sale_items_product_id", "product_id"),
        CheckConstraint("quantity > 0", name="ck_sale_items_quantity_positive"),
        CheckConstraint("unit_price >= 0", name="ck_sale_items_unit_price_non_negative"),
        CheckConstraint("total_price >= 0", name="ck_sale_items_total_price_non_negative"),
    )

    @property
    def product_name(self):
        return self.product.name if self.product else None
