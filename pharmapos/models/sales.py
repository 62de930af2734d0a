# pharmapos/models/sales.py

from datetime import datetime
from functools import partial

from sqlalchemy import CheckConstraint, Column, DateTime, Index, Numeric, String
from sqlalchemy.orm import relationship

from pharmapos.database import Base, new_id

PAYMENT_METHODS = ("cash", "card", "transfer")


class Sale(Base):
    __tablename__ = "sales"

    id = Column(String, primary_key=True, default=partial(new_id, "sale"))

    total = Column(Numeric(10, 2), nullable=False)
    tax = Column(Numeric(10, 2), nullable=False, default=0)
    discount = Column(Numeric(10, 2), nullable=False, default=0)
    final_total = Column(Numeric(10, 2), nullable=False)

    payment_method = Column(String, nullable=False)

    customer_name = Column(String, nullable=True)
    customer_phone = Column(String, nullable=True)

    # Server local time; "today" and date-range queries use local day boundaries
    created_at = Column(
        DateTime,
        default=datetime.now,
        nullable=False,
    )

    items = relationship(
        "SaleItem",
        back_populates="sale",
        cascade="all, delete-orphan",
        order_by="SaleItem.line_number",
    )

    __table_args__ = (
        Index("idx_sales_created_at", "created_at"),
        Index("idx_sales_payment_method", "payment_method"),
        CheckConstraint("total >= 0", name="ck_sales_total_non_negative"),
        CheckConstraint("tax >= 0", name="ck_sales_tax_non_negative"),
        CheckConstraint("discount >= 0", name="ck_sales_discount_non_negative"),
        CheckConstraint("final_total >= 0", name="ck_sales_final_total_non_negative"),
        CheckConstraint(
            "payment_method IN ('cash', 'card', 'transfer')",
            name="ck_sales_payment_method_valid",
        ),
    )
