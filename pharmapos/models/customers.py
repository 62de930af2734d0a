# pharmapos/models/customers.py

from functools import partial

from sqlalchemy import Column, DateTime, Index, String, Text
from sqlalchemy.sql import func

from pharmapos.database import Base, new_id


class Customer(Base):
    __tablename__ = "customers"

    id = Column(String, primary_key=True, default=partial(new_id, "cust"))
    name = Column(String, nullable=False)
    phone = Column(String, nullable=False, unique=True)
    email = Column(String, nullable=True)
    address = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("idx_customers_phone", "phone"),
    )
