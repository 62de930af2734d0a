# pharmapos/services/sale_query.py

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from pharmapos.core.exceptions import InvalidRequestError, NotFoundError
from pharmapos.models.sale_items import SaleItem
from pharmapos.models.sales import Sale


@dataclass
class SalesSummary:
    sales: list = field(default_factory=list)
    count: int = 0
    item_count: int = 0
    revenue: Decimal = Decimal("0.00")


def _day_bounds(start_date: date, end_date: date) -> tuple[datetime, datetime]:
    # Local calendar days, end exclusive
    start_dt = datetime.combine(start_date, time.min)
    end_dt = datetime.combine(end_date + timedelta(days=1), time.min)
    return start_dt, end_dt


class SaleQueryService:
    """Read-only projections over the sales ledger."""

    def __init__(self, session: Session):
        self.session = session

    def _sales_query(self):
        return self.session.query(Sale).options(joinedload(Sale.items))

    def get_sale(self, sale_id: str) -> Sale:
        sale = self._sales_query().filter(Sale.id == sale_id).first()

        if not sale:
            raise NotFoundError(f"Sale {sale_id} not found", payload={"sale_id": sale_id})

        return sale

    def list_sales(self, page: int = 1, limit: int = 50) -> tuple[list[Sale], int]:
        """Returns one page of sales, newest first, and the total sale count."""
        if page < 1 or limit < 1:
            raise InvalidRequestError("page and limit must be positive")

        total = self.session.query(func.count(Sale.id)).scalar() or 0

        sales = (
            self._sales_query()
            .order_by(Sale.created_at.desc(), Sale.id.desc())
            .limit(limit)
            .offset((page - 1) * limit)
            .all()
        )

        return sales, total

    def summary_between(self, start_date: date, end_date: date) -> SalesSummary:
        """
        Sales created on the local calendar days ``start_date``..``end_date``
        (both inclusive), newest first, with count, item count and revenue.
        """
        if end_date < start_date:
            raise InvalidRequestError("end_date cannot be before start_date")

        start_dt, end_dt = _day_bounds(start_date, end_date)
        base_filter = [Sale.created_at >= start_dt, Sale.created_at < end_dt]

        sales = (
            self._sales_query()
            .filter(*base_filter)
            .order_by(Sale.created_at.desc(), Sale.id.desc())
            .all()
        )

        revenue = (
            self.session.query(func.coalesce(func.sum(Sale.final_total), 0))
            .filter(*base_filter)
            .scalar()
        )

        item_count = (
            self.session.query(func.coalesce(func.sum(SaleItem.quantity), 0))
            .join(Sale, SaleItem.sale_id == Sale.id)
            .filter(*base_filter)
            .scalar()
        )

        return SalesSummary(
            sales=sales,
            count=len(sales),
            item_count=int(item_count or 0),
            revenue=Decimal(revenue or 0).quantize(Decimal("0.01")),
        )

    def today_summary(self, today: date | None = None) -> SalesSummary:
        today = today or datetime.now().date()
        return self.summary_between(today, today)
