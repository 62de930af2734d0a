# pharmapos/services/sale_recorder.py

import logging
from collections import defaultdict
from decimal import Decimal, InvalidOperation

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pharmapos.core.exceptions import (
    InsufficientStockError,
    InvalidRequestError,
    POSError,
    StockGuardError,
    StorageError,
)
from pharmapos.database import begin_write
from pharmapos.models.sale_items import SaleItem
from pharmapos.models.sales import PAYMENT_METHODS, Sale
from pharmapos.schemas.sale import SaleCreate
from pharmapos.services.product_repository import ProductRepository

logger = logging.getLogger("pharmapos")

CENTS = Decimal("0.01")


def to_money(value) -> Decimal:
    try:
        return Decimal(value).quantize(CENTS)
    except InvalidOperation as exc:
        raise InvalidRequestError(f"Amount {value} cannot be expressed in cents") from exc


class SaleRecorder:
    """
    Turns a checkout cart into one immutable ledger entry.

    Every precondition is checked before the first write, and all writes
    (sale header, line items, stock decrements) share one transaction that
    is rolled back on any failure.
    """

    def __init__(self, session: Session, products: ProductRepository | None = None):
        self.session = session
        self.products = products or ProductRepository(session)

    def record_sale(self, request: SaleCreate) -> Sale:
        """
        Validates the cart against live stock and prices, then persists it.

        Args:
            request (SaleCreate): cart lines, payment method and optional
                customer details, tax and discount.

        Returns:
            Sale: the committed sale with its line items.

        Raises:
            NotFoundError: a line references an unknown product.
            InsufficientStockError: a line asks for more than is on hand,
                either at the precondition check or at the guarded decrement.
            InvalidRequestError: malformed quantity, payment method or a
                negative final total.
            StorageError: the transaction could not be completed.
        """
        try:
            begin_write(self.session)
            sale = self._record(request)
            self.session.commit()

        except StockGuardError as exc:
            # A concurrent sale consumed the stock after the precondition check
            error = self._stock_error_from_guard(exc)
            self.session.rollback()
            logger.warning(f"Sale rejected at stock decrement: {error.message}")
            raise error from exc

        except StorageError as exc:
            self.session.rollback()
            logger.error(f"Sale failed: {exc.message}")
            raise

        except POSError as exc:
            self.session.rollback()
            logger.warning(f"Sale rejected: {exc.message}")
            raise

        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error(f"Sale failed: {exc}")
            raise StorageError("Unable to complete sale") from exc

        self.session.refresh(sale)

        logger.info(
            f"Sale {sale.id} recorded: {len(sale.items)} line(s), "
            f"final total {sale.final_total} ({sale.payment_method})"
        )

        return sale

    def _record(self, request: SaleCreate) -> Sale:
        if not request.items:
            raise InvalidRequestError("Sale must contain items")

        payment_method = getattr(request.payment_method, "value", request.payment_method)
        if payment_method not in PAYMENT_METHODS:
            raise InvalidRequestError(f"Unsupported payment method '{payment_method}'")

        tax = to_money(request.tax or 0)
        discount = to_money(request.discount or 0)
        if tax < 0 or discount < 0:
            raise InvalidRequestError("Tax and discount cannot be negative")

        lines = self._price_lines(request)

        subtotal = sum((line["total_price"] for line in lines), Decimal("0.00"))
        final_total = subtotal - discount + tax

        if final_total < 0:
            raise InvalidRequestError(
                f"Final total cannot be negative "
                f"(subtotal {subtotal}, discount {discount}, tax {tax})"
            )

        sale = Sale(
            total=subtotal,
            tax=tax,
            discount=discount,
            final_total=final_total,
            payment_method=payment_method,
            customer_name=request.customer_name,
            customer_phone=request.customer_phone,
        )
        self.session.add(sale)

        for line_number, line in enumerate(lines, start=1):
            sale.items.append(
                SaleItem(
                    product_id=line["product_id"],
                    line_number=line_number,
                    quantity=line["quantity"],
                    unit_price=line["unit_price"],
                    total_price=line["total_price"],
                )
            )

        self.session.flush()

        for line in lines:
            self.products.decrement_stock(line["product_id"], line["quantity"])

        return sale

    def _price_lines(self, request: SaleCreate) -> list[dict]:
        lines = []
        requested = defaultdict(int)

        for item in request.items:
            if isinstance(item.quantity, bool) or not isinstance(item.quantity, int) or item.quantity <= 0:
                raise InvalidRequestError(
                    f"Quantity for product {item.product_id} must be a positive integer",
                    payload={"product_id": item.product_id},
                )

            snapshot = self.products.get_current_stock_and_price(item.product_id)

            # Several lines may name the same product; compare the running total
            requested[item.product_id] += item.quantity
            if requested[item.product_id] > snapshot.stock:
                raise InsufficientStockError(
                    product_id=item.product_id,
                    product_name=snapshot.name,
                    requested=requested[item.product_id],
                    available=snapshot.stock,
                )

            unit_price = to_money(snapshot.sell_price)
            lines.append(
                {
                    "product_id": item.product_id,
                    "quantity": item.quantity,
                    "unit_price": unit_price,
                    "total_price": unit_price * item.quantity,
                }
            )

        return lines

    def _stock_error_from_guard(self, exc: StockGuardError) -> POSError:
        try:
            snapshot = self.products.get_current_stock_and_price(exc.product_id)
        except POSError as lookup_error:
            return lookup_error

        return InsufficientStockError(
            product_id=exc.product_id,
            product_name=snapshot.name,
            requested=exc.amount,
            available=snapshot.stock,
        )
