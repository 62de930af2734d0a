# pharmapos/services/product_repository.py

from decimal import Decimal
from typing import NamedTuple

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pharmapos.core.exceptions import NotFoundError, StockGuardError, StorageError
from pharmapos.models.products import Product


class StockSnapshot(NamedTuple):
    stock: int
    sell_price: Decimal
    name: str


class ProductRepository:
    """
    Stock and price access for the sale path.

    Only two operations are exposed to the sale recorder: reading the live
    stock/price pair of a product and decrementing its stock. The decrement
    is guarded at the storage level and refuses to drive stock negative.
    """

    def __init__(self, session: Session):
        self.session = session

    def get_current_stock_and_price(self, product_id: str) -> StockSnapshot:
        """
        Reads the product row inside the caller's transaction.

        Raises:
            NotFoundError: if no product has this id.
            StorageError: on any database failure.
        """
        try:
            row = (
                self.session.query(Product.stock, Product.sell_price, Product.name)
                .filter(Product.id == product_id)
                .with_for_update()
                .first()
            )
        except SQLAlchemyError as exc:
            raise StorageError(f"Unable to read product {product_id}") from exc

        if row is None:
            raise NotFoundError(
                f"Product {product_id} not found",
                payload={"product_id": product_id},
            )

        return StockSnapshot(stock=row.stock, sell_price=row.sell_price, name=row.name)

    def decrement_stock(self, product_id: str, amount: int) -> None:
        """
        Subtracts ``amount`` from the product's stock in a single guarded UPDATE.

        Raises:
            StockGuardError: if the row is missing or holds less than ``amount``.
            StorageError: on any other database failure.
        """
        statement = (
            update(Product)
            .where(Product.id == product_id, Product.stock >= amount)
            .values(stock=Product.stock - amount)
            .execution_options(synchronize_session=False)
        )

        try:
            result = self.session.execute(statement)
        except SQLAlchemyError as exc:
            raise StorageError(f"Unable to update stock for product {product_id}") from exc

        if result.rowcount != 1:
            raise StockGuardError(product_id, amount)
