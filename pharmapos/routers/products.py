# pharmapos/routers/products.py

import logging
from decimal import Decimal

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import case, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pharmapos.core.config import settings
from pharmapos.core.exceptions import ConflictError, InvalidRequestError, NotFoundError
from pharmapos.database import get_db
from pharmapos.models.products import Product
from pharmapos.models.sale_items import SaleItem
from pharmapos.schemas.common import ApiResponse, PaginatedResponse, Pagination
from pharmapos.schemas.product import (
    ProductCreate,
    ProductMarginResponse,
    ProductResponse,
    ProductUpdate,
    StockUpdate,
)

router = APIRouter(
    prefix="/api/products",
    tags=["Products"],
)

logger = logging.getLogger("pharmapos")


def _get_product_or_404(db: Session, product_id: str) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()

    if not product:
        raise NotFoundError(f"Product {product_id} not found", payload={"product_id": product_id})

    return product


def _ensure_barcode_free(db: Session, barcode: str | None, product_id: str | None = None):
    if not barcode:
        return

    query = db.query(Product).filter(Product.barcode == barcode)
    if product_id is not None:
        query = query.filter(Product.id != product_id)

    if query.first():
        raise ConflictError(f"Barcode {barcode} is already assigned to another product")


def _ensure_margin(buy_price: Decimal, sell_price: Decimal):
    # Business rule: selling price must not be lower than buying price
    if sell_price < buy_price:
        raise InvalidRequestError("Sell price cannot be lower than buy price")


@router.get("", response_model=PaginatedResponse[ProductResponse])
def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_LIMIT, ge=1, le=settings.MAX_PAGE_LIMIT),
    db: Session = Depends(get_db),
):
    query = db.query(Product).order_by(Product.name, Product.id)
    total = query.count()

    products = query.limit(limit).offset((page - 1) * limit).all()

    return PaginatedResponse(
        data=[ProductResponse.model_validate(p) for p in products],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/search", response_model=ApiResponse[list[ProductResponse]])
def search_products(
    q: str = Query(..., min_length=1),
    limit: int = Query(50, ge=1, le=settings.MAX_PAGE_LIMIT),
    db: Session = Depends(get_db),
):
    pattern = f"%{q}%"

    # Name matches first, then category, then barcode
    rank = case(
        (Product.name.ilike(pattern), 1),
        (Product.category.ilike(pattern), 2),
        else_=3,
    )

    products = (
        db.query(Product)
        .filter(
            or_(
                Product.name.ilike(pattern),
                Product.category.ilike(pattern),
                Product.barcode.ilike(pattern),
            )
        )
        .order_by(rank, Product.name)
        .limit(limit)
        .all()
    )

    return ApiResponse(data=[ProductResponse.model_validate(p) for p in products])


@router.get("/low-stock", response_model=ApiResponse[list[ProductResponse]])
def low_stock_products(
    threshold: int = Query(settings.LOW_STOCK_THRESHOLD, ge=0),
    db: Session = Depends(get_db),
):
    products = (
        db.query(Product)
        .filter(Product.stock <= threshold)
        .order_by(Product.stock.asc(), Product.name)
        .all()
    )

    return ApiResponse(data=[ProductResponse.model_validate(p) for p in products])


@router.get("/with-margin", response_model=ApiResponse[list[ProductMarginResponse]])
def products_with_margin(db: Session = Depends(get_db)):
    products = db.query(Product).order_by(Product.name).all()

    results = []
    for product in products:
        margin = (Decimal(product.sell_price) - Decimal(product.buy_price)).quantize(Decimal("0.01"))

        if product.sell_price:
            margin_percentage = ((margin / Decimal(product.sell_price)) * 100).quantize(Decimal("0.01"))
        else:
            margin_percentage = Decimal("0.00")

        results.append(
            ProductMarginResponse(
                **ProductResponse.model_validate(product).model_dump(),
                margin=margin,
                margin_percentage=margin_percentage,
            )
        )

    return ApiResponse(data=results)


@router.get("/categories", response_model=ApiResponse[list[str]])
def list_categories(db: Session = Depends(get_db)):
    rows = db.query(Product.category).distinct().order_by(Product.category).all()
    return ApiResponse(data=[row.category for row in rows])


@router.get("/barcode/{barcode}", response_model=ApiResponse[ProductResponse])
def get_product_by_barcode(barcode: str, db: Session = Depends(get_db)):
    product = db.query(Product).filter(Product.barcode == barcode).first()

    if not product:
        raise NotFoundError(f"No product with barcode {barcode}", payload={"barcode": barcode})

    return ApiResponse(data=ProductResponse.model_validate(product))


@router.get("/{product_id}", response_model=ApiResponse[ProductResponse])
def get_product(product_id: str, db: Session = Depends(get_db)):
    return ApiResponse(data=ProductResponse.model_validate(_get_product_or_404(db, product_id)))


@router.post(
    "",
    response_model=ApiResponse[ProductResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_product(
    product_data: ProductCreate,
    db: Session = Depends(get_db),
):
    _ensure_margin(product_data.buy_price, product_data.sell_price)
    _ensure_barcode_free(db, product_data.barcode)

    product = Product(
        name=product_data.name,
        buy_price=product_data.buy_price,
        sell_price=product_data.sell_price,
        stock=product_data.stock,
        category=product_data.category,
        description=product_data.description,
        barcode=product_data.barcode or None,
    )

    db.add(product)
    db.commit()
    db.refresh(product)

    logger.info(f"Product {product.id} created ({product.name})")

    return ApiResponse(data=ProductResponse.model_validate(product), message="Product created successfully")


@router.put("/{product_id}", response_model=ApiResponse[ProductResponse])
def update_product(
    product_id: str,
    product_data: ProductUpdate,
    db: Session = Depends(get_db),
):
    product = _get_product_or_404(db, product_id)

    changes = product_data.model_dump(exclude_unset=True)
    if not changes:
        raise InvalidRequestError("No fields to update")

    # Validate prices if either is being updated
    new_buy_price = changes.get("buy_price", product.buy_price)
    new_sell_price = changes.get("sell_price", product.sell_price)
    if new_buy_price is None or new_sell_price is None:
        raise InvalidRequestError("Prices cannot be cleared")
    _ensure_margin(new_buy_price, new_sell_price)

    if "barcode" in changes:
        changes["barcode"] = changes["barcode"] or None
        _ensure_barcode_free(db, changes["barcode"], product_id=product.id)

    for required in ("name", "category", "stock"):
        if required in changes and changes[required] is None:
            raise InvalidRequestError(f"{required} cannot be cleared")

    for field_name, value in changes.items():
        setattr(product, field_name, value)

    db.commit()
    db.refresh(product)

    return ApiResponse(data=ProductResponse.model_validate(product), message="Product updated successfully")


@router.patch("/{product_id}/stock", response_model=ApiResponse[ProductResponse])
def update_stock(
    product_id: str,
    stock_data: StockUpdate,
    db: Session = Depends(get_db),
):
    product = _get_product_or_404(db, product_id)

    product.stock = stock_data.stock
    db.commit()
    db.refresh(product)

    logger.info(f"Stock for product {product.id} set to {product.stock}")

    return ApiResponse(data=ProductResponse.model_validate(product), message="Stock updated successfully")


@router.delete("/{product_id}", response_model=ApiResponse[None])
def delete_product(
    product_id: str,
    db: Session = Depends(get_db),
):
    product = _get_product_or_404(db, product_id)

    # Sold products stay in the catalog while the ledger references them
    referenced = (
        db.query(func.count(SaleItem.id))
        .filter(SaleItem.product_id == product.id)
        .scalar()
    )
    if referenced:
        raise ConflictError(
            f"Product {product.id} is referenced by {referenced} sale line item(s) and cannot be deleted",
            payload={"product_id": product.id},
        )

    try:
        db.delete(product)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(
            f"Product {product_id} is referenced by sales and cannot be deleted",
            payload={"product_id": product_id},
        )

    return ApiResponse(message="Product deleted successfully")
