# =========================================================
# SALES ROUTER
#
# - Create sale (atomic: header + line items + stock decrement)
# - Paginated ledger, newest first
# - Today / date-range views with summary
# - Excel export of a date range
#
# Sales are immutable: there is no update or delete route
# =========================================================

from datetime import date
from decimal import Decimal
from io import BytesIO

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import StreamingResponse
from openpyxl import Workbook
from sqlalchemy.orm import Session

from pharmapos.core.config import settings
from pharmapos.core.rate_limiter import limiter
from pharmapos.database import get_db
from pharmapos.schemas.common import ApiResponse, PaginatedResponse, Pagination
from pharmapos.schemas.sale import (
    SaleCreate,
    SaleResponse,
    SalesReportResponse,
    SalesSummaryResponse,
)
from pharmapos.services.sale_query import SaleQueryService, SalesSummary
from pharmapos.services.sale_recorder import SaleRecorder

router = APIRouter(prefix="/api/sales", tags=["Sales"])


def get_sale_recorder(db: Session = Depends(get_db)) -> SaleRecorder:
    return SaleRecorder(db)


def get_sale_queries(db: Session = Depends(get_db)) -> SaleQueryService:
    return SaleQueryService(db)


def _report(summary: SalesSummary) -> SalesReportResponse:
    return SalesReportResponse(
        sales=[SaleResponse.model_validate(sale) for sale in summary.sales],
        summary=SalesSummaryResponse(
            count=summary.count,
            item_count=summary.item_count,
            revenue=summary.revenue,
        ),
    )


# =========================================================
# CREATE SALE
# =========================================================
@router.post(
    "",
    response_model=ApiResponse[SaleResponse],
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.SALES_RATE_LIMIT)
def create_sale(
    request: Request,
    sale_data: SaleCreate,
    recorder: SaleRecorder = Depends(get_sale_recorder),
):
    sale = recorder.record_sale(sale_data)

    return ApiResponse(
        data=SaleResponse.model_validate(sale),
        message="Sale recorded successfully",
    )


# =========================================================
# LIST SALES (PAGINATED, NEWEST FIRST)
# =========================================================
@router.get("", response_model=PaginatedResponse[SaleResponse])
def list_sales(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_LIMIT, ge=1, le=settings.MAX_PAGE_LIMIT),
    queries: SaleQueryService = Depends(get_sale_queries),
):
    sales, total = queries.list_sales(page=page, limit=limit)

    return PaginatedResponse(
        data=[SaleResponse.model_validate(sale) for sale in sales],
        pagination=Pagination.build(page, limit, total),
    )


# =========================================================
# TODAY
# =========================================================
@router.get("/today", response_model=ApiResponse[SalesReportResponse])
def today_sales(queries: SaleQueryService = Depends(get_sale_queries)):
    return ApiResponse(data=_report(queries.today_summary()))


# =========================================================
# DATE RANGE (LOCAL CALENDAR DAYS, INCLUSIVE)
# =========================================================
@router.get("/date-range", response_model=ApiResponse[SalesReportResponse])
def sales_by_date_range(
    start_date: date = Query(...),
    end_date: date = Query(...),
    queries: SaleQueryService = Depends(get_sale_queries),
):
    return ApiResponse(data=_report(queries.summary_between(start_date, end_date)))


# =========================================================
# EXCEL EXPORT
# =========================================================
@router.get("/export")
@limiter.limit(settings.EXPORT_RATE_LIMIT)
def export_sales(
    request: Request,
    start_date: date = Query(...),
    end_date: date = Query(...),
    queries: SaleQueryService = Depends(get_sale_queries),
):
    summary = queries.summary_between(start_date, end_date)

    return _build_excel(
        summary=summary,
        start_date=start_date,
        end_date=end_date,
        filename=f"sales_{start_date}_to_{end_date}.xlsx",
    )


def _build_excel(
    summary: SalesSummary,
    start_date: date,
    end_date: date,
    filename: str,
):
    workbook = Workbook()

    # =======================
    # SHEET 1 - RAW SALES
    # =======================
    sheet = workbook.active
    sheet.title = "Sales Data"

    sheet.append([
        "Date",
        "Sale ID",
        "Product",
        "Quantity",
        "Unit Price",
        "Line Total",
        "Final Total",
        "Payment Method",
    ])

    # Oldest first reads naturally in a spreadsheet
    for sale in reversed(summary.sales):
        for item in sale.items:
            sheet.append([
                sale.created_at.strftime("%Y-%m-%d %H:%M:%S"),
                sale.id,
                item.product_name or item.product_id,
                item.quantity,
                float(item.unit_price),
                float(item.total_price),
                float(sale.final_total),
                sale.payment_method,
            ])

    # =======================
    # SHEET 2 - SUMMARY
    # =======================
    sheet_summary = workbook.create_sheet(title="Summary")

    total_tax = sum((sale.tax for sale in summary.sales), Decimal("0.00"))
    total_discount = sum((sale.discount for sale in summary.sales), Decimal("0.00"))

    sheet_summary.append(["Period", f"{start_date} to {end_date}"])
    sheet_summary.append(["Sales", summary.count])
    sheet_summary.append(["Items Sold", summary.item_count])
    sheet_summary.append(["Tax", float(total_tax)])
    sheet_summary.append(["Discount", float(total_discount)])
    sheet_summary.append(["Revenue", float(summary.revenue)])

    stream = BytesIO()
    workbook.save(stream)
    stream.seek(0)

    return StreamingResponse(
        stream,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


# =========================================================
# GET SINGLE SALE
# =========================================================
@router.get("/{sale_id}", response_model=ApiResponse[SaleResponse])
def get_sale(
    sale_id: str,
    queries: SaleQueryService = Depends(get_sale_queries),
):
    return ApiResponse(data=SaleResponse.model_validate(queries.get_sale(sale_id)))
