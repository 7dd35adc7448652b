# Overview: Service-layer operations for reporting; read-only rollups over sale rows.

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import func

from stockdesk.errors import ValidationError
from stockdesk.extensions import db
from stockdesk.models import Product, Sale, Staff
from stockdesk.models.sales import PAYMENT_METHODS
from stockdesk.time_utils import day_bounds, month_bounds, utcnow

TOP_LIMIT = 10
UNKNOWN_NAME = "Unknown"


def average_cents(total_cents: int, count: int) -> int:
    """Whole-cent average, rounded half-up. 0 when there is nothing to average."""
    if count <= 0:
        return 0
    return (total_cents + (count // 2)) // count


def _window_filter(query, start: datetime, end: datetime):
    return query.filter(Sale.sale_date >= start, Sale.sale_date < end)


def _window_totals(start: datetime, end: datetime) -> dict:
    row = _window_filter(
        db.session.query(
            func.count(Sale.id).label("sales_count"),
            func.coalesce(func.sum(Sale.quantity), 0).label("quantity"),
            func.coalesce(func.sum(Sale.total_amount_cents), 0).label("revenue_cents"),
        ),
        start,
        end,
    ).one()
    return {
        "total_sales": int(row.sales_count or 0),
        "transaction_count": int(row.sales_count or 0),
        "total_quantity": int(row.quantity or 0),
        "total_revenue_cents": int(row.revenue_cents or 0),
    }


def _payment_breakdown(start: datetime, end: datetime) -> dict[str, int]:
    breakdown = {method: 0 for method in PAYMENT_METHODS}
    rows = _window_filter(
        db.session.query(
            Sale.payment_method,
            func.coalesce(func.sum(Sale.total_amount_cents), 0),
        ),
        start,
        end,
    ).group_by(Sale.payment_method).all()
    for method, revenue in rows:
        breakdown[method] = breakdown.get(method, 0) + int(revenue or 0)
    return breakdown


def _top_products(start: datetime, end: datetime) -> list[dict]:
    # Ties on revenue keep the product whose first sale in the window was recorded first
    rows = _window_filter(
        db.session.query(
            Sale.product_id.label("product_id"),
            func.coalesce(func.sum(Sale.quantity), 0).label("quantity"),
            func.coalesce(func.sum(Sale.total_amount_cents), 0).label("revenue_cents"),
        ),
        start,
        end,
    ).group_by(Sale.product_id).order_by(
        func.sum(Sale.total_amount_cents).desc(),
        func.min(Sale.id).asc(),
    ).limit(TOP_LIMIT).all()

    ids = [row.product_id for row in rows]
    names = {}
    if ids:
        names = {
            pid: (name, sku)
            for pid, name, sku in db.session.query(Product.id, Product.name, Product.sku).filter(Product.id.in_(ids))
        }

    results = []
    for row in rows:
        name, sku = names.get(row.product_id, (UNKNOWN_NAME, None))
        results.append(
            {
                "product_id": row.product_id,
                "product_name": name,
                "sku": sku,
                "total_quantity": int(row.quantity or 0),
                "total_revenue_cents": int(row.revenue_cents or 0),
            }
        )
    return results


def _top_staff(start: datetime, end: datetime) -> list[dict]:
    rows = _window_filter(
        db.session.query(
            Sale.staff_id.label("staff_id"),
            func.count(Sale.id).label("sales_count"),
            func.coalesce(func.sum(Sale.quantity), 0).label("quantity"),
            func.coalesce(func.sum(Sale.total_amount_cents), 0).label("revenue_cents"),
        ),
        start,
        end,
    ).group_by(Sale.staff_id).order_by(
        func.sum(Sale.total_amount_cents).desc(),
        func.min(Sale.id).asc(),
    ).limit(TOP_LIMIT).all()

    ids = [row.staff_id for row in rows]
    members = {}
    if ids:
        members = {s.id: s for s in db.session.query(Staff).filter(Staff.id.in_(ids))}

    results = []
    for row in rows:
        member = members.get(row.staff_id)
        results.append(
            {
                "staff_id": row.staff_id,
                "staff_name": (member.full_name or UNKNOWN_NAME) if member else UNKNOWN_NAME,
                "employee_id": member.employee_id if member else None,
                "total_sales": int(row.sales_count or 0),
                "total_quantity": int(row.quantity or 0),
                "total_revenue_cents": int(row.revenue_cents or 0),
            }
        )
    return results


def daily_report(day: date | None = None) -> dict:
    """Totals and payment-method split for one UTC calendar day (default: today)."""
    day = day or utcnow().date()
    start, end = day_bounds(day)

    report = {"date": day.isoformat()}
    report.update(_window_totals(start, end))
    report["payment_methods"] = _payment_breakdown(start, end)
    return report


def monthly_report(year: int | None = None, month: int | None = None) -> dict:
    """
    Totals, average sale, payment-method split and top 10 products/staff by
    revenue for one calendar month (default: current month).
    """
    now = utcnow()
    year = year if year is not None else now.year
    month = month if month is not None else now.month

    if not 2000 <= year <= 3000:
        raise ValidationError("year must be between 2000 and 3000")
    if not 1 <= month <= 12:
        raise ValidationError("month must be between 1 and 12")

    start, end = month_bounds(year, month)
    totals = _window_totals(start, end)

    report = {"year": year, "month": f"{month:02d}"}
    report.update(totals)
    report["average_sale_amount_cents"] = average_cents(
        totals["total_revenue_cents"], totals["transaction_count"]
    )
    report["payment_methods"] = _payment_breakdown(start, end)
    report["top_products"] = _top_products(start, end)
    report["top_staff"] = _top_staff(start, end)
    return report


def revenue_totals() -> dict:
    """All-time sale count and revenue."""
    row = db.session.query(
        func.count(Sale.id).label("sales_count"),
        func.coalesce(func.sum(Sale.total_amount_cents), 0).label("revenue_cents"),
    ).one()
    return {
        "total_sales": int(row.sales_count or 0),
        "total_revenue_cents": int(row.revenue_cents or 0),
    }
