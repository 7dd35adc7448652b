# Overview: Service-layer operations for the dashboard; combines stock and sales rollups.

from __future__ import annotations

from datetime import datetime

from stockdesk.time_utils import utcnow, to_utc_z
from .reporting_service import average_cents, daily_report, monthly_report, revenue_totals
from .stock_service import stock_snapshot


def dashboard_stats(now: datetime | None = None) -> dict:
    """
    Stock snapshot plus today / this month / all-time sales.

    average_daily_revenue_cents = this month's revenue / day of month
    average_monthly_revenue_cents = all-time revenue / month number
    Both are whole cents (two decimals of currency), rounded half-up.
    """
    now = now or utcnow()

    stock = stock_snapshot()
    today = daily_report(now.date())
    month = monthly_report(now.year, now.month)
    all_time = revenue_totals()

    return {
        "generated_at": to_utc_z(now),
        "stock": {
            "total_stock_value_cents": stock["total_stock_value_cents"],
            "total_quantity": stock["total_quantity"],
            "in_stock_count": stock["in_stock_count"],
            "low_stock_count": stock["low_stock_count"],
            "out_of_stock_count": stock["out_of_stock_count"],
            "discontinued_count": stock["discontinued_count"],
        },
        "revenue": {
            "daily_revenue_cents": today["total_revenue_cents"],
            "monthly_revenue_cents": month["total_revenue_cents"],
            "total_revenue_cents": all_time["total_revenue_cents"],
        },
        "sales": {
            "daily_sales_count": today["transaction_count"],
            "monthly_sales_count": month["transaction_count"],
            "total_sales_count": all_time["total_sales"],
        },
        "summary": {
            "total_products": stock["total_products"],
            "total_categories": stock["total_categories"],
            "average_daily_revenue_cents": average_cents(month["total_revenue_cents"], now.day),
            "average_monthly_revenue_cents": average_cents(all_time["total_revenue_cents"], now.month),
        },
        "daily_report": today,
        "monthly_report": month,
    }
