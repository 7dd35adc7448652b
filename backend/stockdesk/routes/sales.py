# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/stockdesk/routes/sales.py
"""Sales API routes: recording, editing and removing sales, plus sale reports."""

from flask import Blueprint, request, jsonify, current_app

from ..errors import AppError, ValidationError
from ..models.sales import PAYMENT_METHODS
from ..services import reporting_service, sales_service
from ..time_utils import parse_iso_date
from ..validation import parse_create_sale, parse_id, parse_update_sale


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _optional_id(name: str, label: str) -> int | None:
    raw = request.args.get(name)
    if raw in (None, ""):
        return None
    return parse_id(raw, label)


def _optional_date(name: str):
    try:
        return parse_iso_date(request.args.get(name))
    except ValueError:
        raise ValidationError(f"{name} must be a date (YYYY-MM-DD)")


@sales_bp.get("")
def list_sales_route():
    """
    List sales, newest first.

    Query params:
    - start_date / end_date: YYYY-MM-DD, inclusive
    - staff_id, product_id: int
    - payment_method: CASH | CARD | TRANSFER | CHEQUE
    - page, per_page: default 1 / 10, per_page max 100
    """
    try:
        payment_method = (request.args.get("payment_method") or "").strip().upper() or None
        if payment_method and payment_method not in PAYMENT_METHODS:
            raise ValidationError(f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}")

        result = sales_service.list_sales(
            start_date=_optional_date("start_date"),
            end_date=_optional_date("end_date"),
            staff_id=_optional_id("staff_id", "staff ID"),
            product_id=_optional_id("product_id", "product ID"),
            payment_method=payment_method,
            page=request.args.get("page", type=int),
            per_page=request.args.get("per_page", type=int),
        )
        return jsonify(result), 200

    except AppError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list sales")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.post("")
def create_sale_route():
    """
    Record a sale; the product's stock drops by the sold quantity.

    Body: staff_id, product_id, quantity, unit_price_cents, payment_method,
    optional sale_date, customer_name, customer_phone, notes.
    """
    try:
        data = parse_create_sale(request.get_json(silent=True))
        sale = sales_service.create_sale(data)
        return jsonify({"sale": sale}), 201

    except AppError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/daily-report")
def daily_report_route():
    """Daily totals. Query: date=YYYY-MM-DD (default today, UTC)."""
    try:
        report = reporting_service.daily_report(_optional_date("date"))
        return jsonify(report), 200

    except AppError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to build daily report")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/monthly-report")
def monthly_report_route():
    """Monthly totals and top sellers. Query: year, month (default current)."""
    try:
        year = request.args.get("year")
        month = request.args.get("month")
        report = reporting_service.monthly_report(
            year=parse_id(year, "year") if year else None,
            month=parse_id(month, "month") if month else None,
        )
        return jsonify(report), 200

    except AppError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to build monthly report")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/<int:sale_id>")
def get_sale_route(sale_id: int):
    try:
        return jsonify({"sale": sales_service.get_sale(sale_id)}), 200

    except AppError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to get sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.put("/<int:sale_id>")
def update_sale_route(sale_id: int):
    """
    Edit a sale. Quantity changes move stock by the difference.

    staff_id and product_id cannot be changed (400).
    """
    try:
        data = parse_update_sale(request.get_json(silent=True))
        sale = sales_service.update_sale(sale_id, data)
        return jsonify({"sale": sale}), 200

    except AppError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.delete("/<int:sale_id>")
def delete_sale_route(sale_id: int):
    """Remove a sale and restore its quantity to stock."""
    try:
        sales_service.delete_sale(sale_id)
        return jsonify({"success": True, "message": "Sale deleted successfully"}), 200

    except AppError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete sale")
        return jsonify({"error": "Internal server error"}), 500
