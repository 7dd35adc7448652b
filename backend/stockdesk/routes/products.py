# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/stockdesk/routes/products.py
"""
Product catalogue and stock-level routes.

Stock status is never taken from the client as-is: the only status a client
may set is DISCONTINUED (anything else re-activates the product and the
status is derived from quantity / min_stock).
"""
from flask import Blueprint, request, current_app

from ..errors import AppError
from ..models import Product
from ..models.inventory import PRODUCT_STATUSES
from ..services import products_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields=set(products_service.PRODUCT_MUTABLE_FIELDS),
    required_on_create={"sku", "name", "category", "price_per_unit_cents"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
def list_products():
    """
    List products.

    Query params:
    - category: exact match
    - status: IN_STOCK | LOW_STOCK | OUT_OF_STOCK | DISCONTINUED
    - search: name or SKU substring
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 20, max 100)
    """
    status = request.args.get("status")
    if status and status.upper() not in PRODUCT_STATUSES:
        return {"error": f"status must be one of: {', '.join(PRODUCT_STATUSES)}", "code": "INVALID_INPUT"}, 400

    return products_service.list_products(
        category=request.args.get("category"),
        status=status,
        search=request.args.get("search"),
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    )


@products_bp.get("/low-stock")
def low_stock_products():
    """Products at or below their minimum stock (DISCONTINUED excluded)."""
    return products_service.get_low_stock_products()


@products_bp.get("/<int:product_id>")
def get_product_route(product_id: int):
    try:
        return {"product": products_service.get_product(product_id)}, 200
    except AppError as e:
        return e.to_dict(), e.status_code


@products_bp.post("")
def create_product_route():
    payload = request.get_json(silent=True)

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
    except ValidationError as e:
        return e.to_dict(), 400

    try:
        created = products_service.create_product(patch=patch)
    except AppError as e:
        return e.to_dict(), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create product")
        return {"error": "Internal server error"}, 500

    return {"product": created}, 201


@products_bp.put("/<int:product_id>")
def update_product_route(product_id: int):
    payload = request.get_json(silent=True)

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
    except ValidationError as e:
        return e.to_dict(), 400

    try:
        updated = products_service.update_product(product_id, patch=patch)
    except AppError as e:
        return e.to_dict(), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update product")
        return {"error": "Internal server error"}, 500

    return {"product": updated}, 200


@products_bp.delete("/<int:product_id>")
def delete_product_route(product_id: int):
    """
    Delete a product.

    Past sales of the product are kept; reports list them as "Unknown".
    """
    try:
        products_service.delete_product(product_id)
    except AppError as e:
        return e.to_dict(), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return {"error": "Internal server error"}, 500

    return {"ok": True}, 200
