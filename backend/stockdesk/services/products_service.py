# backend/stockdesk/services/products_service.py
"""
Products Service

Inventory edits made by operators. Together with stock_service.apply_delta
(called from sales_service) this is the only code that writes Product rows.

STATUS RULES:
- quantity or min_stock changed -> status re-derived (DISCONTINUED kept)
- status explicitly set to DISCONTINUED -> stays until an operator changes it
- status explicitly set to anything else -> product re-activated and the
  status re-derived from quantity, so it can never contradict the stock level

Deleting a product that historical sales reference is allowed; those sales
keep the dangling product_id and reports show them as "Unknown".
"""
from __future__ import annotations

from flask import current_app
from sqlalchemy import func, or_

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Product, Sale
from ..models.inventory import STATUS_DISCONTINUED
from ..validation import check_stock_bounds, parse_id
from stockdesk.time_utils import utcnow
from .concurrency import lock_for_update, run_in_transaction
from .stock_service import low_stock_products, refresh_status

PRODUCT_MUTABLE_FIELDS = {
    "sku", "name", "description", "category", "quantity", "min_stock", "max_stock",
    "unit", "price_per_unit_cents", "status", "location", "supplier",
}


def _sku_taken(sku: str, exclude_id: int | None = None) -> bool:
    query = db.session.query(Product.id).filter(Product.sku == sku)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    return query.first() is not None


def _normalize(patch: dict) -> dict:
    if patch.get("sku"):
        return {**patch, "sku": patch["sku"].strip().upper()}
    return patch


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS or k == "status":
            continue
        setattr(p, k, v)


def list_products(
    *,
    category: str | None = None,
    status: str | None = None,
    search: str | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Product listing with optional filters and pagination.

    Args:
        category: exact category match
        status: one of the product statuses
        search: case-insensitive match on name or SKU
        page: Page number (1-indexed). If None, returns all items.
        per_page: Items per page (default 20, max 100)
    """
    base_query = db.session.query(Product)
    if category:
        base_query = base_query.filter(Product.category == category)
    if status:
        base_query = base_query.filter(Product.status == status.upper())
    if search:
        pattern = f"%{search.strip().lower()}%"
        base_query = base_query.filter(
            or_(func.lower(Product.name).like(pattern), func.lower(Product.sku).like(pattern))
        )
    base_query = base_query.order_by(Product.name.asc(), Product.id.asc())

    # If no pagination requested, return all items
    if page is None:
        products = base_query.all()
        return {
            "items": [p.to_dict() for p in products],
            "count": len(products),
        }

    per_page = min(per_page or 20, 100)  # Default 20, max 100
    page = max(page, 1)

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    products = base_query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [p.to_dict() for p in products],
        "count": len(products),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def get_product(product_id: int) -> dict:
    product_id = parse_id(product_id, "product ID")
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found")
    return product.to_dict()


def get_low_stock_products() -> dict:
    products = low_stock_products()
    return {"items": [p.to_dict() for p in products], "count": len(products)}


def create_product(*, patch: dict) -> dict:
    """
    Create product using a validated patch dict (see validation.validate_payload
    and enforce_rules_product).

    Raises:
        ValidationError: max_stock not above min_stock
        ConflictError: SKU already exists
    """
    patch = _normalize(patch)

    def _op() -> Product:
        if _sku_taken(patch["sku"]):
            raise ConflictError("SKU already exists", details={"sku": patch["sku"]})

        p = Product()
        p.quantity = 0
        p.min_stock = 0
        apply_product_patch(p, patch)
        check_stock_bounds(p.min_stock, p.max_stock)
        if p.quantity < 0:
            raise ValidationError("Quantity cannot be negative")

        if patch.get("status") == STATUS_DISCONTINUED:
            p.status = STATUS_DISCONTINUED
        refresh_status(p)
        if p.quantity > 0:
            p.last_restocked = utcnow()

        db.session.add(p)
        db.session.flush()
        return p

    product = run_in_transaction(_op, action="create product")
    return product.to_dict()


def update_product(product_id: int, *, patch: dict) -> dict:
    product_id = parse_id(product_id, "product ID")
    patch = _normalize(patch)

    def _op() -> Product:
        p = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
        if p is None:
            raise NotFoundError("Product not found")

        if "sku" in patch and _sku_taken(patch["sku"], exclude_id=p.id):
            raise ConflictError("SKU already exists", details={"sku": patch["sku"]})

        old_quantity = p.quantity
        apply_product_patch(p, patch)
        check_stock_bounds(p.min_stock, p.max_stock)
        if p.quantity < 0:
            raise ValidationError("Quantity cannot be negative")

        if "status" in patch:
            # Explicit status: DISCONTINUED sticks, anything else re-activates
            p.status = patch["status"] if patch["status"] == STATUS_DISCONTINUED else None
        refresh_status(p)

        if p.quantity > old_quantity:
            p.last_restocked = utcnow()

        db.session.flush()
        return p

    product = run_in_transaction(_op, action="update product")
    return product.to_dict()


def delete_product(product_id: int) -> None:
    product_id = parse_id(product_id, "product ID")

    def _op() -> int:
        p = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
        if p is None:
            raise NotFoundError("Product not found")

        referencing = db.session.query(func.count(Sale.id)).filter(Sale.product_id == p.id).scalar() or 0
        db.session.delete(p)
        db.session.flush()
        return int(referencing)

    orphaned = run_in_transaction(_op, action="delete product")
    if orphaned:
        current_app.logger.warning(
            "Product %s deleted while referenced by %d sale(s); they now report as Unknown",
            product_id, orphaned,
        )
    else:
        current_app.logger.info("Product %s deleted", product_id)
