# Overview: Service-layer operations for stock levels; single-product bookkeeping and status derivation.

"""
Stock Ledger

Invariants (authoritative):
- Product.quantity >= 0 at every observable point. apply_delta refuses any
  delta that would take it below zero.
- Product.status is a pure function of (quantity, min_stock) unless an
  operator set DISCONTINUED, which is left alone:
      quantity <= 0              -> OUT_OF_STOCK
      0 < quantity <= min_stock  -> LOW_STOCK
      otherwise                  -> IN_STOCK
- Status is recomputed explicitly (refresh_status) wherever quantity or
  min_stock change. There are no ORM hooks doing it behind the caller's back.

apply_delta only flushes; the caller owns the transaction (see
concurrency.run_in_transaction) and therefore the commit/rollback.
"""

from __future__ import annotations

from sqlalchemy import func

from ..errors import InsufficientStockError
from ..extensions import db
from ..models import Product
from ..models.inventory import (
    PRODUCT_STATUSES,
    STATUS_DISCONTINUED,
    STATUS_IN_STOCK,
    STATUS_LOW_STOCK,
    STATUS_OUT_OF_STOCK,
)


def derive_status(quantity: int, min_stock: int, current_status: str | None = None) -> str:
    if current_status == STATUS_DISCONTINUED:
        return STATUS_DISCONTINUED
    if quantity <= 0:
        return STATUS_OUT_OF_STOCK
    if quantity <= min_stock:
        return STATUS_LOW_STOCK
    return STATUS_IN_STOCK


def refresh_status(product: Product) -> str:
    product.status = derive_status(product.quantity, product.min_stock, product.status)
    return product.status


def insufficient_stock(product: Product, requested: int, *, label: str = "Requested") -> InsufficientStockError:
    return InsufficientStockError(
        f"Insufficient stock. Available: {product.quantity}, {label}: {requested}",
        details={
            "product_id": product.id,
            "available": product.quantity,
            "requested": requested,
        },
    )


def apply_delta(product: Product, delta: int) -> Product:
    """
    Move a product's stock by a signed delta (negative sells, positive restores).

    Raises InsufficientStockError when the result would be negative; the
    product is left untouched in that case.
    """
    new_quantity = product.quantity + delta
    if new_quantity < 0:
        raise insufficient_stock(product, -delta)

    product.quantity = new_quantity
    refresh_status(product)
    db.session.flush()
    return product


def low_stock_products() -> list[Product]:
    """Products that need restocking, emptiest first."""
    return (
        db.session.query(Product)
        .filter(Product.status.in_([STATUS_LOW_STOCK, STATUS_OUT_OF_STOCK]))
        .order_by(Product.quantity.asc(), Product.name.asc(), Product.id.asc())
        .all()
    )


def stock_snapshot() -> dict:
    """Current stock value and status counts across the whole catalogue."""
    totals = db.session.query(
        func.count(Product.id).label("products"),
        func.coalesce(func.sum(Product.quantity), 0).label("quantity"),
        func.coalesce(func.sum(Product.quantity * Product.price_per_unit_cents), 0).label("value"),
        func.count(func.distinct(Product.category)).label("categories"),
    ).one()

    status_counts = {status: 0 for status in PRODUCT_STATUSES}
    rows = db.session.query(Product.status, func.count(Product.id)).group_by(Product.status).all()
    for status, count in rows:
        status_counts[status] = int(count)

    return {
        "total_products": int(totals.products or 0),
        "total_categories": int(totals.categories or 0),
        "total_quantity": int(totals.quantity or 0),
        "total_stock_value_cents": int(totals.value or 0),
        "in_stock_count": status_counts[STATUS_IN_STOCK],
        "low_stock_count": status_counts[STATUS_LOW_STOCK],
        "out_of_stock_count": status_counts[STATUS_OUT_OF_STOCK],
        "discontinued_count": status_counts[STATUS_DISCONTINUED],
    }


def recompute_all_statuses() -> int:
    """Re-derive every product's status. Returns how many rows changed."""
    changed = 0
    for product in db.session.query(Product).order_by(Product.id.asc()).all():
        before = product.status
        if refresh_status(product) != before:
            changed += 1
    db.session.flush()
    return changed
