"""
Sales Service - the only writer of Sale rows

WHY: A sale and the stock it consumes must change together. Every write
path here runs inside concurrency.run_in_transaction, so either the sale
row and the product quantity both change, or neither does.

Stock movements per operation:
- create_sale: product.quantity -= sale.quantity
- update_sale: product.quantity -= (new_quantity - old_quantity)
- delete_sale: product.quantity += sale.quantity (skipped if the product is gone)

A sale never moves to another product or staff member after creation.
"""

from __future__ import annotations

from datetime import datetime, time

from flask import current_app

from ..errors import InvalidStateError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Product, Sale, Staff
from ..models.inventory import STATUS_DISCONTINUED
from ..models.sales import PAYMENT_METHODS
from ..validation import CreateSaleInput, UpdateSaleInput, parse_id
from stockdesk.time_utils import utcnow
from .concurrency import lock_for_update, run_in_transaction
from .stock_service import apply_delta, insufficient_stock

DEFAULT_PER_PAGE = 10
MAX_PER_PAGE = 100


def compute_total_amount(quantity: int, unit_price_cents: int) -> int:
    return quantity * unit_price_cents


def _check_create_input(data: CreateSaleInput) -> None:
    parse_id(data.staff_id, "staff ID")
    parse_id(data.product_id, "product ID")
    if data.quantity <= 0:
        raise ValidationError("Quantity must be greater than 0")
    if data.unit_price_cents < 0:
        raise ValidationError("Unit price cannot be negative")
    if data.payment_method not in PAYMENT_METHODS:
        raise ValidationError(f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}")


def _load_sale(sale_id: int, *, lock: bool = False) -> Sale:
    query = db.session.query(Sale).filter_by(id=sale_id)
    if lock:
        query = lock_for_update(query)
    sale = query.first()
    if sale is None:
        raise NotFoundError("Sale not found")
    return sale


def _load_product(product_id: int, *, lock: bool = False) -> Product | None:
    query = db.session.query(Product).filter_by(id=product_id)
    if lock:
        query = lock_for_update(query)
    return query.first()


def serialize_sale(sale: Sale) -> dict:
    """Sale row plus the display fields of the product and staff it references."""
    data = sale.to_dict()

    product = db.session.get(Product, sale.product_id)
    data["product"] = {
        "id": product.id,
        "name": product.name,
        "sku": product.sku,
        "category": product.category,
        "unit": product.unit,
        "price_per_unit_cents": product.price_per_unit_cents,
    } if product else None

    staff = db.session.get(Staff, sale.staff_id)
    data["staff"] = {
        "id": staff.id,
        "employee_id": staff.employee_id,
        "name": staff.full_name,
        "email": staff.email,
    } if staff else None

    return data


def get_sale(sale_id: int) -> dict:
    sale_id = parse_id(sale_id, "sale ID")
    return serialize_sale(_load_sale(sale_id))


def list_sales(
    *,
    start_date=None,
    end_date=None,
    staff_id: int | None = None,
    product_id: int | None = None,
    payment_method: str | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Sales newest first, filtered by date range (both ends inclusive; a bare
    end date covers that whole day), staff, product and payment method.
    """
    query = db.session.query(Sale)

    if start_date is not None:
        if not isinstance(start_date, datetime):
            start_date = datetime.combine(start_date, time.min)
        query = query.filter(Sale.sale_date >= start_date)
    if end_date is not None:
        if not isinstance(end_date, datetime):
            end_date = datetime.combine(end_date, time.max)
        query = query.filter(Sale.sale_date <= end_date)
    if staff_id is not None:
        query = query.filter(Sale.staff_id == staff_id)
    if product_id is not None:
        query = query.filter(Sale.product_id == product_id)
    if payment_method:
        query = query.filter(Sale.payment_method == payment_method)

    per_page = min(per_page or DEFAULT_PER_PAGE, MAX_PER_PAGE)
    page = max(page or 1, 1)

    total = query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    sales = (
        query.order_by(Sale.sale_date.desc(), Sale.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )

    return {
        "items": [serialize_sale(s) for s in sales],
        "count": len(sales),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def create_sale(data: CreateSaleInput) -> dict:
    """
    Record a sale and take its quantity out of stock.

    Raises:
        ValidationError: malformed ids, quantity <= 0, negative price
        NotFoundError: product does not exist
        InvalidStateError: product is DISCONTINUED
        InsufficientStockError: requested quantity exceeds stock
        TransactionFailedError: storage failure (nothing was written)
    """
    _check_create_input(data)

    def _op() -> Sale:
        product = _load_product(data.product_id, lock=True)
        if product is None:
            raise NotFoundError("Product not found")

        if product.status == STATUS_DISCONTINUED:
            raise InvalidStateError(
                "Cannot sell discontinued product",
                details={"product_id": product.id},
            )

        if product.quantity < data.quantity:
            raise insufficient_stock(product, data.quantity)

        sale = Sale(
            sale_date=data.sale_date or utcnow(),
            staff_id=data.staff_id,
            product_id=product.id,
            quantity=data.quantity,
            unit_price_cents=data.unit_price_cents,
            total_amount_cents=compute_total_amount(data.quantity, data.unit_price_cents),
            customer_name=data.customer_name,
            customer_phone=data.customer_phone,
            payment_method=data.payment_method,
            notes=data.notes,
        )
        db.session.add(sale)

        apply_delta(product, -data.quantity)
        return sale

    sale = run_in_transaction(_op, action="create sale")
    current_app.logger.info(
        "Sale %s recorded: product=%s quantity=%s total_cents=%s",
        sale.id, sale.product_id, sale.quantity, sale.total_amount_cents,
    )
    return serialize_sale(sale)


def update_sale(sale_id: int, data: UpdateSaleInput) -> dict:
    """
    Edit a sale. A quantity change moves stock by the difference:
    selling more needs that much extra stock, selling less puts it back.
    total_amount_cents is recomputed from the final quantity and price.
    """
    sale_id = parse_id(sale_id, "sale ID")

    def _op() -> Sale:
        sale = _load_sale(sale_id, lock=True)

        if data.is_set("quantity"):
            new_quantity = data.quantity
            if new_quantity is None or new_quantity <= 0:
                raise ValidationError("Quantity must be greater than 0")

            diff = new_quantity - sale.quantity
            if diff != 0:
                product = _load_product(sale.product_id, lock=True)
                if product is None:
                    raise NotFoundError("Product not found")

                if diff > 0 and product.quantity < diff:
                    raise insufficient_stock(product, diff, label="Additional needed")

                apply_delta(product, -diff)
                sale.quantity = new_quantity

        if data.is_set("sale_date"):
            if data.sale_date is None:
                raise ValidationError("sale_date cannot be null")
            sale.sale_date = data.sale_date

        if data.is_set("unit_price_cents"):
            if data.unit_price_cents is None or data.unit_price_cents < 0:
                raise ValidationError("Unit price cannot be negative")
            sale.unit_price_cents = data.unit_price_cents

        if data.is_set("payment_method"):
            if data.payment_method not in PAYMENT_METHODS:
                raise ValidationError(f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}")
            sale.payment_method = data.payment_method

        for field in ("customer_name", "customer_phone", "notes"):
            if data.is_set(field):
                setattr(sale, field, getattr(data, field))

        sale.total_amount_cents = compute_total_amount(sale.quantity, sale.unit_price_cents)
        db.session.flush()
        return sale

    sale = run_in_transaction(_op, action="update sale")
    current_app.logger.info(
        "Sale %s updated: quantity=%s total_cents=%s", sale.id, sale.quantity, sale.total_amount_cents,
    )
    return serialize_sale(sale)


def delete_sale(sale_id: int) -> None:
    """
    Remove a sale and give its quantity back to the product.

    If the product has since been deleted the sale is still removed; there
    is no stock left to restore.
    """
    sale_id = parse_id(sale_id, "sale ID")

    def _op() -> int | None:
        sale = _load_sale(sale_id, lock=True)

        product = _load_product(sale.product_id, lock=True)
        if product is None:
            current_app.logger.warning(
                "Deleting sale %s whose product %s no longer exists; no stock restored",
                sale.id, sale.product_id,
            )
        else:
            apply_delta(product, sale.quantity)

        db.session.delete(sale)
        db.session.flush()
        return sale.product_id if product is not None else None

    restored_product_id = run_in_transaction(_op, action="delete sale")
    current_app.logger.info("Sale %s deleted (stock restored to product %s)", sale_id, restored_product_id)
