from __future__ import annotations

from ..extensions import db
from stockdesk.time_utils import to_utc_z


STATUS_IN_STOCK = "IN_STOCK"
STATUS_LOW_STOCK = "LOW_STOCK"
STATUS_OUT_OF_STOCK = "OUT_OF_STOCK"
STATUS_DISCONTINUED = "DISCONTINUED"

PRODUCT_STATUSES = [
    STATUS_IN_STOCK,
    STATUS_LOW_STOCK,
    STATUS_OUT_OF_STOCK,
    STATUS_DISCONTINUED,
]


class Product(db.Model):
    """
    Product master data plus its current stock level.

    STOCK OWNERSHIP:
    - quantity is only written by stock_service.apply_delta (sales) and the
      locked product update path (inventory edits).
    - status is derived from quantity/min_stock by stock_service.derive_status
      at every mutation site. DISCONTINUED is an operator override and is
      never replaced by the derivation.

    SKU: stored stripped and upper-cased, unique across the catalogue.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_products_quantity_nonnegative"),
        db.CheckConstraint("min_stock >= 0", name="ck_products_min_stock_nonnegative"),
        db.CheckConstraint("price_per_unit_cents >= 0", name="ck_products_price_nonnegative"),
        db.Index("ix_products_category_status", "category", "status"),
        db.Index("ix_products_status_quantity", "status", "quantity"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    sku = db.Column(db.String(64), nullable=False, unique=True, index=True)
    name = db.Column(db.String(255), nullable=False, index=True)
    description = db.Column(db.Text, nullable=True)
    category = db.Column(db.String(120), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False, default=0)
    min_stock = db.Column(db.Integer, nullable=False, default=0)
    max_stock = db.Column(db.Integer, nullable=True)
    unit = db.Column(db.String(32), nullable=False, default="bag")

    # Authoritative storage in cents (frontend may only format for display)
    price_per_unit_cents = db.Column(db.Integer, nullable=False)

    status = db.Column(db.String(16), nullable=False, default=STATUS_OUT_OF_STOCK, index=True)

    location = db.Column(db.String(120), nullable=True)
    supplier = db.Column(db.String(120), nullable=True)
    last_restocked = db.Column(db.DateTime(timezone=True), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} quantity={self.quantity} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sku": self.sku,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "quantity": self.quantity,
            "min_stock": self.min_stock,
            "max_stock": self.max_stock,
            "unit": self.unit,
            "price_per_unit_cents": self.price_per_unit_cents,
            "status": self.status,
            "location": self.location,
            "supplier": self.supplier,
            "last_restocked": to_utc_z(self.last_restocked) if self.last_restocked else None,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
