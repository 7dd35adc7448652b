from __future__ import annotations

from ..extensions import db
from stockdesk.time_utils import to_utc_z, utcnow


PAYMENT_CASH = "CASH"
PAYMENT_CARD = "CARD"
PAYMENT_TRANSFER = "TRANSFER"
PAYMENT_CHEQUE = "CHEQUE"

PAYMENT_METHODS = [
    PAYMENT_CASH,
    PAYMENT_CARD,
    PAYMENT_TRANSFER,
    PAYMENT_CHEQUE,
]


class Sale(db.Model):
    """
    One sale of one product by one staff member.

    Created, edited and removed only through sales_service, which moves the
    product's stock in the same transaction.

    total_amount_cents == quantity * unit_price_cents after every write
    (computed explicitly by sales_service.compute_total_amount).

    staff_id / product_id are plain indexed integers rather than foreign
    keys: products may be deleted while historical sales still point at
    them, and reports label those as "Unknown".
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_sales_quantity_positive"),
        db.CheckConstraint("unit_price_cents >= 0", name="ck_sales_unit_price_nonnegative"),
        db.Index("ix_sales_staff_date", "staff_id", "sale_date"),
        db.Index("ix_sales_product_date", "product_id", "sale_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    sale_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    staff_id = db.Column(db.Integer, nullable=False, index=True)
    product_id = db.Column(db.Integer, nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    total_amount_cents = db.Column(db.Integer, nullable=False)

    customer_name = db.Column(db.String(120), nullable=True)
    customer_phone = db.Column(db.String(32), nullable=True)
    payment_method = db.Column(db.String(16), nullable=False, index=True)
    notes = db.Column(db.Text, nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_date": to_utc_z(self.sale_date),
            "staff_id": self.staff_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "total_amount_cents": self.total_amount_cents,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "payment_method": self.payment_method,
            "notes": self.notes,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
