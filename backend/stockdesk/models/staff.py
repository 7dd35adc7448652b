from __future__ import annotations

from ..extensions import db
from stockdesk.time_utils import to_utc_z


class Staff(db.Model):
    """
    Staff member a sale is attributed to.

    employee_id is stripped and upper-cased, unique across staff. Deleting a
    staff member leaves their historical sales in place; reports label them
    "Unknown".
    """
    __tablename__ = "staff"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.String(32), nullable=False, unique=True)
    first_name = db.Column(db.String(80), nullable=False)
    last_name = db.Column(db.String(80), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    position = db.Column(db.String(80), nullable=True)
    department = db.Column(db.String(80), nullable=True, index=True)
    phone_number = db.Column(db.String(32), nullable=True)
    hire_date = db.Column(db.DateTime(timezone=True), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "employee_id": self.employee_id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "position": self.position,
            "department": self.department,
            "phone_number": self.phone_number,
            "hire_date": to_utc_z(self.hire_date) if self.hire_date else None,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }
