# backend/stockdesk/services/staff_service.py
"""
Staff Service

The people sales are attributed to. Sales only keep a staff_id, so this is
where names, positions and departments shown in sale details and reports
come from.

Deleting a staff member is allowed while sales reference them; those sales
keep the dangling staff_id and reports show them as "Unknown".
"""
from __future__ import annotations

from flask import current_app
from sqlalchemy import func, or_

from ..errors import ConflictError, NotFoundError
from ..extensions import db
from ..models import Sale, Staff
from ..validation import parse_id
from .concurrency import lock_for_update, run_in_transaction

STAFF_MUTABLE_FIELDS = {
    "employee_id", "first_name", "last_name", "email", "position",
    "department", "phone_number", "hire_date", "is_active",
}


def _employee_id_taken(employee_id: str, exclude_id: int | None = None) -> bool:
    query = db.session.query(Staff.id).filter(Staff.employee_id == employee_id)
    if exclude_id is not None:
        query = query.filter(Staff.id != exclude_id)
    return query.first() is not None


def _normalize(patch: dict) -> dict:
    if patch.get("employee_id"):
        return {**patch, "employee_id": patch["employee_id"].strip().upper()}
    return patch


def apply_staff_patch(s: Staff, patch: dict) -> None:
    for k, v in patch.items():
        if k not in STAFF_MUTABLE_FIELDS:
            continue
        setattr(s, k, v)


def list_staff(
    *,
    search: str | None = None,
    department: str | None = None,
    position: str | None = None,
    is_active: bool | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Staff listing, newest first.

    Args:
        search: case-insensitive match on employee id, name, department or position
        department / position: case-insensitive substring match
        is_active: only active (True) or inactive (False) staff
        page: Page number (1-indexed). If None, returns all items.
        per_page: Items per page (default 20, max 100)
    """
    base_query = db.session.query(Staff)
    if is_active is not None:
        base_query = base_query.filter(Staff.is_active.is_(is_active))
    if department:
        base_query = base_query.filter(func.lower(Staff.department).like(f"%{department.strip().lower()}%"))
    if position:
        base_query = base_query.filter(func.lower(Staff.position).like(f"%{position.strip().lower()}%"))
    if search:
        pattern = f"%{search.strip().lower()}%"
        base_query = base_query.filter(
            or_(
                func.lower(Staff.employee_id).like(pattern),
                func.lower(Staff.first_name).like(pattern),
                func.lower(Staff.last_name).like(pattern),
                func.lower(Staff.department).like(pattern),
                func.lower(Staff.position).like(pattern),
            )
        )
    base_query = base_query.order_by(Staff.created_at.desc(), Staff.id.desc())

    if page is None:
        members = base_query.all()
        return {
            "items": [s.to_dict() for s in members],
            "count": len(members),
        }

    per_page = min(per_page or 20, 100)  # Default 20, max 100
    page = max(page, 1)

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    members = base_query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [s.to_dict() for s in members],
        "count": len(members),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def search_staff(**filters) -> dict:
    """Search shares the listing filters and pagination."""
    return list_staff(**filters)


def get_staff(staff_id: int) -> dict:
    staff_id = parse_id(staff_id, "staff ID")
    member = db.session.get(Staff, staff_id)
    if member is None:
        raise NotFoundError("Staff not found")
    return member.to_dict()


def create_staff(*, patch: dict) -> dict:
    """
    Create a staff member from a validated patch dict.

    Raises:
        ConflictError: employee ID already exists
    """
    patch = _normalize(patch)

    def _op() -> Staff:
        if _employee_id_taken(patch["employee_id"]):
            raise ConflictError("Employee ID already exists", details={"employee_id": patch["employee_id"]})

        s = Staff(is_active=True)
        apply_staff_patch(s, patch)
        db.session.add(s)
        db.session.flush()
        return s

    member = run_in_transaction(_op, action="create staff")
    current_app.logger.info("Staff %s created (%s)", member.id, member.employee_id)
    return member.to_dict()


def update_staff(staff_id: int, *, patch: dict) -> dict:
    staff_id = parse_id(staff_id, "staff ID")
    patch = _normalize(patch)

    def _op() -> Staff:
        s = lock_for_update(db.session.query(Staff).filter_by(id=staff_id)).first()
        if s is None:
            raise NotFoundError("Staff not found")

        if patch.get("employee_id") and _employee_id_taken(patch["employee_id"], exclude_id=s.id):
            raise ConflictError("Employee ID already exists", details={"employee_id": patch["employee_id"]})

        apply_staff_patch(s, patch)
        db.session.flush()
        return s

    member = run_in_transaction(_op, action="update staff")
    return member.to_dict()


def delete_staff(staff_id: int) -> None:
    staff_id = parse_id(staff_id, "staff ID")

    def _op() -> int:
        s = lock_for_update(db.session.query(Staff).filter_by(id=staff_id)).first()
        if s is None:
            raise NotFoundError("Staff not found")

        referencing = db.session.query(func.count(Sale.id)).filter(Sale.staff_id == s.id).scalar() or 0
        db.session.delete(s)
        db.session.flush()
        return int(referencing)

    orphaned = run_in_transaction(_op, action="delete staff")
    if orphaned:
        current_app.logger.warning(
            "Staff %s deleted while referenced by %d sale(s); they now report as Unknown",
            staff_id, orphaned,
        )
    else:
        current_app.logger.info("Staff %s deleted", staff_id)
