# Overview: Flask API routes for staff records; parses input and returns JSON responses.

# backend/stockdesk/routes/staff.py
"""Staff routes: the people sales are attributed to."""
from flask import Blueprint, request, current_app

from ..errors import AppError
from ..models import Staff
from ..services import staff_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    ValidationError,
)

STAFF_POLICY = ModelValidationPolicy(
    writable_fields=set(staff_service.STAFF_MUTABLE_FIELDS),
    required_on_create={"employee_id", "first_name", "last_name"},
)

staff_bp = Blueprint("staff", __name__, url_prefix="/api/staff")


def _list_args() -> dict:
    raw_active = (request.args.get("is_active") or "").strip().lower()
    if raw_active and raw_active not in ("true", "false"):
        raise ValidationError("is_active must be true or false")

    return {
        "search": request.args.get("search") or request.args.get("q"),
        "department": request.args.get("department"),
        "position": request.args.get("position"),
        "is_active": (raw_active == "true") if raw_active else None,
        "page": request.args.get("page", type=int),
        "per_page": request.args.get("per_page", type=int),
    }


@staff_bp.get("")
def list_staff():
    """
    List staff, newest first.

    Query params:
    - search: employee id, name, department or position substring
    - department, position: substring match
    - is_active: true | false
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 20, max 100)
    """
    try:
        return staff_service.list_staff(**_list_args())
    except ValidationError as e:
        return e.to_dict(), 400


@staff_bp.get("/search")
def search_staff():
    """Same filters as the listing; `q` is accepted as an alias for `search`."""
    try:
        return staff_service.search_staff(**_list_args())
    except ValidationError as e:
        return e.to_dict(), 400


@staff_bp.get("/<int:staff_id>")
def get_staff_route(staff_id: int):
    try:
        return {"staff": staff_service.get_staff(staff_id)}, 200
    except AppError as e:
        return e.to_dict(), e.status_code
    except Exception:
        current_app.logger.exception("Failed to get staff")
        return {"error": "Internal server error"}, 500


@staff_bp.post("")
def create_staff_route():
    payload = request.get_json(silent=True)

    try:
        patch = validate_payload(model=Staff, payload=payload, policy=STAFF_POLICY, partial=False)
    except ValidationError as e:
        return e.to_dict(), 400

    try:
        created = staff_service.create_staff(patch=patch)
    except AppError as e:
        return e.to_dict(), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create staff")
        return {"error": "Internal server error"}, 500

    return {"staff": created}, 201


@staff_bp.put("/<int:staff_id>")
def update_staff_route(staff_id: int):
    payload = request.get_json(silent=True)

    try:
        patch = validate_payload(model=Staff, payload=payload, policy=STAFF_POLICY, partial=True)
    except ValidationError as e:
        return e.to_dict(), 400

    try:
        updated = staff_service.update_staff(staff_id, patch=patch)
    except AppError as e:
        return e.to_dict(), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update staff")
        return {"error": "Internal server error"}, 500

    return {"staff": updated}, 200


@staff_bp.delete("/<int:staff_id>")
def delete_staff_route(staff_id: int):
    """
    Delete a staff member.

    Their past sales are kept; reports list them as "Unknown".
    """
    try:
        staff_service.delete_staff(staff_id)
    except AppError as e:
        return e.to_dict(), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete staff")
        return {"error": "Internal server error"}, 500

    return {"ok": True}, 200
