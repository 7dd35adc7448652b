from __future__ import annotations
from datetime import datetime
from stockdesk.time_utils import parse_iso_datetime

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError
from .models.inventory import PRODUCT_STATUSES
from .models.sales import PAYMENT_METHODS


# Maximum price: $9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_PRICE_CENTS = 999_999_999

# Sale edits never move a sale to another product or staff member
SALE_IMMUTABLE_FIELDS = {"staff_id", "product_id"}


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


@dataclass(frozen=True)
class CreateSaleInput:
    staff_id: int
    product_id: int
    quantity: int
    unit_price_cents: int
    payment_method: str
    sale_date: datetime | None = None
    customer_name: str | None = None
    customer_phone: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class UpdateSaleInput:
    """
    Partial sale edit. Only names listed in `provided` are applied, which
    lets a client clear an optional text field by sending null.
    """
    sale_date: datetime | None = None
    quantity: int | None = None
    unit_price_cents: int | None = None
    customer_name: str | None = None
    customer_phone: str | None = None
    payment_method: str | None = None
    notes: str | None = None
    provided: frozenset = frozenset()

    @classmethod
    def of(cls, **changes) -> "UpdateSaleInput":
        return cls(provided=frozenset(changes), **changes)

    def is_set(self, name: str) -> bool:
        return name in self.provided


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_int(key: str, value: Any) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    # Reject floats explicitly
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def _coerce_datetime(key: str, value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            dt = parse_iso_datetime(value)
        except ValueError:
            raise ValidationError(f"{key} must be an ISO-8601 datetime")
        if dt is None:
            raise ValidationError(f"{key} must be an ISO-8601 datetime")
        return dt
    raise ValidationError(f"{key} must be a datetime")


def _coerce_text(key: str, value: Any, max_length: int | None = None) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    if max_length and len(text) > max_length:
        raise ValidationError(f"{key} exceeds max length {max_length}")
    return text or None


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        return _coerce_int(col.key, value)

    # Booleans - JSON true/false, or the strings "true"/"false"
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in ("true", "false"):
            return value.strip().lower() == "true"
        raise ValidationError(f"{col.key} must be a boolean")

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        return _coerce_datetime(col.key, value)

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    # Default: leave as-is
    return value


def parse_id(value: Any, label: str = "id") -> int:
    """
    Format check for entity identifiers (positive integers).

    Existence is never checked here; this only rejects malformed ids early,
    before any storage access.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"Invalid {label}")
    try:
        ident = _coerce_int(label, value)
    except ValidationError:
        raise ValidationError(f"Invalid {label}")
    if ident <= 0:
        raise ValidationError(f"Invalid {label}")
    return ident


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        # NULL handling
        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def _check_price(key: str, price: int) -> None:
    if price < 0:
        raise ValidationError(f"{key} must be >= 0")
    if price > MAX_PRICE_CENTS:
        raise ValidationError(f"{key} cannot exceed {MAX_PRICE_CENTS} (${MAX_PRICE_CENTS / 100:,.2f})")


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    if patch.get("sku") is not None:
        patch["sku"] = patch["sku"].upper()

    if patch.get("price_per_unit_cents") is not None:
        _check_price("price_per_unit_cents", patch["price_per_unit_cents"])

    if patch.get("quantity") is not None and patch["quantity"] < 0:
        raise ValidationError("Quantity cannot be negative")

    if patch.get("min_stock") is not None and patch["min_stock"] < 0:
        raise ValidationError("Minimum stock cannot be negative")

    if patch.get("max_stock") is not None and patch["max_stock"] < 0:
        raise ValidationError("Maximum stock cannot be negative")

    if "status" in patch:
        status = patch["status"]
        if status is not None:
            status = status.upper()
            patch["status"] = status
        if status not in PRODUCT_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(PRODUCT_STATUSES)}")


def check_stock_bounds(min_stock: int, max_stock: int | None) -> None:
    if max_stock is not None and max_stock <= min_stock:
        raise ValidationError("Maximum stock must be greater than minimum stock")


def _payment_method(value: Any) -> str:
    method = str(value).strip().upper() if value is not None else ""
    if method not in PAYMENT_METHODS:
        raise ValidationError(f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}")
    return method


def _positive_quantity(value: Any) -> int:
    quantity = _coerce_int("quantity", value)
    if quantity <= 0:
        raise ValidationError("Quantity must be greater than 0")
    return quantity


def _unit_price(value: Any) -> int:
    price = _coerce_int("unit_price_cents", value)
    if price < 0:
        raise ValidationError("Unit price cannot be negative")
    _check_price("unit_price_cents", price)
    return price


CREATE_SALE_FIELDS = {
    "staff_id", "product_id", "quantity", "unit_price_cents", "payment_method",
    "sale_date", "customer_name", "customer_phone", "notes",
}
UPDATE_SALE_FIELDS = CREATE_SALE_FIELDS - SALE_IMMUTABLE_FIELDS


def parse_create_sale(payload: Any) -> CreateSaleInput:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    unknown = sorted(k for k in payload if k not in CREATE_SALE_FIELDS)
    if unknown:
        raise ValidationError(f"Field not allowed: {unknown[0]}")

    required = ("staff_id", "product_id", "quantity", "unit_price_cents", "payment_method")
    missing = [f for f in required if payload.get(f) is None]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    sale_date = payload.get("sale_date")
    return CreateSaleInput(
        staff_id=parse_id(payload["staff_id"], "staff ID"),
        product_id=parse_id(payload["product_id"], "product ID"),
        quantity=_positive_quantity(payload["quantity"]),
        unit_price_cents=_unit_price(payload["unit_price_cents"]),
        payment_method=_payment_method(payload["payment_method"]),
        sale_date=_coerce_datetime("sale_date", sale_date) if sale_date is not None else None,
        customer_name=_coerce_text("customer_name", payload.get("customer_name"), 120),
        customer_phone=_coerce_text("customer_phone", payload.get("customer_phone"), 32),
        notes=_coerce_text("notes", payload.get("notes")),
    )


def parse_update_sale(payload: Any) -> UpdateSaleInput:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    reassigned = sorted(k for k in payload if k in SALE_IMMUTABLE_FIELDS)
    if reassigned:
        raise ValidationError(
            f"{reassigned[0]} cannot be changed on an existing sale; delete it and record a new sale",
        )

    unknown = sorted(k for k in payload if k not in UPDATE_SALE_FIELDS)
    if unknown:
        raise ValidationError(f"Field not allowed: {unknown[0]}")

    changes: dict[str, Any] = {}
    for key, raw in payload.items():
        if key in ("customer_name", "customer_phone", "notes"):
            limit = {"customer_name": 120, "customer_phone": 32}.get(key)
            changes[key] = _coerce_text(key, raw, limit)
            continue

        if raw is None:
            raise ValidationError(f"{key} cannot be null")
        if key == "quantity":
            changes[key] = _positive_quantity(raw)
        elif key == "unit_price_cents":
            changes[key] = _unit_price(raw)
        elif key == "payment_method":
            changes[key] = _payment_method(raw)
        elif key == "sale_date":
            changes[key] = _coerce_datetime(key, raw)

    return UpdateSaleInput.of(**changes)
