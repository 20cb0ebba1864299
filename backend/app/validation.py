from __future__ import annotations
from datetime import datetime
from app.time_utils import parse_iso_datetime

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta

from app.errors import ValidationError


# Maximum price: 9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_PRICE_CENTS = 999_999_999

# Upper bound for a stock level and for a single product sell
MAX_QUANTITY = 1_000_000

# Largest value a 64-bit integer column can hold
MAX_STORED_INT = 2**63 - 1


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def coerce_int(key: str, value: Any) -> int:
    """Strict integer coercion: rejects bools, floats, decimals and scientific notation."""
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
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def coerce_positive_int(key: str, value: Any) -> int:
    if value is None:
        raise ValidationError(f"{key} is required")
    val = coerce_int(key, value)
    if val <= 0:
        raise ValidationError(f"{key} must be > 0")
    return val


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return coerce_int(col.key, value)

    # Booleans
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        return bool(value)

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        if not isinstance(value, str):
            raise ValidationError(f"{col.key} must be a string")
        return value.strip()

    # Default: leave as-is
    return value


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


def _check_price(patch: dict, key: str, *, allow_zero: bool = False) -> None:
    if key not in patch or patch[key] is None:
        return
    price = patch[key]
    if not isinstance(price, int) or isinstance(price, bool):
        raise ValidationError(f"{key} must be an integer")
    if allow_zero:
        if price < 0:
            raise ValidationError(f"{key} must be >= 0")
    elif price <= 0:
        raise ValidationError(f"{key} must be > 0")
    if price > MAX_PRICE_CENTS:
        raise ValidationError(f"{key} cannot exceed {MAX_PRICE_CENTS} ({MAX_PRICE_CENTS / 100:,.2f})")


def _check_quantity(patch: dict, key: str, *, allow_zero: bool, capped: bool = True) -> None:
    if key not in patch or patch[key] is None:
        return
    qty = patch[key]
    if allow_zero:
        if qty < 0:
            raise ValidationError(f"{key} must be >= 0")
    elif qty <= 0:
        raise ValidationError(f"{key} must be > 0")
    if capped and qty > MAX_QUANTITY:
        raise ValidationError(f"{key} cannot exceed {MAX_QUANTITY}")


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    _check_price(patch, "initial_price_cents")
    _check_price(patch, "selling_price_cents")
    _check_quantity(patch, "quantity", allow_zero=True)
    if "category_id" in patch and patch["category_id"] is not None and patch["category_id"] <= 0:
        raise ValidationError("category_id must be > 0")


def enforce_rules_service(patch: dict) -> None:
    _check_price(patch, "default_price_cents")


def enforce_rules_sell(patch: dict, *, capped: bool = True) -> None:
    # A sell needs a positive whole amount and a positive unit price;
    # the price may differ from the list price (discounts / markups).
    # Service sells pass capped=False: services have no stock to bound the amount.
    for key in ("amount", "sold_price_cents"):
        if key not in patch or patch[key] is None:
            raise ValidationError(f"{key} is required")
        patch[key] = coerce_int(key, patch[key])
    _check_quantity(patch, "amount", allow_zero=False, capped=capped)
    _check_price(patch, "sold_price_cents")
    _check_total(patch["amount"], patch["sold_price_cents"])


def _check_total(amount: int, price: int) -> None:
    if amount * price > MAX_STORED_INT:
        raise ValidationError("amount * sold_price_cents is too large to record")


def enforce_rules_sell_correction(patch: dict) -> None:
    # No amount cap: product corrections are bounded by the stock check.
    _check_quantity(patch, "amount", allow_zero=False, capped=False)
    _check_price(patch, "sold_price_cents")


def enforce_rules_payment(patch: dict) -> None:
    if "amount_cents" not in patch or patch["amount_cents"] is None:
        raise ValidationError("amount_cents is required")
    patch["amount_cents"] = coerce_int("amount_cents", patch["amount_cents"])
    _check_price(patch, "amount_cents")


def enforce_rules_expense(patch: dict) -> None:
    _check_price(patch, "amount_cents")
    _check_price(patch, "unit_price_cents")
    _check_quantity(patch, "quantity", allow_zero=False)


def require_json_object(payload: Any) -> dict:
    """Request bodies are JSON objects; a missing body is treated as empty."""
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    return payload
