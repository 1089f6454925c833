# Overview: Payload validation against model columns, money parsing and business rules.

"""
Request payload validation.

Routes declare which columns a client may write (ModelValidationPolicy) and
validate_payload() checks the JSON body against the SQLAlchemy column
metadata of the model: type, nullability and String length. The result is
a patch dict holding only allowlisted, normalized values.

Money crosses the API as integer cents. The CSV exchange is the one place
decimal amounts come in, via parse_money_to_cents().
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text


# 9,999,999.99 in the shop currency
MAX_PRICE_CENTS = 999_999_999

# 100.00%
MAX_TAX_RATE_BPS = 10_000


class ValidationError(ValueError):
    """Bad input (400)."""


class ConflictError(ValueError):
    """Request clashes with stored data, e.g. a record still referenced (409)."""


class NotFoundError(LookupError):
    """Referenced record does not exist (404)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    writable_fields: set[str]
    required_on_create: set[str] | None = None


def _as_int(key: str, value: Any) -> int:
    # bool is an int subclass; JSON true/false is never a quantity
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    if isinstance(value, str):
        text = value.strip()
        sign, digits = (text[0], text[1:]) if text[:1] in ("-", "+") else ("", text)
        if digits.isdigit() and digits.isascii():
            return int(sign + digits)
    raise ValidationError(f"{key} must be an integer")


def _as_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ValidationError(f"{key} must be a boolean")


def _as_text(key: str, column, value: Any) -> str | None:
    if not isinstance(value, (str, int, float)) or isinstance(value, bool):
        raise ValidationError(f"{key} must be a string")
    text = str(value).strip()

    if not text:
        if not column.nullable:
            raise ValidationError(f"{key} cannot be blank")
        return None

    length = getattr(column.type, "length", None)
    if length and len(text) > length:
        raise ValidationError(f"{key} exceeds max length {length}")
    return text


def _normalize(key: str, column, value: Any):
    if value is None:
        if not column.nullable:
            raise ValidationError(f"{key} cannot be null")
        return None

    coltype = column.type
    if isinstance(coltype, Boolean):
        return _as_bool(key, value)
    if isinstance(coltype, Integer):
        return _as_int(key, value)
    if isinstance(coltype, (String, Text)):
        return _as_text(key, column, value)
    return value


def validate_payload(
    *,
    model,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Check a JSON body against the policy and the model's columns.

    partial=False is create: every field in required_on_create must be
    present. partial=True is update: only the supplied keys are checked.

    Raises:
        ValidationError: Unknown or non-writable field, missing required
            field, or a value the column cannot hold
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    columns = {c.key: c for c in model.__mapper__.columns}

    for key in payload:
        if key not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {key}")
        if key not in columns:
            raise ValidationError(f"Unknown field: {key}")

    if not partial:
        missing = sorted((policy.required_on_create or set()) - set(payload))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    return {key: _normalize(key, columns[key], value) for key, value in payload.items()}


def parse_money_to_cents(value: Any, field: str = "amount") -> int:
    """"12.50", 12.5 or 12 to integer cents, half-up to the nearest cent."""
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"{field} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a number")
    if abs(amount) > cents_to_decimal(MAX_PRICE_CENTS):
        raise ValidationError(f"{field} cannot exceed {format_cents(MAX_PRICE_CENTS)}")
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def cents_to_decimal(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(Decimal("0.01"))


def format_cents(cents: int) -> str:
    return str(cents_to_decimal(cents))


def enforce_rules_product(patch: dict) -> None:
    """Range checks for product money and stock."""
    for field in ("price_cents", "cost_cents"):
        amount = patch.get(field)
        if amount is None:
            continue
        if amount < 0:
            raise ValidationError(f"{field} must be >= 0")
        if amount > MAX_PRICE_CENTS:
            raise ValidationError(f"{field} cannot exceed {MAX_PRICE_CENTS} ({format_cents(MAX_PRICE_CENTS)})")

    stock = patch.get("stock")
    if stock is not None and stock < 0:
        raise ValidationError("stock must be >= 0")


def enforce_rules_settings(patch: dict) -> None:
    rate = patch.get("tax_rate_bps")
    if rate is not None and not 0 <= rate <= MAX_TAX_RATE_BPS:
        raise ValidationError(f"tax_rate_bps must be between 0 and {MAX_TAX_RATE_BPS}")


def require_positive_int(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer")
    if value <= 0:
        raise ValidationError(f"{field} must be > 0")
    return value
