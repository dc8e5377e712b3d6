"""Validation helpers shared across the garage ledger services."""

from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, Mapping, Optional

from .exceptions import ValidationError
from .models import MAX_AMOUNT_EXPONENT, PAYMENT_METHODS, SERVICE_CATEGORIES, coerce_amount, normalize_choice, parse_date


def parse_amount(raw: object, field: str, *, required: bool = False) -> Decimal:
    """Convert raw form input to a non-negative Decimal.

    Blank or malformed input counts as zero. A required blank value, a negative
    number or one of magnitude 10**15 and above is an error.
    """
    if required and (raw is None or not str(raw).strip()):
        raise ValidationError(f"{field} is required")
    amount = coerce_amount(raw)
    if not amount and _too_large(raw):
        raise ValidationError(f"{field} is too large")
    if amount < 0:
        raise ValidationError(f"{field} cannot be negative")
    return amount


def _too_large(raw: object) -> bool:
    try:
        value = Decimal(str(raw).replace(",", "").strip())
    except InvalidOperation:
        return False
    return value.is_finite() and value.adjusted() >= MAX_AMOUNT_EXPONENT


def validate_required_str(value: object, field: str, max_length: int) -> str:
    if value is None:
        raise ValidationError(f"{field} cannot be empty")
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    trimmed = value.strip()
    if not trimmed:
        raise ValidationError(f"{field} cannot be empty")
    if len(trimmed) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return trimmed


def validate_optional_str(value: object, field: str, max_length: int) -> str:
    if value is None or (isinstance(value, str) and not value.strip()):
        return ""
    return validate_required_str(value, field, max_length)


def validate_date(value: object, field: str, *, today: Optional[date] = None) -> str:
    """Return the date as YYYY-MM-DD, defaulting a blank value to today."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return (today or date.today()).isoformat()
    parsed = parse_date(value)
    if parsed is None:
        raise ValidationError(f"{field} must be a date in YYYY-MM-DD format")
    return parsed.isoformat()


def validate_enum(value: object, field: str, allowed: Iterable[str], default: str) -> str:
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    canonical = normalize_choice(value, default)
    if canonical not in allowed:
        raise ValidationError(f"{field} must be one of: {', '.join(sorted(allowed))}")
    return canonical


def validate_invoice_payload(payload: Mapping[str, object]) -> Dict[str, object]:
    """Normalise a submitted invoice form into model fields (without the id)."""
    customer = validate_optional_str(payload.get("customer"), "customer", 100)
    desc = validate_optional_str(payload.get("desc"), "desc", 200)
    if not customer and not desc:
        raise ValidationError("Enter at least a customer name or a service description")
    return {
        "date": validate_date(payload.get("date"), "date"),
        "customer": customer,
        "phone": validate_optional_str(payload.get("phone"), "phone", 30),
        "desc": desc,
        "service_category": validate_enum(
            payload.get("serviceCategory"), "serviceCategory", SERVICE_CATEGORIES, "oil_change"
        ),
        "service_cost": parse_amount(payload.get("serviceCost"), "serviceCost"),
        "parts_cost": parse_amount(payload.get("partsCost"), "partsCost"),
        "paid": parse_amount(payload.get("paid"), "paid"),
        "method": validate_enum(payload.get("method"), "method", PAYMENT_METHODS, "cash"),
    }


def validate_expense_payload(payload: Mapping[str, object]) -> Dict[str, object]:
    """Normalise a submitted expense form into model fields (without the id)."""
    return {
        "date": validate_date(payload.get("date"), "date"),
        "category": validate_required_str(payload.get("category"), "category", 50),
        "amount": parse_amount(payload.get("amount"), "amount", required=True),
        "notes": validate_optional_str(payload.get("notes"), "notes", 200),
    }
