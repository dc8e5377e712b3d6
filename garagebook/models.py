"""Data models for the garage ledger domain."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Mapping, Optional, Tuple

__all__ = [
    "Expense",
    "Invoice",
    "LedgerDocument",
    "coerce_amount",
    "normalize_choice",
    "parse_date",
    "SERVICE_CATEGORIES",
    "PAYMENT_METHODS",
]

ZERO = Decimal("0")

# Amounts at or above 10**15 are treated as corrupt input.
MAX_AMOUNT_EXPONENT = 15

SERVICE_CATEGORIES = {
    "oil_change",
    "battery_replacement",
    "brake_system",
    "mechanical",
    "other",
}

PAYMENT_METHODS = {
    "cash",
    "card",
    "transfer",
}

# Labels written by the legacy browser version of the app.
LEGACY_LABELS = {
    "غيار زيت": "oil_change",
    "تغيير خلايا بطارية": "battery_replacement",
    "نظام الفرامل": "brake_system",
    "ميكانيك": "mechanical",
    "اخرى": "other",
    "كاش": "cash",
    "شبكة": "card",
    "تحويل": "transfer",
}

_DATE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d", "%d/%m/%Y")


def coerce_amount(value: object) -> Decimal:
    """Convert form or document input into a Decimal, treating anything unusable as zero."""
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return _bounded(value)
    if isinstance(value, int):
        return _bounded(Decimal(value))
    text = str(value).replace(",", "").strip()
    if not text:
        return ZERO
    try:
        amount = Decimal(text)
    except InvalidOperation:
        return ZERO
    return _bounded(amount)


def _bounded(amount: Decimal) -> Decimal:
    if not amount.is_finite() or amount.adjusted() >= MAX_AMOUNT_EXPONENT:
        return ZERO
    return amount


def parse_date(value: object) -> Optional[date]:
    """Normalise a stored or user-supplied date to a calendar date, or None."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


def normalize_choice(value: object, default: str = "") -> str:
    """Map legacy labels onto enum codes; unknown values are returned trimmed."""
    if value is None:
        return default
    text = str(value).strip()
    if not text:
        return default
    return LEGACY_LABELS.get(text, text.lower())


def _text(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    return "" if value is None else str(value)


@dataclass(frozen=True)
class Invoice:
    id: str
    date: str
    customer: str = ""
    phone: str = ""
    desc: str = ""
    service_category: str = "other"
    service_cost: Decimal = ZERO
    parts_cost: Decimal = ZERO
    paid: Decimal = ZERO
    method: str = "cash"

    @property
    def total(self) -> Decimal:
        return self.service_cost + self.parts_cost

    @property
    def balance(self) -> Decimal:
        # Over-payment gives a negative balance.
        return self.total - self.paid

    def to_dict(self) -> Dict[str, Any]:
        """Serialise the invoice using the document's camelCase keys."""
        return {
            "id": self.id,
            "date": self.date,
            "customer": self.customer,
            "phone": self.phone,
            "desc": self.desc,
            "serviceCategory": self.service_category,
            "serviceCost": str(self.service_cost),
            "partsCost": str(self.parts_cost),
            "paid": str(self.paid),
            "method": self.method,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Invoice":
        """Hydrate an Invoice, tolerating blank or missing fields."""
        return cls(
            id=_text(data, "id"),
            date=_text(data, "date"),
            customer=_text(data, "customer"),
            phone=_text(data, "phone"),
            desc=_text(data, "desc"),
            service_category=normalize_choice(data.get("serviceCategory"), "other"),
            service_cost=coerce_amount(data.get("serviceCost")),
            parts_cost=coerce_amount(data.get("partsCost")),
            paid=coerce_amount(data.get("paid")),
            method=normalize_choice(data.get("method"), "cash"),
        )


@dataclass(frozen=True)
class Expense:
    id: str
    date: str
    category: str
    amount: Decimal = ZERO
    notes: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "category": self.category,
            "amount": str(self.amount),
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Expense":
        return cls(
            id=_text(data, "id"),
            date=_text(data, "date"),
            category=_text(data, "category"),
            amount=coerce_amount(data.get("amount")),
            notes=_text(data, "notes"),
        )


@dataclass
class LedgerDocument:
    """The whole persisted state: both collections, newest first.

    ``rejected_fields`` names the collections that were not lists in the
    source payload; readers keep their current copy of those.
    """

    invoices: List[Invoice] = field(default_factory=list)
    expenses: List[Expense] = field(default_factory=list)
    rejected_fields: Tuple[str, ...] = field(default=(), compare=False)

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            "invoices": [invoice.to_dict() for invoice in self.invoices],
            "expenses": [expense.to_dict() for expense in self.expenses],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LedgerDocument":
        """Hydrate a document; a field that is not a list is read as empty and flagged."""
        raw_invoices = data.get("invoices")
        raw_expenses = data.get("expenses")
        rejected = tuple(
            name for name, raw in (("invoices", raw_invoices), ("expenses", raw_expenses)) if not isinstance(raw, list)
        )
        return cls(
            invoices=[
                Invoice.from_dict(item)
                for item in (raw_invoices if isinstance(raw_invoices, list) else [])
                if isinstance(item, Mapping)
            ],
            expenses=[
                Expense.from_dict(item)
                for item in (raw_expenses if isinstance(raw_expenses, list) else [])
                if isinstance(item, Mapping)
            ],
            rejected_fields=rejected,
        )
