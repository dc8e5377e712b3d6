"""Derived totals and monthly aggregation over invoices and expenses.

Everything here is a pure function of its arguments: callers pass the current
collections in and render whatever comes back. Amount fields go through
:func:`coerce_amount`, so blank or malformed values count as zero instead of
raising.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal, localcontext
from typing import Any, Callable, Dict, Iterable, List, Sequence, Tuple, TypeVar

from .models import ZERO, Expense, Invoice, coerce_amount, parse_date

__all__ = [
    "MONTH_NAMES",
    "MonthBucket",
    "MonthlyRow",
    "Totals",
    "coerce_amount",
    "compute_totals",
    "expense_amount",
    "format_currency",
    "group_by_month",
    "invoice_amount",
    "merge_monthly_series",
    "month_key",
    "month_label",
    "monthly_chart",
    "revenue_expense_split",
]

T = TypeVar("T")

MONTH_NAMES = (
    "يناير",
    "فبراير",
    "مارس",
    "أبريل",
    "مايو",
    "يونيو",
    "يوليو",
    "أغسطس",
    "سبتمبر",
    "أكتوبر",
    "نوفمبر",
    "ديسمبر",
)

CURRENCY_CODE = "JOD"
CURRENCY_PLACES = Decimal("0.001")


@dataclass(frozen=True)
class Totals:
    revenue: Decimal = ZERO
    paid_to_date: Decimal = ZERO
    outstanding_receivable: Decimal = ZERO
    total_expenses: Decimal = ZERO
    net_profit: Decimal = ZERO

    def to_dict(self) -> Dict[str, str]:
        return {
            "revenue": str(self.revenue),
            "paidToDate": str(self.paid_to_date),
            "outstandingReceivable": str(self.outstanding_receivable),
            "totalExpenses": str(self.total_expenses),
            "netProfit": str(self.net_profit),
        }


@dataclass(frozen=True)
class MonthBucket:
    key: str
    label: str
    value: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {"key": self.key, "label": self.label, "value": str(self.value)}


@dataclass(frozen=True)
class MonthlyRow:
    key: str
    label: str
    revenue: Decimal
    expense: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "label": self.label,
            "revenue": str(self.revenue),
            "expense": str(self.expense),
        }


def invoice_amount(invoice: Invoice) -> Decimal:
    """Invoiced revenue of one invoice: service plus parts."""
    return coerce_amount(invoice.service_cost) + coerce_amount(invoice.parts_cost)


def expense_amount(expense: Expense) -> Decimal:
    return coerce_amount(expense.amount)


def compute_totals(invoices: Iterable[Invoice], expenses: Iterable[Expense]) -> Totals:
    """Compute the dashboard totals.

    Profit is recognised on invoiced revenue, not on cash collected, so
    ``net_profit`` ignores outstanding receivables.
    """
    revenue = ZERO
    paid = ZERO
    for invoice in invoices:
        revenue += invoice_amount(invoice)
        paid += coerce_amount(invoice.paid)
    spent = sum((expense_amount(expense) for expense in expenses), start=ZERO)
    return Totals(
        revenue=revenue,
        paid_to_date=paid,
        outstanding_receivable=revenue - paid,
        total_expenses=spent,
        net_profit=revenue - spent,
    )


def month_key(value: object) -> str:
    """Return ``YYYY-MM`` for a parseable date and ``""`` otherwise."""
    parsed = parse_date(value)
    if parsed is None:
        return ""
    return f"{parsed.year:04d}-{parsed.month:02d}"


def month_label(key: str) -> str:
    if not key:
        return ""
    year, month = key.split("-")
    return f"{MONTH_NAMES[int(month) - 1]} {year}"


def group_by_month(items: Iterable[T], amount_selector: Callable[[T], Decimal]) -> List[MonthBucket]:
    """Sum ``amount_selector`` per calendar month of each item's ``date``.

    Items without a usable date land in the ``""`` bucket, which sorts ahead
    of every real month.
    """
    sums: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    for item in items:
        sums[month_key(getattr(item, "date", None))] += coerce_amount(amount_selector(item))
    return [MonthBucket(key=key, label=month_label(key), value=sums[key]) for key in sorted(sums)]


def merge_monthly_series(
    revenue_buckets: Sequence[MonthBucket], expense_buckets: Sequence[MonthBucket]
) -> List[MonthlyRow]:
    """Align both series on the union of their months, filling gaps with zero."""
    revenue = {bucket.key: bucket.value for bucket in revenue_buckets}
    spent = {bucket.key: bucket.value for bucket in expense_buckets}
    return [
        MonthlyRow(
            key=key,
            label=month_label(key),
            revenue=revenue.get(key, ZERO),
            expense=spent.get(key, ZERO),
        )
        for key in sorted(set(revenue) | set(spent))
    ]


def monthly_chart(invoices: Iterable[Invoice], expenses: Iterable[Expense]) -> List[MonthlyRow]:
    return merge_monthly_series(
        group_by_month(invoices, invoice_amount),
        group_by_month(expenses, expense_amount),
    )


def revenue_expense_split(totals: Totals) -> List[Tuple[str, Decimal]]:
    """Slices for the revenue-versus-expenses pie."""
    return [("الإيرادات", totals.revenue), ("المصاريف", totals.total_expenses)]


def format_currency(value: object) -> str:
    amount = value if isinstance(value, Decimal) and value.is_finite() else coerce_amount(value)
    with localcontext() as ctx:
        # Room for every integer digit plus the three decimal places.
        ctx.prec = max(ctx.prec, amount.adjusted() + 5)
        return f"{CURRENCY_CODE} {amount.quantize(CURRENCY_PLACES):,.3f}"
