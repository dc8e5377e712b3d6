"""Free-text, date-range and category filtering for the ledger tables."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional

from .engine import expense_amount, invoice_amount
from .models import ZERO, Expense, Invoice, coerce_amount, parse_date

__all__ = [
    "ExpenseFilter",
    "InvoiceFilter",
    "expense_subtotal",
    "filter_expenses",
    "filter_invoices",
    "invoice_subtotals",
]


@dataclass(frozen=True)
class InvoiceFilter:
    query: str = ""
    date_from: str = ""
    date_to: str = ""
    category: str = ""

    def is_empty(self) -> bool:
        return not (self.query or self.date_from or self.date_to or self.category)


@dataclass(frozen=True)
class ExpenseFilter:
    query: str = ""
    date_from: str = ""
    date_to: str = ""

    def is_empty(self) -> bool:
        return not (self.query or self.date_from or self.date_to)


def _date_predicate(date_from: str, date_to: str) -> Callable[[object], bool]:
    # An unparseable bound is treated as unset.
    start: Optional[date] = parse_date(date_from) if date_from else None
    end: Optional[date] = parse_date(date_to) if date_to else None

    def in_range(value: object) -> bool:
        if start is None and end is None:
            return True
        record_date = parse_date(value)
        if record_date is None:
            return False
        if start and record_date < start:
            return False
        if end and record_date > end:
            return False
        return True

    return in_range


def filter_invoices(invoices: Iterable[Invoice], criteria: Optional[InvoiceFilter] = None) -> List[Invoice]:
    """Return the invoices matching every non-empty criterion, in input order."""
    criteria = criteria or InvoiceFilter()
    query = criteria.query
    in_range = _date_predicate(criteria.date_from, criteria.date_to)

    def matches(invoice: Invoice) -> bool:
        if query and not (
            query in (invoice.customer or "")
            or query in (invoice.desc or "")
            or query in (invoice.phone or "")
        ):
            return False
        if not in_range(invoice.date):
            return False
        if criteria.category and invoice.service_category != criteria.category:
            return False
        return True

    return [invoice for invoice in invoices if matches(invoice)]


def filter_expenses(expenses: Iterable[Expense], criteria: Optional[ExpenseFilter] = None) -> List[Expense]:
    """Return the expenses whose category or notes match and whose date is in range."""
    criteria = criteria or ExpenseFilter()
    query = criteria.query
    in_range = _date_predicate(criteria.date_from, criteria.date_to)

    def matches(expense: Expense) -> bool:
        if query and not (query in (expense.category or "") or query in (expense.notes or "")):
            return False
        return in_range(expense.date)

    return [expense for expense in expenses if matches(expense)]


def invoice_subtotals(invoices: Iterable[Invoice]) -> Dict[str, Decimal]:
    total = ZERO
    paid = ZERO
    for invoice in invoices:
        total += invoice_amount(invoice)
        paid += coerce_amount(invoice.paid)
    return {"total": total, "paid": paid, "balance": total - paid}


def expense_subtotal(expenses: Iterable[Expense]) -> Decimal:
    return sum((expense_amount(expense) for expense in expenses), start=ZERO)
