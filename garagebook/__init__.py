"""Core bookkeeping package for the garage ledger."""

from .config import Settings
from .engine import MonthBucket, MonthlyRow, Totals, compute_totals, group_by_month, merge_monthly_series
from .exceptions import PersistenceError, RecordNotFoundError, ValidationError
from .filters import ExpenseFilter, InvoiceFilter, filter_expenses, filter_invoices
from .models import Expense, Invoice, LedgerDocument
from .services import ImportReport, LedgerService
from .storage import JSONFileStore, RemoteStore, build_store
from .sync import RefreshScheduler

__all__ = [
    "Expense",
    "ExpenseFilter",
    "ImportReport",
    "Invoice",
    "InvoiceFilter",
    "JSONFileStore",
    "LedgerDocument",
    "LedgerService",
    "MonthBucket",
    "MonthlyRow",
    "PersistenceError",
    "RecordNotFoundError",
    "RefreshScheduler",
    "RemoteStore",
    "Settings",
    "Totals",
    "ValidationError",
    "build_store",
    "compute_totals",
    "filter_expenses",
    "filter_invoices",
    "group_by_month",
    "merge_monthly_series",
]
