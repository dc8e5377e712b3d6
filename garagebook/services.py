"""Framework-agnostic ledger service: owns the in-memory snapshot and the store."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace
from datetime import date
from typing import Any, Dict, List, Optional, Set, Tuple
from uuid import uuid4

from . import engine
from .exceptions import PersistenceError, RecordNotFoundError, ValidationError
from .filters import ExpenseFilter, InvoiceFilter, filter_expenses, filter_invoices
from .models import Expense, Invoice, LedgerDocument
from .storage import LedgerStore
from .validators import validate_expense_payload, validate_invoice_payload

logger = logging.getLogger(__name__)


@dataclass
class FieldImport:
    """Outcome of importing one top-level field of a document."""

    accepted: bool
    count: int = 0
    skipped: int = 0
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accepted": self.accepted,
            "count": self.count,
            "skipped": self.skipped,
            "reason": self.reason,
        }


@dataclass
class ImportReport:
    invoices: FieldImport
    expenses: FieldImport
    saved: bool = True

    @property
    def imported_anything(self) -> bool:
        return self.invoices.accepted or self.expenses.accepted

    def to_dict(self) -> Dict[str, Any]:
        return {
            "invoices": self.invoices.to_dict(),
            "expenses": self.expenses.to_dict(),
            "saved": self.saved,
        }


def export_filename(today: Optional[date] = None) -> str:
    return f"garage-data-{(today or date.today()).isoformat()}.json"


class LedgerService:
    """Holds the current invoices and expenses (newest first) and persists changes.

    Mutations are applied to the snapshot before saving. When the save fails
    the change stays in memory and ``PersistenceError`` is raised so the caller
    can show a notice; nothing is rolled back.
    """

    def __init__(self, store: LedgerStore, *, load: bool = True) -> None:
        self._store = store
        self._invoices: List[Invoice] = []
        self._expenses: List[Expense] = []
        if load:
            self.refresh()

    # Public API -----------------------------------------------------------
    def add_invoice(self, payload: Dict[str, object]) -> Invoice:
        invoice = Invoice(id=self._new_id(), **validate_invoice_payload(payload))
        self._invoices.insert(0, invoice)
        self._persist()
        return invoice

    def delete_invoice(self, invoice_id: str) -> None:
        remaining = [invoice for invoice in self._invoices if invoice.id != invoice_id]
        if len(remaining) == len(self._invoices):
            raise RecordNotFoundError(f"Invoice {invoice_id} not found")
        self._invoices = remaining
        self._persist()

    def add_expense(self, payload: Dict[str, object]) -> Expense:
        expense = Expense(id=self._new_id(), **validate_expense_payload(payload))
        self._expenses.insert(0, expense)
        self._persist()
        return expense

    def delete_expense(self, expense_id: str) -> None:
        remaining = [expense for expense in self._expenses if expense.id != expense_id]
        if len(remaining) == len(self._expenses):
            raise RecordNotFoundError(f"Expense {expense_id} not found")
        self._expenses = remaining
        self._persist()

    def clear(self) -> None:
        self._invoices = []
        self._expenses = []
        self._persist()

    def replace_document(self, document: LedgerDocument) -> None:
        """Overwrite both collections with ``document`` (last write wins)."""
        self._adopt(document, source="replacement document")
        self._persist()

    def invoices(self, criteria: Optional[InvoiceFilter] = None) -> List[Invoice]:
        return filter_invoices(self._invoices, criteria)

    def expenses(self, criteria: Optional[ExpenseFilter] = None) -> List[Expense]:
        return filter_expenses(self._expenses, criteria)

    def totals(self) -> engine.Totals:
        return engine.compute_totals(self._invoices, self._expenses)

    def monthly_chart(self) -> List[engine.MonthlyRow]:
        return engine.monthly_chart(self._invoices, self._expenses)

    def document(self) -> LedgerDocument:
        return LedgerDocument(invoices=list(self._invoices), expenses=list(self._expenses))

    def refresh(self) -> bool:
        """Reload from the store, keeping the current snapshot if that fails."""
        try:
            document = self._store.load()
        except PersistenceError as exc:
            logger.warning("Ledger refresh failed, keeping previous snapshot: %s", exc)
            return False
        self._adopt(document, source="store")
        return True

    def export_document(self) -> str:
        return json.dumps(self.document().to_dict(), indent=2, ensure_ascii=False)

    def import_document(self, text: str) -> ImportReport:
        """Import a previously exported document, field by field.

        A field holding a list replaces that collection; any other value is
        rejected for that field alone and the current collection is kept.
        """
        try:
            payload = json.loads(text)
        except (TypeError, ValueError) as exc:
            raise ValidationError("Import file is not valid JSON") from exc
        if not isinstance(payload, dict):
            raise ValidationError("Import file must contain an object with invoices and expenses")

        invoices, invoice_report = _import_field(payload.get("invoices"), Invoice)
        expenses, expense_report = _import_field(payload.get("expenses"), Expense)
        report = ImportReport(invoices=invoice_report, expenses=expense_report)
        if invoices is not None:
            self._invoices = invoices
        if expenses is not None:
            self._expenses = expenses
        if not report.imported_anything:
            logger.warning("Import rejected: neither invoices nor expenses were lists")
            report.saved = False
            return report

        logger.info(
            "Imported %d invoices and %d expenses",
            invoice_report.count,
            expense_report.count,
        )
        try:
            self._persist()
        except PersistenceError:
            report.saved = False
        return report

    # Internal helpers -----------------------------------------------------
    def _adopt(self, document: LedgerDocument, *, source: str) -> None:
        # A collection that was not a list in the payload keeps its current copy.
        if "invoices" in document.rejected_fields:
            logger.warning("Ignoring malformed invoices from %s; keeping %d current", source, len(self._invoices))
        else:
            self._invoices, _ = _dedupe(document.invoices)
        if "expenses" in document.rejected_fields:
            logger.warning("Ignoring malformed expenses from %s; keeping %d current", source, len(self._expenses))
        else:
            self._expenses, _ = _dedupe(document.expenses)

    def _persist(self) -> None:
        try:
            self._store.save(self.document())
        except PersistenceError as exc:
            logger.error("Saving ledger failed; local changes kept: %s", exc)
            raise
        except Exception as exc:  # pragma: no cover - unexpected backend failure
            logger.exception("Unexpected error while saving ledger")
            raise PersistenceError("Unexpected error while saving ledger") from exc

    @staticmethod
    def _new_id() -> str:
        return uuid4().hex


def _dedupe(records: List[Any]) -> Tuple[List[Any], int]:
    """Drop records whose id was already seen; blank ids get a fresh one."""
    seen: Set[str] = set()
    kept: List[Any] = []
    dropped = 0
    for record in records:
        if not record.id:
            record = replace(record, id=uuid4().hex)
        if record.id in seen:
            dropped += 1
            continue
        seen.add(record.id)
        kept.append(record)
    return kept, dropped


def _import_field(raw: object, model: Any) -> Tuple[Optional[List[Any]], FieldImport]:
    if not isinstance(raw, list):
        reason = "missing" if raw is None else f"expected a list, got {type(raw).__name__}"
        return None, FieldImport(accepted=False, reason=reason)
    records = [model.from_dict(item) for item in raw if isinstance(item, dict)]
    skipped = len(raw) - len(records)
    records, duplicates = _dedupe(records)
    return records, FieldImport(accepted=True, count=len(records), skipped=skipped + duplicates)
