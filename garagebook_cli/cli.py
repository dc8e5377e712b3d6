"""Console interface for the garage ledger."""

from __future__ import annotations

import argparse
import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from garagebook.config import Settings, configure_logging
from garagebook.engine import format_currency
from garagebook.exceptions import PersistenceError, RecordNotFoundError, ValidationError
from garagebook.filters import ExpenseFilter, InvoiceFilter, expense_subtotal, invoice_subtotals
from garagebook.models import PAYMENT_METHODS, SERVICE_CATEGORIES, Expense, Invoice
from garagebook.services import LedgerService, export_filename
from garagebook.storage import build_store
from garagebook.sync import RefreshScheduler


def _load_service(settings: Settings) -> LedgerService:
    return LedgerService(build_store(settings))


def _format_invoice(invoice: Invoice) -> str:
    return (
        f"[{invoice.id}] {invoice.date or '-'} {invoice.customer or '-'} ({invoice.phone or '-'})\n"
        f"  {invoice.desc or '-'} | {invoice.service_category} | {invoice.method}\n"
        f"  Service: {format_currency(invoice.service_cost)} | Parts: {format_currency(invoice.parts_cost)}"
        f" | Total: {format_currency(invoice.total)} | Paid: {format_currency(invoice.paid)}"
        f" | Balance: {format_currency(invoice.balance)}\n"
    )


def _format_expense(expense: Expense) -> str:
    return (
        f"[{expense.id}] {expense.date or '-'} {expense.category} {format_currency(expense.amount)}\n"
        f"  Notes: {expense.notes or '-'}\n"
    )


def handle_invoice(args: argparse.Namespace, service: LedgerService) -> None:
    if args.command == "add":
        payload: Dict[str, Any] = {
            "date": args.date,
            "customer": args.customer,
            "phone": args.phone,
            "desc": args.desc,
            "serviceCategory": args.category,
            "serviceCost": args.service_cost,
            "partsCost": args.parts_cost,
            "paid": args.paid,
            "method": args.method,
        }
        invoice = service.add_invoice(payload)
        print("Invoice added:\n" + _format_invoice(invoice))
    elif args.command == "list":
        criteria = InvoiceFilter(
            query=args.query or "",
            date_from=args.date_from or "",
            date_to=args.date_to or "",
            category=args.category or "",
        )
        invoices = service.invoices(criteria)
        if not invoices:
            print("No invoices found.")
            return
        subtotals = invoice_subtotals(invoices)
        print(
            f"Found {len(invoices)} invoices (total {format_currency(subtotals['total'])},"
            f" paid {format_currency(subtotals['paid'])}):"
        )
        for invoice in invoices:
            print(_format_invoice(invoice))
    elif args.command == "delete":
        service.delete_invoice(args.id)
        print(f"Invoice {args.id} deleted.")


def handle_expense(args: argparse.Namespace, service: LedgerService) -> None:
    if args.command == "add":
        payload = {
            "date": args.date,
            "category": args.category,
            "amount": args.amount,
            "notes": args.notes,
        }
        expense = service.add_expense(payload)
        print("Expense added:\n" + _format_expense(expense))
    elif args.command == "list":
        criteria = ExpenseFilter(
            query=args.query or "",
            date_from=args.date_from or "",
            date_to=args.date_to or "",
        )
        expenses = service.expenses(criteria)
        if not expenses:
            print("No expenses found.")
            return
        print(f"Found {len(expenses)} expenses (total {format_currency(expense_subtotal(expenses))}):")
        for expense in expenses:
            print(_format_expense(expense))
    elif args.command == "delete":
        service.delete_expense(args.id)
        print(f"Expense {args.id} deleted.")


def handle_summary(service: LedgerService) -> None:
    totals = service.totals()
    print(f"Revenue:               {format_currency(totals.revenue)}")
    print(f"Expenses:              {format_currency(totals.total_expenses)}")
    print(f"Net profit:            {format_currency(totals.net_profit)}")
    print(f"Paid by customers:     {format_currency(totals.paid_to_date)}")
    print(f"Outstanding:           {format_currency(totals.outstanding_receivable)}")


def handle_monthly(service: LedgerService) -> None:
    rows = service.monthly_chart()
    if not rows:
        print("No monthly data.")
        return
    for row in rows:
        label = row.label or "(no date)"
        print(f"{label:<16} revenue {format_currency(row.revenue):>16}  expenses {format_currency(row.expense):>16}")


def handle_watch(args: argparse.Namespace, service: LedgerService, settings: Settings) -> int:
    """Reprint the summary after every refresh until interrupted or ``--count`` is reached."""
    finished = threading.Event()
    refreshes = 0

    def tick() -> None:
        nonlocal refreshes
        refreshes += 1
        if service.refresh():
            print(f"Refreshed at {datetime.now():%H:%M:%S}")
            handle_summary(service)
        else:
            print("Refresh failed; totals above are the last loaded ones.", file=sys.stderr)
        if args.count and refreshes >= args.count:
            finished.set()

    handle_summary(service)
    scheduler = RefreshScheduler(tick, args.interval or settings.poll_interval)
    scheduler.start()
    try:
        finished.wait()
    except KeyboardInterrupt:
        print("Stopped watching.")
    finally:
        scheduler.stop()
    return 0


def handle_export(args: argparse.Namespace, service: LedgerService) -> None:
    path: Path = args.path or Path(export_filename())
    try:
        path.write_text(service.export_document(), encoding="utf-8")
    except OSError as exc:
        raise PersistenceError(f"Unable to write {path}: {exc}") from exc
    print(f"Exported ledger to {path}.")


def handle_import(args: argparse.Namespace, service: LedgerService) -> int:
    try:
        text = args.path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValidationError(f"Unable to read {args.path}: {exc}") from exc
    report = service.import_document(text)
    for name, outcome in (("invoices", report.invoices), ("expenses", report.expenses)):
        if outcome.accepted:
            print(f"Imported {outcome.count} {name} (skipped {outcome.skipped}).")
        else:
            print(f"Kept existing {name}: {outcome.reason}.")
    if not report.imported_anything:
        print("Nothing was imported.", file=sys.stderr)
        return 1
    if not report.saved:
        print("Storage error: imported data could not be saved.", file=sys.stderr)
        return 1
    return 0


def handle_clear(args: argparse.Namespace, service: LedgerService) -> int:
    if not args.yes:
        print("Refusing to clear all data without --yes.", file=sys.stderr)
        return 1
    service.clear()
    print("All invoices and expenses deleted.")
    return 0


def _positive_float(raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{raw!r} is not a number") from None
    if value <= 0:
        raise argparse.ArgumentTypeError("must be positive")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Garage ledger CLI")
    parser.add_argument(
        "--data-dir",
        type=Path,
        help="Directory holding the JSON ledger (default: $GARAGEBOOK_DATA_DIR or ./data)",
    )
    parser.add_argument(
        "--remote-url",
        help="Ledger endpoint to use instead of the local file (default: $GARAGEBOOK_REMOTE_URL)",
    )
    parser.add_argument("--log-level", help="Logging level (default: $GARAGEBOOK_LOG_LEVEL or INFO)")

    subparsers = parser.add_subparsers(dest="entity", required=True)

    invoice_parser = subparsers.add_parser("invoice", help="Manage invoices")
    invoice_sub = invoice_parser.add_subparsers(dest="command", required=True)

    invoice_add = invoice_sub.add_parser("add", help="Record a new invoice")
    invoice_add.add_argument("--customer", default="")
    invoice_add.add_argument("--phone", default="")
    invoice_add.add_argument("--desc", default="")
    invoice_add.add_argument("--date", help="YYYY-MM-DD (default: today)")
    invoice_add.add_argument("--category", default="oil_change", choices=sorted(SERVICE_CATEGORIES))
    invoice_add.add_argument("--service-cost", default="")
    invoice_add.add_argument("--parts-cost", default="")
    invoice_add.add_argument("--paid", default="")
    invoice_add.add_argument("--method", default="cash", choices=sorted(PAYMENT_METHODS))

    invoice_list = invoice_sub.add_parser("list", help="List invoices")
    invoice_list.add_argument("--query", "-q")
    invoice_list.add_argument("--from", dest="date_from")
    invoice_list.add_argument("--to", dest="date_to")
    invoice_list.add_argument("--category", choices=sorted(SERVICE_CATEGORIES))

    invoice_delete = invoice_sub.add_parser("delete", help="Delete an invoice")
    invoice_delete.add_argument("id")

    expense_parser = subparsers.add_parser("expense", help="Manage expenses")
    expense_sub = expense_parser.add_subparsers(dest="command", required=True)

    expense_add = expense_sub.add_parser("add", help="Record a new expense")
    expense_add.add_argument("category")
    expense_add.add_argument("amount")
    expense_add.add_argument("--date", help="YYYY-MM-DD (default: today)")
    expense_add.add_argument("--notes", default="")

    expense_list = expense_sub.add_parser("list", help="List expenses")
    expense_list.add_argument("--query", "-q")
    expense_list.add_argument("--from", dest="date_from")
    expense_list.add_argument("--to", dest="date_to")

    expense_delete = expense_sub.add_parser("delete", help="Delete an expense")
    expense_delete.add_argument("id")

    subparsers.add_parser("summary", help="Show revenue, expenses, profit and receivables")
    subparsers.add_parser("monthly", help="Show revenue and expenses per month")

    watch_parser = subparsers.add_parser("watch", help="Poll the ledger and reprint the summary on each refresh")
    watch_parser.add_argument(
        "--interval", type=_positive_float, help="Seconds between refreshes (default: $GARAGEBOOK_POLL_INTERVAL or 5)"
    )
    watch_parser.add_argument("--count", type=int, default=0, help="Stop after this many refreshes (default: never)")

    export_parser = subparsers.add_parser("export", help="Write the ledger to a JSON file")
    export_parser.add_argument("path", nargs="?", type=Path)

    import_parser = subparsers.add_parser("import", help="Load invoices/expenses from a JSON file")
    import_parser.add_argument("path", type=Path)

    clear_parser = subparsers.add_parser("clear", help="Delete all invoices and expenses")
    clear_parser.add_argument("--yes", action="store_true", help="Confirm deleting everything")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = Settings.from_env().override(
        data_dir=args.data_dir, remote_url=args.remote_url, log_level=args.log_level
    )
    configure_logging(settings.log_level)
    service = _load_service(settings)

    try:
        if args.entity == "invoice":
            handle_invoice(args, service)
        elif args.entity == "expense":
            handle_expense(args, service)
        elif args.entity == "summary":
            handle_summary(service)
        elif args.entity == "monthly":
            handle_monthly(service)
        elif args.entity == "watch":
            return handle_watch(args, service, settings)
        elif args.entity == "export":
            handle_export(args, service)
        elif args.entity == "import":
            return handle_import(args, service)
        elif args.entity == "clear":
            return handle_clear(args, service)
        else:  # pragma: no cover - argparse should prevent this
            parser.error(f"Unknown entity: {args.entity}")
            return 2
    except ValidationError as exc:
        print(f"Validation error: {exc}", file=sys.stderr)
        return 1
    except RecordNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    except PersistenceError as exc:
        print(f"Storage error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
