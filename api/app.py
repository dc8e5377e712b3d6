"""Flask REST API exposing the garage ledger services."""

from __future__ import annotations

from typing import Any, Dict, Optional

from flask import Flask, Response, jsonify, request
from flask_cors import CORS

from garagebook.config import Settings
from garagebook.exceptions import PersistenceError, RecordNotFoundError, ValidationError
from garagebook.engine import expense_amount, group_by_month, invoice_amount, merge_monthly_series
from garagebook.filters import ExpenseFilter, InvoiceFilter, expense_subtotal, invoice_subtotals
from garagebook.models import LedgerDocument, normalize_choice
from garagebook.services import LedgerService, export_filename
from garagebook.storage import JSONFileStore, LedgerStore


def create_app(settings: Optional[Settings] = None, store: Optional[LedgerStore] = None) -> Flask:
    app = Flask(__name__)
    settings = settings or Settings.from_env()

    if settings.is_dev:
        CORS(app, resources={r"/*": {"origins": "*"}}, supports_credentials=True)
    elif settings.allowed_origins:
        CORS(app, resources={r"/*": {"origins": settings.allowed_origins}}, supports_credentials=True)
    else:
        CORS(app)

    # This app is the remote endpoint other clients poll, so it always owns a local file.
    ledger = LedgerService(store or JSONFileStore(settings.data_dir))
    app.extensions["garagebook.ledger"] = ledger

    def _success(payload: Any, status: int = 200):
        if status == 204:
            return ("", status)
        return jsonify(payload), status

    def _handle_error(exc: Exception, status: int, message: str):
        app.logger.error("%s: %s", message, exc)
        return jsonify({"error": message, "details": str(exc)}), status

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError):
        return _handle_error(exc, 400, "Validation error")

    @app.errorhandler(RecordNotFoundError)
    def handle_not_found(exc: RecordNotFoundError):
        return _handle_error(exc, 404, "Record not found")

    @app.errorhandler(PersistenceError)
    def handle_persistence_error(exc: PersistenceError):
        return _handle_error(exc, 500, "Persistence error")

    def _json_body() -> Dict[str, Any]:
        if not request.is_json:
            raise ValidationError("Request content must be application/json")
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("Malformed JSON body")
        return data

    def _invoice_filter() -> InvoiceFilter:
        return InvoiceFilter(
            query=request.args.get("q", ""),
            date_from=request.args.get("from", ""),
            date_to=request.args.get("to", ""),
            category=normalize_choice(request.args.get("category")),
        )

    def _expense_filter() -> ExpenseFilter:
        return ExpenseFilter(
            query=request.args.get("q", ""),
            date_from=request.args.get("from", ""),
            date_to=request.args.get("to", ""),
        )

    @app.get("/ledger")
    def get_ledger():
        return _success(ledger.document().to_dict())

    @app.put("/ledger")
    def put_ledger():
        payload = _json_body()
        ledger.replace_document(LedgerDocument.from_dict(payload))
        return _success(ledger.document().to_dict())

    @app.delete("/ledger")
    def clear_ledger():
        ledger.clear()
        return _success({}, 204)

    @app.get("/ledger/export")
    def export_ledger():
        return Response(
            ledger.export_document(),
            mimetype="application/json",
            headers={"Content-Disposition": f"attachment; filename={export_filename()}"},
        )

    @app.post("/ledger/import")
    def import_ledger():
        report = ledger.import_document(request.get_data(as_text=True))
        if not report.imported_anything:
            return _success({"error": "Nothing imported", **report.to_dict()}, 400)
        return _success(report.to_dict())

    @app.get("/invoices")
    def list_invoices():
        invoices = ledger.invoices(_invoice_filter())
        subtotals = invoice_subtotals(invoices)
        return _success({
            "items": [invoice.to_dict() for invoice in invoices],
            **{key: str(value) for key, value in subtotals.items()},
        })

    @app.post("/invoices")
    def create_invoice():
        invoice = ledger.add_invoice(_json_body())
        return _success(invoice.to_dict(), 201)

    @app.delete("/invoices/<invoice_id>")
    def delete_invoice(invoice_id: str):
        ledger.delete_invoice(invoice_id)
        return _success({}, 204)

    @app.get("/expenses")
    def list_expenses():
        expenses = ledger.expenses(_expense_filter())
        return _success({
            "items": [expense.to_dict() for expense in expenses],
            "total": str(expense_subtotal(expenses)),
        })

    @app.post("/expenses")
    def create_expense():
        expense = ledger.add_expense(_json_body())
        return _success(expense.to_dict(), 201)

    @app.delete("/expenses/<expense_id>")
    def delete_expense(expense_id: str):
        ledger.delete_expense(expense_id)
        return _success({}, 204)

    @app.get("/summary")
    def summary():
        return _success(ledger.totals().to_dict())

    @app.get("/monthly")
    def monthly():
        revenue = group_by_month(ledger.invoices(), invoice_amount)
        spent = group_by_month(ledger.expenses(), expense_amount)
        return _success({
            "revenue": [bucket.to_dict() for bucket in revenue],
            "expenses": [bucket.to_dict() for bucket in spent],
            "rows": [row.to_dict() for row in merge_monthly_series(revenue, spent)],
        })

    return app


if __name__ == "__main__":  # pragma: no cover - manual execution
    create_app().run(debug=False)
