"""Tkinter desktop application for the garage ledger."""

from __future__ import annotations

import argparse
import tkinter as tk
from datetime import date
from decimal import Decimal
from pathlib import Path
from tkinter import filedialog, messagebox, ttk
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from garagebook.config import Settings, configure_logging
from garagebook.engine import MonthlyRow, coerce_amount, format_currency, revenue_expense_split
from garagebook.exceptions import PersistenceError, RecordNotFoundError, ValidationError
from garagebook.filters import ExpenseFilter, InvoiceFilter, expense_subtotal, invoice_subtotals
from garagebook.services import LedgerService, export_filename
from garagebook.storage import build_store

PRIMARY_BG = "#0f172a"
SECONDARY_BG = "#1e293b"
ACCENT_BG = "#1d4ed8"
ACCENT_ACTIVE_BG = "#2563eb"
TEXT_PRIMARY = "#e2e8f0"
TEXT_MUTED = "#94a3b8"
REVENUE_COLOR = "#22c55e"
EXPENSE_COLOR = "#f97316"

CATEGORY_LABELS = {
    "oil_change": "Oil change",
    "battery_replacement": "Battery replacement",
    "brake_system": "Brake system",
    "mechanical": "Mechanical",
    "other": "Other",
}
METHOD_LABELS = {"cash": "Cash", "card": "Card", "transfer": "Transfer"}

Rect = Tuple[float, float, float, float]

# Refreshes run on the Tk main loop; an unreachable endpoint blocks the window this long at most.
POLL_TIMEOUT = 2.0


def desktop_settings(settings: Settings) -> Settings:
    return settings.override(timeout=min(settings.timeout, POLL_TIMEOUT))


def _today() -> str:
    return date.today().isoformat()


def _code_for(labels: Dict[str, str], shown: str) -> str:
    for code, label in labels.items():
        if label == shown:
            return code
    return shown


def form_preview(service_cost: str, parts_cost: str, paid: str) -> Tuple[Decimal, Decimal]:
    """Live total and balance for the invoice form; blank fields count as zero."""
    total = coerce_amount(service_cost) + coerce_amount(parts_cost)
    return total, total - coerce_amount(paid)


def bar_layout(
    rows: Sequence[MonthlyRow], width: float, height: float, padding: float = 32
) -> List[Tuple[str, Rect, Rect]]:
    """Place a revenue bar and an expense bar side by side for each month.

    Returns ``(label, revenue_rect, expense_rect)`` per row, rectangles as
    ``(x0, y0, x1, y1)`` in canvas coordinates with the baseline at
    ``height - padding``.
    """
    if not rows:
        return []
    peak = max(max(row.revenue, row.expense) for row in rows)
    plot_height = max(height - 2 * padding, 1)
    baseline = height - padding
    slot = max(width - 2 * padding, 1) / len(rows)
    bar_width = slot * 0.35

    def bar_height(value: Decimal) -> float:
        if peak <= 0 or value <= 0:
            return 0.0
        return float(value / peak) * plot_height

    layout = []
    for index, row in enumerate(rows):
        left = padding + index * slot + slot * 0.15
        revenue_rect = (left, baseline - bar_height(row.revenue), left + bar_width, baseline)
        expense_left = left + bar_width
        expense_rect = (expense_left, baseline - bar_height(row.expense), expense_left + bar_width, baseline)
        layout.append((row.label or "(no date)", revenue_rect, expense_rect))
    return layout


class InvoiceTab(ttk.Frame):
    """Invoice form, filters and register."""

    def __init__(self, master: tk.Misc, ledger: LedgerService, on_change: Callable[[], None]) -> None:
        super().__init__(master, padding=16, style="Panel.TFrame")
        self.ledger = ledger
        self.on_change = on_change

        self.customer_var = tk.StringVar()
        self.phone_var = tk.StringVar()
        self.date_var = tk.StringVar(value=_today())
        self.desc_var = tk.StringVar()
        self.category_var = tk.StringVar(value=CATEGORY_LABELS["oil_change"])
        self.service_cost_var = tk.StringVar()
        self.parts_cost_var = tk.StringVar()
        self.paid_var = tk.StringVar()
        self.method_var = tk.StringVar(value=METHOD_LABELS["cash"])
        self.total_var = tk.StringVar(value=format_currency(0))
        self.balance_var = tk.StringVar(value=format_currency(0))

        self.query_var = tk.StringVar()
        self.from_var = tk.StringVar()
        self.to_var = tk.StringVar()
        self.filter_category_var = tk.StringVar(value="All")
        self.subtotal_var = tk.StringVar()

        for var in (self.service_cost_var, self.parts_cost_var, self.paid_var):
            var.trace_add("write", lambda *_: self._update_preview())
        for var in (self.query_var, self.from_var, self.to_var, self.filter_category_var):
            var.trace_add("write", lambda *_: self.populate())

        self._build_form()
        self._build_table()
        self.columnconfigure(0, weight=1)
        self.rowconfigure(1, weight=1)

    def _build_form(self) -> None:
        form = ttk.LabelFrame(self, text="New Invoice", style="Card.TLabelframe")
        form.grid(row=0, column=0, sticky="ew", padx=4, pady=(0, 12))
        for column in range(4):
            form.columnconfigure(column, weight=1)

        def add_field(label: str, var: tk.StringVar, column: int, row: int, *, state: Optional[str] = None) -> None:
            ttk.Label(form, text=label, style="FormLabel.TLabel").grid(column=column, row=row, sticky="w", padx=4)
            entry = ttk.Entry(form, textvariable=var, style="App.TEntry")
            if state:
                entry.configure(state=state)
            entry.grid(column=column, row=row + 1, sticky="ew", padx=4, pady=(0, 8))

        def add_choice(label: str, var: tk.StringVar, values: Iterable[str], column: int, row: int) -> None:
            ttk.Label(form, text=label, style="FormLabel.TLabel").grid(column=column, row=row, sticky="w", padx=4)
            ttk.Combobox(form, textvariable=var, values=list(values), state="readonly", style="App.TCombobox").grid(
                column=column, row=row + 1, sticky="ew", padx=4, pady=(0, 8)
            )

        add_field("Customer", self.customer_var, 0, 0)
        add_field("Phone", self.phone_var, 1, 0)
        add_field("Date (YYYY-MM-DD)", self.date_var, 2, 0)
        add_choice("Service", self.category_var, CATEGORY_LABELS.values(), 3, 0)
        add_field("Description", self.desc_var, 0, 2)
        add_field("Service cost", self.service_cost_var, 1, 2)
        add_field("Parts cost", self.parts_cost_var, 2, 2)
        add_field("Total", self.total_var, 3, 2, state="readonly")
        add_field("Paid", self.paid_var, 0, 4)
        add_field("Balance", self.balance_var, 1, 4, state="readonly")
        add_choice("Payment method", self.method_var, METHOD_LABELS.values(), 2, 4)

        ttk.Button(form, text="Save Invoice", command=self.submit, style="Primary.TButton").grid(
            column=3, row=5, sticky="e", padx=4, pady=(0, 8)
        )

    def _build_table(self) -> None:
        frame = ttk.Frame(self, style="Panel.TFrame")
        frame.grid(row=1, column=0, sticky="nsew")
        frame.columnconfigure(0, weight=1)
        frame.rowconfigure(1, weight=1)

        filters = ttk.Frame(frame, style="Panel.TFrame")
        filters.grid(row=0, column=0, columnspan=2, sticky="ew", pady=(0, 8))
        ttk.Label(filters, text="Search", style="FormLabel.TLabel").grid(row=0, column=0, padx=4)
        ttk.Entry(filters, textvariable=self.query_var, style="App.TEntry").grid(row=0, column=1, padx=4)
        ttk.Label(filters, text="From", style="FormLabel.TLabel").grid(row=0, column=2, padx=4)
        ttk.Entry(filters, textvariable=self.from_var, width=12, style="App.TEntry").grid(row=0, column=3, padx=4)
        ttk.Label(filters, text="To", style="FormLabel.TLabel").grid(row=0, column=4, padx=4)
        ttk.Entry(filters, textvariable=self.to_var, width=12, style="App.TEntry").grid(row=0, column=5, padx=4)
        ttk.Combobox(
            filters,
            textvariable=self.filter_category_var,
            values=["All", *CATEGORY_LABELS.values()],
            state="readonly",
            style="App.TCombobox",
        ).grid(row=0, column=6, padx=4)
        ttk.Button(filters, text="Reset", command=self.reset_filters, style="Secondary.TButton").grid(
            row=0, column=7, padx=4
        )

        columns = ("date", "customer", "phone", "desc", "category", "service", "parts", "total", "paid", "balance")
        self.tree = ttk.Treeview(frame, columns=columns, show="headings", height=10, style="App.Treeview")
        for key in columns:
            self.tree.heading(key, text=key.title(), anchor="w")
            self.tree.column(key, width=90 if key not in {"desc", "customer"} else 140, anchor="w")
        vsb = ttk.Scrollbar(frame, orient="vertical", command=self.tree.yview)
        self.tree.configure(yscroll=vsb.set)
        self.tree.grid(row=1, column=0, sticky="nsew")
        vsb.grid(row=1, column=1, sticky="ns")

        footer = ttk.Frame(frame, style="Panel.TFrame")
        footer.grid(row=2, column=0, columnspan=2, sticky="ew", pady=8)
        footer.columnconfigure(0, weight=1)
        ttk.Label(footer, textvariable=self.subtotal_var, style="FormLabel.TLabel").grid(row=0, column=0, sticky="w")
        ttk.Button(footer, text="Delete Selected", command=self.delete_selected, style="Secondary.TButton").grid(
            row=0, column=1, padx=4
        )

    def criteria(self) -> InvoiceFilter:
        shown = self.filter_category_var.get()
        return InvoiceFilter(
            query=self.query_var.get(),
            date_from=self.from_var.get().strip(),
            date_to=self.to_var.get().strip(),
            category="" if shown == "All" else _code_for(CATEGORY_LABELS, shown),
        )

    def submit(self) -> None:
        payload = {
            "date": self.date_var.get(),
            "customer": self.customer_var.get(),
            "phone": self.phone_var.get(),
            "desc": self.desc_var.get(),
            "serviceCategory": _code_for(CATEGORY_LABELS, self.category_var.get()),
            "serviceCost": self.service_cost_var.get(),
            "partsCost": self.parts_cost_var.get(),
            "paid": self.paid_var.get(),
            "method": _code_for(METHOD_LABELS, self.method_var.get()),
        }
        try:
            self.ledger.add_invoice(payload)
        except ValidationError as exc:
            messagebox.showerror("Invalid Invoice", str(exc), parent=self)
            return
        except PersistenceError as exc:
            messagebox.showwarning("Storage Error", f"Saved locally only: {exc}", parent=self)
        self.reset_form()
        self.on_change()

    def delete_selected(self) -> None:
        selection = self.tree.selection()
        if not selection:
            messagebox.showinfo("No selection", "Please select an invoice to delete.", parent=self)
            return
        for item_id in selection:
            try:
                self.ledger.delete_invoice(item_id)
            except RecordNotFoundError as exc:
                messagebox.showwarning("Not Found", str(exc), parent=self)
            except PersistenceError as exc:
                messagebox.showwarning("Storage Error", f"Deleted locally only: {exc}", parent=self)
        self.on_change()

    def populate(self) -> None:
        self.tree.delete(*self.tree.get_children())
        invoices = self.ledger.invoices(self.criteria())
        for invoice in invoices:
            values = (
                invoice.date,
                invoice.customer,
                invoice.phone,
                invoice.desc,
                CATEGORY_LABELS.get(invoice.service_category, invoice.service_category),
                format_currency(invoice.service_cost),
                format_currency(invoice.parts_cost),
                format_currency(invoice.total),
                format_currency(invoice.paid),
                format_currency(invoice.balance),
            )
            self.tree.insert("", "end", iid=invoice.id, values=values)
        subtotals = invoice_subtotals(invoices)
        self.subtotal_var.set(
            f"Total: {format_currency(subtotals['total'])}    Paid: {format_currency(subtotals['paid'])}"
        )

    def reset_form(self) -> None:
        # Payment method is kept for the next invoice.
        for var in (self.customer_var, self.phone_var, self.desc_var, self.service_cost_var, self.parts_cost_var, self.paid_var):
            var.set("")
        self.date_var.set(_today())
        self.category_var.set(CATEGORY_LABELS["oil_change"])

    def reset_filters(self) -> None:
        self.query_var.set("")
        self.from_var.set("")
        self.to_var.set("")
        self.filter_category_var.set("All")

    def _update_preview(self) -> None:
        total, balance = form_preview(self.service_cost_var.get(), self.parts_cost_var.get(), self.paid_var.get())
        self.total_var.set(format_currency(total))
        self.balance_var.set(format_currency(balance))


class ExpenseTab(ttk.Frame):
    """Expense form, filters and register."""

    def __init__(self, master: tk.Misc, ledger: LedgerService, on_change: Callable[[], None]) -> None:
        super().__init__(master, padding=16, style="Panel.TFrame")
        self.ledger = ledger
        self.on_change = on_change

        self.date_var = tk.StringVar(value=_today())
        self.category_var = tk.StringVar()
        self.amount_var = tk.StringVar()
        self.notes_var = tk.StringVar()

        self.query_var = tk.StringVar()
        self.from_var = tk.StringVar()
        self.to_var = tk.StringVar()
        self.subtotal_var = tk.StringVar()
        for var in (self.query_var, self.from_var, self.to_var):
            var.trace_add("write", lambda *_: self.populate())

        self._build_form()
        self._build_table()
        self.columnconfigure(0, weight=1)
        self.rowconfigure(1, weight=1)

    def _build_form(self) -> None:
        form = ttk.LabelFrame(self, text="New Expense", style="Card.TLabelframe")
        form.grid(row=0, column=0, sticky="ew", padx=4, pady=(0, 12))
        fields = (
            ("Date (YYYY-MM-DD)", self.date_var),
            ("Category", self.category_var),
            ("Amount", self.amount_var),
            ("Notes", self.notes_var),
        )
        for column, (label, var) in enumerate(fields):
            form.columnconfigure(column, weight=1)
            ttk.Label(form, text=label, style="FormLabel.TLabel").grid(column=column, row=0, sticky="w", padx=4)
            ttk.Entry(form, textvariable=var, style="App.TEntry").grid(
                column=column, row=1, sticky="ew", padx=4, pady=(0, 8)
            )
        ttk.Button(form, text="Save Expense", command=self.submit, style="Primary.TButton").grid(
            column=3, row=2, sticky="e", padx=4, pady=(0, 8)
        )

    def _build_table(self) -> None:
        frame = ttk.Frame(self, style="Panel.TFrame")
        frame.grid(row=1, column=0, sticky="nsew")
        frame.columnconfigure(0, weight=1)
        frame.rowconfigure(1, weight=1)

        filters = ttk.Frame(frame, style="Panel.TFrame")
        filters.grid(row=0, column=0, columnspan=2, sticky="ew", pady=(0, 8))
        for column, (label, var, width) in enumerate(
            (("Search", self.query_var, 24), ("From", self.from_var, 12), ("To", self.to_var, 12))
        ):
            ttk.Label(filters, text=label, style="FormLabel.TLabel").grid(row=0, column=column * 2, padx=4)
            ttk.Entry(filters, textvariable=var, width=width, style="App.TEntry").grid(
                row=0, column=column * 2 + 1, padx=4
            )
        ttk.Button(filters, text="Reset", command=self.reset_filters, style="Secondary.TButton").grid(
            row=0, column=6, padx=4
        )

        columns = ("date", "category", "amount", "notes")
        self.tree = ttk.Treeview(frame, columns=columns, show="headings", height=10, style="App.Treeview")
        for key in columns:
            self.tree.heading(key, text=key.title(), anchor="w")
            self.tree.column(key, width=140 if key != "notes" else 260, anchor="w")
        vsb = ttk.Scrollbar(frame, orient="vertical", command=self.tree.yview)
        self.tree.configure(yscroll=vsb.set)
        self.tree.grid(row=1, column=0, sticky="nsew")
        vsb.grid(row=1, column=1, sticky="ns")

        footer = ttk.Frame(frame, style="Panel.TFrame")
        footer.grid(row=2, column=0, columnspan=2, sticky="ew", pady=8)
        footer.columnconfigure(0, weight=1)
        ttk.Label(footer, textvariable=self.subtotal_var, style="FormLabel.TLabel").grid(row=0, column=0, sticky="w")
        ttk.Button(footer, text="Delete Selected", command=self.delete_selected, style="Secondary.TButton").grid(
            row=0, column=1, padx=4
        )

    def criteria(self) -> ExpenseFilter:
        return ExpenseFilter(
            query=self.query_var.get(),
            date_from=self.from_var.get().strip(),
            date_to=self.to_var.get().strip(),
        )

    def submit(self) -> None:
        payload = {
            "date": self.date_var.get(),
            "category": self.category_var.get(),
            "amount": self.amount_var.get(),
            "notes": self.notes_var.get(),
        }
        try:
            self.ledger.add_expense(payload)
        except ValidationError as exc:
            messagebox.showerror("Invalid Expense", str(exc), parent=self)
            return
        except PersistenceError as exc:
            messagebox.showwarning("Storage Error", f"Saved locally only: {exc}", parent=self)
        self.reset_form()
        self.on_change()

    def delete_selected(self) -> None:
        selection = self.tree.selection()
        if not selection:
            messagebox.showinfo("No selection", "Please select an expense to delete.", parent=self)
            return
        for item_id in selection:
            try:
                self.ledger.delete_expense(item_id)
            except RecordNotFoundError as exc:
                messagebox.showwarning("Not Found", str(exc), parent=self)
            except PersistenceError as exc:
                messagebox.showwarning("Storage Error", f"Deleted locally only: {exc}", parent=self)
        self.on_change()

    def populate(self) -> None:
        self.tree.delete(*self.tree.get_children())
        expenses = self.ledger.expenses(self.criteria())
        for expense in expenses:
            values = (expense.date, expense.category, format_currency(expense.amount), expense.notes)
            self.tree.insert("", "end", iid=expense.id, values=values)
        self.subtotal_var.set(f"Total expenses: {format_currency(expense_subtotal(expenses))}")

    def reset_form(self) -> None:
        self.date_var.set(_today())
        self.category_var.set("")
        self.amount_var.set("")
        self.notes_var.set("")

    def reset_filters(self) -> None:
        self.query_var.set("")
        self.from_var.set("")
        self.to_var.set("")


class DashboardTab(ttk.Frame):
    """Monthly revenue/expense bars and the overall split."""

    def __init__(self, master: tk.Misc, ledger: LedgerService) -> None:
        super().__init__(master, padding=16, style="Panel.TFrame")
        self.ledger = ledger
        self.columnconfigure(0, weight=3)
        self.columnconfigure(1, weight=1)
        self.rowconfigure(0, weight=1)

        self.chart = tk.Canvas(self, bg=SECONDARY_BG, highlightthickness=0, height=280)
        self.chart.grid(row=0, column=0, sticky="nsew", padx=(0, 8))
        self.split = tk.Canvas(self, bg=SECONDARY_BG, highlightthickness=0, width=220, height=280)
        self.split.grid(row=0, column=1, sticky="nsew")
        self.chart.bind("<Configure>", lambda _event: self.populate())

    def populate(self) -> None:
        self._draw_monthly(self.ledger.monthly_chart())
        self._draw_split()

    def _draw_monthly(self, rows: Sequence[MonthlyRow]) -> None:
        canvas = self.chart
        canvas.delete("all")
        width = max(canvas.winfo_width(), 320)
        height = max(canvas.winfo_height(), 280)
        if not rows:
            canvas.create_text(width / 2, height / 2, text="No data yet", fill=TEXT_MUTED)
            return
        for label, revenue_rect, expense_rect in bar_layout(rows, width, height):
            canvas.create_rectangle(*revenue_rect, fill=REVENUE_COLOR, width=0)
            canvas.create_rectangle(*expense_rect, fill=EXPENSE_COLOR, width=0)
            canvas.create_text(
                (revenue_rect[0] + expense_rect[2]) / 2, height - 16, text=label, fill=TEXT_MUTED, font=("Segoe UI", 8)
            )
        canvas.create_text(40, 12, text="Revenue", fill=REVENUE_COLOR, anchor="w")
        canvas.create_text(120, 12, text="Expenses", fill=EXPENSE_COLOR, anchor="w")

    def _draw_split(self) -> None:
        canvas = self.split
        canvas.delete("all")
        slices = revenue_expense_split(self.ledger.totals())
        whole = sum((value for _, value in slices), start=Decimal("0"))
        if whole <= 0:
            canvas.create_text(110, 140, text="No data yet", fill=TEXT_MUTED)
            return
        start = 90.0
        for (label, value), color in zip(slices, (REVENUE_COLOR, EXPENSE_COLOR)):
            extent = float(value / whole) * 360
            canvas.create_arc(20, 40, 200, 220, start=start, extent=extent, fill=color, outline=SECONDARY_BG)
            start += extent
        for row, ((label, value), color) in enumerate(zip(slices, (REVENUE_COLOR, EXPENSE_COLOR))):
            canvas.create_text(20, 240 + row * 18, text=f"{label}: {format_currency(value)}", fill=color, anchor="w")


class GarageBookApp(tk.Tk):
    """Main application window."""

    def __init__(self, settings: Settings) -> None:
        super().__init__()
        self.title("Garage Book")
        self.geometry("1180x720")
        self.minsize(960, 600)
        self.configure(bg=PRIMARY_BG)

        self._configure_styles()

        self.settings = desktop_settings(settings)
        self.ledger = LedgerService(build_store(self.settings))
        self._poll_job: Optional[str] = None

        self.metric_vars = {
            name: tk.StringVar(value=format_currency(0))
            for name in ("revenue", "total_expenses", "net_profit", "paid_to_date", "outstanding_receivable")
        }
        self.status_var = tk.StringVar()

        self._build_layout()
        self.refresh_all()
        self._schedule_poll()
        self.protocol("WM_DELETE_WINDOW", self.close)

    def _configure_styles(self) -> None:
        style = ttk.Style(self)
        try:
            style.theme_use("clam")
        except tk.TclError:
            pass

        style.configure("TFrame", background=PRIMARY_BG)
        style.configure("TLabel", background=PRIMARY_BG, foreground=TEXT_PRIMARY)
        style.configure("Panel.TFrame", background=SECONDARY_BG, relief="flat")
        style.configure("Card.TLabelframe", background=SECONDARY_BG, foreground=TEXT_PRIMARY)
        style.configure("Card.TLabelframe.Label", background=SECONDARY_BG, foreground=TEXT_PRIMARY)
        style.configure("Metric.TFrame", background=SECONDARY_BG)
        style.configure("FormLabel.TLabel", background=SECONDARY_BG, foreground=TEXT_MUTED, font=("Segoe UI", 9))
        style.configure("Header.TLabel", background=PRIMARY_BG, foreground=TEXT_PRIMARY, font=("Segoe UI", 20, "bold"))
        style.configure("Status.TLabel", background=PRIMARY_BG, foreground=TEXT_MUTED, font=("Segoe UI", 9))
        style.configure("MetricLabel.TLabel", background=SECONDARY_BG, foreground=TEXT_MUTED, font=("Segoe UI", 9, "bold"))
        style.configure("MetricValue.TLabel", background=SECONDARY_BG, foreground=TEXT_PRIMARY, font=("Segoe UI", 15, "bold"))
        style.configure("MetricValueNegative.TLabel", background=SECONDARY_BG, foreground="#fca5a5", font=("Segoe UI", 15, "bold"))
        style.configure("App.TEntry", fieldbackground=SECONDARY_BG, foreground=TEXT_PRIMARY, insertcolor=TEXT_PRIMARY)
        style.configure("App.TCombobox", fieldbackground=SECONDARY_BG, foreground=TEXT_PRIMARY, arrowcolor=TEXT_PRIMARY)
        style.map("App.TCombobox", fieldbackground=[("readonly", SECONDARY_BG)])
        style.configure("Primary.TButton", background=ACCENT_BG, foreground=TEXT_PRIMARY, padding=(18, 6))
        style.map("Primary.TButton", background=[("active", ACCENT_ACTIVE_BG)])
        style.configure("Secondary.TButton", background=SECONDARY_BG, foreground=TEXT_PRIMARY, padding=(14, 6))
        style.map("Secondary.TButton", background=[("active", ACCENT_BG)])
        style.configure("App.Treeview", background=SECONDARY_BG, fieldbackground=SECONDARY_BG, foreground=TEXT_PRIMARY, rowheight=26)
        style.configure("App.Treeview.Heading", background=SECONDARY_BG, foreground=TEXT_MUTED, relief="flat")
        style.map("App.Treeview", background=[("selected", ACCENT_BG)])
        style.configure("App.TNotebook", background=PRIMARY_BG, borderwidth=0)
        style.configure("App.TNotebook.Tab", background=SECONDARY_BG, foreground=TEXT_MUTED, padding=(16, 10))
        style.map("App.TNotebook.Tab", background=[("selected", ACCENT_BG)], foreground=[("selected", TEXT_PRIMARY)])

    def _build_layout(self) -> None:
        self.columnconfigure(0, weight=1)
        self.rowconfigure(2, weight=1)

        header = ttk.Frame(self, padding=20)
        header.grid(row=0, column=0, sticky="ew")
        header.columnconfigure(0, weight=1)
        ttk.Label(header, text="Garage Book", style="Header.TLabel").grid(row=0, column=0, sticky="w")
        ttk.Label(header, textvariable=self.status_var, style="Status.TLabel").grid(row=1, column=0, sticky="w")
        for column, (text, command) in enumerate(
            (("Export", self.export), ("Import", self.import_), ("Clear All", self.clear_all)), start=1
        ):
            ttk.Button(header, text=text, command=command, style="Secondary.TButton").grid(row=0, column=column, padx=4)

        summary = ttk.Frame(self, padding=(20, 10), style="Panel.TFrame")
        summary.grid(row=1, column=0, sticky="ew")
        labels = (
            ("revenue", "Revenue"),
            ("total_expenses", "Expenses"),
            ("net_profit", "Net Profit"),
            ("paid_to_date", "Paid by Customers"),
            ("outstanding_receivable", "Outstanding"),
        )
        self.metric_labels: Dict[str, ttk.Label] = {}
        for column, (name, label) in enumerate(labels):
            summary.columnconfigure(column, weight=1)
            container = ttk.Frame(summary, style="Metric.TFrame", padding=(16, 12))
            container.grid(row=0, column=column, sticky="ew", padx=6)
            ttk.Label(container, text=label, style="MetricLabel.TLabel").grid(row=0, column=0, sticky="w")
            value = ttk.Label(container, textvariable=self.metric_vars[name], style="MetricValue.TLabel")
            value.grid(row=1, column=0, sticky="w")
            self.metric_labels[name] = value

        notebook = ttk.Notebook(self, style="App.TNotebook")
        notebook.grid(row=2, column=0, sticky="nsew")
        self.invoice_tab = InvoiceTab(notebook, self.ledger, self.refresh_all)
        self.expense_tab = ExpenseTab(notebook, self.ledger, self.refresh_all)
        self.dashboard_tab = DashboardTab(notebook, self.ledger)
        notebook.add(self.invoice_tab, text="Invoices", padding=4)
        notebook.add(self.expense_tab, text="Expenses", padding=4)
        notebook.add(self.dashboard_tab, text="Dashboard", padding=4)

    def refresh_all(self) -> None:
        self.invoice_tab.populate()
        self.expense_tab.populate()
        self.dashboard_tab.populate()
        self.refresh_summary()

    def refresh_summary(self) -> None:
        totals = self.ledger.totals()
        for name, var in self.metric_vars.items():
            value = getattr(totals, name)
            var.set(format_currency(value))
            style = "MetricValueNegative.TLabel" if value < 0 else "MetricValue.TLabel"
            self.metric_labels[name].configure(style=style)

    def export(self) -> None:
        path = filedialog.asksaveasfilename(
            parent=self,
            defaultextension=".json",
            initialfile=export_filename(),
            filetypes=[("JSON", "*.json")],
        )
        if not path:
            return
        try:
            Path(path).write_text(self.ledger.export_document(), encoding="utf-8")
        except OSError as exc:
            messagebox.showerror("Export Failed", str(exc), parent=self)

    def import_(self) -> None:
        path = filedialog.askopenfilename(parent=self, filetypes=[("JSON", "*.json")])
        if not path:
            return
        try:
            report = self.ledger.import_document(Path(path).read_text(encoding="utf-8"))
        except (OSError, ValidationError) as exc:
            messagebox.showerror("Invalid File", str(exc), parent=self)
            return
        if not report.imported_anything:
            messagebox.showerror("Invalid File", "The file holds no invoices or expenses.", parent=self)
            return
        if not report.saved:
            messagebox.showwarning("Storage Error", "Imported data could not be saved.", parent=self)
        else:
            messagebox.showinfo(
                "Import Complete",
                f"Invoices: {report.invoices.count}  Expenses: {report.expenses.count}",
                parent=self,
            )
        self.refresh_all()

    def clear_all(self) -> None:
        if not messagebox.askyesno("Clear All", "Delete all invoices and expenses?", parent=self):
            return
        try:
            self.ledger.clear()
        except PersistenceError as exc:
            messagebox.showwarning("Storage Error", f"Cleared locally only: {exc}", parent=self)
        self.refresh_all()

    def _schedule_poll(self) -> None:
        self._poll_job = self.after(int(self.settings.poll_interval * 1000), self._poll)

    def _poll(self) -> None:
        if self.ledger.refresh():
            self.status_var.set("")
            self.refresh_all()
        else:
            self.status_var.set("Sync failed; showing the last loaded data.")
        self._schedule_poll()

    def close(self) -> None:
        if self._poll_job is not None:
            self.after_cancel(self._poll_job)
            self._poll_job = None
        self.destroy()


def main(argv: Optional[Iterable[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Tkinter desktop app for the garage ledger")
    parser.add_argument("--data-dir", type=Path, help="Directory holding the JSON ledger (default: ./data)")
    parser.add_argument("--remote-url", help="Ledger endpoint to poll instead of the local file")
    parser.add_argument("--poll-interval", type=float, help="Seconds between refreshes (default: 5)")
    args = parser.parse_args(list(argv) if argv is not None else None)

    settings = Settings.from_env().override(
        data_dir=args.data_dir, remote_url=args.remote_url, poll_interval=args.poll_interval
    )
    configure_logging(settings.log_level)
    app = GarageBookApp(settings)
    app.mainloop()


if __name__ == "__main__":  # pragma: no cover - manual execution
    main()
