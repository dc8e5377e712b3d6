"""Shared pytest fixtures for the garage ledger tests."""

from decimal import Decimal

import pytest
import requests

from garagebook.exceptions import PersistenceError
from garagebook.models import Expense, Invoice, LedgerDocument
from garagebook.services import LedgerService
from garagebook.storage import JSONFileStore


class MemoryStore:
    """In-memory store whose load/save can be switched to fail."""

    def __init__(self, document=None):
        self.document = document or LedgerDocument()
        self.fail_load = False
        self.fail_save = False
        self.saves = 0

    def load(self):
        if self.fail_load:
            raise PersistenceError("store unavailable")
        return LedgerDocument(
            list(self.document.invoices), list(self.document.expenses), self.document.rejected_fields
        )

    def save(self, document):
        if self.fail_save:
            raise PersistenceError("store unavailable")
        self.saves += 1
        self.document = LedgerDocument(list(document.invoices), list(document.expenses))


class FakeResponse:
    def __init__(self, status_code=200, payload=None, invalid_json=False):
        self.status_code = status_code
        self._payload = payload
        self._invalid_json = invalid_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)

    def json(self):
        if self._invalid_json:
            raise ValueError("not json")
        return self._payload


class FakeSession:
    """Records requests and replays queued responses or exceptions."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def _next(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def get(self, url, **kwargs):
        return self._next("GET", url, **kwargs)

    def put(self, url, **kwargs):
        return self._next("PUT", url, **kwargs)


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def file_store(tmp_path):
    return JSONFileStore(tmp_path / "data")


@pytest.fixture
def ledger(memory_store):
    return LedgerService(memory_store)


@pytest.fixture
def scenario_invoices():
    """Two invoices: January (40 + 10, paid 50) and February (20 + 0, unpaid)."""
    return [
        Invoice(
            id="inv-1",
            date="2024-01-15",
            customer="Ahmad",
            phone="0791234567",
            desc="Oil change and filter",
            service_category="oil_change",
            service_cost=Decimal("40"),
            parts_cost=Decimal("10"),
            paid=Decimal("50"),
            method="cash",
        ),
        Invoice(
            id="inv-2",
            date="2024-02-01",
            customer="Sami",
            phone="0777654321",
            desc="Brake pads",
            service_category="brake_system",
            service_cost=Decimal("20"),
            parts_cost=Decimal("0"),
            paid=Decimal("0"),
            method="card",
        ),
    ]


@pytest.fixture
def scenario_expenses():
    return [Expense(id="exp-1", date="2024-01-20", category="Rent", amount=Decimal("30"), notes="January rent")]


@pytest.fixture
def scenario_document(scenario_invoices, scenario_expenses):
    return LedgerDocument(invoices=scenario_invoices, expenses=scenario_expenses)
