from decimal import Decimal

import pytest

pytest.importorskip("tkinter")

from desktop.app.tkapp import POLL_TIMEOUT, bar_layout, desktop_settings, form_preview  # noqa: E402
from garagebook.config import Settings  # noqa: E402
from garagebook.engine import MonthlyRow  # noqa: E402


def test_form_preview_treats_blank_as_zero():
    assert form_preview("40", "", "15") == (Decimal("40"), Decimal("25"))
    assert form_preview("", "", "") == (Decimal("0"), Decimal("0"))


def test_bar_layout_scales_to_the_largest_value():
    rows = [
        MonthlyRow(key="", label="", revenue=Decimal("0"), expense=Decimal("5")),
        MonthlyRow(key="2024-01", label="Jan", revenue=Decimal("50"), expense=Decimal("25")),
    ]

    layout = bar_layout(rows, width=264, height=164, padding=32)

    assert [label for label, _, _ in layout] == ["(no date)", "Jan"]
    _, undated_revenue, _ = layout[0]
    _, january_revenue, january_expense = layout[1]
    assert undated_revenue[1] == undated_revenue[3] == 132
    assert january_revenue[1] == pytest.approx(32)
    assert january_expense[1] == pytest.approx(82)
    assert january_revenue[2] == pytest.approx(january_expense[0])


def test_bar_layout_without_rows():
    assert bar_layout([], width=300, height=200) == []


def test_desktop_caps_the_remote_timeout():
    settings = Settings(remote_url="http://ledger.local/ledger", timeout=10.0)

    assert desktop_settings(settings).timeout == POLL_TIMEOUT
    assert desktop_settings(settings).remote_url == settings.remote_url
    assert desktop_settings(Settings(timeout=0.5)).timeout == 0.5
