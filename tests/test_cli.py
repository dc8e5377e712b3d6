import json

import pytest

from garagebook_cli import cli
from garagebook_cli.cli import main

from conftest import MemoryStore


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    for name in ("GARAGEBOOK_REMOTE_URL", "GARAGEBOOK_DATA_DIR", "GARAGEBOOK_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "data"


def run(data_dir, *argv):
    return main(["--data-dir", str(data_dir), *argv])


def seed(data_dir):
    assert run(
        data_dir, "invoice", "add",
        "--customer", "Ahmad", "--desc", "Oil change", "--date", "2024-01-15",
        "--service-cost", "40", "--parts-cost", "10", "--paid", "50",
    ) == 0
    assert run(
        data_dir, "invoice", "add",
        "--customer", "Sami", "--desc", "Brake pads", "--date", "2024-02-01",
        "--category", "brake_system", "--service-cost", "20", "--method", "card",
    ) == 0
    assert run(data_dir, "expense", "add", "Rent", "30", "--date", "2024-01-20") == 0


def test_summary_reports_totals(data_dir, capsys):
    seed(data_dir)
    capsys.readouterr()

    assert run(data_dir, "summary") == 0

    out = capsys.readouterr().out
    assert "Revenue:               JOD 70.000" in out
    assert "Expenses:              JOD 30.000" in out
    assert "Net profit:            JOD 40.000" in out
    assert "Outstanding:           JOD 20.000" in out


def test_invoice_list_filters(data_dir, capsys):
    seed(data_dir)
    capsys.readouterr()

    assert run(data_dir, "invoice", "list", "--category", "brake_system") == 0

    out = capsys.readouterr().out
    assert "Found 1 invoices" in out
    assert "Sami" in out
    assert "Ahmad" not in out


def test_empty_listing(data_dir, capsys):
    assert run(data_dir, "expense", "list") == 0
    assert "No expenses found." in capsys.readouterr().out


def test_monthly_rows(data_dir, capsys):
    seed(data_dir)
    capsys.readouterr()

    assert run(data_dir, "monthly") == 0

    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 2
    assert "JOD 50.000" in lines[0] and "JOD 30.000" in lines[0]


def test_export_then_import_into_fresh_directory(data_dir, tmp_path, capsys):
    seed(data_dir)
    target = tmp_path / "backup.json"

    assert run(data_dir, "export", str(target)) == 0
    exported = json.loads(target.read_text(encoding="utf-8"))
    assert len(exported["invoices"]) == 2
    assert len(exported["expenses"]) == 1

    fresh = tmp_path / "fresh"
    capsys.readouterr()
    assert run(fresh, "import", str(target)) == 0
    assert "Imported 2 invoices" in capsys.readouterr().out

    assert run(fresh, "summary") == 0
    assert "Net profit:            JOD 40.000" in capsys.readouterr().out


def test_import_without_lists_fails(data_dir, tmp_path, capsys):
    source = tmp_path / "bad.json"
    source.write_text(json.dumps({"invoices": "nope"}), encoding="utf-8")

    assert run(data_dir, "import", str(source)) == 1
    assert "Nothing was imported." in capsys.readouterr().err


def test_clear_requires_confirmation(data_dir, capsys):
    seed(data_dir)

    assert run(data_dir, "clear") == 1
    assert "--yes" in capsys.readouterr().err
    assert run(data_dir, "clear", "--yes") == 0
    capsys.readouterr()

    assert run(data_dir, "invoice", "list") == 0
    assert "No invoices found." in capsys.readouterr().out


def test_delete_unknown_record(data_dir, capsys):
    assert run(data_dir, "invoice", "delete", "missing") == 1
    assert "missing" in capsys.readouterr().err


def test_validation_error(data_dir, capsys):
    assert run(data_dir, "expense", "add", "Rent", "-5") == 1
    assert "Validation error" in capsys.readouterr().err


def test_watch_reprints_summary_on_each_refresh(data_dir, capsys):
    seed(data_dir)
    capsys.readouterr()

    assert run(data_dir, "watch", "--interval", "0.01", "--count", "2") == 0

    out = capsys.readouterr().out
    assert out.count("Net profit:            JOD 40.000") == 3
    assert out.count("Refreshed at") == 2


def test_watch_keeps_last_totals_when_store_is_down(monkeypatch, scenario_document, capsys):
    class OneShotStore(MemoryStore):
        def load(self):
            document = super().load()
            self.fail_load = True
            return document

    store = OneShotStore(scenario_document)
    monkeypatch.setattr(cli, "build_store", lambda settings: store)

    assert main(["watch", "--interval", "0.01", "--count", "1"]) == 0

    captured = capsys.readouterr()
    assert "Refresh failed" in captured.err
    assert "Net profit:            JOD 40.000" in captured.out


def test_watch_rejects_non_positive_interval(data_dir):
    with pytest.raises(SystemExit):
        run(data_dir, "watch", "--interval", "0")
