import threading
import time

import pytest

from garagebook.services import LedgerService
from garagebook.sync import RefreshScheduler

from conftest import MemoryStore


def test_scheduler_repeats_until_stopped():
    calls = []
    reached = threading.Event()

    def tick():
        calls.append(time.monotonic())
        if len(calls) >= 3:
            reached.set()

    scheduler = RefreshScheduler(tick, interval=0.01).start()
    assert reached.wait(timeout=2)
    scheduler.stop(timeout=2)

    count = len(calls)
    time.sleep(0.05)
    assert len(calls) == count
    assert not scheduler.running


def test_callback_errors_do_not_stop_the_timer():
    attempts = []
    reached = threading.Event()

    def flaky():
        attempts.append(1)
        if len(attempts) >= 3:
            reached.set()
        raise RuntimeError("network down")

    with RefreshScheduler(flaky, interval=0.01):
        assert reached.wait(timeout=2)


def test_scheduler_cannot_restart_after_stop():
    scheduler = RefreshScheduler(lambda: None, interval=1).start()
    scheduler.stop(timeout=2)

    with pytest.raises(RuntimeError):
        scheduler.start()


def test_interval_must_be_positive():
    with pytest.raises(ValueError):
        RefreshScheduler(lambda: None, interval=0)


def test_scheduled_refresh_survives_store_outage(scenario_document):
    store = MemoryStore(scenario_document)
    service = LedgerService(store)
    store.fail_load = True
    failed = threading.Event()

    def refresh():
        if not service.refresh():
            failed.set()

    with RefreshScheduler(refresh, interval=0.01):
        assert failed.wait(timeout=2)

    assert service.document() == scenario_document
