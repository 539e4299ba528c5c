"""
Tests for the Ticker: manual ticks, overlap guard, error isolation, start/stop.
"""

import threading
import time

import pytest

from trigger_core import Ticker


def test_tick_runs_callback_synchronously():
    calls = []
    ticker = Ticker(lambda: calls.append(1), interval_seconds=60)
    assert ticker.tick() is True
    assert ticker.tick() is True
    assert calls == [1, 1]
    assert ticker.ticks == 2
    assert not ticker.running


def test_tick_survives_callback_errors():
    def boom():
        raise RuntimeError("store down")

    ticker = Ticker(boom, interval_seconds=60)
    assert ticker.tick() is True
    assert ticker.ticks == 1


def test_overlapping_tick_is_skipped():
    entered = threading.Event()
    release = threading.Event()

    def slow():
        entered.set()
        release.wait(5)

    ticker = Ticker(slow, interval_seconds=60)
    worker = threading.Thread(target=ticker.tick)
    worker.start()
    assert entered.wait(5)
    assert ticker.tick() is False
    release.set()
    worker.join(5)
    assert ticker.ticks == 1


def test_invalid_interval():
    with pytest.raises(ValueError):
        Ticker(lambda: None, interval_seconds=0)


def test_start_is_idempotent_and_stop_halts_ticks():
    fired = threading.Event()
    ticker = Ticker(fired.set, interval_seconds=0.01)
    ticker.start()
    thread = ticker._thread
    ticker.start()
    assert ticker._thread is thread
    assert ticker.running
    assert fired.wait(5)
    ticker.stop(timeout=5)
    assert not ticker.running
    count = ticker.ticks
    time.sleep(0.05)
    assert ticker.ticks == count
    ticker.stop()  # second stop is a no-op


def test_stop_lets_in_flight_pass_finish():
    entered = threading.Event()
    finished = threading.Event()

    def slow():
        entered.set()
        time.sleep(0.05)
        finished.set()

    ticker = Ticker(slow, interval_seconds=0.01)
    ticker.start()
    assert entered.wait(5)
    ticker.stop(timeout=5)
    assert finished.is_set()
