import re
import threading
import time
from datetime import timedelta

import pytest

from cometkit.timer import Timer


@pytest.fixture
def timer():
    t = Timer(100)
    yield t
    t.close()


def _wait_until(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def test_add_and_delete_many(timer):
    tds = [timer.add(i + 300, None) for i in range(100)]
    assert len(timer) == 100
    for td in tds:
        timer.delete(td)
    assert len(timer) == 0
    tds = [timer.add(timedelta(seconds=i, minutes=5), None) for i in range(100)]
    assert len(timer) == 100
    for td in tds:
        timer.delete(td)
    assert len(timer) == 0
    timer.add(0.05, None)
    assert _wait_until(lambda: len(timer) == 0)


def test_callback_fires(timer):
    fired = threading.Event()
    timer.add(0.02, fired.set)
    assert fired.wait(2.0)
    assert len(timer) == 0


def test_callbacks_fire_in_deadline_order(timer):
    order = []
    done = threading.Event()

    def record(name):
        def fn():
            order.append(name)
            if len(order) == 3:
                done.set()
        return fn

    td_c = timer.add(0.15, record("c"))
    td_a = timer.add(0.05, record("a"))
    td_b = timer.add(0.10, record("b"))
    assert td_a.delay() < td_b.delay() < td_c.delay()
    assert done.wait(2.0)
    assert order == ["a", "b", "c"]
    assert _wait_until(lambda: len(timer) == 0)
    assert len(timer) == 0


def test_delete_prevents_firing(timer):
    fired = threading.Event()
    td = timer.add(0.05, fired.set)
    timer.delete(td)
    assert not fired.wait(0.2)
    assert len(timer) == 0


def test_set_reschedules(timer):
    fired = threading.Event()
    td = timer.add(300, fired.set)
    assert td.delay() > 200
    timer.set(td, 0.02)
    assert fired.wait(2.0)


def test_delete_twice_is_harmless(timer):
    td = timer.add(300, None)
    other = timer.add(400, None)
    timer.delete(td)
    timer.delete(td)
    assert len(timer) == 1
    assert other.index == 0


def test_expire_string_format(timer):
    td = timer.add(300, None)
    td.key = "k"
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}", td.expire_string())
    assert 299 < td.delay() <= 300


def test_close_stops_thread():
    fired = threading.Event()
    with Timer() as t:
        t.add(0.1, fired.set)
    assert not fired.wait(0.3)