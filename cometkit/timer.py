"""A min-heap timer that runs callbacks on a background thread."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Union

DEBUG = False
TIMER_FORMAT = "%Y-%m-%d %H:%M:%S"

log = logging.getLogger(__name__)

Delay = Union[float, timedelta]


def _seconds(expire: Delay) -> float:
    return expire.total_seconds() if isinstance(expire, timedelta) else float(expire)


@dataclass(eq=False)
class TimerData:
    """A scheduled entry; ``key`` is a free-form label."""

    key: str = ""
    fn: Optional[Callable[[], None]] = None
    deadline: float = 0.0
    index: int = field(default=-1)

    def delay(self) -> float:
        """Seconds until expiry (negative once expired)."""
        return self.deadline - time.monotonic()

    def expire_string(self) -> str:
        """Wall-clock expiry time as ``YYYY-MM-DD HH:MM:SS``."""
        return (datetime.now() + timedelta(seconds=self.delay())).strftime(TIMER_FORMAT)


class Timer:
    """Runs each added callback once its delay has passed.

    Callbacks run on one background thread, outside the timer's lock.
    """

    def __init__(self, num: int = 1024) -> None:
        self._capacity_hint = num
        self._timers: List[TimerData] = []
        self._cond = threading.Condition()
        self._closed = False
        self._thread = threading.Thread(target=self._run, name="timer", daemon=True)
        self._thread.start()

    def __len__(self) -> int:
        with self._cond:
            return len(self._timers)

    def __enter__(self) -> "Timer":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def add(self, expire: Delay, fn: Optional[Callable[[], None]]) -> TimerData:
        """Schedule ``fn`` to run after ``expire`` (seconds or timedelta)."""
        td = TimerData(fn=fn, deadline=time.monotonic() + _seconds(expire))
        with self._cond:
            self._add(td)
        return td

    def delete(self, td: TimerData) -> None:
        """Cancel ``td``; a no-op if it already fired or was removed."""
        with self._cond:
            self._del(td)
            td.fn = None

    def set(self, td: TimerData, expire: Delay) -> None:
        """Reschedule ``td`` to expire after ``expire`` from now."""
        with self._cond:
            self._del(td)
            td.deadline = time.monotonic() + _seconds(expire)
            self._add(td)

    def close(self) -> None:
        """Stop the background thread; pending entries never fire."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()
        if threading.current_thread() is not self._thread:
            self._thread.join()

    def _add(self, td: TimerData) -> None:
        td.index = len(self._timers)
        self._timers.append(td)
        self._up(td.index)
        if td.index == 0:
            self._cond.notify_all()
        if DEBUG:
            log.info("timer: push item key: %s, expire: %s, index: %d",
                     td.key, td.expire_string(), td.index)

    def _del(self, td: TimerData) -> None:
        i = td.index
        last = len(self._timers) - 1
        if i < 0 or i > last or self._timers[i] is not td:
            if DEBUG:
                log.info("timer del i: %d, last: %d", i, last)
            return
        if i != last:
            self._swap(i, last)
            self._down(i, last)
            self._up(i)
        self._timers[last].index = -1
        self._timers.pop()
        if DEBUG:
            log.info("timer: remove item key: %s, expire: %s",
                     td.key, td.expire_string())

    def _run(self) -> None:
        with self._cond:
            while not self._closed:
                if not self._timers:
                    self._cond.wait()
                    continue
                td = self._timers[0]
                remaining = td.delay()
                if remaining > 0:
                    self._cond.wait(remaining)
                    continue
                fn = td.fn
                self._del(td)
                self._cond.release()
                try:
                    if fn is None:
                        log.warning("expire timer no fn")
                    else:
                        if DEBUG:
                            log.info("timer key: %s expired, call fn", td.key)
                        fn()
                except Exception:
                    log.exception("timer callback failed")
                finally:
                    self._cond.acquire()

    def _less(self, i: int, j: int) -> bool:
        return self._timers[i].deadline < self._timers[j].deadline

    def _swap(self, i: int, j: int) -> None:
        timers = self._timers
        timers[i], timers[j] = timers[j], timers[i]
        timers[i].index = i
        timers[j].index = j

    def _up(self, j: int) -> None:
        while j > 0:
            i = (j - 1) // 2
            if not self._less(j, i):
                break
            self._swap(i, j)
            j = i

    def _down(self, i: int, n: int) -> None:
        while True:
            j = 2 * i + 1
            if j >= n:
                break
            if j + 1 < n and not self._less(j, j + 1):
                j += 1
            if not self._less(j, i):
                break
            self._swap(i, j)
            i = j