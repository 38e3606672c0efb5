"""
Wall-clock timing for the iterative routines.

nested_lmm() and mlid() time their stages (setup, optimization, BLUP
extraction, simulation) and report them in Result.timing, e.g.

    {'total_seconds': 0.052, 'setup': 0.003, 'optimization': 0.041, ...}
"""

import time
from contextlib import contextmanager
from typing import Iterator

TOTAL_KEY = 'total_seconds'


class Timer:
    """
    Overall stopwatch plus named stage timers.

    A stage entered more than once accumulates its time, so a loop body
    wrapped in section('batch') reports the sum over iterations.

        timer = Timer()
        timer.start()
        with timer.section('optimization'):
            opt = minimize(...)
        timer.stop()
        timer.result()
    """

    def __init__(self):
        self._stages: dict[str, float] = {}
        self._t0: float | None = None
        self._elapsed: float | None = None

    def start(self) -> None:
        self._t0 = time.perf_counter()

    def stop(self) -> None:
        if self._t0 is None:
            raise RuntimeError("Timer.stop() called before start()")
        self._elapsed = time.perf_counter() - self._t0

    @contextmanager
    def section(self, name: str) -> Iterator[None]:
        """Time the enclosed block under `name`."""
        if name == TOTAL_KEY:
            raise ValueError(f"'{TOTAL_KEY}' is reserved for the overall time")
        t0 = time.perf_counter()
        try:
            yield
        finally:
            self._stages[name] = (
                self._stages.get(name, 0.0) + time.perf_counter() - t0
            )

    def result(self) -> dict[str, float]:
        """Overall time under 'total_seconds', then each stage in entry order.

        Raises:
            RuntimeError: If the timer has not been stopped
        """
        if self._elapsed is None:
            raise RuntimeError("Timer.result() called before stop()")
        return {TOTAL_KEY: self._elapsed, **self._stages}
