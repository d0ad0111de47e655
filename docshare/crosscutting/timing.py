"""
Timer basado en perf_counter para medir casos de uso.

Uso:
    with Timer() as timer:
        ...
    observe_usecase_duration("grant_access", timer.elapsed_seconds)
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Timer:
    """Mide elapsed time; usable manualmente o como context manager."""

    _start: Optional[float] = field(default=None, repr=False)
    _end: Optional[float] = field(default=None, repr=False)

    def start(self) -> "Timer":
        self._start = time.perf_counter()
        self._end = None
        return self

    def stop(self) -> "Timer":
        if self._start is None:
            raise RuntimeError("Timer not started")
        self._end = time.perf_counter()
        return self

    @property
    def elapsed_seconds(self) -> float:
        if self._start is None:
            return 0.0
        end = self._end if self._end is not None else time.perf_counter()
        return end - self._start

    @property
    def elapsed_ms(self) -> float:
        return round(self.elapsed_seconds * 1000, 2)

    def __enter__(self) -> "Timer":
        return self.start()

    def __exit__(self, *exc_info) -> None:
        self.stop()
