r"""
Timing utilities for passes and phases.

    from client_bench.runner.timing import Timer

    with Timer() as t:
        await benchmark.run()
    print(f"Elapsed: {t.elapsed_ms}ms")
"""

import time
from typing import Any

__all__ = ["Timer"]


class Timer:
    """Context manager for timing code blocks.

    Reading ``elapsed_*`` inside the block gives the time elapsed so far.

        timer = Timer().start()
        ...
        if timer.elapsed_ms > budget:
            ...
    """

    def __init__(self) -> None:
        self._start: int = 0
        self._end: int | None = None

    def start(self) -> "Timer":
        self._start = time.perf_counter_ns()
        self._end = None
        return self

    def stop(self) -> None:
        self._end = time.perf_counter_ns()

    def __enter__(self) -> "Timer":
        return self.start()

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.stop()

    @property
    def elapsed_ns(self) -> int:
        """Elapsed time in nanoseconds."""
        end = self._end if self._end is not None else time.perf_counter_ns()
        return end - self._start

    @property
    def elapsed_ms(self) -> float:
        """Elapsed time in milliseconds."""
        return self.elapsed_ns / 1_000_000

    @property
    def elapsed_seconds(self) -> float:
        """Elapsed time in seconds."""
        return self.elapsed_ns / 1_000_000_000
