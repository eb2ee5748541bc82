r"""
Incremental sample statistics.

    from client_bench.runner.stats import SampleSet

    samples = SampleSet()
    for duration in durations:
        samples.push(duration)
    print(samples.mean(), samples.relative_margin_of_error())
    final = samples.trim_outliers()
"""

import math
import statistics
from collections.abc import Iterable

from client_bench.types import MemoryReading, MemoryUsage, StatsSummary

__all__ = ["SampleSet", "build_summary", "t_critical"]

# Two-tailed 95% critical values of Student's t, indexed by degrees of freedom.
_T_TABLE: dict[int, float] = {
    1: 12.706, 2: 4.303, 3: 3.182, 4: 2.776, 5: 2.571,
    6: 2.447, 7: 2.365, 8: 2.306, 9: 2.262, 10: 2.228,
    11: 2.201, 12: 2.179, 13: 2.16, 14: 2.145, 15: 2.131,
    16: 2.12, 17: 2.11, 18: 2.101, 19: 2.093, 20: 2.086,
    21: 2.08, 22: 2.074, 23: 2.069, 24: 2.064, 25: 2.06,
    26: 2.056, 27: 2.052, 28: 2.048, 29: 2.045, 30: 2.042,
}
_Z_95 = 1.96


def t_critical(degrees_of_freedom: int) -> float:
    """Confidence coefficient for a 95% interval."""
    return _T_TABLE.get(degrees_of_freedom, _Z_95)


class SampleSet:
    """Append-only collection of numeric observations."""

    def __init__(self, values: Iterable[float] = ()) -> None:
        self._values: list[float] = list(values)

    def push(self, value: float) -> None:
        self._values.append(value)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"SampleSet(n={len(self._values)})"

    @property
    def values(self) -> tuple[float, ...]:
        return tuple(self._values)

    def mean(self) -> float | None:
        if not self._values:
            return None
        return statistics.fmean(self._values)

    def range(self) -> tuple[float, float] | None:
        if not self._values:
            return None
        return min(self._values), max(self._values)

    def stdev(self) -> float | None:
        """Sample standard deviation; None below two observations."""
        if len(self._values) < 2:
            return None
        return statistics.stdev(self._values)

    def margin_of_error(self) -> float | None:
        """Half-width of the 95% confidence interval around the mean."""
        stdev = self.stdev()
        if stdev is None:
            return None
        n = len(self._values)
        return t_critical(n - 1) * stdev / math.sqrt(n)

    def relative_margin_of_error(self) -> float | None:
        """Margin of error as a percentage of the mean.

        A zero mean yields 0.0 when the margin is also zero and infinity
        otherwise, so a convergence check never divides by zero.
        """
        moe = self.margin_of_error()
        if moe is None:
            return None
        mean = self.mean()
        if mean == 0:
            return 0.0 if moe == 0 else math.inf
        return moe / abs(mean) * 100

    def percentile(self, p: float) -> float | None:
        """Linearly interpolated percentile, p in [0, 100]."""
        if not self._values:
            return None
        if not 0 <= p <= 100:
            msg = f"Percentile must be between 0 and 100, got {p}"
            raise ValueError(msg)
        ordered = sorted(self._values)
        position = (len(ordered) - 1) * p / 100
        lower = math.floor(position)
        upper = math.ceil(position)
        return ordered[lower] + (ordered[upper] - ordered[lower]) * (position - lower)

    def trim_outliers(self, *, fence: float = 1.5) -> "SampleSet":
        """Return a new set without values outside the interquartile fences.

        Keeps values in ``[q1 - fence * iqr, q3 + fence * iqr]``, bounds
        inclusive. ``fence=0`` keeps only the interquartile range itself.
        Sets with fewer than four values are copied unchanged.
        """
        if len(self._values) < 4:
            return SampleSet(self._values)
        q1 = self.percentile(25)
        q3 = self.percentile(75)
        width = (q3 - q1) * fence
        low, high = q1 - width, q3 + width
        return SampleSet(v for v in self._values if low <= v <= high)


def build_summary(
    durations: SampleSet,
    heap_used: SampleSet,
    heap_total: SampleSet,
    baseline: MemoryReading | None = None,
) -> StatsSummary:
    """Build a stats summary from duration and memory samples.

    Args:
        durations: Run step durations in milliseconds.
        heap_used: Heap used readings in bytes.
        heap_total: Heap total readings in bytes.
        baseline: Memory reading taken before the pairing started.

    Returns:
        StatsSummary snapshot.
    """
    bounds = durations.range()
    return StatsSummary(
        iterations=len(durations),
        min=bounds[0] if bounds else None,
        mean=durations.mean(),
        max=bounds[1] if bounds else None,
        margin_of_error=durations.margin_of_error(),
        relative_margin_of_error=durations.relative_margin_of_error(),
        memory_usage=MemoryUsage(
            heap_used=heap_used.mean(),
            heap_total=heap_total.mean(),
            heap_used_base=baseline.heap_used if baseline else None,
            heap_total_base=baseline.heap_total if baseline else None,
        ),
    )
