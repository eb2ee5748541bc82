r"""
Core types for client benchmarks.

    from client_bench.types import Event, Subject, EventType

    def reporter(event: Event) -> None:
        if event.subject is Subject.CLIENT_BENCHMARK and event.type is EventType.END:
            print(event.client.name, event.stats.mean)
"""

from dataclasses import dataclass
from enum import IntEnum, StrEnum, auto
from typing import Any

__all__ = [
    "Phase",
    "Subject",
    "EventType",
    "PhaseState",
    "Status",
    "Failure",
    "BenchmarkMetadata",
    "ClientMetadata",
    "MemoryReading",
    "PassResult",
    "MemoryUsage",
    "StatsSummary",
    "Event",
    "ClientBenchmarkResult",
]


class Phase(StrEnum):
    """Stage of a client-benchmark pairing."""

    VERIFY = auto()
    WARMUP = auto()
    ITERATION = auto()


class Subject(StrEnum):
    """What an event is about."""

    SUITE = auto()
    BENCHMARK = auto()
    CLIENT_BENCHMARK = auto()
    CLIENT_BENCHMARK_PHASE = auto()


class EventType(StrEnum):
    """Lifecycle edge an event marks."""

    START = auto()
    END = auto()


class PhaseState(IntEnum):
    """States a phase moves through.

    NOT_STARTED -> RUNNING -> one of the terminal outcomes -> ENDED.
    """

    NOT_STARTED = auto()
    RUNNING = auto()
    CONVERGED = auto()
    FAILED = auto()
    CANCELED = auto()
    MAX_DURATION_EXCEEDED = auto()
    ENDED = auto()


class Status(IntEnum):
    """Outcome of a client-benchmark pairing."""

    SUCCESS = auto()
    FAILED = auto()
    CANCELED = auto()


@dataclass(frozen=True, slots=True)
class Failure:
    """A lifecycle or transformation error and the phase it happened in."""

    error: Exception
    phase: Phase

    @property
    def message(self) -> str:
        return f"{type(self.error).__name__}: {self.error}"


@dataclass(frozen=True, slots=True)
class BenchmarkMetadata:
    """Static benchmark metadata, used for reporting only."""

    name: str


@dataclass(frozen=True, slots=True)
class ClientMetadata:
    """Static client metadata, used for reporting only."""

    name: str


@dataclass(frozen=True, slots=True)
class MemoryReading:
    """Heap figures sampled after a forced collection, in bytes."""

    heap_used: int
    heap_total: int


@dataclass(frozen=True, slots=True)
class PassResult:
    """Outcome of one successful pass.

    Attributes:
        duration: Wall-clock duration of the run step in milliseconds.
        memory: Memory reading, or None without instrumentation.
    """

    duration: float
    memory: MemoryReading | None = None


@dataclass(frozen=True, slots=True)
class MemoryUsage:
    """Mean heap figures over a sample set plus the pairing baseline."""

    heap_used: float | None = None
    heap_total: float | None = None
    heap_used_base: int | None = None
    heap_total_base: int | None = None


@dataclass(frozen=True, slots=True)
class StatsSummary:
    """Read-only snapshot of a sample set.

    Durations are in milliseconds. Figures that are undefined for the number
    of samples collected (everything when empty, the margin of error below
    two samples) are None.

    Attributes:
        iterations: Number of samples.
        min: Fastest sample.
        mean: Arithmetic mean.
        max: Slowest sample.
        margin_of_error: Half-width of the 95% confidence interval.
        relative_margin_of_error: Margin of error as a percentage of the mean.
        memory_usage: Memory summary.
    """

    iterations: int
    min: float | None
    mean: float | None
    max: float | None
    margin_of_error: float | None
    relative_margin_of_error: float | None
    memory_usage: MemoryUsage

    def to_dict(self) -> dict[str, Any]:
        return {
            "iterations": self.iterations,
            "min": self.min,
            "mean": self.mean,
            "max": self.max,
            "margin_of_error": self.margin_of_error,
            "relative_margin_of_error": self.relative_margin_of_error,
            "memory_usage": {
                "heap_used": self.memory_usage.heap_used,
                "heap_total": self.memory_usage.heap_total,
                "heap_used_base": self.memory_usage.heap_used_base,
                "heap_total_base": self.memory_usage.heap_total_base,
            },
        }


@dataclass(frozen=True, slots=True)
class Event:
    """A self-describing progress record handed to the reporter.

    Every event repeats the suite's static metadata (clients, benchmarks,
    example) and the current canceled flag. Subject-specific fields are left
    as None when they do not apply.
    """

    subject: Subject
    type: EventType
    clients: tuple[ClientMetadata, ...]
    benchmarks: tuple[BenchmarkMetadata, ...]
    example: Any
    canceled: bool
    benchmark: BenchmarkMetadata | None = None
    client: ClientMetadata | None = None
    phase: Phase | None = None
    state: PhaseState | None = None
    duration: float | None = None
    stats: StatsSummary | None = None
    failure: Failure | None = None


@dataclass(frozen=True, slots=True)
class ClientBenchmarkResult:
    """Final result of one client-benchmark pairing.

    Attributes:
        benchmark: Benchmark display name.
        client: Client display name.
        stats: Outlier-trimmed summary.
        status: Outcome status.
        error: Failure message if the pairing failed.
        failed_phase: Phase the failure was recorded in.
    """

    benchmark: str
    client: str
    stats: StatsSummary | None
    status: Status = Status.SUCCESS
    error: str | None = None
    failed_phase: Phase | None = None

    @property
    def ok(self) -> bool:
        """True if the pairing completed without failure or cancellation."""
        return self.status == Status.SUCCESS
