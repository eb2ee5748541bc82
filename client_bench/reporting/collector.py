r"""
Result collection from suite events.

The collector is itself a reporter: hand it to the orchestrator (alone or
next to another reporter) and it keeps the final result of every pairing.

    from client_bench.reporting.collector import ResultCollector

    collector = ResultCollector()
    await run_suite(collector, benchmarks, clients, raw_example)
    print(collector.to_dict())
"""

import os
import platform
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import Any

import psutil

from client_bench.types import ClientBenchmarkResult, Event, EventType, Status, Subject

__all__ = ["ResultCollector", "SessionInfo", "EnvironmentInfo", "collect_environment"]


@dataclass
class SessionInfo:
    """One suite run as seen by the collector.

    Attributes:
        session_id: Identifier derived from the start time.
        started_at: ISO timestamp of the suite START event.
        completed_at: ISO timestamp of the suite END event, empty while running.
        example: Title of the raw example.
        benchmarks: Benchmark names, in run order.
        clients: Client names, in run order.
        canceled: Whether the suite ended through cancellation.
    """

    session_id: str = ""
    started_at: str = ""
    completed_at: str = ""
    example: str = ""
    benchmarks: list[str] = field(default_factory=list)
    clients: list[str] = field(default_factory=list)
    canceled: bool = False


@dataclass
class EnvironmentInfo:
    """Host the suite ran on.

    Attributes:
        platform: Lower-case OS name.
        python_version: Interpreter version.
        cpu: Processor description.
        cpu_count: Logical CPUs.
        memory_gb: Physical memory in GB.
    """

    platform: str = ""
    python_version: str = ""
    cpu: str = ""
    cpu_count: int = 0
    memory_gb: float = 0.0


def collect_environment() -> EnvironmentInfo:
    """Describe the current host."""
    return EnvironmentInfo(
        platform=platform.system().lower(),
        python_version=platform.python_version(),
        cpu=platform.processor() or platform.machine() or "unknown",
        cpu_count=os.cpu_count() or 0,
        memory_gb=round(psutil.virtual_memory().total / (1024**3), 1),
    )


def _status_of(event: Event) -> Status:
    if event.failure is not None:
        return Status.FAILED
    if event.canceled:
        return Status.CANCELED
    return Status.SUCCESS


class ResultCollector:
    """Reporter that keeps the final result of every pairing."""

    def __init__(self) -> None:
        self.results: list[ClientBenchmarkResult] = []
        self.session = SessionInfo()
        self.environment = EnvironmentInfo()

    def __call__(self, event: Event) -> None:
        if event.subject is Subject.SUITE and event.type is EventType.START:
            self.start_session(
                example=getattr(event.example, "title", str(event.example)),
                benchmarks=[b.name for b in event.benchmarks],
                clients=[c.name for c in event.clients],
            )
        elif event.subject is Subject.SUITE:
            self.end_session(canceled=event.canceled)
        elif event.subject is Subject.CLIENT_BENCHMARK and event.type is EventType.END:
            self.add_result(
                ClientBenchmarkResult(
                    benchmark=event.benchmark.name if event.benchmark else "",
                    client=event.client.name if event.client else "",
                    stats=event.stats,
                    status=_status_of(event),
                    error=event.failure.message if event.failure else None,
                    failed_phase=event.failure.phase if event.failure else None,
                )
            )

    def start_session(self, *, example: str, benchmarks: list[str], clients: list[str]) -> None:
        now = datetime.now(UTC)
        self.session = SessionInfo(
            session_id=now.strftime("bench_%Y%m%d_%H%M%S"),
            started_at=now.isoformat(),
            example=example,
            benchmarks=benchmarks,
            clients=clients,
        )
        self.environment = collect_environment()

    def end_session(self, *, canceled: bool = False) -> None:
        self.session.completed_at = datetime.now(UTC).isoformat()
        self.session.canceled = canceled

    def add_result(self, result: ClientBenchmarkResult) -> None:
        self.results.append(result)

    def get_results_by_client(self, client: str) -> list[ClientBenchmarkResult]:
        return [r for r in self.results if r.client == client]

    def get_results_by_benchmark(self, benchmark: str) -> list[ClientBenchmarkResult]:
        return [r for r in self.results if r.benchmark == benchmark]

    def compute_comparisons(self) -> dict[str, dict[str, float]]:
        """Relative speed of each successful client per benchmark.

        Returns:
            Benchmark name -> client name -> fastest mean / client mean,
            so the fastest client scores 1.0.
        """
        comparisons: dict[str, dict[str, float]] = {}
        for bench in dict.fromkeys(r.benchmark for r in self.results):
            means = {
                r.client: r.stats.mean
                for r in self.get_results_by_benchmark(bench)
                if r.ok and r.stats is not None and r.stats.mean is not None
            }
            if not means:
                continue
            fastest = min(means.values())
            comparisons[bench] = {
                client: round(fastest / mean, 2) if mean > 0 else 0.0 for client, mean in means.items()
            }
        return comparisons

    def to_dict(self) -> dict[str, Any]:
        session = asdict(self.session)
        session["id"] = session.pop("session_id")
        return {
            "session": session,
            "environment": asdict(self.environment),
            "results": [_result_to_dict(r) for r in self.results],
            "comparisons": self.compute_comparisons(),
        }


def _result_to_dict(result: ClientBenchmarkResult) -> dict[str, Any]:
    data: dict[str, Any] = {
        "benchmark": result.benchmark,
        "client": result.client,
        "status": result.status.name,
    }
    if result.stats is not None:
        data["stats"] = result.stats.to_dict()
    if result.error is not None:
        data["error"] = result.error
        data["failed_phase"] = result.failed_phase.value if result.failed_phase else None
    return data
