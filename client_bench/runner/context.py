r"""
Mutable per-run state shared by the orchestrator, phases and passes.
"""

import logging
from dataclasses import dataclass
from typing import Any

from client_bench.config import Configuration
from client_bench.example import RawExample
from client_bench.protocols import Reporter
from client_bench.types import (
    BenchmarkMetadata,
    ClientMetadata,
    Event,
    EventType,
    Failure,
    Phase,
    Subject,
)

__all__ = ["RunContext"]

logger = logging.getLogger(__name__)


@dataclass
class RunContext:
    """State of one suite run.

    ``canceled`` only ever goes from False to True. ``failure`` holds the
    first failure of the current pairing and is cleared at the pairing
    boundary.

    Attributes:
        reporter: Event sink.
        config: Run configuration.
        raw_example: Example every client transforms.
        clients: Metadata of every client in the suite.
        benchmarks: Metadata of every benchmark in the suite.
        canceled: Set once cancellation has been requested.
        failure: Failure recorded for the current pairing.
    """

    reporter: Reporter
    config: Configuration
    raw_example: RawExample
    clients: tuple[ClientMetadata, ...] = ()
    benchmarks: tuple[BenchmarkMetadata, ...] = ()
    canceled: bool = False
    failure: Failure | None = None

    @property
    def halted(self) -> bool:
        """True when no further pass may start."""
        return self.canceled or self.failure is not None

    def cancel(self) -> None:
        if not self.canceled:
            logger.info("Cancellation requested")
        self.canceled = True

    def record_failure(self, error: Exception, phase: Phase) -> None:
        """Record a failure unless one is already pending for this pairing."""
        if self.failure is None:
            self.failure = Failure(error=error, phase=phase)

    def clear_failure(self) -> None:
        self.failure = None

    def emit(self, subject: Subject, type_: EventType, **fields: Any) -> Event:
        """Build an event carrying the suite metadata and report it."""
        event = Event(
            subject=subject,
            type=type_,
            clients=self.clients,
            benchmarks=self.benchmarks,
            example=self.raw_example,
            canceled=self.canceled,
            **fields,
        )
        self.reporter(event)
        return event
