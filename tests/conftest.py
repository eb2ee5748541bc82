r"""
Shared pytest fixtures for client-bench tests.
"""

import pytest

import fakes
from client_bench.config import Configuration, get_preset
from client_bench.example import RawExample
from client_bench.runner import phases
from client_bench.types import Event, EventType, Subject


class EventRecorder:
    """Reporter keeping every event it receives."""

    def __init__(self) -> None:
        self.events: list[Event] = []

    def __call__(self, event: Event) -> None:
        self.events.append(event)

    def kinds(self) -> list[tuple]:
        """(subject, type, phase) per event, in order."""
        return [(e.subject, e.type, e.phase) for e in self.events]

    def of(self, subject: Subject, type_: EventType | None = None) -> list[Event]:
        return [e for e in self.events if e.subject is subject and (type_ is None or e.type is type_)]


@pytest.fixture(autouse=True)
def no_pauses(monkeypatch):
    """Skip the settle pauses between phases."""
    monkeypatch.setattr(phases, "PHASE_PAUSE_SECONDS", 0)
    monkeypatch.setattr(phases, "FINAL_PAUSE_SECONDS", 0)


@pytest.fixture(autouse=True)
def reset_fakes():
    fakes.SleepBenchmark.calls = []
    fakes.FailingRunBenchmark.runs = 0
    yield


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()


@pytest.fixture
def quick_config() -> Configuration:
    """The lightweight preset."""
    return get_preset("quick")


@pytest.fixture
def tiny_config() -> Configuration:
    """Fast configuration for unit tests."""
    return Configuration(
        verify_passes=1,
        warmups=2,
        min_samples=3,
        max_duration_ms=200,
        target_relative_margin_of_error=50.0,
    )


@pytest.fixture
def raw_example() -> RawExample:
    return RawExample(
        title="Most commented issues",
        schema="type Query { ok: Boolean }",
        operation="query { ok }",
        response={"data": {"ok": True}},
        partials=(
            RawExample(title="Issue fragment", operation="fragment Issue on Issue { id }"),
        ),
    )
