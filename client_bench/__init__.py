r"""
client-bench: compare interchangeable client implementations.

Runs the same benchmark workloads against several clients on one example,
verifying results, warming up, then sampling until the relative margin of
error converges, and reports progress as a stream of events.

    from client_bench import run_suite, get_preset

    async def main():
        handle = run_suite(print, [ReadQueryBenchmark], [ClientA, ClientB], raw_example, get_preset("default"))
        canceled = await handle
"""

from client_bench.config import DEFAULT_PRESET, PRESETS, Configuration, get_preset
from client_bench.example import Example, RawExample, load_example
from client_bench.runner import SuiteHandle, SuiteOrchestrator, run_suite
from client_bench.types import (
    BenchmarkMetadata,
    ClientMetadata,
    Event,
    EventType,
    Failure,
    Phase,
    PhaseState,
    StatsSummary,
    Subject,
)

__all__ = [
    "BenchmarkMetadata",
    "ClientMetadata",
    "Configuration",
    "DEFAULT_PRESET",
    "Event",
    "EventType",
    "Example",
    "Failure",
    "PRESETS",
    "Phase",
    "PhaseState",
    "RawExample",
    "StatsSummary",
    "Subject",
    "SuiteHandle",
    "SuiteOrchestrator",
    "get_preset",
    "load_example",
    "run_suite",
]

__version__ = "0.1.0"
