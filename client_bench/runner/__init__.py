r"""
Benchmark execution engine.

Runs verification, warmup and measured iterations for every
benchmark/client pairing and reports progress as events.

    from client_bench.runner import run_suite

    handle = run_suite(reporter, benchmarks, clients, raw_example)
    canceled = await handle
"""

from client_bench.runner.context import RunContext
from client_bench.runner.orchestrator import SuiteHandle, SuiteOrchestrator, run_suite
from client_bench.runner.passes import run_single_pass
from client_bench.runner.phases import IterationSamples, PhaseController, PhaseOutcome, check_convergence
from client_bench.runner.stats import SampleSet, build_summary
from client_bench.runner.timing import Timer

__all__ = [
    "IterationSamples",
    "PhaseController",
    "PhaseOutcome",
    "RunContext",
    "SampleSet",
    "SuiteHandle",
    "SuiteOrchestrator",
    "Timer",
    "build_summary",
    "check_convergence",
    "run_single_pass",
    "run_suite",
]
