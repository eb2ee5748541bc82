r"""
Phase controller: verify, warmup and measured iterations for one pairing.

VERIFY always reports a START/END pair. WARMUP and ITERATION are skipped
without any event once the run is canceled or the pairing has failed.
ITERATION reports one START/END pair per pass; the END of the last pass
carries the phase's terminal state.

    controller = PhaseController(context, BenchmarkCls, ClientCls, benchmark=..., client=...)
    await controller.verify(example)
    await controller.warmup(example)
    outcome = await controller.iterate(example, IterationSamples())
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from client_bench.config import Configuration
from client_bench.example import Example
from client_bench.protocols import BenchmarkDescriptor, ClientDescriptor, MemoryInstrumentation
from client_bench.runner.context import RunContext
from client_bench.runner.passes import run_single_pass
from client_bench.runner.stats import SampleSet, build_summary
from client_bench.runner.timing import Timer
from client_bench.types import (
    BenchmarkMetadata,
    ClientMetadata,
    EventType,
    MemoryReading,
    Phase,
    PhaseState,
    StatsSummary,
    Subject,
)

__all__ = [
    "PhaseController",
    "PhaseOutcome",
    "IterationSamples",
    "check_convergence",
    "settle",
    "PHASE_PAUSE_SECONDS",
    "FINAL_PAUSE_SECONDS",
]

logger = logging.getLogger(__name__)

# Pauses between phases let collector activity settle; never timed.
PHASE_PAUSE_SECONDS = 0.05
FINAL_PAUSE_SECONDS = 0.01


@dataclass(frozen=True, slots=True)
class PhaseOutcome:
    """How a phase finished.

    Attributes:
        phase: Phase that ran.
        result: Terminal state reached before the phase ended
            (CONVERGED, FAILED, CANCELED or MAX_DURATION_EXCEEDED).
        passes: Passes started.
        duration: Phase wall-clock duration in milliseconds.
        state: ENDED once the END event is out, NOT_STARTED if skipped.
    """

    phase: Phase
    result: PhaseState
    passes: int = 0
    duration: float = 0.0
    state: PhaseState = PhaseState.ENDED

    @classmethod
    def skip(cls, phase: Phase) -> "PhaseOutcome":
        return cls(phase, PhaseState.NOT_STARTED, state=PhaseState.NOT_STARTED)

    @property
    def skipped(self) -> bool:
        return self.state == PhaseState.NOT_STARTED


@dataclass
class IterationSamples:
    """Duration and memory samples of one pairing's iteration phase."""

    durations: SampleSet = field(default_factory=SampleSet)
    heap_used: SampleSet = field(default_factory=SampleSet)
    heap_total: SampleSet = field(default_factory=SampleSet)
    baseline: MemoryReading | None = None

    def summary(self) -> StatsSummary:
        """Running summary over every sample collected so far."""
        return build_summary(self.durations, self.heap_used, self.heap_total, self.baseline)

    def trimmed_summary(self) -> StatsSummary:
        """Final summary with outliers removed from every series."""
        return build_summary(
            self.durations.trim_outliers(),
            self.heap_used.trim_outliers(),
            self.heap_total.trim_outliers(),
            self.baseline,
        )


def check_convergence(config: Configuration, elapsed_ms: float, durations: SampleSet) -> PhaseState | None:
    """Decide whether the iteration phase may stop.

    Returns:
        None to keep iterating, MAX_DURATION_EXCEEDED when the time budget is
        spent, CONVERGED when the relative margin of error hit the target.
        Nothing stops before min_samples samples exist.
    """
    if len(durations) < config.min_samples:
        return None
    if elapsed_ms > config.max_duration_ms:
        return PhaseState.MAX_DURATION_EXCEEDED
    rme = durations.relative_margin_of_error()
    if rme is not None and rme <= config.target_relative_margin_of_error:
        return PhaseState.CONVERGED
    return None


async def settle(*, final: bool = False) -> None:
    """Short untimed pause between phases, shorter after the last one."""
    await asyncio.sleep(FINAL_PAUSE_SECONDS if final else PHASE_PAUSE_SECONDS)


class PhaseController:
    """Runs the phases of one client-benchmark pairing."""

    def __init__(
        self,
        context: RunContext,
        benchmark_cls: BenchmarkDescriptor,
        client_cls: ClientDescriptor,
        *,
        benchmark: BenchmarkMetadata,
        client: ClientMetadata,
        memory: MemoryInstrumentation | None = None,
    ) -> None:
        self._context = context
        self._benchmark_cls = benchmark_cls
        self._client_cls = client_cls
        self._benchmark = benchmark
        self._client = client
        self._memory = memory

    def _emit(self, phase: Phase, type_: EventType, **fields: Any) -> None:
        self._context.emit(
            Subject.CLIENT_BENCHMARK_PHASE,
            type_,
            benchmark=self._benchmark,
            client=self._client,
            phase=phase,
            **fields,
        )

    def _halt_state(self) -> PhaseState | None:
        if self._context.failure is not None:
            return PhaseState.FAILED
        if self._context.canceled:
            return PhaseState.CANCELED
        return None

    async def verify(self, example: Example | None) -> PhaseOutcome:
        """Run up to verify_passes passes with verification.

        Always reports START and END, including when the example could not
        be transformed (the failure is already on the context).
        """
        self._emit(Phase.VERIFY, EventType.START)
        timer = Timer().start()
        passes = 0

        for _ in range(self._context.config.verify_passes):
            if self._context.halted:
                break
            passes += 1
            await run_single_pass(
                self._context,
                self._benchmark_cls,
                self._client_cls,
                example,
                Phase.VERIFY,
                verify=True,
                memory=self._memory,
            )

        timer.stop()
        state = self._halt_state() or PhaseState.CONVERGED
        self._emit(
            Phase.VERIFY,
            EventType.END,
            state=state,
            duration=timer.elapsed_ms,
            failure=self._context.failure,
        )
        logger.debug(
            "verify of %s with %s: %s after %d passes",
            self._benchmark.name,
            self._client.name,
            state.name,
            passes,
        )
        return PhaseOutcome(Phase.VERIFY, state, passes, timer.elapsed_ms)

    async def warmup(self, example: Example) -> PhaseOutcome:
        """Run exactly ``warmups`` unmeasured passes unless halted."""
        if self._context.halted:
            return PhaseOutcome.skip(Phase.WARMUP)

        self._emit(Phase.WARMUP, EventType.START)
        timer = Timer().start()
        passes = 0

        for _ in range(self._context.config.warmups):
            if self._context.halted:
                break
            passes += 1
            await run_single_pass(
                self._context,
                self._benchmark_cls,
                self._client_cls,
                example,
                Phase.WARMUP,
                memory=self._memory,
            )

        timer.stop()
        state = self._halt_state() or PhaseState.CONVERGED
        self._emit(
            Phase.WARMUP,
            EventType.END,
            state=state,
            duration=timer.elapsed_ms,
            failure=self._context.failure,
        )
        logger.debug(
            "warmup of %s with %s: %s after %d passes",
            self._benchmark.name,
            self._client.name,
            state.name,
            passes,
        )
        return PhaseOutcome(Phase.WARMUP, state, passes, timer.elapsed_ms)

    async def iterate(self, example: Example, samples: IterationSamples) -> PhaseOutcome:
        """Collect measured passes into samples until convergence or halt."""
        if self._context.halted:
            return PhaseOutcome.skip(Phase.ITERATION)

        config = self._context.config
        timer = Timer().start()
        passes = 0
        state = PhaseState.RUNNING

        while state == PhaseState.RUNNING:
            halt = self._halt_state()
            if halt is not None:
                state = halt
                break

            self._emit(Phase.ITERATION, EventType.START)
            passes += 1
            result = await run_single_pass(
                self._context,
                self._benchmark_cls,
                self._client_cls,
                example,
                Phase.ITERATION,
                memory=self._memory,
            )
            if result is not None:
                samples.durations.push(result.duration)
                if result.memory is not None:
                    samples.heap_used.push(result.memory.heap_used)
                    samples.heap_total.push(result.memory.heap_total)

            state = self._halt_state() or check_convergence(config, timer.elapsed_ms, samples.durations) or state
            self._emit(
                Phase.ITERATION,
                EventType.END,
                state=state,
                duration=result.duration if result is not None else None,
                stats=samples.summary(),
                failure=self._context.failure,
            )

        timer.stop()
        logger.debug(
            "iterations of %s with %s: %s after %d passes",
            self._benchmark.name,
            self._client.name,
            state.name,
            passes,
        )
        return PhaseOutcome(Phase.ITERATION, state, passes, timer.elapsed_ms)
