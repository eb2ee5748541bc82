r"""
Suite orchestrator: every benchmark against every client, in order.

    from client_bench.runner import run_suite

    async def main():
        handle = run_suite(reporter, [ReadBenchmark], [ClientA, ClientB], raw_example)
        canceled = await handle

    from client_bench.runner import SuiteOrchestrator

    canceled = SuiteOrchestrator(config=get_preset("default")).run(reporter, benchmarks, clients, raw_example)
"""

import asyncio
import logging
from collections.abc import Generator, Sequence
from typing import Any

from client_bench.config import DEFAULT_PRESET, Configuration, get_preset
from client_bench.example import Example, RawExample, transform_example
from client_bench.protocols import (
    BenchmarkDescriptor,
    ClientDescriptor,
    MemoryInstrumentation,
    PersistenceHook,
    Reporter,
    benchmark_metadata,
    client_metadata,
)
from client_bench.runner.context import RunContext
from client_bench.runner.passes import resolve
from client_bench.runner.phases import IterationSamples, PhaseController, settle
from client_bench.types import EventType, MemoryReading, Phase, StatsSummary, Subject

__all__ = ["SuiteHandle", "SuiteOrchestrator", "run_suite"]

logger = logging.getLogger(__name__)


class SuiteHandle:
    """Cancellable handle to a running suite.

    Awaiting the handle yields the final canceled flag.
    """

    def __init__(self, context: RunContext, task: "asyncio.Task[bool]") -> None:
        self._context = context
        self._task = task

    def cancel(self) -> None:
        """Request a cooperative stop. In-flight passes complete."""
        self._context.cancel()

    @property
    def canceled(self) -> bool:
        return self._context.canceled

    def done(self) -> bool:
        return self._task.done()

    async def wait(self) -> bool:
        """Wait for the suite to finish and return the canceled flag."""
        return await self._task

    def __await__(self) -> Generator[Any, None, bool]:
        return self._task.__await__()


class SuiteOrchestrator:
    """Runs suites with a fixed configuration and collaborators."""

    def __init__(
        self,
        *,
        config: Configuration | None = None,
        memory: MemoryInstrumentation | None = None,
        persist: PersistenceHook | None = None,
    ) -> None:
        self._config = config or get_preset(DEFAULT_PRESET)
        self._memory = memory
        self._persist = persist

    @property
    def config(self) -> Configuration:
        return self._config

    def start(
        self,
        reporter: Reporter,
        benchmarks: Sequence[BenchmarkDescriptor],
        clients: Sequence[ClientDescriptor],
        raw_example: RawExample,
    ) -> SuiteHandle:
        """Schedule a suite on the running event loop.

        Raises:
            RuntimeError: If no event loop is running.
        """
        context = RunContext(
            reporter=reporter,
            config=self._config,
            raw_example=raw_example,
            clients=tuple(client_metadata(c) for c in clients),
            benchmarks=tuple(benchmark_metadata(b) for b in benchmarks),
        )
        task = asyncio.get_running_loop().create_task(self._run_suite(context, benchmarks, clients))
        return SuiteHandle(context, task)

    def run(
        self,
        reporter: Reporter,
        benchmarks: Sequence[BenchmarkDescriptor],
        clients: Sequence[ClientDescriptor],
        raw_example: RawExample,
    ) -> bool:
        """Run a suite to completion on a new event loop.

        Returns:
            True if the suite was canceled.
        """

        async def main() -> bool:
            return await self.start(reporter, benchmarks, clients, raw_example)

        return asyncio.run(main())

    async def _run_suite(
        self,
        context: RunContext,
        benchmarks: Sequence[BenchmarkDescriptor],
        clients: Sequence[ClientDescriptor],
    ) -> bool:
        context.emit(Subject.SUITE, EventType.START)

        for benchmark_cls in benchmarks:
            if context.canceled:
                break
            benchmark = benchmark_metadata(benchmark_cls)
            context.emit(Subject.BENCHMARK, EventType.START, benchmark=benchmark)

            for client_cls in clients:
                if context.canceled:
                    break
                await self._run_client_benchmark(context, benchmark_cls, client_cls)

            context.emit(Subject.BENCHMARK, EventType.END, benchmark=benchmark)

        context.emit(Subject.SUITE, EventType.END)
        return context.canceled

    async def _run_client_benchmark(
        self,
        context: RunContext,
        benchmark_cls: BenchmarkDescriptor,
        client_cls: ClientDescriptor,
    ) -> StatsSummary:
        """Run one pairing through verify, warmup and iterations."""
        benchmark = benchmark_metadata(benchmark_cls)
        client = client_metadata(client_cls)
        context.emit(Subject.CLIENT_BENCHMARK, EventType.START, benchmark=benchmark, client=client)
        logger.info("Running %s with %s", benchmark.name, client.name)

        samples = IterationSamples(baseline=self._read_baseline())
        example = await self._transform(context, client_cls)

        controller = PhaseController(
            context,
            benchmark_cls,
            client_cls,
            benchmark=benchmark,
            client=client,
            memory=self._memory,
        )
        await controller.verify(example)
        await settle()
        await controller.warmup(example)
        await settle()
        await controller.iterate(example, samples)
        await settle(final=True)

        final_stats = samples.trimmed_summary()
        context.emit(
            Subject.CLIENT_BENCHMARK,
            EventType.END,
            benchmark=benchmark,
            client=client,
            stats=final_stats,
            failure=context.failure,
        )
        context.clear_failure()

        mean = samples.durations.mean()
        if mean is not None:
            await self._save(client_cls, mean)

        return final_stats

    def _read_baseline(self) -> MemoryReading | None:
        if self._memory is None or not self._memory.try_force_collect():
            return None
        return self._memory.try_read_heap()

    async def _transform(self, context: RunContext, client_cls: ClientDescriptor) -> Example | None:
        """Transform the raw example with a throwaway client instance."""
        try:
            return await transform_example(client_cls(), context.raw_example)
        except Exception as e:
            context.record_failure(e, Phase.VERIFY)
            logger.exception("Could not transform example for %s", client_metadata(client_cls).name)
            return None

    async def _save(self, client_cls: ClientDescriptor, mean_ms: float) -> None:
        """Hand the pairing mean to the persistence hook, keyed by the descriptor's name."""
        if self._persist is None:
            return
        client_name = getattr(client_cls, "__name__", type(client_cls).__name__)
        try:
            await resolve(self._persist(client_name, mean_ms))
        except Exception:
            logger.warning("Persisting results for %s failed", client_name, exc_info=True)


def run_suite(
    reporter: Reporter,
    benchmarks: Sequence[BenchmarkDescriptor],
    clients: Sequence[ClientDescriptor],
    raw_example: RawExample,
    config: Configuration | None = None,
    *,
    memory: MemoryInstrumentation | None = None,
    persist: PersistenceHook | None = None,
) -> SuiteHandle:
    """Start a suite on the running event loop.

    Args:
        reporter: Receives every progress event, synchronously.
        benchmarks: Benchmark descriptors, run in order.
        clients: Client descriptors, run in order for each benchmark.
        raw_example: Example every client transforms.
        config: Run configuration (None = quick preset).
        memory: Optional memory instrumentation.
        persist: Optional hook receiving each pairing's mean duration.

    Returns:
        SuiteHandle; await it for the final canceled flag.
    """
    orchestrator = SuiteOrchestrator(config=config, memory=memory, persist=persist)
    return orchestrator.start(reporter, benchmarks, clients, raw_example)
