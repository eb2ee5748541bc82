r"""
Single benchmark pass: one setup/run/verify/teardown lifecycle.

    from client_bench.runner.passes import run_single_pass

    result = await run_single_pass(context, BenchmarkCls, ClientCls, example, Phase.ITERATION)
    if result is None:
        ...  # context.failure holds the error
"""

import asyncio
import inspect
import logging
from typing import Any

from client_bench.example import Example
from client_bench.protocols import (
    BenchmarkDescriptor,
    ClientDescriptor,
    MemoryInstrumentation,
    benchmark_metadata,
    client_metadata,
)
from client_bench.runner.context import RunContext
from client_bench.runner.timing import Timer
from client_bench.types import MemoryReading, PassResult, Phase

__all__ = ["run_single_pass", "resolve"]

logger = logging.getLogger(__name__)


async def resolve(value: Any) -> Any:
    """Await value if it is awaitable, otherwise return it."""
    if inspect.isawaitable(value):
        return await value
    return value


async def run_single_pass(
    context: RunContext,
    benchmark_cls: BenchmarkDescriptor,
    client_cls: ClientDescriptor,
    example: Example,
    phase: Phase,
    *,
    verify: bool = False,
    memory: MemoryInstrumentation | None = None,
) -> PassResult | None:
    """Run one pass against fresh client and benchmark instances.

    Any exception aborts the pass, is recorded on the context as the
    pairing's failure and logged. Nothing is raised.

    Args:
        context: Run context receiving failures.
        benchmark_cls: Benchmark factory.
        client_cls: Client factory.
        example: Example transformed by client_cls.
        phase: Phase the pass belongs to.
        verify: Call the benchmark's verify step after run.
        memory: Optional memory instrumentation.

    Returns:
        PassResult on success, None on failure.
    """
    try:
        benchmark = benchmark_cls(client_cls(), example)
        await resolve(benchmark.setup())

        if memory is not None:
            memory.try_force_collect()

        with Timer() as timer:
            await resolve(benchmark.run())
        duration = timer.elapsed_ms

        reading: MemoryReading | None = None
        if memory is not None and memory.try_force_collect():
            reading = memory.try_read_heap()

        if verify:
            await resolve(benchmark.verify())
        await resolve(benchmark.teardown())
    except Exception as e:
        context.record_failure(e, phase)
        logger.exception(
            "%s pass of %s with %s failed",
            phase.value,
            benchmark_metadata(benchmark_cls).name,
            client_metadata(client_cls).name,
        )
        return None

    # Let the event loop breathe between tight passes
    await asyncio.sleep(0)

    return PassResult(duration=duration, memory=reading)
