r"""
Command-line interface for client-bench.

    client-bench run example.json -b my_pkg.benchmarks:ReadQuery -c my_pkg.clients:ClientA,my_pkg.clients:ClientB
    client-bench presets
"""

import asyncio
import contextlib
import importlib
import logging
import signal
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any

import typer

from client_bench.protocols import Reporter
from client_bench.types import ClientBenchmarkResult, Event, EventType, Status, Subject

if TYPE_CHECKING:
    from client_bench.example import RawExample
    from client_bench.runner import SuiteOrchestrator

__all__ = ["app", "main", "load_object", "summarize", "EventPrinter"]

app = typer.Typer(
    name="client-bench",
    help="Compare interchangeable client implementations on the same workload.",
    no_args_is_help=True,
)


def load_object(spec: str) -> Any:
    """Import ``package.module:Name``.

    Raises:
        ValueError: If the spec is malformed or cannot be resolved.
    """
    module_name, sep, attr = spec.partition(":")
    if not sep or not module_name or not attr:
        msg = f"Invalid import spec '{spec}'. Expected 'module:Name'"
        raise ValueError(msg)
    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as e:
        msg = f"Cannot import module '{module_name}': {e}"
        raise ValueError(msg) from e
    for part in attr.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError:
            msg = f"Module '{module_name}' has no attribute '{attr}'"
            raise ValueError(msg) from None
    return obj


class EventPrinter:
    """Reporter echoing progress to the terminal."""

    def __init__(self, *, verbose: bool = False) -> None:
        self._verbose = verbose

    def __call__(self, event: Event) -> None:
        if event.subject is Subject.BENCHMARK and event.type is EventType.START:
            typer.echo(f"\n{event.benchmark.name}")
        elif event.subject is Subject.CLIENT_BENCHMARK and event.type is EventType.END:
            typer.echo(f"  {event.client.name}: {self._describe(event)}")
        elif event.subject is Subject.CLIENT_BENCHMARK_PHASE and event.type is EventType.END and self._verbose:
            if event.phase is not None and event.state is not None:
                typer.echo(f"    [{event.phase.value}] {event.state.name.lower()}")
        elif event.subject is Subject.SUITE and event.type is EventType.END and event.canceled:
            typer.echo("\nCanceled")

    def _describe(self, event: Event) -> str:
        if event.failure is not None:
            return f"FAILED during {event.failure.phase.value}: {event.failure.message}"
        stats = event.stats
        if stats is None or stats.mean is None:
            return "no samples"
        text = f"{stats.mean:.3f} ms"
        if stats.relative_margin_of_error is not None:
            text += f" ±{stats.relative_margin_of_error:.1f}%"
        return f"{text} ({stats.iterations} iterations)"


async def _run_until_interrupted(
    orchestrator: "SuiteOrchestrator",
    reporter: Reporter,
    benchmarks: list[Any],
    clients: list[Any],
    raw_example: "RawExample",
) -> bool:
    """Run a suite, turning Ctrl+C into a cooperative cancel."""
    handle = orchestrator.start(reporter, benchmarks, clients, raw_example)
    loop = asyncio.get_running_loop()
    # Signal handlers need the main thread and a Unix event loop
    with contextlib.suppress(NotImplementedError, RuntimeError):
        loop.add_signal_handler(signal.SIGINT, handle.cancel)
    try:
        return await handle
    finally:
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.remove_signal_handler(signal.SIGINT)


def summarize(results: list[ClientBenchmarkResult]) -> str:
    """One-line tally of pairing results; canceled pairings are counted apart."""
    counts = {status: sum(1 for r in results if r.status is status) for status in Status}
    line = f"Completed: {counts[Status.SUCCESS]} successful, {counts[Status.FAILED]} failed"
    if counts[Status.CANCELED]:
        line += f", {counts[Status.CANCELED]} canceled"
    return line


def _split(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


@app.command()
def run(
    example: Annotated[Path, typer.Argument(help="Path to the raw example JSON file")],
    benchmarks: Annotated[
        str, typer.Option("-b", "--benchmarks", help="Benchmark classes, comma-separated module:Name")
    ],
    clients: Annotated[str, typer.Option("-c", "--clients", help="Client classes, comma-separated module:Name")],
    preset: Annotated[str | None, typer.Option("-p", "--preset", help="Preset: quick, default")] = None,
    verify_passes: Annotated[int | None, typer.Option("--verify-passes", help="Verification passes")] = None,
    warmups: Annotated[int | None, typer.Option("--warmups", help="Warmup passes")] = None,
    min_samples: Annotated[int | None, typer.Option("--min-samples", help="Minimum samples")] = None,
    max_duration_ms: Annotated[
        float | None, typer.Option("--max-duration-ms", help="Iteration phase time budget")
    ] = None,
    target_rme: Annotated[
        float | None, typer.Option("--target-rme", help="Target relative margin of error (%)")
    ] = None,
    memory: Annotated[bool, typer.Option("--memory", help="Collect memory readings")] = False,
    findings: Annotated[
        Path | None, typer.Option("--findings", help="Append mean durations to this JSON file")
    ] = None,
    output: Annotated[Path | None, typer.Option("-o", "--output", help="Output directory")] = None,
    format_: Annotated[
        str, typer.Option("-f", "--format", help="Output format: json, csv, markdown, all")
    ] = "json",
    verbose: Annotated[bool, typer.Option("-v", "--verbose", help="Verbose output")] = False,
) -> None:
    """Run benchmarks against clients on one example."""
    from client_bench.config import DEFAULT_PRESET, config_from_env, get_preset
    from client_bench.example import load_example
    from client_bench.reporting import CsvExporter, FindingsStore, JsonExporter, MarkdownExporter, ResultCollector
    from client_bench.runner import SuiteOrchestrator
    from client_bench.utils import ProcessMemoryInstrumentation

    logging.basicConfig(
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        level=logging.DEBUG if verbose else logging.WARNING,
    )

    try:
        config = config_from_env(get_preset(preset or DEFAULT_PRESET))
        overrides = {
            "verify_passes": verify_passes,
            "warmups": warmups,
            "min_samples": min_samples,
            "max_duration_ms": max_duration_ms,
            "target_relative_margin_of_error": target_rme,
        }
        config = replace(config, **{k: v for k, v in overrides.items() if v is not None})
        raw_example = load_example(example)
        benchmark_classes = [load_object(spec) for spec in _split(benchmarks)]
        client_classes = [load_object(spec) for spec in _split(clients)]
    except (ValueError, OSError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if not benchmark_classes or not client_classes:
        typer.echo("Error: at least one benchmark and one client are required", err=True)
        raise typer.Exit(1)

    if verbose:
        typer.echo(f"Example: {raw_example.title}")
        typer.echo(f"Configuration: {config}")

    collector = ResultCollector()
    printer = EventPrinter(verbose=verbose)

    def reporter(event: Event) -> None:
        collector(event)
        printer(event)

    orchestrator = SuiteOrchestrator(
        config=config,
        memory=ProcessMemoryInstrumentation() if memory else None,
        persist=FindingsStore(findings) if findings else None,
    )
    asyncio.run(_run_until_interrupted(orchestrator, reporter, benchmark_classes, client_classes, raw_example))

    if output is not None:
        output.mkdir(parents=True, exist_ok=True)
        session_id = collector.session.session_id

        formats_to_export = _split(format_)
        if "all" in formats_to_export:
            formats_to_export = ["json", "csv", "markdown"]

        exporters = {
            "json": (JsonExporter(), ".json"),
            "csv": (CsvExporter(), ".csv"),
            "markdown": (MarkdownExporter(), ".md"),
        }
        for fmt in formats_to_export:
            if fmt not in exporters:
                typer.echo(f"Unknown format: {fmt}", err=True)
                continue
            exporter, ext = exporters[fmt]
            path = output / f"{session_id}{ext}"
            exporter.export(collector, path)
            typer.echo(f"Exported {fmt}: {path}")

    typer.echo(f"\n{summarize(collector.results)}")


@app.command()
def presets() -> None:
    """List configuration presets."""
    from client_bench.config import DEFAULT_PRESET, PRESETS

    typer.echo("Available presets:")
    for name, config in PRESETS.items():
        marker = " (default)" if name == DEFAULT_PRESET else ""
        typer.echo(
            f"  - {name}{marker}: verify_passes={config.verify_passes}, warmups={config.warmups}, "
            f"min_samples={config.min_samples}, max_duration_ms={config.max_duration_ms:g}, "
            f"target_rme={config.target_relative_margin_of_error:g}%"
        )


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
