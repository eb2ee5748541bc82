r"""
Exporters turning collected pairing results into files.

    from client_bench.reporting.formats import JsonExporter, MarkdownExporter

    JsonExporter().export(collector, "results.json")
    print(MarkdownExporter().to_string(collector))
"""

import csv
import io
import json
from abc import ABC, abstractmethod
from pathlib import Path

from client_bench.reporting.collector import ResultCollector
from client_bench.types import ClientBenchmarkResult

__all__ = ["BaseExporter", "JsonExporter", "CsvExporter", "MarkdownExporter"]

CSV_COLUMNS = ["session_id", "benchmark", "client", "status", "iterations", "min_ms", "mean_ms", "max_ms", "rme_pct"]


def _fmt(value: float | None, spec: str = ".3f") -> str:
    return "" if value is None else format(value, spec)


def _table(headers: list[str], rows: list[list[str]]) -> list[str]:
    lines = ["| " + " | ".join(headers) + " |", "|" + "|".join("---" for _ in headers) + "|"]
    lines.extend("| " + " | ".join(row) + " |" for row in rows)
    lines.append("")
    return lines


class BaseExporter(ABC):
    """Renders a collector to text; ``export`` writes that text to a file."""

    def export(self, collector: ResultCollector, path: str | Path) -> None:
        Path(path).write_text(self.to_string(collector))

    @abstractmethod
    def to_string(self, collector: ResultCollector) -> str: ...


class JsonExporter(BaseExporter):
    """Full collector dump, see ResultCollector.to_dict()."""

    def __init__(self, *, indent: int = 2) -> None:
        self._indent = indent

    def to_string(self, collector: ResultCollector) -> str:
        return json.dumps(collector.to_dict(), indent=self._indent)


class CsvExporter(BaseExporter):
    """One row per pairing, durations in milliseconds."""

    def to_string(self, collector: ResultCollector) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_COLUMNS)
        for result in collector.results:
            stats = result.stats
            writer.writerow([
                collector.session.session_id,
                result.benchmark,
                result.client,
                result.status.name,
                stats.iterations if stats else 0,
                _fmt(stats.min if stats else None),
                _fmt(stats.mean if stats else None),
                _fmt(stats.max if stats else None),
                _fmt(stats.relative_margin_of_error if stats else None, ".2f"),
            ])
        return buffer.getvalue()


class MarkdownExporter(BaseExporter):
    """Human-readable report: environment, a benchmark x client grid of means, and speed ratios."""

    def to_string(self, collector: ResultCollector) -> str:
        session = collector.session
        env = collector.environment

        lines = [
            "# Client Benchmark Report",
            "",
            f"**Session:** {session.session_id}",
            f"**Example:** {session.example}",
            f"**Date:** {session.started_at[:10] or 'N/A'}",
        ]
        if session.canceled:
            lines.append("**Canceled:** yes")
        lines += [
            "",
            "## Environment",
            "",
            f"- Platform: {env.platform}",
            f"- Python: {env.python_version}",
            f"- CPU: {env.cpu} ({env.cpu_count} logical)",
            f"- Memory: {env.memory_gb} GB",
            "",
            "## Results",
            "",
        ]
        lines += self._results(collector)

        comparisons = collector.compute_comparisons()
        if comparisons:
            lines += ["## Performance Comparisons", ""]
            lines += self._comparisons(comparisons)
            lines += ["*Speed relative to fastest (1.00x = fastest)*", ""]

        return "\n".join(lines)

    def _results(self, collector: ResultCollector) -> list[str]:
        benchmarks = list(dict.fromkeys(r.benchmark for r in collector.results))
        if not benchmarks:
            return ["No results.", ""]
        clients = collector.session.clients or list(dict.fromkeys(r.client for r in collector.results))
        by_pair = {(r.benchmark, r.client): r for r in collector.results}

        rows = [[bench] + [self._cell(by_pair.get((bench, client))) for client in clients] for bench in benchmarks]
        return _table(["Benchmark"] + [f"{client} (ms)" for client in clients], rows)

    def _cell(self, result: ClientBenchmarkResult | None) -> str:
        if result is None:
            return "N/A"
        if not result.ok:
            return result.status.name
        if result.stats is None or result.stats.mean is None:
            return "N/A"
        cell = f"{result.stats.mean:.3f}"
        if result.stats.relative_margin_of_error is not None:
            cell += f" ±{result.stats.relative_margin_of_error:.1f}%"
        return cell

    def _comparisons(self, comparisons: dict[str, dict[str, float]]) -> list[str]:
        clients = sorted({client for ratios in comparisons.values() for client in ratios})
        rows = []
        for bench, ratios in sorted(comparisons.items()):
            row = [bench]
            for client in clients:
                ratio = ratios.get(client)
                if ratio is None:
                    row.append("-")
                elif ratio == 1.0:
                    row.append("**1.00x**")
                else:
                    row.append(f"{ratio:.2f}x")
            rows.append(row)
        return _table(["Benchmark"] + clients, rows)
