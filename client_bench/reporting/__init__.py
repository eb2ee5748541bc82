r"""
Result collection and reporting.

Collects pairing results from suite events, exports them to
JSON, CSV, and Markdown, and keeps a findings file across runs.

    from client_bench.reporting import ResultCollector, MarkdownExporter

    collector = ResultCollector()
    await run_suite(collector, benchmarks, clients, raw_example)
    MarkdownExporter().export(collector, "report.md")
"""

from client_bench.reporting.collector import EnvironmentInfo, ResultCollector, SessionInfo
from client_bench.reporting.findings import FindingsStore
from client_bench.reporting.formats import CsvExporter, JsonExporter, MarkdownExporter

__all__ = [
    "CsvExporter",
    "EnvironmentInfo",
    "FindingsStore",
    "JsonExporter",
    "MarkdownExporter",
    "ResultCollector",
    "SessionInfo",
]
