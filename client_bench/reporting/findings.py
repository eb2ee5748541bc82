r"""
Append-only store of mean durations per client, for charting across runs.

    from client_bench.reporting.findings import FindingsStore

    run_suite(reporter, benchmarks, clients, raw_example, persist=FindingsStore("findings.json"))
"""

import json
import logging
from pathlib import Path
from typing import Any

__all__ = ["FindingsStore"]

logger = logging.getLogger(__name__)


class FindingsStore:
    """JSON file mapping client identity to its recorded means.

    Each call reads the file, appends the rounded mean and writes it back.
    I/O errors are logged and the sample is dropped.
    """

    def __init__(self, path: str | Path = "findings.json", *, precision: int = 3) -> None:
        self._path = Path(path)
        self._precision = precision

    @property
    def path(self) -> Path:
        return self._path

    def __call__(self, client_name: str, mean_ms: float) -> None:
        self.append(client_name, mean_ms)

    def load(self) -> dict[str, list[float]]:
        """Read recorded means; a missing or unparsable file reads as empty."""
        try:
            data: Any = json.loads(self._path.read_text())
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError:
            logger.warning("Ignoring unparsable findings file %s", self._path)
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): list(v) for k, v in data.items() if isinstance(v, list)}

    def append(self, client_name: str, mean_ms: float) -> None:
        """Record one mean for a client."""
        try:
            data = self.load()
            data.setdefault(client_name, []).append(round(mean_ms, self._precision))
            self._path.write_text(json.dumps(data, indent=2))
        except OSError as e:
            logger.error("Error writing findings to %s: %s", self._path, e)
