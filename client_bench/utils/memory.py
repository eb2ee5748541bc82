"""Memory instrumentation for benchmark passes.

Forces a garbage collection and reads process memory through psutil, so
passes can be compared on memory as well as time.
"""

from __future__ import annotations

import gc
import logging
import os

import psutil

from client_bench.types import MemoryReading

__all__ = ["ProcessMemoryInstrumentation"]

logger = logging.getLogger(__name__)


class ProcessMemoryInstrumentation:
    """Collect garbage and sample this process's memory.

    Heap used is the resident set size, heap total the virtual memory size.
    If psutil cannot read the process, readings report unavailable.
    """

    def __init__(self, pid: int | None = None) -> None:
        self._pid = pid if pid is not None else os.getpid()
        self._process: psutil.Process | None = None

    def _get_process(self) -> psutil.Process:
        if self._process is None:
            self._process = psutil.Process(self._pid)
        return self._process

    def try_force_collect(self) -> bool:
        """Run a full collection. Always available in CPython."""
        gc.collect()
        return True

    def try_read_heap(self) -> MemoryReading | None:
        """Read RSS/VMS in bytes, or None if the process cannot be read."""
        try:
            info = self._get_process().memory_info()
        except (psutil.Error, OSError):
            logger.debug("Memory reading unavailable for pid %s", self._pid, exc_info=True)
            return None
        return MemoryReading(heap_used=info.rss, heap_total=info.vms)
