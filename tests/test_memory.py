r"""
Tests for client_bench.utils.memory module.
"""

import psutil

from client_bench.protocols import MemoryInstrumentation
from client_bench.utils import ProcessMemoryInstrumentation


class TestProcessMemoryInstrumentation:
    def test_satisfies_protocol(self):
        assert isinstance(ProcessMemoryInstrumentation(), MemoryInstrumentation)

    def test_force_collect(self):
        assert ProcessMemoryInstrumentation().try_force_collect() is True

    def test_read_heap(self):
        reading = ProcessMemoryInstrumentation().try_read_heap()

        assert reading is not None
        assert reading.heap_used > 0
        assert reading.heap_total >= reading.heap_used

    def test_unreadable_process(self, monkeypatch):
        def fail(self):
            raise psutil.AccessDenied()

        monkeypatch.setattr(psutil.Process, "memory_info", fail)
        assert ProcessMemoryInstrumentation().try_read_heap() is None
