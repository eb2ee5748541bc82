"""Utility modules for client-bench."""

from client_bench.utils.memory import ProcessMemoryInstrumentation

__all__ = [
    "ProcessMemoryInstrumentation",
]
