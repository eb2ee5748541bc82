"""Benchmark workload base classes."""

from client_bench.benchmarks.base import BaseBenchmark

__all__ = ["BaseBenchmark"]
