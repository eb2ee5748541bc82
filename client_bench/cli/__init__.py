"""Command-line interface for client-bench."""

from client_bench.cli.main import app, main

__all__ = ["app", "main"]
