"""Client adapter base classes."""

from client_bench.clients.base import BaseClient

__all__ = ["BaseClient"]
