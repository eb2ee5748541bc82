r"""
Protocol definitions for benchmarks, clients and engine collaborators.

Benchmarks and clients are handed to the engine as descriptors: classes
carrying a ``metadata`` attribute. Lifecycle methods may be plain or
``async``; the engine awaits whatever they return if it is awaitable.

    from client_bench.protocols import Benchmark, Client

    class MyClient:
        metadata = ClientMetadata(name="my-client")

        def transform_raw_example(self, raw):
            ...
"""

from collections.abc import Awaitable, Callable
from typing import Any, ClassVar, Protocol, runtime_checkable

from client_bench.types import BenchmarkMetadata, ClientMetadata, Event, MemoryReading

__all__ = [
    "Benchmark",
    "BenchmarkDescriptor",
    "Client",
    "ClientDescriptor",
    "MemoryInstrumentation",
    "PersistenceHook",
    "Reporter",
    "benchmark_metadata",
    "client_metadata",
]

Reporter = Callable[[Event], None]


@runtime_checkable
class Client(Protocol):
    """Protocol for client adapters."""

    def transform_raw_example(self, raw_example: Any) -> Any | Awaitable[Any]:
        """Turn a raw example into this client's executable form."""
        ...


@runtime_checkable
class Benchmark(Protocol):
    """Protocol for benchmark instances bound to one client and example."""

    def setup(self) -> None | Awaitable[None]:
        """Prepare the pass (prime caches, build requests, etc.)."""
        ...

    def run(self) -> None | Awaitable[None]:
        """The measured step."""
        ...

    def verify(self) -> None | Awaitable[None]:
        """Assert that run() produced the expected result."""
        ...

    def teardown(self) -> None | Awaitable[None]:
        """Release anything setup() or run() acquired."""
        ...


class ClientDescriptor(Protocol):
    """Zero-argument factory for client instances."""

    metadata: ClassVar[ClientMetadata]

    def __call__(self) -> Client: ...


class BenchmarkDescriptor(Protocol):
    """Factory binding a client instance and transformed example."""

    metadata: ClassVar[BenchmarkMetadata]

    def __call__(self, client: Client, example: Any) -> Benchmark: ...


@runtime_checkable
class MemoryInstrumentation(Protocol):
    """Optional garbage collection and heap reading facility."""

    def try_force_collect(self) -> bool:
        """Force a collection; False if the facility is unavailable."""
        ...

    def try_read_heap(self) -> MemoryReading | None:
        """Read heap figures; None if the facility is unavailable."""
        ...


class PersistenceHook(Protocol):
    """Receives a pairing's mean duration, keyed by client identity."""

    def __call__(self, client_name: str, mean_ms: float) -> None | Awaitable[None]: ...


def benchmark_metadata(descriptor: BenchmarkDescriptor) -> BenchmarkMetadata:
    """Metadata of a benchmark descriptor, falling back to its name."""
    metadata = getattr(descriptor, "metadata", None)
    if isinstance(metadata, BenchmarkMetadata):
        return metadata
    return BenchmarkMetadata(name=getattr(descriptor, "__name__", repr(descriptor)))


def client_metadata(descriptor: ClientDescriptor) -> ClientMetadata:
    """Metadata of a client descriptor, falling back to its name."""
    metadata = getattr(descriptor, "metadata", None)
    if isinstance(metadata, ClientMetadata):
        return metadata
    return ClientMetadata(name=getattr(descriptor, "__name__", repr(descriptor)))
