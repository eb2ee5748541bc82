r"""
Base benchmark implementation.

A benchmark is constructed fresh for every pass with a fresh client
instance and the client's transformed example.

    from client_bench.benchmarks.base import BaseBenchmark

    class ReadQueryBenchmark(BaseBenchmark):
        metadata = BenchmarkMetadata(name="Read query")

        def run(self) -> None:
            self.result = self.client.read(self.example.value)
"""

from abc import ABC, abstractmethod
from typing import Any, ClassVar

from client_bench.example import Example
from client_bench.types import BenchmarkMetadata

__all__ = ["BaseBenchmark"]


class BaseBenchmark(ABC):
    """Base class for benchmark workloads.

    Subclasses may override any step with an ``async def``.
    """

    metadata: ClassVar[BenchmarkMetadata]

    def __init__(self, client: Any, example: Example) -> None:
        self.client = client
        self.example = example

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "metadata" not in cls.__dict__:
            cls.metadata = BenchmarkMetadata(name=cls.__name__)

    def setup(self) -> Any:
        """Prepare the pass."""
        pass

    @abstractmethod
    def run(self) -> Any:
        """The measured step."""
        ...

    def verify(self) -> Any:
        """Check the result of run(); raise on mismatch."""
        pass

    def teardown(self) -> Any:
        """Clean up after the pass."""
        pass
