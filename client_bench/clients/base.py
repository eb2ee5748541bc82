r"""
Base client implementation.

Clients wrap one library under comparison. The engine only asks them to
transform raw examples; everything else is up to the benchmarks that
drive them.

    from client_bench.clients.base import BaseClient

    class MyClient(BaseClient):
        metadata = ClientMetadata(name="My client")

        def transform_raw_example(self, raw_example):
            return compile_operation(raw_example.schema, raw_example.operation)
"""

from abc import ABC, abstractmethod
from typing import Any, ClassVar

from client_bench.example import RawExample
from client_bench.types import ClientMetadata

__all__ = ["BaseClient"]


class BaseClient(ABC):
    """Base class for client adapters.

    Must be constructible without arguments.
    """

    metadata: ClassVar[ClientMetadata]

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "metadata" not in cls.__dict__:
            cls.metadata = ClientMetadata(name=cls.__name__)

    @abstractmethod
    def transform_raw_example(self, raw_example: RawExample) -> Any:
        """Turn a raw example into this client's executable form."""
        ...
