r"""
Raw examples and their client-specific transformation.

A raw example bundles a schema, an operation, the expected response and
optional partial examples. The engine does not interpret any of it; it only
asks a client to transform it.

    from client_bench.example import load_example

    raw = load_example("examples/most_commented_issues.json")
"""

import inspect
import json
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from client_bench.protocols import Client

__all__ = ["RawExample", "Example", "load_example", "transform_example"]


@dataclass(frozen=True, slots=True)
class RawExample:
    """Input fixture shared by every client.

    Attributes:
        title: Display title.
        schema: Schema source, passed through untouched.
        operation: Operation source.
        response: Expected response payload.
        variables: Operation variables, if any.
        partials: Nested examples sharing the parent schema.
    """

    title: str
    schema: Any = None
    operation: Any = None
    response: Any = None
    variables: dict[str, Any] | None = None
    partials: tuple["RawExample", ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RawExample":
        """Build an example from its JSON form."""
        if "title" not in data:
            msg = "Example is missing required field 'title'"
            raise ValueError(msg)
        return cls(
            title=data["title"],
            schema=data.get("schema"),
            operation=data.get("operation"),
            response=data.get("response"),
            variables=data.get("variables"),
            partials=tuple(cls.from_dict(p) for p in data.get("partials", [])),
        )


@dataclass(frozen=True, slots=True)
class Example:
    """A raw example after transformation by one client.

    Attributes:
        title: Title of the raw example.
        value: Client-specific payload returned by transform_raw_example().
        partials: Transformed partial examples.
    """

    title: str
    value: Any
    partials: tuple["Example", ...] = field(default_factory=tuple)


def load_example(path: str | Path) -> RawExample:
    """Load a raw example from a JSON file.

    Args:
        path: Path to the JSON file.

    Returns:
        Parsed RawExample.

    Raises:
        ValueError: If the file is not a JSON object with a title.
    """
    with open(path) as f:
        data = json.load(f)
    if not isinstance(data, dict):
        msg = f"Example file {path} must contain a JSON object"
        raise ValueError(msg)
    return RawExample.from_dict(data)


async def transform_example(client: Client, raw_example: RawExample) -> Example:
    """Transform a raw example and, recursively, its partials.

    Partials inherit the schema of the example they belong to.
    """
    value = client.transform_raw_example(raw_example)
    if inspect.isawaitable(value):
        value = await value

    partials = []
    for partial in raw_example.partials:
        partials.append(await transform_example(client, replace(partial, schema=raw_example.schema)))

    return Example(title=raw_example.title, value=value, partials=tuple(partials))
