r"""
Tests for client_bench.example module.
"""

import asyncio
import json

import pytest

import fakes
from client_bench.example import Example, RawExample, load_example, transform_example


class TestRawExample:
    def test_from_dict(self):
        raw = RawExample.from_dict(
            {
                "title": "Most commented issues",
                "schema": "type Query { ok: Boolean }",
                "operation": "query { ok }",
                "variables": {"first": 10},
                "partials": [{"title": "Issue fragment", "operation": "fragment Issue on Issue { id }"}],
            }
        )

        assert raw.title == "Most commented issues"
        assert raw.variables == {"first": 10}
        assert raw.response is None
        assert raw.partials[0].title == "Issue fragment"
        assert raw.partials[0].schema is None

    def test_missing_title(self):
        with pytest.raises(ValueError, match="title"):
            RawExample.from_dict({"operation": "query { ok }"})

    def test_immutable(self, raw_example):
        with pytest.raises(AttributeError):
            raw_example.title = "other"  # type: ignore


class TestLoadExample:
    def test_load(self, tmp_path):
        path = tmp_path / "example.json"
        path.write_text(json.dumps({"title": "Viewer", "operation": "query { viewer { login } }"}))

        raw = load_example(path)
        assert raw.title == "Viewer"
        assert raw.partials == ()

    def test_not_an_object(self, tmp_path):
        path = tmp_path / "example.json"
        path.write_text("[1, 2, 3]")

        with pytest.raises(ValueError, match="JSON object"):
            load_example(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_example(tmp_path / "missing.json")


class TestTransformExample:
    def test_sync_client(self, raw_example):
        example = asyncio.run(transform_example(fakes.EchoClient(), raw_example))

        assert isinstance(example, Example)
        assert example.title == "Most commented issues"
        assert example.value == {"operation": "query { ok }", "schema": "type Query { ok: Boolean }"}

    def test_async_client(self, raw_example):
        example = asyncio.run(transform_example(fakes.AsyncEchoClient(), raw_example))
        assert example.value["operation"] == "query { ok }"

    def test_partials_inherit_schema(self, raw_example):
        example = asyncio.run(transform_example(fakes.EchoClient(), raw_example))

        (partial,) = example.partials
        assert partial.title == "Issue fragment"
        assert partial.value["schema"] == raw_example.schema
        assert raw_example.partials[0].schema is None

    def test_client_errors_propagate(self, raw_example):
        with pytest.raises(ValueError, match="cannot parse"):
            asyncio.run(transform_example(fakes.BrokenClient(), raw_example))
