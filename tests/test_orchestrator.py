r"""
End-to-end tests for client_bench.runner.orchestrator.
"""

import asyncio

import pytest

import fakes
from client_bench.config import Configuration
from client_bench.example import RawExample
from client_bench.runner import SuiteHandle, SuiteOrchestrator, run_suite
from client_bench.types import EventType, Phase, Subject

SUITE = Subject.SUITE
BENCH = Subject.BENCHMARK
PAIR = Subject.CLIENT_BENCHMARK
PHASE = Subject.CLIENT_BENCHMARK_PHASE
START = EventType.START
END = EventType.END


def run(reporter, benchmarks, clients, example, config=None, **kwargs) -> bool:
    async def main():
        return await run_suite(reporter, benchmarks, clients, example, config, **kwargs)

    return asyncio.run(main())


def assert_nesting(events):
    """Every START is closed by a matching END, innermost first."""
    stack = []
    for event in events:
        key = (event.subject, event.benchmark, event.client, event.phase)
        if event.type is START:
            stack.append(key)
        else:
            assert stack and stack[-1] == key, f"unbalanced END for {key}"
            stack.pop()
    assert stack == []


class TestHappyPath:
    def test_single_pairing_event_sequence(self, recorder, quick_config, raw_example):
        canceled = run(recorder, [fakes.SleepBenchmark], [fakes.EchoClient], raw_example, quick_config)

        assert canceled is False
        kinds = recorder.kinds()
        assert kinds[:7] == [
            (SUITE, START, None),
            (BENCH, START, None),
            (PAIR, START, None),
            (PHASE, START, Phase.VERIFY),
            (PHASE, END, Phase.VERIFY),
            (PHASE, START, Phase.WARMUP),
            (PHASE, END, Phase.WARMUP),
        ]
        assert kinds[-3:] == [(PAIR, END, None), (BENCH, END, None), (SUITE, END, None)]

        iteration_ends = [e for e in recorder.of(PHASE, END) if e.phase is Phase.ITERATION]
        counts = [e.stats.iterations for e in iteration_ends]
        assert counts == sorted(counts)
        assert counts[-1] >= 2

        verify_end = recorder.of(PHASE, END)[0]
        assert verify_end.failure is None

        final = recorder.of(PAIR, END)[0]
        assert final.failure is None
        assert final.stats.iterations >= 2
        assert final.stats.mean is not None
        assert_nesting(recorder.events)

    def test_default_config_is_quick_preset(self):
        assert SuiteOrchestrator().config.min_samples == 2

    def test_events_carry_suite_metadata(self, recorder, quick_config, raw_example):
        run(recorder, [fakes.SleepBenchmark], [fakes.EchoClient, fakes.OtherEchoClient], raw_example, quick_config)

        for event in recorder.events:
            assert [c.name for c in event.clients] == ["Echo", "Other echo"]
            assert [b.name for b in event.benchmarks] == ["Sleep"]
            assert event.example is raw_example
            assert event.canceled is False

    def test_benchmarks_and_clients_run_in_order(self, recorder, quick_config, raw_example):
        run(
            recorder,
            [fakes.SleepBenchmark, fakes.AsyncSleepBenchmark],
            [fakes.EchoClient, fakes.AsyncEchoClient],
            raw_example,
            quick_config,
        )

        pairs = [(e.benchmark.name, e.client.name) for e in recorder.of(PAIR, START)]
        assert pairs == [
            ("Sleep", "Echo"),
            ("Sleep", "Async echo"),
            ("Async sleep", "Echo"),
            ("Async sleep", "Async echo"),
        ]
        assert_nesting(recorder.events)

    def test_warmup_pass_count(self, recorder, raw_example):
        config = Configuration(verify_passes=2, warmups=3, min_samples=4, max_duration_ms=500)
        run(recorder, [fakes.SleepBenchmark], [fakes.EchoClient], raw_example, config)

        iterations = recorder.of(PAIR, END)[0]
        runs = fakes.SleepBenchmark.calls.count("run")
        verifies = fakes.SleepBenchmark.calls.count("verify")
        iteration_passes = len([e for e in recorder.of(PHASE, END) if e.phase is Phase.ITERATION])
        assert verifies == 2
        assert runs == 2 + 3 + iteration_passes
        assert iterations.stats.iterations <= iteration_passes

    def test_descriptor_object_completes_suite(self, recorder, quick_config, raw_example):
        canceled = run(recorder, [fakes.SleepBenchmark], [fakes.EchoFactory()], raw_example, quick_config)

        assert canceled is False
        assert recorder.kinds()[-3:] == [(PAIR, END, None), (BENCH, END, None), (SUITE, END, None)]
        final = recorder.of(PAIR, END)[0]
        assert final.client.name == "Echo factory"
        assert final.failure is None
        assert_nesting(recorder.events)

    def test_orchestrator_run_sync(self, recorder, quick_config, raw_example):
        orchestrator = SuiteOrchestrator(config=quick_config)
        canceled = orchestrator.run(recorder, [fakes.SleepBenchmark], [fakes.EchoClient], raw_example)

        assert canceled is False
        assert recorder.kinds()[-1] == (SUITE, END, None)


class TestFailures:
    def test_run_failure_skips_remaining_phases(self, recorder, quick_config, raw_example):
        run(recorder, [fakes.FailingRunBenchmark], [fakes.EchoClient], raw_example, quick_config)

        assert recorder.kinds() == [
            (SUITE, START, None),
            (BENCH, START, None),
            (PAIR, START, None),
            (PHASE, START, Phase.VERIFY),
            (PHASE, END, Phase.VERIFY),
            (PAIR, END, None),
            (BENCH, END, None),
            (SUITE, END, None),
        ]
        verify_end = recorder.events[4]
        final = recorder.events[5]
        assert verify_end.failure is not None
        assert verify_end.failure.phase is Phase.VERIFY
        assert final.failure is verify_end.failure
        assert final.stats.iterations == 0
        assert fakes.FailingRunBenchmark.runs == 1

    def test_failure_cleared_before_next_client(self, recorder, quick_config, raw_example):
        run(recorder, [fakes.FailOnceBenchmark], [fakes.EchoClient, fakes.OtherEchoClient], raw_example, quick_config)

        first, second = recorder.of(PAIR, END)
        assert first.client.name == "Echo"
        assert first.failure is not None
        assert second.client.name == "Other echo"
        assert second.failure is None
        assert second.stats.iterations >= 2

        other_events = [e for e in recorder.events if e.client and e.client.name == "Other echo"]
        assert all(e.failure is None for e in other_events)

    def test_transformation_failure_recorded_at_verify(self, recorder, quick_config, raw_example):
        run(recorder, [fakes.SleepBenchmark], [fakes.BrokenClient], raw_example, quick_config)

        verify_end = recorder.of(PHASE, END)[0]
        assert verify_end.phase is Phase.VERIFY
        assert isinstance(verify_end.failure.error, ValueError)
        assert fakes.SleepBenchmark.calls == []
        assert recorder.of(PAIR, END)[0].failure is verify_end.failure

    def test_every_pairing_fails_suite_still_completes(self, recorder, quick_config, raw_example):
        canceled = run(
            recorder,
            [fakes.FailingRunBenchmark, fakes.FailingVerifyBenchmark],
            [fakes.EchoClient, fakes.BrokenClient],
            raw_example,
            quick_config,
        )

        assert canceled is False
        finals = recorder.of(PAIR, END)
        assert len(finals) == 4
        assert all(e.failure is not None for e in finals)
        assert recorder.kinds()[-1] == (SUITE, END, None)
        assert_nesting(recorder.events)


class TestCancellation:
    def test_cancel_right_after_start(self, recorder, quick_config, raw_example):
        async def main():
            handle = run_suite(
                recorder,
                [fakes.SleepBenchmark],
                [fakes.EchoClient, fakes.OtherEchoClient],
                raw_example,
                quick_config,
            )
            handle.cancel()
            return await handle

        canceled = asyncio.run(main())

        assert canceled is True
        assert recorder.of(PAIR, START) == []
        assert recorder.kinds() == [(SUITE, START, None), (SUITE, END, None)]
        assert all(e.canceled for e in recorder.events)

    def test_cancel_during_iteration(self, raw_example):
        config = Configuration(verify_passes=1, warmups=0, min_samples=10_000, max_duration_ms=60_000)
        events = []
        handle: SuiteHandle | None = None

        def reporter(event):
            events.append(event)
            iteration_ends = [e for e in events if e.subject is PHASE and e.type is END and e.phase is Phase.ITERATION]
            if len(iteration_ends) == 3:
                handle.cancel()

        async def main():
            nonlocal handle
            handle = run_suite(
                reporter,
                [fakes.SleepBenchmark, fakes.AsyncSleepBenchmark],
                [fakes.EchoClient, fakes.OtherEchoClient],
                raw_example,
                config,
            )
            return await handle

        canceled = asyncio.run(main())

        assert canceled is True
        assert handle.canceled is True
        assert handle.done()
        pair_starts = [e for e in events if e.subject is PAIR and e.type is START]
        assert len(pair_starts) == 1
        iteration_starts = [e for e in events if e.subject is PHASE and e.type is START and e.phase is Phase.ITERATION]
        assert len(iteration_starts) == 3
        assert_nesting(events)
        assert events[-1].subject is SUITE and events[-1].canceled is True

    def test_cancel_is_idempotent(self, recorder, quick_config, raw_example):
        async def main():
            handle = run_suite(recorder, [fakes.SleepBenchmark], [fakes.EchoClient], raw_example, quick_config)
            handle.cancel()
            handle.cancel()
            return await handle.wait()

        assert asyncio.run(main()) is True

    def test_run_suite_requires_running_loop(self, recorder, quick_config, raw_example):
        with pytest.raises(RuntimeError):
            run_suite(recorder, [fakes.SleepBenchmark], [fakes.EchoClient], raw_example, quick_config)


class TestMemoryAndPersistence:
    def test_baseline_and_readings(self, recorder, quick_config, raw_example):
        run(recorder, [fakes.SleepBenchmark], [fakes.EchoClient], raw_example, quick_config, memory=fakes.FakeMemory())

        stats = recorder.of(PAIR, END)[0].stats
        assert stats.memory_usage.heap_used == 1024
        assert stats.memory_usage.heap_total == 4096
        assert stats.memory_usage.heap_used_base == 1024
        assert stats.memory_usage.heap_total_base == 4096

    def test_no_memory_fields_without_instrumentation(self, recorder, quick_config, raw_example):
        run(recorder, [fakes.SleepBenchmark], [fakes.EchoClient], raw_example, quick_config)

        usage = recorder.of(PAIR, END)[0].stats.memory_usage
        assert usage.heap_used is None
        assert usage.heap_used_base is None

    def test_persist_hook_receives_mean(self, recorder, quick_config, raw_example):
        saved = []
        run(
            recorder,
            [fakes.SleepBenchmark],
            [fakes.EchoClient],
            raw_example,
            quick_config,
            persist=lambda name, mean: saved.append((name, mean)),
        )

        assert len(saved) == 1
        assert saved[0][0] == "EchoClient"
        assert saved[0][1] >= 1.0

    def test_async_persist_hook(self, recorder, quick_config, raw_example):
        saved = []

        async def persist(name, mean):
            await asyncio.sleep(0)
            saved.append(name)

        run(recorder, [fakes.SleepBenchmark], [fakes.EchoClient], raw_example, quick_config, persist=persist)
        assert saved == ["EchoClient"]

    def test_persist_failure_does_not_affect_run(self, recorder, quick_config, raw_example):
        def persist(name, mean):
            raise OSError("disk full")

        canceled = run(
            recorder,
            [fakes.SleepBenchmark],
            [fakes.EchoClient, fakes.OtherEchoClient],
            raw_example,
            quick_config,
            persist=persist,
        )

        assert canceled is False
        finals = recorder.of(PAIR, END)
        assert len(finals) == 2
        assert all(e.failure is None for e in finals)

    def test_persist_skipped_without_samples(self, recorder, quick_config, raw_example):
        saved = []
        run(
            recorder,
            [fakes.FailingRunBenchmark],
            [fakes.EchoClient],
            raw_example,
            quick_config,
            persist=lambda name, mean: saved.append(name),
        )
        assert saved == []

    def test_persist_key_for_descriptor_object(self, recorder, quick_config, raw_example):
        saved = []
        run(
            recorder,
            [fakes.SleepBenchmark],
            [fakes.EchoFactory()],
            raw_example,
            quick_config,
            persist=lambda name, mean: saved.append(name),
        )
        assert saved == ["EchoFactory"]


class TestExampleTransformation:
    def test_partials_transformed_with_parent_schema(self, recorder, quick_config):
        seen = []

        class RecordingClient(fakes.EchoClient):
            def transform_raw_example(self, raw_example):
                seen.append((raw_example.title, raw_example.schema))
                return super().transform_raw_example(raw_example)

        raw = RawExample(
            title="root",
            schema="schema",
            operation="query { ok }",
            partials=(RawExample(title="partial", operation="fragment F on Q { ok }"),),
        )
        run(recorder, [fakes.SleepBenchmark], [RecordingClient], raw, quick_config)

        assert ("root", "schema") in seen
        assert ("partial", "schema") in seen
