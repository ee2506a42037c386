"""
Tests for the task orchestrator — gating, cascades, caps, cancellation, history.
"""

import threading

from maziq.adapters.mock import ScriptedRun
from maziq.core.engine.orchestrator import DEPENDENCY_FAILED, RunReport, TaskOrchestrator
from maziq.core.engine.resolver import plan
from maziq.core.models.action import Action, TaskState
from maziq.core.models.run import RunConfig
from maziq.core.persistence.history import MemoryHistory
from maziq.core.services.event_bus import EventBus


def _run(catalog, engine, ids, action=Action.INSTALL, config=None, history=None, **kw) -> RunReport:
    order = plan(ids, catalog, action)
    orchestrator = TaskOrchestrator(catalog, engine=engine, history=history)
    return orchestrator.run(order, action, config or RunConfig(), **kw)


class TestBuildTasks:
    def test_install_gates_on_dependencies(self, chain_catalog, engine):
        tasks = TaskOrchestrator(chain_catalog, engine=engine).build_tasks(["c", "b", "a"], Action.INSTALL)
        gates = {t.software_id: t.gates for t in tasks}
        assert gates == {"c": (), "b": ("install:c",), "a": ("install:b",)}
        assert tasks[0].id == "install:c"
        assert tasks[0].lock_group == "script"

    def test_uninstall_gates_on_dependents(self, chain_catalog, engine):
        tasks = TaskOrchestrator(chain_catalog, engine=engine).build_tasks(["a", "b"], Action.UNINSTALL)
        gates = {t.software_id: t.gates for t in tasks}
        assert gates == {"a": (), "b": ("uninstall:a",)}

    def test_status_has_no_gates(self, chain_catalog, engine):
        tasks = TaskOrchestrator(chain_catalog, engine=engine).build_tasks(["c", "b", "a"], Action.STATUS)
        assert all(t.gates == () for t in tasks)


class TestExecution:
    def test_all_succeed_in_order(self, chain_catalog, engine, fake_runner):
        report = _run(chain_catalog, engine, ["a"])
        assert report.ok
        assert report.exit_code == 0
        assert report.succeeded == 3
        assert fake_runner.call_log == ["install-c.sh", "npm install -g b", "cargo install a"]

    def test_failure_cascades_to_dependents(self, make_catalog, engine, fake_runner):
        catalog = make_catalog(
            ("x", "script", []),
            ("y", "script", ["x"]),
            ("z", "script", ["x"]),
        )
        fake_runner.set_failure("install-x.sh", "Error: download failed")
        report = _run(catalog, engine, ["x", "y", "z"], config=RunConfig(max_parallel=3))

        assert report.get("x").state is TaskState.FAILED
        assert report.get("x").outcome.exit_code == 1
        for sid in ("y", "z"):
            task = report.get(sid)
            assert task.state is TaskState.SKIPPED
            assert task.outcome.reason == DEPENDENCY_FAILED
        assert report.exit_code != 0
        assert report.status == "failed"
        assert fake_runner.call_log == ["install-x.sh"]

    def test_cascade_is_transitive(self, chain_catalog, engine, fake_runner):
        fake_runner.set_failure("install-c.sh")
        report = _run(chain_catalog, engine, ["a", "d"], config=RunConfig(max_parallel=2))
        assert report.get("b").outcome.reason == DEPENDENCY_FAILED
        assert report.get("a").outcome.reason == DEPENDENCY_FAILED
        assert report.get("d").state is TaskState.SUCCEEDED
        assert report.status == "partial"

    def test_dry_run_unblocks_and_spawns_nothing(self, chain_catalog, engine, fake_runner):
        history = MemoryHistory()
        report = _run(chain_catalog, engine, ["a"], config=RunConfig(dry_run=True), history=history)
        assert report.ok
        assert report.skipped == 3
        assert all(t.outcome.dry_run for t in report.tasks)
        assert fake_runner.call_count == 0
        assert history.records == []

    def test_already_installed_unblocks(self, chain_catalog, engine, fake_runner, installed):
        installed.add("c-tool")
        fake_runner.set_capture(["c-tool", "--version"], output="c 1.0.0")
        report = _run(chain_catalog, engine, ["a"])
        assert report.get("c").outcome.satisfied
        assert report.get("a").state is TaskState.SUCCEEDED
        assert report.ok
        assert "install-c.sh" not in fake_runner.call_log

    def test_unexpected_engine_error_fails_task(self, chain_catalog):
        class Broken:
            def execute(self, *args, **kwargs):
                raise RuntimeError("kaboom")

        report = _run(chain_catalog, Broken(), ["d"])
        task = report.get("d")
        assert task.state is TaskState.FAILED
        assert "kaboom" in task.outcome.diagnostic


class TestConcurrency:
    def test_global_cap(self, make_catalog, engine, fake_runner):
        catalog = make_catalog(*[(f"s{i}", "script", []) for i in range(6)])
        fake_runner.set_delay(0.05)
        report = _run(catalog, engine, catalog.ids, config=RunConfig(max_parallel=2))
        assert report.ok
        assert fake_runner.peak_concurrency <= 2

    def test_lock_group_cap(self, make_catalog, engine, fake_runner):
        catalog = make_catalog(
            ("wget", "brew", []),
            ("jq", "brew", []),
            ("zed", "brew-cask", []),
            ("s1", "script", []),
            ("s2", "script", []),
        )
        fake_runner.set_delay(0.05)
        report = _run(catalog, engine, catalog.ids, config=RunConfig(max_parallel=4))
        assert report.ok
        for snapshot in fake_runner.snapshots:
            assert sum(1 for cmd in snapshot if cmd.startswith("brew ")) <= 1

    def test_parallel_independent_tasks(self, make_catalog, engine, fake_runner):
        catalog = make_catalog(*[(f"s{i}", "script", []) for i in range(3)])
        fake_runner.set_delay(0.1)
        _run(catalog, engine, catalog.ids, config=RunConfig(max_parallel=3))
        assert fake_runner.peak_concurrency == 3

    def test_default_config_overlaps_cargo_but_not_brew(self, make_catalog, engine, fake_runner):
        catalog = make_catalog(
            ("ripgrep", "cargo", []),
            ("fd", "cargo", []),
            ("wget", "brew", []),
            ("jq", "brew", []),
        )
        fake_runner.set_delay(0.1)
        report = _run(catalog, engine, catalog.ids, config=RunConfig())
        assert report.ok
        assert any(
            {"cargo install ripgrep", "cargo install fd"} <= set(snapshot)
            for snapshot in fake_runner.snapshots
        )
        for snapshot in fake_runner.snapshots:
            assert sum(1 for cmd in snapshot if cmd.startswith("brew ")) <= 1

    def test_status_bypasses_group_caps(self, make_catalog, engine, fake_runner):
        catalog = make_catalog(("wget", "brew", []), ("jq", "brew", []))
        report = _run(catalog, engine, catalog.ids, action=Action.STATUS, config=RunConfig(max_parallel=2))
        assert report.ok
        assert report.succeeded == 2
        assert fake_runner.call_count == 0


class TestCancellation:
    def test_cancel_mid_run(self, chain_catalog, engine, fake_runner):
        fake_runner.set_response("install-c.sh", ScriptedRun(delay=5.0))
        cancel = threading.Event()
        threading.Timer(0.1, cancel.set).start()
        report = _run(chain_catalog, engine, ["a"], cancel=cancel)

        assert report.was_cancelled
        assert report.get("c").state is TaskState.CANCELLED
        assert {report.get("b").state, report.get("a").state} <= {
            TaskState.CANCELLED, TaskState.SKIPPED,
        }
        assert report.exit_code == 1

    def test_cancel_before_start(self, chain_catalog, engine, fake_runner):
        cancel = threading.Event()
        cancel.set()
        report = _run(chain_catalog, engine, ["a"], cancel=cancel)
        assert report.cancelled == 3
        assert fake_runner.call_count == 0

    def test_handle_cancel(self, chain_catalog, engine, fake_runner):
        fake_runner.set_response("install-c.sh", ScriptedRun(delay=5.0))
        orchestrator = TaskOrchestrator(chain_catalog, engine=engine)
        handle = orchestrator.start(["c", "b", "a"], Action.INSTALL, RunConfig())
        handle.cancel()
        report = handle.wait(timeout=5)
        assert report is not None
        assert handle.done
        assert report.succeeded == 0


class TestEventsAndHistory:
    def test_event_sequence_per_task(self, chain_catalog, engine):
        bus = EventBus()
        _run(chain_catalog, engine, ["d"], bus=bus)
        events = [e for e in bus.history() if e.task_id == "install:d"]
        states = [e.state for e in events if e.output_line is None]
        assert states == [TaskState.PENDING, TaskState.RUNNING, TaskState.SUCCEEDED]
        assert [e.output_line for e in events if e.output_line is not None] == ["[mock] executed"]
        seqs = [e.seq for e in bus.history()]
        assert seqs == sorted(seqs)
        assert bus.closed

    def test_stream_yields_all_events(self, chain_catalog, engine):
        orchestrator = TaskOrchestrator(chain_catalog, engine=engine)
        events = list(orchestrator.stream(["d"], Action.INSTALL, RunConfig()))
        assert events[0].state is TaskState.PENDING
        assert events[-1].state is TaskState.SUCCEEDED

    def test_early_subscription_outlives_small_buffer(self, chain_catalog, engine, fake_runner):
        fake_runner.set_delay(0.05)
        bus = EventBus(buffer_size=2)
        orchestrator = TaskOrchestrator(chain_catalog, engine=engine)
        handle = orchestrator.start(["c", "b", "a", "d"], Action.INSTALL, RunConfig(), bus=bus, subscribe=True)
        assert handle.wait(timeout=10) is not None
        events = list(handle.events())
        assert len(events) == bus.seq
        assert [e.seq for e in events] == list(range(1, bus.seq + 1))
        assert len(bus.history()) == 2

    def test_late_events_call_replays_buffer(self, chain_catalog, engine):
        bus = EventBus(buffer_size=2)
        orchestrator = TaskOrchestrator(chain_catalog, engine=engine)
        handle = orchestrator.start(["d"], Action.INSTALL, RunConfig(), bus=bus)
        assert handle.wait(timeout=10) is not None
        assert [e.seq for e in handle.events()] == [bus.seq - 1, bus.seq]

    def test_history_only_for_successful_changes(self, chain_catalog, engine, fake_runner):
        history = MemoryHistory()
        fake_runner.set_failure("install-d.sh")
        _run(chain_catalog, engine, ["c", "d"], history=history, config=RunConfig(max_parallel=2))
        records = history.records
        assert [r.software_id for r in records] == ["c"]
        assert records[0].action is Action.INSTALL
        assert records[0].source == "script"

    def test_status_writes_no_history(self, chain_catalog, engine):
        history = MemoryHistory()
        _run(chain_catalog, engine, ["d"], action=Action.STATUS, history=history)
        assert history.records == []


class TestRunReport:
    def test_summary_and_dict(self, chain_catalog, engine, fake_runner):
        fake_runner.set_failure("install-d.sh", "Error: checksum mismatch")
        report = _run(chain_catalog, engine, ["c", "d"])
        text = report.summary()
        assert "1 succeeded, 1 failed" in text
        assert "checksum mismatch" in text
        data = report.to_dict()
        assert data["status"] == "partial"
        assert data["counts"]["failed"] == 1
        assert {t["software_id"] for t in data["tasks"]} == {"c", "d"}
