"""
Tests for the step driver and the provisioning loop.
"""

import time

from devsetup.core.engine.ensure import ensure
from devsetup.core.engine.executor import ProvisioningReport, run_steps
from devsetup.core.models.step import CommandResult, StepOutcome

# ── ensure ───────────────────────────────────────────────────────────


class TestEnsure:
    def test_installs_when_missing(self, ctx, fake_step, tmp_path, terminal):
        step = fake_step("thing", tmp_path / "thing")
        outcome = ensure(step, ctx)
        assert outcome.status == "installed"
        assert step.install_calls == 1
        assert "Installing thing..." in terminal.getvalue()

    def test_skips_when_satisfied(self, ctx, fake_step, tmp_path, terminal):
        marker = tmp_path / "thing"
        marker.write_text("x")
        step = fake_step("thing", marker)
        outcome = ensure(step, ctx)
        assert outcome.status == "skipped"
        assert step.install_calls == 0
        assert terminal.getvalue() == ""

    def test_skip_traced_when_verbose(self, make_ctx, fake_step, tmp_path, terminal):
        marker = tmp_path / "thing"
        marker.write_text("x")
        ensure(fake_step("thing", marker), make_ctx(verbose=True))
        assert "already satisfied" in terminal.getvalue()

    def test_second_run_is_noop(self, ctx, fake_step, tmp_path):
        step = fake_step("thing", tmp_path / "thing")
        assert ensure(step, ctx).status == "installed"
        assert ensure(step, ctx).status == "skipped"
        assert step.install_calls == 1

    def test_force_removes_then_reinstalls(self, make_ctx, fake_step, tmp_path, terminal):
        marker = tmp_path / "thing"
        marker.write_text("x")
        step = fake_step("thing", marker)
        outcome = ensure(step, make_ctx(force=True))
        assert outcome.status == "reinstalled"
        assert step.remove_calls == 1
        assert step.install_calls == 1
        assert "Reinstalling thing..." in terminal.getvalue()

    def test_force_on_unsatisfied_still_removes(self, make_ctx, fake_step, tmp_path):
        step = fake_step("thing", tmp_path / "thing")
        assert ensure(step, make_ctx(force=True)).status == "installed"
        assert step.remove_calls == 1
        assert step.install_calls == 1

    def test_no_removal_without_force(self, ctx, fake_step, tmp_path):
        step = fake_step("thing", tmp_path / "thing")
        ensure(step, ctx)
        assert step.remove_calls == 0

    def test_outcome_records_start_before_end(self, ctx, fake_step, tmp_path):
        step = fake_step("thing", tmp_path / "thing")
        original_install = step.install

        def slow_install(c):
            time.sleep(0.01)
            return original_install(c)

        step.install = slow_install
        outcome = ensure(step, ctx)
        assert outcome.started_at < outcome.ended_at

    def test_install_failure(self, ctx, fake_step, tmp_path):
        outcome = ensure(fake_step("thing", tmp_path / "thing", fail=True), ctx)
        assert outcome.failed
        assert outcome.halts_run
        assert outcome.failed_command == "install thing"
        assert outcome.error == "boom"

    def test_non_fatal_failure_does_not_halt(self, ctx, fake_step, tmp_path):
        outcome = ensure(fake_step("thing", tmp_path / "thing", fatal=False, fail=True), ctx)
        assert outcome.failed
        assert not outcome.halts_run

    def test_predicate_disagreement_is_failure(self, ctx, fake_step, tmp_path, caplog):
        outcome = ensure(fake_step("thing", tmp_path / "thing", lie=True), ctx)
        assert outcome.failed
        assert outcome.failed_command == "verify thing"
        assert "still not satisfied" in caplog.text

    def test_failed_removal(self, make_ctx, fake_step, tmp_path):
        marker = tmp_path / "thing"
        marker.write_text("x")
        step = fake_step("thing", marker)
        step.remove = lambda ctx: CommandResult.failure("remove thing", "busy")
        outcome = ensure(step, make_ctx(force=True))
        assert outcome.failed
        assert outcome.failed_command == "remove thing"
        assert step.install_calls == 0


# ── run_steps ────────────────────────────────────────────────────────


class TestRunSteps:
    def test_all_succeed(self, ctx, fake_step, tmp_path):
        steps = [fake_step(n, tmp_path / n) for n in ("a", "b", "c")]
        report = run_steps(steps, ctx)
        assert report.status == "ok"
        assert report.installed == ["a", "b", "c"]
        assert not report.halted

    def test_fatal_failure_halts(self, ctx, fake_step, tmp_path):
        a = fake_step("a", tmp_path / "a")
        b = fake_step("b", tmp_path / "b", fail=True)
        c = fake_step("c", tmp_path / "c")
        report = run_steps([a, b, c], ctx)
        assert report.halted
        assert report.halted_by.step == "b"
        assert report.status == "failed"
        assert c.install_calls == 0
        assert report.total == 2

    def test_non_fatal_failure_continues(self, ctx, fake_step, tmp_path):
        a = fake_step("ext-a", tmp_path / "a", fatal=False, fail=True)
        b = fake_step("ext-b", tmp_path / "b", fatal=False)
        report = run_steps([a, b], ctx)
        assert not report.halted
        assert report.status == "partial"
        assert [o.step for o in report.failures] == ["ext-a"]
        assert report.status_of("ext-b") == "installed"

    def test_status_of_unknown(self):
        assert ProvisioningReport().status_of("nope") is None

    def test_to_dict(self, ctx, fake_step, tmp_path):
        marker = tmp_path / "a"
        marker.write_text("x")
        report = run_steps([fake_step("a", marker), fake_step("b", tmp_path / "b")], ctx)
        data = report.to_dict()
        assert data["status"] == "ok"
        assert data["skipped"] == ["a"]
        assert data["installed"] == ["b"]
        assert data["halted_by"] is None
        assert len(data["outcomes"]) == 2


class TestOutcomeModels:
    def test_command_result_helpers(self):
        assert CommandResult.success("x").ok
        failed = CommandResult.failure("x", "bad", returncode=2)
        assert failed.failed
        assert failed.stderr == "bad"

    def test_outcome_halts_only_when_fatal(self):
        assert StepOutcome(step="s", status="failed", fatal=True).halts_run
        assert not StepOutcome(step="s", status="failed", fatal=False).halts_run
        assert not StepOutcome(step="s", status="installed").halts_run
