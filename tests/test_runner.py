from __future__ import annotations

import pytest

from buildrelay.errors import QualityGateError, ToolInvocationError
from buildrelay.pipeline.context import StageResult
from buildrelay.pipeline.runner import PipelineRunner
from buildrelay.pipeline.stage import Containment, Stage, when_completed
from buildrelay.pipeline.status import RunState, RunStatus


def _ok(log: list[str], name: str):
    def body(context):
        log.append(name)

    return body


def _fail(log: list[str], name: str, error: Exception | None = None):
    def body(context):
        log.append(name)
        raise error or ToolInvocationError(f"run {name}", 1, "boom")

    return body


def test_all_stages_succeed(context, notifier):
    log: list[str] = []
    stages = [
        Stage("Build", _ok(log, "Build")),
        Stage("Test", _ok(log, "Test"), containment=Containment.DEGRADE),
        Stage("Publish", _ok(log, "Publish")),
    ]

    runner = PipelineRunner(notifier)
    status = runner.run(stages, context)

    assert status is RunStatus.SUCCESS
    assert log == ["Build", "Test", "Publish"]
    assert runner.state is RunState.SUCCESS
    assert context.flags == {"Build": True, "Test": True, "Publish": True}
    assert len(notifier.calls) == 1


def test_degrade_failure_marks_unstable_and_continues(context, notifier):
    log: list[str] = []
    stages = [
        Stage("Test", _fail(log, "Test"), containment=Containment.DEGRADE),
        Stage("Package", _ok(log, "Package")),
    ]

    status = PipelineRunner(notifier).run(stages, context)

    assert status is RunStatus.UNSTABLE
    assert log == ["Test", "Package"]
    assert context.flags["Test"] is False
    assert context.failed_stages == ["Test"]


def test_fatal_failure_aborts_remaining_stages(context, notifier):
    log: list[str] = []
    stages = [
        Stage("Build", _fail(log, "Build"), containment=Containment.FATAL),
        Stage("Deploy", _ok(log, "Deploy")),
    ]

    status = PipelineRunner(notifier).run(stages, context)

    assert status is RunStatus.FAILURE
    assert log == ["Build"]
    assert notifier.calls == [(RunStatus.FAILURE, context)]
    results = {o.name: o.result for o in context.outcomes}
    assert results == {"Build": StageResult.FAILED, "Deploy": StageResult.SKIPPED}


def test_fatal_after_degrade_is_failure(context, notifier):
    log: list[str] = []
    stages = [
        Stage("Test", _fail(log, "Test"), containment=Containment.DEGRADE),
        Stage("Publish", _fail(log, "Publish"), containment=Containment.FATAL),
        Stage("Deploy", _ok(log, "Deploy")),
    ]

    status = PipelineRunner(notifier).run(stages, context)

    assert status is RunStatus.FAILURE
    assert "Deploy" not in log


def test_ignored_failure_leaves_status(context, notifier):
    log: list[str] = []
    stages = [
        Stage("Lint", _fail(log, "Lint"), containment=Containment.IGNORE),
        Stage("Build", _ok(log, "Build")),
    ]

    status = PipelineRunner(notifier).run(stages, context)

    assert status is RunStatus.SUCCESS
    assert log == ["Lint", "Build"]
    assert context.outcomes[0].result is StageResult.FAILED


def test_status_never_improves(context, notifier):
    seen: list[RunStatus] = []

    def observe(ctx):
        seen.append(ctx.status)

    log: list[str] = []
    stages = [
        Stage("A", observe),
        Stage("B", _fail(log, "B"), containment=Containment.DEGRADE),
        Stage("C", observe),
        Stage("D", _fail(log, "D"), containment=Containment.IGNORE),
        Stage("E", observe),
        Stage("F", _fail(log, "F"), containment=Containment.DEGRADE),
        Stage("G", observe),
    ]

    status = PipelineRunner(notifier).run(stages, context)

    assert seen == [RunStatus.SUCCESS, RunStatus.UNSTABLE, RunStatus.UNSTABLE, RunStatus.UNSTABLE]
    assert seen == sorted(seen)
    assert status is RunStatus.UNSTABLE


def test_inactive_stage_is_skipped_without_effect(context, notifier):
    log: list[str] = []
    stages = [
        Stage("Build", _ok(log, "Build")),
        Stage("Deploy", _fail(log, "Deploy"), activation=lambda ctx: False),
    ]

    status = PipelineRunner(notifier).run(stages, context)

    assert status is RunStatus.SUCCESS
    assert log == ["Build"]
    assert "Deploy" not in context.flags
    assert context.failed_stages == []
    assert context.outcomes[-1].result is StageResult.SKIPPED


def test_quality_gate_gated_on_analysis(context, notifier):
    log: list[str] = []
    stages = [
        Stage("Test", _ok(log, "Test"), containment=Containment.DEGRADE),
        Stage(
            "Analysis",
            _fail(log, "Analysis"),
            containment=Containment.DEGRADE,
            flag="analysis_completed",
        ),
        Stage(
            "QualityGate",
            _ok(log, "QualityGate"),
            activation=when_completed("analysis_completed"),
            containment=Containment.DEGRADE,
        ),
    ]

    status = PipelineRunner(notifier).run(stages, context)

    assert status is RunStatus.UNSTABLE
    assert log == ["Test", "Analysis"]
    assert context.flags["analysis_completed"] is False


def test_quality_gate_error_is_never_fatal(context, notifier):
    log: list[str] = []
    stages = [
        Stage(
            "Quality Gate",
            _fail(log, "Quality Gate", QualityGateError("timed out")),
            containment=Containment.FATAL,
        ),
        Stage("Publish", _ok(log, "Publish")),
    ]

    status = PipelineRunner(notifier).run(stages, context)

    assert status is RunStatus.UNSTABLE
    assert log == ["Quality Gate", "Publish"]
    assert context.outcomes[0].containment == "degrade"


def test_notifier_invoked_once_with_many_failures(context, notifier):
    log: list[str] = []
    stages = [
        Stage(f"S{i}", _fail(log, f"S{i}"), containment=Containment.DEGRADE)
        for i in range(5)
    ]

    PipelineRunner(notifier).run(stages, context)

    assert len(notifier.calls) == 1
    assert notifier.calls[0][0] is RunStatus.UNSTABLE


def test_notifier_exception_does_not_change_status(context):
    class ExplodingNotifier:
        calls = 0

        def notify(self, status, ctx):
            ExplodingNotifier.calls += 1
            raise RuntimeError("smtp down")

    status = PipelineRunner(ExplodingNotifier()).run([Stage("Build", lambda ctx: None)], context)

    assert status is RunStatus.SUCCESS
    assert context.status is RunStatus.SUCCESS
    assert ExplodingNotifier.calls == 1


def test_runner_refuses_second_run(context, notifier):
    runner = PipelineRunner(notifier)
    runner.run([], context)

    with pytest.raises(RuntimeError):
        runner.run([], context)


def test_run_resets_status_and_records_times(context, notifier):
    context.status = RunStatus.FAILURE

    status = PipelineRunner(notifier).run([Stage("Build", lambda ctx: None)], context)

    assert status is RunStatus.SUCCESS
    assert context.started_at is not None
    assert context.finished_at is not None
    assert context.duration


def test_raising_activation_fails_run_and_still_notifies(context, notifier):
    log: list[str] = []

    def broken_activation(ctx):
        raise KeyError("flag")

    stages = [
        Stage("Build", _ok(log, "Build")),
        Stage("Deploy", _ok(log, "Deploy"), activation=broken_activation),
        Stage("Announce", _ok(log, "Announce")),
    ]

    runner = PipelineRunner(notifier)
    status = runner.run(stages, context)

    assert status is RunStatus.FAILURE
    assert runner.state is RunState.FAILURE
    assert log == ["Build"]
    assert notifier.calls == [(RunStatus.FAILURE, context)]
    assert context.flags["Deploy"] is False
    results = {o.name: o.result for o in context.outcomes}
    assert results == {
        "Build": StageResult.PASSED,
        "Deploy": StageResult.FAILED,
        "Announce": StageResult.SKIPPED,
    }
    assert context.outcomes[1].containment == "fatal"
    assert context.finished_at is not None
