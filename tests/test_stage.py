from __future__ import annotations

import pytest

from buildrelay.errors import StageError, ToolInvocationError
from buildrelay.pipeline.stage import (
    Containment,
    Stage,
    all_of,
    never,
    on_branch,
    when_completed,
    when_status,
)
from buildrelay.pipeline.status import RunState, RunStatus


def test_execute_wraps_failures_in_stage_error(context):
    cause = ToolInvocationError("mvn test", 1, "tests failed")

    def body(ctx):
        raise cause

    stage = Stage("Test", body, containment=Containment.DEGRADE)

    with pytest.raises(StageError) as excinfo:
        stage.execute(context)

    assert excinfo.value.stage_name == "Test"
    assert excinfo.value.cause is cause


def test_flag_defaults_to_stage_name():
    assert Stage("Build", lambda ctx: None).flag_name == "Build"
    assert Stage("Static Analysis", lambda ctx: None, flag="analysis").flag_name == "analysis"


def test_activation_helpers(context):
    assert not never(context)

    assert not when_completed("analysis")(context)
    context.flags["analysis"] = True
    assert when_completed("analysis")(context)

    assert when_status(RunStatus.SUCCESS)(context)
    context.status = RunStatus.UNSTABLE
    assert not when_status(RunStatus.SUCCESS)(context)

    assert on_branch("main", "release")(context)
    assert not on_branch("develop")(context)

    assert all_of(on_branch("main"), when_completed("analysis"))(context)
    assert not all_of(on_branch("main"), when_status(RunStatus.SUCCESS))(context)


def test_status_ordering_and_worsen():
    assert RunStatus.SUCCESS < RunStatus.UNSTABLE < RunStatus.FAILURE
    assert RunStatus.UNSTABLE.worsen(RunStatus.SUCCESS) is RunStatus.UNSTABLE
    assert RunStatus.FAILURE.worsen(RunStatus.UNSTABLE) is RunStatus.FAILURE
    assert RunStatus.worst(RunStatus.SUCCESS, RunStatus.UNSTABLE) is RunStatus.UNSTABLE
    assert RunStatus.worst() is RunStatus.SUCCESS


def test_status_colors():
    assert RunStatus.SUCCESS.color == "#36a64f"
    assert RunStatus.UNSTABLE.color == "#ff9800"
    assert RunStatus.FAILURE.color == "#d32f2f"


def test_run_state_from_status():
    assert RunState.from_status(RunStatus.UNSTABLE) is RunState.UNSTABLE
    assert RunState.FAILURE.is_terminal
    assert not RunState.RUNNING.is_terminal
