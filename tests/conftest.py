from __future__ import annotations

import pytest

from buildrelay.pipeline.context import RunContext
from buildrelay.pipeline.status import RunStatus


class RecordingNotifier:
    def __init__(self) -> None:
        self.calls: list[tuple[RunStatus, RunContext]] = []

    def notify(self, status: RunStatus, context: RunContext) -> None:
        self.calls.append((status, context))


@pytest.fixture
def context() -> RunContext:
    return RunContext(
        job_name="payments-service",
        build_number="42",
        build_url="https://ci.example.com/job/payments-service/42/",
        branch="main",
    )


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()
