from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

import pendulum

from .status import RunStatus


class StageResult(Enum):
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(slots=True)
class StageOutcome:
    name: str
    result: StageResult
    containment: str
    error: str | None = None
    duration: float = 0.0


@dataclass(slots=True)
class RunContext:
    job_name: str
    build_number: str = ""
    build_url: str = ""
    branch: str = ""
    status: RunStatus = RunStatus.SUCCESS
    flags: dict[str, bool] = field(default_factory=dict)
    outcomes: list[StageOutcome] = field(default_factory=list)
    report_urls: dict[str, str] = field(default_factory=dict)
    started_at: pendulum.DateTime | None = None
    finished_at: pendulum.DateTime | None = None

    def completed(self, flag: str) -> bool:
        return self.flags.get(flag, False)

    @property
    def console_url(self) -> str | None:
        if not self.build_url:
            return None
        base = self.build_url if self.build_url.endswith("/") else self.build_url + "/"
        return base + "console"

    @property
    def failed_stages(self) -> list[str]:
        return [o.name for o in self.outcomes if o.result is StageResult.FAILED]

    @property
    def display_name(self) -> str:
        if self.build_number:
            return f"{self.job_name} #{self.build_number}"
        return self.job_name

    @property
    def duration(self) -> str:
        if self.started_at is None:
            return ""
        end = self.finished_at or pendulum.now("UTC")
        words = end.diff(self.started_at).in_words()
        return words or "0 seconds"
