from __future__ import annotations

from enum import Enum

STATUS_COLORS = {
    "SUCCESS": "#36a64f",
    "UNSTABLE": "#ff9800",
    "FAILURE": "#d32f2f",
}


class RunStatus(Enum):
    SUCCESS = 0
    UNSTABLE = 1
    FAILURE = 2

    def __lt__(self, other: "RunStatus") -> bool:
        if not isinstance(other, RunStatus):
            return NotImplemented
        return self.value < other.value

    def __le__(self, other: "RunStatus") -> bool:
        if not isinstance(other, RunStatus):
            return NotImplemented
        return self.value <= other.value

    def worsen(self, other: "RunStatus") -> "RunStatus":
        """Return the more severe of the two statuses."""
        return other if other.value > self.value else self

    @staticmethod
    def worst(*statuses: "RunStatus") -> "RunStatus":
        result = RunStatus.SUCCESS
        for status in statuses:
            result = result.worsen(status)
        return result

    @property
    def color(self) -> str:
        return STATUS_COLORS[self.name]


class RunState(Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    UNSTABLE = "unstable"
    FAILURE = "failure"

    @classmethod
    def from_status(cls, status: RunStatus) -> "RunState":
        return cls[status.name]

    @property
    def is_terminal(self) -> bool:
        return self not in (RunState.PENDING, RunState.RUNNING)
