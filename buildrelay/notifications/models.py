from __future__ import annotations

from dataclasses import dataclass, field

from ..pipeline.status import RunStatus


@dataclass(frozen=True)
class NotificationEvent:
    status: RunStatus
    recipients: frozenset[str]
    subject: str
    body: str
    text: str
    footer: str = ""


@dataclass(slots=True)
class NotificationReport:
    delivered: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed
