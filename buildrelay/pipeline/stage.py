from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from ..errors import StageError
from .context import RunContext
from .status import RunStatus

logger = logging.getLogger(__name__)

StageBody = Callable[[RunContext], None]
Activation = Callable[[RunContext], bool]


class Containment(Enum):
    FATAL = "fatal"
    DEGRADE = "degrade"
    IGNORE = "ignore"


def always(context: RunContext) -> bool:
    return True


def never(context: RunContext) -> bool:
    return False


def when_completed(flag: str) -> Activation:
    """Activate only if an earlier stage wrote ``flag`` as completed."""

    def predicate(context: RunContext) -> bool:
        return context.completed(flag)

    return predicate


def when_status(*statuses: RunStatus) -> Activation:
    allowed = frozenset(statuses)

    def predicate(context: RunContext) -> bool:
        return context.status in allowed

    return predicate


def on_branch(*branches: str) -> Activation:
    allowed = frozenset(branches)

    def predicate(context: RunContext) -> bool:
        return context.branch in allowed

    return predicate


def all_of(*predicates: Activation) -> Activation:
    def predicate(context: RunContext) -> bool:
        return all(check(context) for check in predicates)

    return predicate


@dataclass(frozen=True)
class Stage:
    name: str
    body: StageBody
    activation: Activation = always
    containment: Containment = Containment.FATAL
    flag: str | None = None

    @property
    def flag_name(self) -> str:
        return self.flag or self.name

    def is_active(self, context: RunContext) -> bool:
        return bool(self.activation(context))

    def execute(self, context: RunContext) -> None:
        logger.info("Running stage '%s'", self.name)
        try:
            self.body(context)
        except Exception as exc:
            raise StageError(self.name, exc) from exc
