from __future__ import annotations

import logging
import time
from typing import Iterable, Protocol

import pendulum

from ..errors import QualityGateError, StageError
from .context import RunContext, StageOutcome, StageResult
from .stage import Containment, Stage
from .status import RunState, RunStatus

logger = logging.getLogger(__name__)


class StatusNotifier(Protocol):
    def notify(self, status: RunStatus, context: RunContext) -> object: ...


def effective_containment(stage: Stage, error: StageError) -> Containment:
    # Quality gate failures downgrade the run, never abort or vanish.
    if isinstance(error.cause, QualityGateError):
        return Containment.DEGRADE
    return stage.containment


class PipelineRunner:
    """Run stages in order, fold their outcomes into one status, notify once."""

    def __init__(self, notifier: StatusNotifier | None = None) -> None:
        self.notifier = notifier
        self.state = RunState.PENDING

    def run(self, stages: Iterable[Stage], context: RunContext) -> RunStatus:
        if self.state is not RunState.PENDING:
            raise RuntimeError("A pipeline runner can only be used for a single run.")

        self.state = RunState.RUNNING
        context.status = RunStatus.SUCCESS
        context.started_at = pendulum.now("UTC")
        logger.info("Starting pipeline run for %s", context.display_name)

        pending = list(stages)
        for index, stage in enumerate(pending):
            try:
                active = stage.is_active(context)
            except Exception as exc:  # noqa: BLE001
                logger.error(
                    "Activation check for stage '%s' failed: %s; aborting remaining stages.",
                    stage.name,
                    exc,
                )
                context.flags[stage.flag_name] = False
                context.outcomes.append(
                    StageOutcome(
                        stage.name,
                        StageResult.FAILED,
                        Containment.FATAL.value,
                        error=f"activation check failed: {exc!r}",
                    )
                )
                context.status = context.status.worsen(RunStatus.FAILURE)
                self._skip_rest(pending[index + 1 :], context)
                break

            if not active:
                logger.info("Skipping stage '%s' (activation not met)", stage.name)
                context.outcomes.append(
                    StageOutcome(stage.name, StageResult.SKIPPED, stage.containment.value)
                )
                continue

            if not self._run_stage(stage, context):
                self._skip_rest(pending[index + 1 :], context)
                break

        context.finished_at = pendulum.now("UTC")
        self.state = RunState.from_status(context.status)
        logger.info(
            "Pipeline run for %s finished with status %s in %s",
            context.display_name,
            context.status.name,
            context.duration,
        )
        self._dispatch(context)
        return context.status

    @staticmethod
    def _skip_rest(stages: list[Stage], context: RunContext) -> None:
        for skipped in stages:
            context.outcomes.append(
                StageOutcome(skipped.name, StageResult.SKIPPED, skipped.containment.value)
            )

    def _run_stage(self, stage: Stage, context: RunContext) -> bool:
        """Execute one stage; return False when the run must abort."""
        started = time.monotonic()
        try:
            stage.execute(context)
        except StageError as error:
            elapsed = time.monotonic() - started
            context.flags[stage.flag_name] = False
            containment = effective_containment(stage, error)
            context.outcomes.append(
                StageOutcome(
                    stage.name,
                    StageResult.FAILED,
                    containment.value,
                    error=str(error.cause),
                    duration=elapsed,
                )
            )
            if containment is Containment.FATAL:
                logger.error("%s; aborting remaining stages.", error)
                context.status = context.status.worsen(RunStatus.FAILURE)
                return False
            if containment is Containment.DEGRADE:
                logger.warning("%s; marking build unstable.", error)
                context.status = context.status.worsen(RunStatus.UNSTABLE)
            else:
                logger.warning("%s; ignored.", error)
            return True

        context.flags[stage.flag_name] = True
        context.outcomes.append(
            StageOutcome(
                stage.name,
                StageResult.PASSED,
                stage.containment.value,
                duration=time.monotonic() - started,
            )
        )
        return True

    def _dispatch(self, context: RunContext) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.notify(context.status, context)
        except Exception as exc:  # noqa: BLE001
            logger.error("Notification dispatch failed: %s", exc)
