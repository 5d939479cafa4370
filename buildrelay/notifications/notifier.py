from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable

from ..pipeline.context import RunContext
from ..pipeline.status import RunStatus
from .channels import Channel
from .models import NotificationEvent, NotificationReport
from .templates import render

logger = logging.getLogger(__name__)


class Notifier:
    """Fan a run's final status out to every configured channel.

    Delivery is best-effort: each channel is sent to independently, its
    failure is logged and reported, and nothing is raised to the caller.
    """

    def __init__(self, channels: Iterable[Channel], concurrent: bool = True) -> None:
        self.channels = list(channels)
        self.concurrent = concurrent

    def build_event(self, status: RunStatus, context: RunContext) -> NotificationEvent:
        message = render(status, context)
        return NotificationEvent(
            status=status,
            recipients=frozenset(channel.descriptor for channel in self.channels),
            subject=message.subject,
            body=message.body,
            text=message.text,
            footer=context.display_name,
        )

    def notify(self, status: RunStatus, context: RunContext) -> NotificationReport:
        report = NotificationReport()
        if not self.channels:
            logger.info("No notification channels configured.")
            return report

        event = self.build_event(status, context)
        if self.concurrent and len(self.channels) > 1:
            with ThreadPoolExecutor(max_workers=len(self.channels)) as pool:
                results = list(pool.map(lambda ch: self._deliver(ch, event), self.channels))
        else:
            results = [self._deliver(channel, event) for channel in self.channels]

        for channel, error in zip(self.channels, results):
            if error is None:
                report.delivered.append(channel.descriptor)
            else:
                report.failed[channel.descriptor] = error
        return report

    @staticmethod
    def _deliver(channel: Channel, event: NotificationEvent) -> str | None:
        try:
            channel.send(event)
        except Exception as exc:  # noqa: BLE001
            logger.error("Notification via %s failed: %s", channel.descriptor, exc)
            return str(exc)
        return None
