from __future__ import annotations

import json
import logging
import os
import smtplib
import tempfile
from email.message import EmailMessage
from typing import Iterable

import requests

from ..errors import NotificationDeliveryError
from .models import NotificationEvent

logger = logging.getLogger(__name__)

DEFAULT_FOOTER_ICON = "https://www.jenkins.io/images/logos/jenkins/jenkins.png"


class Channel:
    name = "channel"

    @property
    def descriptor(self) -> str:
        return self.name

    def send(self, event: NotificationEvent) -> None:
        raise NotImplementedError


class MailChannel(Channel):
    name = "mail"

    def __init__(
        self,
        host: str,
        sender: str,
        recipients: Iterable[str],
        port: int = 25,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = False,
        timeout: int = 20,
    ) -> None:
        self.host = host
        self.port = port
        self.sender = sender
        self.recipients = tuple(recipients)
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    @property
    def descriptor(self) -> str:
        return f"mail:{','.join(self.recipients)}"

    def build_message(self, event: NotificationEvent) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = event.subject
        message["From"] = self.sender
        message["To"] = ", ".join(self.recipients)
        message.set_content(event.text)
        message.add_alternative(event.body, subtype="html")
        return message

    def send(self, event: NotificationEvent) -> None:
        if not self.recipients:
            raise NotificationDeliveryError(self.name, "no recipients configured")
        message = self.build_message(event)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.username and self.password:
                    smtp.login(self.username, self.password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            raise NotificationDeliveryError(self.name, str(exc)) from exc
        logger.info("Sent mail '%s' to %d recipient(s)", event.subject, len(self.recipients))


class DirectPostTransport:
    def __init__(self, timeout: int = 20, session: requests.Session | None = None) -> None:
        self.timeout = timeout
        self.session = session or requests.Session()

    def post(self, url: str, payload: dict) -> None:
        response = self.session.post(url, json=payload, timeout=self.timeout)
        response.raise_for_status()


class TempFilePostTransport(DirectPostTransport):
    """Write the payload to a temp file and post the file contents.

    Used where quoting a JSON document on a command line is unreliable
    (Windows agents).
    """

    def post(self, url: str, payload: dict) -> None:
        handle, path = tempfile.mkstemp(prefix="buildrelay-", suffix=".json")
        try:
            with os.fdopen(handle, "w", encoding="utf-8") as fp:
                json.dump(payload, fp)
            with open(path, "rb") as fp:
                response = self.session.post(
                    url,
                    data=fp.read(),
                    headers={"Content-Type": "application/json"},
                    timeout=self.timeout,
                )
            response.raise_for_status()
        finally:
            os.remove(path)


def select_transport(is_windows: bool, timeout: int = 20) -> DirectPostTransport:
    if is_windows:
        return TempFilePostTransport(timeout=timeout)
    return DirectPostTransport(timeout=timeout)


class WebhookChatChannel(Channel):
    name = "chat"

    def __init__(
        self,
        url: str,
        channel: str,
        username: str = "Jenkins",
        icon: str = ":jenkins:",
        transport: DirectPostTransport | None = None,
        footer_icon: str = DEFAULT_FOOTER_ICON,
    ) -> None:
        self.url = url
        self.channel = channel
        self.username = username
        self.icon = icon
        self.transport = transport or DirectPostTransport()
        self.footer_icon = footer_icon

    @property
    def descriptor(self) -> str:
        return f"chat:{self.channel}"

    def build_payload(self, event: NotificationEvent) -> dict:
        return {
            "channel": self.channel,
            "username": self.username,
            "icon": self.icon,
            "attachments": [
                {
                    "color": event.status.color,
                    "text": event.text,
                    "footer": event.footer,
                    "footer_icon": self.footer_icon,
                }
            ],
        }

    def send(self, event: NotificationEvent) -> None:
        payload = self.build_payload(event)
        try:
            self.transport.post(self.url, payload)
        except (requests.RequestException, OSError) as exc:
            raise NotificationDeliveryError(self.name, str(exc)) from exc
        logger.info("Posted build status to chat channel %s", self.channel)
