from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path

from dotenv import load_dotenv


def load_environment() -> None:
    """Load environment variables from a .env file if present."""
    env_file = os.getenv("ENV_FILE", ".env")
    env_path = Path(env_file)
    if env_path.is_file():
        load_dotenv(env_path)
    else:
        # Fallback: load .env in current working directory if ENV_FILE is missing
        default_path = Path(".env")
        if default_path.is_file():
            load_dotenv(default_path)


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


def _csv(name: str, default: str = "") -> tuple[str, ...]:
    raw = os.getenv(name, default)
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    job_name: str
    workspace: Path
    archive_dir: Path
    build_number: str = ""
    build_url: str = ""
    branch: str = ""
    build_tool: str = "maven"
    command_timeout: int | None = None
    analysis_enabled: bool = True
    sonar_host_url: str = "http://localhost:9000"
    sonar_token: str | None = None
    quality_gate_timeout: int = 300
    quality_gate_poll_interval: float = 5.0
    publish_branches: tuple[str, ...] = ("main", "master")
    publish_credentials: str = "maven-repo-creds"
    archive_patterns: tuple[str, ...] = ()
    slack_webhook_url: str | None = None
    slack_channel: str = "#builds"
    slack_username: str = "Jenkins"
    slack_icon: str = ":jenkins:"
    smtp_host: str | None = None
    smtp_port: int = 25
    smtp_sender: str = "ci@localhost"
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_tls: bool = False
    mail_recipients: tuple[str, ...] = ()
    http_timeout: int = 20
    archive_dir_explicit: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        load_environment()

        job_name = os.getenv("JOB_NAME")
        if not job_name:
            raise RuntimeError("Missing required environment variable(s): JOB_NAME")

        workspace = Path(os.getenv("WORKSPACE", ".")).expanduser().resolve()
        archive_dir = os.getenv("BUILDRELAY_ARCHIVE_DIR") or str(workspace / "archive")
        command_timeout = os.getenv("BUILDRELAY_COMMAND_TIMEOUT")
        http_timeout = os.getenv("BUILDRELAY_HTTP_TIMEOUT")

        return cls(
            job_name=job_name,
            workspace=workspace,
            archive_dir=Path(archive_dir).expanduser().resolve(),
            build_number=os.getenv("BUILD_NUMBER", ""),
            build_url=os.getenv("BUILD_URL", ""),
            branch=os.getenv("BRANCH_NAME", os.getenv("GIT_BRANCH", "")),
            build_tool=os.getenv("BUILDRELAY_BUILD_TOOL", "maven"),
            command_timeout=int(command_timeout) if command_timeout else None,
            analysis_enabled=_flag("BUILDRELAY_ANALYSIS", "true"),
            sonar_host_url=os.getenv("SONAR_HOST_URL", "http://localhost:9000"),
            sonar_token=os.getenv("SONAR_TOKEN") or None,
            quality_gate_timeout=int(os.getenv("BUILDRELAY_QUALITY_GATE_TIMEOUT", "300")),
            quality_gate_poll_interval=float(os.getenv("BUILDRELAY_QUALITY_GATE_POLL", "5")),
            publish_branches=_csv("BUILDRELAY_PUBLISH_BRANCHES", "main,master"),
            publish_credentials=os.getenv("BUILDRELAY_PUBLISH_CREDENTIALS", "maven-repo-creds"),
            archive_patterns=_csv("BUILDRELAY_ARCHIVE_PATTERNS", "target/*.jar,build/libs/*.jar"),
            slack_webhook_url=os.getenv("SLACK_WEBHOOK_URL") or None,
            slack_channel=os.getenv("SLACK_CHANNEL", "#builds"),
            slack_username=os.getenv("SLACK_USERNAME", "Jenkins"),
            slack_icon=os.getenv("SLACK_ICON", ":jenkins:"),
            smtp_host=os.getenv("SMTP_HOST") or None,
            smtp_port=int(os.getenv("SMTP_PORT", "25")),
            smtp_sender=os.getenv("SMTP_SENDER", "ci@localhost"),
            smtp_username=os.getenv("SMTP_USERNAME") or None,
            smtp_password=os.getenv("SMTP_PASSWORD") or None,
            smtp_tls=_flag("SMTP_TLS", "false"),
            mail_recipients=_csv("MAIL_RECIPIENTS"),
            http_timeout=int(http_timeout) if http_timeout else 20,
            archive_dir_explicit=bool(os.getenv("BUILDRELAY_ARCHIVE_DIR")),
        )

    def with_workspace(self, workspace: Path) -> "Settings":
        """Point the run at another workspace; a derived archive dir follows it."""
        workspace = workspace.expanduser().resolve()
        if self.archive_dir_explicit:
            return replace(self, workspace=workspace)
        return replace(self, workspace=workspace, archive_dir=workspace / "archive")
