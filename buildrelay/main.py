from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from .config import Settings
from .credentials import CredentialStore
from .notifications.channels import Channel, MailChannel, WebhookChatChannel, select_transport
from .notifications.notifier import Notifier
from .pipeline.context import RunContext, StageResult
from .pipeline.definition import build_stages
from .pipeline.runner import PipelineRunner
from .pipeline.status import RunStatus
from .quality_gate import QualityGateClient
from .reports import ReportPublisher
from .tools.build import get_build_tool
from .tools.invoker import is_windows, select_invoker


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run the build, test, analysis and publish pipeline and notify the team."
    )
    parser.add_argument(
        "--workspace",
        type=Path,
        help="Project directory. Defaults to $WORKSPACE or the current directory.",
    )
    parser.add_argument(
        "--build-tool",
        choices=["maven", "gradle"],
        help="Build tool to drive. Defaults to $BUILDRELAY_BUILD_TOOL or maven.",
    )
    parser.add_argument(
        "--skip-analysis",
        action="store_true",
        help="Skip static analysis and the quality gate.",
    )
    parser.add_argument(
        "--fail-on-unstable",
        action="store_true",
        help="Exit non-zero when the run ends UNSTABLE.",
    )
    return parser.parse_args(argv)


def build_channels(settings: Settings, windows: bool) -> list[Channel]:
    channels: list[Channel] = []
    if settings.smtp_host and settings.mail_recipients:
        channels.append(
            MailChannel(
                host=settings.smtp_host,
                port=settings.smtp_port,
                sender=settings.smtp_sender,
                recipients=settings.mail_recipients,
                username=settings.smtp_username,
                password=settings.smtp_password,
                use_tls=settings.smtp_tls,
                timeout=settings.http_timeout,
            )
        )
    if settings.slack_webhook_url:
        channels.append(
            WebhookChatChannel(
                url=settings.slack_webhook_url,
                channel=settings.slack_channel,
                username=settings.slack_username,
                icon=settings.slack_icon,
                transport=select_transport(windows, timeout=settings.http_timeout),
            )
        )
    return channels


def log_stage_summary(context: RunContext) -> None:
    for outcome in context.outcomes:
        if outcome.result is StageResult.FAILED:
            logging.warning(
                "Stage '%s' failed (%s): %s", outcome.name, outcome.containment, outcome.error
            )
        else:
            logging.info("Stage '%s' %s", outcome.name, outcome.result.value)


def exit_code(status: RunStatus, fail_on_unstable: bool = False) -> int:
    if status is RunStatus.FAILURE:
        return 1
    if status is RunStatus.UNSTABLE and fail_on_unstable:
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    args = parse_args(argv)

    try:
        settings = Settings.from_env()
        if args.workspace:
            settings = settings.with_workspace(args.workspace)
        if args.build_tool:
            settings = replace(settings, build_tool=args.build_tool)
        if args.skip_analysis:
            settings = replace(settings, analysis_enabled=False)
        build_tool = get_build_tool(settings.build_tool)
    except (RuntimeError, ValueError) as exc:
        logging.error("%s", exc)
        return 1

    windows = is_windows()
    invoker = select_invoker(windows, timeout=settings.command_timeout)
    stages = build_stages(
        settings=settings,
        invoker=invoker,
        build_tool=build_tool,
        credentials=CredentialStore(),
        reports=ReportPublisher(settings.archive_dir, settings.build_url),
        quality_gate=QualityGateClient(
            settings.sonar_host_url,
            token=settings.sonar_token,
            timeout=settings.quality_gate_timeout,
            poll_interval=settings.quality_gate_poll_interval,
            request_timeout=settings.http_timeout,
        ),
    )
    context = RunContext(
        job_name=settings.job_name,
        build_number=settings.build_number,
        build_url=settings.build_url,
        branch=settings.branch,
    )

    notifier = Notifier(build_channels(settings, windows))
    status = PipelineRunner(notifier).run(stages, context)
    log_stage_summary(context)

    return exit_code(status, args.fail_on_unstable)


if __name__ == "__main__":
    sys.exit(main())
