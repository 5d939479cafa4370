from __future__ import annotations

from ..config import Settings
from ..credentials import CredentialStore
from ..quality_gate import QualityGateClient, read_task_id
from ..reports import ReportPublisher
from ..tools.build import BuildTool
from ..tools.invoker import ToolInvoker, WindowsBatchInvoker
from .context import RunContext
from .stage import Containment, Stage, all_of, always, never, on_branch, when_completed, when_status
from .status import RunStatus

ANALYSIS_COMPLETED = "analysis_completed"


def build_stages(
    settings: Settings,
    invoker: ToolInvoker,
    build_tool: BuildTool,
    credentials: CredentialStore,
    reports: ReportPublisher,
    quality_gate: QualityGateClient,
) -> list[Stage]:
    workspace = settings.workspace
    windows = isinstance(invoker, WindowsBatchInvoker)

    def build(context: RunContext) -> None:
        invoker.run(build_tool.build(workspace, windows), cwd=workspace)
        if settings.archive_patterns:
            reports.archive(workspace, settings.archive_patterns)

    def test(context: RunContext) -> None:
        try:
            invoker.run(build_tool.test(workspace, windows), cwd=workspace)
        finally:
            for name in ("tests", "coverage"):
                reports.publish(context, name, build_tool.report_dir(workspace, name))

    def analysis(context: RunContext) -> None:
        env = {"SONAR_HOST_URL": settings.sonar_host_url}
        if settings.sonar_token:
            env["SONAR_TOKEN"] = settings.sonar_token
        invoker.run(build_tool.analysis(workspace, windows), env=env, cwd=workspace)

    def wait_for_quality_gate(context: RunContext) -> None:
        task_id = read_task_id(workspace / build_tool.report_task_file)
        quality_gate.wait_for_gate(task_id)

    def publish(context: RunContext) -> None:
        with credentials.scoped(settings.publish_credentials) as secrets:
            invoker.run(build_tool.publish(workspace, windows), env=secrets, cwd=workspace)

    publish_activation = when_status(RunStatus.SUCCESS)
    if settings.publish_branches:
        publish_activation = all_of(on_branch(*settings.publish_branches), publish_activation)

    return [
        Stage("Build", build, containment=Containment.FATAL),
        Stage("Test", test, containment=Containment.DEGRADE),
        Stage(
            "Static Analysis",
            analysis,
            activation=always if settings.analysis_enabled else never,
            containment=Containment.DEGRADE,
            flag=ANALYSIS_COMPLETED,
        ),
        Stage(
            "Quality Gate",
            wait_for_quality_gate,
            activation=when_completed(ANALYSIS_COMPLETED),
            containment=Containment.DEGRADE,
        ),
        Stage(
            "Publish Artifact",
            publish,
            activation=publish_activation,
            containment=Containment.FATAL,
        ),
    ]
