from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class BuildTool:
    """Command recipes and report conventions for one build tool."""

    name: str
    executable: str
    wrapper: str
    windows_wrapper: str
    build_args: str
    test_args: str
    analysis_args: str
    publish_args: str
    report_dirs: dict[str, str]
    report_task_file: str

    def command(self, workspace: Path, windows: bool, args: str) -> str:
        return f"{self.launcher(workspace, windows)} {args}"

    def launcher(self, workspace: Path, windows: bool) -> str:
        wrapper = self.windows_wrapper if windows else self.wrapper
        if (workspace / wrapper).is_file():
            return wrapper if windows else f"./{wrapper}"
        return self.executable

    def build(self, workspace: Path, windows: bool) -> str:
        return self.command(workspace, windows, self.build_args)

    def test(self, workspace: Path, windows: bool) -> str:
        return self.command(workspace, windows, self.test_args)

    def analysis(self, workspace: Path, windows: bool) -> str:
        return self.command(workspace, windows, self.analysis_args)

    def publish(self, workspace: Path, windows: bool) -> str:
        return self.command(workspace, windows, self.publish_args)

    def report_dir(self, workspace: Path, key: str) -> Path:
        return workspace / self.report_dirs[key]


MAVEN = BuildTool(
    name="maven",
    executable="mvn",
    wrapper="mvnw",
    windows_wrapper="mvnw.cmd",
    build_args="-B clean package -DskipTests",
    test_args="-B test jacoco:report",
    analysis_args="-B sonar:sonar",
    publish_args="-B deploy -DskipTests",
    report_dirs={
        "tests": "target/surefire-reports",
        "coverage": "target/site/jacoco",
    },
    report_task_file="target/sonar/report-task.txt",
)

GRADLE = BuildTool(
    name="gradle",
    executable="gradle",
    wrapper="gradlew",
    windows_wrapper="gradlew.bat",
    build_args="clean assemble",
    test_args="test jacocoTestReport",
    analysis_args="sonar",
    publish_args="publish",
    report_dirs={
        "tests": "build/reports/tests/test",
        "coverage": "build/reports/jacoco/test/html",
    },
    report_task_file="build/sonar/report-task.txt",
)

BUILD_TOOLS = {tool.name: tool for tool in (MAVEN, GRADLE)}


def get_build_tool(name: str) -> BuildTool:
    try:
        return BUILD_TOOLS[name.lower()]
    except KeyError as exc:
        raise RuntimeError(
            f"Unknown build tool '{name}'. Expected one of: {', '.join(sorted(BUILD_TOOLS))}"
        ) from exc
