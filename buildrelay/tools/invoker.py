from __future__ import annotations

import logging
import os
import platform
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from ..errors import ToolInvocationError

logger = logging.getLogger(__name__)

OUTPUT_TAIL_LINES = 40


def is_windows() -> bool:
    return platform.system() == "Windows"


@dataclass(slots=True)
class ToolResult:
    command: str
    exit_code: int
    output: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


def _tail(output: str, lines: int = OUTPUT_TAIL_LINES) -> str:
    return "\n".join(output.splitlines()[-lines:])


class ToolInvoker:
    """Run a command string through the host shell and capture its output."""

    def __init__(self, timeout: int | None = None) -> None:
        self.timeout = timeout

    def argv(self, command: str) -> list[str]:
        raise NotImplementedError

    def run(
        self,
        command: str,
        env: Mapping[str, str] | None = None,
        cwd: Path | str | None = None,
        check: bool = True,
    ) -> ToolResult:
        merged_env = dict(os.environ)
        if env:
            merged_env.update(env)

        logger.info("Running: %s", command)
        try:
            completed = subprocess.run(
                self.argv(command),
                cwd=cwd,
                env=merged_env,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as exc:
            output = exc.output or ""
            if isinstance(output, bytes):
                output = output.decode(errors="replace")
            raise ToolInvocationError(command, -1, output) from exc
        except OSError as exc:
            raise ToolInvocationError(command, -1, str(exc)) from exc

        result = ToolResult(command=command, exit_code=completed.returncode, output=completed.stdout or "")
        if check and not result.ok:
            logger.error(
                "Command %r failed with status %d:\n%s",
                command,
                result.exit_code,
                _tail(result.output),
            )
            raise ToolInvocationError(command, result.exit_code, result.output)
        return result


class PosixShellInvoker(ToolInvoker):
    shell = "/bin/sh"

    def argv(self, command: str) -> list[str]:
        return [self.shell, "-c", command]


class WindowsBatchInvoker(ToolInvoker):
    def argv(self, command: str) -> list[str]:
        return ["cmd", "/c", command]


def select_invoker(windows: bool | None = None, timeout: int | None = None) -> ToolInvoker:
    if windows is None:
        windows = is_windows()
    if windows:
        return WindowsBatchInvoker(timeout=timeout)
    return PosixShellInvoker(timeout=timeout)
