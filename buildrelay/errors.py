from __future__ import annotations


class PipelineError(Exception):
    """Base class for pipeline errors."""


class StageError(PipelineError):
    def __init__(self, stage_name: str, cause: BaseException) -> None:
        super().__init__(f"Stage '{stage_name}' failed: {cause}")
        self.stage_name = stage_name
        self.cause = cause


class ToolInvocationError(PipelineError):
    def __init__(self, command: str, exit_code: int, output: str = "") -> None:
        super().__init__(f"Command {command!r} exited with status {exit_code}")
        self.command = command
        self.exit_code = exit_code
        self.output = output


class QualityGateError(PipelineError):
    """Quality gate timed out, errored or reported a non-OK status."""


class CredentialResolutionError(PipelineError):
    pass


class NotificationDeliveryError(PipelineError):
    def __init__(self, channel: str, reason: str) -> None:
        super().__init__(f"Delivery to {channel} failed: {reason}")
        self.channel = channel
        self.reason = reason
