from __future__ import annotations

import logging
import time
from pathlib import Path

import requests

from .errors import QualityGateError

logger = logging.getLogger(__name__)


def read_task_id(report_task_file: Path) -> str:
    """Extract ``ceTaskId`` from the scanner's report-task.txt."""
    if not report_task_file.is_file():
        raise QualityGateError(f"Scanner report {report_task_file} not found.")
    for line in report_task_file.read_text(encoding="utf-8").splitlines():
        key, sep, value = line.partition("=")
        if sep and key.strip() == "ceTaskId":
            return value.strip()
    raise QualityGateError(f"No ceTaskId in {report_task_file}.")


class QualityGateClient:
    def __init__(
        self,
        host_url: str,
        token: str | None = None,
        timeout: int = 300,
        poll_interval: float = 5.0,
        session: requests.Session | None = None,
        request_timeout: int = 20,
    ) -> None:
        self.host_url = host_url.rstrip("/")
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.request_timeout = request_timeout
        self.session = session or requests.Session()
        if token:
            self.session.auth = (token, "")

    def _get(self, path: str, params: dict) -> dict:
        try:
            response = self.session.get(
                f"{self.host_url}{path}", params=params, timeout=self.request_timeout
            )
            response.raise_for_status()
            return response.json()
        except (requests.RequestException, ValueError) as exc:
            raise QualityGateError(f"Quality gate request to {path} failed: {exc}") from exc

    def _timed_out(self, task_id: str) -> QualityGateError:
        return QualityGateError(
            f"Timed out after {self.timeout}s waiting for analysis task {task_id}."
        )

    def wait_for_analysis(self, task_id: str) -> str:
        deadline = time.monotonic() + self.timeout
        while True:
            task = self._get("/api/ce/task", {"id": task_id}).get("task") or {}
            status = task.get("status")
            if status == "SUCCESS":
                analysis_id = task.get("analysisId")
                if not analysis_id:
                    raise QualityGateError(f"Analysis task {task_id} has no analysisId.")
                return analysis_id
            if status in {"FAILED", "CANCELED"}:
                raise QualityGateError(f"Analysis task {task_id} ended with status {status}.")
            if time.monotonic() >= deadline:
                raise self._timed_out(task_id)
            logger.debug("Analysis task %s is %s; polling again", task_id, status)
            time.sleep(min(self.poll_interval, max(0.0, deadline - time.monotonic())))
            if time.monotonic() >= deadline:
                raise self._timed_out(task_id)

    def wait_for_gate(self, task_id: str) -> str:
        analysis_id = self.wait_for_analysis(task_id)
        body = self._get("/api/qualitygates/project_status", {"analysisId": analysis_id})
        gate_status = (body.get("projectStatus") or {}).get("status", "NONE")
        if gate_status != "OK":
            raise QualityGateError(f"Quality gate status is {gate_status}.")
        logger.info("Quality gate passed for analysis %s", analysis_id)
        return gate_status
