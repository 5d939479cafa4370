from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Iterable

from .pipeline.context import RunContext

logger = logging.getLogger(__name__)


class ReportPublisher:
    """Archive report directories and build artifacts for the CI host.

    Publishing is fire-and-forget: anything that goes wrong is logged and
    the caller carries on.
    """

    def __init__(self, archive_dir: Path, build_url: str = "") -> None:
        self.archive_dir = archive_dir
        self.build_url = build_url

    def report_url(self, name: str) -> str | None:
        if not self.build_url:
            return None
        base = self.build_url if self.build_url.endswith("/") else self.build_url + "/"
        return f"{base}{name}/"

    def publish(
        self,
        context: RunContext,
        name: str,
        source_dir: Path,
        index: str = "index.html",
    ) -> None:
        if not source_dir.is_dir():
            logger.warning("Report directory %s not found; skipping '%s'.", source_dir, name)
            return

        target = self.archive_dir / "reports" / name
        try:
            if target.exists():
                shutil.rmtree(target)
            shutil.copytree(source_dir, target)
        except OSError as exc:
            logger.error("Could not publish report '%s': %s", name, exc)
            return

        if not (target / index).is_file():
            logger.info("Report '%s' has no %s; archived raw files only.", name, index)
        url = self.report_url(name)
        if url:
            context.report_urls[name] = url
        logger.info("Published report '%s' to %s", name, target)

    def archive(self, workspace: Path, patterns: Iterable[str]) -> list[Path]:
        archived: list[Path] = []
        target_root = self.archive_dir / "artifacts"
        for pattern in patterns:
            for path in sorted(workspace.glob(pattern)):
                if not path.is_file():
                    continue
                target = target_root / path.relative_to(workspace)
                try:
                    target.parent.mkdir(parents=True, exist_ok=True)
                    shutil.copy2(path, target)
                except OSError as exc:
                    logger.error("Could not archive %s: %s", path, exc)
                    continue
                archived.append(target)
        logger.info("Archived %d artifact(s)", len(archived))
        return archived
