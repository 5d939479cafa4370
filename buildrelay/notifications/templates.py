from __future__ import annotations

from dataclasses import dataclass
from html import escape

from ..pipeline.context import RunContext
from ..pipeline.status import RunStatus


@dataclass(frozen=True)
class Template:
    subject: str
    headline: str
    emoji: str


TEMPLATES: dict[RunStatus, Template] = {
    RunStatus.SUCCESS: Template(
        subject="SUCCESS: {name}",
        headline="Build succeeded",
        emoji=":white_check_mark:",
    ),
    RunStatus.UNSTABLE: Template(
        subject="UNSTABLE: {name}",
        headline="Build is unstable",
        emoji=":warning:",
    ),
    RunStatus.FAILURE: Template(
        subject="FAILED: {name}",
        headline="Build failed",
        emoji=":x:",
    ),
}


@dataclass(frozen=True)
class RenderedMessage:
    subject: str
    body: str
    text: str


def _links(context: RunContext) -> list[tuple[str, str]]:
    links: list[tuple[str, str]] = []
    if context.build_url:
        links.append(("Build", context.build_url))
    if context.console_url:
        links.append(("Console output", context.console_url))
    for label, key in (("Test report", "tests"), ("Coverage report", "coverage")):
        url = context.report_urls.get(key)
        if url:
            links.append((label, url))
    return links


def render(status: RunStatus, context: RunContext) -> RenderedMessage:
    template = TEMPLATES[status]
    subject = template.subject.format(name=context.display_name)
    links = _links(context)
    failed = context.failed_stages

    html_rows = [
        f"<tr><td><b>Project</b></td><td>{escape(context.job_name)}</td></tr>",
        f"<tr><td><b>Build</b></td><td>{escape(context.build_number or '-')}</td></tr>",
    ]
    if context.duration:
        html_rows.append(f"<tr><td><b>Duration</b></td><td>{escape(context.duration)}</td></tr>")
    if failed:
        html_rows.append(
            f"<tr><td><b>Failed stages</b></td><td>{escape(', '.join(failed))}</td></tr>"
        )
    html_links = "".join(
        f'<li><a href="{escape(url, quote=True)}">{escape(label)}</a></li>'
        for label, url in links
    )
    body = (
        "<html><body>"
        f'<h2 style="color:{status.color}">{escape(template.headline)}</h2>'
        f"<table>{''.join(html_rows)}</table>"
        + (f"<ul>{html_links}</ul>" if html_links else "")
        + "</body></html>"
    )

    text_lines = [f"{template.emoji} *{template.headline}*: {context.display_name}"]
    if failed:
        text_lines.append(f"Failed stages: {', '.join(failed)}")
    if context.duration:
        text_lines.append(f"Duration: {context.duration}")
    text_lines.extend(f"<{url}|{label}>" for label, url in links)

    return RenderedMessage(subject=subject, body=body, text="\n".join(text_lines))
