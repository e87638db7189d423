"""Terminal rendering of confirmation views and the interactive prompt."""

from __future__ import annotations

import asyncio

import click

from kubecascade.models.findings import ConfirmationView, DeletionDecision, DependencyFinding, Severity

_TONE_COLORS: dict[str, str | None] = {
    "danger": "red",
    "warning": "yellow",
    "secondary": "bright_black",
    "default": None,
}

_SEVERITY_MARKS: dict[Severity, tuple[str, str]] = {
    Severity.ERROR: ("x", "red"),
    Severity.WARNING: ("!", "yellow"),
    Severity.INFO: ("-", "cyan"),
}


def _finding_line(finding: DependencyFinding) -> str:
    mark, color = _SEVERITY_MARKS[finding.severity]
    namespace = f" ({finding.related_namespace})" if finding.related_namespace else ""
    return (
        f"      {click.style(mark, fg=color)} {click.style(finding.related_kind, bold=True)} "
        f"{finding.related_name}{namespace} - {finding.description}"
    )


def render_view(view: ConfirmationView) -> str:
    lines = [click.style(view.title, bold=True)]
    for section in view.sections:
        lines.append(
            click.style(f"   {section.message}", fg=_TONE_COLORS.get(section.tone), bold=section.tone == "warning")
        )
        for group in section.groups:
            _, color = _SEVERITY_MARKS[group.severity]
            lines.append(click.style(f"   {group.heading}:", fg=color))
            lines.extend(_finding_line(finding) for finding in group.findings)
    if view.footer:
        lines.append(click.style(f"   {view.footer}", fg=_TONE_COLORS["secondary"]))
    return "\n".join(lines)


class TerminalPrompt:
    """ConfirmationPrompt that prints the view and asks on stdin.

    A view with confirmation disabled is shown and then declined.
    """

    def __init__(self, assume_yes: bool = False) -> None:
        self._assume_yes = assume_yes

    async def confirm(self, view: ConfirmationView, decision: DeletionDecision) -> bool:
        click.echo(render_view(view))
        if not view.confirm_enabled:
            return False
        if self._assume_yes:
            return True
        return await asyncio.to_thread(click.confirm, f"{view.confirm_label}?", default=False)
