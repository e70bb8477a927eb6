"""Markdown renderer for plan reports."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from tf_report.model.comment import ReportMarker
from tf_report.model.report import DiffFragment, Summary
from tf_report.parser.marker import render_marker
from tf_report.vendor.github.endpoints import ACTION_RUN, MAX_COMMENT_LENGTH

logger = logging.getLogger(__name__)

REPORT_TITLE: str = ":robot: Terraform Report"

_TRUNCATED_PLAN = "_Plan output omitted: the report exceeded GitHub's comment size limit._"
_TRUNCATED_DIFF = "_Diff omitted: the report exceeded GitHub's comment size limit._"


@dataclass(frozen=True)
class RenderOptions:
    """Switches controlling which optional sections are rendered.

    Attributes:
        show_plan: Include the raw ``terraform show`` output.
        show_diff: Include one diff block per changed resource.
        max_length: Upper bound on the body length, in characters.
    """

    show_plan: bool = False
    show_diff: bool = False
    max_length: int = MAX_COMMENT_LENGTH


def fence(text: str, info: str = "") -> str:
    """Wrap *text* in a fenced code block that *text* cannot close.

    The fence is one backtick longer than the longest backtick run in *text*
    (and never shorter than three).
    """
    longest = max((len(run) for run in re.findall(r"`+", text)), default=0)
    ticks = "`" * max(3, longest + 1)
    return f"{ticks}{info}\n{text}\n{ticks}"


def render_summary_line(summary: Summary) -> str:
    line = (
        f"##### Summary: `{summary.to_add}` to add, `{summary.to_change}` to change, "
        f"`{summary.to_destroy}` to destroy"
    )
    if summary.replace:
        line += f" (`{summary.replace}` to replace)"
    return line


def render_report(
    summary: Summary,
    fragments: Sequence[DiffFragment],
    plan_text: str,
    *,
    footer: str,
    marker: ReportMarker,
    options: RenderOptions | None = None,
) -> str:
    """Render the full markdown body of a report comment.

    If the body would exceed ``options.max_length``, the plan section is
    replaced by a short note first, then the diff section.

    Args:
        summary: Change counts.
        fragments: Diff fragments in plan order.
        plan_text: Raw ``terraform show`` output.
        footer: Visible footer line (run link and commit).
        marker: Invisible marker identifying this report.
        options: Section switches; defaults to summary only.

    Returns:
        The markdown body.
    """
    options = options or RenderOptions()
    plan_section = _plan_section(plan_text) if options.show_plan else None
    diff_section = _diff_section(fragments) if options.show_diff else None

    body = _assemble(summary, plan_section, diff_section, footer, marker)
    if len(body) > options.max_length and plan_section is not None:
        logger.warning("Report too long (%d chars); omitting plan output", len(body))
        plan_section = _TRUNCATED_PLAN
        body = _assemble(summary, plan_section, diff_section, footer, marker)
    if len(body) > options.max_length and diff_section is not None:
        logger.warning("Report too long (%d chars); omitting diff", len(body))
        diff_section = _TRUNCATED_DIFF
        body = _assemble(summary, plan_section, diff_section, footer, marker)
    return body


def render_footer(
    *,
    server_url: str,
    owner: str,
    repo: str,
    run_id: str,
    sha: str,
) -> str:
    """Visible footer linking back to the workflow run and commit."""
    run_url = server_url.rstrip("/") + ACTION_RUN.format(owner=owner, repo=repo, run_id=run_id)
    return (
        "This comment was generated by Terraform Pull Request Report - "
        f"action run [#{run_id}]({run_url}) - commit {sha}"
    )


def render_diff(summary: Summary, fragments: Sequence[DiffFragment]) -> dict[str, Any]:
    """Serialize a summary and its fragments to a JSON-serializable dict.

    Returns:
        A dict with keys:

        - ``"summary"``: count per bucket.
        - ``"total_changes"``: number of changed resources.
        - ``"changes"``: list of fragment dicts (``address``, ``action``,
          ``label``, ``body``).
    """
    return {
        "summary": summary.as_dict(),
        "total_changes": len(fragments),
        "changes": [
            {
                "address": f.address,
                "action": f.action,
                "label": f.action_label,
                "body": f.body,
            }
            for f in fragments
        ],
    }


# ---------------------------------------------------------------------------
# Internals
# ---------------------------------------------------------------------------


def _plan_section(plan_text: str) -> str:
    return fence(plan_text.rstrip("\n"), "terraform")


def _diff_section(fragments: Sequence[DiffFragment]) -> str:
    if not fragments:
        return "_No changes._"
    return "\n\n".join(fence(f.body, "diff") for f in fragments)


def _details(title: str, content: str) -> str:
    return f"<details><summary>{title}</summary>\n\n{content}\n</details>"


def _assemble(
    summary: Summary,
    plan_section: str | None,
    diff_section: str | None,
    footer: str,
    marker: ReportMarker,
) -> str:
    parts = [
        f"### {REPORT_TITLE}",
        "---",
        render_summary_line(summary),
    ]
    if plan_section is not None:
        parts.append("")
        parts.append(_details("Show Plan", plan_section))
    if diff_section is not None:
        parts.append("")
        parts.append(_details("Show Diff", diff_section))
    parts.extend(["", "---", footer, render_marker(marker), ""])
    return "\n".join(parts)
