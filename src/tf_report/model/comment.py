"""Typed model for pull request comments and the report marker."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ReportMarker:
    """Machine-readable identity embedded (invisibly) in every report.

    Attributes:
        report_id: Distinguishes several reports on one pull request
            (e.g. one per Terraform workspace).
        run_id: Workflow run that produced the report.
        sha: Commit the plan was computed for.
    """

    report_id: str
    run_id: str
    sha: str = ""

    def supersedes(self, other: ReportMarker) -> bool:
        """True if *other* is an older report of the same kind."""
        return other.report_id == self.report_id and other.run_id != self.run_id


@dataclass(frozen=True)
class Comment:
    """A pull request (issue) comment.

    Attributes:
        id: GitHub comment ID.
        body: Raw markdown body.
        author: Login of the comment author.
        html_url: Link to the comment in the web UI.
    """

    id: int
    body: str
    author: str = ""
    html_url: str = ""

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> Comment:
        """Build a :class:`Comment` from a GitHub REST API object."""
        user = payload.get("user") or {}
        return cls(
            id=int(payload["id"]),
            body=str(payload.get("body") or ""),
            author=str(user.get("login", "")),
            html_url=str(payload.get("html_url", "")),
        )
