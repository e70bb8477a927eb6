"""Comment housekeeping for pull request reports.

A comment is a *stale report* when its embedded
:class:`~tf_report.model.comment.ReportMarker` has the same ``report_id`` as
the current run but a different ``run_id``.  Comments without a marker are
never considered, however much their text resembles a report.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from tf_report.client.errors import PublishError
from tf_report.client.session import GitHubSession
from tf_report.model.comment import Comment, ReportMarker
from tf_report.parser.marker import find_report_marker

logger = logging.getLogger(__name__)


def find_stale_reports(comments: Iterable[Comment], current: ReportMarker) -> list[Comment]:
    """Return the comments in *comments* superseded by *current*, in input order."""
    stale: list[Comment] = []
    for comment in comments:
        marker = find_report_marker(comment.body)
        if marker is not None and current.supersedes(marker):
            stale.append(comment)
    return stale


def remove_stale_reports(
    session: GitHubSession,
    issue_number: int,
    current: ReportMarker,
) -> list[int]:
    """Delete earlier reports of the same kind from *issue_number*.

    Best-effort: a failure to list comments or to delete any one of them is
    logged and does not raise.

    Args:
        session: Session for the target repository.
        issue_number: Pull request number.
        current: Marker of the report being published now.

    Returns:
        IDs of the comments actually deleted.
    """
    try:
        comments = session.list_comments(issue_number)
    except PublishError as exc:
        logger.warning("Could not list comments on #%d: %s", issue_number, exc)
        return []

    stale = find_stale_reports(comments, current)
    logger.info("Found %d stale report(s) on #%d", len(stale), issue_number)

    deleted: list[int] = []
    for comment in stale:
        if session.delete_comment(comment.id):
            deleted.append(comment.id)
    return deleted
