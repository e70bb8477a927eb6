"""Authenticated GitHub session scoped to one repository."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from tf_report.client.errors import PublishError
from tf_report.client.http import GitHubHTTP
from tf_report.model.comment import Comment
from tf_report.vendor.github.endpoints import (
    DEFAULT_API_URL,
    ISSUE_COMMENT,
    ISSUE_COMMENTS,
    PER_PAGE,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Repository:
    """Immutable owner/name pair for a GitHub repository.

    Args:
        owner: User or organisation login.
        name: Repository name.
    """

    owner: str
    name: str

    @classmethod
    def parse(cls, full_name: str) -> Repository:
        """Build from an ``owner/name`` string (``GITHUB_REPOSITORY``)."""
        owner, sep, name = full_name.partition("/")
        if not sep or not owner or not name or "/" in name:
            raise ValueError(f"Expected 'owner/name', got {full_name!r}")
        return cls(owner=owner, name=name)

    def __str__(self) -> str:
        return f"{self.owner}/{self.name}"


class GitHubSession:
    """Issue-comment operations against a single repository.

    Wraps :class:`.GitHubHTTP` and adds:
    - Endpoint formatting for the repository.
    - Transparent ``Link`` pagination when listing comments.
    - Best-effort deletion that logs failures instead of raising.

    Args:
        repository: Target repository.
        token: GitHub token.
        api_url: API base URL (``GITHUB_API_URL``).
        timeout_s: Request timeout in seconds (default 30).
    """

    def __init__(
        self,
        repository: Repository,
        token: str,
        api_url: str = DEFAULT_API_URL,
        timeout_s: float = 30.0,
    ) -> None:
        self._http: GitHubHTTP = GitHubHTTP(
            token=token,
            base_url=api_url,
            timeout_s=timeout_s,
        )
        self.repository: Repository = repository

    # ------------------------------------------------------------------
    # Public request methods
    # ------------------------------------------------------------------

    def list_comments(self, issue_number: int) -> list[Comment]:
        """Return every comment on *issue_number*, oldest first.

        Follows ``rel="next"`` links until the last page.

        Raises:
            PublishError: If any page cannot be fetched.
        """
        path: str | None = self._path(ISSUE_COMMENTS, issue_number=issue_number)
        params: dict[str, str] | None = {"per_page": str(PER_PAGE)}
        comments: list[Comment] = []
        while path is not None:
            resp = self._http.get(path, params=params)
            comments.extend(Comment.from_api(item) for item in resp.json())
            path = resp.links.get("next", {}).get("url")
            params = None  # the next link already carries the query string
        logger.debug("Fetched %d comment(s) on #%d", len(comments), issue_number)
        return comments

    def create_comment(self, issue_number: int, body: str) -> Comment:
        """Post a new comment on *issue_number* and return it.

        Raises:
            PublishError: If GitHub rejects the request or cannot be reached.
        """
        resp = self._http.post_json(
            self._path(ISSUE_COMMENTS, issue_number=issue_number),
            {"body": body},
        )
        comment = Comment.from_api(resp.json())
        logger.info("Created comment %d on #%d", comment.id, issue_number)
        return comment

    def delete_comment(self, comment_id: int) -> bool:
        """Delete comment *comment_id* (best-effort; never raises).

        Returns:
            ``True`` on success, ``False`` if the deletion failed.
        """
        try:
            self._http.delete(self._path(ISSUE_COMMENT, comment_id=comment_id))
        except PublishError as exc:
            logger.warning("Could not delete comment %d: %s", comment_id, exc)
            return False
        logger.info("Deleted comment %d", comment_id)
        return True

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self._http.close()

    def __enter__(self) -> GitHubSession:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _path(self, template: str, **fields: object) -> str:
        return template.format(
            owner=self.repository.owner,
            repo=self.repository.name,
            **fields,
        )
