"""Top-level orchestration: build a Terraform plan report and publish it."""

from __future__ import annotations

import logging
from typing import Any

from tf_report.client.comment_ops import remove_stale_reports
from tf_report.client.errors import ConfigurationError
from tf_report.client.session import GitHubSession
from tf_report.config import ReportConfig, RunContext
from tf_report.model.comment import Comment, ReportMarker
from tf_report.model.plan import PlanDocument
from tf_report.model.report import DiffFragment, Summary
from tf_report.parser.plan import load_plan_file
from tf_report.utils.plan_diff import summarize
from tf_report.utils.render import RenderOptions, render_diff, render_footer, render_report

logger = logging.getLogger(__name__)


class TerraformReporter:
    """Builds a plan report and publishes it on the triggering pull request.

    Args:
        config: Validated run inputs.
        context: GitHub Actions run context.
        session: GitHub session to use; one is opened from *config* and
            *context* on first use when omitted.
    """

    def __init__(
        self,
        config: ReportConfig,
        context: RunContext,
        session: GitHubSession | None = None,
    ) -> None:
        self.config = config
        self.context = context
        self._session: GitHubSession | None = session
        self._owns_session: bool = session is None

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    def open(self) -> GitHubSession:
        """Return the GitHub session, creating it if needed."""
        if self._session is None:
            logger.debug("Opening GitHub session for %s", self.context.repository)
            self._session = GitHubSession(
                repository=self.context.repository,
                token=self.config.github_token,
                api_url=self.context.api_url,
                timeout_s=self.config.timeout_s,
            )
        return self._session

    def close(self) -> None:
        """Close a session opened by this reporter."""
        if self._session is not None and self._owns_session:
            self._session.close()
            self._session = None

    def __enter__(self) -> TerraformReporter:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Report building
    # ------------------------------------------------------------------

    @property
    def marker(self) -> ReportMarker:
        return ReportMarker(
            report_id=self.config.report_id,
            run_id=self.context.run_id,
            sha=self.context.sha,
        )

    def load_plan(self) -> PlanDocument:
        """Parse the structured plan named by ``terraform-json``."""
        logger.info("Reading plan from %s", self.config.terraform_json)
        return load_plan_file(self.config.terraform_json)

    def load_plan_text(self) -> str:
        """Read the textual plan named by ``terraform-text``.

        Raises:
            ConfigurationError: If the file cannot be read.
        """
        path = self.config.terraform_text
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigurationError(f"Cannot read plan text {str(path)!r}: {exc}") from exc

    def compute(self) -> tuple[Summary, list[DiffFragment]]:
        """Parse and summarize the plan."""
        summary, fragments = summarize(self.load_plan())
        logger.info(
            "Plan: %d to create, %d to update, %d to delete, %d to replace",
            summary.create,
            summary.update,
            summary.delete,
            summary.replace,
        )
        return summary, fragments

    def build_report(self) -> str:
        """Render the markdown body for this run."""
        summary, fragments = self.compute()
        plan_text = self.load_plan_text() if self.config.show_plan else ""
        footer = render_footer(
            server_url=self.context.server_url,
            owner=self.context.repository.owner,
            repo=self.context.repository.name,
            run_id=self.context.run_id,
            sha=self.context.sha,
        )
        return render_report(
            summary,
            fragments,
            plan_text,
            footer=footer,
            marker=self.marker,
            options=RenderOptions(
                show_plan=self.config.show_plan,
                show_diff=self.config.show_diff,
            ),
        )

    def build_json(self) -> dict[str, Any]:
        """Summary and fragments as a JSON-serializable dict."""
        summary, fragments = self.compute()
        return render_diff(summary, fragments)

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------

    def publish(self) -> Comment:
        """Build the report and post it on the pull request.

        Once the new comment exists, earlier reports with the same report ID
        are removed when ``remove-stale-reports`` is set; that step never
        fails the run.  A failed post leaves the earlier reports in place.

        Returns:
            The created comment.

        Raises:
            PublishError: If the comment cannot be created.
        """
        body = self.build_report()
        session = self.open()
        number = self.context.pull_request_number

        comment = session.create_comment(number, body)
        logger.info("Report published: %s", comment.html_url or comment.id)

        if self.config.remove_stale_reports:
            deleted = remove_stale_reports(session, number, self.marker)
            if deleted:
                logger.info("Removed %d stale report(s)", len(deleted))
        return comment
