"""Run configuration and GitHub Actions context."""

from __future__ import annotations

import json
import logging
import os
import pathlib
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from tf_report.client.errors import ConfigurationError
from tf_report.client.session import Repository
from tf_report.vendor.github.endpoints import DEFAULT_API_URL, DEFAULT_SERVER_URL

logger = logging.getLogger(__name__)

DEFAULT_REPORT_ID: str = "default"
DEFAULT_TIMEOUT_S: float = 30.0

_REPORT_ID_RE = re.compile(r"^[A-Za-z0-9._/-]{1,100}$")


@dataclass(frozen=True)
class ReportConfig:
    """User inputs for one run.  Built once, never mutated.

    Attributes:
        terraform_text: Path to the ``terraform show`` text output.
        terraform_json: Path to the ``terraform show -json`` output.
        github_token: Token used for the GitHub API.
        show_plan: Include the raw plan text in the report.
        show_diff: Include per-resource diffs in the report.
        remove_stale_reports: Delete earlier reports with the same report ID.
        report_id: Identifies this report among several on one pull request.
        timeout_s: Timeout for each GitHub API call, in seconds.
    """

    terraform_text: pathlib.Path
    terraform_json: pathlib.Path
    github_token: str
    show_plan: bool = False
    show_diff: bool = False
    remove_stale_reports: bool = False
    report_id: str = DEFAULT_REPORT_ID
    timeout_s: float = DEFAULT_TIMEOUT_S

    def __repr__(self) -> str:
        return (
            f"ReportConfig(terraform_text={str(self.terraform_text)!r}, "
            f"terraform_json={str(self.terraform_json)!r}, github_token='***', "
            f"show_plan={self.show_plan}, show_diff={self.show_diff}, "
            f"remove_stale_reports={self.remove_stale_reports}, "
            f"report_id={self.report_id!r}, timeout_s={self.timeout_s})"
        )

    @classmethod
    def from_inputs(
        cls,
        *,
        terraform_text: str | None,
        terraform_json: str | None,
        github_token: str | None,
        require_token: bool = True,
        show_plan: bool = False,
        show_diff: bool = False,
        remove_stale_reports: bool = False,
        report_id: str | None = None,
        timeout_s: float = DEFAULT_TIMEOUT_S,
    ) -> ReportConfig:
        """Validate raw inputs and build a :class:`ReportConfig`.

        Empty strings count as missing, matching how GitHub Actions passes
        unset inputs.

        Raises:
            ConfigurationError: If a required input is missing or a value is invalid.
        """
        required = [
            ("terraform-text", terraform_text),
            ("terraform-json", terraform_json),
        ]
        if require_token:
            required.append(("github-token", github_token))
        missing = [name for name, value in required if not value]
        if missing:
            raise ConfigurationError(f"Missing required inputs: {', '.join(missing)}")

        report_id = report_id or DEFAULT_REPORT_ID
        if not _REPORT_ID_RE.match(report_id):
            raise ConfigurationError(f"Invalid report-id {report_id!r}")
        if timeout_s <= 0:
            raise ConfigurationError(f"timeout must be positive, got {timeout_s}")

        return cls(
            terraform_text=pathlib.Path(str(terraform_text)),
            terraform_json=pathlib.Path(str(terraform_json)),
            github_token=github_token or "",
            show_plan=show_plan,
            show_diff=show_diff,
            remove_stale_reports=remove_stale_reports,
            report_id=report_id,
            timeout_s=timeout_s,
        )


@dataclass(frozen=True)
class RunContext:
    """What triggered the run, read from the GitHub Actions environment.

    Attributes:
        repository: Repository the workflow runs in.
        run_id: Workflow run ID.
        sha: Commit SHA of the run.
        pull_request_number: Number of the triggering pull request.
        pull_request_state: ``"open"`` or ``"closed"``.
        api_url: GitHub REST API base URL.
        server_url: GitHub web UI base URL.
    """

    repository: Repository
    run_id: str
    sha: str
    pull_request_number: int
    pull_request_state: str = "open"
    api_url: str = DEFAULT_API_URL
    server_url: str = DEFAULT_SERVER_URL

    @property
    def is_open(self) -> bool:
        return self.pull_request_state == "open"


def load_run_context(environ: Mapping[str, str] | None = None) -> RunContext:
    """Build a :class:`RunContext` from GitHub Actions environment variables.

    Reads ``GITHUB_REPOSITORY``, ``GITHUB_RUN_ID``, ``GITHUB_SHA``,
    ``GITHUB_API_URL``, ``GITHUB_SERVER_URL`` and the event payload at
    ``GITHUB_EVENT_PATH``.

    Args:
        environ: Environment mapping; defaults to :data:`os.environ`.

    Raises:
        ConfigurationError: If the environment does not describe a pull
            request event.
    """
    env = os.environ if environ is None else environ

    full_name = env.get("GITHUB_REPOSITORY", "")
    try:
        repository = Repository.parse(full_name)
    except ValueError as exc:
        raise ConfigurationError(f"GITHUB_REPOSITORY is not set or invalid: {exc}") from exc

    pull_request = _read_pull_request(env.get("GITHUB_EVENT_PATH", ""))
    number = pull_request.get("number")
    if not isinstance(number, int):
        raise ConfigurationError("Event payload has no pull request number")

    return RunContext(
        repository=repository,
        run_id=env.get("GITHUB_RUN_ID", ""),
        sha=env.get("GITHUB_SHA", ""),
        pull_request_number=number,
        pull_request_state=str(pull_request.get("state", "open")),
        api_url=env.get("GITHUB_API_URL") or DEFAULT_API_URL,
        server_url=env.get("GITHUB_SERVER_URL") or DEFAULT_SERVER_URL,
    )


def _read_pull_request(event_path: str) -> dict[str, Any]:
    if not event_path:
        raise ConfigurationError("GITHUB_EVENT_PATH is not set")
    try:
        event = json.loads(pathlib.Path(event_path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigurationError(f"Cannot read event payload {event_path!r}: {exc}") from exc
    except ValueError as exc:
        raise ConfigurationError(f"Event payload {event_path!r} is not valid JSON") from exc

    pull_request = event.get("pull_request") if isinstance(event, dict) else None
    if not isinstance(pull_request, dict):
        raise ConfigurationError("Workflow was not triggered by a pull request event")
    return pull_request


def local_run_context() -> RunContext:
    """Placeholder context for rendering a report outside GitHub Actions."""
    return RunContext(
        repository=Repository(owner="local", name="local"),
        run_id="local",
        sha="",
        pull_request_number=0,
    )
