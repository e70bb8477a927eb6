"""tf-report CLI - post a Terraform plan report on a pull request.

Every option can also be supplied through the matching GitHub Actions input
variable (``INPUT_TERRAFORM-JSON`` etc.), so the same command works as an
action step and from a terminal.

Exit codes:
- 0: report published, or the pull request is already closed
- 1: missing input, malformed plan, unsupported action or API failure
"""

from __future__ import annotations

import json
import logging
import os

import click
import typer

from tf_report.client.errors import ConfigurationError, TFReportError
from tf_report.config import (
    DEFAULT_REPORT_ID,
    DEFAULT_TIMEOUT_S,
    ReportConfig,
    load_run_context,
    local_run_context,
)
from tf_report.log import configure_logging, remove_logging
from tf_report.reporter import TerraformReporter

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="tf-report",
    help="Post a summary of a Terraform plan as a pull request comment",
    add_completion=False,
)


@app.command()
def main(
    terraform_text: str = typer.Option(
        None,
        "--terraform-text",
        envvar="INPUT_TERRAFORM-TEXT",
        help="Path to the `terraform show` text output",
    ),
    terraform_json: str = typer.Option(
        None,
        "--terraform-json",
        envvar="INPUT_TERRAFORM-JSON",
        help="Path to the `terraform show -json` output",
    ),
    github_token: str = typer.Option(
        None,
        "--github-token",
        envvar=["INPUT_GITHUB-TOKEN", "GITHUB_TOKEN"],
        help="Token for the GitHub API",
        show_default=False,
    ),
    show_plan: str = typer.Option(
        "false",
        "--show-plan",
        envvar="INPUT_SHOW-PLAN",
        help="Include the raw plan output in the report",
    ),
    show_diff: str = typer.Option(
        "false",
        "--show-diff",
        envvar="INPUT_SHOW-DIFF",
        help="Include a diff for every changed resource",
    ),
    remove_stale_reports: str = typer.Option(
        "false",
        "--remove-stale-reports",
        envvar="INPUT_REMOVE-STALE-REPORTS",
        help="Delete reports left on the pull request by earlier runs",
    ),
    report_id: str = typer.Option(
        DEFAULT_REPORT_ID,
        "--report-id",
        envvar="INPUT_REPORT-ID",
        help="Name distinguishing several reports on one pull request",
    ),
    timeout: float = typer.Option(
        DEFAULT_TIMEOUT_S,
        "--timeout",
        envvar="INPUT_TIMEOUT",
        help="Timeout for each GitHub API call, in seconds",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Print the report instead of posting it",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="With --dry-run, print the summary and diffs as JSON",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Summarize a Terraform plan and post it on the triggering pull request."""
    handler = configure_logging(verbose)
    try:
        code = _run(
            terraform_text=terraform_text,
            terraform_json=terraform_json,
            github_token=github_token,
            show_plan=show_plan,
            show_diff=show_diff,
            remove_stale_reports=remove_stale_reports,
            report_id=report_id,
            timeout=timeout,
            dry_run=dry_run,
            as_json=as_json,
        )
    finally:
        remove_logging(handler)
    raise typer.Exit(code)


def _run(
    *,
    terraform_text: str | None,
    terraform_json: str | None,
    github_token: str | None,
    show_plan: str,
    show_diff: str,
    remove_stale_reports: str,
    report_id: str | None,
    timeout: float,
    dry_run: bool,
    as_json: bool,
) -> int:
    try:
        config = ReportConfig.from_inputs(
            terraform_text=terraform_text,
            terraform_json=terraform_json,
            github_token=github_token,
            require_token=not dry_run,
            show_plan=_flag("show-plan", show_plan),
            show_diff=_flag("show-diff", show_diff),
            remove_stale_reports=_flag("remove-stale-reports", remove_stale_reports),
            report_id=report_id,
            timeout_s=timeout,
        )
        logger.debug("Configuration: %r", config)

        if dry_run:
            context = load_run_context() if _has_event() else local_run_context()
            with TerraformReporter(config, context) as reporter:
                if as_json:
                    typer.echo(json.dumps(reporter.build_json(), indent=2))
                else:
                    typer.echo(reporter.build_report())
            return 0

        context = load_run_context()
        if not context.is_open:
            logger.warning("action triggered on a closed pull request")
            return 0

        with TerraformReporter(config, context) as reporter:
            reporter.publish()
        return 0
    except TFReportError as exc:
        logger.error("%s", exc)
        return 1
    except Exception as exc:  # noqa: BLE001
        logger.exception("Unhandled error: %s", exc)
        return 1


def _flag(name: str, value: str) -> bool:
    """Interpret an action input such as ``"true"`` or ``"false"``."""
    try:
        return bool(click.BOOL.convert(value, None, None))
    except click.BadParameter as exc:
        raise ConfigurationError(f"Invalid value for {name}: {value!r}") from exc


def _has_event() -> bool:
    return bool(os.environ.get("GITHUB_EVENT_PATH"))


if __name__ == "__main__":
    app()
