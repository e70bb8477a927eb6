#!/usr/bin/env python3
"""Smoke-test script: list the Terraform reports on a pull request.

Usage::

    export GITHUB_TOKEN="ghp_..."
    export TF_REPORT_REPOSITORY="acme/infra"
    export TF_REPORT_PR="42"
    export GITHUB_API_URL="https://api.github.com"   # optional
    python examples/list_reports.py

Prints one JSON object per comment that carries a report marker.

Exit codes:
    0: comments listed successfully.
    1: missing environment variable or API error.
"""

from __future__ import annotations

import json
import os
import sys


def _env(name: str, default: str | None = None) -> str:
    value = os.environ.get(name, default)
    if value is None:
        print(f"ERROR: required environment variable {name!r} is not set.", file=sys.stderr)
        sys.exit(1)
    return value


def main() -> None:
    token = _env("GITHUB_TOKEN")
    full_name = _env("TF_REPORT_REPOSITORY")
    number = int(_env("TF_REPORT_PR"))
    api_url = _env("GITHUB_API_URL", "https://api.github.com")

    # Import here so import errors surface after env var check.
    from tf_report.client.session import GitHubSession, Repository
    from tf_report.parser.marker import find_report_marker

    session = GitHubSession(repository=Repository.parse(full_name), token=token, api_url=api_url)
    try:
        comments = session.list_comments(number)
    except Exception as exc:  # noqa: BLE001
        print(f"ERROR: {exc}", file=sys.stderr)
        sys.exit(1)
    finally:
        session.close()

    for comment in comments:
        marker = find_report_marker(comment.body)
        if marker is None:
            continue
        print(
            json.dumps(
                {
                    "id": comment.id,
                    "author": comment.author,
                    "report_id": marker.report_id,
                    "run_id": marker.run_id,
                    "sha": marker.sha,
                    "url": comment.html_url,
                }
            )
        )


if __name__ == "__main__":
    main()
