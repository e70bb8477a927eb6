"""Unit tests for tf_report.parser.marker."""

from __future__ import annotations

import pytest

from tf_report.model.comment import ReportMarker
from tf_report.model.report import DiffFragment, DiffLine, Summary
from tf_report.parser.marker import MARKER_TAG, find_report_marker, render_marker
from tf_report.utils.render import RenderOptions, render_report

MARKER = ReportMarker(report_id="default", run_id="42", sha="abc")


def test_render_marker_is_html_comment() -> None:
    text = render_marker(MARKER)
    assert text.startswith(f"<!-- {MARKER_TAG} ")
    assert text.endswith(" -->")
    assert "\n" not in text


def test_round_trip() -> None:
    body = f"### Report\n\nsome text\n{render_marker(MARKER)}\n"
    assert find_report_marker(body) == MARKER


def test_trailing_crlf_tolerated() -> None:
    body = f"### Report\r\n{render_marker(MARKER)}\r\n"
    assert find_report_marker(body) == MARKER


def test_dashes_cannot_close_comment() -> None:
    marker = ReportMarker(report_id="prod--eu-->x", run_id="1", sha="")
    text = render_marker(marker)
    assert text.count("-->") == 1
    assert find_report_marker(f"hello\n{text}") == marker


def test_no_comment_returns_none() -> None:
    assert find_report_marker("just a human comment") is None


def test_unrelated_html_comment_ignored() -> None:
    assert find_report_marker("<!-- some other bot -->") is None


def test_malformed_payload_ignored() -> None:
    assert find_report_marker(f"<!-- {MARKER_TAG} {{not json -->") is None


def test_payload_missing_fields_ignored() -> None:
    assert find_report_marker(f'<!-- {MARKER_TAG} {{"report_id": "x"}} -->') is None


def test_visible_title_alone_is_not_a_marker() -> None:
    body = "### :robot: Terraform Report\n---\nI copied this from the bot"
    assert find_report_marker(body) is None


def test_marker_quoted_mid_comment_ignored() -> None:
    body = f"The bot wrote:\n{render_marker(MARKER)}\nand I disagree."
    assert find_report_marker(body) is None


def test_only_trailing_marker_counts() -> None:
    first = ReportMarker(report_id="default", run_id="1")
    second = ReportMarker(report_id="default", run_id="2")
    body = f"{render_marker(first)}\ntext\n{render_marker(second)}"
    assert find_report_marker(body) == second


@pytest.mark.parametrize(
    "content",
    [
        'content = "<!-- begin template"',
        "user_data = <<EOF\n<script>alert(1)\nEOF",
        "<textarea>\nnot closed",
        "<html><title>x",
    ],
)
def test_marker_survives_html_in_report(content: str) -> None:
    fragment = DiffFragment(
        address="aws_s3_object.page",
        action="create",
        action_label="will be created",
        lines=(DiffLine("+", "content", '"<!-- x <script><textarea>"'),),
    )
    body = render_report(
        Summary(create=1),
        [fragment],
        content,
        footer="footer",
        marker=MARKER,
        options=RenderOptions(show_plan=True, show_diff=True),
    )
    assert find_report_marker(body) == MARKER
