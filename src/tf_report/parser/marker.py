"""Embedding and recovery of the invisible report marker.

Each report ends with an HTML comment of the form::

    <!-- tf-report {"report_id": "default", "run_id": "42", "sha": "abc"} -->

GitHub does not display HTML comments, so the marker is invisible to readers
but lets later runs recognise their own reports without matching on visible
text.

The body above the marker carries raw plan output and attribute values, which
may hold arbitrary HTML (``<script>``, an unterminated ``<!--``).  The marker
is therefore only looked for on the last line of a body, never by parsing the
body as HTML.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import asdict

from tf_report.model.comment import ReportMarker

logger = logging.getLogger(__name__)

MARKER_TAG: str = "tf-report"

# The payload never contains a newline, "-" or ">" (see render_marker).
_TRAILING_MARKER_RE: re.Pattern[str] = re.compile(
    r"<!-- " + re.escape(MARKER_TAG) + r" (\{[^\n]*\}) -->\s*\Z"
)


def render_marker(marker: ReportMarker) -> str:
    """Return the HTML comment carrying *marker*.

    ``-`` and ``>`` are escaped inside the JSON payload so that no field value
    can terminate the HTML comment early.
    """
    payload = json.dumps(asdict(marker), sort_keys=True)
    payload = payload.replace("-", "\\u002d").replace(">", "\\u003e")
    return f"<!-- {MARKER_TAG} {payload} -->"


def find_report_marker(body: str) -> ReportMarker | None:
    """Return the report marker of *body*, or ``None`` if it has none.

    Only a marker on the final non-blank line counts; markers quoted
    elsewhere in a comment are ignored.
    """
    match = _TRAILING_MARKER_RE.search(body)
    if match is None:
        return None
    return _decode(match.group(1))


def _decode(payload: str) -> ReportMarker | None:
    try:
        data = json.loads(payload)
    except ValueError:
        logger.debug("Ignoring malformed report marker: %r", payload[:200])
        return None
    if not isinstance(data, dict):
        return None
    report_id = data.get("report_id")
    run_id = data.get("run_id")
    if not isinstance(report_id, str) or not isinstance(run_id, str):
        return None
    return ReportMarker(report_id=report_id, run_id=run_id, sha=str(data.get("sha", "")))
