"""Plan summarizer for tf-report.

Turns a :class:`~tf_report.model.plan.PlanDocument` into a
:class:`~tf_report.model.report.Summary` of change counts and an ordered
sequence of :class:`~tf_report.model.report.DiffFragment`, one per resource
that actually changes.

Classification precedence (first match wins):

1. ``replace``: ``delete`` and ``create`` together (either order) or the
   literal ``replace`` action
2. ``delete``
3. ``create``
4. ``update``
5. no-op: ``no-op`` / ``read``; counted nowhere, no fragment

Fragments follow plan order; lines inside a fragment follow lexicographic
order of the flattened attribute path.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from tf_report.client.errors import MalformedPlanError, UnsupportedActionError
from tf_report.model.plan import PlanDocument, PlannedChange
from tf_report.model.report import DiffFragment, DiffLine, Summary
from tf_report.utils.normalize import (
    flatten_attributes,
    format_value,
    is_masked,
    mask_paths,
)
from tf_report.vendor.terraform.mappings import (
    ACTION_CREATE,
    ACTION_DELETE,
    ACTION_LABELS,
    ACTION_REPLACE,
    ACTION_UPDATE,
    KNOWN_ACTIONS,
    PASSIVE_ACTIONS,
    SENSITIVE_VALUE,
    UNKNOWN_VALUE,
)

_MISSING = object()

# Flattened path -> (raw value, rendered value).
_Side = dict[str, tuple[Any, str]]


def classify(change: PlannedChange) -> str | None:
    """Return the summary bucket for *change*, or ``None`` for a no-op.

    Raises:
        UnsupportedActionError: If any action value is not recognised.
    """
    for action in change.actions:
        if action not in KNOWN_ACTIONS:
            raise UnsupportedActionError(address=change.address, action=action)

    actions = set(change.actions)
    if actions <= PASSIVE_ACTIONS:
        return None
    if ACTION_REPLACE in actions or {ACTION_DELETE, ACTION_CREATE} <= actions:
        return ACTION_REPLACE
    if ACTION_DELETE in actions:
        return ACTION_DELETE
    if ACTION_CREATE in actions:
        return ACTION_CREATE
    return ACTION_UPDATE


def summarize(plan: PlanDocument) -> tuple[Summary, list[DiffFragment]]:
    """Count changes per bucket and build every diff fragment.

    Args:
        plan: Parsed plan; never mutated.

    Returns:
        ``(summary, fragments)`` where ``fragments`` holds one entry per
        non-no-op change, in plan order.

    Raises:
        UnsupportedActionError: On an unrecognised action value.
        MalformedPlanError: If a change lacks the snapshot its action needs.
    """
    summary = Summary()
    fragments: list[DiffFragment] = []
    for fragment in iter_fragments(plan):
        setattr(summary, fragment.action, getattr(summary, fragment.action) + 1)
        fragments.append(fragment)
    return summary, fragments


def summarize_counts(plan: PlanDocument) -> Summary:
    """Compute only the :class:`Summary` for *plan*."""
    summary = Summary()
    for change in plan.resource_changes:
        bucket = classify(change)
        if bucket is not None:
            setattr(summary, bucket, getattr(summary, bucket) + 1)
    return summary


def iter_fragments(plan: PlanDocument) -> Iterator[DiffFragment]:
    """Lazily yield a :class:`DiffFragment` per non-no-op change, in plan order."""
    for change in plan.resource_changes:
        bucket = classify(change)
        if bucket is None:
            continue
        yield build_fragment(change, bucket)


def build_fragment(change: PlannedChange, bucket: str) -> DiffFragment:
    """Build the fragment for *change* classified as *bucket*."""
    _check_snapshots(change, bucket)

    if bucket == ACTION_CREATE:
        after = _after_side(change)
        lines = [DiffLine("+", key, after[key][1]) for key in sorted(after)]
    elif bucket == ACTION_DELETE:
        before = _before_side(change)
        lines = [DiffLine("-", key, before[key][1]) for key in sorted(before)]
    else:
        lines = _compare(_before_side(change), _after_side(change))

    return DiffFragment(
        address=change.address,
        action=bucket,
        action_label=ACTION_LABELS[bucket],
        lines=tuple(lines),
    )


# ---------------------------------------------------------------------------
# Internals
# ---------------------------------------------------------------------------


def _check_snapshots(change: PlannedChange, bucket: str) -> None:
    need_before = bucket in (ACTION_DELETE, ACTION_UPDATE, ACTION_REPLACE)
    need_after = bucket in (ACTION_CREATE, ACTION_UPDATE, ACTION_REPLACE)
    if need_before and change.before is None:
        raise MalformedPlanError(
            f"{change.address}: action {bucket!r} requires a 'before' snapshot"
        )
    if need_after and change.after is None:
        raise MalformedPlanError(
            f"{change.address}: action {bucket!r} requires an 'after' snapshot"
        )


def _before_side(change: PlannedChange) -> _Side:
    sensitive = mask_paths(change.before_sensitive)
    side: _Side = {}
    for key, value in flatten_attributes(change.before).items():
        shown = SENSITIVE_VALUE if is_masked(key, sensitive) else format_value(value)
        side[key] = (value, shown)
    return side


def _after_side(change: PlannedChange) -> _Side:
    sensitive = mask_paths(change.after_sensitive)
    unknown = mask_paths(change.after_unknown)
    flat = flatten_attributes(change.after)

    # Unknown attributes are usually absent from "after" altogether.
    for path in unknown:
        if path and not any(is_masked(k, {path}) for k in flat):
            flat[path] = _MISSING

    side: _Side = {}
    for key, value in flat.items():
        if is_masked(key, unknown):
            side[key] = (_MISSING, UNKNOWN_VALUE)
        elif is_masked(key, sensitive):
            side[key] = (value, SENSITIVE_VALUE)
        else:
            side[key] = (value, format_value(value))
    return side


def _compare(before: _Side, after: _Side) -> list[DiffLine]:
    lines: list[DiffLine] = []
    for key in sorted(before.keys() | after.keys()):
        old = before.get(key)
        new = after.get(key)
        if old is not None and new is not None and _same(old[0], new[0]):
            lines.append(DiffLine(" ", key, new[1]))
            continue
        if old is not None:
            lines.append(DiffLine("-", key, old[1]))
        if new is not None:
            lines.append(DiffLine("+", key, new[1]))
    return lines


def _same(old: Any, new: Any) -> bool:
    if old is _MISSING or new is _MISSING:
        return False
    # 1 == True in Python; a bool flipping to an int is still a change.
    return type(old) is type(new) and old == new
