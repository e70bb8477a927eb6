"""Parser for ``terraform show -json`` plan documents."""

from __future__ import annotations

import json
import logging
import pathlib
from typing import Any

from tf_report.client.errors import ConfigurationError, MalformedPlanError
from tf_report.model.plan import PlanDocument, PlannedChange

logger = logging.getLogger(__name__)


def load_plan_file(path: str | pathlib.Path) -> PlanDocument:
    """Read and parse the plan JSON file at *path*.

    Raises:
        ConfigurationError: If the file cannot be read.
        MalformedPlanError: If the content is not a valid plan document.
    """
    path = pathlib.Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read plan file {str(path)!r}: {exc}") from exc
    return parse_plan_json(text)


def parse_plan_json(text: str) -> PlanDocument:
    """Decode *text* as JSON and parse it with :func:`parse_plan`."""
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, ValueError) as exc:
        raise MalformedPlanError(f"Plan is not valid JSON: {exc}") from exc
    return parse_plan(data)


def parse_plan(data: Any) -> PlanDocument:
    """Validate a decoded plan document and return a :class:`PlanDocument`.

    Only ``resource_changes`` and, for each entry, ``address`` and
    ``change.actions`` / ``change.before`` / ``change.after`` are required.
    A plan without ``resource_changes`` has nothing to change and yields an
    empty document.

    Args:
        data: Decoded JSON value.

    Returns:
        A :class:`PlanDocument` preserving the source ordering.

    Raises:
        MalformedPlanError: On the first structural violation found.
    """
    if not isinstance(data, dict):
        raise MalformedPlanError(
            f"Plan document must be a JSON object, got {type(data).__name__}"
        )

    raw_changes = data.get("resource_changes")
    if raw_changes is None:
        raw_changes = []
    if not isinstance(raw_changes, list):
        raise MalformedPlanError("'resource_changes' must be a list")

    changes: list[PlannedChange] = []
    seen: set[str] = set()
    for index, entry in enumerate(raw_changes):
        change = _parse_change(entry, index)
        if change.address in seen:
            raise MalformedPlanError(
                f"resource_changes[{index}]: duplicate address {change.address!r}"
            )
        seen.add(change.address)
        changes.append(change)

    logger.debug("Parsed plan with %d resource change(s)", len(changes))
    return PlanDocument(
        resource_changes=tuple(changes),
        format_version=str(data.get("format_version", "")),
        terraform_version=str(data.get("terraform_version", "")),
    )


def _parse_change(entry: Any, index: int) -> PlannedChange:
    where = f"resource_changes[{index}]"
    if not isinstance(entry, dict):
        raise MalformedPlanError(f"{where}: entry must be an object")

    address = entry.get("address")
    if not isinstance(address, str) or not address:
        raise MalformedPlanError(f"{where}: missing or non-string 'address'")
    where = f"{where} ({address})"

    detail = entry.get("change")
    if not isinstance(detail, dict):
        raise MalformedPlanError(f"{where}: missing 'change' object")

    actions = detail.get("actions")
    if not isinstance(actions, list) or not actions:
        raise MalformedPlanError(f"{where}: 'change.actions' must be a non-empty list")
    if not all(isinstance(a, str) for a in actions):
        raise MalformedPlanError(f"{where}: 'change.actions' must contain only strings")

    before = _snapshot(detail, "before", where)
    after = _snapshot(detail, "after", where)
    if before is None and after is None:
        raise MalformedPlanError(f"{where}: 'change.before' and 'change.after' are both absent")

    reason = detail.get("action_reason", entry.get("action_reason"))
    return PlannedChange(
        address=address,
        actions=tuple(actions),
        before=before,
        after=after,
        after_unknown=detail.get("after_unknown"),
        before_sensitive=detail.get("before_sensitive"),
        after_sensitive=detail.get("after_sensitive"),
        resource_type=str(entry.get("type", "")),
        name=str(entry.get("name", "")),
        provider_name=str(entry.get("provider_name", "")),
        mode=str(entry.get("mode", "managed")),
        action_reason=str(reason) if reason is not None else None,
    )


def _snapshot(detail: dict[str, Any], key: str, where: str) -> dict[str, Any] | None:
    value = detail.get(key)
    if value is not None and not isinstance(value, dict):
        raise MalformedPlanError(
            f"{where}: 'change.{key}' must be an object or null, got {type(value).__name__}"
        )
    return value
