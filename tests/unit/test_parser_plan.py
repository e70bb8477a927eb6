"""Unit tests for tf_report.parser.plan."""

from __future__ import annotations

import json
import pathlib
from typing import Any

import pytest

from tf_report.client.errors import ConfigurationError, MalformedPlanError
from tf_report.model.plan import PlanDocument
from tf_report.parser.plan import load_plan_file, parse_plan, parse_plan_json

FIXTURES = pathlib.Path(__file__).parent.parent / "fixtures"

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _entry(address: str = "aws_vpc.main", **change: Any) -> dict[str, Any]:
    detail: dict[str, Any] = {"actions": ["create"], "before": None, "after": {"a": 1}}
    detail.update(change)
    return {"address": address, "type": "aws_vpc", "name": "main", "change": detail}


def _plan(*entries: dict[str, Any]) -> dict[str, Any]:
    return {"format_version": "1.2", "resource_changes": list(entries)}


# ---------------------------------------------------------------------------
# Fixture file
# ---------------------------------------------------------------------------


class TestFixturePlan:
    def test_load_plan_file(self) -> None:
        plan = load_plan_file(FIXTURES / "plan.json")
        assert isinstance(plan, PlanDocument)
        assert plan.terraform_version == "1.6.6"
        assert plan.format_version == "1.2"
        assert len(plan) == 5

    def test_order_preserved(self) -> None:
        plan = load_plan_file(FIXTURES / "plan.json")
        assert [c.address for c in plan.resource_changes] == [
            "aws_s3_bucket.logs",
            "aws_iam_user.deploy",
            "aws_instance.web",
            "aws_vpc.main",
            "data.aws_caller_identity.current",
        ]

    def test_metadata_extracted(self) -> None:
        plan = load_plan_file(FIXTURES / "plan.json")
        bucket = plan.resource_changes[0]
        assert bucket.actions == ("create",)
        assert bucket.before is None
        assert bucket.after is not None
        assert bucket.after["bucket"] == "acme-logs"
        assert bucket.after_unknown == {"arn": True, "id": True, "tags": {}}
        assert bucket.resource_type == "aws_s3_bucket"
        assert bucket.name == "logs"
        assert bucket.provider_name.endswith("hashicorp/aws")
        data = plan.resource_changes[4]
        assert data.mode == "data"

    def test_missing_file_is_configuration_error(self, tmp_path: pathlib.Path) -> None:
        with pytest.raises(ConfigurationError):
            load_plan_file(tmp_path / "nope.json")


# ---------------------------------------------------------------------------
# parse_plan_json
# ---------------------------------------------------------------------------


def test_invalid_json_raises_malformed() -> None:
    with pytest.raises(MalformedPlanError, match="not valid JSON"):
        parse_plan_json("{not json")


def test_parse_plan_json_round_trip() -> None:
    plan = parse_plan_json(json.dumps(_plan(_entry())))
    assert [c.address for c in plan.resource_changes] == ["aws_vpc.main"]


# ---------------------------------------------------------------------------
# Top-level structure
# ---------------------------------------------------------------------------


def test_non_object_document_raises() -> None:
    with pytest.raises(MalformedPlanError, match="JSON object"):
        parse_plan([])


def test_missing_resource_changes_is_empty_plan() -> None:
    plan = parse_plan({"format_version": "1.2"})
    assert plan.resource_changes == ()


def test_resource_changes_not_list_raises() -> None:
    with pytest.raises(MalformedPlanError, match="resource_changes"):
        parse_plan({"resource_changes": {"a": 1}})


def test_duplicate_address_raises() -> None:
    with pytest.raises(MalformedPlanError, match="duplicate address 'aws_vpc.main'"):
        parse_plan(_plan(_entry(), _entry()))


# ---------------------------------------------------------------------------
# Entry structure
# ---------------------------------------------------------------------------


class TestEntryValidation:
    def test_entry_not_object(self) -> None:
        with pytest.raises(MalformedPlanError, match=r"resource_changes\[0\]"):
            parse_plan({"resource_changes": ["aws_vpc.main"]})

    def test_missing_address(self) -> None:
        entry = _entry()
        del entry["address"]
        with pytest.raises(MalformedPlanError, match="address"):
            parse_plan(_plan(entry))

    def test_missing_change(self) -> None:
        entry = _entry()
        del entry["change"]
        with pytest.raises(MalformedPlanError, match="'change'"):
            parse_plan(_plan(entry))

    def test_missing_actions(self) -> None:
        entry = _entry()
        del entry["change"]["actions"]
        with pytest.raises(MalformedPlanError, match="actions"):
            parse_plan(_plan(entry))

    def test_empty_actions(self) -> None:
        with pytest.raises(MalformedPlanError, match="non-empty"):
            parse_plan(_plan(_entry(actions=[])))

    def test_non_string_action(self) -> None:
        with pytest.raises(MalformedPlanError, match="only strings"):
            parse_plan(_plan(_entry(actions=["create", 1])))

    def test_before_wrong_type(self) -> None:
        with pytest.raises(MalformedPlanError, match="change.before"):
            parse_plan(_plan(_entry(before=[1, 2])))

    def test_both_snapshots_absent(self) -> None:
        with pytest.raises(MalformedPlanError, match="both absent"):
            parse_plan(_plan(_entry(before=None, after=None)))

    def test_error_names_address(self) -> None:
        with pytest.raises(MalformedPlanError, match="aws_vpc.main"):
            parse_plan(_plan(_entry(actions="create")))


def test_unknown_action_is_not_rejected_by_parser() -> None:
    plan = parse_plan(_plan(_entry(actions=["archive"])))
    assert plan.resource_changes[0].actions == ("archive",)


def test_action_reason_kept() -> None:
    plan = parse_plan(
        _plan(
            _entry(
                actions=["delete", "create"],
                before={"sku": "Basic"},
                after={"sku": "Standard"},
                action_reason="replace_because_cannot_update",
            )
        )
    )
    assert plan.resource_changes[0].action_reason == "replace_because_cannot_update"


def test_parse_does_not_mutate_input() -> None:
    data = _plan(_entry())
    snapshot = json.dumps(data, sort_keys=True)
    parse_plan(data)
    assert json.dumps(data, sort_keys=True) == snapshot
