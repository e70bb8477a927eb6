"""Typed model for Terraform plan data."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# Terraform's unknown/sensitive masks mirror the snapshot structure with
# booleans at the leaves, or are a single boolean for the whole value.
Mask = Any


@dataclass(frozen=True)
class PlannedChange:
    """One planned mutation of a single resource.

    Attributes:
        address: Unique resource address (e.g. ``module.net.aws_vpc.main``).
        actions: Raw Terraform action values, in plan order
            (``("delete", "create")`` for a replacement).
        before: Attribute snapshot before the change; ``None`` on create.
        after: Attribute snapshot after the change; ``None`` on delete.
        after_unknown: Mask of attributes only known after apply.
        before_sensitive: Mask of sensitive attributes in *before*.
        after_sensitive: Mask of sensitive attributes in *after*.
        resource_type: Resource type (e.g. ``aws_instance``).
        name: Resource name within its module.
        provider_name: Fully-qualified provider name.
        mode: ``"managed"`` or ``"data"``.
        action_reason: Terraform's reason for the chosen action, if given.
    """

    address: str
    actions: tuple[str, ...]
    before: dict[str, Any] | None = None
    after: dict[str, Any] | None = None
    after_unknown: Mask = None
    before_sensitive: Mask = None
    after_sensitive: Mask = None
    resource_type: str = ""
    name: str = ""
    provider_name: str = ""
    mode: str = "managed"
    action_reason: str | None = None


@dataclass(frozen=True)
class PlanDocument:
    """A parsed ``terraform show -json`` plan.

    Attributes:
        resource_changes: Planned changes in the order the plan lists them.
        format_version: Plan JSON format version.
        terraform_version: Version of Terraform that produced the plan.
    """

    resource_changes: tuple[PlannedChange, ...] = field(default_factory=tuple)
    format_version: str = ""
    terraform_version: str = ""

    def __len__(self) -> int:
        return len(self.resource_changes)
