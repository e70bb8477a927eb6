"""Typed model for plan summaries and per-resource diff fragments."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

LineKind = Literal[" ", "-", "+"]


@dataclass
class Summary:
    """Count of planned changes per bucket.

    Every change that is not a no-op lands in exactly one bucket; a
    replacement is counted under :attr:`replace` only.

    Attributes:
        create: Resources to create.
        update: Resources to update in-place.
        delete: Resources to destroy.
        replace: Resources to destroy and re-create.
    """

    create: int = 0
    update: int = 0
    delete: int = 0
    replace: int = 0

    @property
    def total(self) -> int:
        """Number of changes counted across all buckets."""
        return self.create + self.update + self.delete + self.replace

    @property
    def to_add(self) -> int:
        """Resources Terraform reports as "to add" (creates and replacements)."""
        return self.create + self.replace

    @property
    def to_change(self) -> int:
        return self.update

    @property
    def to_destroy(self) -> int:
        """Resources Terraform reports as "to destroy" (deletes and replacements)."""
        return self.delete + self.replace

    def as_dict(self) -> dict[str, int]:
        return {
            "create": self.create,
            "update": self.update,
            "delete": self.delete,
            "replace": self.replace,
        }


@dataclass(frozen=True)
class DiffLine:
    """A single attribute line in a diff fragment.

    Attributes:
        kind: ``" "`` unchanged, ``"-"`` removed, ``"+"`` added.
        key: Flattened attribute path (e.g. ``tags.env``).
        value: Rendered attribute value.
    """

    kind: LineKind
    key: str
    value: str

    def render(self) -> str:
        return f"{self.kind} {self.key} = {self.value}"


@dataclass(frozen=True)
class DiffFragment:
    """Unified-diff-like rendering of one resource change.

    Attributes:
        address: Resource address.
        action: Summary bucket (``create``, ``update``, ``delete``, ``replace``).
        action_label: Human phrase, e.g. ``"will be created"``.
        lines: Attribute lines in lexicographic key order.
    """

    address: str
    action: str
    action_label: str
    lines: tuple[DiffLine, ...] = field(default_factory=tuple)

    @property
    def header(self) -> str:
        return f"# {self.address} {self.action_label}"

    @property
    def body(self) -> str:
        """Text block with a header, ``---``/``+++`` file lines and attribute lines."""
        out = [
            self.header,
            f"--- {self.address}" if self.action != "create" else "--- /dev/null",
            f"+++ {self.address}" if self.action != "delete" else "+++ /dev/null",
        ]
        out.extend(line.render() for line in self.lines)
        return "\n".join(out)

    @property
    def additions(self) -> int:
        return sum(1 for line in self.lines if line.kind == "+")

    @property
    def removals(self) -> int:
        return sum(1 for line in self.lines if line.kind == "-")
