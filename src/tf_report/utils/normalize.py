"""Normalization helpers for plan attribute snapshots.

Normalization produces a stable, canonical form suitable for line-level diff
comparisons: nested mappings and lists are flattened to dotted attribute
paths, masks are reduced to path sets, and values are rendered as JSON.
"""

from __future__ import annotations

import json
import re
from typing import Any

# Path representing "the whole value" in a mask.
ROOT: str = ""

# Keys that cannot appear bare in a dotted path.
_NEEDS_QUOTING: re.Pattern[str] = re.compile(r'[.\[\]"]')


def flatten_attributes(value: Any, prefix: str = ROOT) -> dict[str, Any]:
    """Flatten *value* into a mapping of dotted path to leaf value.

    Mappings contribute their keys and lists their indices as path segments
    (``tags.env``, ``ingress.0.port``).  A key that is empty or contains
    ``.``, ``[``, ``]`` or ``"`` is quoted instead (``tags["kubernetes.io/role"]``)
    so it cannot collide with a nested path.  Empty containers are kept as
    leaves so that ``tags = {}`` still produces a line.

    Args:
        value: Attribute snapshot (usually a ``dict``).
        prefix: Path of *value* within the enclosing snapshot.

    Returns:
        A ``dict`` of flattened path to scalar or empty-container value.
        ``None`` at the root yields an empty ``dict``.
    """
    if value is None and prefix == ROOT:
        return {}
    flat: dict[str, Any] = {}
    if isinstance(value, dict) and value:
        for key, item in value.items():
            flat.update(flatten_attributes(item, _join(prefix, str(key))))
    elif isinstance(value, list) and value:
        for index, item in enumerate(value):
            flat.update(flatten_attributes(item, _join(prefix, str(index))))
    elif prefix != ROOT:
        flat[prefix] = value
    return flat


def mask_paths(mask: Any, prefix: str = ROOT) -> set[str]:
    """Return the set of paths marked ``true`` in a Terraform value mask.

    A mask mirrors the snapshot structure with booleans at the leaves, or is
    a single boolean covering the whole value (reported as :data:`ROOT`).
    """
    if mask is True:
        return {prefix}
    paths: set[str] = set()
    if isinstance(mask, dict):
        for key, item in mask.items():
            paths |= mask_paths(item, _join(prefix, str(key)))
    elif isinstance(mask, list):
        for index, item in enumerate(mask):
            paths |= mask_paths(item, _join(prefix, str(index)))
    return paths


def is_masked(path: str, masks: set[str]) -> bool:
    """True if *path* equals, or lies beneath, any path in *masks*."""
    if ROOT in masks:
        return True
    return any(path == m or path.startswith((m + ".", m + "[")) for m in masks)


def format_value(value: Any) -> str:
    """Render a leaf value as compact, deterministic JSON."""
    return json.dumps(value, sort_keys=True, ensure_ascii=False)


def _join(prefix: str, key: str) -> str:
    if not key or _NEEDS_QUOTING.search(key):
        return f"{prefix}[{json.dumps(key, ensure_ascii=False)}]"
    return f"{prefix}.{key}" if prefix else key
