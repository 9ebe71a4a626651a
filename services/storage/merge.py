"""
Recursive merge used both for load-time migration and for partial updates.
"""

from __future__ import annotations

import copy
from typing import Any, Mapping


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """
    Merge ``override`` onto ``base`` and return a new dictionary.

    Nested mappings present on both sides are merged key by key. Any other
    value from ``override`` (scalars, lists, ``None``) replaces the base
    value wholesale. Keys only known to ``override`` are carried over
    unchanged. Neither input is mutated and the result shares no mutable
    state with them.
    """
    merged: dict[str, Any] = {}
    for key, base_value in base.items():
        if key not in override:
            merged[key] = copy.deepcopy(base_value)
            continue
        value = override[key]
        if isinstance(base_value, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(base_value, value)
        else:
            merged[key] = copy.deepcopy(value)
    for key, value in override.items():
        if key not in base:
            merged[key] = copy.deepcopy(value)
    return merged


def missing_keys(reference: Mapping[str, Any], candidate: Mapping[str, Any], prefix: str = "") -> list[str]:
    """Return dotted paths present in ``reference`` but absent from ``candidate``."""
    missing: list[str] = []
    for key, value in reference.items():
        path = f"{prefix}.{key}" if prefix else key
        if key not in candidate:
            missing.append(path)
        elif isinstance(value, Mapping) and isinstance(candidate[key], Mapping):
            missing.extend(missing_keys(value, candidate[key], path))
    return missing
