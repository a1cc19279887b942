from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import fields, is_dataclass
from typing import Any


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def deep_equal(left: Any, right: Any) -> bool:
    """Structural comparison over mappings and sequences.

    Mapping keys holding ``None`` count as absent, so ``{"a": None}`` equals
    ``{}``. Booleans never compare equal to integers.
    """
    if left is right:
        return True
    if left is None or right is None:
        return False

    if isinstance(left, Mapping) and isinstance(right, Mapping):
        left_keys = {key for key, value in left.items() if value is not None}
        right_keys = {key for key, value in right.items() if value is not None}
        if left_keys != right_keys:
            return False
        return all(deep_equal(left[key], right[key]) for key in left_keys)
    if isinstance(left, Mapping) or isinstance(right, Mapping):
        return False

    if _is_sequence(left) and _is_sequence(right):
        if len(left) != len(right):
            return False
        return all(deep_equal(a, b) for a, b in zip(left, right))
    if _is_sequence(left) or _is_sequence(right):
        return False

    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return left == right


def has_active_filters(current: Mapping[str, Any] | None, baseline: Mapping[str, Any] | None) -> bool:
    return not deep_equal(dict(current or {}), dict(baseline or {}))


def diff_fields(old: Any, new: Any) -> dict[str, tuple[Any, Any]]:
    """Return ``{field: (old, new)}`` for every dataclass field that changed."""
    if not (is_dataclass(old) and is_dataclass(new)):
        raise TypeError("diff_fields expects two dataclass instances")
    changed: dict[str, tuple[Any, Any]] = {}
    for item in fields(old):
        before = getattr(old, item.name)
        after = getattr(new, item.name)
        if not deep_equal(before, after):
            changed[item.name] = (before, after)
    return changed
