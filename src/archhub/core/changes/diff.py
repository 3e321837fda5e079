"""
Structural diff between two JSON-shaped documents.

Diff format:
    - Mapping: ``{key: change}`` for every key that differs, where ``change`` is
      ``{"__added": value}``, ``{"__deleted": value}`` or a nested diff.
    - Scalar (or type) change: ``{"__old": a, "__new": b}``.
    - List: position-aligned entries ``["+", v]``, ``["-", v]``, ``["~", subdiff]``
      or ``[" ", v]`` for an unchanged item.

Equal documents produce ``{}``.
"""

from typing import Any, Dict, List, Optional

ADDED = "__added"
DELETED = "__deleted"
OLD = "__old"
NEW = "__new"

_UNCHANGED = object()


def _replaced(old: Any, new: Any) -> Dict[str, Any]:
    return {OLD: old, NEW: new}


def _diff_value(old: Any, new: Any, depth: int, max_depth: Optional[int]) -> Any:
    """Diff two values; return ``_UNCHANGED`` when they are equal."""
    if old == new and type(old) is type(new):
        return _UNCHANGED
    if max_depth is not None and depth >= max_depth:
        return _replaced(old, new)
    if isinstance(old, dict) and isinstance(new, dict):
        return _diff_dicts(old, new, depth, max_depth)
    if isinstance(old, list) and isinstance(new, list):
        return _diff_lists(old, new, depth, max_depth)
    return _replaced(old, new)


def _diff_dicts(old: Dict[str, Any], new: Dict[str, Any], depth: int, max_depth: Optional[int]) -> Dict[str, Any]:
    changes: Dict[str, Any] = {}
    for key, value in old.items():
        if key not in new:
            changes[key] = {DELETED: value}
            continue
        change = _diff_value(value, new[key], depth + 1, max_depth)
        if change is not _UNCHANGED:
            changes[key] = change
    for key, value in new.items():
        if key not in old:
            changes[key] = {ADDED: value}
    return changes


def _diff_lists(old: List[Any], new: List[Any], depth: int, max_depth: Optional[int]) -> List[List[Any]]:
    entries: List[List[Any]] = []
    for position in range(max(len(old), len(new))):
        if position >= len(old):
            entries.append(["+", new[position]])
        elif position >= len(new):
            entries.append(["-", old[position]])
        else:
            change = _diff_value(old[position], new[position], depth + 1, max_depth)
            if change is _UNCHANGED:
                entries.append([" ", old[position]])
            else:
                entries.append(["~", change])
    return entries


def diff_documents(old: Any, new: Any, max_depth: Optional[int] = None) -> Any:
    """
    Compute a JSON-serializable structural diff from ``old`` to ``new``.

    Args:
        old: Base document.
        new: Comparison document.
        max_depth: Nesting depth past which changed values are reported as a
            whole ``{"__old", "__new"}`` replacement. ``None`` means unlimited.

    Returns:
        The diff tree (see module docstring); ``{}`` when the documents are equal.
    """
    change = _diff_value(old, new, 0, max_depth)
    return {} if change is _UNCHANGED else change


def _is_replacement(node: Dict[str, Any]) -> bool:
    return set(node) == {OLD, NEW}


def _count(node: Any, counts: Dict[str, int]) -> None:
    if isinstance(node, dict):
        if _is_replacement(node):
            counts["modified_count"] += 1
            return
        for change in node.values():
            if isinstance(change, dict) and set(change) == {ADDED}:
                counts["added_count"] += 1
            elif isinstance(change, dict) and set(change) == {DELETED}:
                counts["removed_count"] += 1
            else:
                _count(change, counts)
    elif isinstance(node, list):
        for entry in node:
            if not isinstance(entry, list) or len(entry) != 2:
                continue
            marker, value = entry
            if marker == "+":
                counts["added_count"] += 1
            elif marker == "-":
                counts["removed_count"] += 1
            elif marker == "~":
                _count(value, counts)


def diff_stats(diff: Any) -> Dict[str, int]:
    """
    Count the leaf changes in a diff produced by ``diff_documents``.

    Returns:
        ``{"added_count", "removed_count", "modified_count", "total_changes"}``
    """
    counts = {"added_count": 0, "removed_count": 0, "modified_count": 0}
    _count(diff, counts)
    counts["total_changes"] = counts["added_count"] + counts["removed_count"] + counts["modified_count"]
    return counts
