"""
Structural invariant checks run after every change-request application.

These checks never fix anything; they only report. Findings use the same
``ChangeConflict`` type as the applier so callers see a single list.
"""

import copy
import logging
from typing import Any, Dict, Iterator, List, Mapping, Optional

from archhub.core.changes.models import ChangeConflict, ConflictType

logger = logging.getLogger(__name__)

# DFS colours
_WHITE, _GRAY, _BLACK = 0, 1, 2


def _dict_items(spec: Mapping[str, Any], key: str) -> List[Dict[str, Any]]:
    items = spec.get(key)
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]


def _check_entities(entities: List[Dict[str, Any]]) -> List[ChangeConflict]:
    conflicts: List[ChangeConflict] = []
    seen_names = set()
    for entity in entities:
        name = entity.get("name")
        key = (type(name).__name__, repr(name))
        if key in seen_names:
            conflicts.append(
                ChangeConflict(
                    type=ConflictType.NAMING,
                    message=f"Duplicate entity name detected: {name}",
                    details={"entityName": name},
                )
            )
        else:
            seen_names.add(key)

        fields = entity.get("fields")
        for field in fields if isinstance(fields, list) else []:
            if not isinstance(field, dict) or not field.get("name") or not field.get("type"):
                conflicts.append(
                    ChangeConflict(
                        type=ConflictType.MISSING_FIELD,
                        message=f"Entity {name} has an invalid field definition",
                        details={"entityName": name, "field": copy.deepcopy(field)},
                    )
                )
    return conflicts


def _check_endpoints(endpoints: List[Dict[str, Any]]) -> List[ChangeConflict]:
    conflicts: List[ChangeConflict] = []
    seen = set()
    for endpoint in endpoints:
        method = endpoint.get("method")
        path = endpoint.get("path")
        signature = f"{method}:{path}"
        if signature in seen:
            conflicts.append(
                ChangeConflict(
                    type=ConflictType.NAMING,
                    message=f"Duplicate endpoint detected: {method} {path}",
                    details={"method": method, "path": path},
                )
            )
        else:
            seen.add(signature)
    return conflicts


class _RelationGraph:
    """
    Entity relation graph over list positions.

    A relation target resolves to the first entity (by list order) whose id
    or name equals the target. Unresolvable targets have no edge.
    """

    def __init__(self, entities: List[Dict[str, Any]]):
        self.entities = entities
        self._by_id: Dict[Any, int] = {}
        self._by_name: Dict[Any, int] = {}
        for position, entity in enumerate(entities):
            for index, key in ((self._by_id, "id"), (self._by_name, "name")):
                value = entity.get(key)
                if _hashable(value):
                    index.setdefault(value, position)

    def resolve(self, target: Any) -> Optional[int]:
        if not _hashable(target):
            return None
        candidates = [
            position
            for position in (self._by_name.get(target), self._by_id.get(target))
            if position is not None
        ]
        return min(candidates) if candidates else None

    def successors(self, position: int) -> Iterator[int]:
        relations = self.entities[position].get("relations")
        for relation in relations if isinstance(relations, list) else []:
            if not isinstance(relation, dict):
                continue
            target = self.resolve(relation.get("target"))
            if target is not None:
                yield target


def _hashable(value: Any) -> bool:
    try:
        hash(value)
    except TypeError:
        return False
    return value is not None


def _check_cycles(entities: List[Dict[str, Any]]) -> List[ChangeConflict]:
    """
    White/gray/black DFS from every unvisited entity in list order.

    The first back edge found from a root reports the re-entered entity and
    abandons that root's traversal; nodes on the abandoned path are marked
    finished so they are not re-reported from later roots.
    """
    graph = _RelationGraph(entities)
    colour = [_WHITE] * len(entities)
    conflicts: List[ChangeConflict] = []

    for root in range(len(entities)):
        if colour[root] != _WHITE:
            continue
        colour[root] = _GRAY
        path = [root]
        pending = [graph.successors(root)]

        while pending:
            target = next(pending[-1], None)
            if target is None:
                colour[path.pop()] = _BLACK
                pending.pop()
                continue
            if colour[target] == _GRAY:
                entity = entities[target]
                conflicts.append(
                    ChangeConflict(
                        type=ConflictType.CIRCULAR_RELATION,
                        message=f"Circular relation detected involving {entity.get('name')}",
                        details={"entityId": entity.get("id"), "entityName": entity.get("name")},
                    )
                )
                for position in path:
                    colour[position] = _BLACK
                break
            if colour[target] == _WHITE:
                colour[target] = _GRAY
                path.append(target)
                pending.append(graph.successors(target))

    return conflicts


def validate_spec_structure(spec: Any) -> List[ChangeConflict]:
    """
    Check a spec's structural invariants.

    Reports, in order: duplicate entity names (second and later occurrences),
    fields with a blank name or type, duplicate ``method:path`` endpoints, and
    circular entity relations. Missing or non-list collections are treated as
    empty. The spec is not modified.

    Args:
        spec: JSON-shaped spec mapping.

    Returns:
        List of conflicts; empty when the spec is structurally sound.
    """
    if not isinstance(spec, Mapping):
        return []

    entities = _dict_items(spec, "entities")
    endpoints = _dict_items(spec, "endpoints")

    conflicts = _check_entities(entities)
    conflicts.extend(_check_endpoints(endpoints))
    conflicts.extend(_check_cycles(entities))

    if conflicts:
        logger.debug("Spec structure check found %d conflict(s)", len(conflicts))
    return conflicts
