"""
Change-request application.

``apply_change_request`` clones the current spec, walks the request's operations
in order against the working copy, and records a conflict for every operation
it refuses and an impact for every operation it applies. The structural
validator then runs over the working copy and its findings are appended to the
conflicts. The input spec is never mutated and no I/O is performed.

Conflicting operations are skipped without touching the working copy; later
operations still run, so one call reports every obstruction it can find.
"""

import copy
import logging
import re
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from archhub.core.changes.models import (
    ApplyResult,
    ChangeConflict,
    ChangeImpact,
    ConflictType,
)
from archhub.core.changes.operations import (
    OPERATION_TYPES,
    AddEndpoint,
    AddEntity,
    AddRequirement,
    ChangeRequest,
    RemoveEndpoint,
    RemoveEntity,
    RemoveRequirement,
    UpdateEndpoint,
    UpdateEntity,
    UpdateFolderStructure,
    UpdateRequirement,
    operation_type_of,
    parse_operation,
)
from archhub.core.spec._constants import (
    ENTITY_SOURCE_TEMPLATE,
    OPENAPI_DOC,
    PRISMA_SCHEMA,
    REQUIREMENTS_DOC,
    ROUTE_SOURCE_TEMPLATE,
    SCAFFOLDING,
    SPEC_COLLECTIONS,
)
from archhub.core.spec.models import Spec
from archhub.core.changes.validator import validate_spec_structure

logger = logging.getLogger(__name__)

_Handler = Callable[[Dict[str, Any], Any, List[ChangeConflict], List[ChangeImpact]], None]


def sanitize_route_path(path: str) -> str:
    """
    Turn an endpoint path into a route module name.

    Slashes and any character outside ``[A-Za-z0-9_]`` become underscores,
    leading and trailing underscores are stripped, and an empty result
    becomes ``root``.

    Examples:
        >>> sanitize_route_path("/users/:id")
        'users__id'
        >>> sanitize_route_path("/")
        'root'
    """
    name = re.sub(r"[^a-zA-Z0-9_]", "_", path.replace("/", "_"))
    return name.strip("_") or "root"


def endpoint_label(endpoint: Mapping[str, Any]) -> str:
    """``METHOD path`` label used in impact records."""
    return f"{endpoint.get('method')} {endpoint.get('path')}"


def _items(spec: Dict[str, Any], key: str) -> List[Any]:
    return spec.get(key) or []


def _find(spec: Dict[str, Any], key: str, item_id: str) -> Optional[Dict[str, Any]]:
    for item in _items(spec, key):
        if item.get("id") == item_id:
            return item
    return None


def _remove(spec: Dict[str, Any], key: str, item_id: str) -> int:
    """Drop every item with ``item_id`` from a collection; return how many went."""
    items = _items(spec, key)
    kept = [item for item in items if item.get("id") != item_id]
    removed = len(items) - len(kept)
    if removed:
        spec[key] = kept
    return removed


# ---------------------------------------------------------------------------
# Requirements
# ---------------------------------------------------------------------------


def _add_requirement(spec, op: AddRequirement, conflicts, impacts) -> None:
    requirement_id = op.requirement.get("id")
    if any(req.get("id") == requirement_id for req in _items(spec, "requirements")):
        conflicts.append(
            ChangeConflict(
                type=ConflictType.NAMING,
                message=f"Requirement with id {requirement_id} already exists",
                details={"requirementId": requirement_id},
            )
        )
        return
    spec.setdefault("requirements", []).append(copy.deepcopy(op.requirement))
    impacts.append(ChangeImpact(description="Requirement added", affected_files=[REQUIREMENTS_DOC]))


def _update_requirement(spec, op: UpdateRequirement, conflicts, impacts) -> None:
    requirement = _find(spec, "requirements", op.requirement_id)
    if requirement is None:
        conflicts.append(
            ChangeConflict(
                type=ConflictType.MISSING_FIELD,
                message=f"Requirement {op.requirement_id} not found",
                details={"requirementId": op.requirement_id},
            )
        )
        return
    requirement.update(copy.deepcopy(op.patch))
    impacts.append(ChangeImpact(description="Requirement updated", affected_files=[REQUIREMENTS_DOC]))


def _remove_requirement(spec, op: RemoveRequirement, conflicts, impacts) -> None:
    if not _remove(spec, "requirements", op.requirement_id):
        conflicts.append(
            ChangeConflict(
                type=ConflictType.MISSING_FIELD,
                message=f"Requirement {op.requirement_id} not found for removal",
                details={"requirementId": op.requirement_id},
            )
        )
        return
    impacts.append(ChangeImpact(description="Requirement removed", affected_files=[REQUIREMENTS_DOC]))


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------


def _entity_files(name: Any) -> List[str]:
    return [PRISMA_SCHEMA, ENTITY_SOURCE_TEMPLATE.format(name=name)]


def _add_entity(spec, op: AddEntity, conflicts, impacts) -> None:
    name = op.entity.get("name")
    if any(entity.get("name") == name for entity in _items(spec, "entities")):
        conflicts.append(
            ChangeConflict(
                type=ConflictType.NAMING,
                message=f"Entity with name {name} already exists",
                details={"entityName": name},
            )
        )
        return
    spec.setdefault("entities", []).append(copy.deepcopy(op.entity))
    impacts.append(
        ChangeImpact(
            description=f"Entity {name} added",
            affected_entities=[name],
            affected_files=_entity_files(name),
        )
    )


def _update_entity(spec, op: UpdateEntity, conflicts, impacts) -> None:
    entity = _find(spec, "entities", op.entity_id)
    if entity is None:
        conflicts.append(
            ChangeConflict(
                type=ConflictType.MISSING_FIELD,
                message=f"Entity {op.entity_id} not found",
                details={"entityId": op.entity_id},
            )
        )
        return

    new_name = op.patch.get("name")
    if new_name:
        duplicate = any(
            other.get("id") != op.entity_id and other.get("name") == new_name
            for other in _items(spec, "entities")
        )
        if duplicate:
            # the whole operation is dropped, no partial merge
            conflicts.append(
                ChangeConflict(
                    type=ConflictType.NAMING,
                    message=f"Entity name {new_name} already in use",
                    details={"entityId": op.entity_id, "newName": new_name},
                )
            )
            return

    entity.update(copy.deepcopy(op.patch))
    name = entity.get("name")
    impacts.append(
        ChangeImpact(
            description=f"Entity {name} updated",
            affected_entities=[name],
            affected_files=_entity_files(name),
        )
    )


def _remove_entity(spec, op: RemoveEntity, conflicts, impacts) -> None:
    entity = _find(spec, "entities", op.entity_id)
    if entity is None:
        conflicts.append(
            ChangeConflict(
                type=ConflictType.MISSING_FIELD,
                message=f"Entity {op.entity_id} not found for removal",
                details={"entityId": op.entity_id},
            )
        )
        return
    _remove(spec, "entities", op.entity_id)
    name = entity.get("name")
    impacts.append(
        ChangeImpact(
            description=f"Entity {name} removed",
            affected_entities=[name],
            affected_files=[PRISMA_SCHEMA],
        )
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


def _endpoint_files(endpoint: Mapping[str, Any]) -> List[str]:
    return [OPENAPI_DOC, ROUTE_SOURCE_TEMPLATE.format(name=sanitize_route_path(str(endpoint.get("path") or "")))]


def _add_endpoint(spec, op: AddEndpoint, conflicts, impacts) -> None:
    method = op.endpoint.get("method")
    path = op.endpoint.get("path")
    if any(ep.get("method") == method and ep.get("path") == path for ep in _items(spec, "endpoints")):
        conflicts.append(
            ChangeConflict(
                type=ConflictType.NAMING,
                message=f"Endpoint {method} {path} already exists",
                details={"method": method, "path": path},
            )
        )
        return
    spec.setdefault("endpoints", []).append(copy.deepcopy(op.endpoint))
    label = endpoint_label(op.endpoint)
    impacts.append(
        ChangeImpact(
            description=f"Endpoint {label} added",
            affected_endpoints=[label],
            affected_files=_endpoint_files(op.endpoint),
        )
    )


def _update_endpoint(spec, op: UpdateEndpoint, conflicts, impacts) -> None:
    endpoint = _find(spec, "endpoints", op.endpoint_id)
    if endpoint is None:
        conflicts.append(
            ChangeConflict(
                type=ConflictType.MISSING_FIELD,
                message=f"Endpoint {op.endpoint_id} not found",
                details={"endpointId": op.endpoint_id},
            )
        )
        return

    if op.patch.get("path") or op.patch.get("method"):
        new_path = op.patch["path"] if op.patch.get("path") is not None else endpoint.get("path")
        new_method = op.patch["method"] if op.patch.get("method") is not None else endpoint.get("method")
        duplicate = any(
            other.get("id") != op.endpoint_id
            and other.get("path") == new_path
            and other.get("method") == new_method
            for other in _items(spec, "endpoints")
        )
        if duplicate:
            conflicts.append(
                ChangeConflict(
                    type=ConflictType.NAMING,
                    message=f"Endpoint {new_method} {new_path} already exists",
                    details={"endpointId": op.endpoint_id, "path": new_path, "method": new_method},
                )
            )
            return

    endpoint.update(copy.deepcopy(op.patch))
    label = endpoint_label(endpoint)
    impacts.append(
        ChangeImpact(
            description=f"Endpoint {label} updated",
            affected_endpoints=[label],
            affected_files=_endpoint_files(endpoint),
        )
    )


def _remove_endpoint(spec, op: RemoveEndpoint, conflicts, impacts) -> None:
    endpoint = _find(spec, "endpoints", op.endpoint_id)
    if endpoint is None:
        conflicts.append(
            ChangeConflict(
                type=ConflictType.MISSING_FIELD,
                message=f"Endpoint {op.endpoint_id} not found for removal",
                details={"endpointId": op.endpoint_id},
            )
        )
        return
    _remove(spec, "endpoints", op.endpoint_id)
    label = endpoint_label(endpoint)
    impacts.append(
        ChangeImpact(
            description=f"Endpoint {label} removed",
            affected_endpoints=[label],
            affected_files=[OPENAPI_DOC],
        )
    )


# ---------------------------------------------------------------------------
# Folder structure
# ---------------------------------------------------------------------------


def _update_folder_structure(spec, op: UpdateFolderStructure, conflicts, impacts) -> None:
    spec["folder_structure"] = copy.deepcopy(op.folder_structure)
    impacts.append(ChangeImpact(description="Folder structure updated", affected_files=[SCAFFOLDING]))


_HANDLERS: Dict[type, _Handler] = {
    AddRequirement: _add_requirement,
    UpdateRequirement: _update_requirement,
    RemoveRequirement: _remove_requirement,
    AddEntity: _add_entity,
    UpdateEntity: _update_entity,
    RemoveEntity: _remove_entity,
    AddEndpoint: _add_endpoint,
    UpdateEndpoint: _update_endpoint,
    RemoveEndpoint: _remove_endpoint,
    UpdateFolderStructure: _update_folder_structure,
}


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def _input_conflict(message: str, **details: Any) -> ChangeConflict:
    return ChangeConflict(type=ConflictType.VALIDATION, message=message, details=details)


def _clone_spec(current_spec: Any) -> Tuple[Dict[str, Any], Optional[ChangeConflict]]:
    """Deep-copy the current spec and check it can be walked structurally.

    On an input error the returned spec is empty or a partial copy.
    """
    if isinstance(current_spec, Spec):
        return current_spec.model_dump(mode="json", by_alias=True), None
    if not isinstance(current_spec, Mapping):
        return {}, _input_conflict(
            f"Spec must be an object, got {type(current_spec).__name__}",
            received=type(current_spec).__name__,
        )
    try:
        working = copy.deepcopy(dict(current_spec))
    except (TypeError, ValueError, copy.Error, RecursionError) as e:
        return {}, _input_conflict(f"Spec could not be copied: {e}")

    for key in SPEC_COLLECTIONS:
        items = working.get(key)
        if items is None:
            continue
        if not isinstance(items, list):
            return working, _input_conflict(
                f"Spec '{key}' must be a list, got {type(items).__name__}", collection=key
            )
        for position, item in enumerate(items):
            if not isinstance(item, dict):
                return working, _input_conflict(
                    f"Spec '{key}[{position}]' must be an object, got {type(item).__name__}",
                    collection=key,
                    position=position,
                )
    return working, None


def _operations_of(change_request: Any) -> Optional[List[Any]]:
    if isinstance(change_request, ChangeRequest):
        return list(change_request.operations)
    if isinstance(change_request, Mapping):
        operations = change_request.get("operations")
        if isinstance(operations, list):
            return operations
    return None


def apply_change_request(
    current_spec: Union[Spec, Mapping[str, Any]],
    change_request: Union[ChangeRequest, Mapping[str, Any]],
) -> ApplyResult:
    """
    Apply a change request to an independent copy of a spec.

    Args:
        current_spec: The spec to start from (model or JSON-shaped mapping).
            Never mutated.
        change_request: ``{summary, operations}`` (model or mapping).

    Returns:
        ApplyResult with the proposed spec, every conflict (per-operation
        refusals followed by structural validator findings) and one impact per
        applied operation.

    Note:
        This function does not raise on malformed input. A spec or request it
        cannot walk yields a single ``validation`` conflict instead.
    """
    working, input_error = _clone_spec(current_spec)
    if input_error is not None:
        logger.info("Rejected change request input", extra={"reason": input_error.message})
        return ApplyResult(spec=working, conflicts=[input_error])

    operations = _operations_of(change_request)
    if operations is None:
        return ApplyResult(
            spec=working,
            conflicts=[_input_conflict("Change request must contain an 'operations' list")],
        )

    conflicts: List[ChangeConflict] = []
    impacts: List[ChangeImpact] = []

    for position, raw in enumerate(operations):
        operation = parse_operation(raw)
        if operation is None:
            op_type = operation_type_of(raw)
            message = (
                f"Malformed operation {op_type}"
                if op_type in OPERATION_TYPES
                else f"Unsupported operation {op_type}"
            )
            conflicts.append(_input_conflict(message, operationIndex=position, operationType=op_type))
            continue

        before = len(conflicts)
        _HANDLERS[type(operation)](working, operation, conflicts, impacts)
        if len(conflicts) > before:
            logger.debug(
                "Skipped conflicting operation %s at index %d: %s",
                operation_type_of(operation),
                position,
                conflicts[-1].message,
            )

    conflicts.extend(validate_spec_structure(working))

    logger.info(
        "Applied change request: %d operation(s), %d impact(s), %d conflict(s)",
        len(operations),
        len(impacts),
        len(conflicts),
    )
    return ApplyResult(spec=working, conflicts=conflicts, impacts=impacts)
