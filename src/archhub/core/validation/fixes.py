"""Auto-fix suggestion builders for architecture findings.

Each suggestion carries a change request in the engine's wire shape, so
applying a fix goes through the same preview, conflict and persist path as
any user edit.
"""

import copy
from typing import Any, Dict, List, Mapping, Optional

from archhub.core.validation.constants import (
    ENDPOINT_GENERATION,
    ENTITY_ENHANCEMENT,
    TIMESTAMP_FIELDS,
)
from archhub.core.validation.models import ArchitectureReport, AutoFixSuggestion


def get_autofix_suggestions(report: ArchitectureReport, spec: Mapping[str, Any]) -> List[AutoFixSuggestion]:
    """
    Generate auto-fix suggestions from a report's warnings.

    Args:
        report: ArchitectureReport with warnings already collected
        spec: The spec the report was built from

    Returns:
        List of suggestions, CRUD endpoint fixes first, then timestamp fixes
    """
    suggestions: List[AutoFixSuggestion] = []
    seen_ids = set()

    for code, builder in (
        ("MISSING_CRUD_ENDPOINTS", _build_crud_fix),
        ("MISSING_TIMESTAMPS", _build_timestamp_fix),
    ):
        for warning in report.warnings:
            if warning.code != code:
                continue
            entity = _find_entity(spec, warning.entity_id)
            if entity is None:
                continue
            suggestion = builder(entity, spec)
            if suggestion.id not in seen_ids:
                suggestions.append(suggestion)
                seen_ids.add(suggestion.id)

    return suggestions


def _find_entity(spec: Mapping[str, Any], entity_id: Optional[str]) -> Optional[Dict[str, Any]]:
    entities = spec.get("entities")
    for entity in entities if isinstance(entities, list) else []:
        if isinstance(entity, dict) and entity.get("id") == entity_id:
            return entity
    return None


def _endpoints(spec: Mapping[str, Any]) -> List[Dict[str, Any]]:
    endpoints = spec.get("endpoints")
    if not isinstance(endpoints, list):
        return []
    return [
        e for e in endpoints if isinstance(e, dict) and isinstance(e.get("path"), str)
    ]


def _build_crud_fix(entity: Dict[str, Any], spec: Mapping[str, Any]) -> AutoFixSuggestion:
    name = entity["name"]
    return AutoFixSuggestion(
        id=f"add-crud-{entity.get('id')}",
        description=f"Add missing CRUD endpoints for {name}",
        category=ENDPOINT_GENERATION,
        auto_fixable=True,
        change_request={
            "summary": f"Add CRUD endpoints for {name}",
            "operations": generate_crud_operations(entity, spec),
        },
    )


def generate_crud_operations(entity: Mapping[str, Any], spec: Mapping[str, Any]) -> List[Dict[str, Any]]:
    """
    Build ``addEndpoint`` operations for the CRUD routes an entity lacks.

    Collection routes use ``/<name>s``; item routes use ``/<name>s/:id``.
    """
    name = entity["name"]
    entity_id = entity.get("id")
    collection = f"/{name.lower()}s"
    item = f"{collection}/:id"
    endpoints = _endpoints(spec)

    def has(methods: tuple, path: str) -> bool:
        return any(e.get("method") in methods and path in e["path"] for e in endpoints)

    object_schema = {"type": "object", "properties": {}}
    candidates = [
        (
            has(("POST",), collection),
            {
                "id": f"create-{entity_id}",
                "method": "POST",
                "path": collection,
                "description": f"Create a new {name}",
                "schema": {"request": object_schema, "response": object_schema},
            },
        ),
        (
            has(("GET",), collection),
            {
                "id": f"list-{entity_id}",
                "method": "GET",
                "path": collection,
                "description": f"List all {name}s",
                "schema": {"response": {"type": "array", "items": {}}},
            },
        ),
        (
            has(("PUT", "PATCH"), item),
            {
                "id": f"update-{entity_id}",
                "method": "PATCH",
                "path": item,
                "description": f"Update a {name}",
                "schema": {"request": object_schema, "response": object_schema},
            },
        ),
        (
            has(("DELETE",), item),
            {
                "id": f"delete-{entity_id}",
                "method": "DELETE",
                "path": item,
                "description": f"Delete a {name}",
                "schema": {
                    "response": {"type": "object", "properties": {"success": {"type": "boolean"}}}
                },
            },
        ),
    ]
    return [
        {"type": "addEndpoint", "endpoint": copy.deepcopy(endpoint)}
        for present, endpoint in candidates
        if not present
    ]


def _build_timestamp_fix(entity: Dict[str, Any], spec: Mapping[str, Any]) -> AutoFixSuggestion:
    name = entity["name"]
    fields = entity.get("fields")
    existing = copy.deepcopy(fields) if isinstance(fields, list) else []
    present = [f.get("name") for f in existing if isinstance(f, dict)]
    added = [
        {"name": field_name, "type": "DateTime", "required": True}
        for field_name in TIMESTAMP_FIELDS
        if field_name not in present
    ]
    return AutoFixSuggestion(
        id=f"add-timestamps-{entity.get('id')}",
        description=f"Add createdAt and updatedAt fields to {name}",
        category=ENTITY_ENHANCEMENT,
        auto_fixable=True,
        change_request={
            "summary": f"Add timestamp fields to {name}",
            "operations": [
                {
                    "type": "updateEntity",
                    "entityId": entity.get("id"),
                    "patch": {"fields": existing + added},
                }
            ],
        },
    )
