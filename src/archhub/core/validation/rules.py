"""
Architecture validation rules and checks.

Checks run over a JSON-shaped spec and accumulate findings on an
``ArchitectureReport``. Nothing here mutates the spec.
"""

import json
import logging
from typing import Any, Dict, List, Mapping

from archhub.core.validation.constants import (
    CAMEL_CASE_PATTERN,
    ENDPOINT_PATH_PATTERN,
    PAGINATION_HINTS,
    PASCAL_CASE_PATTERN,
    TIMESTAMP_FIELDS,
    VALID_HTTP_METHODS,
    VALID_RELATION_TYPES,
)
from archhub.core.validation.fixes import get_autofix_suggestions
from archhub.core.validation.models import ArchitectureIssue, ArchitectureReport
from archhub.core.validation.naming import entity_route_paths, to_camel_case, to_pascal_case

logger = logging.getLogger(__name__)


def validate_project_architecture(spec: Any) -> ArchitectureReport:
    """
    Validate a project's architecture for consistency and best practices.

    Args:
        spec: JSON-shaped spec mapping (``None`` is reported as invalid)

    Returns:
        ArchitectureReport with errors, warnings and auto-fix suggestions
    """
    report = ArchitectureReport()

    if spec is None or not isinstance(spec, Mapping):
        report.errors.append(
            ArchitectureIssue(
                code="NULL_SPEC",
                message="Spec is null or undefined" if spec is None else "Spec must be an object",
                kind="error",
                category="schema",
                severity="critical",
            )
        )
        report.is_valid = False
        return report

    entities = _items(spec, "entities")
    endpoints = _items(spec, "endpoints")

    _validate_entities(entities, report)
    _validate_endpoints(endpoints, report)
    _validate_relations(entities, report)

    _check_naming_conventions(entities, endpoints, report)
    _check_best_practices(entities, endpoints, report)
    _check_missing_crud_endpoints(entities, endpoints, report)

    report.suggestions.extend(get_autofix_suggestions(report, spec))
    report.is_valid = not report.errors

    logger.debug(
        "Architecture validation: %d error(s), %d warning(s), %d suggestion(s)",
        len(report.errors),
        len(report.warnings),
        len(report.suggestions),
    )
    return report


def _items(spec: Mapping[str, Any], key: str) -> List[Dict[str, Any]]:
    items = spec.get(key)
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]


def _fields(entity: Mapping[str, Any]) -> List[Dict[str, Any]]:
    fields = entity.get("fields")
    if not isinstance(fields, list):
        return []
    return [f for f in fields if isinstance(f, dict)]


def _named(entities: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [e for e in entities if isinstance(e.get("name"), str) and e.get("name")]


def _validate_entities(entities: List[Dict[str, Any]], report: ArchitectureReport) -> None:
    seen_names = set()

    for entity in _named(entities):
        name = entity["name"]
        entity_id = entity.get("id")

        if name in seen_names:
            report.errors.append(
                ArchitectureIssue(
                    code="DUPLICATE_ENTITY",
                    message=f"Duplicate entity name: {name}",
                    kind="error",
                    category="entity",
                    severity="critical",
                    entity_id=entity_id,
                )
            )
        seen_names.add(name)

        if not name.strip():
            report.errors.append(
                ArchitectureIssue(
                    code="EMPTY_ENTITY_NAME",
                    message=f"Entity {entity_id} has no name",
                    kind="error",
                    category="entity",
                    severity="critical",
                    entity_id=entity_id,
                )
            )

        fields = _fields(entity)
        if not fields:
            report.errors.append(
                ArchitectureIssue(
                    code="NO_FIELDS",
                    message=f"Entity {name} has no fields defined",
                    kind="error",
                    category="entity",
                    severity="high",
                    entity_id=entity_id,
                )
            )

        field_names = set()
        for field in fields:
            field_name = field.get("name")
            if isinstance(field_name, str) and field_name in field_names:
                report.errors.append(
                    ArchitectureIssue(
                        code="DUPLICATE_FIELD",
                        message=f"Duplicate field name '{field_name}' in entity {name}",
                        kind="error",
                        category="entity",
                        severity="high",
                        entity_id=entity_id,
                        field=field_name,
                    )
                )
            if isinstance(field_name, str):
                field_names.add(field_name)

            field_type = field.get("type")
            if not isinstance(field_type, str) or not field_type.strip():
                report.errors.append(
                    ArchitectureIssue(
                        code="MISSING_FIELD_TYPE",
                        message=f"Field '{field_name}' in entity {name} has no type",
                        kind="error",
                        category="schema",
                        severity="high",
                        entity_id=entity_id,
                        field=field_name,
                    )
                )

        id_names = ("id", f"{name.lower()}Id")
        if not any(f.get("name") in id_names for f in fields):
            report.errors.append(
                ArchitectureIssue(
                    code="MISSING_ID_FIELD",
                    message=f"Entity {name} is missing an 'id' field",
                    kind="error",
                    category="schema",
                    severity="medium",
                    entity_id=entity_id,
                )
            )


def _validate_endpoints(endpoints: List[Dict[str, Any]], report: ArchitectureReport) -> None:
    seen_keys = set()

    for endpoint in endpoints:
        method = endpoint.get("method")
        path = endpoint.get("path")
        if not method or not path:
            continue

        if not isinstance(path, str) or not path.strip():
            report.errors.append(
                ArchitectureIssue(
                    code="EMPTY_ENDPOINT_PATH",
                    message=f"Endpoint {endpoint.get('id')} has no path",
                    kind="error",
                    category="endpoint",
                    severity="critical",
                    endpoint_id=endpoint.get("id"),
                )
            )

        if not isinstance(method, str) or method not in VALID_HTTP_METHODS:
            report.errors.append(
                ArchitectureIssue(
                    code="INVALID_HTTP_METHOD",
                    message=f"Endpoint {path} has invalid HTTP method: {method}",
                    kind="error",
                    category="endpoint",
                    severity="high",
                    endpoint_id=endpoint.get("id"),
                )
            )

        key = f"{method} {path}"
        if key in seen_keys:
            report.errors.append(
                ArchitectureIssue(
                    code="DUPLICATE_ENDPOINT",
                    message=f"Duplicate endpoint: {key}",
                    kind="error",
                    category="endpoint",
                    severity="critical",
                )
            )
        seen_keys.add(key)


def _validate_relations(entities: List[Dict[str, Any]], report: ArchitectureReport) -> None:
    known_targets = {
        value for e in entities for value in (e.get("id"), e.get("name")) if isinstance(value, str)
    }

    for entity in entities:
        relations = entity.get("relations")
        for relation in relations if isinstance(relations, list) else []:
            if not isinstance(relation, dict):
                continue
            target = relation.get("target")
            if not isinstance(target, str) or target not in known_targets:
                report.errors.append(
                    ArchitectureIssue(
                        code="UNKNOWN_RELATION_TARGET",
                        message=f"Entity {entity.get('name')} has relation to non-existent entity: {target}",
                        kind="error",
                        category="dependency",
                        severity="high",
                        entity_id=entity.get("id"),
                    )
                )

            relation_type = relation.get("type")
            if not isinstance(relation_type, str) or relation_type not in VALID_RELATION_TYPES:
                report.errors.append(
                    ArchitectureIssue(
                        code="INVALID_RELATION_TYPE",
                        message=f"Invalid relation type '{relation_type}' in entity {entity.get('name')}",
                        kind="error",
                        category="schema",
                        severity="medium",
                        entity_id=entity.get("id"),
                    )
                )


def _check_naming_conventions(
    entities: List[Dict[str, Any]], endpoints: List[Dict[str, Any]], report: ArchitectureReport
) -> None:
    for entity in _named(entities):
        name = entity["name"]
        if not PASCAL_CASE_PATTERN.match(name):
            report.warnings.append(
                ArchitectureIssue(
                    code="ENTITY_NAME_CASE",
                    message=f"Entity name '{name}' should be PascalCase (e.g., 'UserProfile')",
                    kind="warning",
                    category="convention",
                    entity_id=entity.get("id"),
                    suggestion=to_pascal_case(name),
                )
            )

        for field in _fields(entity):
            field_name = field.get("name")
            if isinstance(field_name, str) and field_name and not CAMEL_CASE_PATTERN.match(field_name):
                report.warnings.append(
                    ArchitectureIssue(
                        code="FIELD_NAME_CASE",
                        message=f"Field name '{field_name}' in {name} should be camelCase",
                        kind="warning",
                        category="convention",
                        entity_id=entity.get("id"),
                        field=field_name,
                        suggestion=to_camel_case(field_name),
                    )
                )

    for endpoint in endpoints:
        path = endpoint.get("path")
        if isinstance(path, str) and path and not ENDPOINT_PATH_PATTERN.match(path):
            report.warnings.append(
                ArchitectureIssue(
                    code="ENDPOINT_PATH_CASE",
                    message=f"Endpoint path '{path}' should use lowercase with hyphens",
                    kind="warning",
                    category="convention",
                    endpoint_id=endpoint.get("id"),
                    suggestion=path.lower().replace("_", "-"),
                )
            )


def _schema_text(endpoint: Mapping[str, Any]) -> str:
    return json.dumps(endpoint.get("schema") or {}, default=str)


def _check_best_practices(
    entities: List[Dict[str, Any]], endpoints: List[Dict[str, Any]], report: ArchitectureReport
) -> None:
    for entity in _named(entities):
        field_names = [f.get("name") for f in _fields(entity)]
        if not all(name in field_names for name in TIMESTAMP_FIELDS):
            report.warnings.append(
                ArchitectureIssue(
                    code="MISSING_TIMESTAMPS",
                    message=(
                        f"Entity {entity['name']} should have 'createdAt' and 'updatedAt' timestamp fields"
                    ),
                    kind="warning",
                    category="best-practice",
                    entity_id=entity.get("id"),
                    suggestion="Add timestamp fields for audit trail",
                )
            )

    for endpoint in endpoints:
        method = endpoint.get("method")
        path = endpoint.get("path")
        if method != "GET" or not isinstance(path, str) or not path:
            continue
        if "list" not in path and ":id" in path:
            continue
        schema_text = _schema_text(endpoint)
        if not any(hint in schema_text for hint in PAGINATION_HINTS):
            report.warnings.append(
                ArchitectureIssue(
                    code="MISSING_PAGINATION",
                    message=f"GET endpoint {path} should support pagination",
                    kind="warning",
                    category="best-practice",
                    endpoint_id=endpoint.get("id"),
                    suggestion="Add pagination parameters (page, limit, offset)",
                )
            )


def _has_route(endpoints: List[Dict[str, Any]], methods: set, paths: List[str]) -> bool:
    for endpoint in endpoints:
        method = endpoint.get("method")
        path = endpoint.get("path")
        if isinstance(method, str) and method in methods and isinstance(path, str):
            if any(candidate in path for candidate in paths):
                return True
    return False


def _check_missing_crud_endpoints(
    entities: List[Dict[str, Any]], endpoints: List[Dict[str, Any]], report: ArchitectureReport
) -> None:
    for entity in _named(entities):
        paths = entity_route_paths(entity["name"])
        missing = [
            label
            for label, methods in (
                ("CREATE", {"POST"}),
                ("READ", {"GET"}),
                ("UPDATE", {"PUT", "PATCH"}),
                ("DELETE", {"DELETE"}),
            )
            if not _has_route(endpoints, methods, paths)
        ]
        if missing:
            operations = ", ".join(missing)
            report.warnings.append(
                ArchitectureIssue(
                    code="MISSING_CRUD_ENDPOINTS",
                    message=f"Entity {entity['name']} is missing CRUD endpoints: {operations}",
                    kind="warning",
                    category="best-practice",
                    entity_id=entity.get("id"),
                    suggestion=f"Consider adding {operations} endpoints for {entity['name']}",
                )
            )
