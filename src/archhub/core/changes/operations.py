"""
The closed vocabulary of spec edits.

Each operation is a pydantic model carrying only its required payload, tagged
by a literal ``type``. ``ChangeOperation`` is the discriminated union over all
of them. Payload objects (requirements, entities, endpoints, patches) stay as
plain dicts: the applier works on JSON-shaped data and patches must keep the
exact keys the caller sent for shallow merging.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

logger = logging.getLogger(__name__)


class _Operation(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class AddRequirement(_Operation):
    type: Literal["addRequirement"] = "addRequirement"
    requirement: Dict[str, Any]


class UpdateRequirement(_Operation):
    type: Literal["updateRequirement"] = "updateRequirement"
    requirement_id: str = Field(..., alias="requirementId")
    patch: Dict[str, Any] = Field(default_factory=dict)


class RemoveRequirement(_Operation):
    type: Literal["removeRequirement"] = "removeRequirement"
    requirement_id: str = Field(..., alias="requirementId")


class AddEntity(_Operation):
    type: Literal["addEntity"] = "addEntity"
    entity: Dict[str, Any]


class UpdateEntity(_Operation):
    type: Literal["updateEntity"] = "updateEntity"
    entity_id: str = Field(..., alias="entityId")
    patch: Dict[str, Any] = Field(default_factory=dict)


class RemoveEntity(_Operation):
    type: Literal["removeEntity"] = "removeEntity"
    entity_id: str = Field(..., alias="entityId")


class AddEndpoint(_Operation):
    type: Literal["addEndpoint"] = "addEndpoint"
    endpoint: Dict[str, Any]


class UpdateEndpoint(_Operation):
    type: Literal["updateEndpoint"] = "updateEndpoint"
    endpoint_id: str = Field(..., alias="endpointId")
    patch: Dict[str, Any] = Field(default_factory=dict)


class RemoveEndpoint(_Operation):
    type: Literal["removeEndpoint"] = "removeEndpoint"
    endpoint_id: str = Field(..., alias="endpointId")


class UpdateFolderStructure(_Operation):
    type: Literal["updateFolderStructure"] = "updateFolderStructure"
    folder_structure: Dict[str, Any] = Field(default_factory=dict)


ChangeOperation = Annotated[
    Union[
        AddRequirement,
        UpdateRequirement,
        RemoveRequirement,
        AddEntity,
        UpdateEntity,
        RemoveEntity,
        AddEndpoint,
        UpdateEndpoint,
        RemoveEndpoint,
        UpdateFolderStructure,
    ],
    Field(discriminator="type"),
]

OPERATION_TYPES = (
    "addRequirement",
    "updateRequirement",
    "removeRequirement",
    "addEntity",
    "updateEntity",
    "removeEntity",
    "addEndpoint",
    "updateEndpoint",
    "removeEndpoint",
    "updateFolderStructure",
)

_operation_adapter: TypeAdapter[Any] = TypeAdapter(ChangeOperation)


class ChangeRequest(BaseModel):
    """An ordered batch of edits. Transient; never persisted on its own."""

    summary: str = ""
    operations: List[Any] = Field(default_factory=list)


def parse_operation(raw: Any) -> Optional[_Operation]:
    """
    Parse one raw operation into its typed variant.

    Returns:
        The typed operation, or None when the payload is not a mapping, names
        a type outside the closed set, or lacks its required payload.
    """
    if isinstance(raw, _Operation):
        return raw
    if not isinstance(raw, dict):
        return None
    try:
        return _operation_adapter.validate_python(raw)
    except ValidationError as e:
        logger.debug("Rejected change operation", extra={"operation_type": raw.get("type"), "error": str(e)})
        return None


def operation_type_of(raw: Any) -> str:
    """Best-effort type tag of a raw operation, for conflict messages."""
    if isinstance(raw, _Operation):
        return raw.type  # type: ignore[attr-defined]
    if isinstance(raw, dict) and isinstance(raw.get("type"), str):
        return raw["type"]
    return "unknown"
