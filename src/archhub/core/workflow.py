"""
Project workflows over the change engine and the project store.

Composes the persist decision contract: a change request is previewed against
the project's current spec; any conflict refuses the persist and surfaces the
full conflict list; otherwise the proposed spec becomes a new version and any
referencing feature advances to ``applied``.

Every function returns a ``ToolResponse`` envelope. Known store and workflow
exceptions are converted via ``error_to_response``; anything else propagates.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Union

from ulid import ULID

from archhub.core.changes.models import ChangePreview
from archhub.core.changes.operations import ChangeRequest
from archhub.core.changes.preview import (
    collect_impacted_files,
    compute_change_preview,
    generate_impact_summary,
)
from archhub.core.errors.base import error_to_response
from archhub.core.errors.storage import VersionConflictError
from archhub.core.errors.workflow import FeatureStateError
from archhub.core.locking import (
    acquire_lock,
    check_and_enforce_project_lock,
    utc_now,
)
from archhub.core.responses.builders import (
    conflict_error,
    error_response,
    not_found_error,
    success_response,
    validation_error,
)
from archhub.core.responses.types import ErrorCode, ErrorType, ToolResponse
from archhub.core.spec._constants import DEFAULT_LOCK_MINUTES
from archhub.core.spec.models import (
    APPLICABLE_FEATURE_STATUSES,
    Feature,
    FeatureStatus,
)
from archhub.core.store import FileProjectStore
from archhub.core.validation.rules import validate_project_architecture

logger = logging.getLogger(__name__)

_ChangeRequestInput = Union[ChangeRequest, Mapping[str, Any]]


def preview_payload(preview: ChangePreview) -> Dict[str, Any]:
    """Preview, impact summary and impacted files in their wire shape."""
    return {
        "preview": preview.to_dict(),
        "summary": generate_impact_summary(preview).to_dict(),
        "impactedFiles": collect_impacted_files(preview),
    }


def _conflict_response(preview: ChangePreview) -> ToolResponse:
    conflicts = [c.to_dict() for c in preview.conflicts]
    return conflict_error(
        f"Change request has {len(conflicts)} conflict(s)",
        data={"preview": preview.to_dict(), "conflicts": conflicts},
        remediation="Adjust the change request to resolve the listed conflicts and retry.",
    )


def _handle_known_error(exc: Exception) -> ToolResponse:
    response = error_to_response(exc)
    if response is None:
        raise exc
    return response


def preview_change(
    store: FileProjectStore,
    project_id: str,
    change_request: _ChangeRequestInput,
    max_depth: Optional[int] = None,
) -> ToolResponse:
    """
    Preview a change request against a project's current spec.

    No lock is needed and nothing is persisted. Conflicts are reported in the
    payload rather than as an error.
    """
    try:
        project = store.load_project(project_id)
    except Exception as exc:
        return _handle_known_error(exc)

    preview = compute_change_preview(project.spec, change_request, max_depth=max_depth)
    return success_response(preview_payload(preview), project_id=project.id)


def apply_change(
    store: FileProjectStore,
    project_id: str,
    change_request: Optional[_ChangeRequestInput],
    user_id: str,
    *,
    persist: bool = True,
    feature_id: Optional[str] = None,
    now: Optional[datetime] = None,
    max_depth: Optional[int] = None,
) -> ToolResponse:
    """
    Apply a change request to a project, optionally persisting the result.

    Args:
        store: Project store
        project_id: Target project
        change_request: ``{summary, operations}``; when None, the referenced
            feature's change request is used
        user_id: Collaborator performing the apply
        persist: Write a new version when the request applies cleanly
        feature_id: Feature whose change request this is; must be approved
            (or already applied) and is advanced to ``applied`` on persist
        now: Reference time for lock checks and timestamps
        max_depth: Optional diff depth limit

    Returns:
        Success envelope with preview, summary, impacted files and version
        number, or an error envelope:
        NOT_FOUND (project), RESOURCE_BUSY (lock held by someone else),
        CONFLICT (feature state, conflicts in the change request, or another
        apply persisted after this one was previewed).
    """
    timestamp = now or utc_now()

    try:
        project = store.load_project(project_id, now=timestamp)
    except Exception as exc:
        return _handle_known_error(exc)

    if persist:
        lock_error = check_and_enforce_project_lock(project.lock, user_id, project.id, now=timestamp)
        if lock_error is not None:
            return lock_error

    feature: Optional[Feature] = None
    if feature_id is not None:
        try:
            feature = store.load_feature(project.id, feature_id)
        except Exception as exc:
            return _handle_known_error(exc)
        if feature is None:
            return conflict_error(
                f"Feature '{feature_id}' not found",
                data={"feature_id": feature_id},
            )
        if feature.status not in APPLICABLE_FEATURE_STATUSES:
            return conflict_error(
                f"Feature '{feature_id}' must be approved before applying",
                data={"feature_id": feature_id, "status": feature.status.value},
                remediation="Approve the feature, then apply it again.",
            )
        if change_request is None:
            change_request = feature.change_request

    if change_request is None:
        return error_response(
            "A change request or a feature id is required",
            error_code=ErrorCode.MISSING_REQUIRED,
            error_type=ErrorType.VALIDATION,
        )

    preview = compute_change_preview(project.spec, change_request, max_depth=max_depth)
    if preview.conflicts:
        logger.info(
            "Refused change request for project %s: %d conflict(s)",
            project.id,
            len(preview.conflicts),
        )
        return _conflict_response(preview)

    payload = preview_payload(preview)
    payload["version"] = None
    payload["persisted"] = False

    if persist:
        try:
            version = store.save_spec(
                project.id,
                preview.proposed_spec,
                created_by=user_id,
                now=timestamp,
                expected_version=project.current_version,
                lock_user=user_id,
            )
        except VersionConflictError as exc:
            logger.info("Refused stale change request for project %s: %s", project.id, exc)
            return conflict_error(
                str(exc),
                data={
                    "expected_version": exc.expected_version,
                    "current_version": exc.actual_version,
                },
                remediation="Preview the change request against the latest version and retry.",
            )
        except Exception as exc:
            return _handle_known_error(exc)
        if feature is not None:
            try:
                store.update_feature_status(project.id, feature.id, FeatureStatus.APPLIED, now=timestamp)
            except Exception as exc:
                return _handle_known_error(exc)
        payload["version"] = version.number
        payload["persisted"] = True

    return success_response(payload, project_id=project.id)


def propose_feature(
    store: FileProjectStore,
    project_id: str,
    title: str,
    change_request: _ChangeRequestInput,
    user_id: str,
    *,
    description: str = "",
    feature_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> ToolResponse:
    """
    Record a change request as a feature awaiting review.

    The feature is stored ``in_review`` together with its preview so reviewers
    see the conflicts and impacts it would have today.
    """
    timestamp = now or utc_now()
    try:
        project = store.load_project(project_id, now=timestamp)
    except Exception as exc:
        return _handle_known_error(exc)

    request = (
        change_request.model_dump(mode="json")
        if isinstance(change_request, ChangeRequest)
        else dict(change_request)
    )
    preview = compute_change_preview(project.spec, request)
    feature = Feature(
        id=feature_id or str(ULID()),
        title=title,
        description=description,
        status=FeatureStatus.IN_REVIEW,
        change_request=request,
        preview=preview.to_dict(),
        created_by=user_id,
        created_at=timestamp,
        updated_at=timestamp,
    )
    try:
        store.save_feature(project.id, feature)
    except Exception as exc:
        return _handle_known_error(exc)

    logger.info("Proposed feature %s for project %s", feature.id, project.id)
    return success_response(
        feature=feature.model_dump(mode="json", by_alias=True),
        summary=generate_impact_summary(preview).to_dict(),
    )


def review_feature(
    store: FileProjectStore,
    project_id: str,
    feature_id: str,
    approve: bool,
    now: Optional[datetime] = None,
) -> ToolResponse:
    """Approve or reject a feature that is in review (or still a draft)."""
    try:
        feature = store.load_feature(project_id, feature_id)
        if feature is None:
            return not_found_error("Feature", feature_id)
        if feature.status not in (FeatureStatus.DRAFT, FeatureStatus.IN_REVIEW):
            raise FeatureStateError(
                feature_id,
                feature.status.value,
                f"Feature '{feature_id}' is {feature.status.value} and can no longer be reviewed",
            )
        status = FeatureStatus.APPROVED if approve else FeatureStatus.REJECTED
        feature = store.update_feature_status(project_id, feature_id, status, now=now)
    except Exception as exc:
        return _handle_known_error(exc)
    return success_response(feature=feature.model_dump(mode="json", by_alias=True))


def apply_autofix(
    store: FileProjectStore,
    project_id: str,
    suggestion_id: str,
    user_id: str,
    *,
    persist: bool = True,
    now: Optional[datetime] = None,
    max_depth: Optional[int] = None,
) -> ToolResponse:
    """
    Apply one architecture auto-fix suggestion through the normal apply path.
    """
    try:
        project = store.load_project(project_id, now=now)
    except Exception as exc:
        return _handle_known_error(exc)

    report = validate_project_architecture(project.spec)
    suggestion = report.find_suggestion(suggestion_id)
    if suggestion is None:
        return not_found_error(
            "Suggestion",
            suggestion_id,
            remediation="Run architecture validation to list the available suggestions.",
        )

    return apply_change(
        store,
        project.id,
        suggestion.change_request,
        user_id,
        persist=persist,
        now=now,
        max_depth=max_depth,
    )


def claim_project_lock(
    store: FileProjectStore,
    project_id: str,
    user_id: str,
    duration_minutes: int = DEFAULT_LOCK_MINUTES,
    now: Optional[datetime] = None,
) -> ToolResponse:
    """
    Take (or renew) the project lock for ``user_id``.

    Fails with RESOURCE_BUSY while another collaborator holds an unexpired lock.
    """
    timestamp = now or utc_now()
    try:
        lock = acquire_lock(user_id, duration_minutes, now=timestamp)
    except ValueError as exc:
        return validation_error(str(exc), remediation="Use a non-empty user id and a positive lock duration.")

    try:
        project = store.claim_lock(project_id, lock, now=timestamp)
    except Exception as exc:
        return _handle_known_error(exc)

    return success_response(lock=lock.model_dump(mode="json", by_alias=True), project_id=project.id)


def release_project_lock(
    store: FileProjectStore,
    project_id: str,
    user_id: str,
    now: Optional[datetime] = None,
) -> ToolResponse:
    """Release the project lock. Only the holder may release an unexpired lock."""
    timestamp = now or utc_now()
    try:
        released = store.release_lock(project_id, user_id, now=timestamp)
    except Exception as exc:
        return _handle_known_error(exc)
    return success_response(released=released, project_id=project_id)
