"""
Advisory project-lock helpers.

A project lock is a record naming the collaborator who currently holds the
right to persist changes, and when that right lapses. The lock is advisory:
nothing here touches storage. Callers check it before a persisted apply and
treat the result as authoritative. Previews need no lock.

Key functions:
- check_project_lock(): Decide whether a user may persist against a lock record
- acquire_lock(): Build a fresh lock record for a user

Usage:
    from archhub.core.locking import check_project_lock, LockStatus

    result = check_project_lock(project.lock, user_id="alice")
    if result.status == LockStatus.LOCKED:
        return make_lock_error_response(result, project_id=project.id)
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from archhub.core.errors.workflow import ProjectLockedError
from archhub.core.responses.builders import error_response
from archhub.core.responses.types import (
    ErrorCode,
    ErrorType,
    ToolResponse,
)
from archhub.core.spec._constants import DEFAULT_LOCK_MINUTES
from archhub.core.spec.models import ProjectLock

logger = logging.getLogger(__name__)

LOCKED_MESSAGE = "Project locked by another collaborator"


class LockStatus(Enum):
    """Status of a project lock check."""

    ALLOWED = "allowed"  # No lock, operation allowed
    HELD = "held"  # Caller holds the lock, operation allowed
    LOCKED = "locked"  # Someone else holds an unexpired lock, operation blocked
    EXPIRED = "expired"  # A lock exists but has lapsed, operation allowed


@dataclass
class LockCheckResult:
    """
    Result of checking a project lock.

    Attributes:
        status: Allowed, held, locked or expired
        lock_active: True if an unexpired lock exists (held by anyone)
        holder: User id of the lock holder (if any)
        expires_at: When the lock lapses (if any)
        message: Human-readable status message
        metadata: Additional context for logging/debugging
    """

    status: LockStatus
    lock_active: bool
    holder: Optional[str] = None
    expires_at: Optional[datetime] = None
    message: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def allowed(self) -> bool:
        return self.status != LockStatus.LOCKED


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # naive timestamps are stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _coerce_lock(lock: Union[ProjectLock, Mapping[str, Any], None]) -> Optional[ProjectLock]:
    if lock is None or isinstance(lock, ProjectLock):
        return lock
    return ProjectLock.model_validate(lock)


def is_lock_expired(lock: ProjectLock, now: Optional[datetime] = None) -> bool:
    """True when ``lock`` lapsed at or before ``now``."""
    current = _as_utc(now or utc_now())
    return _as_utc(lock.expires_at) <= current


def acquire_lock(
    user_id: str,
    duration_minutes: int = DEFAULT_LOCK_MINUTES,
    now: Optional[datetime] = None,
) -> ProjectLock:
    """
    Build a lock record for ``user_id`` lasting ``duration_minutes``.

    Raises:
        ValueError: If ``user_id`` is blank or the duration is not positive.
    """
    if not user_id or not user_id.strip():
        raise ValueError("Lock holder user id is required")
    if duration_minutes <= 0:
        raise ValueError(f"Lock duration must be positive, got {duration_minutes}")

    locked_at = _as_utc(now or utc_now())
    return ProjectLock(
        locked_by=user_id,
        locked_at=locked_at,
        expires_at=locked_at + timedelta(minutes=duration_minutes),
    )


def check_project_lock(
    lock: Union[ProjectLock, Mapping[str, Any], None],
    user_id: str,
    now: Optional[datetime] = None,
) -> LockCheckResult:
    """
    Check whether ``user_id`` may persist changes under ``lock``.

    Args:
        lock: The project's lock record, or None when unlocked
        user_id: The collaborator attempting to persist
        now: Reference time (defaults to the current UTC time)

    Returns:
        LockCheckResult; only ``LockStatus.LOCKED`` blocks the operation

    Examples:
        >>> check_project_lock(None, "alice").status
        <LockStatus.ALLOWED: 'allowed'>
    """
    record = _coerce_lock(lock)

    if record is None:
        return LockCheckResult(
            status=LockStatus.ALLOWED,
            lock_active=False,
            message="Project is not locked",
        )

    if is_lock_expired(record, now):
        return LockCheckResult(
            status=LockStatus.EXPIRED,
            lock_active=False,
            holder=record.locked_by,
            expires_at=record.expires_at,
            message=f"Lock held by '{record.locked_by}' has expired",
        )

    if record.locked_by == user_id:
        return LockCheckResult(
            status=LockStatus.HELD,
            lock_active=True,
            holder=record.locked_by,
            expires_at=record.expires_at,
            message="Lock held by caller",
        )

    logger.warning(
        "Project lock denied",
        extra={
            "user_id": user_id,
            "holder": record.locked_by,
            "expires_at": record.expires_at.isoformat(),
            "event_type": "project_lock_denied",
        },
    )
    return LockCheckResult(
        status=LockStatus.LOCKED,
        lock_active=True,
        holder=record.locked_by,
        expires_at=record.expires_at,
        message=LOCKED_MESSAGE,
        metadata={"holder": record.locked_by},
    )


def make_lock_error_response(
    result: LockCheckResult,
    project_id: Optional[str] = None,
    request_id: Optional[str] = None,
) -> ToolResponse:
    """
    Create a standardized error response for a lock held by someone else.

    Returns:
        ToolResponse with RESOURCE_BUSY error
    """
    return error_response(
        LOCKED_MESSAGE,
        error_code=ErrorCode.RESOURCE_BUSY,
        error_type=ErrorType.LOCKED,
        data={
            "project_id": project_id,
            "locked_by": result.holder,
            "expires_at": result.expires_at.isoformat() if result.expires_at else None,
            "remediation": "Wait for the lock to expire or ask the holder to release it.",
        },
        request_id=request_id,
    )


def check_and_enforce_project_lock(
    lock: Union[ProjectLock, Mapping[str, Any], None],
    user_id: str,
    project_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Optional[ToolResponse]:
    """
    Check a project lock and return an error response if blocked.

    Returns:
        None if the operation is allowed, ToolResponse error if blocked
    """
    result = check_project_lock(lock, user_id, now=now)
    if result.allowed:
        return None
    return make_lock_error_response(result, project_id=project_id)


def ensure_user_owns_lock(
    lock: Union[ProjectLock, Mapping[str, Any], None],
    user_id: str,
    project_id: str,
    now: Optional[datetime] = None,
) -> LockCheckResult:
    """
    Require that ``user_id`` may act under ``lock``.

    Raises:
        ProjectLockedError: If another collaborator holds an unexpired lock
    """
    result = check_project_lock(lock, user_id, now=now)
    if not result.allowed:
        raise ProjectLockedError(project_id, holder=result.holder, expires_at=result.expires_at)
    return result
