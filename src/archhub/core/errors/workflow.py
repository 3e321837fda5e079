"""Apply-workflow error classes: lock ownership and feature lifecycle."""

from datetime import datetime
from typing import Optional


class ProjectLockedError(Exception):
    """Raised when another collaborator holds an unexpired project lock.

    Attributes:
        project_id: The locked project.
        holder: User id of the lock holder.
        expires_at: When the holder's lock lapses.
    """

    def __init__(
        self,
        project_id: str,
        holder: Optional[str] = None,
        expires_at: Optional[datetime] = None,
    ) -> None:
        self.project_id = project_id
        self.holder = holder
        self.expires_at = expires_at
        super().__init__("Project locked by another collaborator")


class FeatureNotFoundError(Exception):
    """Raised when a referenced feature does not exist."""

    def __init__(self, project_id: str, feature_id: str) -> None:
        self.project_id = project_id
        self.feature_id = feature_id
        super().__init__(f"Feature '{feature_id}' not found in project '{project_id}'")


class FeatureStateError(Exception):
    """Raised when a feature's status does not allow the requested step."""

    def __init__(self, feature_id: str, status: str, reason: str) -> None:
        self.feature_id = feature_id
        self.status = status
        self.reason = reason
        super().__init__(reason)
