"""Storage and concurrency error classes for the project store."""

from typing import Optional


class LockAcquisitionError(Exception):
    """Raised when file lock cannot be acquired within timeout."""
    pass


class InvalidIdentifierError(ValueError):
    """Raised when an identifier has no path-safe characters left."""

    def __init__(self, item_id: str) -> None:
        self.item_id = item_id
        super().__init__(f"Invalid identifier: {item_id!r}")


class ProjectNotFoundError(Exception):
    """Raised when a project directory or record does not exist."""

    def __init__(self, project_id: str) -> None:
        self.project_id = project_id
        super().__init__(f"Project '{project_id}' not found")


class ProjectExistsError(Exception):
    """Raised when creating a project whose id is already taken."""

    def __init__(self, project_id: str) -> None:
        self.project_id = project_id
        super().__init__(f"Project '{project_id}' already exists")


class VersionConflictError(Exception):
    """Raised when a save was computed against a version that is no longer current."""

    def __init__(self, project_id: str, expected: int, actual: int) -> None:
        self.project_id = project_id
        self.expected_version = expected
        self.actual_version = actual
        super().__init__(
            f"Version conflict for project {project_id}: expected {expected}, on-disk {actual}"
        )


class RecordCorrupted(Exception):
    """Raised when a stored record exists but cannot be parsed or validated."""

    def __init__(self, path: str, reason: str, project_id: Optional[str] = None) -> None:
        self.path = path
        self.reason = reason
        self.project_id = project_id
        super().__init__(f"Record {path} is corrupted: {reason}")
