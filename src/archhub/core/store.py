"""File-based storage backend for projects, spec versions and features.

Provides process-safe persistence with:
- Atomic writes (temp+fsync+rename)
- Per-project file locking with timeout
- Monotonic version numbering with a diff per version
- Expired project-lock cleanup on load

Layout::

    <root>/
        .locks/<project_id>.lock
        <project_id>/
            project.json
            versions/<n>.json
            features/<feature_id>.json
"""

import json
import logging
import os
import tempfile
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Type, TypeVar, Union

from filelock import FileLock, Timeout
from pydantic import BaseModel, ValidationError

from archhub.core.changes.diff import diff_documents
from archhub.core.errors.storage import (
    InvalidIdentifierError,
    LockAcquisitionError,
    ProjectExistsError,
    ProjectNotFoundError,
    RecordCorrupted,
    VersionConflictError,
)
from archhub.core.errors.workflow import FeatureNotFoundError
from archhub.core.locking import ensure_user_owns_lock, is_lock_expired, utc_now
from archhub.core.spec.models import (
    Feature,
    FeatureStatus,
    Project,
    ProjectLock,
    Spec,
    Version,
    spec_to_data,
)

logger = logging.getLogger(__name__)

# Lock acquisition timeout (seconds)
LOCK_ACQUISITION_TIMEOUT = 5

PROJECT_FILE = "project.json"
VERSIONS_DIR = "versions"
FEATURES_DIR = "features"
LOCKS_DIR = ".locks"

_Model = TypeVar("_Model", bound=BaseModel)


def sanitize_id(item_id: str) -> str:
    """Sanitize ID to prevent path traversal attacks.

    Args:
        item_id: Raw identifier

    Returns:
        Sanitized identifier safe for filesystem use

    Raises:
        InvalidIdentifierError: If nothing usable remains after sanitizing
    """
    # Only allow alphanumeric, hyphens, underscores
    safe = "".join(c for c in item_id if c.isalnum() or c in "-_")
    if not safe:
        raise InvalidIdentifierError(item_id)
    return safe


class FileProjectStore:
    """File-based storage for projects and their history.

    Provides CRUD operations with atomic writes and per-project file locks.
    """

    def __init__(self, root: Union[str, Path], lock_timeout: float = LOCK_ACQUISITION_TIMEOUT) -> None:
        """Initialize storage backend.

        Args:
            root: Directory holding one sub-directory per project
            lock_timeout: Seconds to wait for a project's file lock
        """
        self.root = Path(root)
        self.lock_timeout = lock_timeout
        self.locks_path = self.root / LOCKS_DIR
        self.root.mkdir(parents=True, exist_ok=True)
        self.locks_path.mkdir(parents=True, exist_ok=True)

    # =========================================================================
    # Paths
    # =========================================================================

    def _project_dir(self, project_id: str) -> Path:
        return self.root / sanitize_id(project_id)

    def _project_path(self, project_id: str) -> Path:
        return self._project_dir(project_id) / PROJECT_FILE

    def _version_path(self, project_id: str, number: int) -> Path:
        return self._project_dir(project_id) / VERSIONS_DIR / f"{number}.json"

    def _feature_path(self, project_id: str, feature_id: str) -> Path:
        return self._project_dir(project_id) / FEATURES_DIR / f"{sanitize_id(feature_id)}.json"

    def _lock_path(self, project_id: str) -> Path:
        return self.locks_path / f"{sanitize_id(project_id)}.lock"

    # =========================================================================
    # Low-level I/O
    # =========================================================================

    @contextmanager
    def project_lock(self, project_id: str) -> Iterator[None]:
        """Hold the per-project file lock.

        Raises:
            LockAcquisitionError: If the lock is not acquired within the timeout
        """
        lock = FileLock(self._lock_path(project_id), timeout=self.lock_timeout)
        try:
            lock.acquire()
        except Timeout as exc:
            raise LockAcquisitionError(
                f"Failed to acquire lock for project {project_id} within {self.lock_timeout}s"
            ) from exc
        try:
            yield
        finally:
            lock.release()

    def _write_json(self, path: Path, data: Dict[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        # Atomic write: temp file + fsync + rename
        fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(data, f, indent=2, default=str)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, path)
        except Exception:
            # Clean up temp file on error
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise

    def _write_model(self, path: Path, model: BaseModel) -> None:
        self._write_json(path, model.model_dump(mode="json", by_alias=True))

    def _read_model(self, path: Path, model_type: Type[_Model]) -> _Model:
        try:
            return model_type.model_validate(json.loads(path.read_text()))
        except (json.JSONDecodeError, ValidationError) as exc:
            logger.warning("Failed to load record %s: %s", path, exc)
            raise RecordCorrupted(str(path), str(exc)) from exc

    def _read_project(self, project_id: str) -> Project:
        path = self._project_path(project_id)
        if not path.exists():
            raise ProjectNotFoundError(project_id)
        return self._read_model(path, Project)

    def _version_numbers(self, project_id: str) -> List[int]:
        versions_dir = self._project_dir(project_id) / VERSIONS_DIR
        if not versions_dir.is_dir():
            return []
        return sorted(int(p.stem) for p in versions_dir.glob("*.json") if p.stem.isdigit())

    # =========================================================================
    # Projects
    # =========================================================================

    def exists(self, project_id: str) -> bool:
        return self._project_path(project_id).exists()

    def list_projects(self) -> List[str]:
        """Ids of every stored project, sorted."""
        return sorted(
            p.parent.name for p in self.root.glob(f"*/{PROJECT_FILE}") if not p.parent.name.startswith(".")
        )

    def create_project(
        self,
        project_id: str,
        name: str = "",
        spec: Union[Spec, Dict[str, Any], None] = None,
        now: Optional[datetime] = None,
    ) -> Project:
        """Create a project with its initial spec.

        Raises:
            ProjectExistsError: If the project id is taken
            LockAcquisitionError: If lock acquisition times out
        """
        timestamp = now or utc_now()
        project = Project(
            id=sanitize_id(project_id),
            name=name or project_id,
            spec=spec_to_data(spec) if spec is not None else spec_to_data(Spec()),
            created_at=timestamp,
            updated_at=timestamp,
        )
        with self.project_lock(project.id):
            if self.exists(project.id):
                raise ProjectExistsError(project.id)
            self._write_model(self._project_path(project.id), project)

        logger.info("Created project %s", project.id)
        return project

    def load_project(self, project_id: str, now: Optional[datetime] = None) -> Project:
        """Load a project, clearing its lock record if it has expired.

        Raises:
            ProjectNotFoundError: If the project does not exist
            RecordCorrupted: If the project file cannot be parsed
            LockAcquisitionError: If lock acquisition times out
        """
        if not self.exists(project_id):
            raise ProjectNotFoundError(project_id)

        with self.project_lock(project_id):
            project = self._read_project(project_id)
            if project.lock is not None and is_lock_expired(project.lock, now):
                logger.debug("Project %s lock held by %s has expired, removing", project_id, project.lock.locked_by)
                project.lock = None
                self._write_model(self._project_path(project_id), project)
            return project

    def save_spec(
        self,
        project_id: str,
        spec: Union[Spec, Dict[str, Any]],
        created_by: str = "",
        now: Optional[datetime] = None,
        expected_version: Optional[int] = None,
        lock_user: Optional[str] = None,
    ) -> Version:
        """Replace a project's spec and record the replacement as a new version.

        The version carries the diff from the previous spec. Version numbers
        start at 1 and increase by one per save.

        Args:
            project_id: Target project
            spec: The new spec
            created_by: Collaborator recorded on the version
            now: Timestamp for the version and the project
            expected_version: The ``current_version`` the new spec was
                computed from; checked under the file lock when given
            lock_user: Collaborator who must be allowed under the project
                lock; checked under the file lock when given

        Raises:
            ProjectNotFoundError: If the project does not exist
            VersionConflictError: If another save landed after ``expected_version``
            ProjectLockedError: If another collaborator holds the project lock
            LockAcquisitionError: If lock acquisition times out
        """
        timestamp = now or utc_now()
        data = spec_to_data(spec)

        with self.project_lock(project_id):
            project = self._read_project(project_id)
            numbers = self._version_numbers(project_id)
            current = max(project.current_version, numbers[-1] if numbers else 0)
            if expected_version is not None and expected_version != current:
                raise VersionConflictError(project_id, expected_version, current)
            if lock_user is not None:
                ensure_user_owns_lock(project.lock, lock_user, project_id, now=timestamp)

            number = current + 1
            version = Version(
                number=number,
                spec=data,
                diff=diff_documents(project.spec, data) or {},
                created_by=created_by,
                created_at=timestamp,
            )
            self._write_model(self._version_path(project_id, number), version)

            project.spec = data
            project.current_version = number
            project.updated_at = timestamp
            self._write_model(self._project_path(project_id), project)

        logger.info(
            "Saved project %s spec as version %d",
            project_id,
            number,
            extra={"project_id": project_id, "version": number, "created_by": created_by},
        )
        return version

    def list_versions(self, project_id: str) -> List[Version]:
        """All versions of a project, oldest first.

        Raises:
            ProjectNotFoundError: If the project does not exist
        """
        if not self.exists(project_id):
            raise ProjectNotFoundError(project_id)
        return [
            self._read_model(self._version_path(project_id, n), Version)
            for n in self._version_numbers(project_id)
        ]

    def get_version(self, project_id: str, number: int) -> Optional[Version]:
        """A single version, or None if that number was never written."""
        if not self.exists(project_id):
            raise ProjectNotFoundError(project_id)
        path = self._version_path(project_id, number)
        if not path.exists():
            return None
        return self._read_model(path, Version)

    # =========================================================================
    # Project lock record
    # =========================================================================

    def claim_lock(self, project_id: str, lock: ProjectLock, now: Optional[datetime] = None) -> Project:
        """Store ``lock`` unless another collaborator holds an unexpired lock.

        The ownership check and the write share one critical section.

        Raises:
            ProjectLockedError: If the current lock belongs to someone else
        """
        with self.project_lock(project_id):
            project = self._read_project(project_id)
            ensure_user_owns_lock(project.lock, lock.locked_by, project_id, now=now)
            project.lock = lock
            self._write_model(self._project_path(project_id), project)
        logger.debug("Project %s locked by %s until %s", project_id, lock.locked_by, lock.expires_at)
        return project

    def release_lock(self, project_id: str, user_id: str, now: Optional[datetime] = None) -> bool:
        """Remove the project's lock record on behalf of ``user_id``.

        Returns:
            True if an unexpired lock was released, False if there was none

        Raises:
            ProjectLockedError: If the current lock belongs to someone else
        """
        with self.project_lock(project_id):
            project = self._read_project(project_id)
            if project.lock is None:
                return False
            released = not is_lock_expired(project.lock, now)
            if released:
                ensure_user_owns_lock(project.lock, user_id, project_id, now=now)
            project.lock = None
            self._write_model(self._project_path(project_id), project)
        if released:
            logger.debug("Project %s lock released by %s", project_id, user_id)
        return released

    # =========================================================================
    # Features
    # =========================================================================

    def save_feature(self, project_id: str, feature: Feature) -> Feature:
        """Create or overwrite a feature record."""
        if not self.exists(project_id):
            raise ProjectNotFoundError(project_id)
        with self.project_lock(project_id):
            self._write_model(self._feature_path(project_id, feature.id), feature)
        return feature

    def load_feature(self, project_id: str, feature_id: str) -> Optional[Feature]:
        """A feature record, or None if it does not exist."""
        if not self.exists(project_id):
            raise ProjectNotFoundError(project_id)
        path = self._feature_path(project_id, feature_id)
        if not path.exists():
            return None
        return self._read_model(path, Feature)

    def list_features(self, project_id: str) -> List[Feature]:
        if not self.exists(project_id):
            raise ProjectNotFoundError(project_id)
        features_dir = self._project_dir(project_id) / FEATURES_DIR
        if not features_dir.is_dir():
            return []
        return [self._read_model(p, Feature) for p in sorted(features_dir.glob("*.json"))]

    def update_feature_status(
        self,
        project_id: str,
        feature_id: str,
        status: FeatureStatus,
        now: Optional[datetime] = None,
    ) -> Feature:
        """Move a feature to ``status``.

        Raises:
            FeatureNotFoundError: If the feature does not exist
        """
        if not self.exists(project_id):
            raise ProjectNotFoundError(project_id)
        with self.project_lock(project_id):
            path = self._feature_path(project_id, feature_id)
            if not path.exists():
                raise FeatureNotFoundError(project_id, feature_id)
            feature = self._read_model(path, Feature)
            feature.status = status
            feature.updated_at = now or utc_now()
            self._write_model(path, feature)
        logger.debug("Feature %s in project %s is now %s", feature_id, project_id, status.value)
        return feature
