"""
Durable per-project canvas snapshot storage.

Each project is one JSON document at {base_dir}/{sha256(project_id)}.json.
Writes go to a temporary sibling and are renamed over the target, so a
reader sees either the previous snapshot, the new one, or nothing.
"""

import hashlib
import json
import os
from pathlib import Path
from typing import Any

from nexus_core.config import CanvasStoreConfig
from nexus_core.core.canvas_store.save_worker import get_canvas_save_worker, validate_project_id
from nexus_core.utils.exceptions import SerializationError, StorageError
from nexus_core.utils.logger import get_logger

logger = get_logger(__name__)


def project_key(project_id: str) -> str:
    """Lower-case hex SHA-256 of the project id."""
    return hashlib.sha256(project_id.encode("utf-8")).hexdigest()


class CanvasStore:
    """
    File-backed canvas snapshot store.

    Usage:
        store = CanvasStore("data/nexus-canvas")
        store.save_now("project-1", {"nodes": [], "edges": []})
        snapshot = store.load("project-1")
    """

    def __init__(self, base_dir: str | Path = "data/nexus-canvas", debounce_ms: int = 650):
        """
        Initialize store.

        Args:
            base_dir: Directory holding snapshot files (created on demand)
            debounce_ms: Idle period the save worker waits before flushing
        """
        self.base_dir = Path(base_dir)
        self.debounce_ms = debounce_ms

    @classmethod
    def from_config(cls, config: CanvasStoreConfig) -> "CanvasStore":
        """Create a store from configuration."""
        return cls(config.data_dir, debounce_ms=config.debounce_ms)

    def _ensure_dir(self) -> Path:
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create canvas directory {self.base_dir}: {e}") from e
        return self.base_dir

    def path_for(self, project_id: str) -> Path:
        """Snapshot path for a project."""
        return self._ensure_dir() / f"{project_key(project_id)}.json"

    def save_now(self, project_id: str, snapshot: Any) -> Path:
        """
        Durably replace a project's snapshot.

        Args:
            project_id: Project identifier
            snapshot: JSON-compatible canvas document

        Returns:
            Path of the written snapshot

        Raises:
            ValidationError: Blank project id (checked before any I/O)
            SerializationError: Snapshot is not JSON serializable
            StorageError: Write or rename failed
        """
        validate_project_id(project_id)

        try:
            payload = json.dumps(snapshot, ensure_ascii=False, allow_nan=False).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise SerializationError(
                f"Canvas snapshot is not JSON serializable: {e}",
                context={"project_id": project_id},
            ) from e

        path = self.path_for(project_id)
        tmp = path.with_name(f"{path.name}.tmp.{os.getpid()}")
        try:
            tmp.write_bytes(payload)
            os.replace(tmp, path)
        except OSError as e:
            tmp.unlink(missing_ok=True)
            logger.bind(project_id=project_id, path=str(path), error=str(e)).error(
                "Failed to save canvas snapshot"
            )
            raise StorageError(
                f"Failed to save canvas snapshot: {e}", context={"project_id": project_id}
            ) from e

        logger.debug(f"Saved canvas {path.name} ({len(payload)} bytes)")
        return path

    def load(self, project_id: str) -> Any | None:
        """
        Read a project's snapshot.

        Returns:
            The stored document, or None when the id is blank or nothing is saved

        Raises:
            SerializationError: Stored file is not valid JSON
            StorageError: File could not be read
        """
        if project_id is None or not project_id.strip():
            return None

        path = self.path_for(project_id)
        if not path.exists():
            return None

        try:
            raw = path.read_bytes()
        except OSError as e:
            raise StorageError(
                f"Failed to read canvas snapshot: {e}", context={"project_id": project_id}
            ) from e

        try:
            return json.loads(raw)
        except ValueError as e:
            raise SerializationError(
                f"Stored canvas snapshot is not valid JSON: {e}",
                context={"project_id": project_id, "path": str(path)},
            ) from e

    def delete(self, project_id: str) -> None:
        """
        Remove a project's snapshot. Blank ids and missing files are ignored.

        Raises:
            StorageError: File exists but could not be removed
        """
        if project_id is None or not project_id.strip():
            return

        path = self.path_for(project_id)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(
                f"Failed to delete canvas snapshot: {e}", context={"project_id": project_id}
            ) from e

    def enqueue_save(self, project_id: str, snapshot: Any) -> None:
        """
        Hand a snapshot to the process-wide save worker (fire-and-forget).

        Raises:
            ValidationError: Blank project id
            SerializationError: Snapshot cannot be copied
            StorageError: The save queue has been closed
        """
        validate_project_id(project_id)
        get_canvas_save_worker(self).enqueue(project_id, snapshot, store=self)
