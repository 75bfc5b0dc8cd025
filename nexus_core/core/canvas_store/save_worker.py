"""
Debounced, coalescing canvas save worker.

One background thread per process owns a mailbox and a map of pending
snapshots keyed by store directory and project id. Every message carries a
private copy of the snapshot together with the store it belongs to, replaces
the pending entry for that project and restarts the idle wait. Only after a
full idle period without messages are all pending snapshots written, one at
a time, by the worker thread itself. Closing the mailbox triggers one final
flush.

Flushing happens only when the mailbox goes quiet, so continuous traffic
postpones writes until it stops.
"""

import atexit
import copy
import queue
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Any

from nexus_core.utils.exceptions import SerializationError, StorageError, ValidationError
from nexus_core.utils.logger import get_logger

if TYPE_CHECKING:
    from nexus_core.core.canvas_store.canvas_store import CanvasStore

logger = get_logger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.65

_CLOSE = object()


def validate_project_id(project_id: str | None) -> str:
    """
    Reject empty or whitespace-only project ids.

    Raises:
        ValidationError: If the id is blank
    """
    if project_id is None or not project_id.strip():
        raise ValidationError("projectId must not be empty")
    return project_id


class CanvasSaveWorker:
    """
    Single-threaded coalescing writer in front of one or more CanvasStores.

    Writes are strictly sequential. Failures for one project are logged and
    do not stop the rest of the batch.
    """

    def __init__(
        self,
        store: "CanvasStore",
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
    ):
        """
        Start the worker thread.

        Args:
            store: Default store for messages that do not name their own
            debounce_seconds: Idle period before pending snapshots are flushed
        """
        self.store = store
        self.debounce_seconds = debounce_seconds
        self._mailbox: queue.Queue = queue.Queue()
        self._pending: dict[tuple[Path, str], tuple["CanvasStore", Any]] = {}
        self._closed = False
        self._close_lock = threading.Lock()
        self._thread = threading.Thread(
            target=self._run, name="canvas-save-worker", daemon=True
        )
        self._thread.start()

    @property
    def is_alive(self) -> bool:
        return self._thread.is_alive()

    @property
    def closed(self) -> bool:
        return self._closed

    def enqueue(
        self, project_id: str, snapshot: Any, store: "CanvasStore | None" = None
    ) -> None:
        """
        Queue a copy of a snapshot for the next flush. Returns immediately.

        Later changes to the caller's snapshot do not affect what is written.

        Args:
            project_id: Project identifier
            snapshot: JSON-compatible canvas document
            store: Store to write through; defaults to the worker's store

        Raises:
            ValidationError: Blank project id
            SerializationError: Snapshot cannot be copied
            StorageError: The worker has been closed
        """
        validate_project_id(project_id)
        target = store if store is not None else self.store
        try:
            owned = copy.deepcopy(snapshot)
        except (TypeError, copy.Error) as e:
            raise SerializationError(
                f"Canvas snapshot cannot be copied: {e}", context={"project_id": project_id}
            ) from e

        with self._close_lock:
            if self._closed:
                raise StorageError("Canvas save queue is closed", context={"project_id": project_id})
            self._mailbox.put((target, project_id, owned))

    def close(self, timeout: float | None = None) -> None:
        """
        Close the mailbox and wait for the final flush.

        Safe to call more than once.

        Args:
            timeout: Maximum seconds to wait for the worker thread
        """
        with self._close_lock:
            if not self._closed:
                self._closed = True
                self._mailbox.put(_CLOSE)
        if threading.current_thread() is not self._thread:
            self._thread.join(timeout)

    def _run(self) -> None:
        logger.debug(f"Canvas save worker started (debounce={self.debounce_seconds}s)")
        while True:
            try:
                message = self._mailbox.get(timeout=self.debounce_seconds)
            except queue.Empty:
                self._flush()
                continue

            if message is _CLOSE:
                break

            store, project_id, snapshot = message
            self._pending[(store.base_dir, project_id)] = (store, snapshot)

        self._flush()
        logger.debug("Canvas save worker stopped")

    def _flush(self) -> None:
        if not self._pending:
            return

        batch, self._pending = self._pending, {}
        logger.debug(f"Flushing {len(batch)} canvas snapshot(s)")
        for (base_dir, project_id), (store, snapshot) in batch.items():
            try:
                store.save_now(project_id, snapshot)
            except Exception as e:
                logger.bind(
                    project_id=project_id,
                    base_dir=str(base_dir),
                    error_type=type(e).__name__,
                    error=str(e),
                ).warning("Canvas flush failed for one project")


_worker: CanvasSaveWorker | None = None
_worker_lock = threading.Lock()


def get_canvas_save_worker(store: "CanvasStore") -> CanvasSaveWorker:
    """
    Return the process-wide save worker, creating it on first use.

    The first caller's debounce setting wins. Snapshots queued through
    CanvasStore.enqueue_save name their own store, so every store writes to
    its own directory through the shared worker. The worker is closed (and
    its pending snapshots flushed) at interpreter exit.
    """
    global _worker
    with _worker_lock:
        if _worker is None:
            debounce_ms = getattr(store, "debounce_ms", None)
            debounce = debounce_ms / 1000.0 if debounce_ms else DEFAULT_DEBOUNCE_SECONDS
            _worker = CanvasSaveWorker(store, debounce_seconds=debounce)
            atexit.register(_worker.close)
        return _worker


def shutdown_canvas_save_worker(timeout: float | None = None) -> None:
    """Flush and stop the process-wide worker, if one was started."""
    global _worker
    with _worker_lock:
        worker, _worker = _worker, None
    if worker is not None:
        atexit.unregister(worker.close)
        worker.close(timeout)
