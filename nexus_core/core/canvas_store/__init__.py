"""
Canvas snapshot persistence.

Available components:
- CanvasStore: durable one-file-per-project JSON storage
- CanvasSaveWorker: debounced, coalescing background writer
"""

from nexus_core.core.canvas_store.canvas_store import CanvasStore, project_key
from nexus_core.core.canvas_store.save_worker import (
    CanvasSaveWorker,
    get_canvas_save_worker,
    shutdown_canvas_save_worker,
    validate_project_id,
)

__all__ = [
    "CanvasStore",
    "CanvasSaveWorker",
    "get_canvas_save_worker",
    "shutdown_canvas_save_worker",
    "project_key",
    "validate_project_id",
]
