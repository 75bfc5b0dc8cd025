"""
Nexus Core FastAPI Application

Local command API used by the canvas front end.
Provides endpoints for asset caching, canvas persistence, upstream input
resolution, memory search, chat context assembly, JSON compression and
front-end log relay.
"""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from nexus_core.config import Config
from nexus_core.core.asset_cache import AssetCache
from nexus_core.core.canvas_store import CanvasStore, shutdown_canvas_save_worker
from nexus_core.models import (
    ChatMessage,
    ContextConfig,
    GraphEdge,
    GraphNode,
    MemoryItem,
    UpstreamInputs,
)
from nexus_core.services import ContextBuilder, MemoryRetriever, UpstreamGraphResolver
from nexus_core.utils import (
    CodecError,
    NexusError,
    SerializationError,
    SizeLimitExceededError,
    TransportError,
    ValidationError,
    compress_json,
    decompress_json,
    get_logger,
    relay_frontend_log,
    setup_logging,
)

# Global service instances
asset_cache: AssetCache | None = None
canvas_store: CanvasStore | None = None
memory_retriever: MemoryRetriever | None = None
graph_resolver = UpstreamGraphResolver()
context_builder = ContextBuilder()
logger = get_logger(__name__)


class CamelModel(BaseModel):
    """Request/response base accepting camelCase or snake_case keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Pydantic models for API
class CacheAssetRequest(CamelModel):
    """Request model for caching a remote image or media file."""

    url: str = Field(..., description="Remote URL")
    auth_token: str | None = Field(default=None, description="Optional bearer token")


class CacheAssetResponse(CamelModel):
    """Response model for asset caching."""

    path: str


class SaveCanvasRequest(CamelModel):
    """Request model for saving a canvas snapshot."""

    canvas: Any = Field(..., description="Whole canvas JSON document")


class CanvasResponse(CamelModel):
    """Response model for loading a canvas snapshot."""

    project_id: str
    canvas: Any | None = None


class UpstreamInputsRequest(CamelModel):
    """Request model for upstream input collection."""

    focus_node_id: str
    nodes: list[GraphNode] = Field(default_factory=list)
    edges: list[GraphEdge] = Field(default_factory=list)


class SearchMemoryRequest(CamelModel):
    """Request model for memory search."""

    query: str
    items: list[MemoryItem] = Field(default_factory=list)
    limit: int | None = Field(default=None, ge=1)
    min_score: float | None = None


class BuildMessagesRequest(CamelModel):
    """Request model for chat context assembly."""

    user_text: str
    system_prompt: str = ""
    conversation: list[ChatMessage] = Field(default_factory=list)
    memory_summary: str = ""
    memory_items: list[MemoryItem] = Field(default_factory=list)
    canvas_context: str = ""
    config: ContextConfig | None = None


class CompressRequest(CamelModel):
    """Request model for JSON compression."""

    value: Any = None


class DecompressRequest(CamelModel):
    """Request model for JSON decompression."""

    b64: str


class LogRequest(CamelModel):
    """Front-end log line."""

    level: str = "info"
    message: str
    context: str | None = None


class HealthResponse(CamelModel):
    """Health check response."""

    status: str
    services_initialized: bool
    canvas_dir: str | None = None
    cache_dir: str | None = None


def _http_error(error: NexusError) -> HTTPException:
    """Map a core error onto an HTTP error response."""
    if isinstance(error, ValidationError):
        code = 400
    elif isinstance(error, SizeLimitExceededError):
        code = 413
    elif isinstance(error, TransportError):
        code = 502
    elif isinstance(error, (SerializationError, CodecError)):
        code = 422
    else:
        code = 500
    return HTTPException(status_code=code, detail=error.message)


def _require_canvas_store() -> CanvasStore:
    if canvas_store is None:
        raise HTTPException(status_code=503, detail="Canvas store not initialized")
    return canvas_store


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown."""
    global asset_cache, canvas_store, memory_retriever

    # Load configuration from environment or use defaults
    config = Config.from_env()

    # Initialize logging with config
    setup_logging(
        level=config.logging.level,
        log_to_file=config.logging.log_to_file,
        log_dir=config.logging.log_dir,
        file_rotation=config.logging.file_rotation,
        file_retention=config.logging.file_retention,
        compression=config.logging.compression,
        serialize=config.logging.serialize,
    )

    logger.info("Starting Nexus Core server")
    logger.info(
        f"Configuration: canvas_dir={config.canvas_store.data_dir}, "
        f"cache_dir={config.asset_cache.cache_dir}, "
        f"debounce={config.canvas_store.debounce_ms}ms"
    )

    asset_cache = AssetCache(config.asset_cache)
    canvas_store = CanvasStore.from_config(config.canvas_store)
    memory_retriever = MemoryRetriever(config=config.memory_search)
    logger.info("Nexus Core services initialized")

    yield

    # Cleanup
    logger.info("Shutting down Nexus Core server")
    shutdown_canvas_save_worker()
    await asset_cache.close()
    asset_cache = None
    canvas_store = None
    memory_retriever = None
    logger.info("Cleanup complete")


# Create FastAPI app
app = FastAPI(
    title="Nexus Core API",
    description="Local support engine for the AI canvas: assets, canvas persistence and chat context",
    version="1.0.0",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Health check endpoint
@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy" if canvas_store else "initializing",
        services_initialized=canvas_store is not None and asset_cache is not None,
        canvas_dir=str(canvas_store.base_dir) if canvas_store else None,
        cache_dir=str(asset_cache.cache_dir) if asset_cache else None,
    )


# Asset endpoints
@app.post("/assets/image", response_model=CacheAssetResponse)
async def cache_remote_image(request: CacheAssetRequest):
    """
    Cache a remote image and return its local path.

    data: and blob: URLs are returned unchanged. Bodies above the image
    limit are rejected without writing anything.
    """
    if not asset_cache:
        raise HTTPException(status_code=503, detail="Asset cache not initialized")

    try:
        path = await asset_cache.cache_remote_image(request.url, request.auth_token)
        return CacheAssetResponse(path=path)
    except NexusError as e:
        raise _http_error(e) from e


@app.post("/assets/media", response_model=CacheAssetResponse)
async def cache_remote_media(request: CacheAssetRequest):
    """
    Cache a remote video or audio file and return its local path.

    The body is streamed to disk; the partial file is removed if it grows
    past the media limit.
    """
    if not asset_cache:
        raise HTTPException(status_code=503, detail="Asset cache not initialized")

    try:
        path = await asset_cache.cache_remote_media(request.url, request.auth_token)
        return CacheAssetResponse(path=path)
    except NexusError as e:
        raise _http_error(e) from e


# Canvas endpoints
@app.put("/canvas/{project_id}", status_code=204)
def save_project_canvas(project_id: str, request: SaveCanvasRequest):
    """
    Save a canvas snapshot synchronously.

    Returns once the snapshot is durably on disk. Use before app exit or
    whenever completion must be confirmed.
    """
    store = _require_canvas_store()
    try:
        store.save_now(project_id, request.canvas)
    except NexusError as e:
        raise _http_error(e) from e


@app.post("/canvas/{project_id}/enqueue", status_code=202)
def enqueue_save_project_canvas(project_id: str, request: SaveCanvasRequest):
    """
    Queue a canvas snapshot for the debounced background writer.

    Rapid saves for the same project are coalesced into one write once the
    queue has been idle for the debounce period.
    """
    store = _require_canvas_store()
    try:
        store.enqueue_save(project_id, request.canvas)
        return {"projectId": project_id, "queued": True}
    except NexusError as e:
        raise _http_error(e) from e


@app.get("/canvas/{project_id}", response_model=CanvasResponse)
def load_project_canvas(project_id: str):
    """Load a canvas snapshot; canvas is null when nothing is saved."""
    store = _require_canvas_store()
    try:
        return CanvasResponse(project_id=project_id, canvas=store.load(project_id))
    except NexusError as e:
        logger.error(f"Error loading canvas: {e}")
        raise _http_error(e) from e


@app.delete("/canvas/{project_id}")
def delete_project_canvas(project_id: str):
    """Delete a canvas snapshot. Deleting a missing snapshot succeeds."""
    store = _require_canvas_store()
    try:
        store.delete(project_id)
        return {"projectId": project_id, "deleted": True}
    except NexusError as e:
        logger.error(f"Error deleting canvas: {e}")
        raise _http_error(e) from e


# Graph endpoint
@app.post("/graph/upstream-inputs", response_model=UpstreamInputs)
def graph_collect_upstream_inputs(request: UpstreamInputsRequest):
    """
    Collect text and image nodes wired into the config nodes fed by the focus node.
    """
    return graph_resolver.collect_upstream_inputs(
        request.focus_node_id, request.nodes, request.edges
    )


# Memory endpoint
@app.post("/memory/search", response_model=list[MemoryItem])
def search_memory(request: SearchMemoryRequest):
    """
    Rank memory items by token overlap, importance and recency.
    """
    retriever = memory_retriever or MemoryRetriever()
    return retriever.search(
        request.query,
        request.items,
        limit=request.limit,
        min_score=request.min_score,
    )


# Chat context endpoint
@app.post("/chat/messages", response_model=list[ChatMessage])
def build_chat_messages(request: BuildMessagesRequest):
    """
    Assemble the size-bounded message list for one assistant turn.
    """
    return context_builder.build(
        user_text=request.user_text,
        system_prompt=request.system_prompt,
        conversation=request.conversation,
        memory_summary=request.memory_summary,
        memory_items=request.memory_items,
        canvas_context=request.canvas_context,
        config=request.config,
    )


# Codec endpoints
@app.post("/codec/compress")
def compress_json_lz4_base64(request: CompressRequest):
    """Compress a JSON value to base64-encoded, size-prefixed lz4."""
    try:
        return {"b64": compress_json(request.value)}
    except NexusError as e:
        raise _http_error(e) from e


@app.post("/codec/decompress")
def decompress_json_lz4_base64(request: DecompressRequest):
    """Decode a payload produced by /codec/compress."""
    try:
        return {"value": decompress_json(request.b64)}
    except NexusError as e:
        raise _http_error(e) from e


# Log relay endpoint
@app.post("/log", status_code=204)
def log_frontend(request: LogRequest):
    """Write a front-end log line into the server log."""
    relay_frontend_log(request.level, request.message, request.context)


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Nexus Core API",
        "version": "1.0.0",
        "description": "Local support engine for the AI canvas",
        "docs": "/docs",
        "health": "/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app:app", host="127.0.0.1", port=8000, reload=True, log_level="info")
