from __future__ import annotations

import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from notemancy_api.config import Settings, load_settings
from notemancy_api.domain.exceptions import (
    EmptyVault,
    IOFailure,
    NotemancyError,
    NotReady,
    PathError,
    RemoteTaskFailure,
)
from notemancy_api.domain.parsing import note_content
from notemancy_api.domain.ports import NoteStore
from notemancy_api.domain.schemas import (
    NoteContentOut,
    ResyncOut,
    SearchResponseOut,
    SearchResultOut,
    UploadNoteIn,
    UploadNoteOut,
)
from notemancy_api.indexing.meili import MeiliClient
from notemancy_api.indexing.search import SearchSynchronizer
from notemancy_api.tree import build_tree
from notemancy_api.vault import FileVault

logger = logging.getLogger("notemancy.api")

_NOT_FOUND_CODES = {"note_not_found", "vault_not_found"}


def _status_for(error: NotemancyError) -> int:
    if isinstance(error, PathError):
        return 400
    if isinstance(error, IOFailure):
        return 404 if error.code in _NOT_FOUND_CODES else 500
    if isinstance(error, EmptyVault):
        return 404
    if isinstance(error, NotReady):
        return 503
    if isinstance(error, RemoteTaskFailure):
        return 502
    return 500


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[NoteStore] = None,
    search: Optional[SearchSynchronizer] = None,
) -> FastAPI:
    settings = settings or load_settings()
    store = store or FileVault(settings.vault_dir, name=settings.vault_name)
    vault_name = settings.vault_name

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client: MeiliClient | None = None
        if search is None and settings.meili_url:
            client = MeiliClient(settings.meili_url, settings.meili_api_key)
            app.state.search = SearchSynchronizer(
                client,
                index_uid=settings.meili_index,
                task_timeout_s=settings.meili_task_timeout_s,
            )
            try:
                await app.state.search.configure()
            except RemoteTaskFailure as e:
                logger.warning("search_configure_failed", extra={"error": str(e)})
        try:
            yield
        finally:
            if client is not None:
                await client.aclose()

    app = FastAPI(title="Notemancy API", version="0.1.0", lifespan=lifespan)
    app.state.search = search or SearchSynchronizer(None, index_uid=settings.meili_index)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["Authorization", "Accept", "Content-Type"],
    )

    @app.middleware("http")
    async def request_id_and_logging(request: Request, call_next):
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            dt_ms = (time.perf_counter() - start) * 1000.0
            logger.exception("request_error", extra={"rid": request_id, "path": request.url.path, "ms": dt_ms})
            return JSONResponse(
                status_code=500,
                content={"detail": "internal_error", "request_id": request_id},
                headers={"X-Request-ID": request_id},
            )

        dt_ms = (time.perf_counter() - start) * 1000.0
        fields = {
            "rid": request_id,
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "ms": dt_ms,
        }
        if settings.api_debug_log:
            fields["query"] = request.url.query
        logger.info("request", extra=fields)
        response.headers["X-Request-ID"] = request_id
        return response

    @app.exception_handler(NotemancyError)
    async def notemancy_error(request: Request, exc: NotemancyError):
        status = _status_for(exc)
        if status >= 500:
            logger.warning(
                "request_failed",
                extra={"rid": getattr(request.state, "request_id", None), "code": exc.code, "error": str(exc)},
            )
        return JSONResponse(status_code=status, content={"detail": exc.code})

    @app.get("/health")
    def health():
        return {"ok": True}

    @app.get("/notes/tree")
    def notes_tree():
        nodes = build_tree(store.vault_dir(vault_name), store, vault_name)
        return [n.to_dict() for n in nodes]

    @app.get("/notes/content", response_model=NoteContentOut)
    def notes_content(relpath: str):
        raw = store.read_note(vault_name, relpath, True)
        frontmatter, content = note_content(raw, store.modified_at(vault_name, relpath))
        try:
            title = store.get_title(vault_name, relpath)
        except NotemancyError:
            title = ""
        return NoteContentOut(title=title, frontmatter=frontmatter, content=content)

    @app.post("/notes/upload", response_model=UploadNoteOut)
    async def upload_note(payload: UploadNoteIn, request: Request):
        relpath = store.write_note(vault_name, payload.relpath, payload.content)
        logger.info("note_upload", extra={"rid": request.state.request_id, "relpath": relpath})

        indexed = False
        if app.state.search.ready():
            await app.state.search.index_note(store, vault_name, relpath)
            indexed = True
        return UploadNoteOut(relpath=relpath, indexed=indexed)

    @app.get("/search", response_model=SearchResponseOut)
    async def search_notes(
        q: str,
        limit: int = Query(20, ge=1, le=100),
        highlight_pre: Optional[str] = None,
        highlight_post: Optional[str] = None,
    ):
        needle = q.strip()
        if not needle:
            return SearchResponseOut(results=[])
        tags = (highlight_pre, highlight_post) if highlight_pre and highlight_post else None
        response = await app.state.search.query(needle, limit=limit, highlight_tags=tags)
        return SearchResponseOut(results=[SearchResultOut(**r.__dict__) for r in response.results])

    @app.post("/admin/resync", response_model=ResyncOut)
    async def admin_resync(request: Request):
        logger.info("resync_requested", extra={"rid": request.state.request_id, "vault": vault_name})
        report = await app.state.search.resync(store, vault_name)
        return ResyncOut(total=report.total, added=report.added)

    return app
