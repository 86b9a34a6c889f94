from __future__ import annotations

import logging
from typing import Any, Optional

from ..domain.entities import ResyncReport, SearchDocument, SearchResponse, SearchResult
from ..domain.exceptions import NotReady, RemoteTaskFailure
from ..domain.ports import NoteStore, SearchBackend
from .ids import id_for, is_document_id, relpath_for
from .snippet import fallback_snippet

logger = logging.getLogger("notemancy.search")

PRIMARY_KEY = "id"
DEFAULT_TASK_TIMEOUT_S = 60.0
INDEX_SETTINGS: dict[str, Any] = {
    "searchableAttributes": ["title", "content", "relpath"],
    "displayedAttributes": ["id", "relpath", "title", "content"],
    "filterableAttributes": ["relpath"],
    "rankingRules": ["words", "typo", "proximity", "attribute", "sort", "exactness"],
}
CROP_LENGTH = 30


def relpath_filter(relpath: str) -> str:
    escaped = relpath.replace("\\", "\\\\").replace("'", "\\'")
    return f"relpath = '{escaped}'"


def build_document(store: NoteStore, vault: str, relpath: str, title: str | None = None) -> SearchDocument:
    content = store.read_note(vault, relpath, False)
    if title is None:
        title = store.get_title(vault, relpath)
    return SearchDocument(id=id_for(relpath), relpath=relpath, title=title, content=content)


class SearchSynchronizer:
    """Keeps a remote full-text index in step with the notes of a vault.

    The backend handle is created once at startup and shared; ``configure()``
    must finish before any document operation is accepted.
    """

    def __init__(
        self,
        client: Optional[SearchBackend],
        index_uid: str = "notes",
        task_timeout_s: float = DEFAULT_TASK_TIMEOUT_S,
    ) -> None:
        self._client = client
        self.index_uid = index_uid
        self.task_timeout_s = task_timeout_s
        self._configured = False

    def ready(self) -> bool:
        return self._client is not None and self._configured

    def _require_client(self) -> SearchBackend:
        if self._client is None:
            raise NotReady("search_disabled", index=self.index_uid)
        return self._client

    def _require_ready(self) -> SearchBackend:
        client = self._require_client()
        if not self._configured:
            raise NotReady("search_not_configured", index=self.index_uid)
        return client

    async def _await_task(self, client: SearchBackend, task: dict[str, Any], action: str) -> dict[str, Any]:
        task_uid = task.get("taskUid", task.get("uid"))
        if task_uid is None:
            raise RemoteTaskFailure("task_missing", action=action, response=task)
        done = await client.wait_for_task(task_uid, self.task_timeout_s)
        status = done.get("status")
        if status != "succeeded":
            logger.warning(
                "task_failed",
                extra={"action": action, "task_uid": task_uid, "status": status, "error": done.get("error")},
            )
            raise RemoteTaskFailure("task_failed", action=action, task_uid=task_uid, status=status, error=done.get("error"))
        return done

    async def configure(self) -> None:
        client = self._require_client()
        if await client.get_index(self.index_uid) is None:
            task = await client.create_index(self.index_uid, PRIMARY_KEY)
            await self._await_task(client, task, "create_index")
        task = await client.update_settings(self.index_uid, INDEX_SETTINGS)
        await self._await_task(client, task, "update_settings")
        self._configured = True
        logger.info("search_configured", extra={"index": self.index_uid})

    async def upsert(self, document: SearchDocument) -> None:
        client = self._require_ready()
        task = await client.add_documents(self.index_uid, [document.to_payload()], PRIMARY_KEY)
        await self._await_task(client, task, "upsert")

    async def index_note(self, store: NoteStore, vault: str, relpath: str) -> SearchDocument:
        self._require_ready()
        document = build_document(store, vault, relpath)
        await self.upsert(document)
        return document

    async def resync(self, store: NoteStore, vault: str) -> ResyncReport:
        """Add every note the index does not hold yet; existing ids are left alone."""
        client = self._require_ready()
        notes = store.list_notes(vault)
        indexed = await client.document_ids(self.index_uid)

        pending: list[SearchDocument] = []
        for note in notes:
            if id_for(note.relpath) in indexed:
                continue
            pending.append(build_document(store, vault, note.relpath, note.title))

        if pending:
            task = await client.add_documents(self.index_uid, [d.to_payload() for d in pending], PRIMARY_KEY)
            await self._await_task(client, task, "resync")
        logger.info("resync", extra={"vault": vault, "total": len(notes), "added": len(pending)})
        return ResyncReport(total=len(notes), added=len(pending))

    async def _ids_for_relpath(self, client: SearchBackend, relpath: str) -> list[str]:
        res = await client.search(
            self.index_uid,
            {"q": "", "filter": relpath_filter(relpath), "attributesToRetrieve": [PRIMARY_KEY]},
        )
        return [str(hit[PRIMARY_KEY]) for hit in res.get("hits", []) if PRIMARY_KEY in hit]

    async def delete(self, id_or_relpath: str) -> int:
        """Remove a document by id, or every document indexed under a relpath.

        Returns the number of delete requests issued; an unknown relpath is a no-op.
        """
        client = self._require_ready()
        if is_document_id(id_or_relpath):
            ids = [id_or_relpath]
        else:
            ids = await self._ids_for_relpath(client, id_or_relpath)

        for document_id in ids:
            task = await client.delete_document(self.index_uid, document_id)
            await self._await_task(client, task, "delete")
        return len(ids)

    async def query(
        self,
        text: str,
        limit: int = 20,
        highlight_tags: Optional[tuple[str, str]] = None,
    ) -> SearchResponse:
        client = self._require_ready()
        params: dict[str, Any] = {"q": text, "limit": limit}
        if highlight_tags:
            pre, post = highlight_tags
            params.update(
                {
                    "attributesToHighlight": ["content"],
                    "attributesToCrop": ["content"],
                    "cropLength": CROP_LENGTH,
                    "highlightPreTag": pre,
                    "highlightPostTag": post,
                }
            )
        res = await client.search(self.index_uid, params)

        results: list[SearchResult] = []
        for hit in res.get("hits", []):
            formatted = hit.get("_formatted") or {}
            snippet = formatted.get("content")
            if not snippet:
                snippet = fallback_snippet(hit.get("content") or "", text)
            path = hit.get("relpath") or relpath_for(str(hit.get(PRIMARY_KEY, ""))) or ""
            results.append(SearchResult(title=hit.get("title") or "", path=path, snippet=snippet))
        return SearchResponse(results=results)
