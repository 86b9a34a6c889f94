from __future__ import annotations

import asyncio
import re
from pathlib import Path
from typing import Any, Optional

import pytest

from notemancy_api.indexing.search import SearchSynchronizer
from notemancy_api.vault import FileVault

_FILTER_RE = re.compile(r"^relpath = '((?:[^'\\]|\\.)*)'$")


class FakeSearchEngine:
    """In-memory stand-in for the Meilisearch backend.

    Mutations are applied immediately and recorded as succeeded tasks, unless
    ``fail_next`` is set, in which case the next task is reported as failed.
    """

    def __init__(self) -> None:
        self.indexes: dict[str, dict[str, Any]] = {}
        self.tasks: dict[int, dict[str, Any]] = {}
        self.calls: list[tuple[str, Any]] = []
        self.fail_next: Optional[str] = None

    def _task(self, kind: str, apply) -> dict[str, Any]:
        uid = len(self.tasks) + 1
        if self.fail_next:
            task = {"uid": uid, "type": kind, "status": "failed", "error": {"message": self.fail_next}}
            self.fail_next = None
        else:
            apply()
            task = {"uid": uid, "type": kind, "status": "succeeded", "error": None}
        self.tasks[uid] = task
        return {"taskUid": uid, "status": "enqueued"}

    def docs(self, uid: str = "notes") -> dict[str, dict[str, Any]]:
        return self.indexes.get(uid, {}).get("docs", {})

    async def get_index(self, uid: str) -> Optional[dict[str, Any]]:
        self.calls.append(("get_index", uid))
        index = self.indexes.get(uid)
        return {"uid": uid, "primaryKey": index["primaryKey"]} if index else None

    async def create_index(self, uid: str, primary_key: str) -> dict[str, Any]:
        self.calls.append(("create_index", uid))
        return self._task(
            "indexCreation",
            lambda: self.indexes.setdefault(uid, {"primaryKey": primary_key, "settings": {}, "docs": {}}),
        )

    async def update_settings(self, uid: str, settings: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(("update_settings", uid))
        return self._task("settingsUpdate", lambda: self.indexes[uid]["settings"].update(settings))

    async def add_documents(self, uid: str, documents: list[dict[str, Any]], primary_key: str) -> dict[str, Any]:
        self.calls.append(("add_documents", [d[primary_key] for d in documents]))

        def apply() -> None:
            for doc in documents:
                self.indexes[uid]["docs"][doc[primary_key]] = dict(doc)

        return self._task("documentAdditionOrUpdate", apply)

    async def delete_document(self, uid: str, document_id: str) -> dict[str, Any]:
        self.calls.append(("delete_document", document_id))
        return self._task("documentDeletion", lambda: self.indexes[uid]["docs"].pop(document_id, None))

    async def document_ids(self, uid: str) -> set[str]:
        return set(self.docs(uid))

    async def search(self, uid: str, params: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(("search", params))
        hits: list[dict[str, Any]] = []
        flt = params.get("filter")
        wanted = None
        if flt:
            m = _FILTER_RE.match(flt)
            assert m, flt
            wanted = re.sub(r"\\(.)", r"\1", m.group(1))
        terms = params.get("q", "").lower().split()

        for doc in self.docs(uid).values():
            if wanted is not None and doc["relpath"] != wanted:
                continue
            hay = f"{doc['title']}\n{doc['content']}\n{doc['relpath']}".lower()
            if terms and not any(t in hay for t in terms):
                continue
            hit = dict(doc)
            pre = params.get("highlightPreTag")
            if pre and terms:
                post = params["highlightPostTag"]
                pattern = re.compile("|".join(re.escape(t) for t in terms), re.IGNORECASE)
                hit["_formatted"] = {"content": pattern.sub(lambda mm: f"{pre}{mm.group(0)}{post}", doc["content"])}
            if "attributesToRetrieve" in params:
                hit = {k: v for k, v in hit.items() if k in params["attributesToRetrieve"]}
            hits.append(hit)
        return {"hits": hits[: params.get("limit", 20)], "query": params.get("q", "")}

    async def wait_for_task(self, task_uid: int, timeout_s: float) -> dict[str, Any]:
        return self.tasks[task_uid]


@pytest.fixture
def vault_dir(tmp_path) -> Path:
    root = tmp_path / "vault"
    root.mkdir()
    return root


@pytest.fixture
def make_note(vault_dir):
    def write(relpath: str, content: str) -> Path:
        path = vault_dir / relpath
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return write


@pytest.fixture
def store(vault_dir) -> FileVault:
    return FileVault(vault_dir)


@pytest.fixture
def engine() -> FakeSearchEngine:
    return FakeSearchEngine()


@pytest.fixture
def synchronizer(engine) -> SearchSynchronizer:
    sync = SearchSynchronizer(engine, index_uid="notes")
    asyncio.run(sync.configure())
    return sync
