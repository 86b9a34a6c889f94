from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Protocol, runtime_checkable

from notemancy_api.domain.entities import NoteInfo


@runtime_checkable
class NoteStore(Protocol):
    def vault_dir(self, vault: str) -> Path:
        ...

    def list_notes(self, vault: str) -> list[NoteInfo]:
        ...

    def read_note(self, vault: str, relpath: str, include_frontmatter: bool) -> str:
        ...

    def get_title(self, vault: str, relpath: str) -> str:
        ...

    def modified_at(self, vault: str, relpath: str) -> float:
        ...

    def write_note(self, vault: str, relpath: str, content: str) -> str:
        ...


@runtime_checkable
class SearchBackend(Protocol):
    """Narrow async view of the remote search engine.

    Mutating calls return the engine's task summary (``{"taskUid": ...}``);
    ``wait_for_task`` polls it to a terminal state.
    """

    async def get_index(self, uid: str) -> Optional[dict[str, Any]]:
        ...

    async def create_index(self, uid: str, primary_key: str) -> dict[str, Any]:
        ...

    async def update_settings(self, uid: str, settings: dict[str, Any]) -> dict[str, Any]:
        ...

    async def add_documents(self, uid: str, documents: list[dict[str, Any]], primary_key: str) -> dict[str, Any]:
        ...

    async def delete_document(self, uid: str, document_id: str) -> dict[str, Any]:
        ...

    async def document_ids(self, uid: str) -> set[str]:
        ...

    async def search(self, uid: str, params: dict[str, Any]) -> dict[str, Any]:
        ...

    async def wait_for_task(self, task_uid: int, timeout_s: float) -> dict[str, Any]:
        ...
