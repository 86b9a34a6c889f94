from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import httpx

from ..domain.exceptions import RemoteTaskFailure

logger = logging.getLogger("notemancy.search")

TERMINAL_STATUSES = {"succeeded", "failed", "canceled"}
_PAGE_SIZE = 1000


class MeiliClient:
    """Minimal async Meilisearch client over a single shared ``httpx.AsyncClient``."""

    def __init__(
        self,
        url: str,
        api_key: str | None = None,
        *,
        timeout_s: float = 30.0,
        poll_interval_s: float = 0.05,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._http = httpx.AsyncClient(base_url=url.rstrip("/"), headers=headers, timeout=timeout_s, transport=transport)
        self.poll_interval_s = poll_interval_s

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, path: str, *, allow_404: bool = False, **kwargs: Any) -> Optional[Any]:
        try:
            resp = await self._http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise RemoteTaskFailure("remote_request_failed", method=method, path=path, reason=str(e)) from e

        if resp.status_code == 404 and allow_404:
            return None
        if resp.status_code >= 400:
            try:
                detail = resp.json()
            except ValueError:
                detail = resp.text
            raise RemoteTaskFailure(f"remote_http_{resp.status_code}", method=method, path=path, error=detail)

        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as e:
            raise RemoteTaskFailure("remote_bad_response", method=method, path=path) from e

    async def get_index(self, uid: str) -> Optional[dict[str, Any]]:
        return await self._request("GET", f"/indexes/{uid}", allow_404=True)

    async def create_index(self, uid: str, primary_key: str) -> dict[str, Any]:
        return await self._request("POST", "/indexes", json={"uid": uid, "primaryKey": primary_key})

    async def update_settings(self, uid: str, settings: dict[str, Any]) -> dict[str, Any]:
        return await self._request("PATCH", f"/indexes/{uid}/settings", json=settings)

    async def add_documents(self, uid: str, documents: list[dict[str, Any]], primary_key: str) -> dict[str, Any]:
        return await self._request(
            "POST",
            f"/indexes/{uid}/documents",
            params={"primaryKey": primary_key},
            json=documents,
        )

    async def delete_document(self, uid: str, document_id: str) -> dict[str, Any]:
        return await self._request("DELETE", f"/indexes/{uid}/documents/{document_id}")

    async def document_ids(self, uid: str) -> set[str]:
        ids: set[str] = set()
        offset = 0
        while True:
            page = await self._request(
                "GET",
                f"/indexes/{uid}/documents",
                params={"fields": "id", "limit": _PAGE_SIZE, "offset": offset},
            )
            results = page.get("results") or []
            ids.update(str(doc["id"]) for doc in results if "id" in doc)
            offset += len(results)
            if not results or offset >= int(page.get("total") or 0):
                return ids

    async def search(self, uid: str, params: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", f"/indexes/{uid}/search", json=params)

    async def _poll(self, task_uid: int) -> dict[str, Any]:
        while True:
            task = await self._request("GET", f"/tasks/{task_uid}")
            if task.get("status") in TERMINAL_STATUSES:
                return task
            await asyncio.sleep(self.poll_interval_s)

    async def wait_for_task(self, task_uid: int, timeout_s: float) -> dict[str, Any]:
        try:
            return await asyncio.wait_for(self._poll(task_uid), timeout=timeout_s)
        except asyncio.TimeoutError as e:
            logger.warning("task_timeout", extra={"task_uid": task_uid, "timeout_s": timeout_s})
            raise RemoteTaskFailure("task_timeout", task_uid=task_uid, timeout_s=timeout_s) from e
