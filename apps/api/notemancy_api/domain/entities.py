from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Union

# Any YAML-shaped value once converted to JSON types.
JSONValue = Union[None, bool, int, float, str, list[Any], dict[str, Any]]


@dataclass(frozen=True)
class TreeNode:
    name: str
    is_dir: bool
    relpath: Optional[str] = None
    title: Optional[str] = None
    children: Optional[list[TreeNode]] = None

    def to_dict(self) -> dict:
        out: dict = {"name": self.name, "is_dir": self.is_dir}
        if self.is_dir:
            out["children"] = [c.to_dict() for c in self.children or []]
        else:
            out["relpath"] = self.relpath
            out["title"] = self.title
        return out


@dataclass(frozen=True)
class NoteInfo:
    relpath: str
    title: str


@dataclass(frozen=True)
class SearchDocument:
    id: str
    relpath: str
    title: str
    content: str

    def to_payload(self) -> dict:
        return {"id": self.id, "relpath": self.relpath, "title": self.title, "content": self.content}


@dataclass(frozen=True)
class SearchResult:
    title: str
    path: str
    snippet: str


@dataclass(frozen=True)
class SearchResponse:
    results: list[SearchResult]


@dataclass(frozen=True)
class ResyncReport:
    total: int
    added: int
