from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class NoteContentOut(BaseModel):
    title: str
    frontmatter: Any = Field(default_factory=dict)
    content: str


class UploadNoteIn(BaseModel):
    relpath: str
    content: str


class UploadNoteOut(BaseModel):
    relpath: str
    indexed: bool


class SearchResultOut(BaseModel):
    title: str
    path: str
    snippet: str = ""


class SearchResponseOut(BaseModel):
    results: list[SearchResultOut] = Field(default_factory=list)


class ResyncOut(BaseModel):
    total: int
    added: int
