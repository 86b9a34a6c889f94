from __future__ import annotations

from pathlib import Path, PurePosixPath

from .domain.entities import NoteInfo
from .domain.exceptions import IOFailure, PathError
from .domain.parsing import extract, extract_title
from .util import atomic_write_text

MARKDOWN_SUFFIXES = {".md", ".markdown"}


def is_markdown(name: str) -> bool:
    return PurePosixPath(name).suffix.lower() in MARKDOWN_SUFFIXES


def normalize_note_path(path: str) -> str:
    if "\x00" in path:
        raise PathError("path_contains_nul")

    cleaned = path.strip().replace("\\", "/")
    if not cleaned:
        raise PathError("path_empty")

    p = PurePosixPath(cleaned)
    if p.is_absolute():
        raise PathError("path_absolute_not_allowed", path=path)
    if ".." in p.parts:
        raise PathError("path_traversal_not_allowed", path=path)
    if any(part.startswith(".") for part in p.parts):
        raise PathError("path_hidden_not_allowed", path=path)

    if p.suffix.lower() not in MARKDOWN_SUFFIXES:
        p = p.with_suffix(".md")

    return p.as_posix()


class FileVault:
    """Notes stored as markdown files under a single vault directory."""

    def __init__(self, root: Path, name: str = "main") -> None:
        self.root = root
        self.name = name

    def vault_dir(self, vault: str) -> Path:
        if vault != self.name:
            raise IOFailure("vault_not_found", vault=vault)
        return self.root

    def _abs_path(self, vault: str, relpath: str) -> Path:
        root = self.vault_dir(vault).resolve()
        abs_path = (root / PurePosixPath(relpath)).resolve()
        if root not in abs_path.parents:
            raise PathError("path_outside_vault", path=relpath)
        return abs_path

    def _read_raw(self, vault: str, relpath: str) -> str:
        abs_path = self._abs_path(vault, relpath)
        try:
            return abs_path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise IOFailure("note_not_found", relpath=relpath) from e
        except (OSError, UnicodeDecodeError) as e:
            raise IOFailure("note_unreadable", relpath=relpath, reason=str(e)) from e

    def list_paths(self, vault: str) -> list[str]:
        root = self.vault_dir(vault)
        if not root.is_dir():
            raise IOFailure("vault_unreadable", path=str(root))
        paths: list[str] = []
        for p in root.rglob("*"):
            rel = p.relative_to(root)
            if any(part.startswith(".") for part in rel.parts):
                continue
            if p.is_file() and not p.is_symlink() and is_markdown(p.name):
                paths.append(rel.as_posix())
        return sorted(paths)

    def list_notes(self, vault: str) -> list[NoteInfo]:
        notes: list[NoteInfo] = []
        for relpath in self.list_paths(vault):
            fm = extract(self._read_raw(vault, relpath))
            notes.append(NoteInfo(relpath=relpath, title=extract_title(fm.frontmatter, relpath)))
        return notes

    def read_note(self, vault: str, relpath: str, include_frontmatter: bool) -> str:
        raw = self._read_raw(vault, relpath)
        if include_frontmatter:
            return raw
        return extract(raw).body

    def get_title(self, vault: str, relpath: str) -> str:
        return extract_title(extract(self._read_raw(vault, relpath)).frontmatter, relpath)

    def modified_at(self, vault: str, relpath: str) -> float:
        abs_path = self._abs_path(vault, relpath)
        try:
            return abs_path.stat().st_mtime
        except FileNotFoundError as e:
            raise IOFailure("note_not_found", relpath=relpath) from e
        except OSError as e:
            raise IOFailure("note_unreadable", relpath=relpath, reason=str(e)) from e

    def write_note(self, vault: str, relpath: str, content: str) -> str:
        note_path = normalize_note_path(relpath)
        abs_path = self._abs_path(vault, note_path)
        try:
            atomic_write_text(abs_path, content)
        except OSError as e:
            raise IOFailure("note_unwritable", relpath=note_path, reason=str(e)) from e
        return note_path
