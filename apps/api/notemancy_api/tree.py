from __future__ import annotations

import logging
import os
from pathlib import Path

from .domain.entities import TreeNode
from .domain.exceptions import EmptyVault, IOFailure, NotemancyError
from .domain.ports import NoteStore
from .vault import is_markdown

logger = logging.getLogger("notemancy.tree")


def _sort_key(node: TreeNode) -> tuple[bool, str, str]:
    return (not node.is_dir, node.name.lower(), node.name)


def sort_nodes(nodes: list[TreeNode]) -> list[TreeNode]:
    """Directories first, then files; each group by case-insensitive name."""
    return sorted(nodes, key=_sort_key)


class _TreeWalk:
    def __init__(self, root: Path, store: NoteStore, vault: str) -> None:
        self.root = root
        self.store = store
        self.vault = vault
        self.visited: set[str] = set()

    def _entries(self, directory: Path) -> list[Path]:
        try:
            return list(directory.iterdir())
        except OSError as e:
            raise IOFailure("vault_unreadable", path=str(directory), reason=str(e)) from e

    def _title(self, relpath: str) -> str:
        try:
            return self.store.get_title(self.vault, relpath)
        except (NotemancyError, OSError) as e:
            logger.debug("title_lookup_failed", extra={"relpath": relpath, "error": str(e)})
            return ""

    def children(self, directory: Path) -> list[TreeNode]:
        canonical = os.path.realpath(directory)
        if canonical in self.visited:
            return []
        self.visited.add(canonical)

        nodes: list[TreeNode] = []
        for entry in self._entries(directory):
            if entry.name.startswith(".") or entry.is_symlink():
                continue
            if entry.is_dir():
                sub = self.children(entry)
                if sub:
                    nodes.append(TreeNode(name=entry.name, is_dir=True, children=sub))
            elif entry.is_file() and is_markdown(entry.name):
                relpath = entry.relative_to(self.root).as_posix()
                nodes.append(TreeNode(name=entry.name, is_dir=False, relpath=relpath, title=self._title(relpath)))
        return sort_nodes(nodes)


def build_tree(vault_root: Path, store: NoteStore, vault: str = "main") -> list[TreeNode]:
    """Build the navigable note hierarchy below ``vault_root``.

    The root itself is not part of the result. Directories without any markdown
    file beneath them are pruned. Hidden entries and symlinks are skipped the
    same way ``FileVault.list_paths`` skips them, and an empty result
    raises ``EmptyVault`` so callers can tell "no notes" from "wrong path".
    """
    if not vault_root.is_dir():
        raise IOFailure("vault_unreadable", path=str(vault_root))

    nodes = _TreeWalk(vault_root, store, vault).children(vault_root)
    if not nodes:
        raise EmptyVault("vault_empty", path=str(vault_root))
    return nodes
