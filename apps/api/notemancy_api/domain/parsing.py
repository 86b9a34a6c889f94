from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Any

import yaml

from .entities import JSONValue
from .exceptions import ParseFailure
from ..util import rfc3339_from_timestamp

FRONTMATTER_MARKER = "---"
_CLOSING = "\n---\n"


@dataclass(frozen=True)
class FrontmatterParse:
    frontmatter: JSONValue
    body: str
    error: str | None


def _to_json_value(value: Any, _parents: frozenset[int] = frozenset()) -> JSONValue:
    if isinstance(value, (dict, list, tuple, set)):
        # Anchors and aliases can make a container contain itself.
        if id(value) in _parents:
            raise ValueError("recursive_yaml_alias")
        parents = _parents | {id(value)}
        if isinstance(value, dict):
            return {str(k): _to_json_value(v, parents) for k, v in value.items()}
        return [_to_json_value(v, parents) for v in value]
    if isinstance(value, (dt.date, dt.datetime, dt.time)):
        return value.isoformat()
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    return str(value)


def extract(raw: str) -> FrontmatterParse:
    """Split ``raw`` into its leading YAML block and the remaining body.

    The text must start with ``---``; the block ends at the first line that is
    exactly ``---``. Malformed YAML degrades to an empty mapping and is reported
    through ``error`` rather than raised.
    """
    if not raw.startswith(FRONTMATTER_MARKER):
        return FrontmatterParse(frontmatter={}, body=raw, error=None)

    close = raw.find(_CLOSING)
    if close == -1:
        return FrontmatterParse(frontmatter={}, body=raw, error=None)

    yaml_block = raw[len(FRONTMATTER_MARKER) + 1 : close]
    body = raw[close + len(_CLOSING) :]
    try:
        parsed = parse_yaml_block(yaml_block)
    except ParseFailure as e:
        return FrontmatterParse(frontmatter={}, body=body, error=e.code)
    return FrontmatterParse(frontmatter=parsed, body=body, error=None)


def parse_yaml_block(text: str) -> JSONValue:
    try:
        return _to_json_value(yaml.safe_load(text))
    except (yaml.YAMLError, ValueError, RecursionError) as e:
        raise ParseFailure("frontmatter_yaml_error", reason=str(e)) from e


def strip_frontmatter(raw: str) -> str:
    return extract(raw).body


def with_last_modified(frontmatter: JSONValue, mtime: float) -> dict[str, Any]:
    stamp = rfc3339_from_timestamp(mtime)
    if isinstance(frontmatter, dict):
        out = dict(frontmatter)
        out["last_modified"] = stamp
        return out
    return {"last_modified": stamp}


def note_content(raw: str, mtime: float) -> tuple[dict[str, Any], str]:
    fm = extract(raw)
    return (with_last_modified(fm.frontmatter, mtime), fm.body)


def extract_title(frontmatter: JSONValue, relpath: str) -> str:
    if isinstance(frontmatter, dict):
        title = frontmatter.get("title")
        if isinstance(title, str) and title.strip():
            return title.strip()
    return PurePosixPath(relpath).stem