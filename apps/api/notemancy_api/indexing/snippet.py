from __future__ import annotations

SNIPPET_CONTEXT = 50
PREVIEW_LENGTH = 100
ELLIPSIS = "..."


def _lowered_with_offsets(content: str) -> tuple[str, list[int]]:
    # Some characters lower to more than one code point ("İ" -> "i̇"), so keep
    # the index of the source character for every lowered position.
    lowered: list[str] = []
    offsets: list[int] = []
    for index, char in enumerate(content):
        low = char.lower()
        lowered.append(low)
        offsets.extend([index] * len(low))
    return "".join(lowered), offsets


def fallback_snippet(content: str, query: str) -> str:
    """Excerpt of ``content`` around the earliest query term, or a plain preview."""
    haystack, offsets = _lowered_with_offsets(content)

    positions = [pos for pos in (haystack.find(term) for term in query.lower().split()) if pos != -1]
    if not positions:
        return content[:PREVIEW_LENGTH]

    pos = offsets[min(positions)]
    start = max(0, pos - SNIPPET_CONTEXT)
    end = min(len(content), pos + SNIPPET_CONTEXT)
    return f"{ELLIPSIS}{content[start:end]}{ELLIPSIS}"
