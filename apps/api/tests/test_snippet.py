from notemancy_api.indexing.snippet import fallback_snippet


def test_snippet_contains_match_and_is_bounded() -> None:
    snippet = fallback_snippet("The quick brown fox jumps", "brown")
    assert "brown" in snippet
    assert len(snippet) <= 103
    assert snippet == "...The quick brown fox jumps..."


def test_snippet_window_around_earliest_term() -> None:
    content = "a" * 200 + "Needle" + "b" * 200 + "hay"
    snippet = fallback_snippet(content, "HAY needle")
    assert snippet == "..." + "a" * 50 + "Needle" + "b" * 44 + "..."


def test_no_match_returns_plain_preview() -> None:
    content = "x" * 150
    assert fallback_snippet(content, "missing") == "x" * 100


def test_blank_query_and_content_never_fail() -> None:
    assert fallback_snippet("short", "   ") == "short"
    assert fallback_snippet("", "term") == ""


def test_snippet_keeps_original_case_when_lowering_changes_length() -> None:
    assert fallback_snippet("İİİ Target Word", "target") == "...İİİ Target Word..."
    content = "İ" * 60 + "Target" + "b" * 10
    assert fallback_snippet(content, "TARGET") == "..." + "İ" * 50 + "Target" + "b" * 10 + "..."
