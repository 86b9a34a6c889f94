import pytest

from notemancy_api.domain.exceptions import ParseFailure
from notemancy_api.domain.parsing import (
    extract,
    extract_title,
    note_content,
    parse_yaml_block,
    strip_frontmatter,
    with_last_modified,
)


def test_plain_text_has_empty_frontmatter_and_unchanged_body() -> None:
    raw = "plain text, no markers"
    fm = extract(raw)
    assert fm.frontmatter == {}
    assert fm.body == raw
    assert fm.error is None


def test_frontmatter_parses_at_byte_zero() -> None:
    frontmatter, body = note_content("---\ntitle: X\n---\nBody", 0.0)
    assert frontmatter["title"] == "X"
    assert frontmatter["last_modified"] == "1970-01-01T00:00:00Z"
    assert body == "Body"


def test_frontmatter_ignored_when_not_first_line() -> None:
    raw = "\n---\ntitle: Hello\n---\nBody\n"
    fm = extract(raw)
    assert fm.frontmatter == {}
    assert fm.body == raw


def test_missing_closing_marker_keeps_whole_text() -> None:
    raw = "---\ntitle: Hello\nBody without a closing line"
    fm = extract(raw)
    assert fm.frontmatter == {}
    assert fm.body == raw


def test_yaml_error_degrades_to_empty_mapping() -> None:
    fm = extract("---\ntitle: [oops\n---\nBody\n")
    assert fm.frontmatter == {}
    assert fm.error == "frontmatter_yaml_error"
    assert fm.body == "Body\n"


def test_non_mapping_frontmatter_is_replaced_by_timestamp_only() -> None:
    fm = extract("---\n- a\n- b\n---\nBody")
    assert fm.frontmatter == ["a", "b"]
    assert with_last_modified(fm.frontmatter, 0.0) == {"last_modified": "1970-01-01T00:00:00Z"}


def test_empty_frontmatter_block() -> None:
    frontmatter, body = note_content("---\n---\nBody", 0.0)
    assert frontmatter == {"last_modified": "1970-01-01T00:00:00Z"}
    assert body == "Body"


def test_yaml_dates_become_strings() -> None:
    fm = extract("---\ncreated: 2024-01-02\ntags: [a, b]\n1: one\n---\n")
    assert fm.frontmatter == {"created": "2024-01-02", "tags": ["a", "b"], "1": "one"}


def test_last_modified_overrides_existing_key() -> None:
    frontmatter, _ = note_content("---\nlast_modified: yesterday\n---\nx", 86400.0)
    assert frontmatter["last_modified"] == "1970-01-02T00:00:00Z"


def test_strip_frontmatter() -> None:
    assert strip_frontmatter("---\ntitle: T\n---\nHello\n") == "Hello\n"


def test_extract_title_prefers_frontmatter() -> None:
    assert extract_title({"title": "  Nice  "}, "a/b.md") == "Nice"
    assert extract_title({"title": ""}, "a/b.md") == "b"
    assert extract_title(["not", "a", "map"], "notes/c.markdown") == "c"


def test_parse_yaml_block_raises_parse_failure() -> None:
    with pytest.raises(ParseFailure) as exc:
        parse_yaml_block("key: [unclosed")
    assert exc.value.code == "frontmatter_yaml_error"


def test_recursive_alias_degrades_to_empty_mapping() -> None:
    fm = extract("---\nloop: &a [*a]\n---\nBody")
    assert fm.frontmatter == {}
    assert fm.error == "frontmatter_yaml_error"
    assert fm.body == "Body"


def test_shared_alias_is_not_mistaken_for_a_cycle() -> None:
    fm = extract("---\nbase: &tags [a, b]\nmore: *tags\n---\n")
    assert fm.frontmatter == {"base": ["a", "b"], "more": ["a", "b"]}
    assert fm.error is None
