import pytest

from gitshelf.document.parser import (
    Item,
    Section,
    parse,
    parse_property,
    parse_sections,
    split_preamble,
    strip_title_markup,
)
from gitshelf.errors import PreambleDecodeError


def test_parse_sample_document(sample_document: str) -> None:
    doc = parse(sample_document.encode("utf-8"))

    assert doc.preamble["type"] == "reading-list"
    assert [s.title for s in doc.sections] == ["📚 To Read", "📖 Reading", "✅ Done"]

    to_read = doc.sections[0]
    assert [i.title for i in to_read.items] == ["Dune", "The Pragmatic Programmer"]
    assert to_read.items[0].properties == {
        "type": "book",
        "author": "Frank Herbert",
        "tags": "#scifi #classic",
        "priority": "high",
        "added": "2024-01-02",
    }


def test_document_without_preamble() -> None:
    doc = parse("## To Read\n\n### Dune\n- **author**: Herbert\n")
    assert doc.preamble == {}
    assert doc.sections == [Section(title="To Read", items=[Item(title="Dune", properties={"author": "Herbert"})])]


def test_empty_preamble_is_empty_mapping() -> None:
    preamble, body = split_preamble("---\n---\n## To Read\n")
    assert preamble == {}
    assert "## To Read" in body


def test_preamble_that_is_not_a_mapping_raises() -> None:
    with pytest.raises(PreambleDecodeError):
        parse("---\n- a\n- b\n---\n\n## To Read\n")


def test_undecodable_preamble_raises() -> None:
    with pytest.raises(PreambleDecodeError):
        parse("---\nkey: [unclosed\n---\n")


def test_unclosed_fence_is_body() -> None:
    doc = parse("---\ntype: reading-list\n## To Read\n### Dune\n")
    assert doc.preamble == {}
    assert [s.title for s in doc.sections] == ["To Read"]
    assert doc.sections[0].items[0].title == "Dune"


def test_empty_section_is_kept() -> None:
    sections = parse_sections("## Empty\n\n## To Read\n### Dune\n")
    assert [s.title for s in sections] == ["Empty", "To Read"]
    assert sections[0].items == []


def test_item_before_any_section_is_dropped() -> None:
    sections = parse_sections("### Orphan\n- **author**: Nobody\n\n## To Read\n### Dune\n")
    assert len(sections) == 1
    assert [i.title for i in sections[0].items] == ["Dune"]


def test_title_markup_is_stripped() -> None:
    assert strip_title_markup(" [[Dune]] ") == "Dune"
    assert strip_title_markup("Dune") == "Dune"
    assert strip_title_markup("[[Dune [2nd ed]]]") == "Dune [2nd ed]"
    assert strip_title_markup("[[[Draft] Notes]]") == "[Draft] Notes"


def test_invalid_utf8_is_replaced_not_raised() -> None:
    doc = parse(b"## To Read\n### Dune\n- **notes**: caf\xe9\n")
    item = doc.sections[0].items[0]
    assert item.title == "Dune"
    assert item.properties["notes"] == "caf\ufffd"


def test_property_without_colon_is_ignored() -> None:
    sections = parse_sections("## To Read\n### Dune\n- **author** Herbert\n- **type**: book\n")
    assert sections[0].items[0].properties == {"type": "book"}


def test_property_values_are_trimmed() -> None:
    assert parse_property("- **author**:   Frank Herbert  ") == ("author", "Frank Herbert")
    assert parse_property("- author: Herbert") is None


def test_later_duplicate_property_wins() -> None:
    sections = parse_sections("## To Read\n### Dune\n- **author**: A\n- **author**: B\n")
    assert sections[0].items[0].properties == {"author": "B"}


def test_blank_line_ends_property_block() -> None:
    content = "## To Read\n### Dune\n- **author**: Herbert\n\nA desert planet.\n- **type**: video\n\nMore.\n"
    item = parse_sections(content)[0].items[0]
    assert item.properties == {"author": "Herbert"}
    assert item.body == "A desert planet.\n- **type**: video\nMore."


def test_text_line_in_property_block_starts_body() -> None:
    content = "## To Read\n### Dune\n- **author**: Herbert\nA note.\n- **type**: video\n"
    item = parse_sections(content)[0].items[0]
    assert item.properties == {"author": "Herbert"}
    assert item.body == "A note.\n- **type**: video"


def test_new_section_closes_open_item() -> None:
    sections = parse_sections("## To Read\n### Dune\n- **author**: Herbert\n## Done\n### Emma\n")
    assert [i.title for i in sections[0].items] == ["Dune"]
    assert [i.title for i in sections[1].items] == ["Emma"]


def test_deeper_headings_are_not_items() -> None:
    sections = parse_sections("## To Read\n### Dune\n#### Notes\n")
    assert len(sections[0].items) == 1
    assert sections[0].items[0].body == "#### Notes"
