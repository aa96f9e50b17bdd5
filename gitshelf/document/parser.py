"""Generic parsing of the reading list document.

The document is a fenced YAML preamble followed by level-2 sections holding
level-3 items. Each item starts with a contiguous block of property bullets
(``- **key**: value``) and may continue with free-text body lines:

    ---
    type: reading-list
    ---

    ## 📚 To Read

    ### [[Dune]]
    - **author**: Herbert
    - **tags**: #scifi

    Body text.

Parsing never fails on the markdown part. Lines that fit nowhere are dropped
or become body text. Only an undecodable preamble raises.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import yaml
from frontmatter.default_handlers import YAMLHandler

from ..errors import PreambleDecodeError

# Match "- **key**: value" (leading whitespace already stripped)
PROPERTY_PATTERN = re.compile(r"^- \*\*(?P<key>[^*]*)\*\*:(?P<value>.*)$")


@dataclass
class Item:
    """A level-3 entry within a section."""

    title: str
    properties: dict[str, str] = field(default_factory=dict)
    body: str = ""


@dataclass
class Section:
    """A level-2 section and its items, in document order."""

    title: str
    level: int = 2
    items: list[Item] = field(default_factory=list)


@dataclass
class GenericDocument:
    preamble: dict[str, Any] = field(default_factory=dict)
    sections: list[Section] = field(default_factory=list)


class _Mode(Enum):
    OUTSIDE_SECTION = "outside-section"
    IN_SECTION = "in-section"
    ITEM_PROPERTIES = "item-properties"
    ITEM_BODY = "item-body"


def parse(content: bytes | str) -> GenericDocument:
    """Parse raw document content into a GenericDocument.

    Raises:
        PreambleDecodeError: the fenced preamble is not a YAML mapping
    """
    text = content.decode("utf-8", errors="replace") if isinstance(content, bytes) else content
    preamble, body = split_preamble(text)
    return GenericDocument(preamble=preamble, sections=parse_sections(body))


def split_preamble(text: str) -> tuple[dict[str, Any], str]:
    """Separate the fenced preamble from the markdown body.

    Text without a complete fence pair is returned whole as the body.
    """
    handler = YAMLHandler()
    if not handler.detect(text):
        return {}, text

    try:
        fm, body = handler.split(text)
    except ValueError:
        # Opening fence without a closing one
        return {}, text

    try:
        data = handler.load(fm)
    except yaml.YAMLError as e:
        raise PreambleDecodeError(f"failed to parse preamble: {e}") from e

    if data is None:
        return {}, body
    if not isinstance(data, dict):
        raise PreambleDecodeError(f"preamble must be a mapping, got {type(data).__name__}")
    return data, body


def strip_title_markup(title: str) -> str:
    """Remove wiki-link brackets around an item title: ``[[Dune]]`` -> ``Dune``.

    Only one ``[[``/``]]`` pair is removed, so brackets inside the title survive.
    """
    title = title.strip()
    if title.startswith("[[") and title.endswith("]]"):
        return title[2:-2].strip()
    return title.strip("[]")


def parse_property(line: str) -> tuple[str, str] | None:
    """Parse a property bullet into (key, value), or None if it is not one."""
    match = PROPERTY_PATTERN.match(line)
    if not match:
        return None
    return match.group("key").strip(), match.group("value").strip()


def parse_sections(content: str) -> list[Section]:
    """Scan markdown lines into sections and items."""
    sections: list[Section] = []
    section: Section | None = None
    item: Item | None = None
    body_lines: list[str] = []
    mode = _Mode.OUTSIDE_SECTION

    def close_item() -> None:
        nonlocal item, body_lines
        if item is not None and section is not None:
            item.body = "\n".join(body_lines)
            section.items.append(item)
        item = None
        body_lines = []

    for line in content.splitlines():
        stripped = line.strip()

        if line.startswith("## "):
            close_item()
            section = Section(title=line[3:].strip(), level=2)
            sections.append(section)
            mode = _Mode.IN_SECTION
            continue

        if line.startswith("### "):
            if section is None:
                continue
            close_item()
            item = Item(title=strip_title_markup(line[4:]))
            mode = _Mode.ITEM_PROPERTIES
            continue

        if mode is _Mode.ITEM_PROPERTIES:
            if not stripped:
                mode = _Mode.ITEM_BODY
                continue
            if stripped.startswith("- **"):
                prop = parse_property(stripped)
                if prop is not None:
                    key, value = prop
                    item.properties[key] = value
                continue
            # Anything else closes the property block and starts the body
            mode = _Mode.ITEM_BODY

        if mode is _Mode.ITEM_BODY and stripped:
            body_lines.append(line)

    close_item()
    return sections
