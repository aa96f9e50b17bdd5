"""Map a GenericDocument onto typed records.

This is a heuristic, best-effort decoder rather than a schema check:

- Section titles decide record status through STATUS_RULES, evaluated in
  order, first match wins. Sections matching no rule are skipped, so their
  items are lost on the next write.
- Unknown type or priority values fall back to book / medium.
- Unparsable dates, progress, page counts and ratings are treated as absent.
- Items whose title is empty are skipped.
"""

from __future__ import annotations

from datetime import date, datetime

from ..errors import ValidationError
from ..models import (
    UNKNOWN_AUTHOR,
    ItemType,
    Metadata,
    Priority,
    Progress,
    Record,
    Status,
)
from .parser import GenericDocument, Item

STAR = "⭐"

# (keywords, status) pairs, matched case-insensitively as substrings.
STATUS_RULES: list[tuple[tuple[str, ...], Status]] = [
    (("to read", "backlog"), Status.TO_READ),
    (("reading", "in progress"), Status.READING),
    (("done", "completed", "finished"), Status.DONE),
]

DATE_FORMATS = ("%Y-%m-%d", "%Y-%m-%d %H:%M:%S")


def section_status(title: str) -> Status | None:
    """Infer record status from a section title, or None if no rule matches."""
    lowered = title.lower()
    for keywords, status in STATUS_RULES:
        if any(keyword in lowered for keyword in keywords):
            return status
    return None


def map_document(doc: GenericDocument) -> list[Record]:
    """Convert every mappable item of the document into a Record."""
    records: list[Record] = []
    for section in doc.sections:
        status = section_status(section.title)
        if status is None:
            continue
        for item in section.items:
            try:
                records.append(item_to_record(item, status))
            except ValidationError:
                continue
    return records


def item_to_record(item: Item, status: Status) -> Record:
    """Build a record from a parsed item.

    Raises:
        ValidationError: the item has no title
    """
    props = item.properties

    metadata = Metadata(
        added=parse_date(props.get("added", "")),
        started=parse_date(props.get("started", "")),
        finished=parse_date(props.get("finished", "")),
        url=props.get("url", ""),
        notes=props.get("notes", ""),
        review=props.get("review", ""),
    )

    progress = None
    percentage = parse_progress(props.get("progress", ""))
    if percentage is not None:
        progress = Progress(
            percentage=percentage,
            current_page=_parse_int(props.get("current_page", "")) or 0,
            total_pages=_parse_int(props.get("pages", "")) or 0,
        )

    return Record(
        title=item.title,
        author=props.get("author", "") or UNKNOWN_AUTHOR,
        type=parse_item_type(props.get("type", "")),
        status=status,
        priority=parse_priority(props.get("priority", "")),
        tags=parse_tags(props.get("tags", "")),
        progress=progress,
        rating=parse_rating(props.get("rating", "")),
        metadata=metadata,
    )


def parse_item_type(value: str) -> ItemType:
    try:
        return ItemType(value.strip().lower())
    except ValueError:
        return ItemType.BOOK


def parse_priority(value: str) -> Priority:
    try:
        return Priority(value.strip().lower())
    except ValueError:
        return Priority.MEDIUM


def parse_tags(value: str) -> list[str]:
    """Split ``#a #b c`` into ``["a", "b", "c"]``."""
    tags = []
    for part in value.split():
        tag = part[1:] if part.startswith("#") else part
        if tag:
            tags.append(tag)
    return tags


def parse_date(value: str) -> date | None:
    """Parse a date, trying each known format in order.

    Accepts ``2006-01-02``, ``2006-01-02 15:04:05`` and RFC 3339 timestamps.
    """
    value = value.strip()
    if not value:
        return None
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(value).date()
    except ValueError:
        return None


def parse_progress(value: str) -> int | None:
    """Parse ``40%`` or ``40`` into a percentage between 0 and 100."""
    number = _parse_int(value.strip().removesuffix("%"))
    if number is None or not 0 <= number <= 100:
        return None
    return number


def parse_rating(value: str) -> int | None:
    """Parse a star-glyph rating or a bare integer between 0 and 5."""
    stars = value.count(STAR)
    if stars:
        return stars if stars <= 5 else None
    number = _parse_int(value)
    if number is None or not 0 <= number <= 5:
        return None
    return number


def _parse_int(value: str) -> int | None:
    try:
        return int(value.strip())
    except ValueError:
        return None
