"""Data models for reading list records."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Iterable

from .errors import ValidationError

UNKNOWN_AUTHOR = "Unknown"

# Characters kept verbatim in an identifier; spaces become the separator.
_ID_KEEP = re.compile(r"[A-Za-z0-9-]")


class Status(str, Enum):
    """Lifecycle status of a record."""

    TO_READ = "to-read"
    READING = "reading"
    DONE = "done"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ItemType(str, Enum):
    """Category of a record."""

    BOOK = "book"
    ARTICLE = "article"
    VIDEO = "video"
    COURSE = "course"


# Legal status transitions. Done is terminal.
_TRANSITIONS: dict[Status, frozenset[Status]] = {
    Status.TO_READ: frozenset({Status.READING}),
    Status.READING: frozenset({Status.DONE, Status.TO_READ}),
    Status.DONE: frozenset(),
}


def sanitize_for_id(value: str) -> str:
    """Drop everything but ASCII letters, digits and dashes; spaces become dashes."""
    out = []
    for ch in value:
        if _ID_KEEP.match(ch):
            out.append(ch)
        elif ch == " ":
            out.append("-")
    return "".join(out)


def generate_id(title: str, author: str) -> str:
    """Derive a record identifier from title and author.

    Pure function of its inputs. Distinct records can collide.
    """
    return sanitize_for_id(f"{title}-{author}")


def validate_rating(value: int) -> int:
    if not 0 <= value <= 5:
        raise ValidationError("rating must be between 0 and 5")
    return value


def validate_percentage(value: int) -> int:
    if not 0 <= value <= 100:
        raise ValidationError("progress percentage must be between 0 and 100")
    return value


def validate_tag(tag: str) -> str:
    """Tags are stored as whitespace-separated tokens, so they cannot contain whitespace."""
    if any(ch.isspace() for ch in tag):
        raise ValidationError(f"tag cannot contain whitespace: {tag!r}")
    return tag


@dataclass
class Progress:
    """Reading progress. Zero page counts mean unknown."""

    percentage: int = 0
    current_page: int = 0
    total_pages: int = 0

    def __post_init__(self):
        validate_percentage(self.percentage)


@dataclass
class Metadata:
    added: date | None = None
    started: date | None = None
    finished: date | None = None
    url: str = ""
    notes: str = ""
    review: str = ""


@dataclass
class Record:
    """A tracked reading list entry.

    The identifier is derived from title and author when not given and cannot
    be reassigned afterwards.
    """

    title: str
    author: str = UNKNOWN_AUTHOR
    type: ItemType = ItemType.BOOK
    status: Status = Status.TO_READ
    priority: Priority = Priority.MEDIUM
    tags: list[str] = field(default_factory=list)
    progress: Progress | None = None
    rating: int | None = None
    metadata: Metadata = field(default_factory=Metadata)
    id: str = ""

    def __post_init__(self):
        if not self.title or not self.title.strip():
            raise ValidationError("title cannot be empty")
        if not self.author:
            self.author = UNKNOWN_AUTHOR
        self.type = ItemType(self.type)
        self.status = Status(self.status)
        self.priority = Priority(self.priority)
        self.tags = _dedupe(self.tags)
        if self.rating is not None:
            validate_rating(self.rating)
        if not self.id:
            self.id = generate_id(self.title, self.author)

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "id" and getattr(self, "id", ""):
            raise AttributeError("record id is immutable once assigned")
        super().__setattr__(name, value)

    # ------------------------------------------------------------------
    # Status lattice
    # ------------------------------------------------------------------

    def can_transition_to(self, status: Status) -> bool:
        return status in _TRANSITIONS[self.status]

    def start(self, on: date) -> None:
        if self.status is not Status.TO_READ:
            raise ValidationError("can only start items with 'to-read' status")
        self.status = Status.READING
        self.metadata.started = on
        self.progress = Progress(percentage=0)

    def finish(self, on: date, rating: int | None = None) -> None:
        if self.status is not Status.READING:
            raise ValidationError("can only finish items with 'reading' status")
        if rating is not None:
            validate_rating(rating)
        self.status = Status.DONE
        self.metadata.finished = on
        self.rating = rating
        if self.progress is not None:
            self.progress.percentage = 100

    def shelve(self) -> None:
        """Move an in-progress record back to the to-read list."""
        if not self.can_transition_to(Status.TO_READ):
            raise ValidationError("can only shelve items with 'reading' status")
        self.status = Status.TO_READ

    def update_progress(self, progress: Progress) -> None:
        if self.status is not Status.READING:
            raise ValidationError("can only update progress for items with 'reading' status")
        self.progress = progress

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    def add_tag(self, tag: str) -> None:
        validate_tag(tag)
        if tag and tag not in self.tags:
            self.tags.append(tag)

    def remove_tag(self, tag: str) -> None:
        self.tags = [t for t in self.tags if t != tag]

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary, omitting unset optionals."""
        d: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "type": self.type.value,
            "status": self.status.value,
            "priority": self.priority.value,
            "tags": list(self.tags),
        }
        if self.progress is not None:
            d["progress"] = self.progress.percentage
            if self.progress.current_page:
                d["current_page"] = self.progress.current_page
            if self.progress.total_pages:
                d["total_pages"] = self.progress.total_pages
        if self.rating is not None:
            d["rating"] = self.rating
        meta = self.metadata
        for key in ("url", "notes", "review"):
            if getattr(meta, key):
                d[key] = getattr(meta, key)
        for key in ("added", "started", "finished"):
            value = getattr(meta, key)
            if value is not None:
                d[key] = value.isoformat()
        return d


def new_record(
    title: str,
    author: str = "",
    item_type: ItemType | str = ItemType.BOOK,
    *,
    added: date | None = None,
) -> Record:
    """Create a fresh to-read record stamped with today's date."""
    return Record(
        title=title,
        author=author or UNKNOWN_AUTHOR,
        type=ItemType(item_type),
        metadata=Metadata(added=added or date.today()),
    )


def _dedupe(tags: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    result = []
    for tag in tags:
        validate_tag(tag)
        if tag and tag not in seen:
            seen.add(tag)
            result.append(tag)
    return result
