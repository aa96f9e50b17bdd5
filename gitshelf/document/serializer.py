"""Render records back into the reading list document."""

from __future__ import annotations

from datetime import date

from ..models import Priority, Record, Status
from .mapper import STAR

DOCUMENT_KIND = "reading-list"
DOCUMENT_HEADING = "# Reading List"

# Output order and heading for each status section.
SECTION_HEADINGS: list[tuple[Status, str]] = [
    (Status.TO_READ, "## 📚 To Read"),
    (Status.READING, "## 📖 Reading"),
    (Status.DONE, "## ✅ Done"),
]


def serialize(records: list[Record], *, today: date | None = None) -> bytes:
    """Render records as document bytes.

    Sections with no records are omitted. Records keep their relative order
    within a section. The preamble dates are stamped with ``today``.
    """
    return render(records, today=today).encode("utf-8")


def render(records: list[Record], *, today: date | None = None) -> str:
    stamp = (today or date.today()).isoformat()
    lines = [
        "---",
        f"type: {DOCUMENT_KIND}",
        f"created: {stamp}",
        f"updated: {stamp}",
        "---",
        "",
        DOCUMENT_HEADING,
        "",
    ]

    for status, heading in SECTION_HEADINGS:
        section = [r for r in records if r.status is status]
        if not section:
            continue
        lines.append(heading)
        lines.append("")
        for record in section:
            lines.extend(render_item(record))
            lines.append("")

    return "\n".join(lines) + "\n"


def render_item(record: Record) -> list[str]:
    """Render one record as its heading plus property bullets."""
    lines = [f"### [[{record.title}]]"]

    def prop(key: str, value: object) -> None:
        lines.append(f"- **{key}**: {_single_line(str(value))}")

    prop("type", record.type.value)
    prop("author", record.author)

    if record.tags:
        prop("tags", " ".join(f"#{tag}" for tag in record.tags))

    if record.priority is not Priority.MEDIUM:
        prop("priority", record.priority.value)

    meta = record.metadata
    if meta.added is not None:
        prop("added", meta.added.isoformat())
    if meta.started is not None:
        prop("started", meta.started.isoformat())
    if meta.finished is not None:
        prop("finished", meta.finished.isoformat())

    if record.progress is not None:
        prop("progress", f"{record.progress.percentage}%")
        if record.progress.current_page > 0:
            prop("current_page", record.progress.current_page)
        if record.progress.total_pages > 0:
            prop("pages", record.progress.total_pages)

    if record.rating is not None:
        # Zero stars would read back as absent
        prop("rating", STAR * record.rating if record.rating else "0")

    if meta.url:
        prop("url", meta.url)
    if meta.notes:
        prop("notes", meta.notes)
    if meta.review:
        prop("review", meta.review)

    return lines


def _single_line(value: str) -> str:
    return " ".join(value.splitlines())
