"""Reading commands - query and move items through the reading list."""

from __future__ import annotations

import json
from typing import Iterable

from rich.console import Console
from rich.table import Table

from ..document.mapper import STAR
from ..errors import ValidationError
from ..models import Record, Status
from ..service import ReadingService

_STATUS_STYLE = {
    Status.TO_READ: "cyan",
    Status.READING: "yellow",
    Status.DONE: "green",
}


def _format_progress(record: Record) -> str:
    if record.progress is None:
        return ""
    text = f"{record.progress.percentage}%"
    if record.progress.total_pages:
        text += f" ({record.progress.current_page}/{record.progress.total_pages})"
    return text


def _format_rating(record: Record) -> str:
    if record.rating is None:
        return ""
    return STAR * record.rating if record.rating else "0"


def _records_table(records: Iterable[Record], title: str) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="dim")
    table.add_column("Title", style="bold")
    table.add_column("Author")
    table.add_column("Type")
    table.add_column("Status")
    table.add_column("Progress", justify="right")
    table.add_column("Rating")
    table.add_column("Tags")

    for r in records:
        style = _STATUS_STYLE[r.status]
        table.add_row(
            r.id,
            r.title,
            r.author,
            r.type.value,
            f"[{style}]{r.status.value}[/{style}]",
            _format_progress(r),
            _format_rating(r),
            ", ".join(f"#{t}" for t in r.tags),
        )
    return table


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def run_list(
    service: ReadingService,
    *,
    status: str | None = None,
    tag: str | None = None,
    output_json: bool = False,
) -> int:
    """List reading items, optionally filtered by status and tag."""
    if status:
        records = service.list_by_status(status)
    else:
        records = service.list_all()
    if tag:
        tag = tag.removeprefix("#")
        records = [r for r in records if tag in r.tags]

    if output_json:
        _print_json([r.to_dict() for r in records])
        return 0

    console = Console()
    if not records:
        console.print("[dim]No items found.[/dim]")
        return 0

    console.print(_records_table(records, f"Reading list ({len(records)})"))
    return 0


def run_show(service: ReadingService, item_id: str, *, output_json: bool = False) -> int:
    """Show a single item with all of its properties."""
    record = service.get_item(item_id)

    if output_json:
        _print_json(record.to_dict())
        return 0

    console = Console()
    table = Table(title=record.title, show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for key, value in record.to_dict().items():
        if key == "title":
            continue
        if isinstance(value, list):
            value = ", ".join(f"#{v}" for v in value)
        table.add_row(key, str(value))
    console.print(table)
    return 0


def run_add(
    service: ReadingService,
    title: str,
    *,
    author: str = "",
    item_type: str = "book",
    priority: str = "medium",
    tags: Iterable[str] = (),
    url: str = "",
) -> int:
    """Add an item to the to-read list."""
    record = service.add_item(title, author, item_type, priority, tags, url)
    Console(stderr=True).print(f"Added: {record.title} [dim]({record.id})[/dim]", style="green")
    return 0


def run_start(service: ReadingService, item_id: str) -> int:
    record = service.start_reading(item_id)
    Console(stderr=True).print(f"Started reading: {record.title}", style="green")
    return 0


def run_progress(
    service: ReadingService,
    item_id: str,
    percentage: int,
    *,
    current_page: int = 0,
    total_pages: int = 0,
) -> int:
    """Record reading progress for an in-progress item."""
    record = service.update_progress(item_id, percentage, current_page, total_pages)
    Console(stderr=True).print(f"Progress: {record.title} {_format_progress(record)}", style="green")
    return 0


def run_finish(
    service: ReadingService,
    item_id: str,
    *,
    rating: int | None = None,
    review: str = "",
) -> int:
    record = service.finish_reading(item_id, rating, review)
    console = Console(stderr=True)
    console.print(f"Finished: {record.title}", style="green")
    if record.rating:
        console.print(f"  Rating: {_format_rating(record)}")
    return 0


def run_shelve(service: ReadingService, item_id: str) -> int:
    record = service.shelve(item_id)
    Console(stderr=True).print(f"Shelved: {record.title}", style="green")
    return 0


def run_delete(service: ReadingService, item_id: str) -> int:
    """Delete an item. Deleting an unknown id is reported but not an error."""
    if not item_id:
        raise ValidationError("item ID cannot be empty")
    console = Console(stderr=True)
    if service.delete_item(item_id):
        console.print(f"Deleted: {item_id}", style="green")
    else:
        console.print(f"No item with ID {item_id}", style="yellow")
    return 0


def run_stats(service: ReadingService, *, output_json: bool = False) -> int:
    """Summarize the reading list."""
    stats = service.stats()

    if output_json:
        _print_json(stats.to_dict())
        return 0

    console = Console()
    table = Table(title="Reading stats")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", justify="right")

    table.add_row("Total items", str(stats.total))
    table.add_row("  To read", str(stats.to_read))
    table.add_row("  Reading", str(stats.reading))
    table.add_row("  Done", str(stats.done))
    if stats.average_rating is not None:
        table.add_row("", "")
        table.add_row("Average rating", f"{stats.average_rating:.2f}")
    if stats.top_tags:
        table.add_row("", "")
        for tag, count in stats.top_tags:
            table.add_row(f"  #{tag}", str(count))

    console.print(table)
    return 0
