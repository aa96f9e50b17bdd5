"""Reading list operations exposed to the CLI.

Mutations run inside one exclusive scope covering pull, read, mutate, write,
stage, commit and push, so a background sync cycle cannot slip in between
the read and the write. Validation errors abort before anything is written.
Sync faults never abort a mutation: the local write has already happened.
"""

from __future__ import annotations

import logging
from collections import Counter
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Iterator

from .errors import RecordNotFound, ValidationError
from .models import (
    ItemType,
    Priority,
    Progress,
    Record,
    Status,
    new_record,
    validate_percentage,
)
from .store import RecordStore
from .sync import SyncCoordinator

logger = logging.getLogger(__name__)


@dataclass
class ReadingStats:
    total: int = 0
    to_read: int = 0
    reading: int = 0
    done: int = 0
    average_rating: float | None = None
    top_tags: list[tuple[str, int]] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "to_read": self.to_read,
            "reading": self.reading,
            "done": self.done,
            "average_rating": self.average_rating,
            "top_tags": [{"tag": tag, "count": count} for tag, count in self.top_tags],
        }


def parse_status(value: str | Status) -> Status:
    try:
        return Status(value)
    except ValueError:
        raise ValidationError(f"invalid status: {value}") from None


class ReadingService:
    """Caller-facing reading list operations over a RecordStore."""

    def __init__(
        self,
        store: RecordStore,
        coordinator: SyncCoordinator | None = None,
        *,
        auto_commit: bool = True,
        sync_remote: bool = True,
        pull_on_read: bool = False,
    ):
        self.store = store
        self.coordinator = coordinator
        self.auto_commit = auto_commit
        self.sync_remote = sync_remote
        self.pull_on_read = pull_on_read

    @contextmanager
    def _transaction(self, message: str) -> Iterator[None]:
        if self.coordinator is None:
            with self.store.lock:
                yield
        else:
            with self.coordinator.transaction(
                message,
                pull=self.sync_remote,
                commit=self.auto_commit,
                push=self.sync_remote,
            ):
                yield

    def _records(self) -> list[Record]:
        with self.store.lock:
            if self.pull_on_read and self.coordinator is not None:
                self.coordinator.refresh()
            return self.store.find_all()

    def _require(self, item_id: str) -> Record:
        if not item_id:
            raise ValidationError("item ID cannot be empty")
        record = self.store.find_by_id(item_id)
        if record is None:
            raise RecordNotFound(item_id)
        return record

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_all(self) -> list[Record]:
        return self._records()

    def list_by_status(self, status: str | Status) -> list[Record]:
        wanted = parse_status(status)
        return [r for r in self._records() if r.status is wanted]

    def list_by_tag(self, tag: str) -> list[Record]:
        tag = tag.removeprefix("#")
        return [r for r in self._records() if tag in r.tags]

    def get_item(self, item_id: str) -> Record:
        with self.store.lock:
            if self.pull_on_read and self.coordinator is not None:
                self.coordinator.refresh()
            return self._require(item_id)

    def stats(self) -> ReadingStats:
        records = self._records()
        stats = ReadingStats(total=len(records))
        tag_counts: Counter[str] = Counter()
        ratings = []
        for record in records:
            if record.status is Status.TO_READ:
                stats.to_read += 1
            elif record.status is Status.READING:
                stats.reading += 1
            else:
                stats.done += 1
            if record.rating is not None:
                ratings.append(record.rating)
            tag_counts.update(record.tags)
        if ratings:
            stats.average_rating = round(sum(ratings) / len(ratings), 2)
        stats.top_tags = tag_counts.most_common(5)
        return stats

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_item(
        self,
        title: str,
        author: str = "",
        item_type: str = ItemType.BOOK.value,
        priority: str = Priority.MEDIUM.value,
        tags: Iterable[str] = (),
        url: str = "",
    ) -> Record:
        """Add a to-read item, replacing any item with the same derived id."""
        if not title or not title.strip():
            raise ValidationError("title cannot be empty")
        try:
            kind = ItemType(item_type.lower())
        except ValueError:
            kind = ItemType.BOOK

        record = new_record(title.strip(), author.strip(), kind)
        if priority:
            try:
                record.priority = Priority(priority.lower())
            except ValueError:
                logger.debug("ignoring unknown priority %r", priority)
        for tag in tags:
            record.add_tag(tag.strip().removeprefix("#"))
        record.metadata.url = url

        with self._transaction(f"Add {record.title}"):
            self.store.save(record)
        return record

    def start_reading(self, item_id: str) -> Record:
        with self._transaction(f"Start reading {item_id}"):
            record = self._require(item_id)
            record.start(date.today())
            self.store.update(record)
        return record

    def update_progress(
        self,
        item_id: str,
        percentage: int,
        current_page: int = 0,
        total_pages: int = 0,
    ) -> Record:
        validate_percentage(percentage)
        with self._transaction(f"Update progress of {item_id}"):
            record = self._require(item_id)
            previous = record.progress
            progress = Progress(
                percentage=percentage,
                current_page=current_page if current_page > 0 else 0,
                total_pages=total_pages if total_pages > 0 else (previous.total_pages if previous else 0),
            )
            record.update_progress(progress)
            self.store.update(record)
        return record

    def finish_reading(self, item_id: str, rating: int | None = None, review: str = "") -> Record:
        with self._transaction(f"Finish {item_id}"):
            record = self._require(item_id)
            record.finish(date.today(), rating)
            if review:
                record.metadata.review = review
            self.store.update(record)
        return record

    def shelve(self, item_id: str) -> Record:
        """Put an in-progress item back on the to-read list."""
        with self._transaction(f"Shelve {item_id}"):
            record = self._require(item_id)
            record.shelve()
            self.store.update(record)
        return record

    def delete_item(self, item_id: str) -> bool:
        if not item_id:
            raise ValidationError("item ID cannot be empty")
        with self._transaction(f"Delete {item_id}"):
            return self.store.delete(item_id)
