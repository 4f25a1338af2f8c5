"""Record store contract shared by every persistence backend."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, MutableMapping, Protocol, Sequence

__all__ = [
    "RecordKind",
    "Order",
    "RecordStore",
    "StoreError",
    "RecordNotFoundError",
    "sort_records",
    "matches",
]


class StoreError(RuntimeError):
    """Raised when a record store operation fails."""


class RecordNotFoundError(StoreError):
    """Raised when a record id does not resolve to a stored record."""

    def __init__(self, kind: "RecordKind", record_id: str) -> None:
        super().__init__(f"No {kind.value} record with id '{record_id}'.")
        self.kind = kind
        self.record_id = record_id


class RecordKind(str, enum.Enum):
    NOTES = "notes"
    QUIZZES = "quizzes"
    QUIZ_QUESTIONS = "quiz_questions"
    QUIZ_ATTEMPTS = "quiz_attempts"

    @property
    def timestamp_fields(self) -> tuple[str, ...]:
        """Fields stamped with the current time when a record is inserted."""

        return _TIMESTAMPS[self]

    @property
    def touches_on_update(self) -> bool:
        return "updated_at" in _TIMESTAMPS[self]


_TIMESTAMPS = {
    RecordKind.NOTES: ("created_at", "updated_at"),
    RecordKind.QUIZZES: ("created_at",),
    RecordKind.QUIZ_QUESTIONS: (),
    RecordKind.QUIZ_ATTEMPTS: ("completed_at",),
}


@dataclass(frozen=True)
class Order:
    """Sort key for ``RecordStore.select``."""

    field: str
    descending: bool = False


class RecordStore(Protocol):
    """Insert/update/delete/select over the four record kinds."""

    def insert(
        self, kind: RecordKind, record: Mapping[str, Any]
    ) -> MutableMapping[str, Any]: ...

    def insert_many(
        self, kind: RecordKind, records: Sequence[Mapping[str, Any]]
    ) -> list[MutableMapping[str, Any]]: ...

    def update(
        self, kind: RecordKind, record_id: str, fields: Mapping[str, Any]
    ) -> MutableMapping[str, Any]: ...

    def delete(self, kind: RecordKind, record_id: str) -> bool: ...

    def select(
        self,
        kind: RecordKind,
        filters: Mapping[str, Any] | None = None,
        order: Sequence[Order] | None = None,
    ) -> list[MutableMapping[str, Any]]: ...


def matches(record: Mapping[str, Any], filters: Mapping[str, Any] | None) -> bool:
    """Return ``True`` when every filter key equals the record's value."""

    if not filters:
        return True
    return all(record.get(key) == value for key, value in filters.items())


def sort_records(
    records: Iterable[MutableMapping[str, Any]],
    order: Sequence[Order] | None,
) -> list[MutableMapping[str, Any]]:
    """Stable multi-key sort; missing values rank below present ones."""

    items = list(records)
    # Apply keys last-to-first so the first Order is the primary key.
    for key in reversed(list(order or ())):
        items.sort(
            key=lambda rec, name=key.field: (
                rec.get(name) is not None,
                rec.get(name) if rec.get(name) is not None else 0,
            ),
            reverse=key.descending,
        )
    return items
