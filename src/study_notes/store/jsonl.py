"""JSON-lines record store keeping one file per record kind."""

from __future__ import annotations

import json
import os
import tempfile
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Sequence

from ..core.logging import get_logger
from .base import (
    Order,
    RecordKind,
    RecordNotFoundError,
    StoreError,
    matches,
    sort_records,
)

__all__ = ["JsonlRecordStore", "read_jsonl", "write_jsonl"]

_LOCK_FILENAME = ".lock"
_LOCK_TIMEOUT_SECONDS = 5.0

logger = get_logger("store")


class JsonlRecordStore:
    """File-backed stand-in for the hosted record store.

    Each kind lives in ``<root>/<kind>.jsonl``. Writes rewrite the whole
    file atomically under an exclusive lock file, which is plenty for a
    single local user.
    """

    def __init__(self, root: Path) -> None:
        self._root = Path(root)
        self._root.mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, kind: RecordKind) -> Path:
        return self._root / f"{RecordKind(kind).value}.jsonl"

    def insert(
        self, kind: RecordKind, record: Mapping[str, Any]
    ) -> MutableMapping[str, Any]:
        return self.insert_many(kind, [record])[0]

    def insert_many(
        self, kind: RecordKind, records: Sequence[Mapping[str, Any]]
    ) -> list[MutableMapping[str, Any]]:
        kind = RecordKind(kind)
        if not records:
            return []
        stamp = _timestamp()
        prepared: list[MutableMapping[str, Any]] = []
        for record in records:
            item = dict(record)
            item["id"] = item.get("id") or _generate_id()
            for name in kind.timestamp_fields:
                item[name] = item.get(name) or stamp
            prepared.append(item)
        with self._locked():
            existing = self._read(kind)
            known = {str(rec.get("id")) for rec in existing}
            for item in prepared:
                if str(item["id"]) in known:
                    raise StoreError(
                        f"Duplicate {kind.value} id '{item['id']}'."
                    )
                known.add(str(item["id"]))
            self._write(kind, existing + prepared)
        logger.debug(
            "Inserted records",
            extra={"kind": kind, "count": len(prepared)},
        )
        return [dict(item) for item in prepared]

    def update(
        self, kind: RecordKind, record_id: str, fields: Mapping[str, Any]
    ) -> MutableMapping[str, Any]:
        kind = RecordKind(kind)
        changes = {k: v for k, v in fields.items() if k != "id"}
        if kind.touches_on_update and "updated_at" not in changes:
            changes["updated_at"] = _timestamp()
        with self._locked():
            records = self._read(kind)
            for record in records:
                if str(record.get("id")) == str(record_id):
                    record.update(changes)
                    self._write(kind, records)
                    logger.debug(
                        "Updated record",
                        extra={"kind": kind, "record_id": record_id},
                    )
                    return dict(record)
        raise RecordNotFoundError(kind, str(record_id))

    def delete(self, kind: RecordKind, record_id: str) -> bool:
        kind = RecordKind(kind)
        with self._locked():
            records = self._read(kind)
            kept = [r for r in records if str(r.get("id")) != str(record_id)]
            if len(kept) == len(records):
                return False
            self._write(kind, kept)
        logger.debug(
            "Deleted record", extra={"kind": kind, "record_id": record_id}
        )
        return True

    def select(
        self,
        kind: RecordKind,
        filters: Mapping[str, Any] | None = None,
        order: Sequence[Order] | None = None,
    ) -> list[MutableMapping[str, Any]]:
        kind = RecordKind(kind)
        records = [r for r in self._read(kind) if matches(r, filters)]
        return sort_records(records, order)

    def _read(self, kind: RecordKind) -> list[MutableMapping[str, Any]]:
        path = self.path_for(kind)
        if not path.exists():
            return []
        try:
            return read_jsonl(path)
        except (OSError, json.JSONDecodeError) as exc:
            raise StoreError(f"Failed to read records from {path}") from exc

    def _write(
        self, kind: RecordKind, records: Sequence[Mapping[str, Any]]
    ) -> None:
        try:
            write_jsonl(self.path_for(kind), records)
        except OSError as exc:
            raise StoreError(f"Failed to write {kind.value} records") from exc

    def _locked(self) -> "_StoreLock":
        return _StoreLock(self._root / _LOCK_FILENAME)


class _StoreLock:
    """Simple filesystem lock using exclusive file creation."""

    def __init__(self, path: Path) -> None:
        self._path = path

    def __enter__(self) -> "_StoreLock":
        deadline = time.time() + _LOCK_TIMEOUT_SECONDS
        while True:
            try:
                fd = os.open(
                    self._path,
                    os.O_CREAT | os.O_EXCL | os.O_WRONLY,
                )
                os.close(fd)
                break
            except FileExistsError:
                if time.time() > deadline:
                    raise StoreError(
                        f"Timed out waiting for store lock: {self._path}"
                    )
                time.sleep(0.05)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: D401
        self._path.unlink(missing_ok=True)


def read_jsonl(path: Path) -> list[MutableMapping[str, Any]]:
    data: list[MutableMapping[str, Any]] = []
    with Path(path).open("r", encoding="utf-8") as fh:
        for line in fh:
            line = line.strip()
            if not line:
                continue
            data.append(json.loads(line))
    return data


def write_jsonl(path: Path, records: Sequence[Mapping[str, Any]]) -> None:
    """Atomically replace ``path`` with one JSON object per line."""

    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    handle = tempfile.NamedTemporaryFile(
        "w",
        delete=False,
        encoding="utf-8",
        dir=str(p.parent),
    )
    try:
        for rec in records:
            handle.write(json.dumps(rec, ensure_ascii=False))
            handle.write("\n")
        handle.flush()
        os.fsync(handle.fileno())
    finally:
        handle.close()
    os.replace(handle.name, p)
    try:
        p.chmod(0o600)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass


def _generate_id() -> str:
    return uuid.uuid4().hex


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()
