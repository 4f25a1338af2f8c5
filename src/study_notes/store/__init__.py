"""Record store contract and the local JSONL implementation."""

from .base import (  # noqa: F401
    Order,
    RecordKind,
    RecordNotFoundError,
    RecordStore,
    StoreError,
)
from .jsonl import JsonlRecordStore, read_jsonl, write_jsonl  # noqa: F401

__all__ = [
    "Order",
    "RecordKind",
    "RecordNotFoundError",
    "RecordStore",
    "StoreError",
    "JsonlRecordStore",
    "read_jsonl",
    "write_jsonl",
]
