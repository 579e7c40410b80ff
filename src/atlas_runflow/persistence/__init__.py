# src/atlas_runflow/persistence/__init__.py
"""Record stores concretos (memória e arquivo JSON)."""

from .record_store import InMemoryRecordStore, JsonRecordStore, RecordNotFoundError

__all__ = ["InMemoryRecordStore", "JsonRecordStore", "RecordNotFoundError"]
