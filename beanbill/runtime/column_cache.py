"""Column-mapping cache keyed by ``(source, header signature)``.

The AI-assisted parser depends only on the ``ColumnMappingStore`` protocol;
callers choose the in-memory store (one conversion session) or the JSON file
store (persisted across runs under ``ProjectPaths.column_mappings``).
"""

from __future__ import annotations

import threading
import time
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from beanbill.domain.column_mapping import ColumnMapping, RecognitionResult, header_signature
from beanbill.runtime.json_store import read_json, write_json_atomic
from beanbill.runtime.logging import get_logger

logger = get_logger(__name__)


class ColumnMappingStore(Protocol):
    def get(self, source: str, headers: Sequence[str]) -> RecognitionResult | None: ...

    def set(self, source: str, headers: Sequence[str], result: RecognitionResult) -> None: ...


@dataclass(frozen=True)
class CacheEntry:
    source: str
    signature: str
    mapping: ColumnMapping
    confidence: float
    timestamp: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "signature": self.signature,
            "mapping": self.mapping.to_dict(),
            "confidence": self.confidence,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> CacheEntry:
        return cls(
            source=payload["source"],
            signature=payload["signature"],
            mapping=ColumnMapping.from_dict(payload["mapping"]),
            confidence=float(payload.get("confidence", 0.0)),
            timestamp=float(payload.get("timestamp", 0.0)),
        )


class InMemoryColumnMappingCache:
    """Session-scoped store; one entry per ``(source, signature)``."""

    def __init__(self) -> None:
        self._entries: dict[tuple[str, str], CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, source: str, headers: Sequence[str]) -> RecognitionResult | None:
        entry = self._entries.get((source, header_signature(headers)))
        if entry is None:
            return None
        return RecognitionResult(entry.mapping, entry.confidence)

    def set(self, source: str, headers: Sequence[str], result: RecognitionResult) -> None:
        signature = header_signature(headers)
        entry = CacheEntry(source, signature, result.mapping, result.confidence, time.time())
        with self._lock:
            self._entries[(source, signature)] = entry
            self._after_write()

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._after_write()

    def entries(self) -> list[CacheEntry]:
        return list(self._entries.values())

    def _after_write(self) -> None:
        pass


class JsonFileColumnMappingCache(InMemoryColumnMappingCache):
    """Store backed by a JSON file, rewritten atomically on every change."""

    def __init__(self, path: Path) -> None:
        super().__init__()
        self.path = path
        for payload in read_json(path, default=[]):
            try:
                entry = CacheEntry.from_dict(payload)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Dropping malformed column-mapping cache entry: %s", e)
                continue
            self._entries[(entry.source, entry.signature)] = entry
        logger.debug("Loaded %d column mappings from %s", len(self._entries), path)

    def _after_write(self) -> None:
        write_json_atomic(self.path, [entry.to_dict() for entry in self._entries.values()])
