"""Parser whose column mapping comes from the external recognizer.

The header row is the first row mentioning a time column with at least five
non-empty cells. The header cells are sent to the recognizer together with
the declared source; the answer is cached per ``(source, header signature)``
so identical layouts are only recognized once.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from beanbill.domain.bill import AI_PARSED_SOURCE
from beanbill.domain.column_mapping import ColumnMapping, RecognitionResult
from beanbill.importers.base import BaseBillParser, Direction, ParseOptions
from beanbill.importers.errors import HeaderNotFound
from beanbill.importers.header import HEADER_SCAN_LIMIT
from beanbill.runtime import ColumnMappingStore, InMemoryColumnMappingCache, get_logger

logger = get_logger(__name__)

HEADER_MARKERS = ("交易时间", "时间", "Time")
MIN_HEADER_CELLS = 5


class ColumnRecognizer(Protocol):
    def recognize(self, headers: Sequence[str], source: str) -> RecognitionResult: ...


def recognize_columns(
    headers: Sequence[str],
    source: str,
    recognizer: ColumnRecognizer,
    cache: ColumnMappingStore,
    *,
    force_reidentify: bool = False,
) -> RecognitionResult:
    """Return the mapping for ``headers``, calling the recognizer only on a cache miss.

    ``force_reidentify`` skips the cache read; the fresh result is still stored.
    """
    if not force_reidentify:
        cached = cache.get(source, headers)
        if cached is not None:
            logger.debug("Column mapping cache hit for %s", source)
            return cached

    result = recognizer.recognize(headers, source)
    logger.info("Recognized %s columns with confidence %.2f", source, result.confidence)
    cache.set(source, headers, result)
    return result


def locate_recognizable_header(rows: Sequence[Sequence[str]], scan_limit: int = HEADER_SCAN_LIMIT) -> int:
    for index, row in enumerate(rows[:scan_limit]):
        cells = [cell for cell in row if cell.strip()]
        if len(cells) >= MIN_HEADER_CELLS and any(marker in cell for cell in cells for marker in HEADER_MARKERS):
            return index
    raise HeaderNotFound()


class SmartParser(BaseBillParser):
    source = AI_PARSED_SOURCE
    require_success_status = False

    def __init__(
        self,
        recognizer: ColumnRecognizer,
        cache: ColumnMappingStore | None = None,
        declared_source: str = "csv",
        *,
        force_reidentify: bool = False,
        options: ParseOptions | None = None,
    ) -> None:
        super().__init__(options)
        self.recognizer = recognizer
        self.cache = cache if cache is not None else InMemoryColumnMappingCache()
        self.declared_source = declared_source
        self.force_reidentify = force_reidentify
        self.last_confidence: float | None = None

    def locate_header(self, rows: Sequence[Sequence[str]]) -> int:
        return locate_recognizable_header(rows)

    def resolve_columns(self, headers: Sequence[str]) -> ColumnMapping:
        result = recognize_columns(
            headers,
            self.declared_source,
            self.recognizer,
            self.cache,
            force_reidentify=self.force_reidentify,
        )
        self.last_confidence = result.confidence
        return result.mapping

    def should_include(self, direction: Direction | None, status: str) -> bool:
        if direction == "income":
            return self.options.include_income
        return direction != "neutral"
