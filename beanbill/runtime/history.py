"""JSON-file adapter for the upload history used as deduplication input.

The conversion core only consumes a flat list of previously accepted bills
and hands back the newly accepted ones; this module is the file-backed
stand-in the CLI uses for that store.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from beanbill.domain.bill import ParsedBill
from beanbill.runtime.json_store import read_json, write_json_atomic
from beanbill.runtime.logging import get_logger

logger = get_logger(__name__)


def load_history(path: Path) -> list[ParsedBill]:
    bills: list[ParsedBill] = []
    for payload in read_json(path, default=[]):
        try:
            bills.append(ParsedBill.from_dict(payload))
        except (KeyError, TypeError, ValueError, ArithmeticError) as e:
            logger.warning("Skipping malformed history record in %s: %s", path, e)
    logger.debug("Loaded %d history bills from %s", len(bills), path)
    return bills


def append_history(path: Path, bills: Sequence[ParsedBill]) -> int:
    """Append accepted bills to the history file; returns the new total."""
    existing = read_json(path, default=[])
    existing.extend(bill.to_dict() for bill in bills)
    write_json_atomic(path, existing)
    logger.info("Recorded %d bills in history (%d total)", len(bills), len(existing))
    return len(existing)
