"""Content-hash deduplication of bills against history and within a batch.

Two bills with the same date, amount (to 2 decimals) and normalized
description are treated as the same economic event, whichever file they
came from. Within a batch the first occurrence wins.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from decimal import Decimal

from beanbill.domain.bill import ParsedBill


def generate_transaction_hash(bill: ParsedBill) -> str:
    amount = bill.amount if isinstance(bill.amount, Decimal) else Decimal(str(bill.amount))
    description = bill.description.strip().lower()
    return f"{bill.transaction_date.isoformat()}|{amount:.2f}|{description}"


class Deduplicator:
    """A set of seen hashes whose check-and-insert is atomic."""

    def __init__(self, existing: Iterable[ParsedBill] = ()) -> None:
        self._seen: set[str] = {generate_transaction_hash(bill) for bill in existing}
        self._lock = threading.Lock()

    def accept(self, bill: ParsedBill) -> bool:
        """Record ``bill`` and return True if its hash has not been seen yet."""
        key = generate_transaction_hash(bill)
        with self._lock:
            if key in self._seen:
                return False
            self._seen.add(key)
            return True

    def __len__(self) -> int:
        return len(self._seen)


@dataclass(frozen=True)
class DeduplicationResult:
    unique: list[ParsedBill] = field(default_factory=list)
    duplicates: list[ParsedBill] = field(default_factory=list)

    @property
    def unique_count(self) -> int:
        return len(self.unique)

    @property
    def duplicate_count(self) -> int:
        return len(self.duplicates)

    @property
    def total_count(self) -> int:
        return self.unique_count + self.duplicate_count


@dataclass(frozen=True)
class DuplicateExample:
    date: str
    amount: Decimal
    description: str


@dataclass(frozen=True)
class DeduplicationReport:
    total_new: int
    unique_new: int
    duplicate_new: int
    duplicate_rate: float
    duplicate_examples: list[DuplicateExample]


def deduplicate_bills(new_bills: Sequence[ParsedBill], existing_bills: Iterable[ParsedBill] = ()) -> DeduplicationResult:
    deduplicator = Deduplicator(existing_bills)
    unique: list[ParsedBill] = []
    duplicates: list[ParsedBill] = []
    for bill in new_bills:
        if deduplicator.accept(bill):
            unique.append(bill)
        else:
            duplicates.append(bill)
    return DeduplicationResult(unique, duplicates)


def remove_duplicates_within_batch(bills: Sequence[ParsedBill]) -> DeduplicationResult:
    return deduplicate_bills(bills)


def find_duplicate_groups(bills: Iterable[ParsedBill]) -> dict[str, list[ParsedBill]]:
    """Group bills by hash, keeping only groups with more than one member."""
    groups: dict[str, list[ParsedBill]] = {}
    for bill in bills:
        groups.setdefault(generate_transaction_hash(bill), []).append(bill)
    return {key: members for key, members in groups.items() if len(members) > 1}


def format_deduplication_stats(result: DeduplicationResult) -> str:
    if result.duplicate_count == 0:
        return "✅ 未发现重复记录"
    return "\n".join(
        [
            f"⚠️ 发现 {result.duplicate_count} 条重复记录",
            f"✅ 保留 {result.unique_count} 条唯一记录",
        ]
    )


def generate_deduplication_report(result: DeduplicationResult) -> DeduplicationReport:
    total = result.total_count
    rate = round(result.duplicate_count / total * 100, 2) if total else 0.0
    examples = [
        DuplicateExample(
            date=bill.transaction_date.date().isoformat(),
            amount=bill.amount,
            description=bill.description,
        )
        for bill in result.duplicates[:5]
    ]
    return DeduplicationReport(
        total_new=total,
        unique_new=result.unique_count,
        duplicate_new=result.duplicate_count,
        duplicate_rate=rate,
        duplicate_examples=examples,
    )
