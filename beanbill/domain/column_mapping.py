"""Resolved column roles of a tabular source file."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any


def header_signature(headers: Sequence[str]) -> str:
    """Normalized header signature used as cache key: lowercased, trimmed, ``|``-joined."""
    return "|".join(header.strip().lower() for header in headers)


@dataclass(frozen=True)
class ColumnMapping:
    """Zero-based column indexes for each semantic role (None when absent).

    Recognizers mark an absent column with ``-1``; ``from_dict`` reads a
    negative optional index as absent and rejects one for time or amount.
    """

    time: int
    amount: int
    description: int | None = None
    direction: int | None = None
    counterparty: int | None = None
    status: int | None = None
    payment_method: int | None = None
    category: int | None = None

    def to_dict(self) -> dict[str, int]:
        return {role: index for role, index in vars(self).items() if index is not None}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> ColumnMapping:
        def optional(role: str) -> int | None:
            value = payload.get(role)
            if value is None or int(value) < 0:
                return None
            return int(value)

        def required(role: str) -> int:
            index = int(payload[role])
            if index < 0:
                raise ValueError(f"Required column {role!r} is missing")
            return index

        return cls(
            time=required("time"),
            amount=required("amount"),
            description=optional("description"),
            direction=optional("direction"),
            counterparty=optional("counterparty"),
            status=optional("status"),
            payment_method=optional("payment_method"),
            category=optional("category"),
        )

    @property
    def max_index(self) -> int:
        return max(index for index in vars(self).values() if index is not None)


@dataclass(frozen=True)
class RecognitionResult:
    """A column mapping together with the recognizer's confidence (0..1)."""

    mapping: ColumnMapping
    confidence: float
