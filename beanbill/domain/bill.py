"""Normalized bill records produced by the source parsers."""

from __future__ import annotations

import datetime
import hashlib
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Literal

AI_PARSED_SOURCE = "ai-parsed"

CategoryOrigin = Literal["source", "rule", "ai", "fallback"]


class BillSource(str, Enum):
    """Declared or inferred origin of an uploaded file."""

    ALIPAY = "alipay"
    WECHAT = "wechat"
    BANK = "bank"
    CSV = "csv"
    AUTO = "auto"

    @classmethod
    def parse(cls, value: str | BillSource | None) -> BillSource:
        if isinstance(value, BillSource):
            return value
        if not value:
            return cls.AUTO
        return cls(value.strip().lower())


@dataclass(frozen=True)
class PaymentMethodInfo:
    """Bank/card/balance identity resolved from a payment-method cell."""

    bank_name: str
    payment_type: str
    full_description: str
    beancount_account: str
    last_four_digits: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "bank_name": self.bank_name,
            "payment_type": self.payment_type,
            "full_description": self.full_description,
            "beancount_account": self.beancount_account,
            "last_four_digits": self.last_four_digits,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> PaymentMethodInfo:
        return cls(
            bank_name=payload["bank_name"],
            payment_type=payload["payment_type"],
            full_description=payload["full_description"],
            beancount_account=payload["beancount_account"],
            last_four_digits=payload.get("last_four_digits"),
        )


@dataclass
class ParsedBill:
    """One transaction extracted from a source file.

    ``amount`` is signed: expenses are negative, income positive.
    ``original_data`` keeps the source cells keyed by header name and is
    never interpreted downstream.
    ``category_origin`` records which classifier tier set ``category``.
    """

    id: str
    amount: Decimal
    description: str
    transaction_date: datetime.datetime
    original_data: dict[str, str] = field(default_factory=dict)
    source: str | None = None
    category: str | None = None
    payment_method_info: PaymentMethodInfo | None = None
    source_category: str | None = None
    category_origin: CategoryOrigin | None = None

    @property
    def is_expense(self) -> bool:
        return self.amount < 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "amount": str(self.amount),
            "description": self.description,
            "transaction_date": self.transaction_date.isoformat(),
            "original_data": dict(self.original_data),
            "source": self.source,
            "category": self.category,
            "payment_method_info": self.payment_method_info.to_dict() if self.payment_method_info else None,
            "source_category": self.source_category,
            "category_origin": self.category_origin,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> ParsedBill:
        payment = payload.get("payment_method_info")
        return cls(
            id=payload["id"],
            amount=Decimal(str(payload["amount"])),
            description=payload.get("description", ""),
            transaction_date=datetime.datetime.fromisoformat(payload["transaction_date"]),
            original_data=dict(payload.get("original_data") or {}),
            source=payload.get("source"),
            category=payload.get("category"),
            payment_method_info=PaymentMethodInfo.from_dict(payment) if payment else None,
            source_category=payload.get("source_category"),
            category_origin=payload.get("category_origin"),
        )


def make_bill_id(
    source: str,
    transaction_date: datetime.datetime,
    amount: Decimal,
    description: str,
    row_index: int,
) -> str:
    """Content-addressed bill id, stable across re-parses of the same row."""
    canonical = "|".join(
        [source, transaction_date.isoformat(), f"{amount:.2f}", description.strip(), str(row_index)]
    )
    digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()
    return f"{source}-{digest[:16]}"
