"""Render bills as Beancount text.

Each bill becomes one ``beancount.core.data.Transaction`` with exactly two
postings that sum to zero:

- expense (amount < 0): [category +|amount|, asset -|amount|]
- income (amount >= 0): [asset +|amount|, category -|amount|]

Transactions are built as beancount objects first and rendered afterwards,
so callers can count and inspect what was generated.
"""

from __future__ import annotations

import datetime
import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal

from beancount.core import amount, data, flags
from beancount.core.number import D

from beanbill.domain.account_mapper import AccountMapper
from beanbill.domain.bill import ParsedBill
from beanbill.domain.defaults import COMMON_ACCOUNTS, AccountMappingConfig
from beanbill.domain.taxonomy import category_to_beancount

logger = logging.getLogger(f"beanbill.{__name__}")

DEFAULT_CURRENCY = "CNY"
ACCOUNT_COLUMN_WIDTH = 35
_DESCRIPTION_SEPARATOR = re.compile(r"[-—–_]")
_CENTS = Decimal("0.01")


@dataclass(frozen=True)
class LedgerHeader:
    title: str | None = None
    author: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class GenerateOptions:
    header: LedgerHeader | None = None
    include_open_directives: bool = False
    account_mapping: AccountMappingConfig | None = None
    currency: str = DEFAULT_CURRENCY
    today: datetime.date | None = None


@dataclass(frozen=True)
class GeneratedLedger:
    text: str
    transactions: list[data.Transaction] = field(default_factory=list)

    @property
    def transaction_count(self) -> int:
        return len(self.transactions)

    @property
    def accounts_used(self) -> list[str]:
        accounts = {posting.account for txn in self.transactions for posting in txn.postings}
        return sorted(accounts)


def split_description(description: str) -> tuple[str | None, str]:
    """Split ``payee-narration`` on the first dash-class character."""
    parts = _DESCRIPTION_SEPARATOR.split(description, maxsplit=1)
    if len(parts) == 2:
        return parts[0].strip(), parts[1].strip()
    return None, description.strip()


def create_posting(account: str, number: Decimal, currency: str) -> data.Posting:
    return data.Posting(account, amount.Amount(D(number).quantize(_CENTS), currency), None, None, None, None)


def _category_account(bill: ParsedBill, mapper: AccountMapper) -> str:
    # Income and fallback-categorized bills use the configured mapper defaults.
    if bill.is_expense and bill.category and bill.category_origin != "fallback":
        account = category_to_beancount(bill.category)
        if account and account.startswith("Expenses:"):
            return account
    return mapper.get_category_account(bill.description, bill.amount)


def bill_to_transaction(
    bill: ParsedBill, mapper: AccountMapper, currency: str = DEFAULT_CURRENCY, index: int = 0
) -> data.Transaction:
    magnitude = abs(bill.amount)
    if bill.payment_method_info is not None:
        asset_account = bill.payment_method_info.beancount_account
    else:
        asset_account = mapper.get_asset_account(bill.source)
    category_account = _category_account(bill, mapper)
    payee, narration = split_description(bill.description)

    if bill.is_expense:
        postings = [
            create_posting(category_account, magnitude, currency),
            create_posting(asset_account, -magnitude, currency),
        ]
    else:
        postings = [
            create_posting(asset_account, magnitude, currency),
            create_posting(category_account, -magnitude, currency),
        ]

    meta = data.new_metadata("<beanbill>", index, {"bill_id": bill.id})
    return data.Transaction(
        meta=meta,
        date=bill.transaction_date.date(),
        flag=flags.FLAG_OKAY,
        payee=payee,
        narration=narration,
        tags=frozenset(),
        links=frozenset(),
        postings=postings,
    )


def _quote(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def format_posting(posting: data.Posting) -> str:
    units = posting.units
    if units is None:
        return f"    {posting.account}"
    return f"    {posting.account:<{ACCOUNT_COLUMN_WIDTH}}  {units.number:.2f} {units.currency}"


def format_transaction(txn: data.Transaction) -> str:
    header = f"{txn.date.isoformat()} {txn.flag}"
    if txn.payee:
        header += f" {_quote(txn.payee)}"
    header += f" {_quote(txn.narration or '')}"
    for tag in sorted(txn.tags or ()):
        header += f" #{tag}"
    for link in sorted(txn.links or ()):
        header += f" ^{link}"
    return "\n".join([header, *(format_posting(posting) for posting in txn.postings)])


def format_header(header: LedgerHeader, generated_at: datetime.datetime | None = None) -> str:
    generated_at = generated_at or datetime.datetime.now(datetime.timezone.utc)
    lines = [";"]
    if header.title:
        lines.append(f"; Title: {header.title}")
    if header.author:
        lines.append(f"; Author: {header.author}")
    if header.description:
        lines.append(f"; Description: {header.description}")
    lines.append(";")
    lines.append(f"; Generated: {generated_at.isoformat()}")
    lines.append(";")
    return "\n".join(lines)


def format_open_directives(today: datetime.date, accounts: Sequence[str] = COMMON_ACCOUNTS) -> str:
    return "\n".join(f"{today.isoformat()} open {account}" for account in accounts)


class BeancountGenerator:
    """Single-pass renderer: header, open directives, then one block per bill."""

    def __init__(self, options: GenerateOptions | None = None, mapper: AccountMapper | None = None) -> None:
        self.options = options or GenerateOptions()
        self.mapper = mapper or AccountMapper(self.options.account_mapping)

    def build_transactions(self, bills: Sequence[ParsedBill]) -> list[data.Transaction]:
        return [
            bill_to_transaction(bill, self.mapper, self.options.currency, index)
            for index, bill in enumerate(bills, start=1)
        ]

    def generate(self, bills: Sequence[ParsedBill]) -> GeneratedLedger:
        blocks: list[str] = []
        if self.options.header is not None:
            blocks.append(format_header(self.options.header))
        if self.options.include_open_directives:
            blocks.append(format_open_directives(self.options.today or datetime.date.today()))

        transactions = self.build_transactions(bills)
        blocks.extend(format_transaction(txn) for txn in transactions)
        logger.debug("Rendered %d transactions", len(transactions))

        text = "\n\n".join(blocks)
        return GeneratedLedger(text=f"{text}\n" if text else "", transactions=transactions)

    def generate_from_bills(self, bills: Sequence[ParsedBill]) -> str:
        return self.generate(bills).text


def generate_beancount(bills: Sequence[ParsedBill], options: GenerateOptions | None = None) -> str:
    return BeancountGenerator(options).generate_from_bills(bills)
