"""Base class for tabular bill parsers.

This module provides the BaseBillParser class that the Alipay, WeChat,
generic CSV and universal parsers inherit from. It handles reading,
header location, per-row cell splitting, amount/date parsing and bill
construction.

Subclasses implement:
    locate_header(rows) -> int
    resolve_columns(headers) -> ColumnMapping

And optionally override:
    should_include(direction, status) - source-specific inclusion filter
    row_direction(row, mapping) - direction of a row
    describe(row, mapping) - narration text for a row
"""

from __future__ import annotations

import datetime
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Literal

from dateutil import parser as date_parser

from beanbill.domain.bill import ParsedBill, make_bill_id
from beanbill.domain.column_mapping import ColumnMapping
from beanbill.domain.payment_method import resolve_payment_method
from beanbill.importers.errors import EmptyFileError, InvalidRowDate
from beanbill.importers.reader import read_tabular_text
from beanbill.runtime import get_logger
from beanbill.util.security import sanitize_input
from beanbill.util.tabular import clean_amount_text, is_blank_row, read_rows

logger = get_logger(__name__)

DateErrorPolicy = Literal["now", "reject", "skip_row"]
Direction = Literal["expense", "income", "neutral"]

EXPENSE_TOKENS = ("支出", "付款", "out", "expense", "debit")
INCOME_TOKENS = ("收入", "收款", "income", "credit")
SUCCESS_TOKENS = ("成功", "已转账", "已收钱", "已存入", "已支付", "已完成", "success", "completed")
UNKNOWN_DESCRIPTION = "未知交易"
PLACEHOLDER_CELL = "/"

_CJK_DATE_SEPARATOR = re.compile(r"[年月]")
_CJK_DAY = re.compile(r"日")


def classify_direction(text: str) -> Direction | None:
    """Classify a direction cell; None when the cell is empty."""
    value = text.strip().lower()
    if not value:
        return None
    if any(token in value for token in EXPENSE_TOKENS):
        return "expense"
    if value == "in" or any(token in value for token in INCOME_TOKENS):
        return "income"
    return "neutral"


def direction_from_sign(amount: Decimal | None) -> Direction | None:
    if amount is None or amount == 0:
        return None
    return "income" if amount > 0 else "expense"


def is_success_status(text: str) -> bool:
    """Empty status counts as success; otherwise a success token must appear."""
    value = text.strip().lower()
    if not value:
        return True
    return any(token in value for token in SUCCESS_TOKENS)


def parse_amount(text: str) -> Decimal | None:
    cleaned = clean_amount_text(text)
    if not cleaned:
        return None
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value


def normalize_date_text(text: str) -> str:
    """``2024年1月5日 12:00`` -> ``2024-1-5 12:00``."""
    return _CJK_DAY.sub("", _CJK_DATE_SEPARATOR.sub("-", text.strip()))


def parse_date(text: str) -> datetime.datetime | None:
    normalized = normalize_date_text(text)
    if not normalized:
        return None
    try:
        return date_parser.parse(normalized)
    except (ValueError, OverflowError):
        return None


@dataclass(frozen=True)
class ParseOptions:
    on_date_parse_error: DateErrorPolicy = "now"
    include_income: bool = False
    clock: Callable[[], datetime.datetime] = field(default=datetime.datetime.now)


def _cell(row: Sequence[str], index: int | None) -> str:
    """Cell text, with the WeChat placeholder ``/`` read as empty."""
    if index is None or index < 0 or index >= len(row):
        return ""
    value = row[index]
    return "" if value == PLACEHOLDER_CELL else value


class BaseBillParser:
    """Skeleton shared by every tabular parser.

    Class-level defaults (subclasses override these):
        source: origin tag written onto every bill
        require_success_status: drop rows whose status is not a success
        signed_amounts: without a direction column, the amount sign decides
            the direction (positive is income)
    """

    source: str = "csv"
    require_success_status: bool = True
    signed_amounts: bool = False

    def __init__(self, options: ParseOptions | None = None) -> None:
        self.options = options or ParseOptions()

    # --- hooks -----------------------------------------------------------
    def locate_header(self, rows: Sequence[Sequence[str]]) -> int:
        raise NotImplementedError

    def resolve_columns(self, headers: Sequence[str]) -> ColumnMapping:
        raise NotImplementedError

    def should_include(self, direction: Direction | None, status: str) -> bool:
        """Keep successful expense rows (and income rows when configured)."""
        if self.require_success_status and not is_success_status(status):
            return False
        if direction is None:
            return True
        if direction == "expense":
            return True
        return direction == "income" and self.options.include_income

    def row_direction(self, row: Sequence[str], mapping: ColumnMapping) -> Direction | None:
        if mapping.direction is None and self.signed_amounts:
            return direction_from_sign(parse_amount(_cell(row, mapping.amount)))
        return classify_direction(_cell(row, mapping.direction))

    def describe(self, row: Sequence[str], mapping: ColumnMapping) -> str:
        description = _cell(row, mapping.description) or _cell(row, mapping.counterparty)
        return description or UNKNOWN_DESCRIPTION

    # --- entry points ----------------------------------------------------
    def parse_file(self, path: Path) -> list[ParsedBill]:
        return self.parse_bytes(path.read_bytes(), path.name)

    def parse_bytes(self, content: bytes, filename: str) -> list[ParsedBill]:
        return self.parse_text(read_tabular_text(content, filename))

    def parse_text(self, text: str) -> list[ParsedBill]:
        rows = read_rows(text)
        if not rows or all(is_blank_row(row) for row in rows):
            raise EmptyFileError()

        header_index = self.locate_header(rows)
        headers = rows[header_index]
        mapping = self.resolve_columns(headers)
        return self.parse_rows(rows[header_index + 1 :], headers, mapping, first_row_index=header_index + 1)

    def parse_rows(
        self,
        rows: Sequence[Sequence[str]],
        headers: Sequence[str],
        mapping: ColumnMapping,
        first_row_index: int = 1,
    ) -> list[ParsedBill]:
        required_width = max(mapping.time, mapping.amount) + 1
        bills: list[ParsedBill] = []
        skipped = 0
        filtered = 0

        for row_index, row in enumerate(rows, start=first_row_index):
            if is_blank_row(list(row)) or len(row) < required_width:
                skipped += 1
                continue
            direction = self.row_direction(row, mapping)
            if not self.should_include(direction, _cell(row, mapping.status)):
                filtered += 1
                continue
            bill = self.build_bill(row, headers, mapping, row_index, direction)
            if bill is None:
                skipped += 1
                continue
            bills.append(bill)

        logger.info(
            "%s parser: %d bills, %d rows filtered, %d rows skipped",
            self.source,
            len(bills),
            filtered,
            skipped,
        )
        return bills

    def build_bill(
        self,
        row: Sequence[str],
        headers: Sequence[str],
        mapping: ColumnMapping,
        row_index: int,
        direction: Direction | None,
    ) -> ParsedBill | None:
        raw_amount = parse_amount(_cell(row, mapping.amount))
        if raw_amount is None or raw_amount == 0:
            logger.debug("Skipping row %d: invalid amount %r", row_index, _cell(row, mapping.amount))
            return None
        magnitude = abs(raw_amount)
        amount = magnitude if direction == "income" else -magnitude

        transaction_date = self.resolve_date(_cell(row, mapping.time), row_index)
        if transaction_date is None:
            return None

        description = sanitize_input(self.describe(row, mapping)) or UNKNOWN_DESCRIPTION
        payment_text = _cell(row, mapping.payment_method)
        category_text = _cell(row, mapping.category)

        return ParsedBill(
            id=make_bill_id(self.source, transaction_date, amount, description, row_index),
            amount=amount,
            description=description,
            transaction_date=transaction_date,
            original_data=self.original_data(row, headers),
            source=self.source,
            payment_method_info=resolve_payment_method(payment_text) if payment_text.strip() else None,
            source_category=category_text or None,
        )

    def resolve_date(self, text: str, row_index: int) -> datetime.datetime | None:
        parsed = parse_date(text)
        if parsed is not None:
            return parsed
        policy = self.options.on_date_parse_error
        if policy == "reject":
            raise InvalidRowDate(text, row_index)
        if policy == "skip_row":
            logger.debug("Skipping row %d: unparseable date %r", row_index, text)
            return None
        logger.warning("Row %d has unparseable date %r, using current time", row_index, text)
        return self.options.clock()

    @staticmethod
    def original_data(row: Sequence[str], headers: Sequence[str]) -> dict[str, str]:
        data: dict[str, str] = {}
        for index, value in enumerate(row):
            key = headers[index] if index < len(headers) and headers[index] else f"column_{index + 1}"
            data[key] = value
        return data
