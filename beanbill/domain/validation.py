"""Post-parse validation of bills.

Violations are collected as structured errors instead of raised; callers
decide whether to reject a batch or drop the invalid bills with
``sanitize_bills``.
"""

from __future__ import annotations

import datetime
from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from beanbill.domain.bill import ParsedBill

MIN_AMOUNT = Decimal("0.01")
MAX_AMOUNT = Decimal("10000000")
MIN_DATE = datetime.date(1990, 1, 1)
MAX_DATE = datetime.date(2030, 12, 31)


class DataValidationErrorType(str, Enum):
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_DATE = "INVALID_DATE"
    MISSING_FIELD = "MISSING_FIELD"
    EMPTY_BILLS = "EMPTY_BILLS"
    INVALID_STRUCTURE = "INVALID_STRUCTURE"


@dataclass(frozen=True)
class BillValidationError:
    type: DataValidationErrorType
    message: str
    field: str | None = None
    index: int | None = None


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    errors: list[BillValidationError] = field(default_factory=list)


@dataclass(frozen=True)
class SanitizeResult:
    valid: list[ParsedBill]
    invalid: int


def _to_decimal(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    try:
        if isinstance(value, str):
            return Decimal(value.strip())
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def validate_amount(amount: Any) -> bool:
    """Magnitude must lie within [0.01, 10,000,000]; sign is irrelevant."""
    number = _to_decimal(amount)
    if number is None or not number.is_finite():
        return False
    magnitude = abs(number)
    return MIN_AMOUNT <= magnitude <= MAX_AMOUNT


def validate_date(value: Any) -> bool:
    if isinstance(value, datetime.datetime):
        day = value.date()
    elif isinstance(value, datetime.date):
        day = value
    elif isinstance(value, str) and value:
        try:
            day = datetime.datetime.fromisoformat(value).date()
        except ValueError:
            return False
    else:
        return False
    return MIN_DATE <= day <= MAX_DATE


def validate_bill(bill: ParsedBill, index: int) -> list[BillValidationError]:
    errors: list[BillValidationError] = []

    if not isinstance(bill.description, str) or not bill.description.strip():
        errors.append(
            BillValidationError(DataValidationErrorType.MISSING_FIELD, "缺少交易描述", "description", index)
        )

    if not validate_amount(bill.amount):
        errors.append(
            BillValidationError(
                DataValidationErrorType.INVALID_AMOUNT,
                f"金额无效：{bill.amount}（必须为非零数字）",
                "amount",
                index,
            )
        )

    if not validate_date(bill.transaction_date):
        errors.append(
            BillValidationError(
                DataValidationErrorType.INVALID_DATE,
                f"日期无效：{bill.transaction_date}",
                "transaction_date",
                index,
            )
        )

    return errors


def validate_bills(bills: Sequence[ParsedBill]) -> ValidationResult:
    if not isinstance(bills, Sequence) or isinstance(bills, (str, bytes)):
        return ValidationResult(
            False,
            [BillValidationError(DataValidationErrorType.INVALID_STRUCTURE, "账单数据格式错误：不是数组")],
        )

    if not bills:
        return ValidationResult(
            False,
            [BillValidationError(DataValidationErrorType.EMPTY_BILLS, "账单数据为空，未找到任何交易记录")],
        )

    errors: list[BillValidationError] = []
    for index, bill in enumerate(bills):
        errors.extend(validate_bill(bill, index))
    return ValidationResult(not errors, errors)


def format_validation_errors(errors: Sequence[BillValidationError]) -> str:
    """Render errors grouped by type; individual messages only for small lists."""
    if not errors:
        return ""

    counts: dict[DataValidationErrorType, int] = {}
    for error in errors:
        counts[error.type] = counts.get(error.type, 0) + 1

    lines: list[str] = []
    if DataValidationErrorType.EMPTY_BILLS in counts:
        lines.append("❌ 账单文件为空或无法解析")
    if DataValidationErrorType.INVALID_STRUCTURE in counts:
        lines.append("❌ 账单数据格式错误")
    if DataValidationErrorType.INVALID_AMOUNT in counts:
        lines.append(f"❌ {counts[DataValidationErrorType.INVALID_AMOUNT]} 笔交易的金额无效")
    if DataValidationErrorType.INVALID_DATE in counts:
        lines.append(f"❌ {counts[DataValidationErrorType.INVALID_DATE]} 笔交易的日期无效")
    if DataValidationErrorType.MISSING_FIELD in counts:
        lines.append(f"❌ {counts[DataValidationErrorType.MISSING_FIELD]} 笔交易缺少必填字段")

    if len(errors) > 5:
        lines.append(f"\n📊 共发现 {len(errors)} 个错误，请检查文件格式")
    else:
        lines.append("\n详细错误：")
        for error in errors:
            prefix = f"[第 {error.index + 1} 条] " if error.index is not None else ""
            lines.append(f"  {prefix}{error.message}")

    return "\n".join(lines)


def sanitize_bills(bills: Sequence[ParsedBill]) -> SanitizeResult:
    """Keep the valid bills (as a new list) and count the dropped ones."""
    valid: list[ParsedBill] = []
    invalid = 0
    for index, bill in enumerate(bills):
        if validate_bill(bill, index):
            invalid += 1
        else:
            valid.append(bill)
    return SanitizeResult(valid, invalid)
