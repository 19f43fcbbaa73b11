from __future__ import annotations

import datetime
from decimal import Decimal

from beanbill.domain.bill import ParsedBill
from beanbill.domain.validation import (
    DataValidationErrorType,
    format_validation_errors,
    sanitize_bills,
    validate_amount,
    validate_bills,
    validate_date,
)


def _bill(description: str = "早餐", amount: str = "-8", when: datetime.datetime | None = None) -> ParsedBill:
    return ParsedBill(
        id=f"test-{description}-{amount}",
        amount=Decimal(amount),
        description=description,
        transaction_date=when or datetime.datetime(2024, 3, 1, 8, 0),
    )


def test_amount_boundaries() -> None:
    assert validate_amount(0.01)
    assert validate_amount(-0.01)
    assert not validate_amount(0.009)
    assert validate_amount(10_000_000)
    assert not validate_amount(10_000_001)
    assert validate_amount(Decimal("-10000000.00"))
    assert validate_amount("50.5")
    assert not validate_amount(0)
    assert not validate_amount("abc")
    assert not validate_amount(Decimal("NaN"))
    assert not validate_amount(True)


def test_date_boundaries() -> None:
    assert validate_date(datetime.date(1990, 1, 1))
    assert validate_date(datetime.datetime(2030, 12, 31, 23, 59))
    assert validate_date("2024-03-01T08:00:00")
    assert not validate_date(datetime.date(1989, 12, 31))
    assert not validate_date(datetime.date(2031, 1, 1))
    assert not validate_date("not a date")
    assert not validate_date(None)


def test_validate_bills_collects_structured_errors() -> None:
    bills = [
        _bill(),
        _bill(description=" "),
        _bill(amount="0.001"),
        _bill(when=datetime.datetime(1985, 5, 5)),
    ]

    result = validate_bills(bills)

    assert not result.valid
    assert [(error.type, error.field, error.index) for error in result.errors] == [
        (DataValidationErrorType.MISSING_FIELD, "description", 1),
        (DataValidationErrorType.INVALID_AMOUNT, "amount", 2),
        (DataValidationErrorType.INVALID_DATE, "transaction_date", 3),
    ]
    text = format_validation_errors(result.errors)
    assert "1 笔交易的金额无效" in text
    assert "[第 2 条] 缺少交易描述" in text


def test_validate_bills_rejects_empty_and_non_list_input() -> None:
    assert validate_bills([]).errors[0].type is DataValidationErrorType.EMPTY_BILLS
    assert validate_bills(None).errors[0].type is DataValidationErrorType.INVALID_STRUCTURE  # type: ignore[arg-type]


def test_many_errors_are_summarized() -> None:
    errors = validate_bills([_bill(amount="0") for _ in range(6)]).errors

    text = format_validation_errors(errors)

    assert "共发现 6 个错误" in text
    assert "详细错误" not in text


def test_sanitize_keeps_valid_bills() -> None:
    good = _bill()
    result = sanitize_bills([good, _bill(amount="0"), _bill(description="")])

    assert result.valid == [good]
    assert result.invalid == 2
