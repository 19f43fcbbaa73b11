"""End-to-end conversion: files in, Beancount text and diagnostics out."""

from __future__ import annotations

import datetime
from collections.abc import Sequence
from decimal import Decimal
from pathlib import Path

from beancount.parser import parser

from beanbill.application.pipeline import (
    ALL_DUPLICATES_ERROR,
    NO_NEW_TRANSACTIONS_CONTENT,
    NO_TRANSACTIONS_CONTENT,
    NO_TRANSACTIONS_WARNING,
    ConversionOptions,
    UploadedFile,
    convert_files,
    convert_paths,
)
from beanbill.domain.column_mapping import RecognitionResult
from beanbill.domain.defaults import DEFAULT_CATEGORY_RULES, AccountMappingConfig
from beanbill.importers import ParseOptions
from beanbill.runtime import ServiceUnavailable


def _uploads(alipay_csv: str, wechat_csv: str) -> list[UploadedFile]:
    return [
        UploadedFile("支付宝交易明细.csv", alipay_csv.encode("utf-8")),
        UploadedFile("微信支付账单.csv", wechat_csv.encode("utf-8")),
    ]


class _DownRecognizer:
    def __init__(self) -> None:
        self.calls = 0

    def recognize(self, headers: Sequence[str], source: str) -> RecognitionResult:
        self.calls += 1
        raise ServiceUnavailable("recognizer offline")


def test_multi_file_conversion_continues_past_broken_file(alipay_csv: str, wechat_csv: str) -> None:
    files = [*_uploads(alipay_csv, wechat_csv), UploadedFile("broken.csv", b"just,some\n1,2\n")]

    result = convert_files(files, ConversionOptions(include_open_directives=False))

    assert result.status == "ok"
    assert result.bill_count == 3
    assert result.transaction_count == 3
    assert result.sources == ["alipay", "wechat"]
    assert len(result.warnings) == 1
    assert result.warnings[0].startswith("解析文件 broken.csv 失败")
    assert [outcome.bill_count for outcome in result.files] == [2, 1, 0]
    assert result.files[2].error is not None
    assert result.files[0].file_hash is not None

    categories = {bill.description: bill.category for bill in result.unique_bills}
    assert categories == {
        "外卖订单": "Food-Delivery",
        "滴滴快车-行程": "Transport-Taxi",
        "生椰拿铁": "Shopping-Daily",
    }
    assert result.categorization is not None
    assert result.categorization.fallback == 1

    assert "Expenses:Food:Delivery" in result.accounts_used
    assert "Liabilities:CreditCard:" in result.beancount_content

    _, errors, _ = parser.parse_string(result.beancount_content)
    assert errors == []


def test_no_files_means_no_transactions() -> None:
    result = convert_files([])

    assert result.status == "no_transactions"
    assert result.beancount_content == NO_TRANSACTIONS_CONTENT
    assert result.warnings == [NO_TRANSACTIONS_WARNING]


def test_unsupported_file_type_is_reported() -> None:
    result = convert_files([UploadedFile("notes.pdf", b"%PDF-1.4")])

    assert result.status == "no_transactions"
    assert "不支持的文件类型" in result.warnings[0]


def test_reimport_of_same_files_is_all_duplicates(alipay_csv: str, wechat_csv: str) -> None:
    first = convert_files(_uploads(alipay_csv, wechat_csv))

    second = convert_files(
        _uploads(alipay_csv, wechat_csv),
        ConversionOptions(existing_bills=first.unique_bills),
    )

    assert second.status == "all_duplicates"
    assert second.error == ALL_DUPLICATES_ERROR
    assert second.beancount_content == NO_NEW_TRANSACTIONS_CONTENT
    assert second.deduplication_report is not None
    assert second.deduplication_report.duplicate_rate == 100.0
    assert second.deduplication_report.duplicate_new == 3


def test_partial_duplicates_only_emit_new_bills(alipay_csv: str, wechat_csv: str) -> None:
    first = convert_files(_uploads(alipay_csv, wechat_csv)[:1])

    second = convert_files(
        _uploads(alipay_csv, wechat_csv),
        ConversionOptions(existing_bills=first.unique_bills, include_open_directives=False),
    )

    assert second.status == "ok"
    assert [bill.description for bill in second.unique_bills] == ["生椰拿铁"]
    assert second.deduplication is not None
    assert second.deduplication.duplicate_count == 2


def test_open_directives_use_fixed_date(alipay_csv: str) -> None:
    upload = UploadedFile("alipay.csv", alipay_csv.encode("utf-8"))

    with_open = convert_files([upload], ConversionOptions(today=datetime.date(2024, 5, 1)))
    without_open = convert_files([upload], ConversionOptions(include_open_directives=False))

    assert "2024-05-01 open Assets:Cash" in with_open.beancount_content
    assert " open " not in without_open.beancount_content


def test_budget_overrun_is_reported(alipay_csv: str) -> None:
    upload = UploadedFile("alipay.csv", alipay_csv.encode("utf-8"))

    result = convert_files([upload], ConversionOptions(budgets={"Food-Delivery": Decimal("10")}))

    assert [anomaly.bill_id for anomaly in result.anomalies] == ["Food-Delivery"]
    assert result.anomalies[0].severity == "medium"


def test_recognizer_outage_falls_back_to_static_parser(alipay_csv: str) -> None:
    recognizer = _DownRecognizer()
    upload = UploadedFile("alipay.csv", alipay_csv.encode("utf-8"))

    result = convert_files([upload], ConversionOptions(recognizer=recognizer))

    assert recognizer.calls == 1
    assert result.status == "ok"
    assert result.sources == ["alipay"]
    assert result.bill_count == 2


def test_convert_paths_reads_files(tmp_path: Path, wechat_csv: str) -> None:
    path = tmp_path / "wechat.csv"
    path.write_text(wechat_csv, encoding="utf-8")

    result = convert_paths([path], ConversionOptions(include_open_directives=False))

    assert result.files[0].name == "wechat.csv"
    assert result.bill_count == 1


def test_income_and_uncategorized_bills_use_configured_defaults() -> None:
    rules = tuple(rule for rule in DEFAULT_CATEGORY_RULES if not rule.is_fallback)
    mapping = AccountMappingConfig(category_rules=rules, default_expense_account="Expenses:Misc:Unknown")
    upload = UploadedFile("bank.csv", "日期,说明,金额\n2024-05-01,工资,5000\n2024-05-02,神秘商品,-30\n".encode("utf-8"))

    result = convert_files(
        [upload],
        ConversionOptions(
            parse_options=ParseOptions(include_income=True),
            account_mapping=mapping,
            include_open_directives=False,
        ),
    )

    assert [(bill.description, bill.amount) for bill in result.unique_bills] == [
        ("工资", Decimal("5000")),
        ("神秘商品", Decimal("-30")),
    ]
    assert result.unique_bills[1].category_origin == "fallback"
    assert "Income:Refunds" in result.accounts_used
    assert "Expenses:Misc:Unknown" in result.accounts_used
    assert "Income:Salary" not in result.accounts_used
    assert "Expenses:Shopping:Daily" not in result.accounts_used
