"""Beancount rendering and the double-entry invariant."""

from __future__ import annotations

import datetime
from decimal import Decimal

from beancount.core import data
from beancount.parser import parser

from beanbill.domain.beancount_generator import (
    BeancountGenerator,
    GenerateOptions,
    LedgerHeader,
    generate_beancount,
    split_description,
)
from beanbill.domain.bill import ParsedBill, PaymentMethodInfo
from beanbill.domain.defaults import AccountMappingConfig
from beanbill.importers import AlipayParser


def _bill(
    description: str,
    amount: str,
    *,
    source: str | None = "alipay",
    category: str | None = None,
    payment: PaymentMethodInfo | None = None,
) -> ParsedBill:
    return ParsedBill(
        id=f"test-{description}",
        amount=Decimal(amount),
        description=description,
        transaction_date=datetime.datetime(2024, 1, 1, 12, 0),
        source=source,
        category=category,
        payment_method_info=payment,
    )


def _parse_transactions(text: str) -> list[data.Transaction]:
    entries, errors, _ = parser.parse_string(text)
    assert not errors, errors
    return [entry for entry in entries if isinstance(entry, data.Transaction)]


def test_alipay_bill_renders_balanced_delivery_expense() -> None:
    text = (
        "交易时间,交易分类,交易对方,对方账号,商品说明,收/支,金额,收/付款方式,交易状态\n"
        "2024-01-01 12:00:00,餐饮美食,美团外卖,123456789,外卖订单,支出,50.5,支付宝余额,交易成功\n"
    )
    bills = AlipayParser().parse_text(text)

    output = generate_beancount(bills)

    assert "Expenses:Food:Delivery" in output
    assert "50.50 CNY" in output
    assert "-50.50 CNY" in output
    assert output.startswith('2024-01-01 * "外卖订单"')


def test_every_transaction_balances_to_zero() -> None:
    bills = [
        _bill("美团-外卖订单", "-50.5"),
        _bill("滴滴快车", "-23.456"),
        _bill("退款", "20.00"),
    ]

    transactions = _parse_transactions(generate_beancount(bills))

    assert len(transactions) == 3
    for txn in transactions:
        assert len(txn.postings) == 2
        assert sum(posting.units.number for posting in txn.postings) == Decimal("0.00")


def test_posting_order_depends_on_sign() -> None:
    ledger = BeancountGenerator().generate([_bill("美团外卖", "-10"), _bill("退款", "10")])
    expense, income = ledger.transactions

    assert [p.account for p in expense.postings] == ["Expenses:Food:Delivery", "Assets:Alipay:Balance"]
    assert [p.units.number for p in expense.postings] == [Decimal("10.00"), Decimal("-10.00")]
    assert [p.account for p in income.postings] == ["Assets:Alipay:Balance", "Income:Refunds"]
    assert ledger.transaction_count == 2
    assert "Income:Refunds" in ledger.accounts_used


def test_payment_method_account_takes_precedence_over_source() -> None:
    card = PaymentMethodInfo("招商", "信用卡", "招商银行信用卡(8888)", "Liabilities:CreditCard:CMB", "8888")

    ledger = BeancountGenerator().generate([_bill("滴滴快车", "-23", payment=card)])

    assert ledger.transactions[0].postings[1].account == "Liabilities:CreditCard:CMB"


def test_standard_category_overrides_rules_for_matching_direction() -> None:
    ledger = BeancountGenerator().generate(
        [
            _bill("神秘商户", "-5", category="Health-Medical"),
            _bill("神秘退款", "5", category="Health-Medical"),
        ]
    )

    assert ledger.transactions[0].postings[0].account == "Expenses:Health:Medical"
    assert ledger.transactions[1].postings[1].account == "Income:Refunds"


def test_fallback_category_defers_to_configured_default() -> None:
    mapping = AccountMappingConfig(category_rules=(), default_expense_account="Expenses:Misc:Unknown")
    fallback = _bill("神秘商户", "-5", category="Shopping-Daily")
    fallback.category_origin = "fallback"
    decided = _bill("神秘商店", "-5", category="Shopping-Daily")
    decided.category_origin = "ai"

    ledger = BeancountGenerator(GenerateOptions(account_mapping=mapping)).generate([fallback, decided])

    assert ledger.transactions[0].postings[0].account == "Expenses:Misc:Unknown"
    assert ledger.transactions[1].postings[0].account == "Expenses:Shopping:Daily"


def test_description_split_into_payee_and_narration() -> None:
    assert split_description("美团-外卖订单") == ("美团", "外卖订单")
    assert split_description("滴滴—快车-夜间") == ("滴滴", "快车-夜间")
    assert split_description("便利店") == (None, "便利店")

    text = generate_beancount([_bill('美团-"特价"订单', "-1")])
    assert '"美团" "\\"特价\\"订单"' in text


def test_header_and_open_directives() -> None:
    options = GenerateOptions(
        header=LedgerHeader(title="一月账单", author="测试"),
        include_open_directives=True,
        currency="USD",
        today=datetime.date(2024, 2, 1),
    )

    text = BeancountGenerator(options).generate([_bill("地铁", "-3")]).text

    assert text.startswith(";\n; Title: 一月账单\n; Author: 测试\n")
    assert "2024-02-01 open Expenses:Transport:Public" in text
    assert "-3.00 USD" in text
    entries, errors, _ = parser.parse_string(text)
    assert not errors
    assert any(isinstance(entry, data.Open) for entry in entries)


def test_empty_bill_list_renders_nothing() -> None:
    assert generate_beancount([]) == ""
