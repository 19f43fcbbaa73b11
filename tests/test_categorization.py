from __future__ import annotations

import datetime
import json
from decimal import Decimal

import httpx

from beanbill.application.categorization import (
    FALLBACK_REASON,
    UNCATEGORIZED_ACCOUNT,
    AICategorizer,
    CategorizationStats,
    categorize_bills,
    should_use_ai,
    smart_categorize,
)
from beanbill.domain.bill import ParsedBill
from beanbill.runtime import CategorizationClient, ServiceConfig
from beanbill.runtime.rule_engine import RulesEngine


def _bill(description: str, amount: str = "-10", source_category: str | None = None) -> ParsedBill:
    return ParsedBill(
        id=f"test-{description}",
        amount=Decimal(amount),
        description=description,
        transaction_date=datetime.datetime(2024, 3, 1, 12, 0),
        source="alipay",
        source_category=source_category,
    )


def _client(handler) -> CategorizationClient:
    return CategorizationClient(
        ServiceConfig(base_url="http://ai.test", retries=0),
        client=httpx.Client(transport=httpx.MockTransport(handler)),
    )


def _unreachable(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


def test_should_use_ai_for_long_or_latin_descriptions() -> None:
    assert should_use_ai("ABC Cloud Hosting")
    assert should_use_ai("订单8842")
    assert should_use_ai("某" * 21)
    assert not should_use_ai("生椰拿铁")


def test_categorize_bills_uses_source_rules_then_service() -> None:
    requests: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/batch-categorize"
        requests.append(json.loads(request.content))
        return httpx.Response(
            200,
            json={"categories": [{"description": "ABC Cloud Hosting", "category": "Shopping-Online"}]},
        )

    bills = [
        _bill("某个订单", source_category="Food-Delivery"),
        _bill("滴滴快车-行程"),
        _bill("ABC Cloud Hosting"),
        _bill("神秘商品"),
        _bill("神秘商品", "-5"),
    ]

    stats = categorize_bills(bills, RulesEngine(), _client(handler))

    assert [bill.category for bill in bills] == [
        "Food-Delivery",
        "Transport-Taxi",
        "Shopping-Online",
        "Shopping-Daily",
        "Shopping-Daily",
    ]
    assert [bill.category_origin for bill in bills] == ["source", "rule", "ai", "fallback", "fallback"]
    assert stats == CategorizationStats(from_source=1, from_rules=1, from_ai=1, fallback=2)
    assert len(requests) == 1
    assert [item["description"] for item in requests[0]["bills"]] == ["ABC Cloud Hosting", "神秘商品"]


def test_categorize_bills_keeps_valid_existing_category() -> None:
    bill = _bill("滴滴快车")
    bill.category = "Health-Medical"

    stats = categorize_bills([bill], RulesEngine())

    assert bill.category == "Health-Medical"
    assert stats.from_source == 1


def test_categorize_bills_degrades_when_service_is_down() -> None:
    bills = [_bill("ABC Cloud Hosting")]

    stats = categorize_bills(bills, RulesEngine(), _client(_unreachable))

    assert bills[0].category == "Shopping-Daily"
    assert stats.fallback == 1
    assert stats.from_ai == 0


def test_categorize_bills_ignores_unknown_service_categories() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"categories": [{"description": "XYZ", "category": "Toys"}]})

    bills = [_bill("XYZ")]

    categorize_bills(bills, RulesEngine(), _client(handler))

    assert bills[0].category == "Shopping-Daily"


def test_ai_categorizer_degrades_to_uncategorized() -> None:
    categorizer = AICategorizer(_client(_unreachable))

    response = categorizer.categorize("ABC Cloud Hosting", Decimal("99"))

    assert response.account == UNCATEGORIZED_ACCOUNT
    assert response.confidence == 0.0
    assert response.reasoning == FALLBACK_REASON


def test_ai_categorizer_offers_rule_accounts() -> None:
    seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"account": "Expenses:Shopping:Online", "confidence": 0.9})

    categorizer = AICategorizer(_client(handler))
    response = categorizer.categorize("ABC Cloud Hosting", Decimal("99"))

    accounts = seen[0]["availableAccounts"]
    assert response.account == "Expenses:Shopping:Online"
    assert "Expenses:Food:Delivery" in accounts
    assert UNCATEGORIZED_ACCOUNT in accounts
    assert len(accounts) == len(set(accounts))


def test_smart_categorize_prefers_rules() -> None:
    outcome = smart_categorize("美团外卖订单", Decimal("30"), RulesEngine())

    assert outcome.account == "Expenses:Food:Delivery"
    assert outcome.method == "rule"
    assert outcome.confidence == 1.0


def test_smart_categorize_uses_service_for_unmatched_latin_text() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"account": "Expenses:Shopping:Online", "confidence": 0.8, "reasoning": "云服务"})

    engine = RulesEngine()
    outcome = smart_categorize("ABC Cloud Hosting", Decimal("99"), engine, AICategorizer(_client(handler), engine))

    assert outcome.method == "ai"
    assert outcome.account == "Expenses:Shopping:Online"
    assert outcome.confidence == 0.8


def test_smart_categorize_falls_back_to_catch_all() -> None:
    engine = RulesEngine()
    outcome = smart_categorize("ABC Cloud Hosting", Decimal("99"), engine, AICategorizer(_client(_unreachable), engine))

    assert outcome.method == "default"
    assert outcome.account == "Expenses:Shopping:Daily"
    assert outcome.confidence == 0.0


def test_smart_categorize_without_any_rule_is_uncategorized() -> None:
    outcome = smart_categorize("神秘商品", Decimal("1"), RulesEngine(default_rules=()))

    assert outcome.account == UNCATEGORIZED_ACCOUNT
    assert outcome.method == "default"
