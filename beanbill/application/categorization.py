"""Rule-first categorization with the AI service as a fallback.

Single descriptions go through ``smart_categorize``; whole batches go
through ``categorize_bills``, which assigns a standard category to every
bill in three tiers:

1. a valid standard category already carried by the source file
2. the rules engine (catch-all priority-0 rules are skipped)
3. one batch call to the categorization service

Anything still unresolved gets ``FALLBACK_CATEGORY``. Service failures are
logged and degrade to the fallback; they never abort the batch.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Literal

from beanbill.domain.bill import ParsedBill
from beanbill.domain.taxonomy import FALLBACK_CATEGORY, beancount_to_category, is_valid_category
from beanbill.runtime import get_logger
from beanbill.runtime.rule_engine import RulesEngine
from beanbill.runtime.services import CategorizationClient, CategorizeResponse, ServiceError, ServiceUnavailable

logger = get_logger(__name__)

UNCATEGORIZED_ACCOUNT = "Expenses:Uncategorized"
EXTRA_AVAILABLE_ACCOUNTS = (UNCATEGORIZED_ACCOUNT, "Income:Other", "Assets:Cash")
FALLBACK_REASON = "AI 服务不可用，使用默认账户"
AI_DESCRIPTION_MIN_LENGTH = 20

_ASCII_ALNUM = re.compile(r"[A-Za-z0-9]")

CategorizationMethod = Literal["rule", "ai", "default"]


def should_use_ai(description: str) -> bool:
    """Long or partly-latin descriptions are worth a service call."""
    return len(description) > AI_DESCRIPTION_MIN_LENGTH or bool(_ASCII_ALNUM.search(description))


class AICategorizer:
    """Degrading wrapper around ``CategorizationClient``."""

    def __init__(self, client: CategorizationClient, engine: RulesEngine | None = None) -> None:
        self.client = client
        self.engine = engine or RulesEngine()

    def available_accounts(self) -> list[str]:
        return list(dict.fromkeys([*self.engine.accounts(), *EXTRA_AVAILABLE_ACCOUNTS]))

    def categorize(self, description: str, amount: Decimal) -> CategorizeResponse:
        try:
            response = self.client.categorize(description, amount, self.available_accounts())
        except (ServiceUnavailable, ServiceError) as e:
            logger.warning("Categorization service failed for one bill: %s", e)
            return CategorizeResponse(account=UNCATEGORIZED_ACCOUNT, confidence=0.0, reasoning=FALLBACK_REASON)
        if not response.account:
            return CategorizeResponse(account=UNCATEGORIZED_ACCOUNT, confidence=0.0, reasoning=response.reasoning)
        return response

    def categorize_batch(self, items: Sequence[tuple[str, Decimal]]) -> list[CategorizeResponse]:
        return [self.categorize(description, amount) for description, amount in items]


@dataclass(frozen=True)
class CategorizationOutcome:
    account: str
    confidence: float
    method: CategorizationMethod
    reasoning: str | None = None


def smart_categorize(
    description: str,
    amount: Decimal,
    engine: RulesEngine,
    categorizer: AICategorizer | None = None,
    *,
    force_ai: bool = False,
) -> CategorizationOutcome:
    rule = engine.match_rule(description, include_fallback=False)
    if rule is not None:
        return CategorizationOutcome(rule.account, 1.0, "rule", rule.description)

    if categorizer is not None and (force_ai or should_use_ai(description)):
        response = categorizer.categorize(description, amount)
        if response.confidence > 0:
            return CategorizationOutcome(response.account, response.confidence, "ai", response.reasoning)

    fallback = engine.match(description)
    return CategorizationOutcome(fallback or UNCATEGORIZED_ACCOUNT, 0.0, "default", FALLBACK_REASON)


@dataclass(frozen=True)
class CategorizationStats:
    from_source: int = 0
    from_rules: int = 0
    from_ai: int = 0
    fallback: int = 0


def categorize_bills(
    bills: Sequence[ParsedBill],
    engine: RulesEngine,
    client: CategorizationClient | None = None,
) -> CategorizationStats:
    """Set ``category`` on every bill in place and report how each was decided.

    A rule that targets an account outside the standard taxonomy still
    counts as decided; the bill keeps ``category=None`` and the generator
    routes it through the same rule. ``category_origin`` is set alongside so
    the generator can tell a decided category from the fallback.
    """
    from_source = from_rules = from_ai = 0
    pending: list[ParsedBill] = []

    for bill in bills:
        if is_valid_category(bill.category):
            bill.category_origin = bill.category_origin or "source"
            from_source += 1
            continue
        if is_valid_category(bill.source_category):
            bill.category = bill.source_category
            bill.category_origin = "source"
            from_source += 1
            continue
        rule = engine.match_rule(bill.description, include_fallback=False)
        if rule is not None:
            bill.category = beancount_to_category(rule.account)
            bill.category_origin = "rule"
            from_rules += 1
            continue
        pending.append(bill)

    if pending and client is not None:
        answers = _batch_answers(pending, client)
        for bill in pending:
            category = answers.get(bill.description)
            if is_valid_category(category):
                bill.category = category
                bill.category_origin = "ai"
                from_ai += 1

    fallback = 0
    for bill in pending:
        if not is_valid_category(bill.category):
            bill.category = FALLBACK_CATEGORY
            bill.category_origin = "fallback"
            fallback += 1

    stats = CategorizationStats(from_source, from_rules, from_ai, fallback)
    logger.info(
        "Categorized %d bills: %d from source, %d by rules, %d by AI, %d fallback",
        len(bills),
        stats.from_source,
        stats.from_rules,
        stats.from_ai,
        stats.fallback,
    )
    return stats


def _batch_answers(bills: Sequence[ParsedBill], client: CategorizationClient) -> dict[str, str]:
    items = list({bill.description: (bill.description, abs(bill.amount)) for bill in bills}.values())
    try:
        return client.batch_categorize(items)
    except (ServiceUnavailable, ServiceError) as e:
        logger.warning("Batch categorization failed, using %s: %s", FALLBACK_CATEGORY, e)
        return {}
