"""Advisory anomaly detection over categorized bills.

Two outlier policies are provided:

- ``high_only``: statistics over unsigned magnitudes; a bill is flagged
  "high" when it exceeds ``max_ratio`` times the largest amount seen in
  its category.
- ``high_and_medium``: statistics over amounts as given; in addition to
  "high", a bill above twice the category average is flagged "medium".

Budget overruns are reported separately, keyed by category. Nothing here
changes or filters bills.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Literal, Protocol

Severity = Literal["low", "medium", "high"]
AnomalyPolicy = Literal["high_only", "high_and_medium"]

UNCATEGORIZED = "未分类"


class AmountSample(Protocol):
    """What the detector reads from a bill."""

    @property
    def id(self) -> str: ...

    @property
    def amount(self) -> Decimal: ...

    @property
    def category(self) -> str | None: ...


@dataclass(frozen=True)
class Anomaly:
    bill_id: str
    reason: str
    severity: Severity


@dataclass(frozen=True)
class CategoryStats:
    category: str
    average: Decimal
    max: Decimal
    count: int


def _category_of(bill: AmountSample) -> str:
    return bill.category or UNCATEGORIZED


def _amount_of(bill: AmountSample, magnitude: bool) -> Decimal:
    value = bill.amount if isinstance(bill.amount, Decimal) else Decimal(str(bill.amount))
    return abs(value) if magnitude else value


def calculate_category_stats(bills: Iterable[AmountSample], *, magnitude: bool = False) -> dict[str, CategoryStats]:
    grouped: dict[str, list[Decimal]] = {}
    for bill in bills:
        grouped.setdefault(_category_of(bill), []).append(_amount_of(bill, magnitude))

    return {
        category: CategoryStats(
            category=category,
            average=sum(amounts, Decimal(0)) / len(amounts),
            max=max(amounts),
            count=len(amounts),
        )
        for category, amounts in grouped.items()
    }


def detect_anomalous_bills(
    bills: Iterable[AmountSample],
    stats: Mapping[str, CategoryStats] | None = None,
    *,
    policy: AnomalyPolicy = "high_only",
    max_ratio: Decimal | float = Decimal("1.5"),
    min_sample_size: int = 3,
) -> list[Anomaly]:
    """Flag outliers per category.

    When ``stats`` is omitted it is computed from ``bills`` themselves; pass
    statistics built from history to judge new bills against past spending.
    """
    bills = list(bills)
    magnitude = policy == "high_only"
    if stats is None:
        stats = calculate_category_stats(bills, magnitude=magnitude)
    ratio = Decimal(str(max_ratio))

    anomalies: list[Anomaly] = []
    for bill in bills:
        category_stats = stats.get(_category_of(bill))
        if category_stats is None or category_stats.count < min_sample_size:
            continue

        amount = _amount_of(bill, magnitude)
        if amount > category_stats.max * ratio:
            anomalies.append(
                Anomaly(
                    bill_id=bill.id,
                    reason=f"单笔支出 {amount:.2f} 元远超该类别平均值 {category_stats.average:.2f} 元",
                    severity="high",
                )
            )
        elif policy == "high_and_medium" and amount > category_stats.average * 2:
            anomalies.append(
                Anomaly(
                    bill_id=bill.id,
                    reason=f"单笔支出 {amount:.2f} 元高于该类别平均值 {category_stats.average:.2f} 元",
                    severity="medium",
                )
            )
    return anomalies


def detect_anomalies(
    bills: Iterable[AmountSample],
    *,
    policy: AnomalyPolicy = "high_and_medium",
    max_ratio: Decimal | float = Decimal("1.5"),
    min_sample_size: int = 3,
) -> dict[str, Anomaly]:
    """Detect outliers and key them by bill id."""
    anomalies = detect_anomalous_bills(bills, policy=policy, max_ratio=max_ratio, min_sample_size=min_sample_size)
    return {anomaly.bill_id: anomaly for anomaly in anomalies}


def category_spending(bills: Iterable[AmountSample]) -> dict[str, Decimal]:
    """Total expense magnitude per category."""
    totals: dict[str, Decimal] = {}
    for bill in bills:
        amount = _amount_of(bill, magnitude=False)
        if amount >= 0:
            continue
        category = _category_of(bill)
        totals[category] = totals.get(category, Decimal(0)) + abs(amount)
    return totals


def detect_budget_overruns(
    spending: Mapping[str, Decimal | float | int],
    budgets: Mapping[str, Decimal | float | int],
) -> list[Anomaly]:
    anomalies: list[Anomaly] = []
    for category, spent_value in spending.items():
        budget_value = budgets.get(category)
        if not budget_value:
            continue
        spent = Decimal(str(spent_value))
        budget = Decimal(str(budget_value))
        if spent > budget:
            anomalies.append(
                Anomaly(
                    bill_id=category,
                    reason=(
                        f"{category} 类别已支出 {spent:.2f} 元，超出预算 {budget:.2f} 元"
                        f"（超支 {spent - budget:.2f} 元）"
                    ),
                    severity="medium",
                )
            )
    return anomalies
