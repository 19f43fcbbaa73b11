from __future__ import annotations

import datetime
from decimal import Decimal

from beanbill.domain.bill import ParsedBill
from beanbill.domain.dedup import (
    deduplicate_bills,
    find_duplicate_groups,
    format_deduplication_stats,
    generate_deduplication_report,
    generate_transaction_hash,
    remove_duplicates_within_batch,
)


def _bill(description: str, amount: str, day: int = 1, source: str = "alipay") -> ParsedBill:
    return ParsedBill(
        id=f"{source}-{description}-{amount}-{day}",
        amount=Decimal(amount),
        description=description,
        transaction_date=datetime.datetime(2024, 1, day, 12, 0),
        source=source,
    )


def test_hash_normalizes_description_and_amount() -> None:
    base = _bill("美团外卖", "-50.5")

    assert generate_transaction_hash(base) == generate_transaction_hash(base)
    assert generate_transaction_hash(base) == generate_transaction_hash(_bill("  美团外卖 ", "-50.50"))
    assert generate_transaction_hash(_bill("Coffee", "-5")) == generate_transaction_hash(_bill("COFFEE", "-5.00"))
    assert generate_transaction_hash(base) != generate_transaction_hash(_bill("美团外卖", "-50.51"))
    assert generate_transaction_hash(base) != generate_transaction_hash(_bill("美团外卖", "-50.5", day=2))
    assert generate_transaction_hash(base) != generate_transaction_hash(_bill("饿了么", "-50.5"))


def test_same_event_from_two_sources_is_deduplicated() -> None:
    alipay = _bill("外卖订单", "-50.5", source="alipay")
    wechat = _bill("外卖订单", "-50.5", source="wechat")

    result = deduplicate_bills([wechat], [alipay])

    assert result.unique_count == 0
    assert result.duplicate_count == 1

    combined = deduplicate_bills([alipay, wechat])
    assert combined.unique_count == 1
    assert combined.duplicate_count == 1
    assert combined.unique[0] is alipay


def test_partition_is_complete_and_unique_hashes_are_distinct() -> None:
    existing = [_bill("地铁", "-3", day=1)]
    new = [
        _bill("地铁", "-3", day=1),
        _bill("地铁", "-3", day=2),
        _bill("地铁", "-3.00", day=2),
        _bill("公交", "-2", day=2),
    ]

    result = deduplicate_bills(new, existing)

    assert result.unique_count + result.duplicate_count == len(new)
    hashes = [generate_transaction_hash(bill) for bill in result.unique]
    assert len(hashes) == len(set(hashes))
    assert [bill.description for bill in result.unique] == ["地铁", "公交"]
    assert remove_duplicates_within_batch(new).unique_count == 3


def test_duplicate_groups_and_report() -> None:
    bills = [_bill("A", "-1"), _bill("a", "-1.00"), _bill("B", "-2")]

    groups = find_duplicate_groups(bills)
    assert len(groups) == 1
    assert len(next(iter(groups.values()))) == 2

    result = remove_duplicates_within_batch(bills)
    report = generate_deduplication_report(result)
    assert report.total_new == 3
    assert report.unique_new == 2
    assert report.duplicate_new == 1
    assert report.duplicate_rate == 33.33
    assert report.duplicate_examples[0].date == "2024-01-01"
    assert "发现 1 条重复记录" in format_deduplication_stats(result)


def test_report_without_duplicates() -> None:
    result = deduplicate_bills([_bill("A", "-1")])

    assert generate_deduplication_report(result).duplicate_rate == 0.0
    assert format_deduplication_stats(result) == "✅ 未发现重复记录"
