"""Header location and column-role resolution.

Three strategies are used by the parsers:

- marker scan: the first row (within the scan window) containing a known
  header fragment, used by the Alipay and WeChat parsers;
- heuristic scan: the first row holding a time keyword, an amount keyword
  and at least three cells;
- delegated recognition (see ``beanbill.importers.smart``).

Once the header row is known, columns are resolved either by exact name
tables (``resolve_by_names``) or by ordered substring keywords
(``resolve_by_keywords``).
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from beanbill.domain.column_mapping import ColumnMapping
from beanbill.importers.errors import HeaderNotFound, MissingRequiredField

HEADER_SCAN_LIMIT = 30

ROLES = ("time", "amount", "description", "direction", "counterparty", "status", "payment_method", "category")
REQUIRED_ROLES = ("time", "amount")


@dataclass(frozen=True)
class FieldTable:
    """Candidate header names (or keywords) for each role, in priority order."""

    time: tuple[str, ...]
    amount: tuple[str, ...]
    description: tuple[str, ...] = ()
    direction: tuple[str, ...] = ()
    counterparty: tuple[str, ...] = ()
    status: tuple[str, ...] = ()
    payment_method: tuple[str, ...] = ()
    category: tuple[str, ...] = ()
    markers: tuple[str, ...] = field(default=())

    def candidates(self, role: str) -> tuple[str, ...]:
        return getattr(self, role)


WECHAT_FIELDS = FieldTable(
    time=("交易时间", "时间", "Time"),
    amount=("金额(元)", "金额（元）", "金额", "Amount"),
    description=("商品", "商品说明", "说明", "Description"),
    direction=("收/支", "收支", "方向", "Direction"),
    counterparty=("交易对方", "对方", "商户", "Merchant"),
    status=("当前状态", "交易状态", "Status"),
    payment_method=("支付方式", "Payment Method"),
    category=("交易类型",),
    markers=("交易时间",),
)

ALIPAY_FIELDS = FieldTable(
    time=("交易时间", "交易创建时间", "付款时间", "时间", "Time"),
    amount=("金额", "金额（元）", "金额(元)", "Amount"),
    description=("商品说明", "商品名称", "说明", "商品", "Description"),
    direction=("收/支", "收/付款", "收支", "方向", "Direction"),
    counterparty=("交易对方", "对方户名", "对方", "Merchant"),
    status=("交易状态", "Status"),
    payment_method=("收/付款方式", "支付方式"),
    category=("交易分类",),
    markers=("交易时间", "交易创建时间", "付款时间"),
)

GENERIC_FIELDS = FieldTable(
    time=("时间", "日期", "time", "date", "datetime", "交易时间"),
    amount=("金额", "amount", "价格", "price"),
    description=("说明", "描述", "备注", "description", "desc", "商品"),
    direction=("方向", "收支", "direction", "type", "收/支"),
    counterparty=("对方", "商户", "merchant", "counterparty", "交易对方"),
    status=("状态", "status"),
    payment_method=("支付方式", "payment method"),
    category=("分类", "category"),
)

# Substring keywords for the heuristic parser; the first keyword that
# occurs in any header cell decides the column.
GENERIC_KEYWORDS = FieldTable(
    time=("时间", "日期", "time", "date"),
    amount=("金额", "amount", "价格", "price"),
    description=("说明", "描述", "备注", "商品", "description", "desc", "memo"),
    direction=("收/支", "收支", "方向", "direction"),
    counterparty=("对方", "商户", "merchant", "counterparty", "payee"),
    status=("状态", "status"),
    payment_method=("支付方式", "付款方式", "payment"),
    category=("分类", "类别", "category"),
)


def _non_empty(row: Sequence[str]) -> list[str]:
    return [cell for cell in row if cell.strip()]


def locate_header_by_marker(
    rows: Sequence[Sequence[str]], markers: Sequence[str], scan_limit: int = HEADER_SCAN_LIMIT
) -> int:
    """Index of the first row containing any marker; data starts on the next row."""
    for index, row in enumerate(rows[:scan_limit]):
        line = ",".join(row)
        if any(marker in line for marker in markers):
            return index
    raise HeaderNotFound()


def _contains_keyword(cell: str, keywords: Sequence[str]) -> bool:
    lowered = cell.lower()
    return any(keyword.lower() in lowered for keyword in keywords)


def locate_header_heuristic(
    rows: Sequence[Sequence[str]],
    time_keywords: Sequence[str] = GENERIC_KEYWORDS.time,
    amount_keywords: Sequence[str] = GENERIC_KEYWORDS.amount,
    *,
    scan_limit: int = HEADER_SCAN_LIMIT,
    min_cells: int = 3,
    fallback_to_first: bool = False,
) -> int:
    """Index of the first row that looks like a header.

    With ``fallback_to_first`` the first row is assumed when nothing
    qualifies; otherwise ``HeaderNotFound`` is raised.
    """
    for index, row in enumerate(rows[:scan_limit]):
        cells = _non_empty(row)
        if len(cells) < min_cells:
            continue
        has_time = any(_contains_keyword(cell, time_keywords) for cell in cells)
        has_amount = any(_contains_keyword(cell, amount_keywords) for cell in cells)
        if has_time and has_amount:
            return index
    if fallback_to_first and rows:
        return 0
    raise HeaderNotFound()


def _build_mapping(found: dict[str, int]) -> ColumnMapping:
    for role in REQUIRED_ROLES:
        if role not in found:
            raise MissingRequiredField(role)
    return ColumnMapping(**found)


def resolve_by_names(headers: Sequence[str], table: FieldTable) -> ColumnMapping:
    """Exact (case-insensitive, trimmed) header name lookup per role."""
    normalized = [header.strip().lower() for header in headers]
    found: dict[str, int] = {}
    for role in ROLES:
        for candidate in table.candidates(role):
            key = candidate.strip().lower()
            if key in normalized:
                found[role] = normalized.index(key)
                break
    return _build_mapping(found)


def resolve_by_keywords(headers: Sequence[str], table: FieldTable = GENERIC_KEYWORDS) -> ColumnMapping:
    """Substring lookup per role; keywords are tried in order, first hit wins."""
    normalized = [header.strip().lower() for header in headers]
    found: dict[str, int] = {}
    for role in ROLES:
        for keyword in table.candidates(role):
            needle = keyword.lower()
            index = next((i for i, header in enumerate(normalized) if needle in header), None)
            if index is not None:
                found[role] = index
                break
    return _build_mapping(found)
