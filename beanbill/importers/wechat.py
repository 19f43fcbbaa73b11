"""WeChat Pay (微信支付) bill export parser.

WeChat exports carry about 16 preamble lines before the ``交易时间`` header.
Amounts are written as ``¥50.50`` and directions as ``支出``/``收入``/``/``.
"""

from __future__ import annotations

from collections.abc import Sequence

from beanbill.domain.bill import BillSource
from beanbill.domain.column_mapping import ColumnMapping
from beanbill.importers.base import BaseBillParser, Direction
from beanbill.importers.header import WECHAT_FIELDS, locate_header_by_marker, resolve_by_names


class WeChatParser(BaseBillParser):
    source = BillSource.WECHAT.value

    def locate_header(self, rows: Sequence[Sequence[str]]) -> int:
        return locate_header_by_marker(rows, WECHAT_FIELDS.markers)

    def resolve_columns(self, headers: Sequence[str]) -> ColumnMapping:
        return resolve_by_names(headers, WECHAT_FIELDS)

    def should_include(self, direction: Direction | None, status: str) -> bool:
        # Rows without a direction (written as "/") move money between own balances.
        if direction is None:
            return False
        return super().should_include(direction, status)
