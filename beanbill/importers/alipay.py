"""Alipay (支付宝) bill export parser.

Alipay exports start with a free-text preamble (account, period, notices)
followed by a header row beginning with ``交易时间`` (older exports use
``交易创建时间``/``付款时间``). Only successful expense rows are kept.
"""

from __future__ import annotations

from collections.abc import Sequence

from beanbill.domain.bill import BillSource
from beanbill.domain.column_mapping import ColumnMapping
from beanbill.importers.base import BaseBillParser
from beanbill.importers.header import ALIPAY_FIELDS, locate_header_by_marker, resolve_by_names


class AlipayParser(BaseBillParser):
    source = BillSource.ALIPAY.value

    def locate_header(self, rows: Sequence[Sequence[str]]) -> int:
        return locate_header_by_marker(rows, ALIPAY_FIELDS.markers)

    def resolve_columns(self, headers: Sequence[str]) -> ColumnMapping:
        return resolve_by_names(headers, ALIPAY_FIELDS)
