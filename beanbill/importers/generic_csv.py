"""Generic CSV/Excel parser for bank and hand-made exports.

The header row is found heuristically and columns are matched by keyword,
so both Chinese (日期/金额/说明/方向) and English (Date/Amount/Description/
Direction) headers work. Rows marked as income are dropped unless
``include_income`` is set; without a direction column the amount sign
decides, so positive amounts are income.
"""

from __future__ import annotations

from collections.abc import Sequence

from beanbill.domain.bill import BillSource
from beanbill.domain.column_mapping import ColumnMapping
from beanbill.importers.base import BaseBillParser, Direction
from beanbill.importers.header import GENERIC_KEYWORDS, locate_header_heuristic, resolve_by_keywords


class GenericCsvParser(BaseBillParser):
    source = BillSource.CSV.value
    require_success_status = False
    signed_amounts = True

    def locate_header(self, rows: Sequence[Sequence[str]]) -> int:
        return locate_header_heuristic(rows, GENERIC_KEYWORDS.time, GENERIC_KEYWORDS.amount)

    def resolve_columns(self, headers: Sequence[str]) -> ColumnMapping:
        return resolve_by_keywords(headers, GENERIC_KEYWORDS)

    def should_include(self, direction: Direction | None, status: str) -> bool:
        if direction == "income":
            return self.options.include_income
        return True


class BankCsvParser(GenericCsvParser):
    """Bank card exports: same layout rules as the generic parser, tagged ``bank``."""

    source = BillSource.BANK.value
