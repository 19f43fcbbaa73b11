"""Field-table driven parser for files whose layout follows one of the known
sources but whose preamble or column order differs.

The header row is located heuristically (falling back to the first row) and
columns are resolved by exact names from the WeChat, Alipay or generic
field tables.
"""

from __future__ import annotations

from collections.abc import Sequence

from beanbill.domain.bill import BillSource
from beanbill.domain.column_mapping import ColumnMapping
from beanbill.importers.base import BaseBillParser, ParseOptions
from beanbill.importers.header import (
    ALIPAY_FIELDS,
    GENERIC_FIELDS,
    WECHAT_FIELDS,
    FieldTable,
    locate_header_heuristic,
    resolve_by_names,
)

FIELD_TABLES: dict[BillSource, FieldTable] = {
    BillSource.WECHAT: WECHAT_FIELDS,
    BillSource.ALIPAY: ALIPAY_FIELDS,
    BillSource.CSV: GENERIC_FIELDS,
    BillSource.BANK: GENERIC_FIELDS,
}


class UniversalParser(BaseBillParser):
    def __init__(self, source: BillSource = BillSource.CSV, options: ParseOptions | None = None) -> None:
        super().__init__(options)
        self.source = source.value
        self.fields = FIELD_TABLES.get(source, GENERIC_FIELDS)

    def locate_header(self, rows: Sequence[Sequence[str]]) -> int:
        return locate_header_heuristic(rows, self.fields.time, self.fields.amount, fallback_to_first=True)

    def resolve_columns(self, headers: Sequence[str]) -> ColumnMapping:
        return resolve_by_names(headers, self.fields)
