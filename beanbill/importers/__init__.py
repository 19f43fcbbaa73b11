"""Source-specific bill parsers.

``PARSERS`` maps every concrete ``BillSource`` to the parser class that
handles it; ``BillSource.AUTO`` is resolved by the caller before lookup.
"""

from beanbill.domain.bill import BillSource
from beanbill.importers.alipay import AlipayParser
from beanbill.importers.base import BaseBillParser, ParseOptions
from beanbill.importers.errors import (
    BillParseError,
    EmptyFileError,
    HeaderNotFound,
    InvalidRowDate,
    MissingRequiredField,
)
from beanbill.importers.generic_csv import BankCsvParser, GenericCsvParser
from beanbill.importers.smart import SmartParser, recognize_columns
from beanbill.importers.universal import UniversalParser
from beanbill.importers.wechat import WeChatParser

PARSERS: dict[BillSource, type[BaseBillParser]] = {
    BillSource.ALIPAY: AlipayParser,
    BillSource.WECHAT: WeChatParser,
    BillSource.BANK: BankCsvParser,
    BillSource.CSV: GenericCsvParser,
}


def create_parser(source: BillSource, options: ParseOptions | None = None) -> BaseBillParser:
    if source is BillSource.AUTO:
        raise ValueError("Resolve BillSource.AUTO before creating a parser")
    return PARSERS[source](options)


__all__ = [
    "PARSERS",
    "create_parser",
    "BaseBillParser",
    "ParseOptions",
    "AlipayParser",
    "WeChatParser",
    "GenericCsvParser",
    "BankCsvParser",
    "UniversalParser",
    "SmartParser",
    "recognize_columns",
    "BillParseError",
    "EmptyFileError",
    "HeaderNotFound",
    "InvalidRowDate",
    "MissingRequiredField",
]
