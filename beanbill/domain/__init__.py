"""Pure domain model for bill ingestion.

- ParsedBill, PaymentMethodInfo: normalized bill records
- Account, CategoryRule: validated ledger vocabulary
- ColumnMapping: semantic column roles of a tabular export
- dedup, anomaly, validation, beancount_generator: algorithms over bills

Modules here must not import ``beanbill.runtime``.

Usage:
    from beanbill.domain import ParsedBill, BillSource
"""

from beanbill.domain.account import Account, InvalidAccountError
from beanbill.domain.bill import AI_PARSED_SOURCE, BillSource, ParsedBill, PaymentMethodInfo
from beanbill.domain.column_mapping import ColumnMapping, RecognitionResult
from beanbill.domain.rules import CategoryRule, RegexPattern, SubstringPattern

__all__ = [
    "AI_PARSED_SOURCE",
    "Account",
    "BillSource",
    "CategoryRule",
    "ColumnMapping",
    "InvalidAccountError",
    "ParsedBill",
    "PaymentMethodInfo",
    "RecognitionResult",
    "RegexPattern",
    "SubstringPattern",
]
