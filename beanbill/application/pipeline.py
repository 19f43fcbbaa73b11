"""Bill conversion workflow: uploaded files in, Beancount text out.

Each file is validated, routed to a parser and parsed independently; a file
that fails is reported as a warning and the batch continues. The combined
bills are then sanitized, deduplicated against history, categorized,
checked for anomalies and rendered.
"""

from __future__ import annotations

import datetime
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Literal

from beanbill.application.categorization import CategorizationStats, categorize_bills
from beanbill.application.source_routing import resolve_source
from beanbill.domain.anomaly import (
    Anomaly,
    calculate_category_stats,
    category_spending,
    detect_anomalous_bills,
    detect_budget_overruns,
)
from beanbill.domain.beancount_generator import BeancountGenerator, GenerateOptions, LedgerHeader
from beanbill.domain.bill import BillSource, ParsedBill
from beanbill.domain.dedup import (
    DeduplicationReport,
    DeduplicationResult,
    deduplicate_bills,
    format_deduplication_stats,
    generate_deduplication_report,
)
from beanbill.domain.defaults import AccountMappingConfig
from beanbill.domain.validation import BillValidationError, sanitize_bills, validate_bills
from beanbill.importers import create_parser
from beanbill.importers.base import ParseOptions
from beanbill.importers.reader import read_tabular_text
from beanbill.importers.smart import ColumnRecognizer, SmartParser
from beanbill.runtime import ColumnMappingStore, get_logger
from beanbill.runtime.rule_engine import RulesEngine
from beanbill.runtime.services import CategorizationClient, ServiceError, ServiceUnavailable
from beanbill.util.file_validation import calculate_file_hash, validate_file
from beanbill.util.security import sanitize_filename

logger = get_logger(__name__)

ConversionStatus = Literal["ok", "no_transactions", "all_duplicates"]

NO_TRANSACTIONS_CONTENT = "; No transactions found\n"
NO_NEW_TRANSACTIONS_CONTENT = "; No new transactions found\n"
NO_TRANSACTIONS_WARNING = "未解析到任何交易记录"
ALL_DUPLICATES_ERROR = "所有交易记录均已存在，没有新的交易需要导入"


@dataclass(frozen=True)
class UploadedFile:
    name: str
    content: bytes

    @classmethod
    def from_path(cls, path: Path) -> UploadedFile:
        return cls(path.name, path.read_bytes())


@dataclass(frozen=True)
class ConversionOptions:
    """Inputs the caller supplies alongside the files.

    ``existing_bills`` and ``budgets`` come from the caller's stores; the
    pipeline only reads them. ``recognizer`` enables the AI-mapped parser
    and ``categorizer`` enables the batch categorization tier.
    """

    source: BillSource | str = BillSource.AUTO
    include_open_directives: bool = True
    account_mapping: AccountMappingConfig | None = None
    existing_bills: Sequence[ParsedBill] = ()
    budgets: Mapping[str, Decimal] = field(default_factory=dict)
    parse_options: ParseOptions = field(default_factory=ParseOptions)
    recognizer: ColumnRecognizer | None = None
    column_cache: ColumnMappingStore | None = None
    force_reidentify: bool = False
    categorizer: CategorizationClient | None = None
    currency: str = "CNY"
    header: LedgerHeader | None = None
    today: datetime.date | None = None


@dataclass(frozen=True)
class FileOutcome:
    name: str
    source: str | None
    bill_count: int
    file_hash: str | None
    error: str | None = None


@dataclass(frozen=True)
class ConversionResult:
    status: ConversionStatus
    beancount_content: str
    bill_count: int = 0
    transaction_count: int = 0
    sources: list[str] = field(default_factory=list)
    accounts_used: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    files: list[FileOutcome] = field(default_factory=list)
    deduplication: DeduplicationResult | None = None
    deduplication_report: DeduplicationReport | None = None
    validation_errors: list[BillValidationError] = field(default_factory=list)
    anomalies: list[Anomaly] = field(default_factory=list)
    categorization: CategorizationStats | None = None
    unique_bills: list[ParsedBill] = field(default_factory=list)
    error: str | None = None


def file_warning(name: str, message: str) -> str:
    return f"解析文件 {sanitize_filename(name)} 失败: {message}"


def parse_file(upload: UploadedFile, options: ConversionOptions) -> tuple[list[ParsedBill], FileOutcome]:
    """Parse one upload; errors propagate to the caller."""
    problem = validate_file(upload.name, upload.content)
    if problem is not None:
        raise ValueError(problem.message)

    file_hash = calculate_file_hash(upload.content)
    text = read_tabular_text(upload.content, upload.name)
    source = resolve_source(options.source, upload.name, text)

    bills: list[ParsedBill] = []
    if options.recognizer is not None:
        smart = SmartParser(
            options.recognizer,
            options.column_cache,
            declared_source=source.value,
            force_reidentify=options.force_reidentify,
            options=options.parse_options,
        )
        try:
            bills = smart.parse_text(text)
        except (ValueError, ServiceUnavailable, ServiceError) as e:
            logger.warning("AI-mapped parsing of %s failed, using %s parser: %s", upload.name, source.value, e)
        if not bills:
            logger.info("No bills from AI-mapped parsing of %s, using %s parser", upload.name, source.value)

    if not bills:
        bills = create_parser(source, options.parse_options).parse_text(text)

    outcome = FileOutcome(upload.name, bills[0].source if bills else source.value, len(bills), file_hash)
    return bills, outcome


def convert_files(files: Sequence[UploadedFile], options: ConversionOptions | None = None) -> ConversionResult:
    options = options or ConversionOptions()
    warnings: list[str] = []
    outcomes: list[FileOutcome] = []
    combined: list[ParsedBill] = []

    for upload in files:
        try:
            bills, outcome = parse_file(upload, options)
        except Exception as e:
            logger.warning("Failed to parse %s: %s", upload.name, e)
            warnings.append(file_warning(upload.name, str(e)))
            outcomes.append(FileOutcome(upload.name, None, 0, None, str(e)))
            continue
        combined.extend(bills)
        outcomes.append(outcome)

    if not combined:
        return _no_transactions(warnings, outcomes)

    validation = validate_bills(combined)
    sanitized = sanitize_bills(combined)
    if sanitized.invalid:
        warnings.append(f"已忽略 {sanitized.invalid} 条无效记录")
    if not sanitized.valid:
        return _no_transactions(warnings, outcomes, validation.errors)

    deduplication = deduplicate_bills(sanitized.valid, options.existing_bills)
    report = generate_deduplication_report(deduplication)
    if deduplication.duplicate_count:
        logger.info(format_deduplication_stats(deduplication))
    if not deduplication.unique:
        return ConversionResult(
            status="all_duplicates",
            beancount_content=NO_NEW_TRANSACTIONS_CONTENT,
            warnings=warnings,
            files=outcomes,
            deduplication=deduplication,
            deduplication_report=report,
            validation_errors=validation.errors,
            error=ALL_DUPLICATES_ERROR,
        )

    bills = deduplication.unique
    account_mapping = options.account_mapping or AccountMappingConfig()
    engine = RulesEngine(default_rules=account_mapping.category_rules)
    categorization = categorize_bills(bills, engine, options.categorizer)
    anomalies = _find_anomalies(bills, options)

    generator = BeancountGenerator(
        GenerateOptions(
            header=options.header,
            include_open_directives=options.include_open_directives,
            account_mapping=account_mapping,
            currency=options.currency,
            today=options.today,
        )
    )
    ledger = generator.generate(bills)
    logger.info("Converted %d bills into %d transactions", len(bills), ledger.transaction_count)

    return ConversionResult(
        status="ok",
        beancount_content=ledger.text,
        bill_count=len(bills),
        transaction_count=ledger.transaction_count,
        sources=sorted({bill.source for bill in bills if bill.source}),
        accounts_used=ledger.accounts_used,
        warnings=warnings,
        files=outcomes,
        deduplication=deduplication,
        deduplication_report=report,
        validation_errors=validation.errors,
        anomalies=anomalies,
        categorization=categorization,
        unique_bills=bills,
    )


def convert_paths(paths: Sequence[Path], options: ConversionOptions | None = None) -> ConversionResult:
    return convert_files([UploadedFile.from_path(path) for path in paths], options)


def _find_anomalies(bills: Sequence[ParsedBill], options: ConversionOptions) -> list[Anomaly]:
    stats = None
    if options.existing_bills:
        stats = calculate_category_stats([*options.existing_bills, *bills], magnitude=True)
    anomalies = detect_anomalous_bills(bills, stats, policy="high_only")
    if options.budgets:
        anomalies.extend(detect_budget_overruns(category_spending(bills), options.budgets))
    return anomalies


def _no_transactions(
    warnings: list[str],
    outcomes: list[FileOutcome],
    validation_errors: list[BillValidationError] | None = None,
) -> ConversionResult:
    return ConversionResult(
        status="no_transactions",
        beancount_content=NO_TRANSACTIONS_CONTENT,
        warnings=[*warnings, NO_TRANSACTIONS_WARNING],
        files=outcomes,
        validation_errors=validation_errors or [],
    )
