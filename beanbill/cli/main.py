#!/usr/bin/env python3

import argparse
import json
from collections.abc import Sequence
from decimal import Decimal, InvalidOperation
from pathlib import Path

from beanbill.application.categorization import smart_categorize
from beanbill.application.pipeline import ConversionOptions, ConversionResult, convert_paths
from beanbill.domain.bill import BillSource
from beanbill.runtime import (
    CategorizationClient,
    ColumnRecognizerClient,
    JsonFileColumnMappingCache,
    ServiceConfig,
    SettingsError,
    append_history,
    create_rules_engine,
    get_logger,
    get_paths,
    load_history,
    load_user_settings,
)

logger = get_logger(__name__)


def _print_error(error: str) -> None:
    for line in error.splitlines():
        print(line)


def _decimal(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"invalid amount: {value}") from None


def _report(result: ConversionResult) -> None:
    for warning in result.warnings:
        print(f"warning: {warning}")
    for anomaly in result.anomalies:
        print(f"anomaly [{anomaly.severity}] {anomaly.reason}")


def cmd_convert(args: argparse.Namespace) -> int:
    paths = get_paths()
    try:
        settings = load_user_settings(args.settings)
    except SettingsError as exc:
        _print_error(str(exc))
        return 1

    history_path = Path(args.history) if args.history else paths.history
    service = ServiceConfig(base_url=args.ai_url) if args.ai_url else settings.service

    recognizer: ColumnRecognizerClient | None = None
    categorizer: CategorizationClient | None = None
    cache: JsonFileColumnMappingCache | None = None
    if service is not None:
        recognizer = ColumnRecognizerClient(service)
        categorizer = CategorizationClient(service)
        cache = JsonFileColumnMappingCache(paths.column_mappings)

    options = ConversionOptions(
        source=BillSource.parse(args.source),
        include_open_directives=not args.no_open,
        account_mapping=settings.account_mapping.with_custom_rules(settings.custom_rules),
        existing_bills=load_history(history_path),
        budgets=settings.budgets,
        recognizer=recognizer,
        column_cache=cache,
        categorizer=categorizer,
        currency=args.currency,
    )
    try:
        result = convert_paths([Path(name) for name in args.files], options)
    finally:
        if recognizer is not None:
            recognizer.close()
        if categorizer is not None:
            categorizer.close()

    _report(result)
    if result.status == "all_duplicates":
        assert result.error is not None
        _print_error(result.error)
        if result.deduplication_report is not None:
            print(f"duplicates: {result.deduplication_report.duplicate_new} ({result.deduplication_report.duplicate_rate}%)")
        return 1
    if result.status == "no_transactions":
        return 1

    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(result.beancount_content, encoding="utf-8")
        print(f"Wrote {result.transaction_count} transactions to {output_path}")
    else:
        print(result.beancount_content, end="")

    append_history(history_path, result.unique_bills)
    return 0


def cmd_rules(args: argparse.Namespace) -> int:
    try:
        engine = create_rules_engine(Path(args.settings) if args.settings else None)
    except SettingsError as exc:
        _print_error(str(exc))
        return 1

    if args.rules_command == "test":
        outcome = smart_categorize(args.description, args.amount, engine)
        print(f"{outcome.account} ({outcome.method})")
        return 0

    if args.rules_command == "export":
        print(json.dumps(engine.export_rules(), ensure_ascii=False, indent=2))
        return 0

    print(f"Unsupported rules command: {args.rules_command}")
    return 1


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Convert Alipay/WeChat/bank bill exports into Beancount",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  convert FILE...            Convert bill exports to Beancount text
  rules test DESCRIPTION     Show which account a description maps to
  rules export               Print the active rules as JSON

Environment:
  BEANBILL_HOME              Root for config/, .cache/, history/ (default: cwd)
  BEANBILL_LOG_LEVEL         DEBUG, INFO, WARNING or ERROR
""",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    convert_parser = subparsers.add_parser("convert", help="Convert bill exports")
    convert_parser.add_argument("files", nargs="+", help="CSV/Excel bill files")
    convert_parser.add_argument(
        "--source",
        default="auto",
        choices=[source.value for source in BillSource],
        help="Bill source (default: auto-detect per file)",
    )
    convert_parser.add_argument("--output", "-o", help="Write the ledger here instead of stdout")
    convert_parser.add_argument("--history", help="History JSON used for deduplication (default: history/bills.json)")
    convert_parser.add_argument("--settings", help="Settings TOML (default: config/settings.toml)")
    convert_parser.add_argument("--no-open", action="store_true", help="Skip open directives")
    convert_parser.add_argument("--currency", default="CNY", help="Currency code (default: CNY)")
    convert_parser.add_argument("--ai-url", help="Base URL of the column recognition/categorization service")

    rules_parser = subparsers.add_parser("rules", help="Inspect categorization rules")
    rules_parser.add_argument("--settings", help="Settings TOML (default: config/settings.toml)")
    rules_subparsers = rules_parser.add_subparsers(dest="rules_command", help="Rules command")
    test_parser = rules_subparsers.add_parser("test", help="Categorize one description")
    test_parser.add_argument("description", help="Transaction description")
    test_parser.add_argument("--amount", type=_decimal, default=Decimal("-1"), help="Signed amount (default: -1)")
    rules_subparsers.add_parser("export", help="Print rules as JSON")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    if args.command == "convert":
        return cmd_convert(args)

    if args.command == "rules":
        if args.rules_command is None:
            rules_parser.print_help()
            return 1
        return cmd_rules(args)

    return 1


if __name__ == "__main__":
    raise SystemExit(main())
