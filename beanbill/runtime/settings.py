"""Runtime loader for user settings (custom rules, budgets, accounts, services).

Example ``config/settings.toml``::

    [accounts]
    default_expense = "Expenses:Shopping:Daily"

    [accounts.payment_methods]
    wechat = "Assets:WeChat:Cash"

    [budgets]
    "Food-Delivery" = 800

    [services]
    base_url = "http://localhost:8787"
    timeout = 30

    [[rules]]
    pattern = "星巴克|瑞幸"
    account = "Expenses:Food:Coffee"
    priority = 20
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from pathlib import Path
from typing import Any

from beanbill.domain.defaults import AccountMappingConfig
from beanbill.domain.rules import CategoryRule, rule_from_dict, validate_rule
from beanbill.runtime.logging import get_logger
from beanbill.runtime.paths import get_paths
from beanbill.runtime.services import ServiceConfig

logger = get_logger(__name__)


class SettingsError(ValueError):
    """Raised when the settings file is present but malformed."""


@dataclass(frozen=True)
class UserSettings:
    custom_rules: tuple[CategoryRule, ...] = ()
    budgets: dict[str, Decimal] = field(default_factory=dict)
    account_mapping: AccountMappingConfig = field(default_factory=AccountMappingConfig)
    service: ServiceConfig | None = None


def _parse_rules(raw_rules: list[dict[str, Any]], path: Path) -> tuple[CategoryRule, ...]:
    rules: list[CategoryRule] = []
    for position, raw in enumerate(raw_rules, start=1):
        try:
            rule = rule_from_dict(raw)
        except ValueError as e:
            raise SettingsError(f"{path}: rule #{position}: {e}") from e
        validation = validate_rule(rule)
        if not validation.valid:
            raise SettingsError(f"{path}: rule #{position}: {validation.error}")
        rules.append(rule)
    return tuple(rules)


def _parse_budgets(raw: dict[str, Any], path: Path) -> dict[str, Decimal]:
    budgets: dict[str, Decimal] = {}
    for category, limit in raw.items():
        try:
            budgets[str(category)] = Decimal(str(limit))
        except InvalidOperation as e:
            raise SettingsError(f"{path}: invalid budget for {category!r}: {limit!r}") from e
    return budgets


def _parse_accounts(raw: dict[str, Any]) -> AccountMappingConfig:
    defaults = AccountMappingConfig()
    payment_methods = dict(defaults.payment_method_to_account)
    payment_methods.update({str(key).lower(): str(value) for key, value in raw.get("payment_methods", {}).items()})
    return AccountMappingConfig(
        payment_method_to_account=payment_methods,
        default_expense_account=str(raw.get("default_expense", defaults.default_expense_account)),
        default_income_account=str(raw.get("default_income", defaults.default_income_account)),
        default_asset_account=str(raw.get("default_asset", defaults.default_asset_account)),
    )


def _parse_service(raw: dict[str, Any]) -> ServiceConfig | None:
    if not raw.get("base_url"):
        return None
    return ServiceConfig(
        base_url=str(raw["base_url"]),
        timeout=float(raw.get("timeout", ServiceConfig.timeout)),
        retries=int(raw.get("retries", ServiceConfig.retries)),
    )


@lru_cache(maxsize=4)
def load_user_settings(config_path: str | None = None) -> UserSettings:
    """Load settings from TOML; a missing file yields the defaults."""
    path = Path(config_path) if config_path is not None else get_paths().settings
    if not path.exists():
        logger.debug("Settings file not found, using defaults: %s", path)
        return UserSettings()

    try:
        with open(path, "rb") as f:
            config = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise SettingsError(f"{path}: {e}") from e

    settings = UserSettings(
        custom_rules=_parse_rules(config.get("rules", []), path),
        budgets=_parse_budgets(config.get("budgets", {}), path),
        account_mapping=_parse_accounts(config.get("accounts", {})),
        service=_parse_service(config.get("services", {})),
    )
    logger.debug(
        "Loaded %d custom rules and %d budgets from %s", len(settings.custom_rules), len(settings.budgets), path
    )
    return settings
