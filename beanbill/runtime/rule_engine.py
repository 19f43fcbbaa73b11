"""Rules engine for description-based categorization.

The engine holds the builtin rules plus user-defined rules, keeps them
sorted by priority (highest first, ties in insertion order) and returns the
account of the first matching rule. Rules are validated when added, so a
malformed rule is rejected up front instead of failing at match time.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any

from beanbill.domain.defaults import DEFAULT_CATEGORY_RULES
from beanbill.domain.rules import (
    CategoryRule,
    RuleValidation,
    first_match,
    rule_from_dict,
    rule_to_dict,
    sort_rules,
    validate_rule,
)
from beanbill.runtime.logging import get_logger
from beanbill.runtime.settings import load_user_settings

logger = get_logger(__name__)


class RuleValidationError(ValueError):
    """Raised when a rule fails validation on insertion."""


class RulesEngine:
    """Engine for categorizing free-text descriptions.

    The engine processes rules in order:
    1. Rules sorted by priority, highest first (first match wins)
    2. None when nothing matches; callers pick their own default
    """

    def __init__(
        self,
        custom_rules: Iterable[CategoryRule] = (),
        default_rules: Sequence[CategoryRule] = DEFAULT_CATEGORY_RULES,
    ) -> None:
        self._default_rules = tuple(default_rules)
        self._rules: list[CategoryRule] = []
        self.reset()
        self.add_rules(custom_rules)

    @property
    def rules(self) -> list[CategoryRule]:
        return list(self._rules)

    @staticmethod
    def validate_rule(rule: CategoryRule) -> RuleValidation:
        return validate_rule(rule)

    def add_rule(self, rule: CategoryRule) -> None:
        validation = validate_rule(rule)
        if not validation.valid:
            raise RuleValidationError(validation.error)
        self._rules = sort_rules([*self._rules, rule])
        logger.debug("Added rule %s -> %s (priority %s)", rule.pattern, rule.account, rule.priority)

    def add_rules(self, rules: Iterable[CategoryRule]) -> None:
        for rule in rules:
            self.add_rule(rule)

    def remove_rule(self, account: str) -> int:
        """Remove every rule targeting ``account``; returns how many were removed."""
        before = len(self._rules)
        self._rules = [rule for rule in self._rules if rule.account != account]
        return before - len(self._rules)

    def reset(self) -> None:
        """Drop custom rules and go back to the builtin set."""
        self._rules = sort_rules(self._default_rules)

    def match_rule(self, description: str, *, include_fallback: bool = True) -> CategoryRule | None:
        rule = first_match(self._rules, description, include_fallback=include_fallback)
        if rule is not None:
            logger.debug("Rule matched for '%s': %s", description, rule.account)
        return rule

    def match(self, description: str, *, include_fallback: bool = True) -> str | None:
        rule = self.match_rule(description, include_fallback=include_fallback)
        return rule.account if rule is not None else None

    def match_batch(self, descriptions: Iterable[str], *, include_fallback: bool = True) -> list[str | None]:
        return [self.match(description, include_fallback=include_fallback) for description in descriptions]

    def accounts(self) -> list[str]:
        """Distinct target accounts in rule order."""
        return list(dict.fromkeys(rule.account for rule in self._rules))

    def export_rules(self) -> list[dict[str, Any]]:
        return [rule_to_dict(rule) for rule in self._rules]

    def import_rules(self, payload: Iterable[Mapping[str, Any]]) -> None:
        """Replace the rule set with serialized rules (builtins are not re-added)."""
        rules = [rule_from_dict(item) for item in payload]
        for rule in rules:
            validation = validate_rule(rule)
            if not validation.valid:
                raise RuleValidationError(validation.error)
        self._rules = sort_rules(rules)
        logger.debug("Imported %d rules", len(rules))


def create_rules_engine(config_path: Path | None = None, custom_rules: Iterable[CategoryRule] | None = None) -> RulesEngine:
    """Create an engine with the builtin rules plus user rules.

    Args:
        config_path: Settings TOML to read ``[[rules]]`` from. If None, uses the default location.
        custom_rules: Rules supplied directly; when given the settings file is not read.
    """
    if custom_rules is None:
        custom_rules = load_user_settings(str(config_path) if config_path is not None else None).custom_rules
    return RulesEngine(custom_rules)
