"""Category rules: a pattern (regex or substring) mapped to a ledger account."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from functools import cached_property
from typing import Any, ClassVar, Literal

from beanbill.domain.account import Account, InvalidAccountError

PatternKind = Literal["regex", "substring"]


@dataclass(frozen=True)
class RegexPattern:
    source: str
    ignore_case: bool = False

    kind: ClassVar[PatternKind] = "regex"

    @cached_property
    def compiled(self) -> re.Pattern[str]:
        return re.compile(self.source, re.IGNORECASE if self.ignore_case else 0)

    def matches(self, text: str) -> bool:
        return self.compiled.search(text) is not None


@dataclass(frozen=True)
class SubstringPattern:
    text: str

    kind: ClassVar[PatternKind] = "substring"

    def matches(self, text: str) -> bool:
        return self.text.lower() in text.lower()


RulePattern = RegexPattern | SubstringPattern


@dataclass(frozen=True)
class CategoryRule:
    pattern: RulePattern
    account: str
    priority: int | None = None
    description: str | None = None

    @property
    def effective_priority(self) -> int:
        return self.priority or 0

    @property
    def is_fallback(self) -> bool:
        """Priority-0 rules are catch-alls that only apply when nothing else does."""
        return self.priority == 0

    def matches(self, text: str) -> bool:
        return self.pattern.matches(text)


@dataclass(frozen=True)
class RuleValidation:
    valid: bool
    error: str | None = None


def regex_rule(source: str, account: str, priority: int | None = None, description: str | None = None) -> CategoryRule:
    return CategoryRule(RegexPattern(source), account, priority, description)


def sort_rules(rules: Iterable[CategoryRule]) -> list[CategoryRule]:
    """Sort by priority descending; catch-alls last among equals, otherwise insertion order."""
    return sorted(rules, key=lambda rule: (-rule.effective_priority, rule.is_fallback))


def first_match(rules: Iterable[CategoryRule], text: str, *, include_fallback: bool = True) -> CategoryRule | None:
    """Return the first matching rule of an already sorted rule list."""
    for rule in rules:
        if not include_fallback and rule.is_fallback:
            continue
        if rule.matches(text):
            return rule
    return None


def validate_rule(rule: CategoryRule) -> RuleValidation:
    pattern_text = rule.pattern.source if isinstance(rule.pattern, RegexPattern) else rule.pattern.text
    if not pattern_text:
        return RuleValidation(False, "模式不能为空")
    try:
        Account(rule.account)
    except InvalidAccountError as exc:
        return RuleValidation(False, str(exc))
    if isinstance(rule.pattern, RegexPattern):
        try:
            re.compile(rule.pattern.source)
        except re.error:
            return RuleValidation(False, f"正则表达式语法错误: {rule.pattern.source}")
    return RuleValidation(True)


def rule_to_dict(rule: CategoryRule) -> dict[str, Any]:
    """Serialize a rule with its pattern kind made explicit."""
    if isinstance(rule.pattern, RegexPattern):
        payload: dict[str, Any] = {
            "kind": "regex",
            "pattern": rule.pattern.source,
            "ignore_case": rule.pattern.ignore_case,
        }
    else:
        payload = {"kind": "substring", "pattern": rule.pattern.text}
    payload["account"] = rule.account
    if rule.priority is not None:
        payload["priority"] = rule.priority
    if rule.description:
        payload["description"] = rule.description
    return payload


def rule_from_dict(payload: Mapping[str, Any]) -> CategoryRule:
    """Build a rule from its serialized form.

    Regex patterns coming from storage are matched case-insensitively unless
    ``ignore_case = false`` is given.
    """
    kind = payload.get("kind", "regex")
    text = str(payload.get("pattern", ""))
    pattern: RulePattern
    if kind == "substring":
        pattern = SubstringPattern(text)
    elif kind == "regex":
        pattern = RegexPattern(text, ignore_case=bool(payload.get("ignore_case", True)))
    else:
        raise ValueError(f"Unknown rule pattern kind: {kind!r}")
    priority = payload.get("priority")
    return CategoryRule(
        pattern=pattern,
        account=str(payload.get("account", "")),
        priority=int(priority) if priority is not None else None,
        description=payload.get("description"),
    )
