"""Map bills onto asset and category accounts."""

from __future__ import annotations

from decimal import Decimal

from beanbill.domain.defaults import AccountMappingConfig
from beanbill.domain.rules import CategoryRule, first_match, sort_rules


class AccountMapper:
    def __init__(self, config: AccountMappingConfig | None = None) -> None:
        self.config = config or AccountMappingConfig()
        self._rules: list[CategoryRule] = sort_rules(self.config.category_rules)
        self._payment_accounts = {key.lower(): value for key, value in self.config.payment_method_to_account.items()}

    def get_asset_account(self, source: str | None = None) -> str:
        if source:
            account = self._payment_accounts.get(source.lower())
            if account:
                return account
        return self.config.default_asset_account

    def get_category_account(self, description: str, amount: Decimal) -> str:
        """Income goes to the default income account; expenses go through the rules."""
        if amount >= 0:
            return self.config.default_income_account
        rule = first_match(self._rules, description)
        if rule is not None:
            return rule.account
        return self.config.default_expense_account
