"""Beancount account names as a validated value type."""

from __future__ import annotations

import re

ACCOUNT_PATTERN = re.compile(r"^[A-Z][A-Za-z0-9]*(:[A-Z][A-Za-z0-9]*)+$")


class InvalidAccountError(ValueError):
    """Raised when a string is not a ``Capitalized:Words:Like:This`` account."""


class Account(str):
    """An account name that passed format validation at construction."""

    __slots__ = ()

    def __new__(cls, value: str) -> Account:
        if not value:
            raise InvalidAccountError("账户不能为空")
        if not ACCOUNT_PATTERN.match(value):
            raise InvalidAccountError(f"账户格式无效: {value}（应为 Capitalized:Words:Like:This）")
        return super().__new__(cls, value)

    @property
    def root(self) -> str:
        return self.split(":", 1)[0]


def is_valid_account(value: str) -> bool:
    try:
        Account(value)
    except InvalidAccountError:
        return False
    return True
