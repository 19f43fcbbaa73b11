"""Resolve a free-text payment-method cell into a ledger account.

Alipay and WeChat exports describe the funding source as text such as
``汇丰银行（中国）信用卡(2537)`` or ``招商银行储蓄卡(1234)``. The patterns
below are tried in order and the first match wins.
"""

from __future__ import annotations

import re

from beanbill.domain.bill import PaymentMethodInfo

_CREDIT_CARD = re.compile(r"^(?P<bank>[^（(]+)(?:[（(][^）)]*[）)])?[^（(]*?信用卡[（(](?P<digits>\d{4})[）)]$")
_DEBIT_CARD = re.compile(r"^(?P<bank>.+?)储蓄卡[（(](?P<digits>\d{4})[）)]$")
_BRACKET_NOTE = re.compile(r"[【（(].+?[)】）]")
_BANK_SUFFIX = re.compile(r"银行.*")

BANK_CODES: dict[str, str] = {
    "汇丰": "HSBC",
    "中信": "CITIC",
    "招商": "CMB",
    "工商": "ICBC",
    "建设": "CCB",
    "农业": "ABC",
    "中国": "BOC",
    "中国银行": "BOC",
    "交通": "BCM",
    "民生": "CMBC",
    "光大": "CEB",
    "浦发": "SPDB",
    "兴业": "CIB",
    "平安": "PAB",
    "华夏": "HXB",
}

UNKNOWN_PAYMENT_METHOD = PaymentMethodInfo(
    bank_name="Unknown",
    payment_type="Unknown",
    full_description="未知支付方式",
    beancount_account="Assets:Cash",
)


def normalize_bank_name(name: str) -> str:
    """Strip bracketed notes and the trailing ``银行...`` part."""
    normalized = _BRACKET_NOTE.sub("", name)
    normalized = _BANK_SUFFIX.sub("", normalized)
    return normalized.strip()


def bank_code(name: str) -> str:
    """Look up the short code for a bank; unknown banks keep their normalized name."""
    normalized = normalize_bank_name(name)
    if normalized in BANK_CODES:
        return BANK_CODES[normalized]
    # 中国建设银行 -> 建设
    if normalized.startswith("中国") and normalized[2:] in BANK_CODES:
        return BANK_CODES[normalized[2:]]
    return normalized


def resolve_payment_method(text: str | None) -> PaymentMethodInfo:
    if not text or not text.strip():
        return UNKNOWN_PAYMENT_METHOD

    description = text.strip()

    match = _CREDIT_CARD.match(description)
    if match:
        code = bank_code(match.group("bank"))
        return PaymentMethodInfo(
            bank_name=normalize_bank_name(match.group("bank")),
            payment_type="信用卡",
            full_description=description,
            beancount_account=f"Liabilities:CreditCard:{code}",
            last_four_digits=match.group("digits"),
        )

    match = _DEBIT_CARD.match(description)
    if match:
        code = bank_code(match.group("bank"))
        return PaymentMethodInfo(
            bank_name=normalize_bank_name(match.group("bank")),
            payment_type="储蓄卡",
            full_description=description,
            beancount_account=f"Assets:Bank:{code}",
            last_four_digits=match.group("digits"),
        )

    if "余额宝" in description:
        return PaymentMethodInfo(
            bank_name="支付宝",
            payment_type="余额宝",
            full_description=description,
            beancount_account="Assets:Alipay:YuEBao",
        )

    if "账户余额" in description:
        return PaymentMethodInfo(
            bank_name="支付宝",
            payment_type="余额",
            full_description=description,
            beancount_account="Assets:Alipay:Balance",
        )

    return PaymentMethodInfo(
        bank_name="其他",
        payment_type="未知",
        full_description=description,
        beancount_account="Assets:Cash",
    )
