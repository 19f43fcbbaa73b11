"""Two-stage source routing for uploaded bill files.

Stage 1: filename keyword matching
Stage 2: content sniffing of the first lines when the filename is inconclusive
"""

from __future__ import annotations

from dataclasses import dataclass

from beanbill.domain.bill import BillSource
from beanbill.runtime import get_logger

logger = get_logger(__name__)

SNIFF_LINE_LIMIT = 30


@dataclass(frozen=True)
class Stage1Rule:
    source: BillSource
    keywords: tuple[str, ...]

    def matches_name(self, file_name: str) -> bool:
        lower = file_name.lower()
        return any(keyword in lower for keyword in self.keywords)


@dataclass(frozen=True)
class Stage2Rule:
    source: BillSource
    markers: tuple[str, ...]

    def matches_text(self, head: str) -> bool:
        return any(marker in head for marker in self.markers)


@dataclass(frozen=True)
class SourceRoute:
    file_name: str
    source: BillSource
    stage: int


STAGE1_RULES: tuple[Stage1Rule, ...] = (
    Stage1Rule(BillSource.ALIPAY, ("支付宝", "alipay")),
    Stage1Rule(BillSource.WECHAT, ("微信", "wechat")),
    Stage1Rule(BillSource.BANK, ("银行卡", "bank")),
)

STAGE2_RULES: tuple[Stage2Rule, ...] = (
    Stage2Rule(BillSource.ALIPAY, ("支付宝", "交易创建时间", "收/付款方式")),
    Stage2Rule(BillSource.WECHAT, ("微信支付", "微信昵称", "交易单号,商户单号")),
)


def _head(text: str, limit: int = SNIFF_LINE_LIMIT) -> str:
    return "\n".join(text.splitlines()[:limit])


def route_source(file_name: str, text: str | None = None) -> SourceRoute:
    for rule in STAGE1_RULES:
        if rule.matches_name(file_name):
            return SourceRoute(file_name, rule.source, 1)

    if text:
        head = _head(text)
        for stage2_rule in STAGE2_RULES:
            if stage2_rule.matches_text(head):
                logger.debug("Routed %s to %s by content", file_name, stage2_rule.source.value)
                return SourceRoute(file_name, stage2_rule.source, 2)

    return SourceRoute(file_name, BillSource.CSV, 1)


def identify_source(file_name: str, text: str | None = None) -> BillSource:
    """Infer the bill source of a file, defaulting to ``BillSource.CSV``."""
    return route_source(file_name, text).source


def resolve_source(declared: BillSource | str | None, file_name: str, text: str | None = None) -> BillSource:
    source = BillSource.parse(declared)
    if source is BillSource.AUTO:
        return identify_source(file_name, text)
    return source
