from __future__ import annotations

import pytest

from beanbill.application.source_routing import identify_source, resolve_source, route_source
from beanbill.domain.bill import BillSource


@pytest.mark.parametrize(
    ("file_name", "expected"),
    [
        ("支付宝交易明细(20240101-20240131).csv", BillSource.ALIPAY),
        ("Alipay_2024.csv", BillSource.ALIPAY),
        ("微信支付账单(20240201-20240229).csv", BillSource.WECHAT),
        ("WeChat-export.xlsx", BillSource.WECHAT),
        ("银行卡流水.csv", BillSource.BANK),
        ("my_bank_statement.csv", BillSource.BANK),
        ("export.csv", BillSource.CSV),
    ],
)
def test_stage1_filename_keywords(file_name: str, expected: BillSource) -> None:
    route = route_source(file_name)

    assert route.source is expected
    assert route.stage == 1


def test_stage2_content_sniffing(alipay_csv: str, wechat_csv: str) -> None:
    alipay = route_source("export1.csv", alipay_csv)
    wechat = route_source("export2.csv", wechat_csv)

    assert (alipay.source, alipay.stage) == (BillSource.ALIPAY, 2)
    assert (wechat.source, wechat.stage) == (BillSource.WECHAT, 2)


def test_filename_wins_over_content(wechat_csv: str) -> None:
    assert identify_source("alipay.csv", wechat_csv) is BillSource.ALIPAY


def test_unrecognized_content_defaults_to_generic_csv() -> None:
    assert identify_source("data.csv", "日期,金额,说明\n2024-01-01,10,午饭\n") is BillSource.CSV


def test_resolve_source_honors_declared_source(alipay_csv: str) -> None:
    assert resolve_source("wechat", "支付宝.csv", alipay_csv) is BillSource.WECHAT
    assert resolve_source(BillSource.BANK, "x.csv") is BillSource.BANK
    assert resolve_source("auto", "x.csv", alipay_csv) is BillSource.ALIPAY
    assert resolve_source(None, "x.csv") is BillSource.CSV
