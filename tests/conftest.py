"""Shared pytest fixtures for beanbill tests.

Bill fixtures are synthetic exports shaped like the real Alipay/WeChat
files (preamble lines, then a header row, then data rows).
"""

from __future__ import annotations

from pathlib import Path

import pytest

from beanbill.runtime import load_user_settings, set_project_root

ALIPAY_CSV = """\
------------------------------------------------------------------------------------
导出信息：
姓名：测试用户
支付宝账户：test@example.com
起始时间：[2024-01-01 00:00:00]    终止时间：[2024-01-31 23:59:59]
------------------------支付宝（中国）网络技术有限公司  电子客户回单------------------------
交易时间,交易分类,交易对方,对方账号,商品说明,收/支,金额,收/付款方式,交易状态,交易订单号,商家订单号,备注
2024-01-01 12:00:00,餐饮美食,美团外卖,123456789,外卖订单,支出,50.5,支付宝余额,交易成功,2024010122001,,
2024-01-02 09:30:00,交通出行,滴滴出行,d***@didi.com,滴滴快车-行程,支出,23.00,招商银行信用卡(8888),交易成功,2024010222001,,
2024-01-03 18:00:00,退款,某商家,s***@x.com,退款-订单,收入,20.00,招商银行储蓄卡(1234),退款成功,2024010322001,,
2024-01-04 20:00:00,日用百货,便利店,c***@x.com,矿泉水,支出,3.00,账户余额,交易关闭,2024010422001,,
"""

WECHAT_CSV = """\
微信支付账单明细,,,,,,,,,,
微信昵称：[测试],,,,,,,,,,
起始时间：[2024-02-01 00:00:00] 终止时间：[2024-02-29 23:59:59],,,,,,,,,,
导出类型：[全部],,,,,,,,,,
----------------------微信支付账单明细列表--------------------,,,,,,,,,,
交易时间,交易类型,交易对方,商品,收/支,金额(元),支付方式,当前状态,交易单号,商户单号,备注
2024-02-03 08:15:00,商户消费,瑞幸咖啡,生椰拿铁,支出,¥15.90,零钱,支付成功,4200001,10001,/
2024-02-03 09:00:00,转账,张三,/,收入,¥100.00,/,已存入零钱,4200002,,/
2024-02-04 10:00:00,零钱提现,招商银行(1234),/,/,¥50.00,招商银行(1234),提现已到账,4200003,,/
"""


@pytest.fixture
def alipay_csv() -> str:
    return ALIPAY_CSV


@pytest.fixture
def wechat_csv() -> str:
    return WECHAT_CSV


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """Point the paths singleton at an empty temporary root."""
    set_project_root(tmp_path)
    load_user_settings.cache_clear()
    return tmp_path
