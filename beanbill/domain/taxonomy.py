"""Standard category taxonomy shared by rule-based and AI classification.

Every category a bill can carry is one of the 16 identifiers below; each maps
one-to-one onto a Beancount account.
"""

from __future__ import annotations

from typing import Literal, TypeGuard

StandardCategory = Literal[
    "Food-Delivery",
    "Food-Restaurant",
    "Food-Groceries",
    "Transport-Taxi",
    "Transport-Public",
    "Shopping-Online",
    "Shopping-Daily",
    "Health-Medical",
    "Health-Wellness",
    "Housing-Utilities",
    "Housing-Internet",
    "Education-Learning",
    "Misc-Fees",
    "Misc-Charity",
    "Income-Salary",
    "Income-Refunds",
]

# (category, account, display name, description)
_TAXONOMY: tuple[tuple[StandardCategory, str, str, str], ...] = (
    ("Food-Delivery", "Expenses:Food:Delivery", "外卖", "外卖配送（美团、饿了么、汉堡王外卖等）"),
    ("Food-Restaurant", "Expenses:Food:Restaurant", "餐厅", "餐厅用餐（小笼包、牛肉面、餐厅等）"),
    ("Food-Groceries", "Expenses:Food:Groceries", "生鲜食品", "生鲜食品（菜鲜果美、超市、菜市场等）"),
    ("Transport-Taxi", "Expenses:Transport:Taxi", "打车", "打车出行（滴滴、网约车、出租车等）"),
    ("Transport-Public", "Expenses:Transport:Public", "公共交通", "公共交通（地铁、公交、一卡通等）"),
    ("Shopping-Online", "Expenses:Shopping:Online", "网购", "网购（京东、淘宝、拼多多等电商平台）"),
    ("Shopping-Daily", "Expenses:Shopping:Daily", "日用品", "日用品（名创优品、便利店、百货等）"),
    ("Health-Medical", "Expenses:Health:Medical", "医疗", "医疗（医院、体检、药品、医保支付等）"),
    ("Health-Wellness", "Expenses:Health:Wellness", "保健", "保健（按摩、修脚、健身、美容等）"),
    ("Housing-Utilities", "Expenses:Housing:Utilities", "水电燃气", "水电燃气（水费、电费、燃气、桶装水、充电等）"),
    ("Housing-Internet", "Expenses:Housing:Internet", "网络通讯", "网络通讯（宽带、话费、充值等）"),
    ("Education-Learning", "Expenses:Education:Learning", "教育", "教育（培训、课程、书籍、学校等）"),
    ("Misc-Fees", "Expenses:Misc:Fees", "服务费用", "服务费用（手续费、代理费、服务费等）"),
    ("Misc-Charity", "Expenses:Misc:Charity", "公益捐赠", "公益捐赠（慈善捐款、公益组织等）"),
    ("Income-Salary", "Income:Salary", "工资收入", "工资收入（工资、奖金、薪资等）"),
    ("Income-Refunds", "Income:Refunds", "退款/转账", "退款/转账（退款、转账收入等）"),
)

STANDARD_CATEGORIES: tuple[StandardCategory, ...] = tuple(row[0] for row in _TAXONOMY)
CATEGORY_TO_BEANCOUNT: dict[StandardCategory, str] = {row[0]: row[1] for row in _TAXONOMY}
BEANCOUNT_TO_CATEGORY: dict[str, StandardCategory] = {row[1]: row[0] for row in _TAXONOMY}
CATEGORY_DISPLAY_NAMES: dict[StandardCategory, str] = {row[0]: row[2] for row in _TAXONOMY}
CATEGORY_DESCRIPTIONS: dict[StandardCategory, str] = {row[0]: row[3] for row in _TAXONOMY}

FALLBACK_CATEGORY: StandardCategory = "Shopping-Daily"


def is_valid_category(category: str | None) -> TypeGuard[StandardCategory]:
    return category in CATEGORY_TO_BEANCOUNT


def category_display_name(category: StandardCategory) -> str:
    return CATEGORY_DISPLAY_NAMES[category]


def category_description(category: StandardCategory) -> str:
    return CATEGORY_DESCRIPTIONS[category]


def beancount_to_category(account: str) -> StandardCategory | None:
    return BEANCOUNT_TO_CATEGORY.get(account)


def category_to_beancount(category: str) -> str | None:
    if not is_valid_category(category):
        return None
    return CATEGORY_TO_BEANCOUNT[category]
