"""Default account configuration: payment-method accounts, builtin rules and
the account list emitted as open directives."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace

from beanbill.domain.rules import CategoryRule, regex_rule

DEFAULT_EXPENSE_ACCOUNT = "Expenses:Shopping:Daily"
DEFAULT_INCOME_ACCOUNT = "Income:Refunds"
DEFAULT_ASSET_ACCOUNT = "Assets:Cash"

DEFAULT_PAYMENT_METHOD_ACCOUNTS: dict[str, str] = {
    "wechat": "Assets:WeChat:Cash",
    "alipay": "Assets:Alipay:Balance",
    "bank": "Assets:Bank:Checking",
    "creditcard": "Liabilities:CreditCard:Generic",
    "cash": "Assets:Cash",
}

DEFAULT_CATEGORY_RULES: tuple[CategoryRule, ...] = (
    regex_rule("美团|饿了么|外卖|配送|汉堡王", "Expenses:Food:Delivery", 10, "外卖"),
    regex_rule("餐厅|饭店|食堂|菜馆|火锅|烧烤|烤肉|小笼包|牛肉面|砂锅", "Expenses:Food:Restaurant", 10, "餐厅"),
    regex_rule("超市|便利|生鲜|水果|蔬菜|肉类|菜鲜", "Expenses:Food:Groceries", 10, "生鲜食品"),
    regex_rule("滴滴|打车|出租|网约车|快车|专车|顺风车", "Expenses:Transport:Taxi", 10, "打车"),
    regex_rule("地铁|公交|一卡通", "Expenses:Transport:Public", 10, "公共交通"),
    regex_rule("淘宝|天猫|京东|拼多多|购物", "Expenses:Shopping:Online", 10, "网购"),
    regex_rule("名创优品|便利店|杂货|百货", "Expenses:Shopping:Daily", 10, "日用品"),
    regex_rule("医院|诊所|体检|药店|医保|医疗|药房|口腔", "Expenses:Health:Medical", 10, "医疗"),
    regex_rule("按摩|修脚|健身|瑜伽|美容", "Expenses:Health:Wellness", 10, "保健"),
    regex_rule("房租|水电|燃气|物业|暖气|桶装水|充电", "Expenses:Housing:Utilities", 10, "水电燃气"),
    regex_rule("宽带|网络|话费|通讯|充值", "Expenses:Housing:Internet", 10, "网络通讯"),
    regex_rule("培训|课程|书籍|教育|学校|大学", "Expenses:Education:Learning", 10, "教育"),
    regex_rule("服务费|手续费|代理费", "Expenses:Misc:Fees", 10, "服务费用"),
    regex_rule("公益|慈善|捐赠", "Expenses:Misc:Charity", 10, "公益捐赠"),
    regex_rule("工资|薪资|奖金|提成|报销", "Income:Salary", 10, "工资收入"),
    regex_rule("退款|返还|转入|转账", "Income:Refunds", 10, "退款/转账"),
    regex_rule(".", "Expenses:Shopping:Daily", 0, "默认日用品"),
)

COMMON_ACCOUNTS: tuple[str, ...] = (
    "Assets:Bank:Checking",
    "Assets:Bank:Savings",
    "Assets:WeChat:Cash",
    "Assets:Alipay:Balance",
    "Assets:Cash",
    "Liabilities:CreditCard:Generic",
    "Liabilities:Alipay:Huabei",
    "Liabilities:WeChat:Credit",
    "Income:Salary",
    "Income:Refunds",
    "Expenses:Food:Delivery",
    "Expenses:Food:Restaurant",
    "Expenses:Food:Groceries",
    "Expenses:Transport:Taxi",
    "Expenses:Transport:Public",
    "Expenses:Shopping:Online",
    "Expenses:Shopping:Daily",
    "Expenses:Health:Medical",
    "Expenses:Health:Wellness",
    "Expenses:Housing:Utilities",
    "Expenses:Housing:Internet",
    "Expenses:Education:Learning",
    "Expenses:Misc:Fees",
    "Expenses:Misc:Charity",
)


@dataclass(frozen=True)
class AccountMappingConfig:
    """Everything the account mapper needs, supplied as plain data."""

    payment_method_to_account: Mapping[str, str] = field(
        default_factory=lambda: dict(DEFAULT_PAYMENT_METHOD_ACCOUNTS)
    )
    category_rules: Sequence[CategoryRule] = DEFAULT_CATEGORY_RULES
    default_expense_account: str = DEFAULT_EXPENSE_ACCOUNT
    default_income_account: str = DEFAULT_INCOME_ACCOUNT
    default_asset_account: str = DEFAULT_ASSET_ACCOUNT

    def with_custom_rules(self, rules: Sequence[CategoryRule]) -> AccountMappingConfig:
        """Return a copy whose rule list is the builtin rules plus ``rules``."""
        return replace(self, category_rules=(*self.category_rules, *rules))
