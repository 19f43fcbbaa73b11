"""Bill ingestion for Alipay, WeChat Pay and bank exports into Beancount ledgers."""

__version__ = "0.3.0"
