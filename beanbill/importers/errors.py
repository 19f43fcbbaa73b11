"""File-level parse failures.

These abort parsing of one file only; the conversion pipeline turns them
into warnings and continues with the remaining files.
"""

from __future__ import annotations


class BillParseError(ValueError):
    """Base class for errors that make a whole file unparseable."""


class EmptyFileError(BillParseError):
    def __init__(self, message: str = "CSV 文件为空") -> None:
        super().__init__(message)


class HeaderNotFound(BillParseError):
    def __init__(self, message: str = "未找到表头行") -> None:
        super().__init__(message)


class MissingRequiredField(BillParseError):
    def __init__(self, role: str) -> None:
        self.role = role
        super().__init__(f"缺少必需的列: {role}")


class InvalidRowDate(BillParseError):
    """Raised under the ``reject`` date policy when a row's date cannot be parsed."""

    def __init__(self, value: str, row_index: int) -> None:
        self.value = value
        self.row_index = row_index
        super().__init__(f"第 {row_index + 1} 行日期无法解析: {value}")
