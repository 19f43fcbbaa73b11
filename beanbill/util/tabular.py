"""Quote-aware splitting of CSV text into rows of stripped cells."""

from __future__ import annotations

import csv
import io
import re

AMOUNT_NOISE = re.compile(r"[¥$€£￥,，\s]")


def read_rows(text: str) -> list[list[str]]:
    """Split CSV text into rows; quoted commas and doubled quotes are honoured."""
    reader = csv.reader(io.StringIO(text), skipinitialspace=False)
    return [[cell.strip() for cell in row] for row in reader]


def split_csv_line(line: str) -> list[str]:
    rows = read_rows(line)
    return rows[0] if rows else []


def is_blank_row(row: list[str]) -> bool:
    return all(not cell for cell in row)


def clean_amount_text(text: str) -> str:
    """Remove currency symbols, thousands separators and whitespace."""
    return AMOUNT_NOISE.sub("", text)


def decode_text(content: bytes, encodings: tuple[str, ...] = ("utf-8-sig", "gb18030")) -> str:
    """Decode bytes with the first encoding that succeeds.

    Chinese bank and payment exports are usually UTF-8 (often with BOM) or
    GBK-family; GB18030 is a superset of GBK and GB2312.
    """
    last_error: UnicodeDecodeError | None = None
    for encoding in encodings:
        try:
            return content.decode(encoding)
        except UnicodeDecodeError as exc:
            last_error = exc
    assert last_error is not None
    raise last_error
