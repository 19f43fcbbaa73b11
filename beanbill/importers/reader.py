"""Decode an uploaded file into CSV text.

Excel workbooks are read with pandas (first worksheet, every cell as text)
and re-emitted as CSV so that every parser works on the same representation.
"""

from __future__ import annotations

import io
from pathlib import Path

import pandas as pd

from beanbill.runtime import get_logger
from beanbill.util.tabular import decode_text

logger = get_logger(__name__)

EXCEL_EXTENSIONS = (".xlsx", ".xls")


def is_excel_filename(filename: str) -> bool:
    return filename.lower().endswith(EXCEL_EXTENSIONS)


def excel_to_csv_text(content: bytes) -> str:
    frame = pd.read_excel(io.BytesIO(content), sheet_name=0, header=None, dtype=str)
    frame = frame.fillna("")
    return frame.to_csv(index=False, header=False)


def read_tabular_text(content: bytes, filename: str) -> str:
    """Return the file as CSV text; Excel files are converted from their first sheet."""
    if is_excel_filename(filename):
        logger.debug("Reading %s as Excel workbook", filename)
        return excel_to_csv_text(content)
    return decode_text(content)


def read_tabular_file(path: Path) -> str:
    return read_tabular_text(path.read_bytes(), path.name)
