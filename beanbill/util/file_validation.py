"""Upload checks: size, extension and content hash."""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePath

MAX_FILE_SIZE = 10 * 1024 * 1024
ALLOWED_EXTENSIONS: tuple[str, ...] = (".csv", ".xlsx", ".xls", ".txt")

_HASH_PATTERN = re.compile(r"^[a-f0-9]{64}$", re.IGNORECASE)


class FileValidationErrorType(str, Enum):
    TOO_LARGE = "FILE_TOO_LARGE"
    INVALID_EXTENSION = "INVALID_EXTENSION"
    EMPTY_FILE = "EMPTY_FILE"


@dataclass(frozen=True)
class FileValidationError:
    type: FileValidationErrorType
    message: str


def validate_file_size(size: int) -> FileValidationError | None:
    if size == 0:
        return FileValidationError(FileValidationErrorType.EMPTY_FILE, "文件为空，请检查文件是否损坏")
    if size > MAX_FILE_SIZE:
        size_mb = f"{size / (1024 * 1024):.2f}"
        return FileValidationError(
            FileValidationErrorType.TOO_LARGE,
            f"文件过大（{size_mb}MB），最大允许 {MAX_FILE_SIZE // (1024 * 1024)}MB",
        )
    return None


def validate_file_extension(filename: str) -> FileValidationError | None:
    extension = PurePath(filename).suffix.lower()
    if not extension:
        return FileValidationError(FileValidationErrorType.INVALID_EXTENSION, "文件缺少扩展名，无法识别文件类型")
    if extension not in ALLOWED_EXTENSIONS:
        return FileValidationError(
            FileValidationErrorType.INVALID_EXTENSION,
            f"不支持的文件类型：{extension}，允许的类型：{', '.join(ALLOWED_EXTENSIONS)}",
        )
    return None


def validate_file(filename: str, content: bytes) -> FileValidationError | None:
    """Return the first problem with an upload, or None when it is acceptable."""
    return validate_file_size(len(content)) or validate_file_extension(filename)


def calculate_file_hash(content: bytes) -> str:
    return hashlib.sha256(content).hexdigest()


def format_hash_short(file_hash: str) -> str:
    if len(file_hash) <= 16:
        return file_hash
    return f"{file_hash[:8]}...{file_hash[-8:]}"


def is_valid_hash(file_hash: str) -> bool:
    return bool(_HASH_PATTERN.match(file_hash))
