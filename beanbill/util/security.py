"""Sanitizers for user-supplied text and filenames."""

from __future__ import annotations

import html
import re
from urllib.parse import urlparse

MAX_FILENAME_LENGTH = 255

_SCRIPT_TAG = re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL)
_IFRAME_TAG = re.compile(r"<iframe[^>]*>.*?</iframe>", re.IGNORECASE | re.DOTALL)
_EVENT_HANDLER = re.compile(r"""on\w+\s*=\s*["'][^"']*["']""", re.IGNORECASE)
_JAVASCRIPT_URI = re.compile(r"javascript:", re.IGNORECASE)
_DATA_URI = re.compile(r"data:(?!image)", re.IGNORECASE)

_PATH_SEPARATORS = re.compile(r"[/\\]")
_RESERVED_CHARS = re.compile(r'[<>:"|?*]')
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x80-\x9f]")


def escape_html(text: str) -> str:
    return html.escape(text, quote=True)


def sanitize_input(text: str | None) -> str:
    """Strip script/iframe tags, inline event handlers and script/data URIs."""
    if not text or not isinstance(text, str):
        return ""
    cleaned = text.strip()
    cleaned = _SCRIPT_TAG.sub("", cleaned)
    cleaned = _IFRAME_TAG.sub("", cleaned)
    cleaned = _EVENT_HANDLER.sub("", cleaned)
    cleaned = _JAVASCRIPT_URI.sub("", cleaned)
    cleaned = _DATA_URI.sub("", cleaned)
    return cleaned


def sanitize_filename(filename: str | None) -> str:
    if not filename or not isinstance(filename, str):
        return "unnamed"
    cleaned = _PATH_SEPARATORS.sub("", filename)
    cleaned = _RESERVED_CHARS.sub("", cleaned)
    cleaned = _CONTROL_CHARS.sub("", cleaned)
    cleaned = cleaned.strip().strip(".")
    cleaned = cleaned[:MAX_FILENAME_LENGTH]
    return cleaned or "unnamed"


def limit_string_length(text: str | None, max_length: int = 1000) -> str:
    if not text or not isinstance(text, str):
        return ""
    return text[:max_length]


def is_valid_url(url: str) -> bool:
    """Only absolute http(s) URLs are accepted."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)
