"""HTTP clients for the external column-recognition and categorization services.

Both services are JSON-over-HTTP. Every call has an explicit timeout and is
retried once on transport failure; a non-2xx answer is not retried and
surfaces as ``ServiceError`` with the message the service returned. Callers
in the application layer decide how to degrade.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

import httpx

from beanbill.domain.column_mapping import ColumnMapping, RecognitionResult
from beanbill.runtime.logging import get_logger

logger = get_logger(__name__)

DEFAULT_SERVICE_URL = "http://localhost:8787"
DEFAULT_ERROR_MESSAGE = "AI 识别服务暂时不可用"


class ServiceUnavailable(RuntimeError):
    """Raised when a service cannot be reached or times out."""


class ServiceCancelled(ServiceUnavailable):
    """Raised when the caller's cancellation event is set before a request."""


class ServiceError(RuntimeError):
    """Raised when a service answers with a non-2xx status or an unusable body."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class ServiceConfig:
    base_url: str = DEFAULT_SERVICE_URL
    timeout: float = 30.0
    retries: int = 1


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return DEFAULT_ERROR_MESSAGE
    if isinstance(payload, dict) and payload.get("error"):
        return str(payload["error"])
    return DEFAULT_ERROR_MESSAGE


class JsonServiceClient:
    def __init__(
        self,
        config: ServiceConfig | None = None,
        client: httpx.Client | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self.config = config or ServiceConfig()
        self._client = client or httpx.Client()
        self._owns_client = client is None
        self.cancel_event = cancel_event

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> JsonServiceClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def post_json(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.config.base_url.rstrip('/')}{path}"
        last_error: httpx.RequestError | None = None

        for attempt in range(1, self.config.retries + 2):
            if self.cancel_event is not None and self.cancel_event.is_set():
                raise ServiceCancelled(f"Request to {url} cancelled")
            start_time = time.time()
            try:
                response = self._client.post(url, json=payload, timeout=self.config.timeout)
            except httpx.RequestError as e:
                logger.warning("Request to %s failed (attempt %d): %s", url, attempt, e)
                last_error = e
                continue

            logger.debug("%s returned %s in %.2f seconds", url, response.status_code, time.time() - start_time)
            if not response.is_success:
                message = _error_message(response)
                logger.error("Service error from %s: %s - %s", url, response.status_code, message)
                raise ServiceError(message, response.status_code)
            try:
                body = response.json()
            except ValueError as e:
                raise ServiceError(f"Invalid JSON from {url}", response.status_code) from e
            if not isinstance(body, dict):
                raise ServiceError(f"Unexpected response from {url}", response.status_code)
            return body

        raise ServiceUnavailable(f"Failed to connect to {url}: {last_error}") from last_error


class ColumnRecognizerClient(JsonServiceClient):
    """Client for ``POST /api/recognize-columns``."""

    endpoint = "/api/recognize-columns"

    def recognize(self, headers: Sequence[str], source: str) -> RecognitionResult:
        body = self.post_json(self.endpoint, {"headers": list(headers), "source": source})
        try:
            mapping = ColumnMapping.from_dict(body["mapping"])
        except (KeyError, TypeError, ValueError) as e:
            raise ServiceError(f"Invalid column mapping in response: {e}") from e
        return RecognitionResult(mapping=mapping, confidence=float(body.get("confidence", 0.0)))


@dataclass(frozen=True)
class CategorizeResponse:
    account: str
    confidence: float
    reasoning: str | None = None


class CategorizationClient(JsonServiceClient):
    """Client for ``POST /api/categorize`` and ``POST /api/batch-categorize``."""

    endpoint = "/api/categorize"
    batch_endpoint = "/api/batch-categorize"

    def categorize(self, description: str, amount: Decimal, available_accounts: Sequence[str]) -> CategorizeResponse:
        body = self.post_json(
            self.endpoint,
            {
                "description": description,
                "amount": float(amount),
                "availableAccounts": list(available_accounts),
            },
        )
        return CategorizeResponse(
            account=str(body.get("account") or ""),
            confidence=float(body.get("confidence") or 0.5),
            reasoning=body.get("reasoning"),
        )

    def batch_categorize(self, items: Sequence[tuple[str, Decimal]]) -> dict[str, str]:
        """Return ``description -> category`` for the items the service answered."""
        body = self.post_json(
            self.batch_endpoint,
            {"bills": [{"description": description, "amount": float(amount)} for description, amount in items]},
        )
        categories: dict[str, str] = {}
        for item in body.get("categories") or []:
            if isinstance(item, dict) and item.get("description") and item.get("category"):
                categories[str(item["description"])] = str(item["category"])
        return categories
