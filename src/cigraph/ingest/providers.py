"""Embedding providers selected by configuration.

- ``none``: no enrichment; nodes keep whatever embedding they arrived with.
- ``deterministic``: hash-derived pseudo-vectors, for dev and tests.
- ``http``: POST ``{"input", "dims"}`` to an embedding service.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

import httpx
import structlog

from cigraph.config.constants import EMBEDDING_DIM, EMBEDDING_INPUT_MAX_CHARS
from cigraph.config.models import EmbeddingsConfig
from cigraph.core.errors import EmbeddingError
from cigraph.graph.embedding import Embedder, check_embedding, deterministic_embedder

log = structlog.get_logger()

_RETRYABLE_STATUSES = frozenset({408, 409, 425, 429})


def is_retryable_status(status: int) -> bool:
    return status in _RETRYABLE_STATUSES or 500 <= status <= 599


def _extract_vector(data: Any) -> Any:
    if not isinstance(data, dict):
        return None
    if "embedding" in data:
        return data["embedding"]
    items = data.get("data")
    if isinstance(items, list) and items and isinstance(items[0], dict):
        return items[0].get("embedding")
    return None


def _error_message(response: httpx.Response, data: Any) -> str:
    if isinstance(data, dict):
        msg = data.get("error") or data.get("message")
        if msg:
            return str(msg)
    return f"HTTP {response.status_code}"


class HttpEmbedder:
    """Embedder backed by a JSON-over-HTTP embedding service.

    Retries timeouts, connection failures and retryable statuses with
    exponential backoff, up to ``max_attempts`` total attempts.
    """

    def __init__(
        self,
        url: str,
        *,
        token: str | None = None,
        max_attempts: int = 4,
        retry_base_delay: float = 0.25,
        retry_max_delay: float = 5.0,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self.max_attempts = max_attempts
        self.retry_base_delay = retry_base_delay
        self.retry_max_delay = retry_max_delay
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(headers=headers, timeout=timeout, transport=transport)

    @classmethod
    def from_config(
        cls, config: EmbeddingsConfig, transport: httpx.AsyncBaseTransport | None = None
    ) -> HttpEmbedder:
        if not config.http_url:
            raise EmbeddingError.not_configured("http_url is required for http mode")
        return cls(
            config.http_url,
            token=config.http_token,
            max_attempts=config.max_attempts,
            retry_base_delay=config.retry_base_ms / 1000,
            retry_max_delay=config.retry_max_ms / 1000,
            timeout=config.timeout_ms / 1000,
            transport=transport,
        )

    def _backoff(self, attempt: int) -> float:
        return float(min(self.retry_max_delay, self.retry_base_delay * (2 ** (attempt - 1))))

    async def __call__(self, text: str) -> list[float]:
        payload = {"input": (text or "")[:EMBEDDING_INPUT_MAX_CHARS], "dims": EMBEDDING_DIM}
        attempt = 0
        while True:
            attempt += 1
            try:
                response = await self._client.post(self.url, json=payload)
            except (httpx.TimeoutException, httpx.NetworkError) as e:
                if attempt < self.max_attempts:
                    delay = self._backoff(attempt)
                    log.warning(
                        "embedding_http_retry", attempt=attempt, error=str(e), delay_sec=delay
                    )
                    await asyncio.sleep(delay)
                    continue
                raise

            try:
                data = response.json()
            except json.JSONDecodeError:
                data = None

            if response.is_error:
                status = response.status_code
                if attempt < self.max_attempts and is_retryable_status(status):
                    delay = self._backoff(attempt)
                    log.warning(
                        "embedding_http_retry", attempt=attempt, status=status, delay_sec=delay
                    )
                    await asyncio.sleep(delay)
                    continue
                raise EmbeddingError.http_error(status, _error_message(response, data))

            vector = _extract_vector(data)
            reason = check_embedding(vector)
            if reason is not None:
                raise EmbeddingError.bad_response(reason)
            return [float(x) for x in vector]

    async def aclose(self) -> None:
        await self._client.aclose()


def create_embedder(
    config: EmbeddingsConfig, transport: httpx.AsyncBaseTransport | None = None
) -> Embedder | None:
    """Build the configured embedder, or None when enrichment is off.

    Raises:
        EmbeddingError: If a real provider is required but not configured.
    """
    if config.mode == "http":
        return HttpEmbedder.from_config(config, transport=transport)
    if config.required:
        raise EmbeddingError.not_configured(
            f"mode {config.mode!r} does not satisfy embeddings.required; use mode 'http'"
        )
    if config.mode == "deterministic":
        return deterministic_embedder
    return None
