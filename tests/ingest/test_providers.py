"""Tests for embedding providers."""

import json

import httpx
import pytest

from cigraph.config.models import EmbeddingsConfig
from cigraph.core.errors import EmbeddingError, ErrorCode
from cigraph.graph.embedding import deterministic_embedder
from cigraph.ingest.providers import HttpEmbedder, create_embedder, is_retryable_status

URL = "https://embed.example.test/v1/embed"
VECTOR = [0.5] * 384


def _embedder(handler: object, **kwargs: object) -> HttpEmbedder:
    return HttpEmbedder(
        URL,
        transport=httpx.MockTransport(handler),  # type: ignore[arg-type]
        retry_base_delay=0.0,
        retry_max_delay=0.0,
        **kwargs,  # type: ignore[arg-type]
    )


class TestRetryableStatus:
    """Which statuses are retried."""

    @pytest.mark.parametrize("status", [408, 409, 425, 429, 500, 503, 599])
    def test_given_transient_status_when_checked_then_retryable(self, status: int) -> None:
        assert is_retryable_status(status)

    @pytest.mark.parametrize("status", [400, 401, 403, 404, 422])
    def test_given_client_error_when_checked_then_not_retryable(self, status: int) -> None:
        assert not is_retryable_status(status)


class TestHttpEmbedder:
    """HTTP provider behavior against a mock transport."""

    @pytest.mark.asyncio
    async def test_given_embedding_response_when_called_then_vector_and_request_shape(
        self,
    ) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"embedding": VECTOR})

        embedder = _embedder(handler, token="secret")
        try:
            vector = await embedder("hello")
        finally:
            await embedder.aclose()

        assert vector == VECTOR
        body = json.loads(requests[0].content)
        assert body == {"input": "hello", "dims": 384}
        assert requests[0].headers["Authorization"] == "Bearer secret"

    @pytest.mark.asyncio
    async def test_given_openai_style_response_when_called_then_vector(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"data": [{"embedding": VECTOR}]})

        embedder = _embedder(handler)
        try:
            assert await embedder("x") == VECTOR
        finally:
            await embedder.aclose()

    @pytest.mark.asyncio
    async def test_given_long_text_when_called_then_input_truncated(self) -> None:
        seen: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(len(json.loads(request.content)["input"]))
            return httpx.Response(200, json={"embedding": VECTOR})

        embedder = _embedder(handler)
        try:
            await embedder("y" * 25_000)
        finally:
            await embedder.aclose()

        assert seen == [20_000]

    @pytest.mark.asyncio
    async def test_given_transient_failures_when_called_then_retried_until_success(
        self,
    ) -> None:
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            if calls == 1:
                raise httpx.ConnectError("refused", request=request)
            if calls == 2:
                return httpx.Response(503, json={"error": "warming up"})
            return httpx.Response(200, json={"embedding": VECTOR})

        embedder = _embedder(handler)
        try:
            assert await embedder("x") == VECTOR
        finally:
            await embedder.aclose()

        assert calls == 3

    @pytest.mark.asyncio
    async def test_given_client_error_when_called_then_no_retry(self) -> None:
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(401, json={"error": "bad token"})

        embedder = _embedder(handler)
        try:
            with pytest.raises(EmbeddingError) as exc_info:
                await embedder("x")
        finally:
            await embedder.aclose()

        assert calls == 1
        assert exc_info.value.code == ErrorCode.EMBEDDING_HTTP_ERROR
        assert "bad token" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_given_persistent_5xx_when_called_then_gives_up_after_max_attempts(
        self,
    ) -> None:
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(500, text="oops")

        embedder = _embedder(handler, max_attempts=3)
        try:
            with pytest.raises(EmbeddingError):
                await embedder("x")
        finally:
            await embedder.aclose()

        assert calls == 3

    @pytest.mark.asyncio
    async def test_given_wrong_dimension_when_called_then_bad_response(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"embedding": [1.0, 2.0]})

        embedder = _embedder(handler)
        try:
            with pytest.raises(EmbeddingError) as exc_info:
                await embedder("x")
        finally:
            await embedder.aclose()

        assert exc_info.value.code == ErrorCode.EMBEDDING_BAD_RESPONSE


class TestCreateEmbedder:
    """Provider selection from config."""

    def test_given_deterministic_mode_when_created_then_deterministic(self) -> None:
        assert create_embedder(EmbeddingsConfig(mode="deterministic")) is deterministic_embedder

    def test_given_none_mode_when_created_then_none(self) -> None:
        assert create_embedder(EmbeddingsConfig(mode="none")) is None

    def test_given_required_without_http_when_created_then_not_configured(self) -> None:
        with pytest.raises(EmbeddingError) as exc_info:
            create_embedder(EmbeddingsConfig(mode="deterministic", required=True))

        assert exc_info.value.code == ErrorCode.EMBEDDING_NOT_CONFIGURED

    @pytest.mark.asyncio
    async def test_given_http_mode_when_created_then_http_embedder(self) -> None:
        config = EmbeddingsConfig(mode="http", http_url=URL, required=True)

        embedder = create_embedder(config)

        assert isinstance(embedder, HttpEmbedder)
        assert embedder.url == URL
        await embedder.aclose()
