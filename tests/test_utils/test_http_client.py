"""Tests for the async HTTP client wrapper."""

import ssl

from swaggerjack.config import HttpSettings
from swaggerjack.utils.http import USER_AGENTS, AsyncHttpClient, FetchResult, random_user_agent


class TestFetchResult:
    def test_text_replaces_invalid_bytes(self):
        result = FetchResult(url="https://example.com", status=200, body=b"ok \xff")
        assert result.text == "ok �"


class TestAsyncHttpClient:
    def test_random_user_agent_from_pool(self):
        assert random_user_agent() in USER_AGENTS

    def test_fixed_agent(self):
        client = AsyncHttpClient(user_agent="swaggerjack-test")
        assert client.agent() == "swaggerjack-test"

    def test_random_agent(self):
        client = AsyncHttpClient(random_agent=True)
        assert client.agent() in USER_AGENTS

    def test_unverified_tls_by_default(self):
        client = AsyncHttpClient()
        assert client._ssl_ctx is not None
        assert client._ssl_ctx.verify_mode == ssl.CERT_NONE

    def test_verified_tls(self):
        assert AsyncHttpClient(verify_ssl=True)._ssl_ctx is None

    def test_from_settings(self):
        settings = HttpSettings(timeout=5, proxy="http://127.0.0.1:8080", random_user_agent=True)
        client = AsyncHttpClient.from_settings(settings)
        assert client.timeout.total == 5
        assert client.proxy == "http://127.0.0.1:8080"
        assert client.random_agent

    async def test_close_without_session(self):
        async with AsyncHttpClient() as client:
            pass
        assert client._session is None
