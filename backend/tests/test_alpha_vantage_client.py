"""Tests for AlphaVantageClient (upstream mocked with httpx.MockTransport)."""

import logging

import httpx
import pytest

from app.services.alpha_vantage_client import AlphaVantageClient, ApiKeyRedactingFilter
from app.services.errors import PayloadError, UpstreamError


SERIES = {
    "Meta Data": {"1. Information": "Daily Prices", "2. Symbol": "MSFT"},
    "Time Series (Daily)": {
        "2024-03-15": {"1. open": "420.0", "4. close": "421.5", "5. volume": "100"},
        "2024-03-14": {"1. open": "418.0", "4. close": "419.25", "5. volume": "200"},
    },
}


def _client(handler) -> AlphaVantageClient:
    return AlphaVantageClient(
        "https://alpha.test/", "secret-key", transport=httpx.MockTransport(handler)
    )


class TestGetTimeSeriesDaily:
    @pytest.mark.asyncio
    async def test_builds_query_url(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=SERIES)

        async with _client(handler) as client:
            await client.get_time_series_daily("MSFT")

        request = seen[0]
        assert request.method == "GET"
        assert request.url.host == "alpha.test"
        assert request.url.path == "/query"
        assert request.url.params["apikey"] == "secret-key"
        assert request.url.params["function"] == "TIME_SERIES_DAILY"
        assert request.url.params["symbol"] == "MSFT"

    @pytest.mark.asyncio
    async def test_parses_series(self):
        async with _client(lambda request: httpx.Response(200, json=SERIES)) as client:
            payload = await client.get_time_series_daily("MSFT")

        assert payload.meta_data.symbol == "MSFT"
        assert payload.time_series["2024-03-15"].close == "421.5"
        assert payload.time_series["2024-03-14"].close == "419.25"

    @pytest.mark.asyncio
    async def test_missing_series_is_empty(self):
        async with _client(lambda request: httpx.Response(200, json={})) as client:
            payload = await client.get_time_series_daily("MSFT")

        assert payload.time_series == {}

    @pytest.mark.asyncio
    async def test_non_200_raises_upstream_error(self):
        async with _client(lambda request: httpx.Response(400, json={"error": "Invalid request"})) as client:
            with pytest.raises(UpstreamError) as exc_info:
                await client.get_time_series_daily("MSFT")

        assert "Got: 400" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_transport_failure_raises_upstream_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            with pytest.raises(UpstreamError):
                await client.get_time_series_daily("MSFT")

    @pytest.mark.asyncio
    async def test_invalid_json_raises_payload_error(self):
        async with _client(lambda request: httpx.Response(200, text="<html>oops</html>")) as client:
            with pytest.raises(PayloadError):
                await client.get_time_series_daily("MSFT")

    @pytest.mark.asyncio
    async def test_wrong_shape_raises_payload_error(self):
        body = {"Time Series (Daily)": ["2024-03-15", "421.5"]}
        async with _client(lambda request: httpx.Response(200, json=body)) as client:
            with pytest.raises(PayloadError):
                await client.get_time_series_daily("MSFT")

    @pytest.mark.asyncio
    async def test_provider_error_message_raises_upstream_error(self):
        body = {"Error Message": "Invalid API call."}
        async with _client(lambda request: httpx.Response(200, json=body)) as client:
            with pytest.raises(UpstreamError) as exc_info:
                await client.get_time_series_daily("NOPE")

        assert "Invalid API call." in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_rate_limit_note_raises_upstream_error(self):
        body = {"Note": "Thank you for using Alpha Vantage! Our standard API call frequency is 5 calls per minute."}
        async with _client(lambda request: httpx.Response(200, json=body)) as client:
            with pytest.raises(UpstreamError):
                await client.get_time_series_daily("MSFT")

    @pytest.mark.asyncio
    async def test_api_key_not_logged(self, caplog):
        with caplog.at_level("DEBUG"):
            async with _client(lambda request: httpx.Response(200, json=SERIES)) as client:
                await client.get_time_series_daily("MSFT")

        assert "secret-key" not in caplog.text


class TestApiKeyRedactingFilter:
    def test_masks_apikey_in_formatted_message(self):
        record = logging.LogRecord(
            "httpx", logging.INFO, __file__, 1,
            'HTTP Request: %s %s "%s %d %s"',
            ("GET", "https://alpha.test/query?apikey=secret-key&function=TIME_SERIES_DAILY&symbol=MSFT", "HTTP/1.1", 200, "OK"),
            None,
        )

        assert ApiKeyRedactingFilter().filter(record) is True

        message = record.getMessage()
        assert "secret-key" not in message
        assert "apikey=***&function=TIME_SERIES_DAILY" in message

    def test_leaves_other_messages_alone(self):
        record = logging.LogRecord("httpx", logging.INFO, __file__, 1, "closing %s", ("pool",), None)

        ApiKeyRedactingFilter().filter(record)

        assert record.getMessage() == "closing pool"

    def test_installed_on_httpx_logger(self):
        filters = logging.getLogger("httpx").filters
        assert any(isinstance(f, ApiKeyRedactingFilter) for f in filters)


class TestClose:
    @pytest.mark.asyncio
    async def test_close_is_idempotent(self):
        client = _client(lambda request: httpx.Response(200, json=SERIES))
        await client.get_time_series_daily("MSFT")

        await client.close()
        await client.close()

        assert client._client is None
