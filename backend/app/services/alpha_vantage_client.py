"""Alpha Vantage API client."""

import logging
import re
from typing import Optional

import httpx
from pydantic import ValidationError

from app.models.stock import TimeSeriesDaily
from app.services.errors import PayloadError, UpstreamError

logger = logging.getLogger(__name__)

_APIKEY_RE = re.compile(r"(apikey=)[^&\s'\"]+")


class ApiKeyRedactingFilter(logging.Filter):
    """Masks the apikey query parameter in records, e.g. httpx's request log."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        if "apikey=" in message:
            record.msg = _APIKEY_RE.sub(r"\1***", message)
            record.args = ()
        return True


# httpx logs every request URL at INFO, query string included
logging.getLogger("httpx").addFilter(ApiKeyRedactingFilter())


class AlphaVantageClient:
    """Async client for the Alpha Vantage query API."""

    QUERY_PATH = "/query"
    TIME_SERIES_DAILY = "TIME_SERIES_DAILY"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={"Accept": "application/json"},
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "AlphaVantageClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def query_params(self, symbol: str) -> dict[str, str]:
        """Query string for a TIME_SERIES_DAILY lookup."""
        return {
            "apikey": self.api_key,
            "function": self.TIME_SERIES_DAILY,
            "symbol": symbol,
        }

    async def get_time_series_daily(self, symbol: str) -> TimeSeriesDaily:
        """
        Fetch the daily time series for a symbol.

        Raises:
            UpstreamError: on transport failure, a non-200 status or a
                provider-reported error
            PayloadError: if the body is not a valid TIME_SERIES_DAILY payload
        """
        url = f"{self.base_url}{self.QUERY_PATH}"
        client = await self._get_client()

        # apikey stays out of the log line
        logger.debug(f"Requesting {self.TIME_SERIES_DAILY} for {symbol} from {url}")
        try:
            response = await client.get(url, params=self.query_params(symbol))
        except httpx.HTTPError as e:
            logger.error(f"Failed to retrieve stock quote for {symbol}: {e}")
            raise UpstreamError("Failed to retrieve stock quote") from e

        if response.status_code != httpx.codes.OK:
            logger.error(f"Upstream returned {response.status_code} for {symbol}")
            raise UpstreamError(
                f"Wrong status code received. Expected: {httpx.codes.OK.value}, "
                f"Got: {response.status_code}"
            )

        try:
            payload = TimeSeriesDaily.model_validate(response.json())
        except ValueError as e:
            # json.JSONDecodeError and pydantic.ValidationError are both ValueErrors
            detail = e.errors()[0]["msg"] if isinstance(e, ValidationError) else str(e)
            logger.error(f"Failed to parse stock quote JSON for {symbol}: {detail}")
            raise PayloadError(f"Failed to parse stock quote JSON. Err: {detail}") from e

        if payload.provider_message:
            logger.error(f"Alpha Vantage rejected request for {symbol}: {payload.provider_message}")
            raise UpstreamError(f"Upstream provider error: {payload.provider_message}")

        return payload
