"""Error types raised while serving stock data.

Each error carries the HTTP status it maps to; the application registers a
single handler that renders them as ``{"error": "<message>"}``.
"""


class StockServiceError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(StockServiceError):
    """A required setting is missing or malformed."""

    status_code = 400


class UpstreamError(StockServiceError):
    """The upstream provider could not be reached or answered with an error."""


class PayloadError(StockServiceError):
    """The upstream payload could not be decoded."""


class PriceParseError(StockServiceError):
    """A closing price inside the lookback window is not numeric."""

    def __init__(self, date: str, value: object):
        super().__init__(
            f"invalid value for 'Time Series (Daily).4. close' on {date}: {value!r}"
        )
        self.date = date
        self.value = value
