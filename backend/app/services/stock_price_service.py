"""Service for computing average closing prices over a lookback window."""

import logging
import math
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from typing import Optional

import httpx

from app.config import StockConfig
from app.models.stock import StockData
from app.services.alpha_vantage_client import AlphaVantageClient
from app.services.errors import PriceParseError

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"


def filter_window(
    n_days: int,
    series: Mapping[str, Optional[str]],
    now: Optional[datetime] = None,
) -> dict[str, float]:
    """
    Keep the entries dated within the last n_days and parse their prices.

    An entry is kept when its date is not before ``now - n_days``. Dates that
    do not parse are skipped; a kept entry whose price does not parse fails
    the whole call.

    Args:
        n_days: Lookback window in days, non-negative
        series: Mapping of YYYY-MM-DD -> closing price string
        now: Reference instant; defaults to the current local time. An aware
            value compares against dates taken as UTC midnight.

    Returns:
        Mapping of date -> closing price for the kept entries

    Raises:
        PriceParseError: if a kept entry's price is not a finite number
    """
    if n_days < 0:
        raise ValueError(f"n_days must not be negative, got {n_days}")

    if now is None:
        now = datetime.now()
    try:
        cutoff = now - timedelta(days=n_days)
    except OverflowError:
        # window reaches past year 1: every date is inside it
        cutoff = datetime.min.replace(tzinfo=now.tzinfo)

    days: dict[str, float] = {}
    for date, close in series.items():
        try:
            stock_date = datetime.strptime(date, DATE_FORMAT)
        except (TypeError, ValueError):
            logger.debug(f"Skipping entry with unparsable date {date!r}")
            continue

        # strptime also accepts unpadded fields such as 2024-3-5
        if stock_date.strftime(DATE_FORMAT) != date:
            logger.debug(f"Skipping entry with non-canonical date {date!r}")
            continue

        if now.tzinfo is not None:
            stock_date = stock_date.replace(tzinfo=timezone.utc)

        if stock_date < cutoff:
            continue

        try:
            price = float(close)
        except (TypeError, ValueError) as e:
            raise PriceParseError(date, close) from e
        if not math.isfinite(price):
            raise PriceParseError(date, close)
        days[date] = price

    return days


def average_closing_price(days: Mapping[str, float]) -> float:
    """Arithmetic mean of the closing prices, 0.0 when there are none."""
    if not days:
        return 0.0
    return sum(days.values()) / len(days)


class StockPriceService:
    """Fetches daily closes and averages them over the configured window."""

    @staticmethod
    async def get_stock_data(
        config: StockConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        now: Optional[datetime] = None,
    ) -> StockData:
        """
        Get the closing prices for the last config.n_days days and their average.

        Example:
            >>> await StockPriceService.get_stock_data(config)
            StockData(days={'2024-03-15': 421.9, ...}, average=418.2)
        """
        async with AlphaVantageClient(
            config.url, config.api_key, timeout=config.timeout, transport=transport
        ) as client:
            payload = await client.get_time_series_daily(config.symbol)

        returned_symbol = payload.meta_data.symbol if payload.meta_data else None
        if returned_symbol and returned_symbol.upper() != config.symbol.upper():
            logger.warning(f"Requested {config.symbol} but upstream returned {returned_symbol}")

        prices = {date: point.close for date, point in payload.time_series.items()}
        days = filter_window(config.n_days, prices, now=now)
        average = average_closing_price(days)

        logger.info(f"{config.symbol}: {len(days)} closes in the last {config.n_days} days, average {average:.4f}")
        return StockData(days=days, average=average)
