"""API endpoint for average closing prices."""

from typing import Optional

import httpx
from fastapi import APIRouter, Depends, Query

from app.api.deps import get_upstream_transport
from app.config import MAX_LOOKBACK_DAYS, Settings, get_settings
from app.models.stock import ErrorResponse, StockData
from app.services.stock_price_service import StockPriceService

router = APIRouter()


@router.get(
    "/stock",
    response_model=StockData,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def get_stock_data(
    symbol: Optional[str] = Query(None, description="Stock symbol, defaults to SYMBOL"),
    n_days: Optional[int] = Query(
        None, alias="nDays", ge=0, le=MAX_LOOKBACK_DAYS, description="Number of days, defaults to NDAYS"
    ),
    settings: Settings = Depends(get_settings),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_upstream_transport),
) -> StockData:
    """
    Get the last nDays days of closing prices along with their average.

    Example:
        GET /stock?symbol=MSFT&nDays=7
    """
    config = settings.resolve_stock_config(symbol=symbol, n_days=n_days)
    return await StockPriceService.get_stock_data(config, transport=transport)
