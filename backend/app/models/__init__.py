"""Pydantic models for Stock Picker."""

from app.models.stock import (
    MetaData,
    StockDataPoint,
    TimeSeriesDaily,
    StockData,
    ErrorResponse,
)

__all__ = [
    "MetaData",
    "StockDataPoint",
    "TimeSeriesDaily",
    "StockData",
    "ErrorResponse",
]
