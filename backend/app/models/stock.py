"""Pydantic models for the Alpha Vantage daily series and the /stock response."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MetaData(BaseModel):
    """Series metadata; only the symbol is used."""

    model_config = ConfigDict(populate_by_name=True)

    symbol: Optional[str] = Field(None, alias="2. Symbol")


class StockDataPoint(BaseModel):
    """A single trading day. The provider sends prices as strings."""

    model_config = ConfigDict(populate_by_name=True)

    close: Optional[str] = Field(None, alias="4. close")


class TimeSeriesDaily(BaseModel):
    """TIME_SERIES_DAILY payload."""

    model_config = ConfigDict(populate_by_name=True)

    meta_data: Optional[MetaData] = Field(None, alias="Meta Data")
    time_series: dict[str, StockDataPoint] = Field(default_factory=dict, alias="Time Series (Daily)")

    # Alpha Vantage reports failures with HTTP 200 and one of these keys
    error_message: Optional[str] = Field(None, alias="Error Message")
    note: Optional[str] = Field(None, alias="Note")
    information: Optional[str] = Field(None, alias="Information")

    @property
    def provider_message(self) -> Optional[str]:
        return self.error_message or self.note or self.information


class StockData(BaseModel):
    """Closing prices within the lookback window and their average."""

    days: dict[str, float]
    average: float


class ErrorResponse(BaseModel):
    """Error body returned for 4xx/5xx responses."""

    error: str
