"""User settings, exchange rate and display option schemas."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from app.schemas.common import UtcDatetime


class SettingsResponse(BaseModel):
    """A user's display and reporting preferences."""

    user_id: str
    theme: str
    font_family: str
    base_currency: str
    privacy_mode: bool
    date_format: str
    number_format: str
    timezone: str
    created_at: UtcDatetime | None = None
    updated_at: UtcDatetime | None = None


class SettingsUpdateRequest(BaseModel):
    """Partial settings update; unknown keys are ignored."""

    theme: Literal["light", "dark", "auto"] | None = None
    font_family: str | None = Field(default=None, min_length=1, max_length=100)
    base_currency: str | None = Field(default=None, min_length=3, max_length=3)
    privacy_mode: bool | None = None
    date_format: str | None = Field(default=None, max_length=20)
    number_format: str | None = Field(default=None, max_length=10)
    timezone: str | None = Field(default=None, max_length=50)

    @field_validator("base_currency")
    @classmethod
    def upper_currency(cls, v: str | None) -> str | None:
        return v.upper() if v else v


class ExchangeRateResponse(BaseModel):
    id: str
    base_currency: str
    target_currency: str
    rate: float
    source: str | None = None
    is_custom: bool = False
    last_updated: UtcDatetime | None = None


class ExchangeRateCreateRequest(BaseModel):
    """All fields optional so missing ones get the domain error message."""

    base_currency: str | None = Field(default=None, min_length=3, max_length=3)
    target_currency: str | None = Field(default=None, min_length=3, max_length=3)
    rate: float | None = Field(default=None, gt=0)
    source: str = Field(default="MANUAL", max_length=50)

    @field_validator("base_currency", "target_currency")
    @classmethod
    def upper(cls, v: str | None) -> str | None:
        return v.upper() if v else v


class ExchangeRateUpdateRequest(BaseModel):
    rate: float | None = Field(default=None, gt=0)
    source: str | None = Field(default=None, max_length=50)


class CurrencyOption(BaseModel):
    code: str
    name: str
    symbol: str


class ThemeOption(BaseModel):
    id: str
    name: str
    description: str


class DateFormatOption(BaseModel):
    id: str
    name: str
    example: str


class NumberFormatOption(BaseModel):
    id: str
    name: str
    example: str
    description: str


# =============================================================================
# Option catalogues
# =============================================================================

CURRENCIES: list[dict[str, str]] = [
    {"code": "USD", "name": "US Dollar", "symbol": "$"},
    {"code": "EUR", "name": "Euro", "symbol": "€"},
    {"code": "GBP", "name": "British Pound", "symbol": "£"},
    {"code": "JPY", "name": "Japanese Yen", "symbol": "¥"},
    {"code": "CHF", "name": "Swiss Franc", "symbol": "CHF"},
    {"code": "CAD", "name": "Canadian Dollar", "symbol": "C$"},
    {"code": "AUD", "name": "Australian Dollar", "symbol": "A$"},
    {"code": "NZD", "name": "New Zealand Dollar", "symbol": "NZ$"},
    {"code": "CNY", "name": "Chinese Yuan", "symbol": "¥"},
    {"code": "HKD", "name": "Hong Kong Dollar", "symbol": "HK$"},
    {"code": "SGD", "name": "Singapore Dollar", "symbol": "S$"},
    {"code": "SEK", "name": "Swedish Krona", "symbol": "kr"},
    {"code": "NOK", "name": "Norwegian Krone", "symbol": "kr"},
    {"code": "DKK", "name": "Danish Krone", "symbol": "kr"},
    {"code": "PLN", "name": "Polish Złoty", "symbol": "zł"},
    {"code": "CZK", "name": "Czech Koruna", "symbol": "Kč"},
    {"code": "HUF", "name": "Hungarian Forint", "symbol": "Ft"},
    {"code": "TRY", "name": "Turkish Lira", "symbol": "₺"},
    {"code": "INR", "name": "Indian Rupee", "symbol": "₹"},
    {"code": "KRW", "name": "South Korean Won", "symbol": "₩"},
    {"code": "BRL", "name": "Brazilian Real", "symbol": "R$"},
    {"code": "MXN", "name": "Mexican Peso", "symbol": "$"},
    {"code": "ZAR", "name": "South African Rand", "symbol": "R"},
    {"code": "ILS", "name": "Israeli New Shekel", "symbol": "₪"},
    {"code": "AED", "name": "UAE Dirham", "symbol": "د.إ"},
    {"code": "THB", "name": "Thai Baht", "symbol": "฿"},
    {"code": "ARS", "name": "Argentine Peso", "symbol": "$"},
    {"code": "CLP", "name": "Chilean Peso", "symbol": "$"},
    {"code": "COP", "name": "Colombian Peso", "symbol": "$"},
    {"code": "PEN", "name": "Peruvian Sol", "symbol": "S/"},
    {"code": "PKR", "name": "Pakistani Rupee", "symbol": "₨"},
    {"code": "BDT", "name": "Bangladeshi Taka", "symbol": "৳"},
]

THEMES: list[dict[str, str]] = [
    {"id": "light", "name": "Light", "description": "Light theme with white background"},
    {"id": "dark", "name": "Dark", "description": "Dark theme with black background"},
    {"id": "auto", "name": "Auto", "description": "Follows system preference"},
]

DATE_FORMATS: list[dict[str, str]] = [
    {"id": "MM/DD/YYYY", "name": "MM/DD/YYYY", "example": "12/25/2023"},
    {"id": "DD/MM/YYYY", "name": "DD/MM/YYYY", "example": "25/12/2023"},
    {"id": "YYYY-MM-DD", "name": "YYYY-MM-DD", "example": "2023-12-25"},
    {"id": "DD-MM-YYYY", "name": "DD-MM-YYYY", "example": "25-12-2023"},
    {"id": "MM-DD-YYYY", "name": "MM-DD-YYYY", "example": "12-25-2023"},
]

NUMBER_FORMATS: list[dict[str, str]] = [
    {
        "id": "US",
        "name": "US Format",
        "example": "1,234.56",
        "description": "Comma as thousands separator, period as decimal",
    },
    {
        "id": "EU",
        "name": "European Format",
        "example": "1.234,56",
        "description": "Period as thousands separator, comma as decimal",
    },
    {
        "id": "IN",
        "name": "Indian Format",
        "example": "12,34,567.89",
        "description": "Indian numbering system",
    },
    {
        "id": "CH",
        "name": "Swiss Format",
        "example": "1'234.56",
        "description": "Apostrophe as thousands separator",
    },
]
