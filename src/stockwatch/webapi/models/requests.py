"""Request models for the Stock Watch API."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...config.settings import get_settings
from ...core import validators


class AddPositionRequest(BaseModel):
    """Body of POST /portfolio; field names follow the camelCase wire format."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    symbol: str = Field(..., description="Ticker symbol, uppercase (e.g. AAPL)")
    shares: float = Field(..., description="Number of shares, 0.0001 to 1,000,000")
    purchase_price: float = Field(
        ..., alias="purchasePrice", description="Price per share, $0.01 to $100,000"
    )
    stop_loss: Optional[float] = Field(
        None, alias="stopLoss", description="Stop-loss price, at least $0.01"
    )
    position_weight: Optional[float] = Field(
        None, alias="positionWeight", description="Target weight, 0% to 100%"
    )
    notes: Optional[str] = Field(None, max_length=1000)
    company_name: Optional[str] = Field(None, alias="companyName", max_length=200)
    sector: Optional[str] = Field(None, max_length=100)

    @field_validator("symbol")
    @classmethod
    def validate_symbol(cls, v):
        allow_digits = get_settings().symbol_allow_digits
        if not validators.validate_symbol(v, allow_digits=allow_digits):
            if allow_digits:
                raise ValueError(
                    "Symbol must be 1-10 characters of uppercase letters and numbers"
                )
            raise ValueError("Symbol must be 1-10 uppercase letters")
        return v

    @field_validator("shares")
    @classmethod
    def validate_shares(cls, v):
        if not validators.validate_shares(v):
            raise ValueError("Shares must be between 0.0001 and 1,000,000")
        return v

    @field_validator("purchase_price")
    @classmethod
    def validate_purchase_price(cls, v):
        if not validators.validate_price(v):
            raise ValueError("Purchase price must be between $0.01 and $100,000")
        return v

    @field_validator("stop_loss")
    @classmethod
    def validate_stop_loss(cls, v):
        if v is not None and not validators.validate_number(v, validators.MIN_PRICE):
            raise ValueError("Stop loss must be greater than $0.01")
        return v

    @field_validator("position_weight")
    @classmethod
    def validate_position_weight(cls, v):
        if v is not None and not validators.validate_number(v, 0, 100):
            raise ValueError("Position weight must be between 0% and 100%")
        return v

    @field_validator("notes", "company_name", "sector")
    @classmethod
    def sanitize_text(cls, v):
        if v is None:
            return None
        return validators.sanitize_string(v) or None
