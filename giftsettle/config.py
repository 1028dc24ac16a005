"""Runtime settings loaded from environment variables."""

from decimal import Decimal
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuration for the settlement client and its fee schedule.

    The donation fee is platform policy, so it lives here rather than as a
    literal in the calculator. ``giftsettle.fees.policy_from_settings`` turns
    these two numbers into the fee policy the calculator uses by default.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    api_base_url: str = Field(
        default="http://localhost:3000/api",
        alias="GIFTSETTLE_API_BASE_URL",
    )
    app_origin: str = Field(
        default="http://localhost:3000",
        alias="GIFTSETTLE_APP_ORIGIN",
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        alias="GIFTSETTLE_REQUEST_TIMEOUT",
        gt=0,
    )
    donation_fee_percent: Decimal = Field(
        default=Decimal("0.029"),
        alias="GIFTSETTLE_DONATION_FEE_PERCENT",
        ge=0,
        lt=1,
    )
    donation_fee_flat: Decimal = Field(
        default=Decimal("0.30"),
        alias="GIFTSETTLE_DONATION_FEE_FLAT",
        ge=0,
    )
    min_gift_card_amount: Decimal = Field(
        default=Decimal("1.00"),
        alias="GIFTSETTLE_MIN_GIFT_CARD_AMOUNT",
        ge=0,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance for the current process."""
    return Settings()
