"""Request and response schemas for the HTTP API."""

from pydantic import BaseModel, Field

from smartline.pricing.models import Promo, TierQuote
from smartline.trip import Location


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    alert_connections: int


class FareQuoteRequest(BaseModel):
    """Route figures are optional.

    When they are missing and both pickup and destination are given, the
    route is resolved first; otherwise the placeholder route is priced.
    """

    distance_km: float | None = Field(default=None, ge=0)
    duration_min: float | None = Field(default=None, ge=0)
    pickup: Location | None = None
    destination: Location | None = None
    promo_code: str | None = None


class FareQuoteResponse(BaseModel):
    quotes: list[TierQuote]
    promo: Promo | None = None
    pricing_fallback: bool = Field(
        default=False,
        description="True when tier configs could not be loaded and defaults were used",
    )
    route_error: str | None = Field(
        default=None,
        description="Set when the route could not be resolved and quotes are estimates",
    )
