"""Pricing data: tier rate tables, promo codes and computed quotes."""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Indicative route used until the real route resolves
PLACEHOLDER_DISTANCE_KM = 5.0
PLACEHOLDER_DURATION_MIN = 10.0


class TierConfig(BaseModel):
    """Rate table for one service tier, as served by the pricing backend."""

    model_config = ConfigDict(frozen=True)

    tier_id: str
    base_fare: float = Field(ge=0)
    per_km_rate: float = Field(ge=0)
    per_min_rate: float = Field(ge=0)
    minimum_trip_price: float = Field(ge=0)

    @classmethod
    def from_record(cls, record: dict) -> "TierConfig":
        return cls(
            tier_id=record["service_tier"],
            base_fare=record["base_fare"],
            per_km_rate=record["per_km_rate"],
            per_min_rate=record["per_min_rate"],
            minimum_trip_price=record["minimum_trip_price"],
        )


DEFAULT_TIER_CONFIG = TierConfig(
    tier_id="default",
    base_fare=10.0,
    per_km_rate=3.0,
    per_min_rate=0.5,
    minimum_trip_price=15.0,
)


class TierDefinition(BaseModel):
    """A selectable ride category shown to the rider."""

    model_config = ConfigDict(frozen=True)

    tier_id: str
    name: str
    eta_multiplier: float = Field(default=1.0, gt=0)
    tagline: str | None = None


BUILTIN_TIERS: tuple[TierDefinition, ...] = (
    TierDefinition(tier_id="saver", name="Saver", eta_multiplier=1.2, tagline="Best Value"),
    TierDefinition(tier_id="comfort", name="Comfort", eta_multiplier=1.0, tagline="Recommended"),
    TierDefinition(tier_id="vip", name="VIP", eta_multiplier=1.0),
    TierDefinition(tier_id="scooter", name="Scooter", eta_multiplier=0.8, tagline="Fastest"),
    TierDefinition(tier_id="taxi", name="Taxi", eta_multiplier=1.1),
)


class Promo(BaseModel):
    """A validated discount code."""

    model_config = ConfigDict(frozen=True)

    code: str
    discount_percent: float = Field(ge=0, le=100)
    max_discount: float | None = Field(default=None, ge=0)
    is_active: bool = True
    valid_until: datetime | None = None
    max_uses: int | None = None
    current_uses: int = 0

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        code = normalize_promo_code(v)
        if not code:
            raise ValueError("Promo code must not be empty")
        return code

    @field_validator("valid_until")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v

    @classmethod
    def from_record(cls, record: dict) -> "Promo":
        return cls(
            code=record["code"],
            discount_percent=record["discount_percent"],
            max_discount=record.get("discount_max") or None,
            is_active=record.get("is_active", True),
            valid_until=record.get("valid_until"),
            max_uses=record.get("max_uses"),
            current_uses=record.get("current_uses") or 0,
        )

    def rejection_reason(self, now: datetime | None = None) -> str | None:
        """Why the server would refuse this promo, or None if it is usable."""
        now = now or datetime.now(UTC)
        if not self.is_active:
            return "Promo code is inactive"
        if self.valid_until is not None and self.valid_until < now:
            return "Promo code expired"
        if self.max_uses and self.current_uses >= self.max_uses:
            return "Promo code usage limit reached"
        return None

    def is_usable(self, now: datetime | None = None) -> bool:
        return self.rejection_reason(now) is None

    def label(self) -> str:
        pct = f"{self.discount_percent:g}"
        text = f"{pct}% OFF"
        if self.max_discount:
            text += f" (Max {self.max_discount:g})"
        return text


def normalize_promo_code(code: str) -> str:
    return code.strip().upper()


class FareQuote(BaseModel):
    """Output of the fare engine. old_price is set only when a promo applied."""

    model_config = ConfigDict(frozen=True)

    price: float
    old_price: float | None = None


class TierQuote(BaseModel):
    """A priced tier as shown in the ride selection list."""

    tier_id: str
    name: str
    price: float
    old_price: float | None = None
    eta_min: int
    label: str | None = None
    is_estimate: bool = False
