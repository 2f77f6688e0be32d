"""Deterministic fare computation shared by client estimates and server charges."""

import math
from collections.abc import Iterable, Sequence
from decimal import ROUND_HALF_UP, Decimal

from .models import (
    BUILTIN_TIERS,
    DEFAULT_TIER_CONFIG,
    PLACEHOLDER_DISTANCE_KM,
    PLACEHOLDER_DURATION_MIN,
    FareQuote,
    Promo,
    TierConfig,
    TierDefinition,
    TierQuote,
)

_CENT = Decimal("0.01")


def round_currency(value: float) -> float:
    """Round half-up to two decimals using the decimal value as written."""
    return float(Decimal(repr(value)).quantize(_CENT, rounding=ROUND_HALF_UP))


def compute_fare(
    distance_km: float | None,
    duration_min: float | None,
    tier_config: TierConfig | None = None,
    promo: Promo | None = None,
) -> FareQuote:
    """Price a trip for one tier.

    Missing distance or duration falls back to the placeholder route and a
    missing tier config falls back to the built-in default. Rounding happens
    only on the returned values.
    """
    if distance_km is None:
        distance_km = PLACEHOLDER_DISTANCE_KM
    if duration_min is None:
        duration_min = PLACEHOLDER_DURATION_MIN
    if distance_km < 0:
        raise ValueError("Distance must be non-negative")
    if duration_min < 0:
        raise ValueError("Duration must be non-negative")

    config = tier_config or DEFAULT_TIER_CONFIG

    raw = config.base_fare + distance_km * config.per_km_rate + duration_min * config.per_min_rate
    clamped = max(raw, config.minimum_trip_price)

    if promo is None:
        return FareQuote(price=round_currency(clamped))

    discount = clamped * (promo.discount_percent / 100)
    if promo.max_discount is not None:
        discount = min(discount, promo.max_discount)

    return FareQuote(
        price=round_currency(clamped - discount),
        old_price=round_currency(clamped),
    )


def selectable_tiers(
    definitions: Iterable[TierDefinition], configs: Sequence[TierConfig]
) -> list[tuple[TierDefinition, TierConfig | None]]:
    """Pair tier definitions with their configs.

    A tier without a config is hidden, except when no config exists at all:
    then every tier is offered and priced with the default config.
    """
    by_id = {c.tier_id: c for c in configs}
    pairs = []
    for definition in definitions:
        config = by_id.get(definition.tier_id)
        if config is None and configs:
            continue
        pairs.append((definition, config))
    return pairs


class FareCalculator:
    """Prices every selectable tier for a route."""

    def __init__(self, definitions: Sequence[TierDefinition] = BUILTIN_TIERS):
        self.definitions = tuple(definitions)

    def quote_tiers(
        self,
        configs: Sequence[TierConfig],
        distance_km: float | None = None,
        duration_min: float | None = None,
        promo: Promo | None = None,
    ) -> list[TierQuote]:
        is_estimate = distance_km is None or duration_min is None
        eta_base = duration_min if duration_min is not None else PLACEHOLDER_DURATION_MIN

        quotes = []
        for definition, config in selectable_tiers(self.definitions, configs):
            fare = compute_fare(distance_km, duration_min, config, promo)
            quotes.append(
                TierQuote(
                    tier_id=definition.tier_id,
                    name=definition.name,
                    price=fare.price,
                    old_price=fare.old_price,
                    eta_min=math.ceil(eta_base * definition.eta_multiplier),
                    label=promo.label() if promo else definition.tagline,
                    is_estimate=is_estimate,
                )
            )
        return quotes

    def quote_for(
        self,
        tier_id: str,
        configs: Sequence[TierConfig],
        distance_km: float | None = None,
        duration_min: float | None = None,
        promo: Promo | None = None,
    ) -> TierQuote | None:
        for quote in self.quote_tiers(configs, distance_km, duration_min, promo):
            if quote.tier_id == tier_id:
                return quote
        return None
