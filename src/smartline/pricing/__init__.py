"""Fare and promo engine."""

from .fare import FareCalculator, compute_fare, round_currency, selectable_tiers
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
from .promo import PromoEvaluator

__all__ = [
    "FareCalculator",
    "compute_fare",
    "round_currency",
    "selectable_tiers",
    "BUILTIN_TIERS",
    "DEFAULT_TIER_CONFIG",
    "PLACEHOLDER_DISTANCE_KM",
    "PLACEHOLDER_DURATION_MIN",
    "FareQuote",
    "Promo",
    "TierConfig",
    "TierDefinition",
    "TierQuote",
    "PromoEvaluator",
]
