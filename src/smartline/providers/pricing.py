"""Pricing Provider: tier rate tables and promo code definitions."""

import logging
from typing import Protocol

from pydantic import ValidationError as PydanticValidationError

from smartline.core.exceptions import (
    BusinessRuleError,
    NotFoundError,
    PromoRejectedError,
    ServiceUnavailableError,
)
from smartline.pricing.models import Promo, TierConfig

from .http import BackendClient

logger = logging.getLogger(__name__)


class PricingProvider(Protocol):
    async def fetch_tier_configs(self) -> list[TierConfig]: ...

    async def validate_promo(self, code: str) -> Promo: ...

    async def list_available_promos(self) -> list[Promo]: ...


class HttpPricingProvider:
    """Pricing backend over HTTP.

    GET /pricing/settings -> {"pricing": [...]}
    GET /pricing/promo?code=X -> {"promo": {...}} or 400/404 with {"error": ...}
    GET /pricing/available -> {"promos": [...]}
    """

    def __init__(self, client: BackendClient):
        self._client = client

    async def fetch_tier_configs(self) -> list[TierConfig]:
        data = await self._client.get("/pricing/settings", auth=False)
        configs = []
        for record in data.get("pricing") or []:
            try:
                configs.append(TierConfig.from_record(record))
            except (KeyError, PydanticValidationError) as e:
                logger.warning(f"Skipping malformed pricing row {record!r}: {e}")
        return configs

    async def validate_promo(self, code: str) -> Promo:
        try:
            data = await self._client.get("/pricing/promo", auth=False, params={"code": code})
        except (NotFoundError, BusinessRuleError) as e:
            raise PromoRejectedError(e.message, {"code": code, **e.details}) from e

        record = data.get("promo")
        if not record:
            raise PromoRejectedError("Promo code not found", {"code": code})
        try:
            return Promo.from_record(record)
        except (KeyError, PydanticValidationError) as e:
            raise ServiceUnavailableError(f"Malformed promo response: {e}") from e

    async def list_available_promos(self) -> list[Promo]:
        data = await self._client.get("/pricing/available", auth=False)
        promos = []
        for record in data.get("promos") or []:
            try:
                promos.append(Promo.from_record(record))
            except (KeyError, PydanticValidationError) as e:
                logger.warning(f"Skipping malformed promo row: {e}")
        return promos
