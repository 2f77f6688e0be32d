"""Server-authoritative promo code validation."""

import logging

from smartline.core.exceptions import (
    AuthorizationError,
    PromoRejectedError,
    SmartlineError,
    ValidationError,
)
from smartline.metrics import record_promo_validation

from .models import Promo, normalize_promo_code

logger = logging.getLogger(__name__)


class PromoEvaluator:
    """Validates promo codes against the Pricing Provider.

    Every failure (unknown code, expired code, network error) is reported as
    a rejection; no discount is ever approximated locally. Promos staged in
    local storage are re-validated before they are reapplied.
    """

    def __init__(self, provider):
        self._provider = provider

    async def validate(self, code: str) -> Promo:
        normalized = normalize_promo_code(code or "")
        if not normalized:
            raise ValidationError("Please enter a promo code")

        try:
            promo = await self._provider.validate_promo(normalized)
        except AuthorizationError:
            record_promo_validation("unauthorized")
            raise
        except PromoRejectedError as e:
            record_promo_validation("rejected")
            logger.info(f"Promo {normalized} rejected: {e}")
            raise
        except SmartlineError as e:
            record_promo_validation("error")
            logger.warning(f"Promo {normalized} could not be verified: {e}")
            raise PromoRejectedError(
                "Failed to verify promo code.", {"code": normalized, "cause": str(e)}
            ) from e

        reason = promo.rejection_reason()
        if reason is not None:
            record_promo_validation("rejected")
            raise PromoRejectedError(reason, {"code": normalized})

        record_promo_validation("accepted")
        return promo

    async def revalidate(self, staged: Promo) -> Promo:
        """Re-check a promo taken from local storage before reusing it."""
        return await self.validate(staged.code)

    async def available_promos(self) -> list[Promo]:
        """Promos for the picker. A failure here only hides the list."""
        try:
            promos = await self._provider.list_available_promos()
        except SmartlineError as e:
            logger.info(f"Failed to load available promos: {e}")
            return []
        return [p for p in promos if p.is_usable()]
