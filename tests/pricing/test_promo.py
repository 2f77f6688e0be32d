"""Tests for server-authoritative promo validation."""

from unittest.mock import AsyncMock

import pytest

from smartline.core.exceptions import (
    AuthorizationError,
    NetworkError,
    PromoRejectedError,
    ServiceUnavailableError,
    ValidationError,
)
from smartline.pricing import Promo, PromoEvaluator


@pytest.fixture
def provider() -> AsyncMock:
    provider = AsyncMock()
    provider.validate_promo.return_value = Promo(code="SAVE10", discount_percent=10, max_discount=5)
    return provider


@pytest.mark.unit
@pytest.mark.critical
class TestValidate:
    async def test_accepted_promo(self, provider):
        promo = await PromoEvaluator(provider).validate("SAVE10")

        assert promo.code == "SAVE10"
        provider.validate_promo.assert_awaited_once_with("SAVE10")

    async def test_code_is_trimmed_and_uppercased(self, provider):
        await PromoEvaluator(provider).validate("  save10 ")
        provider.validate_promo.assert_awaited_once_with("SAVE10")

    async def test_empty_code_is_validation_error(self, provider):
        with pytest.raises(ValidationError, match="Please enter a promo code"):
            await PromoEvaluator(provider).validate("   ")
        provider.validate_promo.assert_not_awaited()

    async def test_unknown_code_rejected(self, provider):
        provider.validate_promo.side_effect = PromoRejectedError("Invalid promo code")

        with pytest.raises(PromoRejectedError, match="Invalid promo code"):
            await PromoEvaluator(provider).validate("NOPE")

    @pytest.mark.parametrize(
        "error", [NetworkError("timed out"), ServiceUnavailableError("502")]
    )
    async def test_connectivity_failure_is_a_rejection(self, provider, error):
        provider.validate_promo.side_effect = error

        with pytest.raises(PromoRejectedError, match="Failed to verify promo code."):
            await PromoEvaluator(provider).validate("SAVE10")

    async def test_authorization_error_propagates(self, provider):
        provider.validate_promo.side_effect = AuthorizationError("expired")

        with pytest.raises(AuthorizationError):
            await PromoEvaluator(provider).validate("SAVE10")

    async def test_expired_promo_from_provider_rejected(self, provider, expired_promo):
        provider.validate_promo.return_value = expired_promo

        with pytest.raises(PromoRejectedError, match="expired"):
            await PromoEvaluator(provider).validate("OLD")

    async def test_revalidate_checks_with_server(self, provider):
        staged = Promo(code="SAVE10", discount_percent=50)

        promo = await PromoEvaluator(provider).revalidate(staged)

        # Server terms win over the staged copy
        assert promo.discount_percent == 10
        provider.validate_promo.assert_awaited_once_with("SAVE10")


@pytest.mark.unit
class TestAvailablePromos:
    async def test_filters_unusable(self, provider, expired_promo):
        usable = Promo(code="OK", discount_percent=5)
        provider.list_available_promos.return_value = [usable, expired_promo]

        assert await PromoEvaluator(provider).available_promos() == [usable]

    async def test_failure_yields_empty_list(self, provider):
        provider.list_available_promos.side_effect = NetworkError("down")

        assert await PromoEvaluator(provider).available_promos() == []
