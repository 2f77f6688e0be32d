import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from smartline.api.auth import verify_api_key
from smartline.api.dependencies import (
    get_fare_calculator,
    get_pricing_provider,
    get_promo_evaluator,
    get_route_resolver,
)
from smartline.api.models import FareQuoteRequest, FareQuoteResponse
from smartline.core.exceptions import (
    AuthorizationError,
    PromoRejectedError,
    RouteUnavailableError,
    SmartlineError,
    ValidationError,
    user_message,
)
from smartline.geo import RouteResolver
from smartline.pricing import FareCalculator, PromoEvaluator
from smartline.providers import PricingProvider

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(verify_api_key)])

ROUTE_FAILED_MESSAGE = "Failed to calculate route. Please try again."


@router.post("/quote", response_model=FareQuoteResponse)
async def quote_fares(
    body: FareQuoteRequest,
    pricing: Annotated[PricingProvider, Depends(get_pricing_provider)],
    promos: Annotated[PromoEvaluator, Depends(get_promo_evaluator)],
    calculator: Annotated[FareCalculator, Depends(get_fare_calculator)],
    routes: Annotated[RouteResolver, Depends(get_route_resolver)],
) -> FareQuoteResponse:
    """Price every selectable tier for a route, optionally with a promo code."""
    pricing_fallback = False
    try:
        configs = await pricing.fetch_tier_configs()
    except SmartlineError as e:
        logger.error(f"Error fetching pricing: {e}")
        configs = []
        pricing_fallback = True

    promo = None
    if body.promo_code is not None:
        try:
            promo = await promos.validate(body.promo_code)
        except AuthorizationError as e:
            raise HTTPException(status_code=401, detail=user_message(e)) from e
        except (ValidationError, PromoRejectedError) as e:
            raise HTTPException(status_code=422, detail=e.message) from e

    distance_km, duration_min = body.distance_km, body.duration_min
    route_error = None
    if (distance_km is None or duration_min is None) and body.pickup and body.destination:
        try:
            route = await routes.resolve(body.pickup, body.destination)
        except RouteUnavailableError as e:
            route_error = e.message
        except SmartlineError as e:
            logger.error(f"Route lookup failed: {e}")
            route_error = ROUTE_FAILED_MESSAGE
        else:
            distance_km, duration_min = route.distance_km, route.duration_min

    quotes = calculator.quote_tiers(
        configs,
        distance_km=distance_km,
        duration_min=duration_min,
        promo=promo,
    )
    return FareQuoteResponse(
        quotes=quotes,
        promo=promo,
        pricing_fallback=pricing_fallback,
        route_error=route_error,
    )
