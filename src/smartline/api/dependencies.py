"""FastAPI dependency injection providers."""

from fastapi import Request

from smartline.geo import RouteResolver
from smartline.pricing import FareCalculator, PromoEvaluator
from smartline.providers import PricingProvider


def get_pricing_provider(request: Request) -> PricingProvider:
    return request.app.state.pricing_provider


def get_promo_evaluator(request: Request) -> PromoEvaluator:
    return request.app.state.promo_evaluator


def get_fare_calculator(request: Request) -> FareCalculator:
    return request.app.state.fare_calculator


def get_route_resolver(request: Request) -> RouteResolver:
    return request.app.state.route_resolver
