"""Trip setup flow: pricing, route, promo and trip creation for one ride request."""

import asyncio
import logging
from enum import Enum

from pydantic import BaseModel, Field

from smartline.core.exceptions import (
    AuthorizationError,
    PromoRejectedError,
    RouteUnavailableError,
    SmartlineError,
    ValidationError,
    user_message,
)
from smartline.core.scope import Discarded, FlowScope
from smartline.geo.directions_client import RouteResponse
from smartline.geo.routing import RouteResolver
from smartline.pricing.fare import FareCalculator
from smartline.pricing.models import Promo, TierConfig, TierQuote
from smartline.pricing.promo import PromoEvaluator
from smartline.providers.dispatch import DispatchBackend
from smartline.providers.pricing import PricingProvider
from smartline.ride_logging import log_trip_context
from smartline.trip import Location, PaymentMethod, Trip, TripRequest

from .session_store import SessionStore
from .state_machine import TripStateMachine

logger = logging.getLogger(__name__)


class RouteStatus(str, Enum):
    PENDING = "pending"
    RESOLVED = "resolved"
    FAILED = "failed"


class TripSetupState(BaseModel):
    pickup: Location
    destination: Location
    tier_configs: list[TierConfig] = Field(default_factory=list)
    route: RouteResponse | None = None
    route_status: RouteStatus = RouteStatus.PENDING
    route_error: str | None = None
    applied_promo: Promo | None = None
    promo_error: str | None = None
    quotes: list[TierQuote] = Field(default_factory=list)
    selected_tier: str | None = None
    request_error: str | None = None
    trip: Trip | None = None

    def quote(self, tier_id: str | None) -> TierQuote | None:
        for quote in self.quotes:
            if quote.tier_id == tier_id:
                return quote
        return None


class TripSetupFlow:
    """Drives the ride options screen for one pickup/destination pair.

    Prices are shown immediately from the placeholder route and replaced as
    soon as the real route resolves. Results that arrive after close() or
    after a newer request of the same kind are dropped.
    """

    def __init__(
        self,
        pickup: Location,
        destination: Location,
        *,
        pricing: PricingProvider,
        routes: RouteResolver,
        promos: PromoEvaluator,
        dispatch: DispatchBackend,
        session_store: SessionStore,
        machine: TripStateMachine,
        calculator: FareCalculator | None = None,
    ):
        self.state = TripSetupState(pickup=pickup, destination=destination)
        self._pricing = pricing
        self._routes = routes
        self._promos = promos
        self._dispatch = dispatch
        self._session_store = session_store
        self._machine = machine
        self._calculator = calculator or FareCalculator()
        self._scope = FlowScope("trip-setup")
        self._recompute()

    @property
    def is_open(self) -> bool:
        return self._scope.is_open

    def close(self) -> None:
        """The user left the screen; in-flight results will be discarded."""
        self._scope.close()

    async def start(self) -> None:
        await asyncio.gather(
            self.load_pricing(),
            self.resolve_route(),
            self.restore_staged_promo(),
        )

    def _recompute(self) -> None:
        route = self.state.route if self.state.route_status == RouteStatus.RESOLVED else None
        self.state.quotes = self._calculator.quote_tiers(
            self.state.tier_configs,
            distance_km=route.distance_km if route else None,
            duration_min=route.duration_min if route else None,
            promo=self.state.applied_promo,
        )
        if self.state.selected_tier is None or self.state.quote(self.state.selected_tier) is None:
            self.state.selected_tier = self.state.quotes[0].tier_id if self.state.quotes else None

    async def load_pricing(self) -> None:
        try:
            result = await self._scope.run("pricing", self._pricing.fetch_tier_configs())
        except SmartlineError as e:
            # Fallback mode: every tier priced with the built-in default.
            logger.error(f"Error fetching pricing: {e}")
            return
        if isinstance(result, Discarded):
            return
        self.state.tier_configs = result
        self._recompute()

    async def resolve_route(self) -> None:
        self.state.route_status = RouteStatus.PENDING
        self.state.route_error = None
        try:
            result = await self._scope.run(
                "route", self._routes.resolve(self.state.pickup, self.state.destination)
            )
        except AuthorizationError as e:
            self.state.route_status = RouteStatus.FAILED
            self.state.route_error = user_message(e)
            self._machine.sign_in()
            return
        except RouteUnavailableError as e:
            logger.error(f"Route error: {e}")
            self.state.route_status = RouteStatus.FAILED
            self.state.route_error = e.message
            return
        except SmartlineError as e:
            logger.error(f"Route error: {e}")
            self.state.route_status = RouteStatus.FAILED
            self.state.route_error = user_message(e)
            return
        if isinstance(result, Discarded):
            return
        self.state.route = result
        self.state.route_status = RouteStatus.RESOLVED
        self._recompute()

    async def apply_promo(self, code: str) -> bool:
        """Validate and apply a promo. On any failure the previous pricing stays."""
        self.state.promo_error = None
        try:
            result = await self._scope.run("promo", self._promos.validate(code))
        except ValidationError as e:
            self.state.promo_error = e.message
            return False
        except AuthorizationError as e:
            self.state.promo_error = user_message(e)
            self._machine.sign_in()
            return False
        except PromoRejectedError as e:
            self.state.promo_error = e.message
            return False
        if isinstance(result, Discarded):
            return False
        self.state.applied_promo = result
        self._recompute()
        logger.info(f"Promo {result.code} applied ({result.discount_percent:g}% off)")
        return True

    def remove_promo(self) -> None:
        self.state.applied_promo = None
        self.state.promo_error = None
        self._recompute()

    async def restore_staged_promo(self) -> None:
        """Reapply a promo picked on another screen, after re-validating it."""
        staged = self._session_store.read_pending_promo()
        if staged is None:
            return
        try:
            result = await self._scope.run("promo", self._promos.revalidate(staged))
        except PromoRejectedError as e:
            logger.info(f"Staged promo {staged.code} no longer valid: {e}")
            self.state.promo_error = e.message
            self._session_store.consume_pending_promo()
            return
        except AuthorizationError as e:
            self.state.promo_error = user_message(e)
            self._machine.sign_in()
            return
        if isinstance(result, Discarded):
            return
        self.state.applied_promo = result
        self._recompute()

    def select_tier(self, tier_id: str) -> None:
        if self.state.quote(tier_id) is None:
            raise ValidationError(f"Ride option {tier_id} is not available")
        self.state.selected_tier = tier_id

    def _build_request(self, payment_method: PaymentMethod) -> TripRequest:
        if self.state.route_status != RouteStatus.RESOLVED or self.state.route is None:
            raise ValidationError("Route not calculated yet.")
        session = self._session_store.get_session()
        if session is None:
            raise AuthorizationError("Please log in again.")
        quote = self.state.quote(self.state.selected_tier)
        if quote is None:
            raise ValidationError("Please select a ride option")

        return TripRequest(
            customer_id=session.user_id,
            pickup=self.state.pickup,
            destination=self.state.destination,
            price=quote.price,
            distance_km=self.state.route.distance_km,
            duration_min=self.state.route.duration_min,
            tier_id=quote.tier_id,
            payment_method=payment_method,
            promo_code=self.state.applied_promo.code if self.state.applied_promo else None,
        )

    async def request_trip(self, payment_method: PaymentMethod = PaymentMethod.CASH) -> Trip | None:
        """Create the trip and hand it to the state machine.

        Returns the created trip, or None with request_error set.
        """
        self.state.request_error = None
        try:
            request = self._build_request(payment_method)
            result = await self._scope.run("create", self._dispatch.create_trip(request))
        except AuthorizationError as e:
            self.state.request_error = user_message(e)
            self._machine.sign_in()
            return None
        except SmartlineError as e:
            logger.error(f"Request ride failed: {e}")
            self.state.request_error = user_message(e)
            return None

        # The promo is spent once the backend accepted the trip.
        self._session_store.consume_pending_promo()

        if isinstance(result, Discarded):
            # The trip exists server-side; recovery will pick it up.
            logger.warning("Trip created after the setup screen was closed")
            return None

        self.state.trip = result
        with log_trip_context(result.id, customer_id=result.customer_id):
            logger.info(f"Trip {result.id} requested ({request.tier_id}, {request.price:.2f})")
        self._machine.start_monitoring(result.id, result.status)
        self._machine.route(result)
        return result
