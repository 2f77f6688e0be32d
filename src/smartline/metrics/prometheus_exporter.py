"""Prometheus metrics for the trip engine.

Counters live on a dedicated registry so the default process collectors
stay out of the exported payload.
"""

from prometheus_client import CollectorRegistry, Counter, generate_latest

REGISTRY = CollectorRegistry()

route_fetch_attempts = Counter(
    "smartline_route_fetch_attempts_total",
    "Directions fetch attempts by outcome",
    ["outcome"],
    registry=REGISTRY,
)

promo_validations = Counter(
    "smartline_promo_validations_total",
    "Promo code validations by outcome",
    ["outcome"],
    registry=REGISTRY,
)

sos_alerts_rendered = Counter(
    "smartline_sos_alerts_rendered_total",
    "SOS alerts presented to a subscriber",
    ["presentation"],
    registry=REGISTRY,
)

sos_alerts_duplicates = Counter(
    "smartline_sos_alerts_duplicates_total",
    "SOS alert deliveries suppressed because the alert was already rendered",
    registry=REGISTRY,
)


def record_route_attempt(outcome: str) -> None:
    route_fetch_attempts.labels(outcome=outcome).inc()


def record_promo_validation(outcome: str) -> None:
    promo_validations.labels(outcome=outcome).inc()


def record_alert_rendered(presentation: str) -> None:
    sos_alerts_rendered.labels(presentation=presentation).inc()


def record_alert_duplicate() -> None:
    sos_alerts_duplicates.inc()


def generate_metrics() -> bytes:
    return generate_latest(REGISTRY)
