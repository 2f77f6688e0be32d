"""Prometheus metrics module."""

from .prometheus_exporter import (
    REGISTRY,
    generate_metrics,
    record_alert_duplicate,
    record_alert_rendered,
    record_promo_validation,
    record_route_attempt,
)

__all__ = [
    "REGISTRY",
    "generate_metrics",
    "record_alert_duplicate",
    "record_alert_rendered",
    "record_promo_validation",
    "record_route_attempt",
]
