"""Adapters for the external pricing and dispatch backends."""

from .dispatch import DispatchBackend, HttpDispatchClient, UserRole
from .http import BackendClient
from .pricing import HttpPricingProvider, PricingProvider

__all__ = [
    "BackendClient",
    "DispatchBackend",
    "HttpDispatchClient",
    "UserRole",
    "HttpPricingProvider",
    "PricingProvider",
]
