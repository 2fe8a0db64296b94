"""
DHL eCommerce Solutions API client.

Usage:
    async with DHLEcommerceClient(ClientOptions.create(client_id, client_secret)) as client:
        products = await client.find_products(request, apply_dim_weight=True)
"""
from dhl_ecommerce.core.config import ClientOptions, Credentials, Settings, get_settings
from dhl_ecommerce.core.exceptions import (
    AuthenticationError,
    DHLEcommerceError,
    HttpStatusError,
    TransportError,
)
from dhl_ecommerce.core.token_cache import CachedToken, TokenCache
from dhl_ecommerce.services.dhl_client import DHLEcommerceClient, LabelOptions
from dhl_ecommerce.services.dimensional_weight import (
    DimensionUnit,
    WeightUnit,
    apply_dimensional_weight,
    calculate_dimensional_weight,
)

__version__ = "1.0.0"

__all__ = [
    "AuthenticationError",
    "CachedToken",
    "ClientOptions",
    "Credentials",
    "DHLEcommerceClient",
    "DHLEcommerceError",
    "DimensionUnit",
    "HttpStatusError",
    "LabelOptions",
    "Settings",
    "TokenCache",
    "TransportError",
    "WeightUnit",
    "apply_dimensional_weight",
    "calculate_dimensional_weight",
    "get_settings",
]
