from .api_client import (
    StripeAPIClient,
    ProviderCustomer,
    ProviderSubscription,
    ProviderProduct,
    ProviderPrice,
)
from .config import ProviderConfig

__all__ = [
    "StripeAPIClient",
    "ProviderCustomer",
    "ProviderSubscription",
    "ProviderProduct",
    "ProviderPrice",
    "ProviderConfig",
]
