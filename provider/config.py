import os
from dataclasses import dataclass
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


@dataclass
class ProviderConfig:
    api_key: str = ""
    base_url: str = "https://api.stripe.com"
    api_prefix: str = "/v1"
    api_version: Optional[str] = None
    timeout: float = 30.0

    @classmethod
    def from_env(cls) -> "ProviderConfig":
        # An empty key is accepted here; the provider rejects it on first use.
        return cls(
            api_key=os.getenv("STRIPE_KEY", ""),
            base_url=os.getenv("STRIPE_API_BASE", "https://api.stripe.com"),
            api_version=os.getenv("STRIPE_API_VERSION") or None,
            timeout=float(os.getenv("STRIPE_TIMEOUT", "30.0")),
        )

    @property
    def customers_url(self) -> str:
        return f"{self.api_prefix}/customers"

    @property
    def subscriptions_url(self) -> str:
        return f"{self.api_prefix}/subscriptions"

    @property
    def products_url(self) -> str:
        return f"{self.api_prefix}/products"

    @property
    def prices_url(self) -> str:
        return f"{self.api_prefix}/prices"
