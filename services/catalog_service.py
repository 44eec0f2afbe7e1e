import logging
from typing import Optional, Tuple

from provider.api_client import StripeAPIClient, ProviderProduct, ProviderPrice

logger = logging.getLogger(__name__)


class CatalogService:
    DEFAULT_PRODUCT_NAME = "Starter Subscription"
    DEFAULT_DESCRIPTION = "$12/Month subscription"
    DEFAULT_UNIT_AMOUNT = 1200

    def __init__(self, provider: StripeAPIClient):
        self.provider = provider

    def create_recurring_price(
        self,
        name: str = DEFAULT_PRODUCT_NAME,
        description: Optional[str] = DEFAULT_DESCRIPTION,
        unit_amount: int = DEFAULT_UNIT_AMOUNT,
        currency: str = "usd",
        interval: str = "month"
    ) -> Tuple[ProviderProduct, ProviderPrice]:
        if unit_amount < 0:
            raise ValueError("unit_amount must not be negative")

        product = self.provider.create_product(name, description)
        price = self.provider.create_price(
            product.id,
            unit_amount,
            currency=currency.lower(),
            interval=interval
        )

        logger.info(f"Catalog ready: product {product.id}, price {price.id}")
        return product, price
