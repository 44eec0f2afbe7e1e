import logging
from typing import Optional, Dict, Any
from dataclasses import dataclass

import httpx

from services.errors import ProviderError
from .config import ProviderConfig

logger = logging.getLogger(__name__)

# Rejections that say nothing about the subscription itself.
_NON_STATE_ERRORS = (401, 403, 429)


@dataclass
class ProviderCustomer:
    id: str
    name: Optional[str] = None
    email: Optional[str] = None


@dataclass
class ProviderSubscription:
    id: str
    status: str
    current_period_end: Optional[int] = None
    price_id: Optional[str] = None
    customer_id: Optional[str] = None
    canceled_at: Optional[int] = None


@dataclass
class ProviderProduct:
    id: str
    name: str
    description: Optional[str] = None


@dataclass
class ProviderPrice:
    id: str
    product_id: str
    currency: str
    unit_amount: int
    interval: Optional[str] = None


class StripeAPIClient:
    """Synchronous client for the subset of the Stripe REST API the mirror uses.

    Every failure, transport or HTTP, is raised as ``ProviderError``. Nothing
    is retried.
    """

    def __init__(self, config: ProviderConfig = None, transport: httpx.BaseTransport = None):
        self.config = config or ProviderConfig.from_env()
        headers = {"Authorization": f"Bearer {self.config.api_key}"}
        if self.config.api_version:
            headers["Stripe-Version"] = self.config.api_version
        self._client = httpx.Client(
            base_url=self.config.base_url,
            headers=headers,
            timeout=httpx.Timeout(self.config.timeout),
            transport=transport,
        )

    def close(self):
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _request(
        self,
        method: str,
        url: str,
        step: str,
        data: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        try:
            response = self._client.request(method, url, data=data)
        except httpx.TimeoutException as e:
            logger.warning(f"Provider timeout during {step}: {url}")
            raise ProviderError(0, f"Request timeout: {e}", step=step) from e
        except httpx.HTTPError as e:
            logger.warning(f"Provider transport error during {step}: {e}")
            raise ProviderError(0, f"Transport error: {e}", step=step) from e

        if response.status_code >= 400:
            try:
                body = response.json() if response.content else {}
            except ValueError:
                body = {"error": {"message": response.text or "Unknown error"}}
            error_data = body.get("error") if isinstance(body, dict) else None
            if not isinstance(error_data, dict):
                error_data = {"message": str(error_data)} if error_data else {}
            message = error_data.get("message") or f"HTTP {response.status_code}"
            logger.error(f"Provider rejected {step} ({response.status_code}): {message}")
            raise ProviderError(
                response.status_code,
                message,
                code=error_data.get("code"),
                step=step,
                response=error_data,
            )

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Provider returned a non-JSON body for {step}")
            raise ProviderError(response.status_code, "Malformed provider response", step=step) from e
        if not isinstance(data, dict):
            raise ProviderError(response.status_code, "Unexpected provider response", step=step)
        return data

    @staticmethod
    def _parse_subscription(data: Dict[str, Any]) -> ProviderSubscription:
        items = (data.get("items") or {}).get("data") or []
        first_item = items[0] if items else {}
        price = first_item.get("price") or {}
        customer = data.get("customer")
        if isinstance(customer, dict):
            customer = customer.get("id")

        # Newer API versions report the billing period on the item, not the subscription.
        period_end = data.get("current_period_end") or first_item.get("current_period_end")

        return ProviderSubscription(
            id=data["id"],
            status=data.get("status", ""),
            current_period_end=period_end,
            price_id=price.get("id"),
            customer_id=customer,
            canceled_at=data.get("canceled_at"),
        )

    def create_customer(self, name: str, email: str) -> ProviderCustomer:
        data = self._request(
            "POST",
            self.config.customers_url,
            step="create_customer",
            data={"name": name, "email": email}
        )
        logger.info(f"Created provider customer {data['id']}")
        return ProviderCustomer(id=data["id"], name=data.get("name"), email=data.get("email"))

    def create_subscription(self, customer_id: str, price_id: str) -> ProviderSubscription:
        data = self._request(
            "POST",
            self.config.subscriptions_url,
            step="create_subscription",
            data={"customer": customer_id, "items[0][price]": price_id}
        )
        subscription = self._parse_subscription(data)
        logger.info(
            f"Created provider subscription {subscription.id} "
            f"for {customer_id} ({subscription.status})"
        )
        return subscription

    def retrieve_subscription(self, subscription_id: str) -> ProviderSubscription:
        data = self._request(
            "GET",
            f"{self.config.subscriptions_url}/{subscription_id}",
            step="retrieve_subscription"
        )
        return self._parse_subscription(data)

    def cancel_subscription(self, subscription_id: str) -> ProviderSubscription:
        try:
            data = self._request(
                "DELETE",
                f"{self.config.subscriptions_url}/{subscription_id}",
                step="cancel_subscription"
            )
        except ProviderError as error:
            if not 400 <= error.status_code < 500 or error.status_code in _NON_STATE_ERRORS:
                raise
            try:
                current = self.retrieve_subscription(subscription_id)
            except ProviderError:
                raise error
            if current.status != "canceled":
                raise
            logger.info(f"Provider subscription {subscription_id} was already canceled")
            return current

        subscription = self._parse_subscription(data)
        logger.info(f"Canceled provider subscription {subscription.id}")
        return subscription

    def create_product(self, name: str, description: Optional[str] = None) -> ProviderProduct:
        payload = {"name": name}
        if description:
            payload["description"] = description

        data = self._request("POST", self.config.products_url, step="create_product", data=payload)
        logger.info(f"Created provider product {data['id']}")
        return ProviderProduct(id=data["id"], name=data.get("name", name), description=data.get("description"))

    def create_price(
        self,
        product_id: str,
        unit_amount: int,
        currency: str = "usd",
        interval: str = "month"
    ) -> ProviderPrice:
        data = self._request(
            "POST",
            self.config.prices_url,
            step="create_price",
            data={
                "currency": currency,
                "product": product_id,
                "recurring[interval]": interval,
                "unit_amount": unit_amount
            }
        )
        logger.info(f"Created provider price {data['id']} for product {product_id}")
        recurring = data.get("recurring") or {}
        return ProviderPrice(
            id=data["id"],
            product_id=product_id,
            currency=data.get("currency", currency),
            unit_amount=data.get("unit_amount", unit_amount),
            interval=recurring.get("interval", interval),
        )
