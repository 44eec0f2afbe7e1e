import os
from collections import Counter
from datetime import datetime

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from db.config import build_engine, init_db
from provider.api_client import (
    ProviderCustomer,
    ProviderPrice,
    ProviderProduct,
    ProviderSubscription,
)
from services.errors import ProviderError

FIXED_NOW = datetime(2026, 1, 15, 12, 0, 0)
PERIOD_END = 1767225600  # 2026-01-01T00:00:00Z


class FakeProvider:
    """In-memory stand-in for StripeAPIClient that counts every call."""

    def __init__(self):
        self.calls = Counter()
        self.fail_on = set()
        self.subscriptions = {}
        self._customer_seq = 122
        self._subscription_seq = 0

    def _enter(self, step):
        self.calls[step] += 1
        if step in self.fail_on:
            raise ProviderError(402, f"{step} rejected", code="card_declined", step=step)

    def create_customer(self, name, email):
        self._enter("create_customer")
        self._customer_seq += 1
        return ProviderCustomer(id=f"cus_{self._customer_seq}", name=name, email=email)

    def create_subscription(self, customer_id, price_id):
        self._enter("create_subscription")
        self._subscription_seq += 1
        subscription = ProviderSubscription(
            id=f"sub_{self._subscription_seq}",
            status="active",
            current_period_end=PERIOD_END,
            price_id=price_id,
            customer_id=customer_id,
        )
        self.subscriptions[subscription.id] = subscription
        return subscription

    def retrieve_subscription(self, subscription_id):
        self._enter("retrieve_subscription")
        if subscription_id not in self.subscriptions:
            raise ProviderError(404, f"No such subscription: '{subscription_id}'",
                                code="resource_missing", step="retrieve_subscription")
        return self.subscriptions[subscription_id]

    def cancel_subscription(self, subscription_id):
        self._enter("cancel_subscription")
        subscription = self.subscriptions[subscription_id]
        subscription.status = "canceled"
        subscription.canceled_at = PERIOD_END
        return subscription

    def create_product(self, name, description=None):
        self._enter("create_product")
        return ProviderProduct(id="prod_1", name=name, description=description)

    def create_price(self, product_id, unit_amount, currency="usd", interval="month"):
        self._enter("create_price")
        return ProviderPrice(
            id="price_1",
            product_id=product_id,
            currency=currency,
            unit_amount=unit_amount,
            interval=interval,
        )


@pytest.fixture
def engine():
    engine = build_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def clock():
    return lambda: FIXED_NOW
