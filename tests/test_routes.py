import pytest
from fastapi.testclient import TestClient

from app import app
from db.config import get_db_session


@pytest.fixture
def client(session_factory, provider):
    def override_session():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db_session] = override_session
    app.state.provider = provider
    yield TestClient(app)
    app.dependency_overrides.clear()
    del app.state.provider


def create_user(client, name="Jane Doe", email="jane@example.com"):
    return client.post("/api/v1/users/", json={"name": name, "email": email})


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_create_subscribe_and_cancel(client):
    response = create_user(client)
    assert response.status_code == 201
    user = response.json()
    assert user == {"id": 1, "name": "Jane Doe", "email": "jane@example.com", "stripe_id": "cus_123"}

    response = client.post("/api/v1/subscriptions/", json={"user_id": user["id"], "price_id": "price_abc"})
    assert response.status_code == 201
    subscription = response.json()
    assert subscription["stripe_sub_id"] == "sub_1"
    assert subscription["status"] == "active"
    assert subscription["cancel_date"] is None

    response = client.post(f"/api/v1/subscriptions/{subscription['id']}/cancel")
    assert response.status_code == 200
    assert response.json()["status"] == "canceled"
    assert response.json()["cancel_date"] is not None

    listing = client.get(f"/api/v1/users/{user['id']}/subscriptions").json()
    assert [s["status"] for s in listing["subscriptions"]] == ["canceled"]


def test_duplicate_email_is_a_conflict(client):
    create_user(client)
    response = create_user(client, name="Jane Again")

    assert response.status_code == 409
    assert response.json()["detail"]["orphaned_id"] == "cus_124"


def test_provider_failure_is_a_bad_gateway(client, provider):
    provider.fail_on.add("create_customer")

    response = create_user(client)

    assert response.status_code == 502
    assert response.json()["detail"]["step"] == "create_customer"
    assert client.get("/api/v1/users/1").status_code == 404


def test_blank_name_is_rejected(client, provider):
    response = create_user(client, name="")

    assert response.status_code == 422
    assert provider.calls["create_customer"] == 0


def test_subscription_for_unknown_user(client, provider):
    response = client.post("/api/v1/subscriptions/", json={"user_id": 7, "price_id": "price_abc"})

    assert response.status_code == 404
    assert provider.calls["create_subscription"] == 0


def test_cancel_unknown_subscription(client, provider):
    response = client.post("/api/v1/subscriptions/99/cancel")

    assert response.status_code == 404
    assert provider.calls["cancel_subscription"] == 0


def test_drift_endpoint(client, provider):
    user = create_user(client).json()
    client.post("/api/v1/subscriptions/", json={"user_id": user["id"], "price_id": "price_abc"})
    provider.subscriptions["sub_1"].status = "past_due"

    drift = client.get("/api/v1/subscriptions/drift").json()
    assert drift[0]["remote_status"] == "past_due"
    assert drift[0]["applied"] is False

    drift = client.get("/api/v1/subscriptions/drift", params={"apply": True}).json()
    assert drift[0]["applied"] is False
    assert client.get("/api/v1/subscriptions/1").json()["status"] == "active"

    response = client.post("/api/v1/subscriptions/reconcile")
    assert response.status_code == 200
    assert response.json()[0]["applied"] is True
    assert client.get("/api/v1/subscriptions/1").json()["status"] == "past_due"


def test_create_price(client):
    response = client.post("/api/v1/catalog/prices", json={"product_name": "Pro", "unit_amount": 5000})

    assert response.status_code == 201
    assert response.json() == {
        "product_id": "prod_1",
        "price_id": "price_1",
        "currency": "usd",
        "unit_amount": 5000,
        "interval": "month",
    }
