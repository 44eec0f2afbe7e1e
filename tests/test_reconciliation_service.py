from datetime import datetime

import pytest

from models.sql_models import Subscription
from services.mirror_service import SubscriptionMirrorService
from services.reconciliation_service import ReconciliationService


@pytest.fixture
def mirrored(session, provider, clock):
    service = SubscriptionMirrorService(session, provider, clock=clock)
    user = service.create_user("Jane Doe", "jane@example.com")
    first = service.create_subscription(user, "price_abc")
    second = service.create_subscription(user, "price_def")
    return first, second


def test_in_sync_mirror_reports_nothing(session, provider, mirrored):
    assert ReconciliationService(session, provider).find_drift() == []
    assert provider.calls["retrieve_subscription"] == 2


def test_drift_is_reported_without_writing(session, provider, mirrored):
    first, _ = mirrored
    provider.subscriptions["sub_1"].status = "past_due"

    drifts = ReconciliationService(session, provider).find_drift()

    assert len(drifts) == 1
    assert drifts[0].subscription_id == first.id
    assert drifts[0].local_status == "active"
    assert drifts[0].remote_status == "past_due"
    assert drifts[0].applied is False

    session.expire_all()
    assert session.get(Subscription, first.id).status == "active"


def test_apply_pulls_remote_cancellation(session, provider, mirrored):
    _, second = mirrored
    remote = provider.subscriptions["sub_2"]
    remote.status = "canceled"
    remote.canceled_at = 1767225600

    drifts = ReconciliationService(session, provider).reconcile(apply=True)

    assert [d.applied for d in drifts] == [True]
    session.expire_all()
    stored = session.get(Subscription, second.id)
    assert stored.status == "canceled"
    assert stored.cancel_date == datetime(2026, 1, 1)


def test_apply_never_reverts_a_local_cancellation(session, provider, clock, mirrored):
    first, _ = mirrored
    SubscriptionMirrorService(session, provider, clock=clock).cancel_subscription(first.id)
    provider.subscriptions["sub_1"].status = "active"

    drifts = ReconciliationService(session, provider).reconcile(apply=True)

    assert len(drifts) == 1
    assert drifts[0].local_status == "canceled"
    assert drifts[0].remote_status == "active"
    assert drifts[0].applied is False

    session.expire_all()
    stored = session.get(Subscription, first.id)
    assert stored.status == "canceled"
    assert stored.cancel_date is not None


def test_lookup_failure_is_reported_and_left_alone(session, provider, mirrored):
    first, _ = mirrored
    del provider.subscriptions["sub_1"]

    drifts = ReconciliationService(session, provider).reconcile(apply=True)

    assert len(drifts) == 1
    assert drifts[0].subscription_id == first.id
    assert drifts[0].remote_status is None
    assert "No such subscription" in drifts[0].error
    assert drifts[0].applied is False
