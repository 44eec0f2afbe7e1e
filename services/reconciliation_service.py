import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models.sql_models import Subscription
from provider.api_client import StripeAPIClient
from services.errors import PersistenceError, ProviderError
from services.mirror_service import CANCELED, from_unix, utcnow

logger = logging.getLogger(__name__)


@dataclass
class SubscriptionDrift:
    subscription_id: int
    stripe_sub_id: str
    local_status: str
    remote_status: Optional[str] = None
    error: Optional[str] = None
    applied: bool = False


class ReconciliationService:
    """Compares mirrored subscriptions with the provider's copies.

    Reporting is read-only. With ``apply=True`` the provider's status is
    written back into drifted rows, since the provider is authoritative.
    Rows whose provider lookup failed, and rows already canceled locally,
    are reported and left alone.
    """

    def __init__(self, session: Session, provider: StripeAPIClient):
        self.session = session
        self.provider = provider

    def find_drift(self) -> List[SubscriptionDrift]:
        return self.reconcile(apply=False)

    def reconcile(self, apply: bool = False) -> List[SubscriptionDrift]:
        drifts = []
        subscriptions = self.session.query(Subscription).order_by(Subscription.id).all()

        for subscription in subscriptions:
            try:
                remote = self.provider.retrieve_subscription(subscription.stripe_sub_id)
            except ProviderError as e:
                logger.warning(f"Could not fetch {subscription.stripe_sub_id}: {e.message}")
                drifts.append(SubscriptionDrift(
                    subscription_id=subscription.id,
                    stripe_sub_id=subscription.stripe_sub_id,
                    local_status=subscription.status,
                    error=e.message
                ))
                continue

            if remote.status == subscription.status:
                continue

            drift = SubscriptionDrift(
                subscription_id=subscription.id,
                stripe_sub_id=subscription.stripe_sub_id,
                local_status=subscription.status,
                remote_status=remote.status
            )
            drifts.append(drift)

            # Canceled is terminal locally; a provider disagreement is only reported.
            if apply and subscription.status == CANCELED:
                logger.warning(
                    f"Subscription {subscription.id} is canceled locally but "
                    f"{remote.status} on the provider; left unchanged"
                )
            elif apply:
                subscription.status = remote.status
                if remote.status == CANCELED and subscription.cancel_date is None:
                    subscription.cancel_date = from_unix(remote.canceled_at) or utcnow()
                if remote.current_period_end:
                    subscription.next_billing_day = from_unix(remote.current_period_end)
                drift.applied = True

        applied = sum(1 for d in drifts if d.applied)
        if applied:
            try:
                self.session.commit()
            except SQLAlchemyError as e:
                self.session.rollback()
                logger.error(f"Database error during reconcile: {e}")
                raise PersistenceError(str(e), step="reconcile") from e
            logger.info(f"Reconciled {applied} subscription(s)")

        return drifts
