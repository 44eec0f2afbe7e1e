import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from models.sql_models import User, Subscription
from provider.api_client import StripeAPIClient
from services.errors import NotFoundError, PersistenceError

logger = logging.getLogger(__name__)

CANCELED = "canceled"


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def from_unix(timestamp: Optional[int]) -> Optional[datetime]:
    if timestamp is None:
        return None
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).replace(tzinfo=None)


class SubscriptionMirrorService:
    """Keeps the local users/subscriptions tables in step with the provider.

    Each mutation performs the provider call first and writes locally only
    after it succeeds. There is no compensation: if the local write fails the
    provider object is left in place and reported through
    ``PersistenceError.orphaned_id``.
    """

    def __init__(
        self,
        session: Session,
        provider: StripeAPIClient,
        clock: Callable[[], datetime] = utcnow
    ):
        self.session = session
        self.provider = provider
        self.clock = clock

    def _commit(self, step: str, orphaned_id: Optional[str] = None):
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            logger.error(f"Constraint violation during {step}: {e.orig}")
            raise PersistenceError(str(e.orig), step=step, orphaned_id=orphaned_id, conflict=True) from e
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Database error during {step}: {e}")
            raise PersistenceError(str(e), step=step, orphaned_id=orphaned_id) from e

    def get_user(self, user_id: int) -> User:
        user = self.session.get(User, user_id)
        if not user:
            raise NotFoundError("User", user_id, step="lookup_user")
        return user

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.session.query(User).filter(User.email == email).first()

    def get_subscription(self, subscription_id: int) -> Subscription:
        subscription = self.session.get(Subscription, subscription_id)
        if not subscription:
            raise NotFoundError("Subscription", subscription_id, step="lookup_subscription")
        return subscription

    def list_user_subscriptions(self, user_id: int) -> List[Subscription]:
        self.get_user(user_id)
        return self.session.query(Subscription).filter(
            Subscription.user_id == user_id
        ).order_by(Subscription.id).all()

    def create_user(self, name: str, email: str) -> User:
        if not name or not name.strip():
            raise ValueError("name must not be empty")

        customer = self.provider.create_customer(name, email)

        user = User(name=name, email=email, stripe_id=customer.id)
        self.session.add(user)
        self._commit("insert_user", orphaned_id=customer.id)
        self.session.refresh(user)

        logger.info(f"Mirrored user {user.id} for customer {customer.id}")
        return user

    def create_subscription(self, user: User, price_id: str) -> Subscription:
        if not price_id:
            raise ValueError("price_id is required")

        # Re-read so a stale or detached User cannot produce a dangling row.
        if user.id is None:
            raise NotFoundError("User", None, step="lookup_user")
        local_user = self.get_user(user.id)
        if not local_user.stripe_id:
            raise ValueError(f"User {local_user.id} has no provider customer id")

        remote = self.provider.create_subscription(local_user.stripe_id, price_id)

        subscription = Subscription(
            user_id=local_user.id,
            stripe_sub_id=remote.id,
            plan_id=remote.price_id or price_id,
            status=remote.status,
            start_date=self.clock(),
            next_billing_day=from_unix(remote.current_period_end),
        )
        self.session.add(subscription)
        self._commit("insert_subscription", orphaned_id=remote.id)
        self.session.refresh(subscription)

        logger.info(
            f"Mirrored subscription {subscription.id} ({remote.id}) "
            f"for user {local_user.id}, next billing {subscription.next_billing_day}"
        )
        return subscription

    def cancel_subscription(self, subscription_id: int) -> Subscription:
        subscription = self.get_subscription(subscription_id)

        if subscription.status == CANCELED:
            logger.info(f"Subscription {subscription_id} already canceled locally")
            return subscription

        self.provider.cancel_subscription(subscription.stripe_sub_id)

        subscription.status = CANCELED
        subscription.cancel_date = self.clock()
        self._commit("update_subscription", orphaned_id=subscription.stripe_sub_id)

        logger.info(f"Canceled subscription {subscription_id} ({subscription.stripe_sub_id})")
        return subscription
