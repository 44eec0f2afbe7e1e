from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from db.config import get_db_session
from models.schemas import SubscriptionCreateRequest, SubscriptionResponse, DriftResponse
from provider.api_client import StripeAPIClient
from routes.dependencies import get_provider, to_http_exception
from routes.user_routes import get_mirror_service
from services.errors import MirrorError
from services.mirror_service import SubscriptionMirrorService
from services.reconciliation_service import ReconciliationService

router = APIRouter(prefix="/subscriptions", tags=["Subscriptions"])


def get_reconciliation_service(
    session: Session = Depends(get_db_session),
    provider: StripeAPIClient = Depends(get_provider)
) -> ReconciliationService:
    return ReconciliationService(session, provider)


@router.post(
    "/",
    response_model=SubscriptionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create subscription",
    description="Subscribes a user's provider customer to a price and mirrors the result"
)
def create_subscription(
    request: SubscriptionCreateRequest,
    service: SubscriptionMirrorService = Depends(get_mirror_service)
):
    try:
        user = service.get_user(request.user_id)
        subscription = service.create_subscription(user, request.price_id)
    except (MirrorError, ValueError) as e:
        raise to_http_exception(e)
    return SubscriptionResponse.model_validate(subscription)


@router.get(
    "/drift",
    response_model=List[DriftResponse],
    summary="Compare mirror with provider",
    description="Reports subscriptions whose local status differs from the provider's"
)
def get_drift(
    service: ReconciliationService = Depends(get_reconciliation_service)
):
    try:
        drifts = service.find_drift()
    except MirrorError as e:
        raise to_http_exception(e)
    return [DriftResponse.model_validate(d) for d in drifts]


@router.post(
    "/reconcile",
    response_model=List[DriftResponse],
    summary="Reconcile mirror with provider",
    description="Writes the provider's status into drifted rows; local cancellations are kept"
)
def reconcile(
    service: ReconciliationService = Depends(get_reconciliation_service)
):
    try:
        drifts = service.reconcile(apply=True)
    except MirrorError as e:
        raise to_http_exception(e)
    return [DriftResponse.model_validate(d) for d in drifts]


@router.get(
    "/{subscription_id}",
    response_model=SubscriptionResponse,
    summary="Get subscription"
)
def get_subscription(
    subscription_id: int,
    service: SubscriptionMirrorService = Depends(get_mirror_service)
):
    try:
        subscription = service.get_subscription(subscription_id)
    except MirrorError as e:
        raise to_http_exception(e)
    return SubscriptionResponse.model_validate(subscription)


@router.post(
    "/{subscription_id}/cancel",
    response_model=SubscriptionResponse,
    summary="Cancel subscription",
    description="Cancels on the provider, then marks the local row canceled"
)
def cancel_subscription(
    subscription_id: int,
    service: SubscriptionMirrorService = Depends(get_mirror_service)
):
    try:
        subscription = service.cancel_subscription(subscription_id)
    except MirrorError as e:
        raise to_http_exception(e)
    return SubscriptionResponse.model_validate(subscription)
