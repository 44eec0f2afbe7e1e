from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from db.config import get_db_session
from models.schemas import (
    UserCreateRequest,
    UserResponse,
    UserSubscriptionsResponse,
    SubscriptionResponse,
)
from provider.api_client import StripeAPIClient
from routes.dependencies import get_provider, to_http_exception
from services.errors import MirrorError
from services.mirror_service import SubscriptionMirrorService

router = APIRouter(prefix="/users", tags=["Users"])


def get_mirror_service(
    session: Session = Depends(get_db_session),
    provider: StripeAPIClient = Depends(get_provider)
) -> SubscriptionMirrorService:
    return SubscriptionMirrorService(session, provider)


@router.post(
    "/",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create user",
    description="Creates a provider customer, then records the user locally"
)
def create_user(
    request: UserCreateRequest,
    service: SubscriptionMirrorService = Depends(get_mirror_service)
):
    try:
        user = service.create_user(request.name, request.email)
    except (MirrorError, ValueError) as e:
        raise to_http_exception(e)
    return UserResponse.model_validate(user)


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    summary="Get user"
)
def get_user(
    user_id: int,
    service: SubscriptionMirrorService = Depends(get_mirror_service)
):
    try:
        user = service.get_user(user_id)
    except MirrorError as e:
        raise to_http_exception(e)
    return UserResponse.model_validate(user)


@router.get(
    "/{user_id}/subscriptions",
    response_model=UserSubscriptionsResponse,
    summary="List user subscriptions",
    description="Lists the mirrored subscriptions of a user"
)
def list_user_subscriptions(
    user_id: int,
    service: SubscriptionMirrorService = Depends(get_mirror_service)
):
    try:
        subscriptions = service.list_user_subscriptions(user_id)
    except MirrorError as e:
        raise to_http_exception(e)
    return UserSubscriptionsResponse(
        user_id=user_id,
        subscriptions=[SubscriptionResponse.model_validate(s) for s in subscriptions]
    )
