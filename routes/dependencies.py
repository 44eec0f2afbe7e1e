from fastapi import HTTPException, Request, status

from provider.api_client import StripeAPIClient
from services.errors import MirrorError, NotFoundError, PersistenceError, ProviderError


def get_provider(request: Request) -> StripeAPIClient:
    return request.app.state.provider


def to_http_exception(error: Exception) -> HTTPException:
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))

    if isinstance(error, ProviderError):
        return HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"step": error.step, "code": error.code, "message": error.message}
        )

    if isinstance(error, PersistenceError):
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT if error.conflict else status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"step": error.step, "orphaned_id": error.orphaned_id, "message": error.message}
        )

    if isinstance(error, MirrorError):
        return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(error))

    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
