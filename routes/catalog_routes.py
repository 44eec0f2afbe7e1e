from fastapi import APIRouter, Depends, status

from models.schemas import PriceCreateRequest, PriceResponse
from provider.api_client import StripeAPIClient
from routes.dependencies import get_provider, to_http_exception
from services.catalog_service import CatalogService
from services.errors import MirrorError

router = APIRouter(prefix="/catalog", tags=["Catalog"])


def get_catalog_service(provider: StripeAPIClient = Depends(get_provider)) -> CatalogService:
    return CatalogService(provider)


@router.post(
    "/prices",
    response_model=PriceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create recurring price",
    description="Creates a product and a recurring price on the provider"
)
def create_price(
    request: PriceCreateRequest,
    service: CatalogService = Depends(get_catalog_service)
):
    try:
        product, price = service.create_recurring_price(
            name=request.product_name,
            description=request.description,
            unit_amount=request.unit_amount,
            currency=request.currency,
            interval=request.interval.value
        )
    except (MirrorError, ValueError) as e:
        raise to_http_exception(e)

    return PriceResponse(
        product_id=product.id,
        price_id=price.id,
        currency=price.currency,
        unit_amount=price.unit_amount,
        interval=price.interval
    )
