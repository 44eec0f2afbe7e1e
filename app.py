import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from db.config import init_db
from provider.api_client import StripeAPIClient
from provider.config import ProviderConfig
from routes.user_routes import router as user_router
from routes.subscription_routes import router as subscription_router
from routes.catalog_routes import router as catalog_router

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Subscription Mirror API",
    description="Creates provider customers and subscriptions and mirrors them locally",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def startup():
    try:
        init_db()
    except Exception as e:
        logger.warning(f"Failed to create tables: {e}")
    app.state.provider = StripeAPIClient(ProviderConfig.from_env())


@app.on_event("shutdown")
def shutdown():
    provider = getattr(app.state, "provider", None)
    if provider is not None:
        provider.close()


app.include_router(user_router, prefix="/api/v1")
app.include_router(subscription_router, prefix="/api/v1")
app.include_router(catalog_router, prefix="/api/v1")


@app.get("/", tags=["Health"])
def health_check():
    return {"status": "healthy", "service": "subscription-mirror"}


@app.get("/health", tags=["Health"])
def health():
    return {"status": "ok"}
