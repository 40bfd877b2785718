"""
FastAPI application entry point
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from contextlib import asynccontextmanager

from api.routes import health as health_routes
from api.routes import pesapal as pesapal_routes
from api.middleware import RequestIDMiddleware, LoggingMiddleware
from core.config import settings
from core.exceptions import register_exception_handlers
from core.logging_config import get_logger, configure_logging
from infrastructure.database import create_order_ledger
from infrastructure.external.payments import create_payment_gateway


# Configure logging explicitly at the entry point
configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the gateway client and order ledger, release them on shutdown."""
    app.state.payment_gateway = create_payment_gateway()
    logger.info("payment_gateway_initialized", provider=app.state.payment_gateway.provider)
    try:
        app.state.order_ledger = create_order_ledger()
    except Exception as exc:
        logger.error("document_store_init_failed", error=str(exc))
        await app.state.payment_gateway.aclose()
        raise

    yield

    await app.state.payment_gateway.aclose()
    logger.info("payment_gateway_shutdown")
    await app.state.order_ledger.aclose()
    logger.info("document_store_shutdown")
    app.state.payment_gateway = None
    app.state.order_ledger = None
    logger.info("application_shutdown", message="Application shutdown")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
    description="Pesapal hosted-checkout integration backend",
)

# Middleware order: the last added runs first
app.add_middleware(LoggingMiddleware)
app.add_middleware(RequestIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

register_exception_handlers(app)


# Routes are served at the root and under the API prefix used by the
# serverless deployment (/api/pesapal/...).
app.include_router(health_routes.router)
app.include_router(pesapal_routes.router)
app.add_api_route("/", health_routes.liveness, methods=["GET"], response_class=PlainTextResponse, tags=["Root"])
if settings.API_PREFIX:
    app.include_router(health_routes.router, prefix=settings.API_PREFIX, include_in_schema=False)
    app.include_router(pesapal_routes.router, prefix=settings.API_PREFIX, include_in_schema=False)
    app.add_api_route(
        settings.API_PREFIX,
        health_routes.liveness,
        methods=["GET"],
        response_class=PlainTextResponse,
        include_in_schema=False,
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info"
    )
