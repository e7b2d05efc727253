"""FastAPI application factory"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from bigbsubz_gateway.api.middleware import MetricsMiddleware, RequestIDMiddleware
from bigbsubz_gateway.api.v1 import cable, catalog, profile, transactions
from bigbsubz_gateway.infrastructure.observability.logging import setup_logging
from bigbsubz_gateway.config import settings

# Setup structured logging
setup_logging(settings.log_level)

# Headers the browser client sends with platform calls
CORS_ALLOW_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())})


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.backend == "sql":
        from bigbsubz_gateway.infrastructure.database.session import init_db

        init_db()
    yield


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="BigBSubz Gateway",
        description="Cable TV subscription purchases against a prepaid balance",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.cors_allow_origin],
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=CORS_ALLOW_HEADERS,
    )

    # Errors are rendered as {"error": ...} across the API
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(cable.router, prefix="/v1", tags=["cable"])
    app.include_router(catalog.router, prefix="/v1", tags=["catalog"])
    app.include_router(profile.router, prefix="/v1", tags=["profile"])
    app.include_router(transactions.router, prefix="/v1", tags=["transactions"])

    return app


app = create_app()
