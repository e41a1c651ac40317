"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from trust_engine.api.middleware import RequestIDMiddleware, MetricsMiddleware
from trust_engine.api.v1 import fraud, network, plans, trust
from trust_engine.infrastructure.observability.logging import setup_logging
from trust_engine.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Trust & Risk Scoring Engine",
        description="Trust network analytics, fraud risk scoring and repayment planning",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(network.router, prefix="/v1", tags=["network"])
    app.include_router(fraud.router, prefix="/v1", tags=["fraud"])
    app.include_router(plans.router, prefix="/v1", tags=["plans"])
    app.include_router(trust.router, prefix="/v1", tags=["trust"])

    return app


app = create_app()
