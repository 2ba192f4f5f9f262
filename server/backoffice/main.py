"""FastAPI application initialization and configuration."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from .core.config import settings
from .core.database import create_engine_for, init_platform_db, session_factory_for
from .core.exceptions import (
    ProblemDetailsException,
    generic_exception_handler,
    problem_details_handler,
    request_validation_handler,
)
from .core.middleware import setup_middleware
from .core.observability import (
    SERVICE_NAME,
    instrument_fastapi,
    instrument_sqlalchemy,
    setup_metrics,
    setup_structured_logging,
    setup_tracing,
)
from .core.tenancy import CompanyDirectory, TenantRegistry
from .routers import (
    agent_router,
    auth_router,
    booking_router,
    company_router,
    health_router,
    inquiry_router,
    metrics_router,
)
from .schemas.health import ReadinessResponse
from .services.notification_service import build_transport
from .workers.notification_worker import NotificationDispatcher

# Configure structured logging
setup_structured_logging()

# Configure traditional logging for compatibility
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Builds the platform engine, the tenant registry and the notification
    dispatcher, and tears them down again on shutdown.
    """
    logger.info("Starting FastAPI application")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Debug mode: {settings.debug}")

    try:
        setup_tracing()
        setup_metrics()
        instrument_sqlalchemy()
        logger.info("Observability setup completed")

        platform_engine = create_engine_for(settings.database_url)
        await init_platform_db(platform_engine)
        app.state.platform_engine = platform_engine
        app.state.platform_sessions = session_factory_for(platform_engine)
        logger.info("Platform database initialized successfully")

        app.state.registry = TenantRegistry(CompanyDirectory(app.state.platform_sessions))

        dispatcher = NotificationDispatcher(
            transport=build_transport(settings),
            admin_email=settings.inquiry_admin_email,
            timeout_seconds=settings.notification_timeout_seconds,
            max_queue_size=settings.notification_queue_size,
        )
        await dispatcher.start()
        app.state.dispatcher = dispatcher
        logger.info("Notification dispatcher started")
    except Exception as e:
        logger.error(f"Failed to initialize application: {e}")
        raise

    logger.info("Application startup complete")

    yield

    logger.info("Shutting down FastAPI application")

    try:
        await app.state.dispatcher.stop()
        logger.info("Notification dispatcher stopped")

        await app.state.registry.close()
        await app.state.platform_engine.dispose()
        logger.info("Database connections closed")
    except Exception as e:
        logger.error(f"Error during application cleanup: {e}", exc_info=True)

    logger.info("Application shutdown complete")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    app = FastAPI(
        title="Travel Back Office API",
        description="RPC-over-HTTP API for multi-company travel bookings, customer inquiries and approvals",
        version="1.0.0",
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "traceparent", "tracestate"],
    )

    # Setup custom middleware
    setup_middleware(app, enable_logging=True)

    # Instrument FastAPI with OpenTelemetry
    instrument_fastapi(app)

    # Register exception handlers
    app.add_exception_handler(ProblemDetailsException, problem_details_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    @app.get(
        "/health",
        status_code=status.HTTP_200_OK,
        tags=["Health"],
        summary="Health Check",
        description="Check if the service is healthy and responsive",
        response_model=dict,
    )
    async def health_check():
        """
        Health check endpoint that returns service status.

        Returns:
            dict: Health status information
        """
        return {
            "status": "healthy",
            "service": SERVICE_NAME,
            "version": "1.0.0",
            "environment": settings.environment,
            "debug": settings.debug,
        }

    @app.get(
        "/ready",
        tags=["Health"],
        summary="Readiness Check",
        description="Check the platform database and the notification dispatcher",
        response_model=ReadinessResponse,
    )
    async def readiness_check(request: Request):
        """
        Readiness check endpoint that verifies service dependencies.

        Returns 503 while the platform database is unreachable.
        """
        checks = {"database": "ok", "notifications": "ok"}

        try:
            async with request.app.state.platform_sessions() as session:
                await session.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as e:
            logger.warning("Readiness check: platform database unavailable", extra={"error": str(e)})
            checks["database"] = "unavailable"

        if not request.app.state.dispatcher.running:
            checks["notifications"] = "stopped"

        ready = checks["database"] == "ok"
        response_data = ReadinessResponse(
            status="ready" if ready else "degraded",
            service=SERVICE_NAME,
            checks=checks,
            tenant_connections=len(request.app.state.registry),
        )
        status_code = status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE
        return JSONResponse(status_code=status_code, content=response_data.model_dump())

    @app.get(
        "/info",
        status_code=status.HTTP_200_OK,
        tags=["Info"],
        summary="Service Information",
        description="Get detailed information about the service",
        response_model=dict,
    )
    async def service_info():
        """
        Service information endpoint.

        Returns:
            dict: Detailed service information
        """
        return {
            "service": SERVICE_NAME,
            "version": "1.0.0",
            "description": "Multi-company travel back office",
            "environment": settings.environment,
            "debug": settings.debug,
            "features": {
                "multi_tenant": True,
                "approval_workflow": True,
                "notifications": True,
                "tracing": True,
                "problem_details": True,
            },
            "tenant_header": settings.tenant_header,
            "endpoints": {
                "health": "/health",
                "readiness": "/ready",
                "info": "/info",
                "metrics": "/metrics",
                "docs": "/docs" if settings.debug else None,
                "redoc": "/redoc" if settings.debug else None,
            },
        }

    # Register API routers
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(company_router)
    app.include_router(agent_router)
    app.include_router(booking_router)
    app.include_router(inquiry_router)
    app.include_router(metrics_router)

    logger.info("FastAPI application created and configured")

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "backoffice.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        access_log=True,
    )
