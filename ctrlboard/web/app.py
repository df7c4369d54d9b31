"""FastAPI application for the ctrlboard controlling API."""

from __future__ import annotations

from uuid import uuid4

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.middleware.base import BaseHTTPMiddleware

from ctrlboard.classification.mapping import ConfigurationError
from ctrlboard.core.logging import configure_logging
from ctrlboard.web.routes import classifications, health, reports, watchdogs

# Initialize structured logging
configure_logging()
logger = structlog.get_logger()

app = FastAPI(
    title="ctrlboard",
    description="Controlling dashboard API: hour reports, internal-work and timesheet watchdogs",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)


# Request Logging Middleware
class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        structlog.contextvars.clear_contextvars()

        request_id = request.headers.get("X-Request-ID", str(uuid4()))
        structlog.contextvars.bind_contextvars(request_id=request_id)

        logger.info(
            "request_started",
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)

            logger.info(
                "request_completed",
                status_code=response.status_code,
            )
            response.headers["X-Request-ID"] = request_id
            return response

        except Exception as exc:
            logger.error("request_failed", error=str(exc))
            raise


app.add_middleware(RequestLoggingMiddleware)

# Prometheus Metrics
Instrumentator().instrument(app).expose(app)


# Exception Handlers
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    """Broken settings files are an operator problem, not a client one."""
    logger.error("configuration_error", error=str(exc))
    return JSONResponse(
        status_code=500,
        content={"detail": str(exc)},
    )


# Include Routers
app.include_router(health.router)
app.include_router(classifications.router)
app.include_router(reports.router)
app.include_router(watchdogs.router)
