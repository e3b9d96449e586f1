"""FastAPI application factory."""

import time
import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from notifier import __version__
from notifier.bootstrap import Services
from notifier.logging import get_logger
from notifier.logging.context import log_context

from .routes import router

logger = get_logger(__name__, component="api")

REQUEST_ID_HEADER = "X-Request-ID"


def create_app(services: Services) -> FastAPI:
    """Build the HTTP application around already-constructed services."""
    app = FastAPI(
        title="Job Push Notifier",
        description="Web Push fan-out and billing entitlement webhooks",
        version=__version__,
    )
    app.state.services = services

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        """Tag every log record of a request with its request id."""
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:16]
        started = time.perf_counter()

        with log_context(request_id=request_id):
            response = await call_next(request)
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code}",
                extra={
                    "event": "http.request",
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 1),
                },
            )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    origins = list(services.allowed_origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": describe_validation_error(exc)})

    app.include_router(router)
    return app


def describe_validation_error(exc: RequestValidationError) -> str:
    """One-line message naming the first offending field."""
    errors = exc.errors()
    if not errors:
        return "Invalid request."

    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "invalid value")
    if location:
        return f"Invalid request: {location}: {message}"
    return f"Invalid request: {message}"
