"""Entry point for the Fragments service."""

import time
import uuid
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from common.logging_config import setup_logging
from fragments import __version__
from fragments.config import FRAGMENTS_HOST, FRAGMENTS_PORT, Settings, load_settings
from fragments.exceptions import (
    BackendError,
    FragmentNotFoundError,
    FragmentsException,
    InvalidCredentialsError,
    PayloadTooLargeError,
    UnsupportedConversionError,
    UnsupportedMediaTypeError,
    ValidationError,
)
from fragments.routes.fragment_routes import router as fragment_router
from fragments.schemas.common import create_error_response
from fragments.services.auth_service import create_verifier
from fragments.storage import StorageBackend, create_backend

logger = setup_logging('fragments')


def _error(request: Request, status_code: int, exc: Exception) -> JSONResponse:
    request_id = getattr(request.state, 'request_id', 'unknown')
    message = str(exc) or exc.__class__.__name__

    if status_code >= 500:
        logger.error(
            f"{exc.__class__.__name__}: {message} [request_id={request_id}] path={request.url.path}",
            exc_info=exc
        )
    else:
        logger.warning(
            f"{exc.__class__.__name__}: {message} [request_id={request_id}] path={request.url.path}"
        )

    headers = None
    if status_code == status.HTTP_401_UNAUTHORIZED:
        scheme = "Basic" if request.app.state.verifier.strategy == "http" else "Bearer"
        headers = {"WWW-Authenticate": scheme}
    return JSONResponse(
        status_code=status_code,
        content=create_error_response(status_code, message),
        headers=headers
    )


_STATUS_CODES = [
    (InvalidCredentialsError, status.HTTP_401_UNAUTHORIZED),
    (FragmentNotFoundError, status.HTTP_404_NOT_FOUND),
    (PayloadTooLargeError, status.HTTP_413_REQUEST_ENTITY_TOO_LARGE),
    (UnsupportedMediaTypeError, status.HTTP_415_UNSUPPORTED_MEDIA_TYPE),
    (UnsupportedConversionError, status.HTTP_415_UNSUPPORTED_MEDIA_TYPE),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (BackendError, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (FragmentsException, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


def _register_exception_handlers(app: FastAPI) -> None:
    for exc_class, status_code in _STATUS_CODES:
        async def handler(request: Request, exc: Exception, status_code: int = status_code):
            return _error(request, status_code, exc)

        app.add_exception_handler(exc_class, handler)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=create_error_response(exc.status_code, str(exc.detail)),
            headers=getattr(exc, 'headers', None)
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Request validation error: {exc.errors()} path={request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=create_error_response(status.HTTP_400_BAD_REQUEST, "invalid request")
        )


def create_app(
    settings: Optional[Settings] = None,
    backend: Optional[StorageBackend] = None,
    verifier=None,
) -> FastAPI:
    """
    Build the FastAPI application.

    The storage backend and credential verifier are created once here and
    shared by every request through app.state.

    Args:
        settings: Settings snapshot (defaults to the environment)
        backend: Storage backend to use instead of the configured one
        verifier: Credential verifier to use instead of the configured one

    Returns:
        Configured FastAPI application
    """
    if settings is None:
        settings = load_settings()

    app = FastAPI(
        title="Fragments",
        description="Owner-scoped fragment storage with Markdown conversion",
        version=__version__
    )

    app.state.backend = backend if backend is not None else create_backend(settings)
    app.state.verifier = verifier if verifier is not None else create_verifier(settings)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """
        Middleware to log all HTTP requests and responses.
        """
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.time()

        logger.info(
            f"Request started: {request.method} {request.url.path} [request_id={request_id}]"
        )

        response = await call_next(request)

        duration = time.time() - start_time
        owner_id = getattr(request.state, 'owner_id', None)

        logger.info(
            f"Request completed: {request.method} {request.url.path} "
            f"status={response.status_code} duration={duration:.3f}s "
            f"[request_id={request_id}] [owner_id={owner_id or 'anonymous'}]"
        )

        response.headers["X-Request-ID"] = request_id

        return response

    @app.on_event("startup")
    async def startup_event():
        logger.info(
            f"Fragments service starting up [backend={app.state.backend.name}] "
            f"[auth={app.state.verifier.strategy}]"
        )

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("Fragments service shutting down...")
        await app.state.backend.close()
        logger.info("Storage backend closed")

    _register_exception_handlers(app)

    app.include_router(fragment_router)

    @app.get("/")
    async def root():
        """
        Public service info.
        """
        return {"status": "ok", "service": "fragments", "version": __version__}

    @app.get("/health")
    async def health_check():
        """
        Health check endpoint for container healthchecks.
        Returns 200 if service is alive.
        """
        return {"status": "ok"}

    return app


app = create_app()


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    uvicorn.run(
        "fragments.main:app",
        host=FRAGMENTS_HOST,
        port=FRAGMENTS_PORT
    )


if __name__ == "__main__":
    main()
