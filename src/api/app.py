"""FastAPI application factory and configuration.

Main application entry point with lifespan management, middleware,
and router registration.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src import __version__
from src.api.chat import router as chat_router
from src.api.middleware import RequestLoggingMiddleware, RequestMetrics
from src.api.routes import router as system_router
from src.provider.anthropic_service import close_provider_service
from src.relay.channels import ChannelRegistry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application startup and shutdown lifecycle.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control to the application while it runs.
    """
    logger.info("Starting chat relay API...")
    yield
    logger.info("Shutting down chat relay API...")
    await app.state.channels.aclose()
    await close_provider_service()


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies as 400 Bad Request."""
    logger.warning(f"Invalid request to {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid request format", "errors": jsonable_encoder(exc.errors())},
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    application = FastAPI(
        title="Streaming Chat Relay API",
        description=(
            "Relays chat conversations to a large-language-model provider and "
            "streams the reply back as newline-delimited JSON events, either "
            "directly or through subscribable channels."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    application.state.channels = ChannelRegistry()
    application.state.metrics = RequestMetrics()

    application.add_exception_handler(RequestValidationError, validation_exception_handler)

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["*"],
    )
    application.add_middleware(RequestLoggingMiddleware, metrics=application.state.metrics)

    application.include_router(chat_router)
    application.include_router(system_router)

    return application


app = create_app()
