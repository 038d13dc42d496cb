from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from wabroker.app import App
from wabroker.config import Config
from wabroker.errors import BrokerError, UserError
from wabroker.web.error_handlers import (
    broker_error_handler,
    general_exception_handler,
    request_validation_error_handler,
    user_error_handler,
)
from wabroker.web.middleware import BodySizeLimitMiddleware
from wabroker.web.openapi import set_custom_openapi
from wabroker.web.routers import messages_router, sessions_router


def create_fastapi_app(app_instance: App, config: Config) -> FastAPI:
    """Create and configure FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        """FastAPI application lifespan management."""
        app.state.app = app_instance
        async with app_instance.lifespan():
            yield

    app = FastAPI(
        title="wabroker API",
        lifespan=lifespan,
    )

    # Wrapped by CORS, so 413 responses carry CORS headers
    app.add_middleware(BodySizeLimitMiddleware, config=config)

    if config.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    app.include_router(sessions_router)
    app.include_router(messages_router)

    # Register error handlers
    app.add_exception_handler(UserError, user_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(BrokerError, broker_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    set_custom_openapi(app)

    return app
