"""
FastAPI application factory.
"""
import logging
from typing import Optional

from fastapi import FastAPI

from taskory import __version__
from taskory.api.routes import ROUTERS
from taskory.config import get_settings
from taskory.dependencies import ServiceContainer
from taskory.exceptions.handlers import setup_exception_handlers
from taskory.middleware.request_id import RequestIDMiddleware
from taskory.middleware.security_headers import SecurityHeadersMiddleware

logger = logging.getLogger(__name__)


def create_app(container: Optional[ServiceContainer] = None) -> FastAPI:
    """
    Build the application.

    Args:
        container: Pre-built service container (tests pass one bound to a
            temporary database); built from settings when omitted
    """
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        debug=settings.debug,
    )
    app.state.container = container or ServiceContainer()

    setup_exception_handlers(app)

    # Added last runs first: request id is set before anything else logs
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIDMiddleware)

    for router in ROUTERS:
        app.include_router(router, prefix="/api")

    @app.get("/health")
    def health():
        return {"status": "healthy", "version": __version__}

    logger.info(f"Application created ({settings.environment})")
    return app
