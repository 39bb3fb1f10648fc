"""
Application factory for the Local Services API.

``create_app`` builds and configures the FastAPI application from an
explicit ``Settings`` object: it sets up logging, applies database
migrations, constructs the token service, installs the error boundary
and includes the API routers.  Serve it with uvicorn's factory mode::

    uvicorn local_services_api.app.main:create_app --factory

When no settings are passed they are read from the environment once,
here, and nowhere else.
"""

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.v1.router import router as v1_router
from .core.config import Settings
from .core.db import init_db
from .core.errors import register_exception_handlers
from .core.logging_config import setup_logging
from .core.security import TokenService


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    settings : Optional[Settings]
        Configuration to use.  Defaults to ``Settings.from_env()``.

    Returns
    -------
    FastAPI
        A configured application instance.
    """
    if settings is None:
        settings = Settings.from_env()

    # Initialise logging before anything else so that the steps below can log.
    setup_logging("DEBUG" if settings.debug else settings.log_level, settings.log_file)
    logger = logging.getLogger(__name__)

    init_db(settings.database_url)

    app = FastAPI(title=settings.project_name, version=settings.api_version)
    app.state.settings = settings
    app.state.token_service = TokenService.from_settings(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.cors_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    # Routes are mounted at the root; see api/v1/__init__.py.
    app.include_router(v1_router)

    logger.info("%s %s ready (%s)", settings.project_name, settings.api_version, settings.environment)
    return app
