"""Entry point for serving the Local Services API.

Configuration is read from environment variables (see
``local_services_api/app/core/config.py``); ``JWT_SECRET`` and
``JWT_REFRESH_SECRET`` are required.  Host and port come from ``HOST``
and ``PORT`` (defaults ``0.0.0.0`` and ``3001``).

Usage:
    python run.py
"""
import asyncio
import logging
import os

from uvicorn import Config, Server


async def main() -> None:
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "3001"))
    config = Config(
        app="local_services_api.app.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=False,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
    server = Server(config)
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        logging.getLogger(__name__).info("Server stopped")
