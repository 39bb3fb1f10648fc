"""
Application configuration.

The ``Settings`` dataclass is built once at start‑up from environment
variables via ``Settings.from_env`` and then passed explicitly to
``create_app``.  It is frozen so that no component can mutate it at
runtime, and domain code never reads the process environment itself:
the token service, the authorization gate and the database dependency
all receive their values from the instance stored on
``app.state.settings``.
"""

import os
from dataclasses import dataclass


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


@dataclass(frozen=True)
class Settings:
    """Immutable application settings."""

    # Signing secrets for the two token classes.  They must differ so that
    # a leaked refresh secret cannot forge access tokens and vice versa.
    jwt_secret: str
    jwt_refresh_secret: str

    project_name: str = "Local Services API"
    api_version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    log_file: str | None = None

    # Path to the SQLite database file.  Relative paths are resolved by
    # ``core.db`` against the current working directory.
    database_url: str = "local_services.db"

    access_token_ttl: int = 15 * 60
    refresh_token_ttl: int = 7 * 24 * 60 * 60

    cors_origin: str = "http://localhost:5173"

    def __post_init__(self) -> None:
        if not self.jwt_secret or not self.jwt_refresh_secret:
            raise RuntimeError("Configuration Error: JWT secrets must not be empty")
        if self.jwt_secret == self.jwt_refresh_secret:
            raise RuntimeError(
                "Configuration Error: JWT_SECRET and JWT_REFRESH_SECRET must differ"
            )
        if self.access_token_ttl <= 0 or self.refresh_token_ttl <= 0:
            raise RuntimeError("Configuration Error: token lifetimes must be positive")

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables.

        ``JWT_SECRET`` and ``JWT_REFRESH_SECRET`` are required.  Every
        other variable falls back to the dataclass default.
        """
        missing = [name for name in ("JWT_SECRET", "JWT_REFRESH_SECRET") if not os.getenv(name)]
        if missing:
            raise RuntimeError(
                f"Configuration Error: missing required environment variable(s): {', '.join(missing)}"
            )
        try:
            return cls(
                jwt_secret=os.environ["JWT_SECRET"],
                jwt_refresh_secret=os.environ["JWT_REFRESH_SECRET"],
                project_name=os.getenv("PROJECT_NAME", cls.project_name),
                api_version=os.getenv("API_VERSION", cls.api_version),
                environment=os.getenv("ENVIRONMENT", cls.environment),
                debug=_env_bool("DEBUG"),
                log_level=os.getenv("LOG_LEVEL", cls.log_level),
                log_file=os.getenv("LOG_FILE") or None,
                database_url=os.getenv("DATABASE_URL", cls.database_url),
                access_token_ttl=int(os.getenv("ACCESS_TOKEN_TTL", str(cls.access_token_ttl))),
                refresh_token_ttl=int(os.getenv("REFRESH_TOKEN_TTL", str(cls.refresh_token_ttl))),
                cors_origin=os.getenv("CORS_ORIGIN", cls.cors_origin),
            )
        except ValueError as e:
            raise RuntimeError(f"Configuration Error: {e}") from e
