"""
Wayfinder API — Application Configuration
==========================================

What:  Centralized configuration management using Pydantic Settings.
Why:   Type-safe environment variable loading with validation on startup.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by the application factory; services receive the values
       they need (file paths, URLs) explicitly at construction.

Design Decision:
    Collection file locations are configuration, not constants. Each of
    pois_file / routes_file / users_file / team_file may be set directly; when left
    empty it is derived from data_dir. Tests point data_dir at a temporary
    directory and get a fully isolated set of collections.
"""

from pathlib import Path
from typing import List
from urllib.parse import urlparse

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for development (docker-compose
    with a `graphhopper` service next to the API).
    """

    # ── Data Collections ──────────────────────────────────────────────────
    # What: Directory holding the JSON collections
    # Why relative: Works in both Docker (mounted volume) and local development
    data_dir: str = Field(default="./data")

    # What: Explicit per-collection paths; empty means "<data_dir>/<name>.json"
    pois_file: str = Field(default="")
    routes_file: str = Field(default="")
    users_file: str = Field(default="")
    team_file: str = Field(default="")

    # ── GraphHopper ───────────────────────────────────────────────────────
    # What: Base URL of the routing engine; "/route" is appended per request
    graphhopper_url: str = Field(default="http://graphhopper:8989")

    # What: Connect and total timeout for one routing request, in seconds
    # Why bounded: A hung engine must not hold the request open forever
    graphhopper_timeout: float = Field(default=20.0, ge=1, le=120)

    # ── Authentication & Rate Limiting ────────────────────────────────────
    # What: API-key gate in front of every data endpoint
    auth_enabled: bool = Field(default=True)

    # What: Fixed one-minute window defaults; users may override both
    rate_limit_per_minute: int = Field(default=60, ge=1, le=100000)
    rate_limit_block_minutes: int = Field(default=3, ge=0, le=1440)

    # ── CORS ──────────────────────────────────────────────────────────────
    cors_origins: str = Field(default="http://localhost:8081,http://localhost:8082")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=8000, ge=1024, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @field_validator("graphhopper_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }

    # ── Derived Paths ─────────────────────────────────────────────────────

    def _collection_path(self, explicit: str, name: str) -> Path:
        if explicit:
            return Path(explicit)
        return Path(self.data_dir) / f"{name}.json"

    @property
    def pois_path(self) -> Path:
        return self._collection_path(self.pois_file, "pois")

    @property
    def routes_path(self) -> Path:
        return self._collection_path(self.routes_file, "routes")

    @property
    def users_path(self) -> Path:
        return self._collection_path(self.users_file, "users")

    @property
    def team_path(self) -> Path:
        return self._collection_path(self.team_file, "team")

    def validate_required_for_production(self) -> None:
        """
        What:  Validates that critical settings are usable.
        When:  Called during app startup (lifespan).
        Why:   Surface misconfiguration in the logs instead of as 502s/401s later.
        """
        errors = []
        scheme = urlparse(self.graphhopper_url).scheme
        if scheme not in ("http", "https"):
            errors.append(
                f"GRAPHHOPPER_URL '{self.graphhopper_url}' must be an http(s) URL."
            )
        if self.auth_enabled and not self.users_path.exists():
            errors.append(
                f"AUTH_ENABLED is on but the users file {self.users_path} does not exist. "
                "Every request will be rejected with 401."
            )
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


# Singleton instance — the default configuration for `wayfinder.main:app`
settings = Settings()
