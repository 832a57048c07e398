"""Configuration provider following Black Box Design principles."""
import os
from dataclasses import dataclass
from typing import Optional, Protocol

from .options import SessionOptions

STORAGE_BACKENDS = ("memory", "file", "redis")


@dataclass
class StorageConfig:
    """Persistent store configuration."""
    backend: str
    redis_url: str
    save_path: Optional[str]

    def __post_init__(self):
        if self.backend not in STORAGE_BACKENDS:
            raise ValueError(
                f"Unknown session storage backend '{self.backend}'. "
                f"Expected one of: {', '.join(STORAGE_BACKENDS)}"
            )


@dataclass
class APIConfig:
    """API configuration."""
    port: int
    host: str
    debug: bool
    log_level: str


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_session_options(self) -> SessionOptions:
        """Get session engine options."""
        ...

    def get_storage_config(self) -> StorageConfig:
        """Get persistent store configuration."""
        ...

    def get_api_config(self) -> APIConfig:
        """Get API configuration."""
        ...


class EnvConfigProvider:
    """Environment-based configuration provider."""

    def __init__(self, environ: Optional[dict] = None):
        self.environ = os.environ if environ is None else environ

    def get_session_options(self) -> SessionOptions:
        """
        Get session options from SESSION_<OPTION> variables.

        Every SessionOptions field is read from the upper-cased variable,
        e.g. SESSION_COOKIE_LIFETIME; unset variables keep the defaults.
        Values are coerced and validated by the options model.
        """
        values = {}
        for key in SessionOptions.model_fields:
            raw = self.environ.get(f"SESSION_{key.upper()}")
            if raw is not None:
                values[key] = raw
        return SessionOptions(**values)

    def get_storage_config(self) -> StorageConfig:
        """Get persistent store configuration from environment variables."""
        return StorageConfig(
            backend=self.environ.get("SESSION_BACKEND", "memory").lower(),
            redis_url=self.environ.get("REDIS_URL", "redis://localhost:6379/0"),
            save_path=self.environ.get("SESSION_SAVE_PATH"),
        )

    def get_api_config(self) -> APIConfig:
        """Get API configuration from environment variables."""
        return APIConfig(
            port=int(self.environ.get("API_PORT", "8080")),
            host=self.environ.get("API_HOST", "0.0.0.0"),
            debug=self.environ.get("API_DEBUG", "false").lower() == "true",
            log_level=self.environ.get("LOG_LEVEL", "INFO"),
        )
