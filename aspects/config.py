"""Runtime configuration — env-driven via pydantic-settings.

Reads from a ``.env`` file and ``ASPECTS_*`` environment variables.  The
registry URL has one extra layer: when no environment override is given,
the ``registryUrl`` setting stored in the global state document wins over
the built-in default (see :func:`effective_registry_url`).
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_REGISTRY_URL = "https://getaspects.com/api/v1"
DEFAULT_FALLBACK_INDEX_URL = (
    "https://raw.githubusercontent.com/aimorphist/aspects/main/registry/index.json"
)
DEFAULT_SOURCE_REPO_RAW_URL = "https://raw.githubusercontent.com"


class AspectsSettings(BaseSettings):
    """Settings with environment variable overrides.

    Examples
    --------
    Override via environment::

        export ASPECTS_HOME=/data/aspects
        export ASPECTS_REGISTRY_URL=http://localhost:8787/api/v1
        export ASPECTS_LOG_LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="ASPECTS_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage
    home: Path = Path.home() / ".aspects"

    # Remote endpoints
    registry_url: str | None = None
    fallback_index_url: str = DEFAULT_FALLBACK_INDEX_URL
    source_repo_raw_url: str = DEFAULT_SOURCE_REPO_RAW_URL

    # Network policy
    request_timeout_seconds: float = 30.0
    max_retries: int = 3
    backoff_seconds: float = 1.0

    # Cache TTLs
    index_ttl_seconds: float = 300.0
    reference_ttl_seconds: float = 86400.0

    # Limits
    max_artifact_size_bytes: int = 51200

    # Observability
    log_level: str = "WARNING"

    def effective_registry_url(self, stored: str | None = None) -> str:
        """Return the registry base URL without a trailing slash.

        Precedence: ``ASPECTS_REGISTRY_URL`` > *stored* (the global state
        ``registryUrl`` setting) > :data:`DEFAULT_REGISTRY_URL`.
        """
        url = self.registry_url or stored or DEFAULT_REGISTRY_URL
        return url.rstrip("/")
