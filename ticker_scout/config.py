"""
Environment-driven settings.

All knobs come from environment variables so the same code runs against an
embedded SQLite file in development and a managed PostgreSQL in production:

    DATABASE_URL           file:./data/catalog.db | postgresql://...
    OPENAI_API_KEY         credential for the embeddings API
    EMBEDDING_MODEL        default text-embedding-3-small
    EMBEDDING_BATCH_SIZE   default 10
    EMBEDDING_BATCH_DELAY  seconds between batches, default 1.0
    PG_POOL_MIN / PG_POOL_MAX / PG_CONNECT_TIMEOUT / PG_IDLE_TIMEOUT
"""

import os
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, TypeVar

from ticker_scout.domain.errors import ConfigurationError
from ticker_scout.infrastructure.external.openai_embedding_provider import (
    DEFAULT_EMBEDDING_MODEL,
)

T = TypeVar("T")


@dataclass(frozen=True)
class Settings:
    database_url: str
    openai_api_key: Optional[str] = None
    embedding_model: str = DEFAULT_EMBEDDING_MODEL
    embedding_batch_size: int = 10
    embedding_batch_delay: float = 1.0
    pg_pool_min: int = 2
    pg_pool_max: int = 10
    pg_connect_timeout: int = 3
    pg_idle_timeout: float = 60.0

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Raises:
            ConfigurationError: If DATABASE_URL is missing or a numeric value
                                cannot be parsed
        """
        env = os.environ if environ is None else environ

        database_url = (env.get("DATABASE_URL") or "").strip()
        if not database_url:
            raise ConfigurationError("DATABASE_URL environment variable is required")

        return cls(
            database_url=database_url,
            openai_api_key=env.get("OPENAI_API_KEY") or None,
            embedding_model=env.get("EMBEDDING_MODEL") or DEFAULT_EMBEDDING_MODEL,
            embedding_batch_size=_parse(env, "EMBEDDING_BATCH_SIZE", int, 10),
            embedding_batch_delay=_parse(env, "EMBEDDING_BATCH_DELAY", float, 1.0),
            pg_pool_min=_parse(env, "PG_POOL_MIN", int, 2),
            pg_pool_max=_parse(env, "PG_POOL_MAX", int, 10),
            pg_connect_timeout=_parse(env, "PG_CONNECT_TIMEOUT", int, 3),
            pg_idle_timeout=_parse(env, "PG_IDLE_TIMEOUT", float, 60.0),
        )

    def require_openai_api_key(self) -> str:
        """Return the API key or fail fast when it is missing."""
        if not self.openai_api_key:
            raise ConfigurationError(
                "OPENAI_API_KEY environment variable is required"
            )
        return self.openai_api_key


def _parse(env: Mapping[str, str], name: str, cast: Callable[[str], T], default: T) -> T:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw.strip())
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a valid {cast.__name__}, got {raw!r}") from e
