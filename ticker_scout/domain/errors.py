"""
Error taxonomy for the semantic search core.

Adapters translate library-specific failures (requests, sqlite3, psycopg2)
into these types so that domain services can decide what is fatal, what is
skipped, and what degrades to a fallback path.
"""


class TickerScoutError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(TickerScoutError):
    """A required setting (connection string, API key) is missing or invalid."""


class ProviderError(TickerScoutError):
    """The external embedding API call failed (network, auth, quota, payload)."""


class DimensionError(TickerScoutError, ValueError):
    """
    A vector does not have the expected number of components.

    Dimension mismatches are never truncated or padded; they always propagate.
    """

    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Embedding dimension mismatch: expected {expected}, got {actual}"
        )


class BackendConnectionError(TickerScoutError, ConnectionError):
    """
    The storage backend could not be reached.

    Raised on pool exhaustion, connect timeouts and dropped connections.
    Never retried internally.
    """


class InitializationError(TickerScoutError):
    """Vector storage setup or its distance self-test failed."""
