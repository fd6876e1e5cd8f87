"""
OpenAI embeddings client implementing the EmbeddingProvider port.

This adapter turns business-summary text into 1536-dimension vectors by
calling the hosted `text-embedding-3-small` model over HTTPS. It:
1. Implements the domain port (EmbeddingProvider)
2. Handles infrastructure concerns (HTTP, auth header, JSON parsing)
3. Translates every transport or payload failure into ProviderError

The constructor accepts an optional `session` parameter:
- In production: a requests.Session() is created
- In tests: inject a fake session that returns canned responses
"""

import logging
import os
from typing import Any, List, Optional

import requests

from ticker_scout.domain.errors import ConfigurationError, ProviderError
from ticker_scout.domain.ports import EmbeddingProvider
from ticker_scout.domain.vectors import (
    EMBEDDING_DIMENSION,
    validate_dimension,
    zero_vector,
)

logger = logging.getLogger(__name__)

DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"
DEFAULT_TIMEOUT_SECONDS = 30.0


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """
    Embedding provider backed by the OpenAI embeddings endpoint.

    Stateless apart from the HTTP session, so a single instance can be shared
    by the pipeline's worker threads and by request handlers.

    Usage:
        # Production
        provider = OpenAIEmbeddingProvider(api_key="sk-...")
        vector = provider.embed("Designs and sells consumer electronics.")

        # Testing (with fake session)
        provider = OpenAIEmbeddingProvider(api_key="test", session=fake_session)
    """

    BASE_URL = "https://api.openai.com/v1/embeddings"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_EMBEDDING_MODEL,
        session: Optional[Any] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        dimension: int = EMBEDDING_DIMENSION,
    ) -> None:
        """
        Initialize the provider.

        Args:
            api_key: OpenAI API key. Falls back to the OPENAI_API_KEY
                     environment variable.
            model: Embedding model identifier
            session: Optional HTTP session for dependency injection.
                     If None, creates a new requests.Session().
            timeout: Per-request timeout in seconds
            dimension: Expected vector length

        Raises:
            ConfigurationError: If no API key is available
        """
        self._api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not self._api_key:
            raise ConfigurationError(
                "OPENAI_API_KEY is not set; cannot generate embeddings"
            )

        self._model = model
        self._timeout = timeout
        self._dimension = dimension
        self._session = session if session is not None else requests.Session()

    def embed(self, text: str) -> List[float]:
        """
        Generate an embedding for `text`.

        Args:
            text: Source text (a company's business summary or a search query)

        Returns:
            List of floats with exactly `dimension` components

        Raises:
            ProviderError: If the API request fails or the payload is malformed
            DimensionError: If the API returns a vector of the wrong length
        """
        trimmed = (text or "").strip()
        if not trimmed:
            return zero_vector(self._dimension)

        payload = {
            "model": self._model,
            "input": trimmed,
            "encoding_format": "float",
        }
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

        try:
            response = self._session.post(
                self.BASE_URL, json=payload, headers=headers, timeout=self._timeout
            )
            response.raise_for_status()
            data = response.json()
        except Exception as e:
            raise ProviderError(f"OpenAI embeddings request failed: {e}") from e

        try:
            embedding = [float(x) for x in data["data"][0]["embedding"]]
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise ProviderError(f"Malformed embeddings response: {e}") from e

        validate_dimension(embedding, self._dimension)
        return embedding

    def get_model_name(self) -> str:
        """Identifier of the embedding model."""
        return self._model
