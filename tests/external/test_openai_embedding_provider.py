"""
Tests for OpenAIEmbeddingProvider adapter.

Uses FakeSession and FakeResponse to test without network calls.
Covers: zero vector for blank text, request payload, error translation,
dimension validation, credential handling.
"""

from typing import Any, Dict, List, Optional

import pytest
import requests

from ticker_scout.domain.errors import ConfigurationError, DimensionError, ProviderError
from ticker_scout.infrastructure.external.openai_embedding_provider import (
    OpenAIEmbeddingProvider,
)


# =============================================================================
# Fake HTTP Session and Response for testing
# =============================================================================


class FakeResponse:
    """Fake HTTP response for testing."""

    def __init__(
        self,
        json_data: Optional[Dict[str, Any]] = None,
        status_code: int = 200,
        raise_on_json: bool = False,
    ):
        self._json_data = json_data or {}
        self.status_code = status_code
        self._raise_on_json = raise_on_json

    def json(self) -> Dict[str, Any]:
        if self._raise_on_json:
            raise ValueError("Invalid JSON")
        return self._json_data

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")


class FakeSession:
    """Fake HTTP session recording POST calls."""

    def __init__(self, response: Optional[FakeResponse] = None, error: Optional[Exception] = None):
        self._response = response or FakeResponse()
        self._error = error
        self.calls: List[Dict[str, Any]] = []

    def post(self, url: str, json=None, headers=None, timeout=None) -> FakeResponse:
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if self._error is not None:
            raise self._error
        return self._response


def embedding_payload(vector: List[float]) -> Dict[str, Any]:
    return {"object": "list", "data": [{"object": "embedding", "index": 0, "embedding": vector}]}


def make_provider(session: FakeSession, **kwargs) -> OpenAIEmbeddingProvider:
    return OpenAIEmbeddingProvider(api_key="sk-test", session=session, **kwargs)


# =============================================================================
# Tests
# =============================================================================


class TestEmbed:
    def test_returns_embedding_and_sends_payload(self):
        vector = [0.01] * 1536
        session = FakeSession(FakeResponse(embedding_payload(vector)))
        provider = make_provider(session)

        result = provider.embed("  Designs consumer electronics.  ")

        assert result == vector
        (call,) = session.calls
        assert call["url"] == "https://api.openai.com/v1/embeddings"
        assert call["json"] == {
            "model": "text-embedding-3-small",
            "input": "Designs consumer electronics.",
            "encoding_format": "float",
        }
        assert call["headers"]["Authorization"] == "Bearer sk-test"
        assert call["timeout"] == 30.0

    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    def test_blank_text_returns_zero_vector_without_call(self, text):
        session = FakeSession()
        provider = make_provider(session)

        result = provider.embed(text)

        assert result == [0.0] * 1536
        assert session.calls == []

    def test_http_error_raises_provider_error(self):
        session = FakeSession(FakeResponse(status_code=429))

        with pytest.raises(ProviderError, match="429"):
            make_provider(session).embed("text")

    def test_transport_error_raises_provider_error(self):
        session = FakeSession(error=requests.ConnectionError("connection reset"))

        with pytest.raises(ProviderError, match="connection reset"):
            make_provider(session).embed("text")

    def test_invalid_json_raises_provider_error(self):
        session = FakeSession(FakeResponse(raise_on_json=True))

        with pytest.raises(ProviderError):
            make_provider(session).embed("text")

    def test_missing_data_raises_provider_error(self):
        session = FakeSession(FakeResponse({"data": []}))

        with pytest.raises(ProviderError, match="Malformed"):
            make_provider(session).embed("text")

    def test_wrong_dimension_raises_dimension_error(self):
        session = FakeSession(FakeResponse(embedding_payload([0.1, 0.2, 0.3])))

        with pytest.raises(DimensionError):
            make_provider(session).embed("text")

    def test_custom_model(self):
        session = FakeSession(FakeResponse(embedding_payload([0.0] * 1536)))
        provider = make_provider(session, model="text-embedding-custom")

        provider.embed("text")

        assert session.calls[0]["json"]["model"] == "text-embedding-custom"
        assert provider.get_model_name() == "text-embedding-custom"


class TestCredentials:
    def test_missing_key_raises_configuration_error(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

        with pytest.raises(ConfigurationError, match="OPENAI_API_KEY"):
            OpenAIEmbeddingProvider(session=FakeSession())

    def test_key_read_from_environment(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        session = FakeSession(FakeResponse(embedding_payload([0.0] * 1536)))

        OpenAIEmbeddingProvider(session=session).embed("text")

        assert session.calls[0]["headers"]["Authorization"] == "Bearer sk-env"
