"""
Tests for the /api/v1 routes.

The app is created without its lifespan and given a container built from
in-memory fakes, so no database or network is touched.
"""

from typing import List
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from ticker_scout.container import ServiceContainer
from ticker_scout.domain.entities import Company, SimilarityResult
from ticker_scout.domain.errors import BackendConnectionError
from ticker_scout.main import create_app


COMPANIES = [
    Company(id=1, symbol="AAPL", short_name="Apple Inc.", sector="Technology", market_cap=3.0e12,
            long_business_summary="Designs smartphones.", has_embedding=True, embedding=b"\x00" * 8),
    Company(id=2, symbol="XOM", short_name="Exxon Mobil", sector="Energy", market_cap=4.5e11,
            long_business_summary="Produces oil.", has_embedding=True),
]


def make_catalog(embedded: int = 2) -> Mock:
    catalog = Mock()
    catalog.count_with_embeddings.return_value = embedded
    catalog.find_many.return_value = list(COMPANIES)
    catalog.find_by_ids.return_value = list(COMPANIES)
    catalog.search_text.return_value = [COMPANIES[1]]
    catalog.list_sectors.return_value = ["Energy", "Technology"]
    return catalog


def make_vector_index() -> Mock:
    vector_index = Mock()
    vector_index.supports_filtered_search = False
    vector_index.search_similar.return_value = [
        SimilarityResult(company_id=2, similarity=0.9),
        SimilarityResult(company_id=1, similarity=0.6),
    ]
    vector_index.is_ready.return_value = True
    return vector_index


def make_client(catalog=None, vector_index=None) -> TestClient:
    provider = Mock()
    provider.embed.return_value = [0.1] * 1536

    app = create_app(use_lifespan=False)
    app.state.container = ServiceContainer(
        catalog=catalog or make_catalog(),
        vector_index=vector_index or make_vector_index(),
        embedding_provider=provider,
    )
    return TestClient(app)


class TestSearchEndpoint:
    def test_filter_only_without_query(self):
        catalog = make_catalog()
        client = make_client(catalog=catalog)

        response = client.get("/api/v1/search", params={"sector": "Technology", "minMarketCap": 1e9})

        assert response.status_code == 200
        body = response.json()
        assert body["search_mode"] == "filter_only"
        assert body["total"] == 2
        assert [r["company"]["symbol"] for r in body["results"]] == ["AAPL", "XOM"]
        assert "embedding" not in body["results"][0]["company"]
        filters, limit = catalog.find_many.call_args.args
        assert filters.sector == "Technology"
        assert filters.min_market_cap == 1e9
        assert limit == 50

    def test_semantic_search(self):
        client = make_client()

        response = client.get("/api/v1/search", params={"q": "oil producers", "limit": 5})

        body = response.json()
        assert response.status_code == 200
        assert body["search_mode"] == "vector_resolved"
        assert body["degraded"] is False
        assert [(r["company"]["symbol"], r["rank"]) for r in body["results"]] == [("XOM", 1), ("AAPL", 2)]
        assert body["results"][0]["similarity"] == pytest.approx(0.9)

    def test_degraded_search_reports_reason(self):
        client = make_client(catalog=make_catalog(embedded=0))

        body = client.get("/api/v1/search", params={"q": "oil"}).json()

        assert body["search_mode"] == "text_fallback"
        assert body["degraded"] is True
        assert body["degradation_reason"]

    @pytest.mark.parametrize(
        "params",
        [
            {"limit": 0},
            {"limit": 1001},
            {"minMarketCap": 10, "maxMarketCap": 1},
        ],
    )
    def test_invalid_parameters_return_400(self, params):
        response = make_client().get("/api/v1/search", params=params)

        assert response.status_code == 400

    def test_backend_unavailable_returns_503(self):
        catalog = make_catalog()
        catalog.find_many.side_effect = BackendConnectionError("pool exhausted")

        response = make_client(catalog=catalog).get("/api/v1/search")

        assert response.status_code == 503
        assert "pool exhausted" in response.json()["detail"]


def test_sectors():
    response = make_client().get("/api/v1/sectors")

    assert response.status_code == 200
    assert response.json() == {"sectors": ["Energy", "Technology"]}


def test_sectors_unavailable():
    catalog = make_catalog()
    catalog.list_sectors.side_effect = RuntimeError("database is locked")

    response = make_client(catalog=catalog).get("/api/v1/sectors")

    assert response.status_code == 503


class TestHealth:
    def test_healthy(self):
        body = make_client().get("/api/v1/health").json()

        assert body == {
            "status": "ok",
            "components": {"vector_index": True, "catalog": True},
            "overall": True,
        }

    def test_degraded_when_vector_index_missing(self):
        vector_index = make_vector_index()
        vector_index.is_ready.return_value = False

        body = make_client(vector_index=vector_index).get("/api/v1/health").json()

        assert body["status"] == "degraded"
        assert body["overall"] is False


def test_root():
    body = make_client().get("/").json()

    assert body["health"] == "/api/v1/health"
