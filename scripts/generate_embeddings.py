#!/usr/bin/env python3
"""
Embedding Generation Script.

Populates the vector index from the company catalog:
1. Reset the vector index (drop, recreate, distance self-test)
2. Embed every company's business summary in rate-limited batches
3. Store vectors in the index and mirror them into the catalog
4. Optionally run a smoke-test search against the fresh index

Run it once after every catalog refresh. Configuration comes from the
environment (DATABASE_URL, OPENAI_API_KEY, EMBEDDING_BATCH_SIZE, ...).

Usage:
    python -m scripts.generate_embeddings
    python -m scripts.generate_embeddings --database-url file:./data/catalog.db
    python -m scripts.generate_embeddings --smoke-test-query "electric vehicles"

Exit status is 1 when configuration is missing or the run cannot start.
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Optional

project_root = Path(__file__).resolve().parents[1]
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from ticker_scout.config import Settings
from ticker_scout.container import ServiceContainer
from ticker_scout.domain.errors import ConfigurationError, TickerScoutError
from ticker_scout.domain.value_objects import SearchQuery

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def run_smoke_test(container: ServiceContainer, query_text: str) -> None:
    """Run one search and log the top hits."""
    logger.info(f"Running smoke test with query: '{query_text}'")
    response = container.search_service().search(SearchQuery(text=query_text, limit=5))

    logger.info(f"Smoke test mode: {response.search_mode} ({len(response.results)} results)")
    if response.degraded:
        logger.warning(f"Smoke test degraded: {response.degradation_reason}")
    for result in response.results:
        similarity = (
            f"{result.similarity:.4f}" if result.similarity is not None else "n/a"
        )
        logger.info(
            f"  {result.rank}. {result.company.symbol} "
            f"({result.company.display_name}) similarity={similarity}"
        )


def main(
    database_url: Optional[str] = None,
    batch_size: Optional[int] = None,
    smoke_test_query: Optional[str] = None,
) -> int:
    """
    Main entry point for the embedding generation script.

    Args:
        database_url: Overrides DATABASE_URL
        batch_size: Overrides EMBEDDING_BATCH_SIZE
        smoke_test_query: Optional query to run after the embeddings are stored

    Returns:
        Process exit status
    """
    environ = dict(os.environ)
    if database_url:
        environ["DATABASE_URL"] = database_url
    if batch_size is not None:
        environ["EMBEDDING_BATCH_SIZE"] = str(batch_size)

    try:
        settings = Settings.from_env(environ)
        container = ServiceContainer.from_settings(settings)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except TickerScoutError as e:
        logger.error(f"Could not connect to the catalog store: {e}")
        return 1

    logger.info("Starting Embedding Generation Pipeline")
    logger.info("Configuration:")
    logger.info(f"  - Model: {settings.embedding_model}")
    logger.info(f"  - Batch size: {settings.embedding_batch_size}")
    logger.info(f"  - Batch delay: {settings.embedding_batch_delay}s")

    try:
        summary = container.embedding_pipeline().run()

        if summary.n_failed:
            logger.warning(f"{summary.n_failed} companies failed to embed")
        logger.info(
            f"Successfully processed {summary.n_processed}/{summary.n_total} companies"
        )

        if smoke_test_query:
            run_smoke_test(container, smoke_test_query)
    except TickerScoutError as e:
        logger.error(f"Embedding generation failed: {e}", exc_info=True)
        return 1
    finally:
        container.close()

    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="Generate company embeddings and populate the vector index",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--database-url",
        type=str,
        default=None,
        help="Connection string (defaults to the DATABASE_URL environment variable)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Companies per batch (defaults to EMBEDDING_BATCH_SIZE or 10)",
    )
    parser.add_argument(
        "--smoke-test-query",
        type=str,
        default=None,
        help="Run a search with this query once embeddings are stored",
    )

    args = parser.parse_args()

    sys.exit(
        main(
            database_url=args.database_url,
            batch_size=args.batch_size,
            smoke_test_query=(args.smoke_test_query or "").strip() or None,
        )
    )
