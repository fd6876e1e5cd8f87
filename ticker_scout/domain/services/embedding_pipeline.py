"""
Embedding pipeline for the company catalog.

This service orchestrates the offline embedding run:
1. Reset the vector index (full wipe + distance self-test)
2. Read every company with a business summary from the catalog
3. Embed summaries in fixed-size batches, concurrently within a batch
4. Store each vector in the index and mirror it into the catalog
5. Return a summary of the run

It is run once per catalog refresh, never concurrently with itself.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional

from ..entities import Company
from ..ports import CompanyCatalogRepository, EmbeddingProvider, VectorIndex
from ..value_objects import EmbeddingRunSummary
from ..vectors import serialize_vector

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 10
DEFAULT_BATCH_DELAY_SECONDS = 1.0


class EmbeddingPipeline:
    """
    Batch orchestrator that populates the vector index.

    Within a batch, one embedding call per company is dispatched to a thread
    pool and the batch joins on all of them before moving on, so a batch
    costs roughly the slowest single call. Batches run strictly in sequence
    with a fixed delay between them as rate-limit courtesy toward the
    embedding provider.

    Per-company failures are logged and skipped. Index initialization and
    catalog read failures abort the run.
    """

    def __init__(
        self,
        catalog: CompanyCatalogRepository,
        vector_index: VectorIndex,
        embedding_provider: EmbeddingProvider,
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_delay_seconds: float = DEFAULT_BATCH_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Initialize the pipeline with required dependencies.

        Args:
            catalog: Source of companies and target of the embedding mirror
            vector_index: Index that receives the vectors
            embedding_provider: Text-to-vector provider
            batch_size: Companies per batch
            batch_delay_seconds: Pause between consecutive batches
            sleep: Sleep function (injectable for tests)
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        if batch_delay_seconds < 0:
            raise ValueError(
                f"batch_delay_seconds cannot be negative, got {batch_delay_seconds}"
            )

        self._catalog = catalog
        self._vector_index = vector_index
        self._embedding_provider = embedding_provider
        self._batch_size = batch_size
        self._batch_delay_seconds = batch_delay_seconds
        self._sleep = sleep

    def run(self) -> EmbeddingRunSummary:
        """
        Run the full embedding generation job.

        Returns:
            EmbeddingRunSummary with processed/total counts

        Raises:
            InitializationError: If the vector index cannot be (re)created
            RuntimeError: If the catalog cannot be read
        """
        logger.info("Starting embedding generation")

        self._vector_index.initialize()
        logger.info("Vector index initialized")

        companies = self._catalog.find_companies_needing_embedding()
        total = len(companies)
        logger.info(f"Found {total} companies to process")

        batches = [
            companies[i : i + self._batch_size]
            for i in range(0, total, self._batch_size)
        ]

        n_processed = 0
        errors: List[str] = []

        for batch_number, batch in enumerate(batches, start=1):
            logger.info(
                f"Processing batch {batch_number}/{len(batches)} ({len(batch)} companies)"
            )
            for error in self._process_batch(batch):
                if error is None:
                    n_processed += 1
                else:
                    errors.append(error)
            logger.info(f"Processed {n_processed}/{total} companies")

            if batch_number < len(batches):
                logger.debug(
                    f"Waiting {self._batch_delay_seconds}s before next batch"
                )
                self._sleep(self._batch_delay_seconds)

        logger.info(
            f"Embedding generation complete: {n_processed}/{total} processed, "
            f"{len(errors)} failed"
        )

        return EmbeddingRunSummary(
            n_total=total,
            n_processed=n_processed,
            n_failed=len(errors),
            n_batches=len(batches),
            errors=errors,
        )

    def _process_batch(self, batch: List[Company]) -> List[Optional[str]]:
        """Embed and store one batch concurrently; return one error (or None) per company."""
        with ThreadPoolExecutor(max_workers=len(batch)) as executor:
            futures = [executor.submit(self._process_company, c) for c in batch]

        outcomes: List[Optional[str]] = []
        for company, future in zip(batch, futures):
            exc = future.exception()
            if exc is None:
                outcomes.append(None)
            else:
                message = f"Error processing {company.symbol}: {exc}"
                logger.warning(message)
                outcomes.append(message)
        return outcomes

    def _process_company(self, company: Company) -> None:
        logger.debug(f"Generating embedding for {company.symbol} ({company.display_name})")

        vector = self._embedding_provider.embed(company.long_business_summary or "")
        self._vector_index.store(company.id, vector)
        self._catalog.update_embedding_flag(company.id, serialize_vector(vector))
