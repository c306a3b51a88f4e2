"""Workout retrieval for the query pipeline.

Two modes, chosen by the orchestrator:
date range (chronological, capped) and semantic similarity (top-k above a
threshold). Both return an empty list when nothing matches.
"""

from loguru import logger

from app.rag.errors import RetrievalFailure
from app.rag.providers.embedding import EmbeddingService
from app.rag.store import SqlWorkoutStore
from app.rag.types import DateRange, QueryStage, RetrievedWorkoutRecord

DEFAULT_MATCH_THRESHOLD = 0.5
DEFAULT_MATCH_COUNT = 5
DEFAULT_MAX_DATE_RANGE_RECORDS = 500


class WorkoutRetriever:
    """Fetches workout records for a user by date range or by similarity."""

    def __init__(
        self,
        store: SqlWorkoutStore,
        embedding_service: EmbeddingService,
        *,
        match_threshold: float = DEFAULT_MATCH_THRESHOLD,
        match_count: int = DEFAULT_MATCH_COUNT,
        max_date_range_records: int = DEFAULT_MAX_DATE_RANGE_RECORDS,
    ):
        """Initialize retriever.

        Args:
            store: Workout store scoped per call by user_id
            embedding_service: Embeds question text for similarity search
            match_threshold: Default minimum similarity for semantic matches
            match_count: Default maximum number of semantic matches
            max_date_range_records: Cap on date-range results
        """
        self.store = store
        self.embedding_service = embedding_service
        self.match_threshold = match_threshold
        self.match_count = match_count
        self.max_date_range_records = max_date_range_records

    def retrieve_by_date_range(self, user_id: str, date_range: DateRange) -> list[RetrievedWorkoutRecord]:
        """Records dated within date_range (inclusive), oldest first.

        Raises:
            RetrievalFailure: If the store query fails
        """
        try:
            records = self.store.workouts_between(
                user_id,
                date_range.start_date,
                date_range.end_date,
                self.max_date_range_records,
            )
        except Exception as e:
            logger.exception(f"Date range retrieval failed: {e}")
            raise RetrievalFailure(QueryStage.DATE_RETRIEVE, f"date range query failed: {e}") from e

        if len(records) >= self.max_date_range_records:
            logger.warning(
                "Date range retrieval hit record cap",
                user_id=user_id,
                cap=self.max_date_range_records,
            )
        return records

    async def retrieve_by_similarity(
        self,
        user_id: str,
        query_text: str,
        threshold: float | None = None,
        top_k: int | None = None,
    ) -> list[RetrievedWorkoutRecord]:
        """Up to top_k records with similarity >= threshold, most similar first.

        The query text is embedded exactly once.

        Raises:
            RetrievalFailure: If embedding or the store query fails
        """
        threshold = self.match_threshold if threshold is None else threshold
        top_k = self.match_count if top_k is None else top_k

        try:
            query_embedding = await self.embedding_service.embed_text(query_text)
        except Exception as e:
            logger.exception(f"Query embedding failed: {e}")
            raise RetrievalFailure(QueryStage.SEMANTIC_RETRIEVE, f"failed to embed query: {e}") from e

        try:
            return self.store.match_workouts(user_id, query_embedding, threshold, top_k)
        except Exception as e:
            logger.exception(f"Similarity retrieval failed: {e}")
            raise RetrievalFailure(QueryStage.SEMANTIC_RETRIEVE, f"similarity query failed: {e}") from e
