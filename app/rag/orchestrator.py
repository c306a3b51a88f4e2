"""Query orchestrator: the single entry point for workout questions.

Stages run strictly in order:
START → CLASSIFY → (DATE_RETRIEVE | SEMANTIC_RETRIEVE) → SYNTHESIZE → GENERATE → DONE

Classification problems never abort a query (they fall back to semantic
search). Retrieval and generation failures propagate as QueryPipelineError.
"""

from datetime import date, datetime, timezone

from loguru import logger

from app.rag.answer import AnswerGenerator
from app.rag.context import synthesize_context
from app.rag.date_range import DateRangeExtractor
from app.rag.retriever import WorkoutRetriever
from app.rag.types import QueryStage


class QueryOrchestrator:
    """Coordinates extraction, retrieval, synthesis and generation.

    Holds only process-wide collaborators; every per-query value is local
    to handle_query, so one instance serves concurrent requests.
    """

    def __init__(
        self,
        date_range_extractor: DateRangeExtractor,
        retriever: WorkoutRetriever,
        answer_generator: AnswerGenerator,
    ) -> None:
        self.date_range_extractor = date_range_extractor
        self.retriever = retriever
        self.answer_generator = answer_generator

    async def handle_query(self, query: str, user_id: str, today: date | None = None) -> str:
        """Answer a free-text question about the user's workouts.

        Args:
            query: User question
            user_id: Owner of the workouts to search
            today: Current date for relative reasoning (defaults to UTC today)

        Returns:
            Answer text

        Raises:
            RetrievalFailure: If workout retrieval fails
            GenerationFailure: If answer generation fails
        """
        if today is None:
            today = datetime.now(timezone.utc).date()

        log = logger.bind(user_id=user_id)
        log.bind(stage=QueryStage.START.value).info("Processing query: {!r}", query)

        log.bind(stage=QueryStage.CLASSIFY.value).debug("Classifying query")
        date_range = await self.date_range_extractor.extract_date_range(query, today)

        if date_range is not None:
            log.bind(stage=QueryStage.DATE_RETRIEVE.value).info(
                f"Date query detected. Range: {date_range.start_date} to {date_range.end_date}"
            )
            records = self.retriever.retrieve_by_date_range(user_id, date_range)
        else:
            log.bind(stage=QueryStage.SEMANTIC_RETRIEVE.value).info("Searching for relevant workouts by similarity")
            records = await self.retriever.retrieve_by_similarity(user_id, query)

        log.bind(stage=QueryStage.SYNTHESIZE.value).info(f"Found {len(records)} relevant records")
        context = synthesize_context(records)

        log.bind(stage=QueryStage.GENERATE.value).debug("Generating answer")
        answer = await self.answer_generator.answer(query, context, today)

        log.bind(stage=QueryStage.DONE.value, answer_length=len(answer)).info("Query answered")
        return answer
