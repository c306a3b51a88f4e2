"""LLM date-range extraction for workout questions.

Decides whether a question is about a specific time period and, if so,
which inclusive calendar range. Relative phrases ("this week", "yesterday")
are resolved by the model against the supplied current date; nothing here
does calendar arithmetic.
"""

from datetime import date

from loguru import logger
from pydantic import BaseModel, Field

from app.rag.errors import ClassificationFailure, ProviderError
from app.rag.providers.generation import GenerationService
from app.rag.types import ClassificationResult, DateQuery, DateRange, NotDateQuery


class DateRangeClassification(BaseModel):
    """Structured output schema for date-range classification.

    This schema is authoritative - the LLM must conform to it exactly.
    """

    is_date_query: bool = Field(description="Whether the query is asking about a specific time period")
    start_date: str | None = Field(
        default=None,
        description="Start date in YYYY-MM-DD format (only if is_date_query is true)",
    )
    end_date: str | None = Field(
        default=None,
        description="End date in YYYY-MM-DD format (only if is_date_query is true)",
    )


def build_date_range_prompt(query: str, current_date: date) -> str:
    return f"""Analyze the user query and determine if it's asking about a specific time period.

Current date: {current_date.isoformat()}

User query: "{query}"

Instructions:
- If the query asks about a specific time period (like "this week", "last month", "yesterday", "in November"), set is_date_query to true and provide start_date and end_date.
- If the query is NOT about a time period (like "heaviest weight", "best exercise", "total volume"), set is_date_query to false.
- Dates must be in YYYY-MM-DD format and resolved against the current date.

Examples (for current date 2025-11-08):
- "what are my workouts this week?" → is_date_query: true, start_date: "2025-11-03", end_date: "2025-11-08"
- "what did I do yesterday?" → is_date_query: true, start_date: "2025-11-07", end_date: "2025-11-07"
- "heaviest bicep curl" → is_date_query: false
"""


def _parse_iso_date(value: str | None, field_name: str) -> date:
    if not value:
        raise ClassificationFailure(f"is_date_query is true but {field_name} is missing")
    try:
        return date.fromisoformat(value.strip())
    except ValueError as e:
        raise ClassificationFailure(f"{field_name} is not a YYYY-MM-DD date: {value!r}") from e


def classify(response: DateRangeClassification) -> ClassificationResult:
    """Convert the raw provider output into DateQuery | NotDateQuery.

    Raises:
        ClassificationFailure: If a date query is missing a date, has an
            unparseable date, or has start_date after end_date
    """
    if not response.is_date_query:
        return NotDateQuery()

    start = _parse_iso_date(response.start_date, "start_date")
    end = _parse_iso_date(response.end_date, "end_date")
    if start > end:
        raise ClassificationFailure(f"start_date {start} is after end_date {end}")
    return DateQuery(date_range=DateRange(start_date=start, end_date=end))


class DateRangeExtractor:
    """Classifies questions as time-scoped using the generation service."""

    def __init__(self, generation_service: GenerationService) -> None:
        self.generation_service = generation_service

    async def extract_date_range(self, query: str, current_date: date) -> DateRange | None:
        """Return the range a question refers to, or None for semantic search.

        Never raises: provider errors and unusable classifications fall back
        to None so the query can still be answered by similarity search.
        """
        prompt = build_date_range_prompt(query, current_date)
        try:
            response = await self.generation_service.generate_structured(prompt, DateRangeClassification)
            result = classify(response)
        except (ProviderError, ClassificationFailure) as e:
            logger.warning(f"Date range extraction failed, falling back to semantic search: {e}")
            return None
        except Exception as e:
            logger.exception(f"Unexpected error during date range extraction: {e}")
            return None

        if isinstance(result, NotDateQuery):
            logger.debug("Query classified as not time-scoped")
            return None

        logger.info(
            "Query classified as time-scoped",
            start_date=result.date_range.start_date.isoformat(),
            end_date=result.date_range.end_date.isoformat(),
        )
        return result.date_range
