"""Canonical types for the workout query pipeline.

All pipeline values are frozen dataclasses: they are created per request,
never mutated, and discarded once the answer is returned.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum

# Newline/dash-delimited sentences handed to the answer model
ContextBlock = str


@dataclass(frozen=True)
class DateRange:
    """Inclusive calendar range a question refers to."""

    start_date: date
    end_date: date

    def __post_init__(self) -> None:
        if self.start_date > self.end_date:
            raise ValueError(f"start_date {self.start_date} is after end_date {self.end_date}")


@dataclass(frozen=True)
class DateQuery:
    """The question is about a specific time period."""

    date_range: DateRange


@dataclass(frozen=True)
class NotDateQuery:
    """The question needs semantic search instead of a date filter."""


ClassificationResult = DateQuery | NotDateQuery


@dataclass(frozen=True)
class RetrievedWorkoutRecord:
    """Read-only projection of one logged set.

    similarity_score is only set for semantic-search results (higher is
    more relevant).
    """

    workout_date: date
    exercise_name: str
    reps: int
    weight_kg: float
    similarity_score: float | None = None


class QueryStage(str, Enum):
    """Stages a query moves through, in order."""

    START = "start"
    CLASSIFY = "classify"
    DATE_RETRIEVE = "date_retrieve"
    SEMANTIC_RETRIEVE = "semantic_retrieve"
    SYNTHESIZE = "synthesize"
    GENERATE = "generate"
    DONE = "done"
