"""Error types for the workout query pipeline.

Distinct error types keep failure kinds apart in the logs even though the
HTTP layer collapses every fatal one into a single internal error.
"""

from app.rag.types import QueryStage


class ProviderError(Exception):
    """Raised when an embedding or generation provider call fails or times out."""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        self.message = message
        super().__init__(f"{provider}: {message}")


class ClassificationFailure(Exception):
    """Raised when the date-range classification is unusable.

    Never leaves the date-range extractor: it is downgraded to
    "not a date query".
    """


class QueryPipelineError(Exception):
    """Base class for errors that abort a query."""

    def __init__(self, stage: QueryStage, message: str):
        self.stage = stage
        self.message = message
        super().__init__(f"[{stage.value}] {message}")


class RetrievalFailure(QueryPipelineError):
    """Raised when the workout store or the query embedding call fails."""


class GenerationFailure(QueryPipelineError):
    """Raised when the answer generation call fails."""
