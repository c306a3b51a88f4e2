from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel

from app.api.dependencies.auth import get_current_user_id
from app.api.dependencies.rag import get_embedding_service, get_query_orchestrator, get_workout_store
from app.rag.errors import ProviderError, QueryPipelineError
from app.rag.orchestrator import QueryOrchestrator
from app.rag.providers.embedding import EmbeddingService
from app.rag.store import SqlWorkoutStore

router = APIRouter(prefix="/api/v1", tags=["chat"])

INTERNAL_ERROR_MESSAGE = "Something went wrong"


class ChatRequest(BaseModel):
    query: str | None = None


class ChatResponse(BaseModel):
    answer: str


class BackfillResponse(BaseModel):
    embedded: int


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post("/chat", response_model=ChatResponse)
async def chat(
    req: ChatRequest,
    user_id: str = Depends(get_current_user_id),
    orchestrator: QueryOrchestrator = Depends(get_query_orchestrator),
):
    """Answer a natural-language question about the user's workouts."""
    if not req.query or not req.query.strip():
        return _error(status.HTTP_400_BAD_REQUEST, "Query is required")

    try:
        answer = await orchestrator.handle_query(req.query.strip(), user_id)
    except QueryPipelineError as e:
        logger.bind(user_id=user_id, error_type=type(e).__name__).error(
            f"Chat request failed at stage {e.stage.value}: {e.message}"
        )
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)
    except Exception as e:
        logger.bind(user_id=user_id).exception(f"Unexpected error handling chat request: {e}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)

    return ChatResponse(answer=answer)


@router.post("/embeddings/backfill", response_model=BackfillResponse)
async def backfill_embeddings(
    user_id: str = Depends(get_current_user_id),
    store: SqlWorkoutStore = Depends(get_workout_store),
    embedding_service: EmbeddingService = Depends(get_embedding_service),
):
    """Embed the user's workout sets that have no embedding yet."""
    try:
        embedded = await store.embed_missing_sets(user_id, embedding_service)
    except ProviderError as e:
        logger.bind(user_id=user_id).error(f"Embedding backfill failed: {e}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)

    return BackfillResponse(embedded=embedded)
