"""FastAPI dependencies exposing the process-wide query pipeline objects."""

from fastapi import Request

from app.rag.orchestrator import QueryOrchestrator
from app.rag.providers.embedding import EmbeddingService
from app.rag.store import SqlWorkoutStore


def get_query_orchestrator(request: Request) -> QueryOrchestrator:
    return request.app.state.query_orchestrator


def get_workout_store(request: Request) -> SqlWorkoutStore:
    return request.app.state.workout_store


def get_embedding_service(request: Request) -> EmbeddingService:
    return request.app.state.embedding_service
