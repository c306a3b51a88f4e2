from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from app.api.chat import router as chat_router
from app.config.settings import Settings, settings
from app.core.logger import setup_logger
from app.db.models import Base
from app.db.session import get_engine
from app.rag.answer import AnswerGenerator
from app.rag.date_range import DateRangeExtractor
from app.rag.orchestrator import QueryOrchestrator
from app.rag.providers.embedding import EmbeddingService
from app.rag.providers.generation import GenerationService
from app.rag.retriever import WorkoutRetriever
from app.rag.store import SqlWorkoutStore

APP_NAME = "Lifting Buddy API"
APP_VERSION = "1.0.1"

setup_logger(settings)


def build_query_pipeline(
    config: Settings,
) -> tuple[QueryOrchestrator, SqlWorkoutStore, EmbeddingService]:
    """Construct the process-wide pipeline objects from settings.

    Returns:
        Tuple of (orchestrator, workout_store, embedding_service)
    """
    embedding_service = EmbeddingService(
        api_key=config.openai_api_key,
        model=config.embedding_model,
        dimension=config.embedding_dimension,
        timeout_seconds=config.provider_timeout_seconds,
    )
    generation_service = GenerationService(
        api_key=config.openai_api_key,
        model_name=config.generation_model,
        timeout_seconds=config.provider_timeout_seconds,
    )
    workout_store = SqlWorkoutStore()
    retriever = WorkoutRetriever(
        workout_store,
        embedding_service,
        match_threshold=config.match_threshold,
        match_count=config.match_count,
        max_date_range_records=config.max_date_range_records,
    )
    orchestrator = QueryOrchestrator(
        date_range_extractor=DateRangeExtractor(generation_service),
        retriever=retriever,
        answer_generator=AnswerGenerator(generation_service),
    )
    return orchestrator, workout_store, embedding_service


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and build the query pipeline once per process."""
    logger.info("Ensuring database tables exist")
    Base.metadata.create_all(bind=get_engine())

    orchestrator, workout_store, embedding_service = build_query_pipeline(settings)
    app.state.query_orchestrator = orchestrator
    app.state.workout_store = workout_store
    app.state.embedding_service = embedding_service
    logger.info("Query pipeline initialized")

    yield

    logger.info("Shutting down")


app = FastAPI(title=APP_NAME, version=APP_VERSION, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(chat_router)

logger.info("FastAPI application initialized")


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all HTTP requests."""
    logger.debug(f"Request: {request.method} {request.url.path}")
    response = await call_next(request)
    logger.debug(f"Response: {response.status_code} for {request.method} {request.url.path}")
    return response


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/api/v1/info")
def info():
    return {"name": APP_NAME, "version": APP_VERSION}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
