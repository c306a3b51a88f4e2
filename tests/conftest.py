"""Root conftest for all tests.

Environment is set before any app module is imported so the settings
object picks it up.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("AUTH_SECRET_KEY", "test-secret-key")
os.environ.setdefault("OPENAI_API_KEY", "sk-test")

from collections.abc import Generator
from contextlib import contextmanager
from datetime import date, datetime, timedelta, timezone

import pytest
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.config.settings import settings
from app.db.models import Base, ExerciseDefinition, SessionExercise, WorkoutSession, WorkoutSet
from app.rag.store import SqlWorkoutStore


@pytest.fixture
def test_user_id() -> str:
    return "user-1"


@pytest.fixture
def session_factory():
    """Isolated in-memory SQLite database per test.

    Yields a get_session-compatible factory: commit on clean exit,
    rollback on error.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    @contextmanager
    def _session() -> Generator[Session, None, None]:
        session = factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    yield _session
    engine.dispose()


@pytest.fixture
def workout_store(session_factory) -> SqlWorkoutStore:
    return SqlWorkoutStore(session_factory=session_factory)


@pytest.fixture
def add_workout_set(session_factory):
    """Insert one set (and its session/exercise rows as needed).

    Usage:
        add_workout_set("user-1", date(2025, 11, 5), "Bench Press", reps=8, weight_kg=80)
    """

    def _add(
        user_id: str,
        workout_date: date,
        exercise_name: str,
        *,
        reps: int,
        weight_kg: float,
        set_number: int = 1,
        exercise_order: int = 1,
        embedding: list[float] | None = None,
        session_deleted: bool = False,
    ) -> str:
        with session_factory() as session:
            workout_session = (
                session.query(WorkoutSession)
                .filter_by(user_id=user_id, workout_date=workout_date)
                .one_or_none()
            )
            if workout_session is None:
                workout_session = WorkoutSession(user_id=user_id, workout_date=workout_date)
                session.add(workout_session)
                session.flush()
            if session_deleted:
                workout_session.deleted_at = datetime.now(timezone.utc)

            definition = (
                session.query(ExerciseDefinition).filter_by(user_id=user_id, name=exercise_name).one_or_none()
            )
            if definition is None:
                definition = ExerciseDefinition(user_id=user_id, name=exercise_name)
                session.add(definition)
                session.flush()

            session_exercise = (
                session.query(SessionExercise)
                .filter_by(session_id=workout_session.id, exercise_definition_id=definition.id)
                .one_or_none()
            )
            if session_exercise is None:
                session_exercise = SessionExercise(
                    user_id=user_id,
                    session_id=workout_session.id,
                    exercise_definition_id=definition.id,
                    exercise_order=exercise_order,
                )
                session.add(session_exercise)
                session.flush()

            workout_set = WorkoutSet(
                user_id=user_id,
                session_exercise_id=session_exercise.id,
                set_number=set_number,
                reps=reps,
                weight_kg=weight_kg,
                embedding=embedding,
            )
            session.add(workout_set)
            session.flush()
            return workout_set.id

    return _add


@pytest.fixture
def make_token():
    """Sign a bearer token the way the logging app issues them.

    Usage:
        make_token("user-1")
        make_token("user-1", expires_in=timedelta(seconds=-1))
    """

    def _make(user_id: str | None, expires_in: timedelta = timedelta(days=30)) -> str:
        now = datetime.now(timezone.utc)
        payload = {"exp": now + expires_in, "iat": now}
        if user_id is not None:
            payload["sub"] = user_id
        return jwt.encode(payload, settings.auth_secret_key, algorithm=settings.auth_algorithm)

    return _make
