"""SQL-backed workout store.

Translates the two retrieval shapes (date range, vector similarity) into
queries over the workout tables, always scoped to one user and excluding
soft-deleted sessions and exercises. Similarity is cosine over the user's
stored set embeddings, computed in-process with numpy.
"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import AbstractContextManager
from datetime import date

import numpy as np
from loguru import logger
from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from app.db.models import ExerciseDefinition, SessionExercise, WorkoutSession, WorkoutSet
from app.db.session import get_session
from app.rag.context import format_weight
from app.rag.providers.embedding import EmbeddingService
from app.rag.types import RetrievedWorkoutRecord

SessionFactory = Callable[[], AbstractContextManager[Session]]


def workout_set_embedding_text(exercise_name: str, reps: int, weight_kg: float) -> str:
    """Text that is embedded for a stored set, e.g. "Bench Press: 8 reps at 80kg"."""
    return f"{exercise_name}: {reps} reps at {format_weight(weight_kg)}kg"


def _record_query(user_id: str, *columns) -> Select:
    return (
        select(
            WorkoutSession.workout_date,
            ExerciseDefinition.name,
            WorkoutSet.reps,
            WorkoutSet.weight_kg,
            *columns,
        )
        .join(SessionExercise, WorkoutSet.session_exercise_id == SessionExercise.id)
        .join(WorkoutSession, SessionExercise.session_id == WorkoutSession.id)
        .join(ExerciseDefinition, SessionExercise.exercise_definition_id == ExerciseDefinition.id)
        .where(
            WorkoutSet.user_id == user_id,
            WorkoutSession.user_id == user_id,
            WorkoutSession.deleted_at.is_(None),
            SessionExercise.deleted_at.is_(None),
        )
    )


class SqlWorkoutStore:
    """Workout store over the relational database."""

    def __init__(self, session_factory: SessionFactory = get_session) -> None:
        self.session_factory = session_factory

    def workouts_between(
        self,
        user_id: str,
        start_date: date,
        end_date: date,
        limit: int,
    ) -> list[RetrievedWorkoutRecord]:
        """Sets logged between start_date and end_date inclusive, oldest first."""
        stmt = (
            _record_query(user_id)
            .where(WorkoutSession.workout_date.between(start_date, end_date))
            .order_by(
                WorkoutSession.workout_date.asc(),
                SessionExercise.exercise_order.asc(),
                WorkoutSet.set_number.asc(),
            )
            .limit(limit)
        )
        with self.session_factory() as session:
            rows = session.execute(stmt).all()

        return [
            RetrievedWorkoutRecord(
                workout_date=row.workout_date,
                exercise_name=row.name,
                reps=row.reps,
                weight_kg=row.weight_kg,
            )
            for row in rows
        ]

    def match_workouts(
        self,
        user_id: str,
        query_embedding: list[float],
        match_threshold: float,
        match_count: int,
    ) -> list[RetrievedWorkoutRecord]:
        """Up to match_count sets with cosine similarity >= match_threshold.

        Results are sorted by similarity, highest first.
        """
        stmt = _record_query(user_id, WorkoutSet.embedding).where(WorkoutSet.embedding.is_not(None))
        with self.session_factory() as session:
            rows = session.execute(stmt).all()

        query_vec = np.array(query_embedding, dtype=np.float32)
        query_norm = np.linalg.norm(query_vec)
        if query_norm == 0:
            logger.warning("Query embedding has zero norm")
            return []
        query_vec /= query_norm

        candidates = [row for row in rows if len(row.embedding) == len(query_vec)]
        if len(candidates) != len(rows):
            logger.warning(
                "Skipping stored embeddings with mismatched dimension",
                user_id=user_id,
                skipped=len(rows) - len(candidates),
            )
        if not candidates:
            return []

        matrix = np.array([row.embedding for row in candidates], dtype=np.float32)
        norms = np.linalg.norm(matrix, axis=1, keepdims=True)
        norms = np.where(norms == 0, 1, norms)
        matrix /= norms

        similarities = matrix @ query_vec
        filtered_indices = np.where(similarities >= match_threshold)[0]
        if len(filtered_indices) == 0:
            return []

        # Stable sort keeps insertion order among equal scores
        order = np.argsort(-similarities[filtered_indices], kind="stable")[:match_count]

        results: list[RetrievedWorkoutRecord] = []
        for idx in order:
            row = candidates[filtered_indices[idx]]
            results.append(
                RetrievedWorkoutRecord(
                    workout_date=row.workout_date,
                    exercise_name=row.name,
                    reps=row.reps,
                    weight_kg=row.weight_kg,
                    similarity_score=float(similarities[filtered_indices[idx]]),
                )
            )
        return results

    async def embed_missing_sets(self, user_id: str, embedding_service: EmbeddingService) -> int:
        """Compute and store embeddings for the user's sets that have none.

        Each embedding is committed as soon as it is computed, so a provider
        failure part-way through keeps the sets already embedded. No session
        is held open while waiting on the provider.

        Returns:
            Number of sets embedded

        Raises:
            ProviderError: If an embedding call fails (earlier sets stay stored)
        """
        with self.session_factory() as session:
            stmt = (
                select(WorkoutSet.id, ExerciseDefinition.name, WorkoutSet.reps, WorkoutSet.weight_kg)
                .join(SessionExercise, WorkoutSet.session_exercise_id == SessionExercise.id)
                .join(WorkoutSession, SessionExercise.session_id == WorkoutSession.id)
                .join(ExerciseDefinition, SessionExercise.exercise_definition_id == ExerciseDefinition.id)
                .where(WorkoutSet.user_id == user_id, WorkoutSet.embedding.is_(None))
                .order_by(WorkoutSession.workout_date, SessionExercise.exercise_order, WorkoutSet.set_number)
            )
            pending = [
                (set_id, workout_set_embedding_text(name, reps, weight_kg))
                for set_id, name, reps, weight_kg in session.execute(stmt).all()
            ]

        embedded = 0
        log = logger.bind(user_id=user_id)
        for set_id, text in pending:
            try:
                embedding = await embedding_service.embed_text(text)
            except Exception:
                log.bind(embedded=embedded, pending=len(pending)).warning("Embedding backfill stopped early")
                raise
            with self.session_factory() as session:
                workout_set = session.get(WorkoutSet, set_id)
                if workout_set is not None:
                    workout_set.embedding = embedding
                    embedded += 1

        log.bind(count=embedded).info("Backfilled workout set embeddings")
        return embedded
