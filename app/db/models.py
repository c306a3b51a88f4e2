"""Workout database models.

Only the tables the query pipeline reads are modelled here:
exercise definitions, sessions, session exercises and sets.
Each set carries the embedding used for semantic retrieval.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import JSON, Date, DateTime, Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all database models."""


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ExerciseDefinition(Base):
    """Exercise definition table - a named exercise owned by a user.

    Schema:
    - id: UUID primary key
    - user_id: Owner
    - name: Exercise name (e.g., "Bench Press")
    - muscle_group: Optional muscle group label
    """

    __tablename__ = "workout_exercise_definition"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    muscle_group: Mapped[str | None] = mapped_column(String(50), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)


class WorkoutSession(Base):
    """Workout session table - one per user per calendar day."""

    __tablename__ = "workout_session"
    __table_args__ = (UniqueConstraint("user_id", "workout_date", name="uq_workout_session_user_date"),)

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    workout_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    exercises: Mapped[list[SessionExercise]] = relationship("SessionExercise", back_populates="session")


class SessionExercise(Base):
    """Exercise performed within a session, ordered by exercise_order."""

    __tablename__ = "workout_session_exercise"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    session_id: Mapped[str] = mapped_column(String, ForeignKey("workout_session.id"), nullable=False, index=True)
    exercise_definition_id: Mapped[str] = mapped_column(
        String, ForeignKey("workout_exercise_definition.id"), nullable=False
    )
    exercise_order: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    session: Mapped[WorkoutSession] = relationship("WorkoutSession", back_populates="exercises")
    definition: Mapped[ExerciseDefinition] = relationship("ExerciseDefinition")
    sets: Mapped[list[WorkoutSet]] = relationship("WorkoutSet", back_populates="session_exercise")


class WorkoutSet(Base):
    """Workout set table - the unit of retrieval.

    Schema:
    - set_number: 1-indexed, unique within a session exercise
    - reps / weight_kg: what was lifted
    - embedding: JSON list of floats for "{exercise}: {reps} reps at {weight}kg",
      null until computed
    """

    __tablename__ = "workout_set"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    session_exercise_id: Mapped[str] = mapped_column(
        String, ForeignKey("workout_session_exercise.id"), nullable=False, index=True
    )
    set_number: Mapped[int] = mapped_column(Integer, nullable=False)
    reps: Mapped[int] = mapped_column(Integer, nullable=False)
    weight_kg: Mapped[float] = mapped_column(Float, nullable=False)
    embedding: Mapped[list[float] | None] = mapped_column(JSON(none_as_null=True), nullable=True)

    session_exercise: Mapped[SessionExercise] = relationship("SessionExercise", back_populates="sets")
