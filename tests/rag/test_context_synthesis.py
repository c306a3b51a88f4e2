"""Tests for grounding context synthesis."""

from datetime import date

from app.rag.context import CONTEXT_SEPARATOR, format_weight, format_workout_date, synthesize_context
from app.rag.types import RetrievedWorkoutRecord


def _record(day: int, name: str = "Squat", reps: int = 5, weight_kg: float = 100) -> RetrievedWorkoutRecord:
    return RetrievedWorkoutRecord(workout_date=date(2025, 11, day), exercise_name=name, reps=reps, weight_kg=weight_kg)


def test_single_record_sentence():
    """A bench press record renders as one fixed-format sentence."""
    record = RetrievedWorkoutRecord(
        workout_date=date(2025, 11, 5),
        exercise_name="Bench Press",
        reps=8,
        weight_kg=80,
    )

    assert synthesize_context([record]) == "On November 5, 2025, you did Bench Press for 8 reps at 80kg."


def test_empty_records_give_empty_context():
    assert synthesize_context([]) == ""


def test_order_is_preserved():
    """N records give exactly N sentences in input order."""
    records = [_record(7, "Deadlift"), _record(3, "Bench Press"), _record(5, "Squat")]

    context = synthesize_context(records)
    sentences = context.split(CONTEXT_SEPARATOR)

    assert len(sentences) == 3
    assert "Deadlift" in sentences[0]
    assert "Bench Press" in sentences[1]
    assert "Squat" in sentences[2]


def test_separator_is_dashed_line():
    context = synthesize_context([_record(1), _record(2)])

    assert context.count("\n---\n") == 1


def test_fractional_weight_keeps_decimal():
    record = _record(5, "Overhead Press", reps=6, weight_kg=42.5)

    assert synthesize_context([record]).endswith("for 6 reps at 42.5kg.")


def test_format_weight():
    assert format_weight(80.0) == "80"
    assert format_weight(82.5) == "82.5"
    assert format_weight(0) == "0"
    assert format_weight(100.0625) == "100.0625"
    assert format_weight(61.2345678) == "61.2345678"


def test_format_workout_date_is_long_form():
    assert format_workout_date(date(2025, 1, 31)) == "January 31, 2025"
    assert format_workout_date(date(2024, 12, 1)) == "December 1, 2024"
