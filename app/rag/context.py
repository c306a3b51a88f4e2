"""Grounding context for answer generation.

Turns retrieved workout records into one sentence each, joined by a dashed
separator so the model can tell discrete facts apart.
"""

from datetime import date

from app.rag.types import ContextBlock, RetrievedWorkoutRecord

CONTEXT_SEPARATOR = "\n---\n"

# Fixed table so output does not depend on the server locale
_MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


def format_workout_date(value: date) -> str:
    """Format a date as e.g. "November 5, 2025"."""
    return f"{_MONTH_NAMES[value.month - 1]} {value.day}, {value.year}"


def format_weight(weight_kg: float) -> str:
    """Render whole weights without a decimal (80, 82.5, 100.0625).

    Fractional weights use the shortest round-trip form, so no precision
    is lost in the context or in the embedded set text.
    """
    if float(weight_kg).is_integer():
        return str(int(weight_kg))
    return repr(float(weight_kg))


def record_sentence(record: RetrievedWorkoutRecord) -> str:
    return (
        f"On {format_workout_date(record.workout_date)}, you did {record.exercise_name} "
        f"for {record.reps} reps at {format_weight(record.weight_kg)}kg."
    )


def synthesize_context(records: list[RetrievedWorkoutRecord]) -> ContextBlock:
    """Build the context block, preserving record order.

    Returns an empty string for no records.
    """
    return CONTEXT_SEPARATOR.join(record_sentence(record) for record in records)
