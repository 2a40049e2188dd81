"""Conversion of the older trainingPlan shape into AssistantPlan.

Older prompts produced either ``weeklyStructure`` (weeks of day sessions) or
a flat ``sessions`` list without week grouping. Both map onto the canonical
weeks -> sessions -> exercises layout; a flat list becomes week 1.
"""
import logging
from datetime import datetime, timezone

from helf.schemas.assistant import AssistantPlan, LegacyExercise, LegacyPlanData, LegacySession

logger = logging.getLogger(__name__)


def classify_session_type(focus: str | None) -> str:
    text = (focus or "").lower()
    if "strength" in text:
        return "strength"
    if "hypertrophy" in text:
        return "hypertrophy"
    return "general"


def _convert_exercise(exercise: LegacyExercise, position: int) -> dict:
    return {
        "name": exercise.name,
        "variation": exercise.details or exercise.type,
        "exercise_order": position,
        "target_sets": exercise.sets,
        "target_reps": exercise.reps_range,
        "target_rpe": exercise.rpe,
        "instructions": exercise.notes,
        "notes": None,
    }


def _convert_session(session: LegacySession, position: int, week_focus: str | None = None) -> dict:
    session_type = classify_session_type(session.focus)
    if session_type == "general" and week_focus:
        # "Squat Day" says nothing on its own; the block it sits in does
        session_type = classify_session_type(week_focus)
    return {
        "name": session.focus or f"Day {position}",
        "type": session_type,
        "instructions": session.day,
        "notes": None,
        "session_order": position,
        "exercises": [
            _convert_exercise(exercise, index)
            for index, exercise in enumerate(session.exercises, start=1)
        ],
    }


def convert_legacy_plan(data: LegacyPlanData) -> AssistantPlan:
    """Build a canonical plan from a legacy payload.

    Raises pydantic.ValidationError when the converted plan is not a valid
    AssistantPlan (for example an empty ``weeklyStructure``).
    """
    weeks: list[dict] = []

    if data.weekly_structure is not None:
        for week in data.weekly_structure:
            weeks.append({
                "week_number": week.week,
                "focus": week.focus,
                "instructions": None,
                "notes": None,
                "sessions": [
                    _convert_session(session, index, week.focus)
                    for index, session in enumerate(week.sessions, start=1)
                ],
            })
    elif data.sessions is not None:
        weeks.append({
            "week_number": 1,
            "focus": "Week 1",
            "instructions": None,
            "notes": None,
            "sessions": [
                _convert_session(session, index)
                for index, session in enumerate(data.sessions, start=1)
            ],
        })

    logger.info("[LEGACY_PLAN] Converted '%s' into %d week(s)", data.name, len(weeks))

    return AssistantPlan.model_validate({
        "name": data.name,
        "description": data.description,
        "goal": "",
        "weeks": weeks,
        "metadata": {
            "start_date": datetime.now(timezone.utc).isoformat(),
            "legacy_conversion": True,
        },
    })
