"""System prompt assembly for the training assistant."""
import json
from datetime import date

from helf.llm.base import Message
from helf.schemas.plan import ActivePlan
from helf.schemas.session import SessionDetail

BASE_PROMPT = """\
You are an experienced strength and fitness coach for the Helf app, specializing in
strength training, weightlifting and powerlifting. Today's date is {today}.

Do not engage in conversations outside of health, training and nutrition.

Give evidence-based, clear advice adapted to the user's experience level. Pay close
attention to exercise notes: they carry feedback such as pain or discomfort that must
inform future recommendations. Answer in the language the user writes in.
"""

STRUCTURED_OUTPUT_PROMPT = """\
When you create or change training data, add exactly one fenced ```json block.
Its "type" must be one of:

- "trainingPlan": {"type": "trainingPlan", "data": {"name", "description", "goal",
  "weeks": [{"week_number", "focus", "instructions", "sessions": [{"name", "type",
  "session_order"}]}]}}. Sessions here are placeholders; do not list exercises.
- "weekPlan": {"type": "weekPlan", "data": {"week_number", "focus", "sessions":
  [{"name", "type", "session_order", "exercises": [EXERCISE, ...]}]}}.
- "sessionPlan": {"type": "sessionPlan", "data": {"name", "type", "exercises":
  [EXERCISE, ...]}}.
- "exerciseUpdate": {"type": "exerciseUpdate", "data": {"exerciseId", "update":
  {"name", "variation", "type", "description"}}}.

EXERCISE is {"name", "variation", "type": "weight" | "reps" | "time" | "cal",
"exercise_order", "target_sets", "target_reps", "target_rpe" (0-10),
"target_weight", "instructions", "notes"}.

Write plain JSON: no comments, no trailing commas.
"""


def _dump(value) -> str:
    return json.dumps(value.model_dump(mode="json", exclude_none=True), indent=2)


def build_system_messages(
    today: date,
    active_plan: ActivePlan | None = None,
    next_session: SessionDetail | None = None,
    current_session: SessionDetail | None = None,
) -> list[Message]:
    messages = [
        Message(role="system", content=BASE_PROMPT.format(today=today.isoformat())),
        Message(role="system", content=STRUCTURED_OUTPUT_PROMPT),
    ]

    if active_plan is not None:
        messages.append(Message(role="system", content=f"ACTIVE PLAN:\n{_dump(active_plan)}"))
    else:
        messages.append(Message(role="system", content="ACTIVE PLAN: none. Offer to create a trainingPlan."))

    if next_session is not None:
        messages.append(Message(role="system", content=f"NEXT SESSION:\n{_dump(next_session)}"))

    if current_session is not None:
        messages.append(Message(role="system", content=f"CURRENT SESSION:\n{_dump(current_session)}"))

    return messages
