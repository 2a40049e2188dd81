"""
ResponseProcessor - extracts and validates structured data in assistant replies.

The assistant answers in free text and may embed one fenced ```json block
tagged with a ``type``. The processor:
- cleans the block (comments, trailing commas) and parses it
- validates it against the schema for its tag
- falls back to the legacy trainingPlan shape and rewrites the block with
  the converted plan
- applies exerciseUpdate blocks to the catalog right away

The caller always gets the reply text back, valid or not.
"""
import json
import logging
import re
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from helf.core.exceptions import DomainError, StructuredDataError
from helf.schemas.assistant import (
    PAYLOAD_MODELS,
    AssistantPayload,
    ExerciseUpdatePayload,
    LegacyPlanPayload,
    ProcessedResponse,
    SessionPlanPayload,
    TrainingPlanPayload,
    WeekPlanPayload,
)
from helf.services.exercise import ExerciseService
from helf.services.legacy_plan import convert_legacy_plan

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```json[ \t]*\r?\n(.*?)\s*```", re.DOTALL)
_LINE_COMMENT_RE = re.compile(r"//.*$", re.MULTILINE)
_BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
_TRAILING_COMMA_RE = re.compile(r",\s*([\]}])")

_FRAGMENT_RADIUS = 20

_LABELS = {
    "trainingPlan": "Training plan",
    "sessionPlan": "Session plan",
    "weekPlan": "Week plan",
    "exerciseUpdate": "Exercise update",
}


def extract_json_block(text: str) -> str | None:
    match = _FENCE_RE.search(text)
    return match.group(1) if match else None


def replace_json_block(text: str, replacement: str) -> str:
    return _FENCE_RE.sub(lambda _: replacement, text, count=1)


def failed(raw_text: str, data_type: str, message: str) -> ProcessedResponse:
    """Failure result carrying the original text untouched."""
    error = StructuredDataError(data_type, message)
    return ProcessedResponse(
        content=raw_text,
        success=False,
        message=error.message,
        structured_data_type=None if data_type == "json" else data_type,
        error_code=error.code,
    )


def clean_json(block: str) -> str:
    block = _LINE_COMMENT_RE.sub("", block)
    block = _BLOCK_COMMENT_RE.sub("", block)
    return _TRAILING_COMMA_RE.sub(r"\1", block)


def format_validation_errors(error: PydanticValidationError) -> str:
    """One ``- path: message`` line per violated constraint."""
    lines = []
    for err in error.errors():
        path = ".".join(str(part) for part in err["loc"])
        lines.append(f"- {path or 'error'}: {err['msg']}")
    return "\n".join(lines)


def describe_parse_error(error: json.JSONDecodeError, cleaned: str) -> str:
    start = max(0, error.pos - _FRAGMENT_RADIUS)
    fragment = cleaned[start:error.pos + _FRAGMENT_RADIUS]
    message = f"JSON parsing failed: {error.msg} at position {error.pos}"
    if fragment.strip():
        message += f" near '{fragment}'"
    return message


class ResponseProcessor:
    """Scans assistant replies for a structured block and acts on it.

    ``exercise_service`` is needed only for exerciseUpdate blocks, which
    write to the catalog.
    """

    def __init__(self, exercise_service: ExerciseService | None = None):
        self._exercise_service = exercise_service

    async def process(self, raw_text: str) -> ProcessedResponse:
        block = extract_json_block(raw_text)
        if block is None:
            return ProcessedResponse(content=raw_text)

        cleaned = clean_json(block)
        try:
            data = json.loads(cleaned)
        except json.JSONDecodeError as e:
            message = describe_parse_error(e, cleaned)
            logger.warning("[PROCESS_RESPONSE] %s", message)
            return failed(raw_text, "json", message)

        if not isinstance(data, dict) or not isinstance(data.get("type"), str):
            logger.debug("[PROCESS_RESPONSE] JSON block has no string 'type'; treating as text")
            return ProcessedResponse(content=raw_text)

        data_type = data["type"]
        model = PAYLOAD_MODELS.get(data_type)
        if model is None:
            logger.warning("[PROCESS_RESPONSE] JSON type '%s' found but not processed", data_type)
            return ProcessedResponse(content=raw_text)

        if model is TrainingPlanPayload:
            return self._process_training_plan(raw_text, data)

        try:
            payload = model.model_validate(data)
        except PydanticValidationError as e:
            details = format_validation_errors(e)
            logger.warning("[PROCESS_RESPONSE] %s validation failed:\n%s", data_type, details)
            return failed(raw_text, data_type, f"{_LABELS[data_type]} validation failed:\n{details}")

        return await self._dispatch(raw_text, payload)

    async def _dispatch(self, raw_text: str, payload: AssistantPayload) -> ProcessedResponse:
        match payload:
            case SessionPlanPayload() | WeekPlanPayload():
                logger.info("[PROCESS_RESPONSE] %s validated", payload.type)
                return ProcessedResponse(
                    content=raw_text,
                    success=True,
                    message=f"{_LABELS[payload.type]} validated.",
                    structured_data_type=payload.type,
                    payload=payload.data.model_dump(mode="json", exclude_none=True),
                )
            case ExerciseUpdatePayload():
                return await self._apply_exercise_update(raw_text, payload)
            case _:
                raise TypeError(f"Unhandled payload {type(payload).__name__}")

    def _process_training_plan(self, raw_text: str, data: dict[str, Any]) -> ProcessedResponse:
        try:
            payload = TrainingPlanPayload.model_validate(data)
        except PydanticValidationError as canonical_error:
            logger.info("[PROCESS_RESPONSE] trainingPlan schema failed, trying legacy format")
            try:
                legacy = LegacyPlanPayload.model_validate(data)
                plan = convert_legacy_plan(legacy.data)
            except PydanticValidationError as legacy_error:
                details = (
                    f"{format_validation_errors(canonical_error)}\n"
                    f"Legacy format:\n{format_validation_errors(legacy_error)}"
                )
                logger.warning("[PROCESS_RESPONSE] Plan validation failed for both schemas:\n%s", details)
                return failed(raw_text, "trainingPlan", f"Training plan validation failed:\n{details}")

            plan_data = plan.model_dump(mode="json", exclude_none=True)
            converted = json.dumps({"type": "trainingPlan", "data": plan_data}, indent=2)
            return ProcessedResponse(
                content=replace_json_block(raw_text, f"```json\n{converted}\n```"),
                success=True,
                message="Legacy plan converted.",
                structured_data_type="trainingPlan",
                payload=plan_data,
            )

        logger.info("[PROCESS_RESPONSE] trainingPlan validated (%d weeks)", len(payload.data.weeks))
        return ProcessedResponse(
            content=raw_text,
            success=True,
            message="Training plan validated.",
            structured_data_type="trainingPlan",
            payload=payload.data.model_dump(mode="json", exclude_none=True),
        )

    async def _apply_exercise_update(self, raw_text: str, payload: ExerciseUpdatePayload) -> ProcessedResponse:
        if self._exercise_service is None:
            return failed(raw_text, payload.type, "Exercise update failed:\nno catalog available")

        try:
            _, message = await self._exercise_service.update_exercise(
                payload.data.exercise_id, payload.data.update
            )
        except DomainError as e:
            logger.error("[PROCESS_RESPONSE] Exercise update failed: %s", e.message)
            return failed(raw_text, payload.type, f"Exercise update failed:\n{e.message}")

        logger.info("[PROCESS_RESPONSE] Exercise update executed: %s", message)
        return ProcessedResponse(
            content=replace_json_block(raw_text, f"\n(Action taken: {message})\n"),
            success=True,
            message=message,
            structured_data_type=payload.type,
            payload=payload.data.model_dump(mode="json", by_alias=True, exclude_none=True),
        )
