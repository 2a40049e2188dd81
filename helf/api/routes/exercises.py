"""API routes for the exercise catalog."""
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from helf.api.routes.dependencies import envelope, get_exercise_service
from helf.db.database import get_db
from helf.schemas.base import APIResponse
from helf.schemas.exercise import (
    ExerciseRef,
    ExerciseResolveResponse,
    ExerciseResponse,
    ExerciseUpdate,
    ExerciseUpdateResult,
)
from helf.services.exercise import ExerciseResolver, ExerciseService

router = APIRouter()


@router.get("", response_model=APIResponse[list[ExerciseResponse]])
async def list_exercises(
    request: Request,
    search: str | None = Query(None, description="Case-insensitive name filter"),
    service: ExerciseService = Depends(get_exercise_service),
):
    exercises = await service.list_exercises(search=search)
    return envelope(request, [ExerciseResponse.model_validate(e) for e in exercises])


@router.get("/{exercise_id}", response_model=APIResponse[ExerciseResponse])
async def get_exercise(
    exercise_id: int,
    request: Request,
    service: ExerciseService = Depends(get_exercise_service),
):
    exercise = await service.get_exercise(exercise_id)
    return envelope(request, ExerciseResponse.model_validate(exercise))


@router.patch("/{exercise_id}", response_model=APIResponse[ExerciseUpdateResult])
async def update_exercise(
    exercise_id: int,
    body: ExerciseUpdate,
    request: Request,
    service: ExerciseService = Depends(get_exercise_service),
):
    exercise, message = await service.update_exercise(exercise_id, body)
    result = ExerciseUpdateResult(exercise=ExerciseResponse.model_validate(exercise), message=message)
    return envelope(request, result)


@router.post("/resolve", response_model=APIResponse[ExerciseResolveResponse])
async def resolve_exercise(
    body: ExerciseRef,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """Find the catalog exercise matching a reference, creating it when none does."""
    exercise_id = await ExerciseResolver(db).resolve(body)
    return envelope(request, ExerciseResolveResponse(exercise_id=exercise_id))
