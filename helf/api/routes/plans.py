"""API routes for training plans."""
import logging

from fastapi import APIRouter, Depends, Request, status

from helf.api.routes.dependencies import (
    batch_warnings,
    envelope,
    get_current_user_id,
    get_plan_service,
)
from helf.schemas.base import APIResponse
from helf.schemas.plan import (
    ActivePlan,
    PlanCreateRequest,
    PlanCreationResult,
    PlanDeletionResult,
    WeekCreationResult,
    WeekPlanRequest,
)
from helf.services.plan import PlanService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("", response_model=APIResponse[PlanCreationResult], status_code=status.HTTP_201_CREATED)
async def create_plan(
    body: PlanCreateRequest,
    request: Request,
    service: PlanService = Depends(get_plan_service),
    user_id: int = Depends(get_current_user_id),
):
    """
    Materialize a training plan: the plan row and its weeks.

    Earlier active plans of the user are archived. Failed steps after the plan
    row is written are reported as warnings rather than failing the request.
    """
    result = await service.create_plan(user_id, body.plan)
    return envelope(request, result, batch_warnings(result.batch))


@router.get("/active", response_model=APIResponse[ActivePlan | None])
async def get_active_plan(
    request: Request,
    service: PlanService = Depends(get_plan_service),
    user_id: int = Depends(get_current_user_id),
):
    """Get the user's active plan with its weeks and sessions, or null."""
    return envelope(request, await service.get_active_plan(user_id))


@router.post(
    "/{plan_id}/weeks",
    response_model=APIResponse[WeekCreationResult],
    status_code=status.HTTP_201_CREATED,
)
async def create_week(
    plan_id: int,
    body: WeekPlanRequest,
    request: Request,
    service: PlanService = Depends(get_plan_service),
    user_id: int = Depends(get_current_user_id),
):
    result = await service.create_week_sessions(user_id, plan_id, body.week)
    return envelope(request, result, batch_warnings(result.batch))


@router.delete("/{plan_id}", response_model=APIResponse[PlanDeletionResult])
async def delete_plan(
    plan_id: int,
    request: Request,
    service: PlanService = Depends(get_plan_service),
    user_id: int = Depends(get_current_user_id),
):
    batch = await service.delete_plan(user_id, plan_id)
    message = "Plan deleted successfully" if batch.succeeded else "Plan partially deleted"
    result = PlanDeletionResult(plan_id=plan_id, message=message, batch=batch.to_dict())
    return envelope(request, result, batch_warnings(result.batch))
