"""Shared dependencies for API routes."""
from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from helf.config.settings import get_settings
from helf.core.exceptions import AuthenticationError
from helf.db.database import get_db
from helf.schemas.base import APIResponse, ResponseMeta
from helf.security import verify_token
from helf.services.exercise import ExerciseService
from helf.services.plan import PlanService
from helf.services.session import SessionService

settings = get_settings()


async def get_current_user_id(
    authorization: str | None = Header(None, alias="Authorization"),
) -> int:
    """Get current user ID from JWT token.

    For MVP: Falls back to default_user_id if no token provided.

    Args:
        authorization: Authorization header value (e.g., "Bearer <token>")

    Returns:
        User ID from token or default user ID

    Raises:
        AuthenticationError: If the header or token is invalid
    """
    if not authorization:
        return settings.default_user_id

    try:
        scheme, token = authorization.split()
    except ValueError:
        raise AuthenticationError("Invalid authorization header format")
    if scheme.lower() != "bearer":
        raise AuthenticationError("Invalid authentication scheme")

    user_id = verify_token(token)

    if user_id is None:
        raise AuthenticationError("Invalid or expired token")

    return user_id


def get_plan_service(db: AsyncSession = Depends(get_db)) -> PlanService:
    return PlanService(db)


def get_session_service(db: AsyncSession = Depends(get_db)) -> SessionService:
    return SessionService(db)


def get_exercise_service(db: AsyncSession = Depends(get_db)) -> ExerciseService:
    return ExerciseService(db)


def envelope(request: Request, data, warnings: list[str] | None = None) -> APIResponse:
    """Wrap a payload in the standard response envelope."""
    return APIResponse(
        data=data,
        meta=ResponseMeta(
            request_id=getattr(request.state, "request_id", None),
            warnings=warnings or [],
        ),
    )


def batch_warnings(batch: dict) -> list[str]:
    """One warning per failed step of a best-effort batch."""
    return [
        f"{step['name']}: {step['error']}"
        for step in batch.get("steps", [])
        if not step["ok"]
    ]
