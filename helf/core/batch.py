"""Best-effort multi-step writes.

Plan materialization, plan deletion and session saves touch many rows. None of
them run inside a single transaction: every step commits on its own, a failed
step is rolled back, logged and recorded, and the remaining steps still run.
Callers inspect the returned ``BatchResult`` to detect partial completion.
"""
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from helf.core.exceptions import DomainError

logger = logging.getLogger(__name__)


@dataclass
class StepResult:
    name: str
    ok: bool
    count: int = 0
    error: str | None = None


@dataclass
class BatchResult:
    steps: list[StepResult] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return all(step.ok for step in self.steps)

    @property
    def failed_steps(self) -> list[StepResult]:
        return [step for step in self.steps if not step.ok]

    @property
    def partial(self) -> bool:
        return bool(self.failed_steps) and any(step.ok for step in self.steps)

    def extend(self, other: "BatchResult") -> None:
        self.steps.extend(other.steps)

    def to_dict(self) -> dict:
        return {
            "succeeded": self.succeeded,
            "partial": self.partial,
            "steps": [
                {"name": s.name, "ok": s.ok, "count": s.count, "error": s.error}
                for s in self.steps
            ],
        }


class BestEffortBatch:
    """Runs write steps one by one, committing each and continuing past failures."""

    def __init__(self, session: AsyncSession, label: str):
        self._session = session
        self._label = label
        self.result = BatchResult()

    async def run(
        self,
        name: str,
        step: Callable[[], Awaitable[int | None]],
    ) -> StepResult:
        try:
            count = await step()
            await self._session.commit()
        except (SQLAlchemyError, DomainError) as e:
            await self._session.rollback()
            logger.error("[%s] step '%s' failed: %s", self._label, name, e)
            outcome = StepResult(name=name, ok=False, error=str(e))
        else:
            outcome = StepResult(name=name, ok=True, count=count or 0)
            logger.info("[%s] step '%s' done (%d rows)", self._label, name, outcome.count)

        self.result.steps.append(outcome)
        return outcome
