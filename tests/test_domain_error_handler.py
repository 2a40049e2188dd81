"""Tests for domain error handler to verify structured JSON error responses."""
import json
from datetime import datetime

import pytest
from fastapi.responses import JSONResponse

from helf.core.error_handlers import ERROR_STATUS_MAP, domain_error_handler
from helf.core.exceptions import (
    AssistantTimeoutError,
    AssistantUnavailableError,
    AuthenticationError,
    BusinessRuleError,
    ConflictError,
    DomainError,
    NotFoundError,
    StructuredDataError,
    ValidationError,
)


class MockRequest:
    """Mock FastAPI Request object for testing."""

    def __init__(self, request_id: str = "test-request-123"):
        self.state = type('State', (), {'request_id': request_id})()


class TestDomainErrorExceptions:
    def test_not_found_error(self):
        error = NotFoundError("plan", "Plan not found", {"plan_id": 123})

        assert error.code == "NF_PLAN_001"
        assert error.message == "Plan not found"
        assert error.details == {"plan_id": 123}

    def test_not_found_error_default_message(self):
        error = NotFoundError("session")

        assert error.code == "NF_SESSION_001"
        assert error.message == "session not found"
        assert error.details == {}

    def test_validation_error(self):
        error = ValidationError("readiness_score", "must be between 1 and 10")

        assert error.code == "VAL_READINESS_SCORE_001"
        assert error.message == "Validation failed for readiness_score: must be between 1 and 10"
        assert error.details == {"field": "readiness_score"}

    def test_structured_data_error(self):
        error = StructuredDataError("weekPlan", "Week plan validation failed")

        assert error.code == "SD_WEEKPLAN_001"
        assert error.details == {"type": "weekPlan"}

    def test_business_rule_error_custom_code(self):
        error = BusinessRuleError("Failed to create training plan", code="BR_PLAN_CREATE_001")
        assert error.code == "BR_PLAN_CREATE_001"

    def test_assistant_timeout_error(self):
        error = AssistantTimeoutError(60)

        assert error.code == "AI_TIMEOUT_001"
        assert "60 seconds" in error.message
        assert error.details == {"timeout_seconds": 60}


class TestErrorStatusMap:
    @pytest.mark.parametrize("error_cls,status", [
        (NotFoundError, 404),
        (ValidationError, 400),
        (StructuredDataError, 422),
        (BusinessRuleError, 422),
        (ConflictError, 409),
        (AuthenticationError, 401),
        (AssistantTimeoutError, 504),
        (AssistantUnavailableError, 502),
    ])
    def test_status(self, error_cls, status):
        assert ERROR_STATUS_MAP[error_cls] == status


class TestDomainErrorHandler:
    @pytest.mark.asyncio
    async def test_not_found_error_response(self):
        error = NotFoundError("plan", "Plan with ID 999 not found", {"plan_id": 999})

        response = await domain_error_handler(MockRequest(request_id="req-123"), error)

        assert isinstance(response, JSONResponse)
        assert response.status_code == 404
        data = json.loads(response.body.decode())
        assert data["data"] is None
        assert data["errors"] == [{
            "code": "NF_PLAN_001",
            "message": "Plan with ID 999 not found",
            "details": {"plan_id": 999},
        }]

    @pytest.mark.asyncio
    async def test_response_includes_metadata(self):
        response = await domain_error_handler(MockRequest(request_id="req-meta"), NotFoundError("exercise"))

        data = json.loads(response.body.decode())
        assert data["meta"]["request_id"] == "req-meta"
        datetime.fromisoformat(data["meta"]["timestamp"].replace('Z', '+00:00'))

    @pytest.mark.asyncio
    async def test_unknown_domain_error_returns_500(self):
        class CustomDomainError(DomainError):
            pass

        response = await domain_error_handler(MockRequest(), CustomDomainError("CUSTOM_001", "Custom error message"))

        assert response.status_code == 500
        assert json.loads(response.body.decode())["errors"][0]["code"] == "CUSTOM_001"

    @pytest.mark.asyncio
    async def test_error_with_none_request_id(self):
        request = type('Request', (), {'state': type('State', (), {})()})()

        response = await domain_error_handler(request, AssistantUnavailableError("upstream down"))

        data = json.loads(response.body.decode())
        assert response.status_code == 502
        assert data["meta"]["request_id"] is None
