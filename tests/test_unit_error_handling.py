"""
Unit tests for exception handlers and the response envelope.

Tests cover:
- Domain exceptions mapped to status codes
- Unexpected exceptions rendered as a generic 500
- Unknown routes and methods
- Validation message mapping
- Result rendering in handle_result
"""

import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from app.api.responses import handle_result
from app.core.dependencies import get_person_service
from app.core.errors import (
    ConflictError,
    ErrorKey,
    InvalidArgumentError,
    NotFoundError,
    TransactionStateError,
    ValidationError,
    get_status_code,
)
from app.core.localization import Localizer
from app.main import validation_messages
from app.services.result import Result


def _failing_service(exc: Exception) -> MagicMock:
    service = MagicMock()
    service.get_person = AsyncMock(side_effect=exc)
    return service


def _body(response) -> dict:
    return json.loads(response.body)


class TestStatusMapping:
    @pytest.mark.parametrize(
        ("error", "status"),
        [
            (ValidationError("bad"), 400),
            (InvalidArgumentError("bad", key=ErrorKey.FIRST_NAME_LENGTH), 400),
            (NotFoundError("missing"), 404),
            (ConflictError("taken"), 409),
            (TransactionStateError("order"), 500),
            (RuntimeError("other"), 500),
        ],
    )
    def test_get_status_code(self, error, status):
        assert get_status_code(error) == status


class TestExceptionHandlers:
    @pytest.mark.anyio
    async def test_domain_error_uses_mapped_status(self, app, async_client):
        app.dependency_overrides[get_person_service] = lambda: _failing_service(
            NotFoundError("Person 7 is gone")
        )

        response = await async_client.get("/api/person/7")

        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "data": None,
            "message": "Person 7 is gone",
            "errors": [],
        }

    @pytest.mark.anyio
    async def test_not_found_with_key_is_localized(self, app, async_client):
        app.dependency_overrides[get_person_service] = lambda: _failing_service(
            NotFoundError("Person 7 is gone", key=ErrorKey.PERSON_NOT_FOUND)
        )

        response = await async_client.get("/api/person/7")

        assert response.status_code == 404
        assert response.json()["message"] == "Person not found"

    @pytest.mark.anyio
    async def test_invalid_argument_is_localized(self, app, async_client):
        app.dependency_overrides[get_person_service] = lambda: _failing_service(
            InvalidArgumentError("too short", key=ErrorKey.FIRST_NAME_LENGTH)
        )

        response = await async_client.get("/api/person/7")

        assert response.status_code == 400
        assert response.json()["message"] == "First name must be between 2 and 50 characters"

    @pytest.mark.anyio
    async def test_transaction_state_error_hides_details(self, app, async_client):
        app.dependency_overrides[get_person_service] = lambda: _failing_service(
            TransactionStateError("A transaction is already in progress")
        )

        response = await async_client.get("/api/person/7")

        assert response.status_code == 500
        assert response.json()["message"] == "An unexpected error occurred"

    @pytest.mark.anyio
    async def test_unexpected_error_returns_generic_500(self, app):
        app.dependency_overrides[get_person_service] = lambda: _failing_service(
            RuntimeError("secret connection string")
        )
        transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)

        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/api/person/7")

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "An unexpected error occurred"
        assert "secret" not in response.text

    @pytest.mark.anyio
    async def test_unknown_route_uses_envelope(self, async_client):
        response = await async_client.get("/api/nowhere")

        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "data": None,
            "message": "Not Found",
            "errors": [],
        }

    @pytest.mark.anyio
    async def test_wrong_method_uses_envelope(self, async_client):
        response = await async_client.patch("/api/city")

        assert response.status_code == 405
        assert response.json()["success"] is False


class TestValidationMessages:
    def test_error_key_in_context_is_localized(self):
        errors = [
            {
                "type": "value_error",
                "loc": ("body", "firstName"),
                "msg": "Value error, FirstNameLength",
                "ctx": {"error": ValueError("FirstNameLength")},
            }
        ]
        assert validation_messages(errors, Localizer("en-US")) == [
            "First name must be between 2 and 50 characters"
        ]

    def test_known_field_errors_are_mapped(self):
        errors = [
            {"type": "missing", "loc": ("body", "lastName"), "msg": "Field required"},
            {"type": "enum", "loc": ("body", "phoneNumbers", 0, "type"), "msg": "bad"},
        ]
        assert validation_messages(errors, Localizer("en-US")) == [
            "Last name is required",
            "Phone type is invalid",
        ]

    def test_other_errors_name_the_field(self):
        errors = [
            {
                "type": "int_parsing",
                "loc": ("query", "pageNumber"),
                "msg": "Input should be a valid integer",
            }
        ]
        assert validation_messages(errors, Localizer("en-US")) == [
            "pageNumber: Input should be a valid integer"
        ]


class TestHandleResult:
    def test_success_uses_given_status(self):
        response = handle_result(Result.success(), Localizer(), data={"x": 1}, status_code=201)

        assert response.status_code == 201
        assert _body(response) == {"success": True, "data": {"x": 1}, "message": None, "errors": []}

    def test_validation_failure_lists_localized_errors(self):
        result = Result.validation_failure(
            [ErrorKey.SEARCH_TERM_REQUIRED, ErrorKey.PAGE_SIZE_MAXIMUM]
        )

        response = handle_result(result, Localizer())

        assert response.status_code == 400
        assert _body(response)["errors"] == [
            "Search term is required",
            "Page size must not exceed 100",
        ]

    def test_not_found_is_404(self):
        response = handle_result(Result.failure(ErrorKey.CONNECTION_NOT_FOUND), Localizer())

        assert response.status_code == 404
        assert _body(response)["message"] == "Connection not found"

    def test_failure_appends_detail(self):
        result = Result.failure(ErrorKey.DATABASE_OPERATION_FAILED, "deadlock detected")

        response = handle_result(result, Localizer())

        assert response.status_code == 400
        assert _body(response)["message"] == "Database operation failed: deadlock detected"
