"""
Tests for the service error hierarchy and its exception handlers.
"""

from fastapi import FastAPI
from fastapi.testclient import TestClient

from campus.modules.shared.errors import (
    ConflictError,
    NotFoundError,
    register_exception_handlers,
    to_http_exception,
)


def _client() -> TestClient:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/missing")
    async def missing():
        raise NotFoundError("Fee structure", "abc")

    @app.get("/conflict")
    async def conflict():
        raise ConflictError("Already there.", "ALREADY_MEMBER")

    @app.get("/boom")
    async def boom():
        raise RuntimeError("kaboom")

    return TestClient(app, raise_server_exceptions=False)


class TestServiceErrors:
    """Tests for error codes derived from the error class."""

    def test_not_found_code(self):
        error = NotFoundError("Parent link")
        assert error.status_code == 404
        assert error.error_code == "PARENT_LINK_NOT_FOUND"
        assert error.message == "Parent link not found"

    def test_to_http_exception(self):
        exc = to_http_exception(ConflictError("Taken.", "EMAIL_EXISTS"))
        assert exc.status_code == 409
        assert exc.detail == {"error": "EMAIL_EXISTS", "message": "Taken."}


class TestExceptionHandlers:
    """Tests for register_exception_handlers."""

    def test_service_error_rendered(self):
        response = _client().get("/missing")
        assert response.status_code == 404
        assert response.json() == {
            "detail": {"error": "FEE_STRUCTURE_NOT_FOUND", "message": "Fee structure abc not found"}
        }

    def test_conflict(self):
        response = _client().get("/conflict")
        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "ALREADY_MEMBER"

    def test_unhandled_error_hidden(self):
        response = _client().get("/boom")
        assert response.status_code == 500
        assert response.json()["detail"]["error"] == "INTERNAL_ERROR"
        assert "kaboom" not in response.text
