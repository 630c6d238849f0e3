"""Tests for error translation into the public envelope."""

from fastapi import APIRouter
from fastapi.exceptions import RequestValidationError
from fastapi.testclient import TestClient
from starlette.exceptions import HTTPException as StarletteHTTPException

from flowauth.config import get_settings
from flowauth.errors import (
    AccountExistsError,
    EmailDeliveryError,
    EmailNotVerifiedError,
    ErrorCode,
    InvalidIdFormatError,
    InvalidOrExpiredTokenError,
    NotificationError,
    SessionTokenExpiredError,
    ValidationFailedError,
    WrongCredentialsError,
)
from flowauth.exception_handlers import translate_exception, validation_field_errors


class TestTranslateException:
    """Tests for translate_exception."""

    def test_app_errors_keep_their_code_and_status(self):
        cases = [
            (ValidationFailedError(errors={"email": "Email is required"}), 400, ErrorCode.VALIDATION_FAILED),
            (AccountExistsError(), 400, ErrorCode.ACCOUNT_EXISTS),
            (WrongCredentialsError(), 401, ErrorCode.WRONG_CREDENTIALS),
            (EmailNotVerifiedError(), 403, ErrorCode.EMAIL_NOT_VERIFIED),
            (InvalidOrExpiredTokenError(), 400, ErrorCode.INVALID_OR_EXPIRED_TOKEN),
            (InvalidIdFormatError(), 400, ErrorCode.INVALID_ID_FORMAT),
            (SessionTokenExpiredError(), 401, ErrorCode.TOKEN_EXPIRED),
            (EmailDeliveryError(), 500, ErrorCode.SERVER_ERROR),
        ]
        for exc, status_code, code in cases:
            status, body = translate_exception(exc)
            assert status == status_code
            assert body["success"] is False
            assert body["code"] == code.value
            assert body["message"] == exc.message

    def test_field_errors_are_included(self):
        _, body = translate_exception(AccountExistsError())
        assert body["errors"] == {"email": "Email already exists"}

    def test_no_errors_key_when_empty(self):
        _, body = translate_exception(WrongCredentialsError())
        assert "errors" not in body

    def test_unknown_exception_hides_detail(self):
        status, body = translate_exception(RuntimeError("db password is hunter2"))
        assert status == 500
        assert body["code"] == "SERVER_ERROR"
        assert "hunter2" not in str(body)

    def test_unknown_exception_detail_in_development(self):
        _, body = translate_exception(RuntimeError("boom"), include_detail=True)
        assert body["errors"]["server"] == "RuntimeError: boom"

    def test_internal_notification_error_is_a_server_error(self):
        status, body = translate_exception(NotificationError("relay 10.0.0.5 refused"))
        assert status == 500
        assert "10.0.0.5" not in str(body)

    def test_request_validation_error(self):
        exc = RequestValidationError(
            [{"type": "missing", "loc": ("body", "email"), "msg": "Field required", "input": None}]
        )
        status, body = translate_exception(exc)
        assert status == 400
        assert body["errors"] == {"email": "email is required"}

    def test_http_not_found(self):
        status, body = translate_exception(StarletteHTTPException(status_code=404))
        assert status == 404
        assert body["code"] == "NOT_FOUND"
        assert body["message"] == "Unknown endpoint"

    def test_http_method_not_allowed(self):
        status, body = translate_exception(StarletteHTTPException(status_code=405))
        assert status == 405
        assert body["code"] == "METHOD_NOT_ALLOWED"

    def test_other_client_errors_keep_code_and_status_aligned(self):
        status, body = translate_exception(StarletteHTTPException(status_code=415, detail="Unsupported media"))
        assert status == 400
        assert body["code"] == "VALIDATION_FAILED"
        assert body["message"] == "Unsupported media"


class TestValidationFieldErrors:
    def test_value_error_uses_rule_message(self):
        errors = [
            {
                "type": "value_error",
                "loc": ("body", "password"),
                "msg": "Value error, Password is required",
                "ctx": {"error": ValueError("Password is required")},
            },
            {"type": "string_type", "loc": ("body", "password"), "msg": "Input should be a valid string"},
        ]
        assert validation_field_errors(errors) == {"password": "Password is required"}


class TestHandlersOnTheApp:
    """Tests for handlers registered on the running app."""

    def test_unknown_endpoint(self, client: TestClient):
        response = client.get("/api/v1/nope")
        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "code": "NOT_FOUND",
            "message": "Unknown endpoint",
            "errors": {"path": "The requested resource does not exist"},
        }

    def test_wrong_method(self, client: TestClient):
        response = client.delete("/api/v1/auth/login")
        assert response.status_code == 405
        assert response.json()["code"] == "METHOD_NOT_ALLOWED"
        assert "POST" in response.headers["allow"]

    def test_malformed_json_body(self, client: TestClient):
        response = client.post(
            "/api/v1/auth/login",
            content="{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_FAILED"

    def test_unhandled_exception(self, client: TestClient, monkeypatch):
        from main import app

        router = APIRouter()

        @router.get("/api/test/explode")
        def explode():
            raise RuntimeError("secret internals")

        app.include_router(router)
        try:
            monkeypatch.setattr(get_settings(), "APP_ENV", "production")
            monkeypatch.setattr(get_settings(), "DEBUG", False)
            with TestClient(app, raise_server_exceptions=False) as raw_client:
                response = raw_client.get("/api/test/explode")
        finally:
            app.router.routes = [r for r in app.router.routes if getattr(r, "path", None) != "/api/test/explode"]

        assert response.status_code == 500
        body = response.json()
        assert body["code"] == "SERVER_ERROR"
        assert "secret internals" not in response.text

    def test_security_headers(self, client: TestClient):
        response = client.get("/api/health")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["Cache-Control"] == "no-store"
