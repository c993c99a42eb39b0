"""
Redaction and response shapes of the centralized error handling
"""

import json
import logging

import httpx
import pytest

from app import app
from services.panels_service import get_panels_service
from utils.error_handling import ErrorHandlingConfig, StructuredLogger


class TestSanitization:

    def test_credentials_are_redacted(self):
        data = {
            "title": "Dash",
            "api_key": "k-123",
            "nested": {"Authorization": "Bearer abc", "url": "http://x"},
            "items": [{"password": "p"}]
        }

        assert ErrorHandlingConfig.sanitize_data(data) == {
            "title": "Dash",
            "api_key": "***REDACTED***",
            "nested": {"Authorization": "***REDACTED***", "url": "http://x"},
            "items": [{"password": "***REDACTED***"}]
        }

    def test_long_strings_are_truncated(self):
        text = "x" * (ErrorHandlingConfig.MAX_BODY_LOG_SIZE + 10)

        sanitized = ErrorHandlingConfig.sanitize_data(text)

        assert sanitized.endswith("...[TRUNCATED]")
        assert len(sanitized) == ErrorHandlingConfig.MAX_BODY_LOG_SIZE + len("...[TRUNCATED]")

    def test_json_body_is_decoded_and_redacted(self):
        body = json.dumps({"title": "Dash", "api_key": "secret"}).encode()

        assert ErrorHandlingConfig.sanitize_body(body) == {"title": "Dash", "api_key": "***REDACTED***"}

    @pytest.mark.parametrize("body,expected", [
        (None, None),
        (b"", None),
        (b"plain text", "plain text"),
        (b"\xff\xfe", "DECODE_ERROR"),
    ])
    def test_non_json_bodies(self, body, expected):
        assert ErrorHandlingConfig.sanitize_body(body) == expected


class TestStructuredLogger:

    def test_log_entry_is_json_with_redacted_context(self, caplog):
        with caplog.at_level(logging.ERROR, logger="utils.error_handling"):
            trace_id = StructuredLogger.log_error(
                "business_error",
                "Something failed",
                exception=RuntimeError("boom"),
                extra_context={"api_key": "k"},
                include_traceback=False
            )

        entry = json.loads(caplog.records[-1].getMessage())
        assert entry["trace_id"] == trace_id
        assert entry["error_type"] == "business_error"
        assert entry["exception"]["type"] == "RuntimeError"
        assert entry["context"] == {"api_key": "***REDACTED***"}


class TestErrorResponses:

    @pytest.mark.asyncio
    async def test_validation_error_shape(self, client, alice, auth_headers):
        response = await client.post("/api/panels", json={"title": ""}, headers=auth_headers(alice))

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Validation Error"
        assert body["error_count"] == len(body["errors"]) == 4
        assert {"field", "message", "type"} <= set(body["errors"][0])
        assert body["trace_id"]
        assert body["timestamp"]

    @pytest.mark.asyncio
    async def test_http_error_shape(self, client, alice, auth_headers):
        response = await client.get("/api/panels/bad-id", headers=auth_headers(alice))

        body = response.json()
        assert body["error"] == "HTTP 400"
        assert body["message"] == "Invalid ID"
        assert "timestamp" in body

    @pytest.mark.asyncio
    async def test_api_key_not_echoed_in_validation_errors(self, client, alice, auth_headers):
        response = await client.post(
            "/api/panels",
            json={"title": "", "url": "u", "api_url": "a", "api_key": "very-secret-key"},
            headers=auth_headers(alice)
        )

        assert response.status_code == 400
        assert "very-secret-key" not in response.text

    @pytest.mark.asyncio
    async def test_unhandled_exception_carries_trace_header(self):
        def broken_service():
            raise RuntimeError("service wiring failed")

        app.dependency_overrides[get_panels_service] = broken_service
        transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
        try:
            async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http_client:
                response = await http_client.get("/api/panels")
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 500
        body = response.json()
        assert body["message"] == "Server Error"
        assert "service wiring failed" not in response.text
        assert response.headers["X-Trace-ID"] == body["trace_id"]
