"""
Tests for structured request logging.
"""

import pytest
import json
import logging
import sys
from unittest.mock import patch
from fastapi import FastAPI
from fastapi.testclient import TestClient

from core.middleware.identity import IdentityMiddleware
from core.middleware.logging import (
    is_sensitive_field,
    mask_sensitive_data,
    mask_headers,
    should_log_request,
    StructuredFormatter,
    StructuredLoggingMiddleware,
)


class TestSensitiveFieldDetection:
    """Test sensitive field name detection."""

    @pytest.mark.parametrize("field_name,expected", [
        ("password", True),
        ("access_token", True),
        ("api_key", True),
        ("x-api-key", True),
        ("client_secret", True),
        ("Authorization", True),
        ("cookie", True),
        ("session_id", True),
        ("username", False),
        ("post_id", False),
        ("x-actor-id", False),
    ])
    def test_sensitive_field_patterns(self, field_name, expected):
        assert is_sensitive_field(field_name) == expected


class TestDataStructureMasking:
    """Test masking of nested request data."""

    def test_dict_masking(self):
        masked = mask_sensitive_data({"username": "john", "password": "hunter2"})
        assert masked == {"username": "john", "password": "[REDACTED]"}

    def test_nested_structures(self):
        data = {"scoring": {"api_key": "sk_live", "timeout": 30}, "items": [{"token": "t"}]}
        masked = mask_sensitive_data(data)
        assert masked["scoring"] == {"api_key": "[REDACTED]", "timeout": 30}
        assert masked["items"] == [{"token": "[REDACTED]"}]

    def test_max_depth_protection(self):
        data = current = {}
        for _ in range(15):
            current["next"] = {}
            current = current["next"]
        masked = mask_sensitive_data(data, max_depth=5)
        assert "[MAX_DEPTH_EXCEEDED]" in json.dumps(masked)


class TestHeaderMasking:
    """Test header masking."""

    def test_authorization_keeps_scheme(self):
        masked = mask_headers({"Authorization": "Bearer abc.def.ghi"})
        assert masked["Authorization"] == "Bearer [REDACTED]"

    def test_identity_headers_are_kept(self):
        masked = mask_headers({"X-Actor-Id": "7", "Cookie": "session=1"})
        assert masked == {"X-Actor-Id": "7", "Cookie": "[REDACTED]"}


class TestSkipPaths:

    @pytest.mark.parametrize("path,expected", [
        ("/health", False),
        ("/ready", False),
        ("/api/v1/applies", True),
    ])
    def test_should_log_request(self, path, expected):
        assert should_log_request(path) == expected


class TestStructuredFormatter:
    """Test JSON log formatting."""

    def test_formats_extra_fields(self):
        record = logging.LogRecord(
            name="api.services.applies",
            level=logging.ERROR,
            pathname=__file__,
            lineno=1,
            msg="Could not request analysis for apply %s",
            args=(42,),
            exc_info=None,
        )
        record.apply_id = 42

        payload = json.loads(StructuredFormatter().format(record))

        assert payload["level"] == "ERROR"
        assert payload["logger"] == "api.services.applies"
        assert payload["message"] == "Could not request analysis for apply 42"
        assert payload["apply_id"] == 42

    def test_includes_exception(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = logging.LogRecord(
                "x", logging.ERROR, __file__, 1, "failed", None, sys.exc_info()
            )

        payload = json.loads(StructuredFormatter().format(record))
        assert payload["exception"]["type"] == "RuntimeError"
        assert payload["exception"]["message"] == "boom"


class TestStructuredLoggingMiddleware:
    """Test structured logging middleware."""

    @pytest.fixture
    def app(self):
        """App with identity inside logging, as in production."""
        app = FastAPI()
        app.add_middleware(IdentityMiddleware)
        app.add_middleware(StructuredLoggingMiddleware)

        @app.get("/things")
        async def things():
            return {"message": "success"}

        @app.get("/health")
        async def health():
            return {"status": "healthy"}

        return app

    @pytest.fixture
    def client(self, app):
        return TestClient(app)

    def test_request_id_generation(self, client):
        response = client.get("/things", headers={"X-Actor-Id": "3"})
        assert response.headers["x-request-id"]

    def test_request_id_preservation(self, client):
        response = client.get(
            "/things", headers={"X-Actor-Id": "3", "x-request-id": "req-123"}
        )
        assert response.headers["x-request-id"] == "req-123"

    def test_completion_log_carries_actor(self, client):
        with patch("core.middleware.logging.logger") as mock_logger:
            response = client.get("/things", headers={"X-Actor-Id": "3"})

        assert response.status_code == 200
        completed = [
            json.loads(call.args[0])
            for call in mock_logger.info.call_args_list
            if "request_completed" in call.args[0]
        ]
        assert completed[0]["actor_id"] == 3
        assert completed[0]["status_code"] == 200
        assert "duration_ms" in completed[0]

    def test_unauthenticated_request_logged_as_warning(self, client):
        with patch("core.middleware.logging.logger") as mock_logger:
            response = client.get("/things")

        assert response.status_code == 401
        logged = json.loads(mock_logger.warning.call_args.args[0])
        assert logged["status_code"] == 401
        assert logged["actor_id"] is None

    def test_health_check_not_logged(self, client):
        with patch("core.middleware.logging.logger") as mock_logger:
            response = client.get("/health")

        assert response.status_code == 200
        assert not mock_logger.info.called
