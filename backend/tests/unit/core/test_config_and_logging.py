"""
Unit Tests for settings parsing, structured logging and id generation
"""
import json
import logging
import pytest

from bugtracker.core.config import DEFAULT_JWT_SECRET, Settings, parse_cors_origins
from bugtracker.core.database import get_database_url
from bugtracker.core.logging_config import (
    JSONFormatter,
    RequestContextFilter,
    generate_request_id,
    get_request_id,
    logger,
    set_request_id,
    set_user_id,
)
from bugtracker.core.middleware import is_quiet_path


class TestCorsOrigins:

    def test_comma_separated(self):
        assert parse_cors_origins("http://a.test, http://b.test,") == ["http://a.test", "http://b.test"]

    def test_json_list(self):
        assert parse_cors_origins('["http://a.test"]') == ["http://a.test"]

    def test_other_types(self):
        assert parse_cors_origins(["http://a.test"]) == ["http://a.test"]
        assert parse_cors_origins(None) == []


class TestSettings:

    def test_default_secret_detection(self):
        assert Settings(JWT_SECRET_KEY=DEFAULT_JWT_SECRET).uses_default_secret()
        assert Settings(JWT_SECRET_KEY="").uses_default_secret()
        assert not Settings(JWT_SECRET_KEY="something-long-and-random").uses_default_secret()

    def test_dev_mode(self):
        assert Settings(ENVIRONMENT="development").is_dev_mode()
        assert Settings(ENVIRONMENT="production", DEBUG=True).is_dev_mode()
        assert not Settings(ENVIRONMENT="production", DEBUG=False).is_dev_mode()

    def test_token_lifetime_default(self):
        assert Settings().ACCESS_TOKEN_EXPIRE_DAYS == 30


def test_database_url_gets_async_driver(monkeypatch):
    from bugtracker.core import database

    monkeypatch.setattr(database.settings, "DATABASE_URL", "postgresql://u:p@db/bugs")
    assert get_database_url() == "postgresql+asyncpg://u:p@db/bugs"

    monkeypatch.setattr(database.settings, "DATABASE_URL", "sqlite:///./bugs.db")
    assert get_database_url() == "sqlite+aiosqlite:///./bugs.db"


class TestLogging:

    def _record(self, **extra):
        record = logging.LogRecord("bugtracker", logging.INFO, __file__, 10, "Bug created", None, None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_json_formatter_includes_context_and_extra(self):
        set_request_id("req12345")
        set_user_id("user-1")
        try:
            record = self._record(event_type="bug", bug_number="BUG-1-ABCD")
            RequestContextFilter().filter(record)
            payload = json.loads(JSONFormatter().format(record))
        finally:
            set_request_id("")
            set_user_id("")

        assert payload["message"] == "Bug created"
        assert payload["level"] == "INFO"
        assert payload["request_id"] == "req12345"
        assert payload["user_id"] == "user-1"
        assert payload["event_type"] == "bug"
        assert payload["bug_number"] == "BUG-1-ABCD"

    def test_context_filter_placeholders(self):
        record = self._record()
        RequestContextFilter().filter(record)

        assert record.request_id == "-"
        assert record.user_id == "-"

    def test_request_id_roundtrip(self):
        request_id = generate_request_id()
        set_request_id(request_id)
        try:
            assert len(request_id) == 8
            assert get_request_id() == request_id
        finally:
            set_request_id("")

    def test_logger_helpers(self):
        # Helpers must accept their documented arguments without raising
        logger.log_bug_event("created", bug_id="abc", bug_number="BUG-1-ABCD")
        logger.log_auth_event("login", success=False, user_email="a@b.test", reason="Invalid credentials")
        logger.log_request("GET", "/api/bugs", 200, 1.5, client_ip="127.0.0.1")
        try:
            raise RuntimeError("boom")
        except RuntimeError as exc:
            logger.log_error_with_context(exc, context="unit test")


@pytest.mark.parametrize("path,quiet", [
    ("/health", True),
    ("/api/health", True),
    ("/api/bugs", False),
])
def test_quiet_paths(path, quiet):
    assert is_quiet_path(path) is quiet
