"""
Unit tests for audit logging.
"""

import logging

import pytest
from starlette.requests import Request

from daycare.utils.audit_log import AuditLogger, log_auth_event, log_link_event


def make_request(headers=None, client=("10.0.0.5", 4321)):
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/me/access-code",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


@pytest.mark.unit
class TestClientIp:
    """Test client IP extraction."""

    def test_no_request(self):
        assert AuditLogger._get_client_ip(None) == "unknown"

    def test_direct_client(self):
        assert AuditLogger._get_client_ip(make_request()) == "10.0.0.5"

    def test_forwarded_for_wins(self):
        request = make_request(headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1"})

        assert AuditLogger._get_client_ip(request) == "203.0.113.7"


@pytest.mark.unit
class TestAuditMessages:
    """Test audit line format and levels."""

    def test_auth_success_logged_at_info(self, caplog):
        with caplog.at_level(logging.INFO, logger="audit"):
            log_auth_event("register", "user-1", "parent@example.com", True, make_request())

        record = caplog.records[-1]
        assert record.levelno == logging.INFO
        assert record.getMessage() == (
            "AUTH_EVENT | REGISTER | SUCCESS | user_id=user-1 | email=parent@example.com | ip=10.0.0.5"
        )

    def test_auth_failure_logged_at_warning(self, caplog):
        with caplog.at_level(logging.INFO, logger="audit"):
            log_auth_event("login", None, "parent@example.com", False, details="bad password")

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert "user_id=N/A" in record.getMessage()
        assert record.getMessage().endswith("| ip=unknown | details=bad password")

    def test_link_event_includes_optional_fields(self, caplog):
        with caplog.at_level(logging.INFO, logger="audit"):
            log_link_event(
                "redeem_code",
                "user-1",
                True,
                child_id="child-1",
                code="ABCD2345",
                target_email="parent@example.com"
            )

        assert caplog.records[-1].getMessage() == (
            "LINK_EVENT | REDEEM_CODE | SUCCESS | actor=user-1 | child_id=child-1 | "
            "code=ABCD2345 | email=parent@example.com | ip=unknown"
        )

    def test_link_event_omits_missing_fields(self, caplog):
        with caplog.at_level(logging.INFO, logger="audit"):
            log_link_event("repair_link", None, False, details="lookup failed")

        message = caplog.records[-1].getMessage()
        assert caplog.records[-1].levelno == logging.WARNING
        assert "child_id" not in message
        assert "code=" not in message
        assert message == "LINK_EVENT | REPAIR_LINK | FAILURE | actor=N/A | ip=unknown | details=lookup failed"
