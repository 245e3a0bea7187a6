"""
Audit logging for account and linking events.

Registration, sign-in, code issuance, redemption and repair outcomes are
written as pipe-delimited lines to the ``audit`` logger so a parent's
linking history can be reconstructed from the logs.
"""

import logging
from typing import Optional
from fastapi import Request

audit_logger = logging.getLogger("audit")
audit_logger.setLevel(logging.INFO)

if not audit_logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter(
        '%(asctime)s - AUDIT - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    handler.setFormatter(formatter)
    audit_logger.addHandler(handler)


class AuditLogger:
    """Centralized audit logging for account and link events."""

    @staticmethod
    def _get_client_ip(request: Optional[Request]) -> str:
        """Extract client IP from request."""
        if not request:
            return "unknown"

        # Behind a proxy the first forwarded hop is the client
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()

        return request.client.host if request.client else "unknown"

    @staticmethod
    def log_auth_event(
        event_type: str,
        user_id: Optional[str],
        email: Optional[str],
        success: bool,
        request: Optional[Request] = None,
        details: Optional[str] = None
    ):
        """
        Log authentication events.

        Args:
            event_type: register, login, google_login
            user_id: User ID if known
            email: Email the caller presented
            success: Whether the operation succeeded
            request: FastAPI request object for IP extraction
            details: Additional details about the event
        """
        ip = AuditLogger._get_client_ip(request)
        status = "SUCCESS" if success else "FAILURE"

        message = (
            f"AUTH_EVENT | {event_type.upper()} | {status} | "
            f"user_id={user_id or 'N/A'} | email={email or 'N/A'} | ip={ip}"
        )

        if details:
            message += f" | details={details}"

        if success:
            audit_logger.info(message)
        else:
            audit_logger.warning(message)

    @staticmethod
    def log_link_event(
        event_type: str,
        actor_id: Optional[str],
        success: bool,
        child_id: Optional[str] = None,
        code: Optional[str] = None,
        target_email: Optional[str] = None,
        request: Optional[Request] = None,
        details: Optional[str] = None
    ):
        """
        Log access code and parent link events.

        Args:
            event_type: issue_code, redeem_code, revoke_code, repair_link
            actor_id: User performing the operation
            success: Whether the operation succeeded
            child_id: Child affected, if any
            code: Access code involved, if any
            target_email: Parent email the operation was for
            request: FastAPI request object
            details: Additional details
        """
        ip = AuditLogger._get_client_ip(request)
        status = "SUCCESS" if success else "FAILURE"

        message = f"LINK_EVENT | {event_type.upper()} | {status} | actor={actor_id or 'N/A'}"

        if child_id:
            message += f" | child_id={child_id}"
        if code:
            message += f" | code={code}"
        if target_email:
            message += f" | email={target_email}"

        message += f" | ip={ip}"

        if details:
            message += f" | details={details}"

        if success:
            audit_logger.info(message)
        else:
            audit_logger.warning(message)


# Convenience functions
def log_auth_event(
    event_type: str,
    user_id: Optional[str],
    email: Optional[str],
    success: bool,
    request: Optional[Request] = None,
    details: Optional[str] = None
):
    """Convenience wrapper for AuditLogger.log_auth_event."""
    AuditLogger.log_auth_event(event_type, user_id, email, success, request, details)


def log_link_event(
    event_type: str,
    actor_id: Optional[str],
    success: bool,
    child_id: Optional[str] = None,
    code: Optional[str] = None,
    target_email: Optional[str] = None,
    request: Optional[Request] = None,
    details: Optional[str] = None
):
    """Convenience wrapper for AuditLogger.log_link_event."""
    AuditLogger.log_link_event(
        event_type, actor_id, success, child_id, code, target_email, request, details
    )
