"""
Utility modules for the daycare portal.
"""

from .audit_log import AuditLogger, log_auth_event, log_link_event
from .http_errors import http_error

__all__ = [
    "AuditLogger",
    "log_auth_event",
    "log_link_event",
    "http_error"
]
