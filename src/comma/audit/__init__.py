"""
Audit logging of generation and commit events.
"""

from .logger import (
    AuditEvent,
    AuditLogger,
    STATUS_ERROR,
    STATUS_SUCCESS,
    estimate_tokens,
)

__all__ = [
    "AuditEvent",
    "AuditLogger",
    "STATUS_ERROR",
    "STATUS_SUCCESS",
    "estimate_tokens",
]
