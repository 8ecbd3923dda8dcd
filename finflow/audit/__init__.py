"""Audit logging package."""

from finflow.audit.logger import AuditLogger, configure_logging

__all__ = ["AuditLogger", "configure_logging"]
