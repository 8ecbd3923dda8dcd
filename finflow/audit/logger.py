"""
Audit Logger

DESIGN DECISION: Every ledger mutation is logged.
This provides:
1. Traceability of what changed and when
2. Debugging capability when a refusal surprises the user
3. A short activity history the UI can show

The audit logger:
- Is synchronous, like the rest of the ledger
- Keeps the most recent events in memory
"""

import logging
from collections import deque
from typing import Optional

import structlog

from finflow.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """
    Route structured logs to stderr at the given level.

    structlog filters by the stdlib level, so without this only
    warnings and errors come through.
    """
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper(), logging.INFO))
    logging.getLogger("finflow").setLevel(level.upper())


class AuditLogger:
    """
    Central audit logging service.

    Logs events to:
    1. Structured local log (JSON lines)
    2. A bounded in-memory history (newest last)
    """

    def __init__(
        self,
        logger: Optional[structlog.stdlib.BoundLogger] = None,
        history_size: int = 100,
    ):
        """
        Initialize audit logger.

        Args:
            logger: structlog logger to write to. Defaults to the
                    `finflow.audit` logger.
            history_size: How many recent events to keep in memory.
        """
        self._logger = logger or structlog.get_logger("finflow.audit")
        self._history: deque[AuditEvent] = deque(maxlen=history_size)

    def log(self, event: AuditEvent) -> None:
        """Log an audit event locally and remember it."""
        self._history.append(event)

        log_dict = event.to_log_dict()
        if event.severity == AuditSeverity.ERROR:
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

    def recent_events(self, limit: int = 20) -> list[AuditEvent]:
        """Most recent events, newest first."""
        return list(reversed(self._history))[:limit]

    def log_refusal(self, operation: str, error: Exception) -> None:
        """Log a refused mutation."""
        reason = getattr(error, "reason", type(error).__name__)
        self.log(AuditEventBuilder.mutation_refused(operation, reason, str(error)))

    def log_storage_failure(self, operation: str, key: str, error: Exception) -> None:
        """Log a storage read or write failure."""
        self.log(AuditEventBuilder.storage_failed(operation, key, str(error)))
