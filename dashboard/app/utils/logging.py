"""Structured logging for request attempts."""

import logging
from typing import Any

from dashboard.app.api.client import RequestContext

logger = logging.getLogger(__name__)


class StructuredRequestLogger:
    """Structured logger for request attempts."""

    def log_attempt(
        self,
        ctx: RequestContext,
        attempt: int,
        outcome: str,
        latency_ms: float,
        status_code: int | None = None,
        error_reason: str | None = None,
    ) -> None:
        """Log request attempt with structured data."""
        log_data: dict[str, Any] = {
            "method": ctx.method,
            "path": ctx.path,
            "attempt": attempt,
            "outcome": outcome,
            "latency_ms": round(latency_ms, 2),
        }

        if status_code is not None:
            log_data["status_code"] = status_code
        if error_reason:
            log_data["error_reason"] = error_reason

        log_msg = f"API request: {ctx.method} {ctx.path} - {outcome}"

        if outcome == "success":
            logger.info(log_msg, extra={"structured": log_data})
        else:
            logger.warning(log_msg, extra={"structured": log_data})
