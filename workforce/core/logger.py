"""
Centralized logging module for the Workforce backend.

Follows Layer 6 rules:
- Structured logging suitable for Grafana/Loki/ELK
- Appropriate log levels (info, warning, error, critical)
- NEVER logs passwords, password hashes, tokens, or full request bodies
- Security-sensitive actions emit structured logs with user_id, company_id, action, result, timestamp
"""
import logging
import json
from typing import Any, Dict, Optional
from datetime import datetime, timezone

logger = logging.getLogger("workforce")
logger.setLevel(logging.INFO)

_handler = logging.StreamHandler()
_handler.setLevel(logging.INFO)

_EXTRA_FIELDS = ("user_id", "company_id", "action", "result", "component", "meta")


class JSONFormatter(logging.Formatter):
    """Formatter that outputs structured JSON logs."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for field in _EXTRA_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


_handler.setFormatter(JSONFormatter())
logger.addHandler(_handler)

# Prevent duplicate logs
logger.propagate = False


def log_security_event(
    action: str,
    result: str,
    user_id: Optional[str] = None,
    company_id: Optional[str] = None,
    meta: Optional[Dict[str, Any]] = None,
    level: str = "info",
) -> None:
    """
    Log security-sensitive actions (login, refresh, logout, password, role and status changes).

    Args:
        action: Action name (e.g., "login", "token_refresh", "role_change")
        result: Result status (e.g., "success", "failure", "denied")
        user_id: User ID (optional)
        company_id: Company (tenant) ID (optional)
        meta: Additional metadata dict (optional)
        level: Log level ("info", "warning", "error", "critical")
    """
    log_method = getattr(logger, level.lower(), logger.info)
    extra: Dict[str, Any] = {
        "action": action,
        "result": result,
    }
    if user_id:
        extra["user_id"] = user_id
    if company_id:
        extra["company_id"] = company_id
    if meta:
        extra["meta"] = meta

    log_method("Security event", extra=extra)


def log_incident(component: str, exc: BaseException, operation: Optional[str] = None) -> None:
    """Log an infrastructure fault (cache or database unreachable)."""
    extra: Dict[str, Any] = {"component": component, "action": "dependency_failure"}
    if operation:
        extra["meta"] = {"operation": operation}
    logger.error("Dependency unavailable: %s", type(exc).__name__, extra=extra, exc_info=exc)
