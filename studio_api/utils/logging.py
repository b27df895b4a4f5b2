"""
Logging Configuration

Structured logging setup with JSON output for production, plus helpers
for security and audit events.
"""
import logging
import sys
from typing import Any, Dict, Optional
import json
from datetime import datetime


class JSONFormatter(logging.Formatter):
    """JSON log formatter for log aggregation."""

    EXTRA_FIELDS = (
        "tenant_id",
        "user_id",
        "request_id",
        "path",
        "method",
        "security_event",
        "event_type",
        "audit",
        "action",
        "entity_type",
        "entity_id",
        "changes",
        "reason",
        "role",
        "permission",
        "resource_tenant_id",
        "bucket",
        "target_user_id",
    )

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.utcnow().isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for field in self.EXTRA_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        return json.dumps(log_data, default=str)


def setup_logging(log_level: str = "INFO", json_format: bool = False) -> None:
    """
    Configure application logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON format for structured logging

    Call once at application startup.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))

    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)

    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        handler.setFormatter(formatter)

    root_logger.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_security_event(event_type: str, details: Dict[str, Any], logger: logging.Logger) -> None:
    """
    Log security-related events.

    Event types:
    - failed_login: bad credentials, inactive user or tenant
    - invalid_token: token rejected during verification
    - tenant_isolation_violation: attempted cross-tenant access
    - permission_denied: role lacks the permission
    - rate_limit_exceeded: rate limit hit

    The details stay in the logs; clients only get a generic status.
    """
    log_data = {
        "security_event": True,
        "event_type": event_type,
        **details
    }

    logger.warning(f"SECURITY EVENT: {event_type}", extra=log_data)


# Audit actions for changes to tenants, users, roles and credentials.
# Reads are never audited.
TENANT_CREATED = "TENANT_CREATED"
TENANT_UPDATED = "TENANT_UPDATED"
TENANT_STATUS_CHANGED = "TENANT_STATUS_CHANGED"
USER_CREATED = "USER_CREATED"
USER_UPDATED = "USER_UPDATED"
USER_DELETED = "USER_DELETED"
ROLE_CREATED = "ROLE_CREATED"
ROLE_UPDATED = "ROLE_UPDATED"
ROLE_DELETED = "ROLE_DELETED"
ROLE_CHANGED = "ROLE_CHANGED"
PASSWORD_CHANGED = "PASSWORD_CHANGED"
PASSWORD_RESET = "PASSWORD_RESET"


def log_audit_event(
    action: str,
    entity_type: str,
    entity_id: str,
    logger: logging.Logger,
    tenant_id: Optional[str] = None,
    performed_by: Optional[str] = None,
    changes: Optional[Dict[str, Any]] = None,
) -> None:
    logger.info(
        f"AUDIT: {action} {entity_type}={entity_id}",
        extra={
            "audit": True,
            "action": action,
            "entity_type": entity_type,
            "entity_id": entity_id,
            "tenant_id": tenant_id,
            "user_id": performed_by,
            "changes": changes or {},
        },
    )
