"""
Audit trail for security-relevant and business events.

Events go to the dedicated ``vetclinic.audit`` logger, one line per event,
tagged with the correlation id and the caller of the current request.
Structured fields travel in ``extra`` so log handlers can index them.
Free-form payloads are passed through sanitize_data before logging.
"""
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import Depends
from pydantic import BaseModel

from .context import RequestContext, get_request_context

audit_logger = logging.getLogger("vetclinic.audit")

MAX_LOGGED_LENGTH = 500
TRUNCATION_MARKER = "... (truncated)"

# key[suffix]['"]? [:=] ['"]?value, value runs until a separator or quote
_SENSITIVE_PATTERNS = [
    (re.compile(r"(?i)(" + keyword + r"\w*)[\"']?\s*[:=]\s*[\"']?[^,}\"']+"), r"\1=***")
    for keyword in ("password", "token", "secret")
]


def sanitize_data(data: Any) -> str:
    """
    Render a payload for logging with credentials masked.

    Args:
        data: Any object; pydantic models are dumped first

    Returns:
        str: Masked text, at most 500 characters plus a truncation marker
    """
    if data is None:
        return "null"
    if isinstance(data, BaseModel):
        data = data.model_dump()

    text = str(data)
    for pattern, replacement in _SENSITIVE_PATTERNS:
        text = pattern.sub(replacement, text)

    if len(text) > MAX_LOGGED_LENGTH:
        text = text[:MAX_LOGGED_LENGTH] + TRUNCATION_MARKER
    return text


def _timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


class AuditLogger:
    """
    Emits audit events for one request.

    Args:
        context: Context of the request being audited. Without one, events
            are attributed to ``system`` and carry no correlation id.
    """

    def __init__(self, context: Optional[RequestContext] = None):
        self.context = context

    @property
    def correlation_id(self) -> Optional[str]:
        return self.context.correlation_id if self.context else None

    @property
    def current_user(self) -> str:
        return self.context.caller if self.context else "system"

    def _emit(self, level: int, action: str, message: str, **fields: Any) -> None:
        if not audit_logger.isEnabledFor(level):
            return
        extra: Dict[str, Any] = {
            "action": action,
            "correlation_id": self.correlation_id,
            "username": self.current_user,
        }
        extra.update({k: v for k, v in fields.items() if v is not None})
        audit_logger.log(level, f"{message} | Correlation-ID: {self.correlation_id}", extra=extra)

    def log_create(self, entity: str, entity_id: Any, data: Any = None) -> None:
        self._emit(
            logging.INFO, "CREATE",
            f"CREATED {entity} with ID {entity_id} | User: {self.current_user} | Data: {sanitize_data(data)}",
            entity=entity, entity_id=str(entity_id),
        )

    def log_update(self, entity: str, entity_id: Any, old_data: Any, new_data: Any) -> None:
        self._emit(
            logging.INFO, "UPDATE",
            f"UPDATED {entity} with ID {entity_id} | User: {self.current_user} "
            f"| Old: {sanitize_data(old_data)} | New: {sanitize_data(new_data)}",
            entity=entity, entity_id=str(entity_id),
        )

    def log_delete(self, entity: str, entity_id: Any) -> None:
        self._emit(
            logging.WARNING, "DELETE",
            f"DELETED {entity} with ID {entity_id} | User: {self.current_user} | Timestamp: {_timestamp()}",
            entity=entity, entity_id=str(entity_id),
        )

    def log_access(self, entity: str, entity_id: Any, reason: str) -> None:
        self._emit(
            logging.INFO, "ACCESS",
            f"ACCESSED {entity} with ID {entity_id} | User: {self.current_user} | Reason: {reason}",
            entity=entity, entity_id=str(entity_id),
        )

    def log_login_success(self, username: str, ip_address: str) -> None:
        self._emit(
            logging.INFO, "LOGIN_SUCCESS",
            f"LOGIN SUCCESS | User: {username} | IP: {ip_address} | Timestamp: {_timestamp()}",
            login=username, client_ip=ip_address,
        )

    def log_login_failure(self, username: str, ip_address: str, reason: str) -> None:
        self._emit(
            logging.WARNING, "LOGIN_FAILURE",
            f"LOGIN FAILURE | User: {username} | IP: {ip_address} | Reason: {reason} | Timestamp: {_timestamp()}",
            login=username, client_ip=ip_address,
        )

    def log_logout(self, username: str) -> None:
        self._emit(
            logging.INFO, "LOGOUT",
            f"LOGOUT | User: {username} | Timestamp: {_timestamp()}",
            login=username,
        )

    def log_permission_change(self, target_user: str, action: str, details: str) -> None:
        self._emit(
            logging.WARNING, "PERMISSION_CHANGE",
            f"PERMISSION CHANGE | Target: {target_user} | Action: {action} "
            f"| Details: {sanitize_data(details)} | By: {self.current_user}",
            target_user=target_user,
        )

    def log_data_export(self, data_type: str, record_count: int, export_format: str) -> None:
        self._emit(
            logging.INFO, "DATA_EXPORT",
            f"DATA EXPORT | Type: {data_type} | Records: {record_count} "
            f"| Format: {export_format} | User: {self.current_user}",
            data_type=data_type,
        )

    def log_status_change(self, entity: str, entity_id: Any, old_status: str, new_status: str) -> None:
        self._emit(
            logging.INFO, "STATUS_CHANGE",
            f"STATUS CHANGE | {entity} ID: {entity_id} | From: {old_status} -> To: {new_status} "
            f"| User: {self.current_user}",
            entity=entity, entity_id=str(entity_id),
        )

    def log_custom_event(self, event_type: str, message: str) -> None:
        self._emit(
            logging.INFO, event_type,
            f"{event_type} | {sanitize_data(message)} | User: {self.current_user}",
        )

    def log_security_event(self, event_type: str, details: str) -> None:
        self._emit(
            logging.ERROR, "SECURITY_EVENT",
            f"SECURITY EVENT | Type: {event_type} | Details: {sanitize_data(details)} | User: {self.current_user}",
            event_type=event_type,
        )


def get_audit_logger(context: RequestContext = Depends(get_request_context)) -> AuditLogger:
    """FastAPI dependency: audit logger bound to the current request."""
    return AuditLogger(context)
