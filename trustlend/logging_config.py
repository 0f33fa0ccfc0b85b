"""
TrustLend Logging

JSON-lines log output and the audit trail written by the loan ledger.

Every audit record carries an `audit` type (see AuditEvent), the request id
of the API call that caused it, and the event's own fields flattened into
the JSON object.
"""

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from .config import ENV, LOG_JSON, LOG_LEVEL

request_id_var: ContextVar[str] = ContextVar('trustlend_request_id', default='')

PLAIN_FORMAT = '%(asctime)s %(levelname)-8s %(name)s: %(message)s'


class AuditEvent(str, Enum):
    LOAN_TRANSITION = "LOAN_TRANSITION"
    CLAIM_VERIFIED = "CLAIM_VERIFIED"
    CLAIM_REJECTED = "CLAIM_REJECTED"
    USER_UPDATE = "USER_UPDATE"
    ADMIN_ACTION = "ADMIN_ACTION"
    SECURITY_EVENT = "SECURITY_EVENT"


SEVERITY_LEVELS = {
    "low": logging.INFO,
    "medium": logging.WARNING,
    "high": logging.ERROR,
    "critical": logging.CRITICAL,
}


class StructuredFormatter(logging.Formatter):
    """Render each record as a single JSON object."""

    def __init__(self, environment: str = ENV):
        super().__init__()
        self.environment = environment

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: Dict[str, Any] = {
            "timestamp": created.strftime('%Y-%m-%dT%H:%M:%S.') + f"{created.microsecond // 1000:03d}Z",
            "level": record.levelname,
            "logger": record.name,
            "env": self.environment,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        request_id = request_id_var.get()
        if request_id:
            entry["request_id"] = request_id
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        entry.update(getattr(record, 'audit_fields', {}))
        return json.dumps(entry, default=str, sort_keys=False)


class AuditLogger:
    """
    Typed audit trail for the loan ledger.

    Audit records go to the `trustlend.audit` logger so deployments can
    route them separately from operational logs.
    """

    def __init__(self, name: str = "trustlend.audit"):
        self._logger = logging.getLogger(name)

    def _emit(self, level: int, audit: AuditEvent, summary: str, **fields) -> None:
        if not self._logger.isEnabledFor(level):
            return
        fields["audit"] = audit.value
        self._logger.log(level, "%s %s", audit.value, summary, extra={"audit_fields": fields})

    def loan_transition(self, event: str, loan_id: int, **fields) -> None:
        self._emit(logging.INFO, AuditEvent.LOAN_TRANSITION, f"loan {loan_id} {event}",
                   ledger_event=event, loan_id=loan_id, **fields)

    def claim_verified(self, account: str, identifier: str, purpose: str) -> None:
        self._emit(logging.INFO, AuditEvent.CLAIM_VERIFIED, f"{purpose} claim from {account}",
                   account=account, identifier=identifier, purpose=purpose)

    def claim_rejected(self, account: str, identifier: str, reason: str) -> None:
        self._emit(logging.WARNING, AuditEvent.CLAIM_REJECTED, f"{reason} for {account}",
                   account=account, identifier=identifier, reason=reason)

    def user_update(self, event: str, account: str, **fields) -> None:
        self._emit(logging.INFO, AuditEvent.USER_UPDATE, f"{event} for {account}",
                   ledger_event=event, account=account, **fields)

    def admin_action(self, action: str, admin: str, **fields) -> None:
        self._emit(logging.INFO, AuditEvent.ADMIN_ACTION, f"{action} by {admin}",
                   action=action, admin=admin, **fields)

    def security_event(self, event: str, severity: str = "medium", **details) -> None:
        """Rejected callers, reentrant calls and similar."""
        level = SEVERITY_LEVELS.get(severity, logging.WARNING)
        self._emit(level, AuditEvent.SECURITY_EVENT, event,
                   security_event=event, severity=severity, **details)


def configure_logging(
    level: Optional[str] = None,
    json_format: Optional[bool] = None,
    log_file: Optional[str] = None
) -> None:
    """
    Install handlers on the root logger, replacing any existing ones.

    Args:
        level: Log level name, TRUSTLEND_LOG_LEVEL when omitted
        json_format: JSON lines when true, plain text otherwise; TRUSTLEND_LOG_JSON when omitted
        log_file: Also write to this file
    """
    level = level or LOG_LEVEL
    json_format = LOG_JSON if json_format is None else json_format

    root = logging.getLogger()
    root.setLevel(logging.getLevelName(level.upper()))
    for handler in list(root.handlers):
        root.removeHandler(handler)

    formatter = StructuredFormatter() if json_format else logging.Formatter(PLAIN_FORMAT)
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)


def set_request_id(request_id: Optional[str] = None) -> str:
    """Bind a request id to the current context, generating one if needed."""
    request_id = request_id or uuid.uuid4().hex
    request_id_var.set(request_id)
    return request_id


def get_request_id() -> str:
    return request_id_var.get()


audit_log = AuditLogger()
