"""Logging setup for FileVault.

``json`` format writes one object per line for log shippers; ``text`` is
for a developer terminal. While a request is being served its id (set by
``RequestContextMiddleware``) is attached to every record, and credentials
are scrubbed from messages before any handler sees them.
"""

import contextvars
import json
import logging
import re
import sys
from datetime import datetime, timezone
from typing import Optional

request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="")

# Attributes every LogRecord has; anything else came in through ``extra=``.
_STANDARD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

# boto3/botocore log signed request headers at DEBUG.
_NOISY_LOGGERS = ("boto3", "botocore", "s3transfer", "urllib3", "sqlalchemy.engine", "uvicorn.access")


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        request_id = request_id_var.get()
        if request_id:
            entry["request_id"] = request_id

        entry.update(
            (name, value) for name, value in vars(record).items()
            if name not in _STANDARD_ATTRS and name not in entry
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


_REDACTED = "***REDACTED***"

# Each pattern keeps group 1 (the label) and masks the rest of the match.
_SECRET_PATTERNS = (
    re.compile(r"()\b(?:AKIA|ASIA)[A-Z0-9]{16}\b"),
    re.compile(r"(?i)(X-Amz-Signature=)[0-9a-f]{16,}"),
    re.compile(r"(?i)(X-Amz-Credential=)[^&\s]+"),
    re.compile(r"(?i)(bearer\s+)[\w.\-]{20,}"),
    re.compile(r"(?i)((?:secret_access_key|secret|password|token|authorization)\s*[=:]\s*)[^\s,'\"]{8,}"),
)


def redact(text: str) -> str:
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(lambda m: m.group(1) + _REDACTED, text)
    return text


class _SecretFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if record.args:
            record.msg = record.getMessage()
            record.args = None
        record.msg = redact(str(record.msg))
        if record.exc_text:
            record.exc_text = redact(record.exc_text)
        return True


def setup_logging(log_level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """Install a single stdout handler on the root logger.

    Args:
        log_level: Root level name; INFO when omitted.
        log_format: ``"json"`` (default) or ``"text"``.
    """
    level = (log_level or "INFO").upper()
    fmt = (log_format or "json").lower()

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(_SecretFilter())
    if fmt == "json":
        handler.setFormatter(_JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)-8s %(name)s: %(message)s"))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug("Logging configured", extra={"level": level, "format": fmt})
