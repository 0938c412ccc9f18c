"""Diagnostics: structured logging and consent-gated Sentry.

Layers:
1. Structured JSON logging with RotatingFileHandler
2. Sentry error reporting, only when the user has opted in
"""

import datetime
import json
import logging
import logging.handlers
import os
from pathlib import Path

import sentry_sdk

from _version import __version__
from security import strip_pii

logger = logging.getLogger(__name__)

# Maximum log age in days
MAX_LOG_AGE_DAYS = 7

APP_DIR = "~/.wavatar"


def _validate_log_dir(env_dir: str) -> str:
    """Validate WAVATAR_LOG_DIR is under ~/.wavatar. Returns safe path."""
    default = os.path.expanduser(f"{APP_DIR}/logs")
    if env_dir:
        resolved = os.path.realpath(env_dir)
        allowed = os.path.realpath(os.path.expanduser(APP_DIR))
        if not resolved.startswith(allowed + os.sep) and resolved != allowed:
            logger.warning("WAVATAR_LOG_DIR outside allowed prefix, using default")
            return default
        return resolved
    return default


class JSONFormatter(logging.Formatter):
    """Structured JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.datetime.fromtimestamp(
                record.created, tz=datetime.timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = {
                "type": type(record.exc_info[1]).__name__,
                "traceback": self.formatException(record.exc_info),
            }
        return json.dumps(log_entry)


def _cleanup_old_logs(log_dir: str):
    """Delete log files older than MAX_LOG_AGE_DAYS."""
    cutoff = datetime.datetime.now() - datetime.timedelta(days=MAX_LOG_AGE_DAYS)
    try:
        for f in Path(log_dir).glob("wavatar.log*"):
            if f.stat().st_mtime < cutoff.timestamp():
                f.unlink(missing_ok=True)
    except OSError as e:
        logger.debug("Log cleanup skipped: %s", e)


def setup_structured_logging(log_dir: str | None = None) -> str:
    """Configure structured JSON logging with rotation.

    Args:
        log_dir: Override log directory (validated against ~/.wavatar prefix).

    Returns:
        The directory logs are written to.
    """
    resolved_dir = _validate_log_dir(log_dir or os.environ.get("WAVATAR_LOG_DIR", ""))
    os.makedirs(resolved_dir, mode=0o700, exist_ok=True)

    log_path = os.path.join(resolved_dir, "wavatar.log")
    log_level = os.environ.get("WAVATAR_LOG_LEVEL", "INFO").upper()

    # Rotating handler: 10MB max, 7 backups
    handler = logging.handlers.RotatingFileHandler(
        log_path,
        maxBytes=10_000_000,
        backupCount=7,
    )
    handler.setFormatter(JSONFormatter())

    root = logging.getLogger()
    root.setLevel(getattr(logging, log_level, logging.INFO))
    root.addHandler(handler)

    _cleanup_old_logs(resolved_dir)

    return resolved_dir


def _telemetry_consent() -> bool:
    consent_path = os.path.expanduser(f"{APP_DIR}/telemetry_consent")
    if not os.path.exists(consent_path):
        return False
    return Path(consent_path).read_text().strip() == "yes"


def init_sentry() -> bool:
    """Initialize Sentry. The DSN is only used once the user has consented.

    Returns True if events will be sent.
    """
    dsn = os.environ.get("SENTRY_DSN", "") if _telemetry_consent() else ""
    sentry_sdk.init(
        dsn=dsn,
        release=f"wavatar@{__version__}",
        environment=os.environ.get("SENTRY_ENV", "development"),
        traces_sample_rate=0.1,
        before_send=strip_pii,
        max_breadcrumbs=50,
    )
    return bool(dsn)


def init_diagnostics():
    """Initialize logging and error reporting. Call once at process start."""
    log_dir = setup_structured_logging()
    reporting = init_sentry()
    logger.info(
        "Diagnostics initialized: logging=%s, sentry=%s",
        log_dir,
        "enabled" if reporting else "disabled",
    )
