"""Security validation gates for the wavatar backend."""

import json
import os
import re
from pathlib import Path
from urllib.parse import urlparse

ALLOWED_URL_SCHEMES = {"http", "https"}


def validate_asset_url(url: str) -> list[str]:
    """Validate an asset server base URL. Returns list of errors (empty = valid).

    Checks:
    - Scheme is http or https
    - Host is present
    - No embedded credentials, query or fragment
    """
    errors: list[str] = []
    parsed = urlparse(url)

    if parsed.scheme not in ALLOWED_URL_SCHEMES:
        errors.append(
            f"Asset URL scheme '{parsed.scheme}' not allowed. "
            f"Allowed: {sorted(ALLOWED_URL_SCHEMES)}"
        )
        return errors

    if not parsed.hostname:
        errors.append("Asset URL must include a host")

    if parsed.username or parsed.password:
        errors.append("Asset URL must not embed credentials")

    if parsed.query or parsed.fragment:
        errors.append("Asset URL must not carry a query or fragment")

    return errors


def validate_asset_dir(path: str) -> list[str]:
    """Validate an asset directory. Returns list of errors (empty = valid).

    Checks:
    - Directory exists
    - Not a symlink
    - Readable
    """
    errors: list[str] = []
    p = Path(path)

    if not p.exists():
        errors.append(f"Asset directory not found: {path}")
        return errors

    if p.is_symlink():
        errors.append("Symlinks are not allowed")
        return errors

    if not p.is_dir():
        errors.append(f"Not a directory: {path}")
        return errors

    if not os.access(str(p), os.R_OK):
        errors.append(f"Asset directory is not readable: {path}")

    return errors


# --- PII stripping for Sentry and log output ---

_HOME = os.path.expanduser("~")
_USERNAME = os.path.basename(_HOME)
_PATH_PATTERN = re.compile(r"/Users/[^/\s]+|/home/[^/\s]+|C:\\\\Users\\\\[^\\\s]+")
_EMAIL_PATTERN = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
# Avatar inputs are usually MD5/SHA digests of email addresses.
_DIGEST_PATTERN = re.compile(r"\b[0-9a-fA-F]{32,128}\b")
_SENSITIVE_KEYS = {"token", "auth", "key", "secret", "password", "dsn", "email", "hash"}


def _scrub_dict(d: dict):
    """Redact values for keys that look sensitive."""
    for key in list(d.keys()):
        if any(s in key.lower() for s in _SENSITIVE_KEYS):
            d[key] = "<REDACTED>"


# Sentry protocol identifiers are hex too; ingest rejects rewritten ones.
_TRACE_ID_KEYS = ("trace_id", "span_id", "parent_span_id")
_DEBUG_ID_KEYS = ("debug_id", "code_id", "uuid")


def _protocol_ids(event: dict) -> dict:
    trace = (event.get("contexts") or {}).get("trace")
    images = (event.get("debug_meta") or {}).get("images") or []
    return {
        "event_id": event.get("event_id"),
        "trace": (
            {k: trace[k] for k in _TRACE_ID_KEYS if k in trace}
            if isinstance(trace, dict)
            else {}
        ),
        "images": [
            {k: img[k] for k in _DEBUG_ID_KEYS if k in img} if isinstance(img, dict) else {}
            for img in images
        ],
    }


def _restore_protocol_ids(event: dict, ids: dict):
    if ids["event_id"] is not None:
        event["event_id"] = ids["event_id"]
    trace = (event.get("contexts") or {}).get("trace")
    if isinstance(trace, dict):
        trace.update(ids["trace"])
    images = (event.get("debug_meta") or {}).get("images") or []
    for img, img_ids in zip(images, ids["images"]):
        if isinstance(img, dict):
            img.update(img_ids)


def strip_pii(event: dict, hint: dict) -> dict:
    """Sentry before_send hook. Strips paths, emails and avatar input digests.

    Event, trace and debug-image ids are passed through unchanged.
    Also usable for sanitizing arbitrary dicts wrapped as {"extra": ...}.
    """
    ids = _protocol_ids(event)
    event_str = json.dumps(event)
    event_str = _EMAIL_PATTERN.sub("<EMAIL>", event_str)
    event_str = _DIGEST_PATTERN.sub("<DIGEST>", event_str)
    # Replace OS username and home path
    if len(_HOME) > 1:
        event_str = event_str.replace(_HOME, "<HOME>")
    if _USERNAME:
        event_str = event_str.replace(_USERNAME, "<USER>")
    event_str = _PATH_PATTERN.sub("<REDACTED_PATH>", event_str)
    event = json.loads(event_str)
    _restore_protocol_ids(event, ids)

    # Strip sensitive keys from extra/context/tags
    _scrub_dict(event.get("extra", {}))
    _scrub_dict(event.get("tags", {}))
    for ctx in event.get("contexts", {}).values():
        if isinstance(ctx, dict):
            _scrub_dict(ctx)
    return event
