"""
Failure classification for remote calls.

Structured status information (HTTP status codes on SDK and httpx errors,
canonical gRPC status names) decides the kind. Message inspection is a
fallback for errors that carry no structured status, and only matches
canonical status names or an explicit quota phrase, never bare digits.
"""

import re
from enum import Enum
from typing import Optional

import httpx
from google.genai import errors as genai_errors


class FailureKind(str, Enum):
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    NOT_FOUND = "not_found"
    OTHER = "other"


TRANSIENT_SERVER_CODES = frozenset({500, 503})

_STATUS_NAMES = {
    "RESOURCE_EXHAUSTED": FailureKind.RATE_LIMITED,
    "NOT_FOUND": FailureKind.NOT_FOUND,
    "UNAVAILABLE": FailureKind.SERVER_ERROR,
    "INTERNAL": FailureKind.SERVER_ERROR,
}

_STATUS_NAME_RE = re.compile(r"\b(RESOURCE_EXHAUSTED|NOT_FOUND|UNAVAILABLE|INTERNAL)\b")
_QUOTA_RE = re.compile(r"\bquota\b", re.IGNORECASE)


def status_code_of(error: BaseException) -> Optional[int]:
    """Extract an HTTP status code from an exception, if it carries one."""
    if isinstance(error, genai_errors.APIError):
        return error.code
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code

    for attr in ("status_code", "code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def status_name_of(error: BaseException) -> Optional[str]:
    """Canonical status name (e.g. RESOURCE_EXHAUSTED) when the error reports one."""
    value = getattr(error, "status", None)
    if isinstance(value, str) and value:
        return value.upper()
    return None


def classify(error: BaseException) -> FailureKind:
    """Map an exception raised by a remote call onto a FailureKind."""
    code = status_code_of(error)
    if code is not None:
        if code == 429:
            return FailureKind.RATE_LIMITED
        if code == 404:
            return FailureKind.NOT_FOUND
        if code in TRANSIENT_SERVER_CODES:
            return FailureKind.SERVER_ERROR
        # A 400 carrying RESOURCE_EXHAUSTED is still a quota rejection
        if status_name_of(error) == "RESOURCE_EXHAUSTED":
            return FailureKind.RATE_LIMITED
        return FailureKind.OTHER

    name = status_name_of(error)
    if name in _STATUS_NAMES:
        return _STATUS_NAMES[name]

    message = str(error)
    match = _STATUS_NAME_RE.search(message)
    if match:
        return _STATUS_NAMES[match.group(1)]
    if _QUOTA_RE.search(message):
        return FailureKind.RATE_LIMITED
    return FailureKind.OTHER


def error_message(error: BaseException, default: str) -> str:
    """Best human-readable message for a remote failure."""
    message = getattr(error, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(error) or default
