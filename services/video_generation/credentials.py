"""
Credential resolution for the generation API.

Two authentication modes:
- AI Studio: a static API key (explicit, or the shared ambient key)
- Vertex AI: project + location + short-lived OAuth access token

Resolution is pure: the ambient key lookup is injected so tests never touch
the real environment.
"""

import os
from dataclasses import dataclass
from typing import Callable, Optional, Union

from core.config import DEFAULT_LOCATION
from core.errors import MissingCredentialsError, MissingLocationError

_QUOTES = ('"', "'")


@dataclass(frozen=True)
class DirectKeyCredential:
    """AI Studio API key, already sanitized."""
    api_key: str

    def __repr__(self) -> str:
        return "DirectKeyCredential(api_key=***)"


@dataclass(frozen=True)
class DelegatedCredential:
    """Vertex AI project context plus OAuth access token."""
    project_id: str
    location: str
    access_token: str

    def __repr__(self) -> str:
        return (
            f"DelegatedCredential(project_id={self.project_id!r}, "
            f"location={self.location!r}, access_token=***)"
        )


Credential = Union[DirectKeyCredential, DelegatedCredential]


@dataclass(frozen=True)
class DelegatedSettings:
    """Raw Vertex AI settings as entered by the user (possibly incomplete)."""
    project_id: str = ""
    location: str = DEFAULT_LOCATION
    access_token: str = ""


def ambient_api_key() -> Optional[str]:
    """Shared key from the environment, if the deployment provides one."""
    return os.getenv("API_KEY") or os.getenv("GEMINI_API_KEY")


def sanitize_key(key: Optional[str]) -> str:
    """Trim whitespace and one layer of matching quotes (common in .env files)."""
    if not key:
        return ""
    k = key.strip()
    if len(k) >= 2 and k[0] in _QUOTES and k[0] == k[-1]:
        k = k[1:-1].strip()
    return k


def resolve_credential(
    api_key: Optional[str] = None,
    delegated: Optional[DelegatedSettings] = None,
    ambient: Callable[[], Optional[str]] = ambient_api_key,
) -> Credential:
    """
    Decide which credential a request should use.

    Args:
        api_key: Explicit AI Studio key (takes precedence over the ambient key)
        delegated: Vertex AI settings; used only when project and token are both set
        ambient: Accessor for the fallback key

    Returns:
        DelegatedCredential or DirectKeyCredential

    Raises:
        MissingLocationError: Vertex AI settings are complete but location is empty
        MissingCredentialsError: no usable credential at all
    """
    if delegated is not None:
        project_id = delegated.project_id.strip()
        access_token = delegated.access_token.strip()
        if project_id and access_token:
            location = (delegated.location or "").strip()
            if not location:
                raise MissingLocationError()
            return DelegatedCredential(
                project_id=project_id,
                location=location,
                access_token=access_token,
            )

    key = sanitize_key(api_key) or sanitize_key(ambient())
    if not key:
        raise MissingCredentialsError()
    return DirectKeyCredential(api_key=key)
