"""
Video Generation Service

Turns a still image into a short silent clip through Google Veo:
- AI Studio (API key) or Vertex AI (project + access token) authentication
- Backoff-protected submission and polling of the long-running operation
- Authenticated download of the result
"""

from .client import VideoGenerationClient
from .credentials import (
    Credential,
    DelegatedCredential,
    DelegatedSettings,
    DirectKeyCredential,
    resolve_credential,
)
from .downloader import VideoDownloader
from .models import (
    AspectRatio,
    GenerationConfig,
    RemoteOperation,
    Resolution,
    SourceImage,
    VideoAsset,
)

__all__ = [
    "VideoGenerationClient",
    "VideoDownloader",
    "Credential",
    "DelegatedCredential",
    "DelegatedSettings",
    "DirectKeyCredential",
    "resolve_credential",
    "AspectRatio",
    "GenerationConfig",
    "RemoteOperation",
    "Resolution",
    "SourceImage",
    "VideoAsset",
]
