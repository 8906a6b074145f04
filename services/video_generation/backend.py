"""
Veo backend on top of the google-genai SDK.

Translates between the SDK's operation objects and our RemoteOperation
snapshot so the driver never depends on SDK types directly.
"""

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from google import genai
from google.genai import types
from google.oauth2.credentials import Credentials as OAuthCredentials

from .credentials import Credential, DelegatedCredential
from .models import GenerationConfig, RemoteOperation, SourceImage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmissionRequest:
    """Everything a single generate call carries over the wire."""
    model: str
    prompt: str
    image: SourceImage
    config: GenerationConfig
    number_of_videos: int = 1


class VideoBackend(Protocol):
    """Remote API surface used by the generation client."""

    async def submit(self, request: SubmissionRequest) -> RemoteOperation:
        ...

    async def refresh(self, operation: RemoteOperation) -> RemoteOperation:
        ...


def build_genai_client(credential: Credential) -> genai.Client:
    """Create an SDK client for either AI Studio or Vertex AI."""
    if isinstance(credential, DelegatedCredential):
        return genai.Client(
            vertexai=True,
            project=credential.project_id,
            location=credential.location,
            credentials=OAuthCredentials(token=credential.access_token),
        )
    return genai.Client(api_key=credential.api_key)


def to_snapshot(operation: Any) -> RemoteOperation:
    """Convert an SDK GenerateVideosOperation into a RemoteOperation."""
    response = getattr(operation, "response", None) or getattr(operation, "result", None)

    payload: dict[str, Any] = {
        "name": getattr(operation, "name", None),
        "done": bool(getattr(operation, "done", False)),
        "error": getattr(operation, "error", None) or None,
    }

    if response is not None:
        videos = []
        for generated in getattr(response, "generated_videos", None) or []:
            video = getattr(generated, "video", None)
            videos.append({"video": {"uri": getattr(video, "uri", None)} if video else None})
        payload["response"] = {
            "rai_media_filtered_reasons": getattr(response, "rai_media_filtered_reasons", None) or [],
            "generated_videos": videos,
        }

    return RemoteOperation.model_validate(payload)


class GenaiVideoBackend:
    """
    VideoBackend backed by google-genai's async client.

    Usage:
        backend = GenaiVideoBackend.from_credential(credential)
        operation = await backend.submit(request)
        operation = await backend.refresh(operation)
    """

    def __init__(self, client: genai.Client):
        self.client = client

    @classmethod
    def from_credential(cls, credential: Credential) -> "GenaiVideoBackend":
        return cls(build_genai_client(credential))

    async def submit(self, request: SubmissionRequest) -> RemoteOperation:
        operation = await self.client.aio.models.generate_videos(
            model=request.model,
            prompt=request.prompt,
            image=types.Image(
                image_bytes=request.image.data,
                mime_type=request.image.mime_type,
            ),
            config=types.GenerateVideosConfig(
                number_of_videos=request.number_of_videos,
                resolution=request.config.resolution.value,
                aspect_ratio=request.config.aspect_ratio.value,
                duration_seconds=request.config.duration_seconds,
            ),
        )
        return to_snapshot(operation)

    async def refresh(self, operation: RemoteOperation) -> RemoteOperation:
        updated = await self.client.aio.operations.get(
            types.GenerateVideosOperation(name=operation.name)
        )
        return to_snapshot(updated)


def default_backend_factory(credential: Credential) -> VideoBackend:
    return GenaiVideoBackend.from_credential(credential)
