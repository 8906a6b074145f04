"""
Data models for image-to-video generation.

Request shaping (GenerationConfig, SourceImage) are plain dataclasses; the
remote operation snapshot is a pydantic model so it can be validated straight
from the API's JSON payload.
"""

import logging
import mimetypes
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

SILENCE_CLAUSE = "(Video must be completely silent, no sound, no music, no audio track)"
FALLBACK_PROMPT = "Silent video, simple motion"
CLIP_DURATION_SECONDS = 4


class Resolution(str, Enum):
    """Output resolution tiers."""
    HD = "720p"
    FULL_HD = "1080p"


class AspectRatio(str, Enum):
    """Output aspect ratios."""
    LANDSCAPE = "16:9"
    PORTRAIT = "9:16"


@dataclass(frozen=True)
class GenerationConfig:
    """Immutable request shaping shared by every job in a batch."""
    prompt: str = "Silent video. No audio. Add simple motion."
    resolution: Resolution = Resolution.HD
    aspect_ratio: AspectRatio = AspectRatio.PORTRAIT
    duration_seconds: int = CLIP_DURATION_SECONDS

    def __post_init__(self):
        # Accept plain strings ("720p", "16:9") from config and CLI
        object.__setattr__(self, "resolution", Resolution(self.resolution))
        object.__setattr__(self, "aspect_ratio", AspectRatio(self.aspect_ratio))

    @property
    def final_prompt(self) -> str:
        """User prompt with the silence clause always appended."""
        base = self.prompt.strip() or FALLBACK_PROMPT
        return f"{base}. {SILENCE_CLAUSE}"


@dataclass(frozen=True)
class SourceImage:
    """A still image queued for conversion."""
    data: bytes
    mime_type: str
    name: str

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")

    @classmethod
    def from_path(cls, path: str | Path) -> "SourceImage":
        path = Path(path)
        mime_type, _ = mimetypes.guess_type(path.name)
        return cls(
            data=path.read_bytes(),
            mime_type=mime_type or "application/octet-stream",
            name=path.name,
        )


@dataclass(frozen=True)
class VideoAsset:
    """Downloaded video payload."""
    data: bytes
    content_type: str = "video/mp4"
    source_uri: Optional[str] = None

    @property
    def size_mb(self) -> float:
        return len(self.data) / 1024 / 1024

    def save(self, output_dir: str | Path, filename: str) -> Path:
        """Write the video to ``output_dir/filename`` and return the path."""
        base_dir = Path(output_dir)
        base_dir.mkdir(parents=True, exist_ok=True)

        output_path = base_dir / filename
        with open(output_path, "wb") as f:
            f.write(self.data)

        logger.info(f"Video saved: {output_path} ({self.size_mb:.1f} MB)")
        return output_path


# ============================================================
# Remote operation snapshot
# ============================================================

class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class OperationError(_WireModel):
    message: Optional[str] = None
    code: Optional[int] = None


class VideoRef(_WireModel):
    uri: Optional[str] = None


class GeneratedVideo(_WireModel):
    video: Optional[VideoRef] = None


class OperationResponse(_WireModel):
    rai_media_filtered_reasons: list[str] = Field(
        default_factory=list, alias="raiMediaFilteredReasons"
    )
    generated_videos: list[GeneratedVideo] = Field(
        default_factory=list, alias="generatedVideos"
    )

    @field_validator("rai_media_filtered_reasons", "generated_videos", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return value or []


class RemoteOperation(_WireModel):
    """Snapshot of a long-running generation operation."""
    name: Optional[str] = None
    done: bool = False
    error: Optional[OperationError] = None
    response: Optional[OperationResponse] = None

    @property
    def video_uri(self) -> Optional[str]:
        if not self.response or not self.response.generated_videos:
            return None
        video = self.response.generated_videos[0].video
        return video.uri if video else None
