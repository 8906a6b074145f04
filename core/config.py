"""
Configuration management for VeoBatch.

Centralizes all configuration including:
- API key and model selection
- Vertex AI (delegated token) settings
- Retry and polling timings
- Generation defaults
"""

import os
from dataclasses import dataclass, field
from typing import Optional

DEFAULT_MODEL = "veo-3.1-fast-generate-preview"
DEFAULT_LOCATION = "us-central1"


def _env_api_key() -> str:
    return os.getenv("API_KEY") or os.getenv("GEMINI_API_KEY", "")


@dataclass
class APIConfig:
    """AI Studio API configuration."""

    # Shared fallback key, used only when no explicit key is supplied
    api_key: str = field(default_factory=_env_api_key)
    model: str = field(default_factory=lambda: os.getenv("VEO_MODEL", DEFAULT_MODEL))

    download_timeout: float = 600.0  # 10 min for large clips


@dataclass
class VertexConfig:
    """Vertex AI configuration (project + region + short-lived OAuth token)."""

    project_id: str = field(default_factory=lambda: os.getenv("VERTEX_PROJECT_ID", ""))
    location: str = field(default_factory=lambda: os.getenv("VERTEX_LOCATION", DEFAULT_LOCATION))
    access_token: str = field(default_factory=lambda: os.getenv("VERTEX_ACCESS_TOKEN", ""))

    @property
    def is_complete(self) -> bool:
        return bool(self.project_id.strip() and self.access_token.strip())


@dataclass
class RetryConfig:
    """Backoff and polling timings (seconds)."""

    # Submission (admission control)
    submit_max_retries: int = 50
    submit_initial_backoff: float = 20.0
    submit_backoff_multiplier: float = 1.5
    submit_max_backoff: float = 120.0

    # Polling (eventual visibility of an accepted operation)
    propagation_delay: float = 10.0
    poll_interval: float = 10.0
    max_not_found_polls: int = 120  # ~20 minutes at 10s
    poll_rate_limit_wait: float = 20.0


@dataclass
class GenerationDefaults:
    """Defaults for the request shaping of every job."""

    prompt: str = "Silent video. No audio. Add simple motion."
    resolution: str = "720p"
    aspect_ratio: str = "9:16"


@dataclass
class Config:
    """Main configuration class."""

    api: APIConfig = field(default_factory=APIConfig)
    vertex: VertexConfig = field(default_factory=VertexConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    defaults: GenerationDefaults = field(default_factory=GenerationDefaults)

    output_dir: str = field(default_factory=lambda: os.getenv("VEOBATCH_OUTPUT_DIR", "./output"))

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        return cls()

    def validate(self) -> list[str]:
        """Validate configuration and return list of issues."""
        issues = []

        if not self.api.api_key and not self.vertex.is_complete:
            issues.append(
                "No credentials configured (API_KEY, or VERTEX_PROJECT_ID + VERTEX_ACCESS_TOKEN)"
            )

        if self.vertex.is_complete and not self.vertex.location.strip():
            issues.append("VERTEX_LOCATION is empty (needed for Vertex AI requests)")

        partial = bool(self.vertex.project_id.strip()) != bool(self.vertex.access_token.strip())
        if partial:
            issues.append(
                "Vertex AI settings are incomplete (need both VERTEX_PROJECT_ID and "
                "VERTEX_ACCESS_TOKEN); falling back to API key"
            )

        return issues


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reload_config():
    """Reload configuration from environment."""
    global _config
    _config = Config.from_env()
