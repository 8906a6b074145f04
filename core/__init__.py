"""
VeoBatch Core Components

Provides foundational infrastructure for the batch image-to-video system:
- Configuration loaded from the environment
- Error taxonomy shared by the driver and the queue
- Cancellation tokens for cooperative stop
"""

from .cancellation import CancelToken
from .config import Config, get_config
from .errors import VideoGenerationError

__all__ = ["CancelToken", "Config", "get_config", "VideoGenerationError"]
