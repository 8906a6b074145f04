"""
Shared fixtures and fakes for the VeoBatch tests.

Run with:
    python -m pytest tests/ -v
"""

import asyncio
import os
import sys
from typing import Optional

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.cancellation import CancelToken
from core.config import Config
from services.video_generation.models import RemoteOperation, SourceImage


class FakeAPIError(Exception):
    """Stands in for an SDK error carrying an HTTP code and status name."""

    def __init__(self, code: Optional[int] = None, status: Optional[str] = None, message: str = ""):
        self.code = code
        self.status = status
        self.message = message or f"{code} {status}"
        super().__init__(self.message)


class FakeBackend:
    """Scripted VideoBackend: each call pops the next outcome (exception or operation)."""

    def __init__(self, submit_outcomes=None, refresh_outcomes=None):
        self.submit_outcomes = list(submit_outcomes or [])
        self.refresh_outcomes = list(refresh_outcomes or [])
        self.submit_calls = []
        self.refresh_calls = []

    @staticmethod
    def _next(outcomes):
        outcome = outcomes.pop(0) if len(outcomes) > 1 else outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def submit(self, request):
        self.submit_calls.append(request)
        return self._next(self.submit_outcomes)

    async def refresh(self, operation):
        self.refresh_calls.append(operation)
        return self._next(self.refresh_outcomes)


class RecordingSleep:
    """Sleep replacement that records durations and honors cancellation."""

    def __init__(self):
        self.calls = []

    async def __call__(self, seconds: float, token: Optional[CancelToken] = None):
        self.calls.append(seconds)
        if token is not None:
            token.raise_if_cancelled()
        await asyncio.sleep(0)


def running_operation(name: str = "operations/op-1") -> RemoteOperation:
    return RemoteOperation(name=name, done=False)


def finished_operation(uri: str = "https://example.com/video.mp4", name: str = "operations/op-1") -> RemoteOperation:
    return RemoteOperation.model_validate({
        "name": name,
        "done": True,
        "response": {"generatedVideos": [{"video": {"uri": uri}}]},
    })


@pytest.fixture
def config():
    return Config()


@pytest.fixture
def png_image():
    return SourceImage(data=b"\x89PNG fake", mime_type="image/png", name="cat.png")


@pytest.fixture
def recording_sleep():
    return RecordingSleep()
