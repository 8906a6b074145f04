"""
google-genai backend adapter tests (SDK client mocked, SDK types real).
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from google.genai import types

from services.video_generation.backend import GenaiVideoBackend, SubmissionRequest, to_snapshot
from services.video_generation.models import GenerationConfig, RemoteOperation


def sdk_operation(**kwargs) -> types.GenerateVideosOperation:
    return types.GenerateVideosOperation(name="models/veo/operations/123", **kwargs)


class TestSnapshot:
    def test_running_operation(self):
        snapshot = to_snapshot(sdk_operation(done=False))
        assert snapshot.name == "models/veo/operations/123"
        assert not snapshot.done
        assert snapshot.response is None

    def test_finished_operation_with_video(self):
        operation = sdk_operation(
            done=True,
            response=types.GenerateVideosResponse(
                generated_videos=[types.GeneratedVideo(video=types.Video(uri="https://cdn/v.mp4"))],
            ),
        )
        snapshot = to_snapshot(operation)
        assert snapshot.done
        assert snapshot.video_uri == "https://cdn/v.mp4"
        assert snapshot.response.rai_media_filtered_reasons == []

    def test_filtered_operation(self):
        operation = sdk_operation(
            done=True,
            response=types.GenerateVideosResponse(
                rai_media_filtered_count=1,
                rai_media_filtered_reasons=["Celebrity likeness"],
            ),
        )
        snapshot = to_snapshot(operation)
        assert snapshot.response.rai_media_filtered_reasons == ["Celebrity likeness"]
        assert snapshot.video_uri is None

    def test_error_payload(self):
        snapshot = to_snapshot(sdk_operation(done=True, error={"code": 13, "message": "Internal"}))
        assert snapshot.error.message == "Internal"


class TestGenaiVideoBackend:
    def make_backend(self):
        sdk = MagicMock()
        sdk.aio.models.generate_videos = AsyncMock(return_value=sdk_operation(done=False))
        sdk.aio.operations.get = AsyncMock(return_value=sdk_operation(done=True))
        return GenaiVideoBackend(sdk), sdk

    @pytest.mark.asyncio
    async def test_submit_sends_generation_parameters(self, png_image):
        backend, sdk = self.make_backend()
        config = GenerationConfig(prompt="Drift", resolution="720p", aspect_ratio="9:16")

        snapshot = await backend.submit(
            SubmissionRequest(model="veo-test", prompt=config.final_prompt, image=png_image, config=config)
        )

        assert snapshot.name == "models/veo/operations/123"
        kwargs = sdk.aio.models.generate_videos.await_args.kwargs
        assert kwargs["model"] == "veo-test"
        assert kwargs["prompt"] == config.final_prompt
        assert kwargs["image"].image_bytes == png_image.data
        assert kwargs["image"].mime_type == "image/png"
        assert kwargs["config"].number_of_videos == 1
        assert kwargs["config"].duration_seconds == 4
        assert kwargs["config"].resolution == "720p"
        assert kwargs["config"].aspect_ratio == "9:16"

    @pytest.mark.asyncio
    async def test_refresh_polls_by_name(self):
        backend, sdk = self.make_backend()

        snapshot = await backend.refresh(RemoteOperation(name="models/veo/operations/123"))

        assert snapshot.done
        polled = sdk.aio.operations.get.await_args.args[0]
        assert polled.name == "models/veo/operations/123"
