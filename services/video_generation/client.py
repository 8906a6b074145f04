"""
Image-to-Video Generation Client

Drives one still image through the remote Veo pipeline:
- Submission with bounded exponential backoff on rate limits / server errors
- Polling of the long-running operation until it completes
- Result extraction (errors, safety-filter rejections, video URI)
- Authenticated download of the produced clip

Submission and polling keep separate retry budgets: submission failures are
admission control (the request was never accepted), polling failures are
eventual-consistency hiccups on an operation that already exists.
"""

import logging
from dataclasses import dataclass, replace
from typing import Awaitable, Callable, Optional

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from core.cancellation import CancelToken, cancellable_sleep
from core.config import Config, get_config
from core.errors import (
    ContentFilteredError,
    FatalRemoteError,
    NoOperationHandleError,
    NoResultLocatorError,
    PollingTimeoutError,
    RetriesExhaustedError,
    VideoGenerationError,
)

from .backend import SubmissionRequest, VideoBackend, default_backend_factory
from .classifier import FailureKind, classify, error_message, status_code_of
from .credentials import Credential
from .downloader import VideoDownloader
from .models import GenerationConfig, RemoteOperation, SourceImage, VideoAsset

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]
SleepFn = Callable[[float, Optional[CancelToken]], Awaitable[None]]

SUBMIT_RETRYABLE = frozenset({FailureKind.RATE_LIMITED, FailureKind.SERVER_ERROR})


@dataclass(frozen=True)
class PollState:
    """Loop state of the polling phase."""
    operation: RemoteOperation
    not_found: int = 0
    refreshes: int = 0


class VideoGenerationClient:
    """
    Resilient driver for Veo image-to-video operations.

    Usage:
        client = VideoGenerationClient()

        asset = await client.generate(
            image=SourceImage.from_path("cat.png"),
            config=GenerationConfig(prompt="The cat slowly blinks"),
            credential=resolve_credential(api_key="..."),
            on_progress=print,
            token=CancelToken(),
        )
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        backend_factory: Optional[Callable[[Credential], VideoBackend]] = None,
        downloader: Optional[VideoDownloader] = None,
        sleep: Optional[SleepFn] = None,
    ):
        """
        Initialize the generation client.

        Args:
            config: Optional config override
            backend_factory: Builds the remote backend for a credential
            downloader: Asset fetcher for finished videos
            sleep: Cancellable sleep, (seconds, token) -> awaitable
        """
        self.config = config or get_config()
        self.backend_factory = backend_factory or default_backend_factory
        self.downloader = downloader or VideoDownloader(
            timeout=self.config.api.download_timeout
        )
        self._sleep = sleep or cancellable_sleep

    @property
    def model(self) -> str:
        return self.config.api.model

    def _emit_progress(self, on_progress: Optional[ProgressCallback], message: str):
        """Emit progress update via callback."""
        if on_progress:
            try:
                on_progress(message)
            except Exception as e:
                logger.warning(f"Progress callback failed: {e}")

    async def generate(
        self,
        image: SourceImage,
        config: GenerationConfig,
        credential: Credential,
        on_progress: Optional[ProgressCallback] = None,
        token: Optional[CancelToken] = None,
    ) -> VideoAsset:
        """Run the full pipeline and return the downloaded video."""
        token = token or CancelToken()
        locator = await self.run(image, config, credential, on_progress, token)

        self._emit_progress(on_progress, "Downloading result...")
        return await self.downloader.download(locator, credential, token)

    async def run(
        self,
        image: SourceImage,
        config: GenerationConfig,
        credential: Credential,
        on_progress: Optional[ProgressCallback] = None,
        token: Optional[CancelToken] = None,
    ) -> str:
        """
        Submit, poll and extract the result locator for one image.

        Returns:
            URI of the generated video

        Raises:
            VideoGenerationError: any terminal failure (see core.errors)
        """
        token = token or CancelToken()
        token.raise_if_cancelled()

        backend = self.backend_factory(credential)

        # The SDK base64-encodes image_bytes on the wire
        self._emit_progress(on_progress, "Encoding image...")
        request = SubmissionRequest(
            model=self.model,
            prompt=config.final_prompt,
            image=image,
            config=config,
        )

        self._emit_progress(on_progress, "Initializing generation...")
        operation = await self.submit(backend, request, token, on_progress)
        logger.info(f"Operation started: {operation.name}")

        self._emit_progress(on_progress, "Generating video (this may take a minute)...")
        operation = await self.poll(backend, operation, token)

        return self.extract_locator(operation)

    # ------------------------------------------------------------
    # Phase A: submission
    # ------------------------------------------------------------

    async def submit(
        self,
        backend: VideoBackend,
        request: SubmissionRequest,
        token: CancelToken,
        on_progress: Optional[ProgressCallback] = None,
    ) -> RemoteOperation:
        policy = self.config.retry

        def is_retryable(error: BaseException) -> bool:
            if token.cancelled or isinstance(error, VideoGenerationError):
                return False
            return classify(error) in SUBMIT_RETRYABLE

        def log_attempt(retry_state: RetryCallState):
            if (retry_state.attempt_number - 1) % 5 == 0:
                logger.warning(
                    f"Generation start attempt {retry_state.attempt_number} failed: "
                    f"{retry_state.outcome.exception()!r}"
                )

        def announce_wait(retry_state: RetryCallState):
            error = retry_state.outcome.exception()
            if classify(error) is FailureKind.RATE_LIMITED:
                reason = "Rate limit (429)"
            else:
                reason = f"Server error ({status_code_of(error)})"
            wait_seconds = round(retry_state.next_action.sleep)
            self._emit_progress(
                on_progress,
                f"{reason}. Waiting {wait_seconds}s before retry "
                f"({retry_state.attempt_number}/{policy.submit_max_retries})...",
            )

        retrying = AsyncRetrying(
            retry=retry_if_exception(is_retryable),
            stop=stop_after_attempt(policy.submit_max_retries + 1),
            wait=wait_exponential(
                multiplier=policy.submit_initial_backoff,
                exp_base=policy.submit_backoff_multiplier,
                max=policy.submit_max_backoff,
            ),
            sleep=lambda seconds: self._sleep(seconds, token),
            after=log_attempt,
            before_sleep=announce_wait,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    token.raise_if_cancelled()
                    operation = await token.guard(backend.submit(request))
        except RetryError as e:
            last = e.last_attempt
            logger.error(f"Generation start gave up after {last.attempt_number} attempts")
            raise RetriesExhaustedError(attempts=last.attempt_number) from last.exception()
        except VideoGenerationError:
            raise
        except Exception as e:
            token.raise_if_cancelled()
            logger.error(f"Generation start failed: {e!r}")
            raise FatalRemoteError(
                error_message(e, "Failed to start generation"),
                status_code=status_code_of(e),
            ) from e

        if not operation.name:
            raise NoOperationHandleError()
        return operation

    # ------------------------------------------------------------
    # Phase B: polling
    # ------------------------------------------------------------

    async def poll(
        self,
        backend: VideoBackend,
        operation: RemoteOperation,
        token: CancelToken,
    ) -> RemoteOperation:
        policy = self.config.retry
        state = PollState(operation=operation)

        # Give the operation time to become visible to the status endpoint
        await self._sleep(policy.propagation_delay, token)

        while not state.operation.done:
            token.raise_if_cancelled()
            await self._sleep(policy.poll_interval, token)

            try:
                updated = await token.guard(backend.refresh(state.operation))
            except VideoGenerationError:
                raise
            except Exception as e:
                token.raise_if_cancelled()
                kind = classify(e)

                if kind is FailureKind.NOT_FOUND:
                    state = replace(state, not_found=state.not_found + 1)
                    logger.warning(
                        f"Operation status check failed (404). Retrying... "
                        f"({state.not_found}/{policy.max_not_found_polls})"
                    )
                    if state.not_found >= policy.max_not_found_polls:
                        raise PollingTimeoutError(attempts=state.not_found) from e
                    continue

                if kind is FailureKind.RATE_LIMITED:
                    logger.warning("Polling rate limit (429). Waiting...")
                    await self._sleep(policy.poll_rate_limit_wait, token)
                    continue

                logger.error(f"Operation status check failed: {e!r}")
                raise FatalRemoteError(
                    error_message(e, "Operation status check failed"),
                    status_code=status_code_of(e),
                ) from e

            state = PollState(operation=updated, not_found=0, refreshes=state.refreshes + 1)

        logger.info(f"Operation {state.operation.name} done after {state.refreshes} status checks")
        return state.operation

    # ------------------------------------------------------------
    # Phase C: result extraction
    # ------------------------------------------------------------

    def extract_locator(self, operation: RemoteOperation) -> str:
        if operation.error is not None:
            raise FatalRemoteError(
                operation.error.message or "Unknown error during video generation",
                status_code=operation.error.code,
            )

        response = operation.response
        if response is not None and response.rai_media_filtered_reasons:
            raise ContentFilteredError(response.rai_media_filtered_reasons[0])

        uri = operation.video_uri
        if not uri:
            logger.error(
                "Operation completed but no video URI found. Full operation dump: "
                f"{operation.model_dump_json(indent=2)}"
            )
            raise NoResultLocatorError()
        return uri
