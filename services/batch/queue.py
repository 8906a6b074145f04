"""
Batch Queue Processor

Holds the job list and converts pending images one at a time. Jobs run
strictly in enqueue order and never concurrently, so every request in a batch
shares one rate-limit budget.

Job lifecycle:
    pending -> processing -> completed | failed
    pending -> failed          (only when the batch is stopped by the user)
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Callable, Iterable, Optional

from core.cancellation import CancelToken
from core.config import Config, get_config
from core.errors import (
    STOPPED_BY_USER_CODE,
    STOPPED_BY_USER_MESSAGE,
    GenerationCancelled,
    InvalidTransitionError,
    JobInFlightError,
    VideoGenerationError,
)
from services.video_generation import (
    DelegatedSettings,
    GenerationConfig,
    SourceImage,
    VideoAsset,
    VideoGenerationClient,
    resolve_credential,
)

logger = logging.getLogger(__name__)


class JobStatus(str, Enum):
    """Status of a queued conversion job."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


ALLOWED_TRANSITIONS = {
    JobStatus.PENDING: {JobStatus.PROCESSING, JobStatus.FAILED},
    JobStatus.PROCESSING: {JobStatus.COMPLETED, JobStatus.FAILED},
    JobStatus.COMPLETED: set(),
    JobStatus.FAILED: set(),
}


@dataclass(frozen=True)
class VideoJob:
    """One image waiting for (or done with) conversion. Replaced, never mutated."""
    image: SourceImage
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: JobStatus = JobStatus.PENDING
    progress: Optional[str] = None
    result: Optional[VideoAsset] = None
    error: Optional[str] = None
    error_code: Optional[str] = None

    created_at: datetime = field(default_factory=datetime.utcnow)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (JobStatus.COMPLETED, JobStatus.FAILED)

    @property
    def output_filename(self) -> str:
        return f"veo-video-{self.id}.mp4"


JobListener = Callable[[VideoJob], None]


class JobStore:
    """
    Ordered job records with whole-record updates.

    Every change swaps in a new VideoJob, so a reader never sees a half-applied
    update. Listeners are told about each new record.
    """

    def __init__(self):
        self._jobs: dict[str, VideoJob] = {}
        self._listeners: list[JobListener] = []

    def on_change(self, listener: JobListener):
        self._listeners.append(listener)

    def _notify(self, job: VideoJob):
        for listener in self._listeners:
            try:
                listener(job)
            except Exception as e:
                logger.warning(f"Job listener failed: {e}")

    def __len__(self) -> int:
        return len(self._jobs)

    def __contains__(self, job_id: str) -> bool:
        return job_id in self._jobs

    def get(self, job_id: str) -> Optional[VideoJob]:
        return self._jobs.get(job_id)

    def all(self) -> list[VideoJob]:
        return list(self._jobs.values())

    def with_status(self, status: JobStatus) -> list[VideoJob]:
        return [job for job in self._jobs.values() if job.status == status]

    def add(self, job: VideoJob) -> VideoJob:
        self._jobs[job.id] = job
        self._notify(job)
        return job

    def update(self, job_id: str, **changes) -> Optional[VideoJob]:
        """Replace a job with ``changes`` applied. Missing jobs are ignored."""
        current = self._jobs.get(job_id)
        if current is None:
            return None

        target = changes.get("status")
        if target is not None and target != current.status:
            if target not in ALLOWED_TRANSITIONS[current.status]:
                raise InvalidTransitionError(job_id, current.status.value, JobStatus(target).value)

        updated = replace(current, **changes)
        self._jobs[job_id] = updated
        self._notify(updated)
        return updated

    def remove(self, job_id: str) -> Optional[VideoJob]:
        return self._jobs.pop(job_id, None)

    def clear(self):
        self._jobs.clear()


class BatchProcessor:
    """
    Sequential queue processor for image-to-video jobs.

    Usage:
        processor = BatchProcessor(api_key="...")
        processor.store.on_change(print)

        processor.add_images([SourceImage.from_path("a.png")])
        await processor.run_until_idle()

        processor.stop()  # from a signal handler or UI
    """

    def __init__(
        self,
        client: Optional[VideoGenerationClient] = None,
        store: Optional[JobStore] = None,
        generation_config: Optional[GenerationConfig] = None,
        api_key: Optional[str] = None,
        delegated: Optional[DelegatedSettings] = None,
        config: Optional[Config] = None,
        auto_start: bool = True,
    ):
        self.config = config or get_config()
        self.client = client or VideoGenerationClient(config=self.config)
        self.store = store or JobStore()
        self.generation_config = generation_config or GenerationConfig(
            prompt=self.config.defaults.prompt,
            resolution=self.config.defaults.resolution,
            aspect_ratio=self.config.defaults.aspect_ratio,
        )

        # Credential inputs; resolved per job so settings changes apply to the next job
        self.api_key = api_key
        self.delegated = delegated

        self.auto_start = auto_start
        self._token: Optional[CancelToken] = None
        self._runner: Optional[asyncio.Task] = None

    # ------------------------------------------------------------
    # Queue management
    # ------------------------------------------------------------

    @property
    def is_processing(self) -> bool:
        """True while a batch pass is active."""
        return self._token is not None

    def has_pending(self) -> bool:
        return bool(self.store.with_status(JobStatus.PENDING))

    def counts(self) -> dict[str, int]:
        counts = {status.value: 0 for status in JobStatus}
        for job in self.store.all():
            counts[job.status.value] += 1
        return counts

    def add_images(self, images: Iterable[SourceImage]) -> list[VideoJob]:
        """Enqueue images as pending jobs. Non-image files are rejected."""
        images = list(images)
        for image in images:
            if not image.is_image:
                raise ValueError(f"{image.name} is not an image ({image.mime_type})")

        jobs = [self.store.add(VideoJob(image=image)) for image in images]
        logger.info(f"Queued {len(jobs)} image(s)")

        if self.auto_start:
            self._ensure_running()
        return jobs

    def remove(self, job_id: str) -> Optional[VideoJob]:
        job = self.store.get(job_id)
        if job is not None and job.status == JobStatus.PROCESSING:
            raise JobInFlightError(job_id)
        return self.store.remove(job_id)

    def stop(self):
        """Cancel the active pass, if any."""
        if self._token is not None:
            self._token.cancel()

    def clear(self):
        """Stop any active pass and drop every job."""
        self.stop()
        self.store.clear()

    # ------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------

    def _ensure_running(self):
        """Start a background pass when there is pending work and no pass active."""
        if self._runner is not None or self.is_processing or not self.has_pending():
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return  # No loop yet; caller will drive run_until_idle()
        self._runner = loop.create_task(self.run_until_idle())
        self._runner.add_done_callback(self._on_runner_done)

    def _on_runner_done(self, task: asyncio.Task):
        self._runner = None
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Batch runner crashed: {task.exception()!r}")

    async def run_until_idle(self):
        """Run passes until no pending job is left (or the batch is stopped)."""
        while self.has_pending() and not self.is_processing:
            await self.process_pending()

    def _stop_pending(self, exclude: Optional[str] = None):
        for job in self.store.with_status(JobStatus.PENDING):
            if job.id == exclude:
                continue
            self.store.update(
                job.id,
                status=JobStatus.FAILED,
                error=STOPPED_BY_USER_MESSAGE,
                error_code=STOPPED_BY_USER_CODE,
                finished_at=datetime.utcnow(),
            )

    async def process_pending(self):
        """
        One pass over the jobs that are pending right now.

        Jobs added during the pass are picked up by the next pass.
        """
        if self.is_processing:
            return

        token = CancelToken()
        self._token = token
        pending = [job.id for job in self.store.with_status(JobStatus.PENDING)]
        logger.info(f"Batch pass started with {len(pending)} pending job(s)")

        try:
            for job_id in pending:
                if token.cancelled:
                    self._stop_pending()
                    break

                job = self.store.get(job_id)
                if job is None or job.status != JobStatus.PENDING:
                    continue  # Removed or stopped meanwhile

                if not await self._process_job(job, token):
                    break
        finally:
            self._token = None
            logger.info(f"Batch pass finished: {self.counts()}")

    async def _process_job(self, job: VideoJob, token: CancelToken) -> bool:
        """Drive one job to a terminal state. Returns False when the batch must stop."""
        self.store.update(
            job.id,
            status=JobStatus.PROCESSING,
            progress="Starting...",
            started_at=datetime.utcnow(),
        )

        def on_progress(message: str):
            current = self.store.get(job.id)
            if current is not None and current.status == JobStatus.PROCESSING:
                self.store.update(job.id, progress=message)

        try:
            credential = resolve_credential(api_key=self.api_key, delegated=self.delegated)
            asset = await self.client.generate(
                job.image,
                self.generation_config,
                credential,
                on_progress=on_progress,
                token=token,
            )

        except GenerationCancelled as e:
            logger.info(f"Job {job.id} cancelled; stopping batch")
            self.store.update(
                job.id,
                status=JobStatus.FAILED,
                error=e.message,
                error_code=e.error_code,
                finished_at=datetime.utcnow(),
            )
            self._stop_pending(exclude=job.id)
            return False

        except VideoGenerationError as e:
            logger.error(f"Job {job.id} ({job.image.name}) failed: {e}")
            self._fail(job.id, e.message or "Failed", e.error_code)
            return True

        except Exception as e:
            error_msg = f"{type(e).__name__}: {e}" if str(e) else type(e).__name__
            logger.exception(f"Job {job.id} ({job.image.name}) failed unexpectedly")
            self._fail(job.id, error_msg, "FATAL")
            return True

        self.store.update(
            job.id,
            status=JobStatus.COMPLETED,
            result=asset,
            progress="Done",
            finished_at=datetime.utcnow(),
        )
        logger.info(f"Job {job.id} ({job.image.name}) completed")
        return True

    def _fail(self, job_id: str, message: str, error_code: Optional[str]):
        self.store.update(
            job_id,
            status=JobStatus.FAILED,
            error=message,
            error_code=error_code,
            finished_at=datetime.utcnow(),
        )
