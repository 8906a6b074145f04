"""
Error taxonomy for VeoBatch.

Every failure a job can end with maps to one of these exceptions. The
``error_code`` is stable and is copied onto the failed job record; the
message is what the user sees.
"""

from typing import Optional


class VideoGenerationError(Exception):
    """Raised when video generation fails."""

    error_code = "FATAL"
    requires_settings = False

    def __init__(self, message: str, error_code: Optional[str] = None):
        if error_code:
            self.error_code = error_code
        self.message = message
        super().__init__(message)


class MissingCredentialsError(VideoGenerationError):
    error_code = "MISSING_CREDENTIALS"
    requires_settings = True

    def __init__(self, message: Optional[str] = None):
        super().__init__(
            message
            or "Missing Credentials. Please set an API Key (AI Studio) "
            "or Project/Access Token (Vertex AI) in Settings."
        )


class MissingLocationError(VideoGenerationError):
    error_code = "MISSING_LOCATION"
    requires_settings = True

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "Vertex AI requires a Location (e.g., us-central1).")


class NoOperationHandleError(VideoGenerationError):
    error_code = "NO_OPERATION_HANDLE"

    def __init__(self):
        super().__init__("Failed to start video generation: No operation name returned.")


class RetriesExhaustedError(VideoGenerationError):
    error_code = "RETRIES_EXHAUSTED"

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(
            "Rate limit or server capacity exhausted after multiple retries. "
            "Please try again later."
        )


class ContentFilteredError(VideoGenerationError):
    error_code = "CONTENT_FILTERED"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Content blocked by safety filter: {reason}")


class NoResultLocatorError(VideoGenerationError):
    error_code = "NO_RESULT_LOCATOR"

    def __init__(self):
        super().__init__("No video URI returned. Check the log for operation details.")


class PollingTimeoutError(VideoGenerationError):
    error_code = "POLLING_TIMEOUT"

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__("Operation timed out: Resource not found after multiple retries.")


class DownloadFailedError(VideoGenerationError):
    error_code = "DOWNLOAD_FAILED"


class FatalRemoteError(VideoGenerationError):
    """Unclassified remote failure. Never retried."""

    error_code = "FATAL"

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class GenerationCancelled(VideoGenerationError):
    """Cooperative interrupt raised out of any suspension point once a batch is stopped."""

    error_code = "CANCELLED"

    def __init__(self):
        super().__init__("Cancelled")


# Queue-level errors

class JobInFlightError(VideoGenerationError):
    error_code = "JOB_IN_FLIGHT"

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job {job_id} is processing and cannot be removed")


class InvalidTransitionError(VideoGenerationError):
    error_code = "INVALID_TRANSITION"

    def __init__(self, job_id: str, current: str, target: str):
        self.job_id = job_id
        super().__init__(f"Job {job_id} cannot move from {current} to {target}")


STOPPED_BY_USER_CODE = "STOPPED_BY_USER"
STOPPED_BY_USER_MESSAGE = "Stopped by user"
