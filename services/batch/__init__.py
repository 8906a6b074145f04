"""
Batch Service

Sequential queue of image-to-video jobs with stop/remove/clear controls.
"""

from .queue import BatchProcessor, JobStatus, JobStore, VideoJob

__all__ = ["BatchProcessor", "JobStatus", "JobStore", "VideoJob"]
