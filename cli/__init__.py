"""
VeoBatch CLI Tools

Command-line helpers for watching a batch run.

Tools:
- progress_monitor: colored per-job status lines
"""

from .progress_monitor import ProgressMonitor

__all__ = ["ProgressMonitor"]
