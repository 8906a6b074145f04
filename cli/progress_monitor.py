"""
CLI Progress Monitor for batch video generation

Subscribes to a JobStore and prints one colored line per job change.

Usage:
    monitor = ProgressMonitor()
    monitor.attach(processor.store)
    ...
    monitor.print_summary(processor.store.all())
"""

import sys
from typing import Iterable, Optional, TextIO

from services.batch import JobStatus, VideoJob


# ANSI color codes
class Colors:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"


def colored(text: str, color: str) -> str:
    """Apply color to text."""
    return f"{color}{text}{Colors.RESET}"


STATUS_STYLE = {
    JobStatus.PENDING: ("•", Colors.DIM),
    JobStatus.PROCESSING: ("⏳", Colors.CYAN),
    JobStatus.COMPLETED: ("✅", Colors.GREEN),
    JobStatus.FAILED: ("❌", Colors.RED),
}


def format_job(job: VideoJob) -> str:
    """Format a job record for display."""
    icon, color = STATUS_STYLE.get(job.status, ("•", Colors.WHITE))
    name = job.image.name[:32]
    label = colored(f"{job.status.value.upper():<10}", color)

    if job.status == JobStatus.FAILED:
        detail = colored(job.error or "Failed", Colors.RED)
    elif job.status == JobStatus.COMPLETED and job.result is not None:
        detail = colored(f"{job.progress or 'Done'} ({job.result.size_mb:.1f} MB)", Colors.GREEN)
    else:
        detail = colored(job.progress or "", Colors.DIM)

    return f"{icon} {label} {colored(name, Colors.BOLD)} {detail}"


class ProgressMonitor:
    """Prints job changes as they happen."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stdout
        self._last_line: dict[str, str] = {}

    def attach(self, store):
        store.on_change(self.handle_job)

    def handle_job(self, job: VideoJob):
        line = format_job(job)
        # Progress callbacks can repeat the same text; skip duplicates
        if self._last_line.get(job.id) == line:
            return
        self._last_line[job.id] = line
        print(line, file=self.stream, flush=True)

    def print_summary(self, jobs: Iterable[VideoJob]):
        jobs = list(jobs)
        completed = sum(1 for j in jobs if j.status == JobStatus.COMPLETED)
        failed = sum(1 for j in jobs if j.status == JobStatus.FAILED)

        print(colored("─" * 45, Colors.DIM), file=self.stream)
        print(
            f"{colored(str(completed), Colors.GREEN)} completed, "
            f"{colored(str(failed), Colors.RED)} failed, "
            f"{len(jobs)} total",
            file=self.stream,
        )
