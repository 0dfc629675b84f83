"""
Location History Import - Memory/Progress Tracker
Samples resident memory and elapsed time at named checkpoints of an import run.
"""

import logging
import time
from dataclasses import dataclass
from typing import List, Optional

import psutil

logger = logging.getLogger(__name__)


def format_bytes(num_bytes: int) -> str:
    """Format byte count as a human-readable string."""
    value = float(num_bytes)
    for unit in ('B', 'KB', 'MB', 'GB'):
        if value < 1024.0:
            return f"{value:.1f} {unit}"
        value /= 1024.0
    return f"{value:.1f} TB"


@dataclass
class MemorySample:
    """One checkpoint sample."""
    label: str
    rss_bytes: int
    elapsed_seconds: float

    @property
    def rss_mb(self) -> float:
        return self.rss_bytes / (1024 * 1024)


class MemoryTracker:
    """
    Diagnostic helper for long-running imports.

    Each checkpoint() call reads the current process RSS through psutil,
    logs it together with the time elapsed since the tracker was created,
    and keeps the sample so callers can report the peak afterwards.
    """

    def __init__(self, process: Optional[psutil.Process] = None):
        self.process = process or psutil.Process()
        self.started_at = time.monotonic()
        self.samples: List[MemorySample] = []

    def get_memory_usage(self) -> int:
        """Current resident set size in bytes."""
        return self.process.memory_info().rss

    def checkpoint(self, label: str) -> MemorySample:
        """Record and log a memory/elapsed-time sample."""
        sample = MemorySample(
            label=label,
            rss_bytes=self.get_memory_usage(),
            elapsed_seconds=round(time.monotonic() - self.started_at, 3),
        )
        self.samples.append(sample)

        logger.info(
            f"Memory checkpoint {label}: {format_bytes(sample.rss_bytes)}",
            extra={
                "event_type": "memory_checkpoint",
                "checkpoint": label,
                "rss_mb": round(sample.rss_mb, 1),
                "elapsed_seconds": sample.elapsed_seconds,
            }
        )
        return sample

    @property
    def peak(self) -> Optional[MemorySample]:
        """Sample with the highest RSS seen so far."""
        if not self.samples:
            return None
        return max(self.samples, key=lambda s: s.rss_bytes)
