"""
Crawl counters and terminal output formatting for the crawler.
Provides the periodic progress line and the final summary table.
"""

import os
import time
from threading import Lock

import psutil
from tabulate import tabulate

from bounded_crawler.core import PROGRESS_INTERVAL, logger


class CrawlCounters:
    """
    Shared counters, safe across worker threads.

    fetched: one per fetch attempt, whatever the outcome.
    discovered: one per extracted link that passed the host filter.
    Both only ever grow.
    """

    def __init__(self, progress_interval=PROGRESS_INTERVAL):
        self.lock = Lock()
        self.progress_interval = progress_interval
        self.fetched = 0
        self.discovered = 0
        self.start_time = time.time()
        self.process = psutil.Process(os.getpid())
        self.peak_memory_mb = self._memory_mb()

    def record_fetch(self) -> int:
        """Count one fetch attempt and return the new total."""
        with self.lock:
            self.fetched += 1
            fetched = self.fetched
            discovered = self.discovered
        if fetched % self.progress_interval == 0:
            self.report_progress(fetched, discovered)
        return fetched

    def record_discovered(self, count: int = 1) -> int:
        with self.lock:
            self.discovered += count
            return self.discovered

    def snapshot(self):
        with self.lock:
            return {"fetched": self.fetched, "discovered": self.discovered}

    def report_progress(self, fetched, discovered):
        memory_mb = self._memory_mb()
        with self.lock:
            self.peak_memory_mb = max(self.peak_memory_mb, memory_mb)
        logger.info(f"[PROGRESS] fetched={fetched} discovered={discovered} memory={memory_mb:.1f}MB")

    def elapsed(self) -> float:
        return time.time() - self.start_time

    def _memory_mb(self) -> float:
        return self.process.memory_info().rss / 1024 / 1024

    def update_peak_memory(self) -> float:
        memory_mb = self._memory_mb()
        with self.lock:
            self.peak_memory_mb = max(self.peak_memory_mb, memory_mb)
            return self.peak_memory_mb


def format_summary(summary) -> str:
    """Render a CrawlSummary as the end-of-crawl table."""
    rows = [
        ["Pages fetched", summary.fetched],
        ["Links discovered", summary.discovered],
        ["Unique URLs visited", summary.visited],
        ["URLs left in queue", summary.pending],
        ["Workers", summary.workers],
        ["Duration (s)", f"{summary.duration_sec:.2f}"],
        ["Peak memory (MB)", f"{summary.peak_memory_mb:.1f}"],
    ]
    return "\n".join([
        "=" * 60,
        "CRAWL COMPLETED",
        "=" * 60,
        tabulate(rows, headers=["Metric", "Value"], tablefmt="simple"),
        "=" * 60,
    ])
