"""
Thread-safe frontier for the crawler.
Holds the FIFO of URLs to visit and the set of URLs already claimed.
Dedup happens at claim time: the claimed set is the only record of whether a
URL has been (or is being) processed.
"""

import threading
from collections import deque
from typing import Optional

from bounded_crawler.core import logger
from bounded_crawler.processor import LinkUtility


class Frontier:
    """
    FLOW: enqueue() appends unconditionally -> claim() pops until it finds a URL
    not yet in the claimed set and marks the caller busy -> release() marks the
    caller idle -> When the queue is empty and nobody is busy, every claimer
    gets None and the crawl is drained.

    A URL may sit in the queue several times; only its first claim succeeds.
    """

    def __init__(self):
        self.queue = deque()
        self.claimed = set()
        self.busy = 0
        self.closed = False
        self.lock = threading.Lock()
        self.changed = threading.Condition(self.lock)

    def enqueue(self, url: str) -> bool:
        """Returns False only when the frontier has been closed."""
        normalized = LinkUtility.normalize_url(url)
        if not normalized:
            return False
        with self.changed:
            if self.closed:
                return False
            self.queue.append(normalized)
            self.changed.notify()
        return True

    def claim(self) -> Optional[str]:
        """
        Block until a fresh URL is available and return it, or return None once
        the queue is empty with no worker busy (or the frontier is closed).
        """
        with self.changed:
            while True:
                if self.closed:
                    return None
                while self.queue:
                    url = self.queue.popleft()
                    if url in self.claimed:
                        continue
                    self.claimed.add(url)
                    self.busy += 1
                    return url
                if self.busy == 0:
                    # Drained: nobody left who could enqueue more work
                    self.changed.notify_all()
                    return None
                self.changed.wait()

    def release(self, url: str) -> None:
        """Called once by the worker that claimed url, after it finished with it."""
        with self.changed:
            if self.busy <= 0:
                logger.warning(f"release: no claim outstanding for {url}")
                return
            self.busy -= 1
            if self.busy == 0 and not self.queue:
                self.changed.notify_all()

    def close(self) -> None:
        """Shutdown hook: every current and future claim() returns None."""
        with self.changed:
            self.closed = True
            self.changed.notify_all()
        logger.info("[FRONTIER] Closed")

    def is_claimed(self, url: str) -> bool:
        with self.lock:
            return LinkUtility.normalize_url(url) in self.claimed

    def is_drained(self) -> bool:
        with self.lock:
            return not self.queue and self.busy == 0

    def get_stats(self):
        with self.lock:
            return {
                "queued": len(self.queue),
                "claimed": len(self.claimed),
                "busy": self.busy,
                "closed": self.closed,
            }
