"""
Coordinator for one crawl.
Seeds the frontier, runs a fixed pool of worker threads until the frontier is
drained, and reports the final counts.
"""

import threading
from typing import List

from bounded_crawler import core
from bounded_crawler.core import logger
from bounded_crawler.engine import CrawlerWorker
from bounded_crawler.frontier import Frontier
from bounded_crawler.metrics import CrawlCounters
from bounded_crawler.models import CrawlConfig, CrawlerError, CrawlerStartupError, CrawlSummary
from bounded_crawler.policy import HostPolicy
from bounded_crawler.processor import LinkExtractor, PageFetcher
from bounded_crawler.storage import ResponseCache


class Crawler:
    """
    FLOW: Validates config -> Builds fetcher (with optional response cache) ->
    Seeds the frontier -> Starts exactly worker_count threads -> Joins them ->
    Returns a CrawlSummary. Each instance runs once.

    stop() is the shutdown hook: it closes the frontier, so every worker exits
    after the URL it is currently processing.
    """

    def __init__(self, config: CrawlConfig, fetcher=None, extractor=None):
        self.config = config.validate()
        self.domain_suffix = config.domain_suffix or self._default_domain(config.seed_url)
        self.fetcher = fetcher or self._build_fetcher(config)
        self.extractor = extractor or LinkExtractor()
        self.frontier = Frontier()
        self.counters = CrawlCounters(progress_interval=config.progress_interval)
        self.workers: List[CrawlerWorker] = []
        self.start_gate = threading.Event()
        self.started = False

    @staticmethod
    def _default_domain(seed_url: str) -> str:
        if seed_url == core.SEED_URL:
            return core.DOMAIN_SUFFIX
        return HostPolicy.default_suffix(seed_url)

    @staticmethod
    def _build_fetcher(config: CrawlConfig) -> PageFetcher:
        cache = None
        if config.cache_dir:
            cache = ResponseCache(config.cache_dir, config.cache_max_bytes, ttl=config.cache_ttl)
            logger.info(f"[CACHE] Using {cache.db_path} (max {config.cache_max_bytes} bytes, ttl {config.cache_ttl:g}s)")
        return PageFetcher(user_agent=config.user_agent, timeout=config.request_timeout, cache=cache)

    def run(self, poll_interval: float = 0.5) -> CrawlSummary:
        # Frontier, counters and start gate are single-use
        if self.started:
            raise CrawlerError("A Crawler can only run once; build a new one for another crawl")
        self.started = True

        logger.info(
            f"[CRAWL] seed={self.config.seed_url} domain={self.domain_suffix} "
            f"match={self.config.host_match} workers={self.config.worker_count}"
        )
        # Every worker must be up before the seed goes in
        self._start_workers()
        self.frontier.enqueue(self.config.seed_url)
        self.start_gate.set()

        for worker in self.workers:
            # join() with a timeout keeps the main thread responsive to KeyboardInterrupt
            while worker.is_alive():
                worker.join(poll_interval)

        summary = self.summary()
        logger.info(f"[CRAWL] Done: fetched={summary.fetched} discovered={summary.discovered} visited={summary.visited}")
        return summary

    def _start_workers(self):
        for i in range(self.config.worker_count):
            worker = CrawlerWorker(
                self.frontier,
                self.fetcher,
                self.extractor,
                self.counters,
                self.domain_suffix,
                host_match=self.config.host_match,
                name=f"Worker-{i}",
                start_gate=self.start_gate,
            )
            try:
                worker.start()
            except RuntimeError as e:
                self.frontier.close()
                self.start_gate.set()
                for started in self.workers:
                    started.join()
                raise CrawlerStartupError(
                    f"Could not start worker {i + 1} of {self.config.worker_count}: {e}"
                ) from e
            self.workers.append(worker)

    def stop(self):
        logger.info("[CRAWL] Stop requested")
        self.frontier.close()

    def summary(self) -> CrawlSummary:
        counts = self.counters.snapshot()
        stats = self.frontier.get_stats()
        return CrawlSummary(
            fetched=counts["fetched"],
            discovered=counts["discovered"],
            visited=stats["claimed"],
            pending=stats["queued"],
            workers=len(self.workers),
            duration_sec=self.counters.elapsed(),
            peak_memory_mb=self.counters.update_peak_memory(),
        )

    def close(self):
        close = getattr(self.fetcher, "close", None)
        if close is not None:
            close()
