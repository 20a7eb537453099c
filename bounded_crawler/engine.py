"""
FILE DESCRIPTION: Worker threads draining the crawl frontier.
KEY FUNCTIONS/CLASSES: CrawlerWorker
"""

import threading

from bounded_crawler.core import logger
from bounded_crawler.models import FetchOutcome, TransportError
from bounded_crawler.policy import HostPolicy
from bounded_crawler.processor import MediaType


class CrawlerWorker(threading.Thread):
    """
    FLOW: Claims a URL from the frontier -> Fetches it -> Classifies the response ->
    Extracts links from HTML pages -> Keeps in-scope links -> Re-enqueues them ->
    Releases the claim. Exits once the frontier reports it is drained.

    Errors on one URL are logged and never stop the loop. There are no retries:
    a failed URL has used up its single claim.
    """

    def __init__(self, frontier, fetcher, extractor, counters, domain_suffix, host_match="contains", name="Worker", start_gate=None):
        super().__init__(name=name, daemon=True)
        self.frontier = frontier
        self.fetcher = fetcher
        self.extractor = extractor
        self.counters = counters
        self.domain_suffix = domain_suffix
        self.host_match = host_match
        self.start_gate = start_gate
        self.processed = 0
        self.outcomes = {outcome: 0 for outcome in FetchOutcome}

    def log(self, level, msg, url=None, **kwargs):
        getattr(logger, level)(msg, extra={"context": self.name, "url": url}, **kwargs)

    def run(self):
        if self.start_gate is not None:
            self.start_gate.wait()
        self.log("debug", "started")
        while True:
            url = self.frontier.claim()
            if url is None:
                break
            try:
                outcome = self.process(url)
            except Exception as e:
                outcome = FetchOutcome.FAILED
                self.log("error", f"Process error: {e}", url=url, exc_info=True)
            finally:
                self.frontier.release(url)
            self.processed += 1
            self.outcomes[outcome] += 1
        self.log("debug", f"finished after {self.processed} URLs")

    def process(self, url) -> FetchOutcome:
        self.counters.record_fetch()

        try:
            result = self.fetcher.fetch(url)
        except TransportError as e:
            self.log("error", f"Exception: {e.reason}", url=url)
            return FetchOutcome.TRANSPORT_ERROR

        if result.status_code != 200 or not result.content_type:
            self.log("info", f"{url} - Error {result.source}", url=url)
            return FetchOutcome.UNSUCCESSFUL

        self.log("info", f"{url} - Successful {result.source}", url=url)

        media_type = MediaType.parse(result.content_type)
        if media_type is None or not media_type.is_html:
            self.log("debug", f"Skipping non-HTML content ({result.content_type})", url=url)
            return FetchOutcome.NON_HTML

        kept = 0
        for link in self.extractor.extract_links(result.final_url, result.body):
            if not HostPolicy.accept(link, self.domain_suffix, self.host_match):
                continue
            self.frontier.enqueue(link)
            self.counters.record_discovered()
            kept += 1
        self.log("debug", f"Enqueued {kept} in-scope links", url=url)
        return FetchOutcome.HTML
