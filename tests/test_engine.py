"""
CrawlerWorker outcome handling, driven directly without starting threads.
"""

import unittest
from unittest.mock import MagicMock, patch

from bounded_crawler.engine import CrawlerWorker
from bounded_crawler.frontier import Frontier
from bounded_crawler.metrics import CrawlCounters
from bounded_crawler.models import FetchOutcome
from bounded_crawler.processor import LinkExtractor
from fakes import FakeFetcher, html_page

HTML = "text/html; charset=utf-8"


class TestCrawlerWorker(unittest.TestCase):
    def setUp(self):
        self.frontier = Frontier()
        self.counters = CrawlCounters(progress_interval=50)
        self.extractor = LinkExtractor()

    def make_worker(self, fetcher):
        return CrawlerWorker(self.frontier, fetcher, self.extractor, self.counters, "example.com", name="Worker-T")

    def queued(self):
        return list(self.frontier.queue)

    def test_html_page_enqueues_in_scope_links(self):
        fetcher = FakeFetcher({
            "http://www.example.com/": (200, HTML, html_page(
                "/a", "http://blog.example.com/b#frag", "http://other.org/c", "mailto:x@example.com",
            )),
        })
        outcome = self.make_worker(fetcher).process("http://www.example.com/")

        self.assertEqual(outcome, FetchOutcome.HTML)
        self.assertEqual(self.queued(), ["http://www.example.com/a", "http://blog.example.com/b"])
        self.assertEqual(self.counters.snapshot(), {"fetched": 1, "discovered": 2})

    def test_links_resolve_against_final_url(self):
        fetcher = FakeFetcher(
            {"http://www.example.com/new/": (200, HTML, html_page("page.html"))},
            redirects={"http://www.example.com/old": "http://www.example.com/new/"},
        )
        self.make_worker(fetcher).process("http://www.example.com/old")
        self.assertEqual(self.queued(), ["http://www.example.com/new/page.html"])

    def test_error_status_is_unsuccessful(self):
        fetcher = FakeFetcher({"http://www.example.com/": (500, HTML, html_page("/a"))})
        outcome = self.make_worker(fetcher).process("http://www.example.com/")

        self.assertEqual(outcome, FetchOutcome.UNSUCCESSFUL)
        self.assertEqual(self.queued(), [])
        self.assertEqual(self.counters.snapshot(), {"fetched": 1, "discovered": 0})

    def test_missing_content_type_is_unsuccessful(self):
        fetcher = FakeFetcher({"http://www.example.com/": (200, None, html_page("/a"))})
        outcome = self.make_worker(fetcher).process("http://www.example.com/")
        self.assertEqual(outcome, FetchOutcome.UNSUCCESSFUL)
        self.assertEqual(self.queued(), [])

    def test_non_html_is_skipped(self):
        fetcher = FakeFetcher({"http://www.example.com/logo.png": (200, "image/png", b"\x89PNG")})
        outcome = self.make_worker(fetcher).process("http://www.example.com/logo.png")
        self.assertEqual(outcome, FetchOutcome.NON_HTML)
        self.assertEqual(self.counters.snapshot()["fetched"], 1)

    def test_transport_error_still_counts_fetch(self):
        fetcher = FakeFetcher({}, failures=["http://www.example.com/down"])
        outcome = self.make_worker(fetcher).process("http://www.example.com/down")
        self.assertEqual(outcome, FetchOutcome.TRANSPORT_ERROR)
        self.assertEqual(self.counters.snapshot(), {"fetched": 1, "discovered": 0})

    def test_run_survives_unexpected_errors(self):
        """Scenario: the fetcher blows up on one URL; the loop moves on to the next."""
        good = FakeFetcher({"http://www.example.com/ok": (200, HTML, html_page())})
        fetcher = MagicMock()
        fetcher.fetch.side_effect = lambda url: good.fetch(url) if url.endswith("/ok") else 1 / 0

        self.frontier.enqueue("http://www.example.com/bad")
        self.frontier.enqueue("http://www.example.com/ok")
        worker = self.make_worker(fetcher)
        worker.run()

        self.assertEqual(worker.processed, 2)
        self.assertEqual(worker.outcomes[FetchOutcome.FAILED], 1)
        self.assertEqual(worker.outcomes[FetchOutcome.HTML], 1)
        self.assertTrue(self.frontier.is_drained())

    def test_run_exits_on_drained_frontier(self):
        worker = self.make_worker(FakeFetcher({}))
        worker.run()
        self.assertEqual(worker.processed, 0)


class TestCrawlCounters(unittest.TestCase):

    def test_progress_every_interval(self):
        counters = CrawlCounters(progress_interval=50)
        with patch.object(CrawlCounters, "report_progress") as report:
            for _ in range(120):
                counters.record_fetch()
            counters.record_discovered(3)

        self.assertEqual(report.call_count, 2)
        report.assert_any_call(50, 0)
        report.assert_any_call(100, 0)

    def test_counts_are_monotonic(self):
        counters = CrawlCounters()
        previous = 0
        for _ in range(10):
            fetched = counters.record_fetch()
            self.assertGreater(fetched, previous)
            previous = fetched
        self.assertEqual(counters.record_discovered(), 1)
        self.assertEqual(counters.record_discovered(4), 5)


if __name__ == "__main__":
    unittest.main()
