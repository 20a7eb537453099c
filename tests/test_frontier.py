"""
Frontier dedup and termination behavior under concurrent workers.
"""

import threading
import time
import unittest

from bounded_crawler.frontier import Frontier


class TestFrontier(unittest.TestCase):
    def setUp(self):
        self.frontier = Frontier()

    def test_fragment_variants_are_one_entity(self):
        self.frontier.enqueue("http://host/page#section")
        self.frontier.enqueue("http://host/page")

        url = self.frontier.claim()
        self.assertEqual(url, "http://host/page")
        self.frontier.release(url)

        self.assertIsNone(self.frontier.claim())
        self.assertTrue(self.frontier.is_claimed("http://host/page#other"))
        self.assertEqual(self.frontier.get_stats()["claimed"], 1)

    def test_equivalent_spellings_are_one_entity(self):
        for variant in (
            "http://www.example.com",
            "http://www.example.com/",
            "HTTP://WWW.EXAMPLE.COM/",
            "http://www.example.com:80/#x",
        ):
            self.frontier.enqueue(variant)

        claimed = []
        while True:
            url = self.frontier.claim()
            if url is None:
                break
            claimed.append(url)
            self.frontier.release(url)
        self.assertEqual(claimed, ["http://www.example.com/"])

    def test_fifo_order_for_single_claimer(self):
        for u in ("http://h/1", "http://h/2", "http://h/3"):
            self.frontier.enqueue(u)
        got = []
        while True:
            url = self.frontier.claim()
            if url is None:
                break
            got.append(url)
            self.frontier.release(url)
        self.assertEqual(got, ["http://h/1", "http://h/2", "http://h/3"])

    def test_concurrent_claims_return_each_url_once(self):
        """Scenario: duplicate enqueues of the same URL, many claimers racing."""
        for _ in range(50):
            self.frontier.enqueue("http://host/dup")
        for i in range(20):
            self.frontier.enqueue(f"http://host/{i}")
            self.frontier.enqueue(f"http://host/{i}#frag")

        results = []
        results_lock = threading.Lock()

        def claimer():
            while True:
                url = self.frontier.claim()
                if url is None:
                    return
                with results_lock:
                    results.append(url)
                self.frontier.release(url)

        threads = [threading.Thread(target=claimer) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(5)
            self.assertFalse(t.is_alive())

        self.assertEqual(results.count("http://host/dup"), 1)
        self.assertEqual(len(results), len(set(results)))
        self.assertEqual(len(results), 21)

    def test_claim_waits_while_another_worker_is_busy(self):
        """
        Scenario: queue is momentarily empty but a busy worker is about to enqueue more.
        The waiting claimer must not give up; it receives the new URL.
        """
        self.frontier.enqueue("http://host/seed")
        seed = self.frontier.claim()

        got = []
        waiter = threading.Thread(target=lambda: got.append(self.frontier.claim()))
        waiter.start()
        waiter.join(0.2)
        self.assertTrue(waiter.is_alive())

        self.frontier.enqueue("http://host/child")
        self.frontier.release(seed)
        waiter.join(5)

        self.assertFalse(waiter.is_alive())
        self.assertEqual(got, ["http://host/child"])

    def test_last_release_wakes_waiters_with_empty(self):
        self.frontier.enqueue("http://host/only")
        url = self.frontier.claim()

        got = []
        waiters = [threading.Thread(target=lambda: got.append(self.frontier.claim())) for _ in range(3)]
        for w in waiters:
            w.start()
        time.sleep(0.1)
        self.frontier.release(url)
        for w in waiters:
            w.join(5)
            self.assertFalse(w.is_alive())

        self.assertEqual(got, [None, None, None])
        self.assertTrue(self.frontier.is_drained())

    def test_close_stops_claims_and_enqueues(self):
        self.frontier.enqueue("http://host/a")
        self.frontier.close()

        self.assertIsNone(self.frontier.claim())
        self.assertFalse(self.frontier.enqueue("http://host/b"))
        self.assertEqual(self.frontier.get_stats()["queued"], 1)

    def test_close_wakes_blocked_claimer(self):
        self.frontier.enqueue("http://host/a")
        self.frontier.claim()

        got = []
        waiter = threading.Thread(target=lambda: got.append(self.frontier.claim()))
        waiter.start()
        time.sleep(0.1)
        self.frontier.close()
        waiter.join(5)

        self.assertFalse(waiter.is_alive())
        self.assertEqual(got, [None])

    def test_release_without_claim_keeps_busy_count(self):
        self.frontier.release("http://host/never")
        self.assertEqual(self.frontier.get_stats()["busy"], 0)

    def test_empty_url_is_not_enqueued(self):
        self.assertFalse(self.frontier.enqueue(""))
        self.assertIsNone(self.frontier.claim())


if __name__ == "__main__":
    unittest.main()
