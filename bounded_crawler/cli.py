"""
Command-line entry point.
Builds a CrawlConfig from flags (falling back to environment defaults), runs the
crawl, and prints the summary table.
"""

import argparse
import signal
import sys
import threading

from bounded_crawler import core
from bounded_crawler.core import logger, setup_logger
from bounded_crawler.metrics import format_summary
from bounded_crawler.models import HOST_MATCH_MODES, CrawlConfig, CrawlerError
from bounded_crawler.orchestrator import Crawler


def build_parser():
    parser = argparse.ArgumentParser(description="Bounded-domain concurrent web crawler")
    parser.add_argument("--seed", default=core.SEED_URL, help=f"Seed URL (default: {core.SEED_URL})")
    parser.add_argument(
        "--domain",
        default=None,
        help="Host suffix kept in scope (default: CRAWLER_DOMAIN_SUFFIX for the default seed, "
             "otherwise the seed's registrable domain)",
    )
    parser.add_argument("--host-match", choices=HOST_MATCH_MODES, default=core.HOST_MATCH)
    parser.add_argument("--workers", type=int, default=core.WORKER_COUNT, help="Worker thread count")
    parser.add_argument("--cache-dir", default=core.CACHE_DIR or None, help="Response cache directory (disabled if unset)")
    parser.add_argument("--cache-max-bytes", type=int, default=core.CACHE_MAX_BYTES)
    parser.add_argument(
        "--cache-ttl",
        type=float,
        default=core.CACHE_TTL,
        help="Seconds a cached response stays fresh without max-age/Expires",
    )
    parser.add_argument("--user-agent", default=core.USER_AGENT)
    parser.add_argument("--timeout", type=float, default=core.REQUEST_TIMEOUT, help="Request timeout in seconds")
    parser.add_argument("--progress-interval", type=int, default=core.PROGRESS_INTERVAL)
    parser.add_argument("--log-level", default=core.LOG_LEVEL)
    parser.add_argument("--log-file", default=core.LOG_FILE)
    return parser


def config_from_args(args) -> CrawlConfig:
    return CrawlConfig(
        seed_url=args.seed,
        domain_suffix=args.domain,
        worker_count=args.workers,
        cache_dir=args.cache_dir,
        cache_max_bytes=args.cache_max_bytes,
        cache_ttl=args.cache_ttl,
        user_agent=args.user_agent,
        request_timeout=args.timeout,
        progress_interval=args.progress_interval,
        host_match=args.host_match,
    )


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logger(log_file=args.log_file, level=args.log_level)

    try:
        crawler = Crawler(config_from_args(args))
    except CrawlerError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    def handle_signal(signum, frame):
        logger.info(f"Received signal {signum}, stopping workers...")
        crawler.stop()

    if threading.current_thread() is threading.main_thread():
        signal.signal(signal.SIGTERM, handle_signal)

    try:
        summary = crawler.run()
    except CrawlerError as e:
        logger.error(f"Fatal error: {e}")
        return 1
    except KeyboardInterrupt:
        crawler.stop()
        print("\nInterrupted by user")
        return 130
    finally:
        crawler.close()

    print(format_summary(summary))
    return 0


if __name__ == "__main__":
    sys.exit(main())
