"""
Bounded-domain concurrent web crawler.
"""

from bounded_crawler.frontier import Frontier
from bounded_crawler.models import (
    ConfigError,
    CrawlConfig,
    CrawlerError,
    CrawlerStartupError,
    CrawlSummary,
    FetchOutcome,
    FetchResult,
    TransportError,
)
from bounded_crawler.orchestrator import Crawler
from bounded_crawler.policy import HostPolicy

__version__ = "1.0.0"

__all__ = [
    "ConfigError",
    "CrawlConfig",
    "Crawler",
    "CrawlerError",
    "CrawlerStartupError",
    "CrawlSummary",
    "FetchOutcome",
    "FetchResult",
    "Frontier",
    "HostPolicy",
    "TransportError",
]
