from dataclasses import dataclass
from enum import Enum
from typing import Optional

from bounded_crawler import core


# === ERRORS ===

class CrawlerError(Exception):
    """Base class for every error the crawler raises on purpose."""


class ConfigError(CrawlerError):
    pass


class CrawlerStartupError(CrawlerError):
    """Raised when the worker pool cannot be brought up. No crawling has started."""


class TransportError(CrawlerError):
    """
    Fetch failed at the network/I/O layer.
    Recovered by the worker: the URL is abandoned, never retried.
    """
    def __init__(self, url: str, reason: str):
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


# === CONFIGURATION ===

HOST_MATCH_MODES = ("contains", "suffix")


@dataclass(frozen=True)
class CrawlConfig:
    """
    Startup configuration for one crawl.
    Defaults come from crawler.core (environment / .env).
    """
    seed_url: str = core.SEED_URL
    # None: CRAWLER_DOMAIN_SUFFIX for the default seed, else the seed's registrable domain
    domain_suffix: Optional[str] = None
    worker_count: int = core.WORKER_COUNT
    cache_dir: Optional[str] = core.CACHE_DIR or None
    cache_max_bytes: int = core.CACHE_MAX_BYTES
    cache_ttl: float = core.CACHE_TTL
    user_agent: str = core.USER_AGENT
    request_timeout: float = core.REQUEST_TIMEOUT
    progress_interval: int = core.PROGRESS_INTERVAL
    host_match: str = core.HOST_MATCH

    def validate(self) -> "CrawlConfig":
        if not self.seed_url:
            raise ConfigError("seed_url is required")
        if self.worker_count < 1:
            raise ConfigError(f"worker_count must be >= 1, got {self.worker_count}")
        if self.host_match not in HOST_MATCH_MODES:
            raise ConfigError(f"host_match must be one of {HOST_MATCH_MODES}, got {self.host_match!r}")
        if self.progress_interval < 1:
            raise ConfigError(f"progress_interval must be >= 1, got {self.progress_interval}")
        if self.cache_max_bytes < 0:
            raise ConfigError(f"cache_max_bytes must be >= 0, got {self.cache_max_bytes}")
        if self.cache_ttl < 0:
            raise ConfigError(f"cache_ttl must be >= 0, got {self.cache_ttl}")
        return self


# === FETCH ===

class FetchOutcome(Enum):
    HTML = "html"
    NON_HTML = "non_html"
    UNSUCCESSFUL = "unsuccessful"
    TRANSPORT_ERROR = "transport_error"
    FAILED = "failed"


@dataclass(frozen=True)
class FetchResult:
    """
    Output of one fetch.

    INVARIANT: This object is TRANSIENT.
    It lives only until links are extracted, then it is discarded.
    """
    url: str
    final_url: str
    status_code: int
    content_type: Optional[str] = None
    body: Optional[bytes] = None
    from_cache: bool = False

    @property
    def source(self) -> str:
        return "(cache)" if self.from_cache else f"(status: {self.status_code})"


@dataclass(frozen=True)
class CrawlSummary:
    fetched: int
    discovered: int
    visited: int
    pending: int
    workers: int
    duration_sec: float
    peak_memory_mb: float = 0.0
