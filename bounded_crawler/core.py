"""
FILE DESCRIPTION: Foundational module for global configuration and logging.
KEY FUNCTIONS/CLASSES: setup_logger, CrawlerFormatter, configuration constants
"""

import logging
import os
import sys
from datetime import datetime
from dotenv import load_dotenv

# === CONFIGURATION SECTION ===

# Load .env from the working directory before reading any setting
load_dotenv()

# Where the crawl starts and which hosts stay in scope
SEED_URL = os.getenv("CRAWLER_SEED_URL", "http://www2.scut.edu.cn/gzic/")
DOMAIN_SUFFIX = os.getenv("CRAWLER_DOMAIN_SUFFIX", "scut.edu.cn")

# "contains" (substring of the host) or "suffix" (host equals or ends with .suffix)
HOST_MATCH = os.getenv("CRAWLER_HOST_MATCH", "contains")

# Fixed worker pool size
WORKER_COUNT = int(os.getenv("CRAWLER_WORKERS", 3))

# Optional on-disk response cache. Empty directory = caching disabled.
CACHE_DIR = os.getenv("CRAWLER_CACHE_DIR", "")
CACHE_MAX_BYTES = int(os.getenv("CRAWLER_CACHE_MAX_BYTES", 100 * 1024 * 1024))
# Seconds a cached response stays fresh when it carries no max-age or Expires
CACHE_TTL = float(os.getenv("CRAWLER_CACHE_TTL", 12 * 3600))

# Network settings
USER_AGENT = os.getenv("CRAWLER_USER_AGENT", "BoundedCrawler/1.0")
REQUEST_TIMEOUT = float(os.getenv("CRAWLER_REQUEST_TIMEOUT", 15))

# Emit a progress line every N fetches
PROGRESS_INTERVAL = int(os.getenv("CRAWLER_PROGRESS_INTERVAL", 50))

LOG_LEVEL = os.getenv("CRAWLER_LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("CRAWLER_LOG_FILE") or None


# === LOGGING SECTION ===

class CrawlerFormatter(logging.Formatter):
    """
    FLOW: Receives a log record -> Formats the timestamp
    (e.g., [ Tue Jan 06 05:32:41 AM 2026 ]) -> Prepends level and context
    (worker name plus the URL in flight, when attached) -> Returns final string.
    """
    def format(self, record):
        dt = datetime.fromtimestamp(record.created)
        timestamp = dt.strftime("%a %b %d %I:%M:%S %p %Y")
        context = getattr(record, "context", "root")
        url = getattr(record, "url", None)
        if url:
            context = f"{context} {url}"
        line = f"[ {timestamp} ] : {record.levelname} : {context} : {record.getMessage()}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def setup_logger(name="crawler", log_file=None, level=logging.INFO):
    """
    FLOW: Initializes/Retrieves logger -> Applies level -> Skips handler setup if already
    configured -> Child loggers propagate to 'crawler' -> Attaches console and optional file handlers.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(name)
    logger.setLevel(level)

    if name != "crawler":
        logger.propagate = True
        setup_logger("crawler", log_file=log_file, level=level)
        return logger

    formatter = CrawlerFormatter()

    if not logger.handlers:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file and not any(isinstance(h, logging.FileHandler) for h in logger.handlers):
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logging.getLogger("urllib3").setLevel(logging.WARNING)
    return logger


# Global logger instance
logger = setup_logger(level=LOG_LEVEL)
