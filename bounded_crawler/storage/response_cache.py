"""
On-disk HTTP response cache for the fetcher.
Stores successful responses in a SQLite file, serves them only while fresh
(Cache-Control max-age, Expires, or a default TTL), and keeps the total body
size under a byte budget by evicting the least recently used entries.
"""

import hashlib
import re
import sqlite3
import threading
import time
from email.utils import parsedate_to_datetime
from pathlib import Path

from bounded_crawler.core import logger
from bounded_crawler.models import FetchResult

DB_NAME = "responses.db"
DEFAULT_TTL_SECONDS = 12 * 3600

_MAX_AGE = re.compile(r"(?:^|,)\s*max-age\s*=\s*\"?(\d+)\"?", re.IGNORECASE)


def freshness_lifetime(headers, default_ttl: float, now=None) -> float:
    """
    Seconds a response stays fresh: Cache-Control max-age, then Expires
    (relative to Date when present), then the default TTL.
    no-cache and an unparseable Expires both mean already stale.
    """
    headers = headers or {}
    cache_control = (headers.get("Cache-Control") or "").lower()
    if "no-cache" in cache_control or "no-store" in cache_control:
        return 0
    match = _MAX_AGE.search(cache_control)
    if match:
        return int(match.group(1))

    expires = headers.get("Expires")
    if expires is not None:
        try:
            expires_ts = parsedate_to_datetime(expires).timestamp()
        except (TypeError, ValueError, IndexError):
            return 0
        date = headers.get("Date")
        try:
            base_ts = parsedate_to_datetime(date).timestamp() if date else None
        except (TypeError, ValueError, IndexError):
            base_ts = None
        if base_ts is None:
            return expires_ts - (time.time() if now is None else now)
        return expires_ts - base_ts

    return default_ttl


class ResponseCache:
    """
    FLOW: Hashes the request URL into a key -> Looks the key up in SQLite ->
    Drops the entry if it has expired -> Touches the entry on a hit ->
    On insert, evicts oldest-accessed entries until the byte budget holds.
    """

    def __init__(self, directory, max_bytes: int, ttl: float = DEFAULT_TTL_SECONDS, clock=time.time):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self.db_path = self.directory / DB_NAME
        self.max_bytes = max_bytes
        self.ttl = ttl
        self.clock = clock
        self._lock = threading.Lock()
        self._initialize()

    @staticmethod
    def _cache_key(url: str) -> str:
        return hashlib.sha256(url.encode("utf-8")).hexdigest()

    def _get_connection(self):
        # One connection per call: sqlite3 connections are not shared across threads
        return sqlite3.connect(self.db_path, timeout=30)

    def _initialize(self):
        conn = self._get_connection()
        try:
            conn.execute("""
            CREATE TABLE IF NOT EXISTS responses (
                key TEXT PRIMARY KEY,
                url TEXT NOT NULL,
                final_url TEXT NOT NULL,
                status_code INTEGER NOT NULL,
                content_type TEXT,
                body BLOB,
                size INTEGER NOT NULL,   -- bytes of body
                accessed_at REAL NOT NULL,
                stored_at REAL NOT NULL DEFAULT 0,
                expires_at REAL NOT NULL DEFAULT 0
            );
            """)
            # Files written before expiry tracking: old rows read as expired
            columns = {row[1] for row in conn.execute("PRAGMA table_info(responses)")}
            for column in ("stored_at", "expires_at"):
                if column not in columns:
                    conn.execute(f"ALTER TABLE responses ADD COLUMN {column} REAL NOT NULL DEFAULT 0")
            conn.commit()
        finally:
            conn.close()

    def get(self, url: str):
        """Return a FetchResult marked from_cache, or None on a miss or a stale entry."""
        key = self._cache_key(url)
        now = self.clock()
        with self._lock:
            conn = self._get_connection()
            try:
                row = conn.execute(
                    "SELECT final_url, status_code, content_type, body, expires_at FROM responses WHERE key = ?",
                    (key,),
                ).fetchone()
                if row is None:
                    return None
                if row[4] <= now:
                    conn.execute("DELETE FROM responses WHERE key = ?", (key,))
                    conn.commit()
                    logger.debug(f"[CACHE] Expired entry for {url}")
                    return None
                conn.execute("UPDATE responses SET accessed_at = ? WHERE key = ?", (now, key))
                conn.commit()
            finally:
                conn.close()

        final_url, status_code, content_type, body, _ = row
        return FetchResult(
            url=url,
            final_url=final_url,
            status_code=status_code,
            content_type=content_type,
            body=bytes(body) if body is not None else None,
            from_cache=True,
        )

    def put(self, result: FetchResult, headers=None) -> bool:
        """
        Store a response. Returns False when the body alone exceeds the budget
        or the response headers say it is already stale.
        """
        body = result.body or b""
        size = len(body)
        if size > self.max_bytes:
            logger.debug(f"[CACHE] Not caching {result.url}: {size} bytes exceeds budget {self.max_bytes}")
            return False

        now = self.clock()
        lifetime = freshness_lifetime(headers, self.ttl, now)
        if lifetime <= 0:
            logger.debug(f"[CACHE] Not caching {result.url}: already stale")
            return False

        key = self._cache_key(result.url)
        with self._lock:
            conn = self._get_connection()
            try:
                conn.execute("""
                    INSERT INTO responses (key, url, final_url, status_code, content_type, body, size,
                                           accessed_at, stored_at, expires_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        final_url=excluded.final_url,
                        status_code=excluded.status_code,
                        content_type=excluded.content_type,
                        body=excluded.body,
                        size=excluded.size,
                        accessed_at=excluded.accessed_at,
                        stored_at=excluded.stored_at,
                        expires_at=excluded.expires_at;
                """, (key, result.url, result.final_url, result.status_code, result.content_type,
                      sqlite3.Binary(body), size, now, now, now + lifetime))
                self._evict(conn)
                conn.commit()
            finally:
                conn.close()
        return True

    def _evict(self, conn):
        total = conn.execute("SELECT COALESCE(SUM(size), 0) FROM responses").fetchone()[0]
        if total <= self.max_bytes:
            return
        rows = conn.execute("SELECT key, size FROM responses ORDER BY accessed_at ASC, rowid ASC").fetchall()
        evicted = 0
        for key, size in rows:
            if total <= self.max_bytes:
                break
            conn.execute("DELETE FROM responses WHERE key = ?", (key,))
            total -= size
            evicted += 1
        logger.debug(f"[CACHE] Evicted {evicted} entries, {total} bytes remain")

    def size_bytes(self) -> int:
        conn = self._get_connection()
        try:
            return conn.execute("SELECT COALESCE(SUM(size), 0) FROM responses").fetchone()[0]
        finally:
            conn.close()

    def __len__(self):
        conn = self._get_connection()
        try:
            return conn.execute("SELECT COUNT(*) FROM responses").fetchone()[0]
        finally:
            conn.close()
