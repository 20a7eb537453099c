"""
FILE DESCRIPTION: Content processing pipeline handling network fetching, link extraction, and URL sanitization.
KEY FUNCTIONS/CLASSES: LinkUtility, MediaType, PageFetcher, LinkExtractor
"""

from http.cookiejar import DefaultCookiePolicy
from typing import Iterator, Optional
from urllib.parse import urldefrag, urljoin, urlsplit, urlunsplit

import requests
from bs4 import BeautifulSoup
from bs4.builder import ParserRejectedMarkup

from bounded_crawler.core import REQUEST_TIMEOUT, USER_AGENT, logger
from bounded_crawler.models import FetchResult, TransportError
from bounded_crawler.policy import HostPolicy

MAX_REDIRECTS = 20

# === LINK UTILITY ===

class LinkUtility:

    @staticmethod
    def strip_fragment(url: str) -> str:
        return urldefrag(url)[0]

    DEFAULT_PORTS = {"http": 80, "https": 443}

    @staticmethod
    def normalize_url(url: str) -> str:
        """
        Identity form used by the frontier: scheme and host lower-cased,
        default port dropped, empty path turned into "/", fragment removed.
        http://H.com, http://h.com/ and http://h.com:80/#x all normalize to http://h.com/
        """
        if not url:
            return ""
        url = url.strip()
        try:
            parts = urlsplit(url)
            port = parts.port
        except ValueError:
            return LinkUtility.strip_fragment(url)

        scheme = parts.scheme.lower()
        if scheme not in LinkUtility.DEFAULT_PORTS or not parts.hostname:
            return LinkUtility.strip_fragment(url)

        host = parts.hostname.lower()
        if ":" in host:
            host = f"[{host}]"
        if port is not None and port != LinkUtility.DEFAULT_PORTS[scheme]:
            host = f"{host}:{port}"
        userinfo, sep, _ = parts.netloc.rpartition("@")
        netloc = f"{userinfo}@{host}" if sep else host

        return urlunsplit((scheme, netloc, parts.path or "/", parts.query, ""))


# === MEDIA TYPE ===

class MediaType:
    """Parsed Content-Type header: type/subtype plus parameters."""

    def __init__(self, type_, subtype, params=None):
        self.type = type_
        self.subtype = subtype
        self.params = params or {}

    @classmethod
    def parse(cls, content_type: Optional[str]) -> Optional["MediaType"]:
        """Returns None for a missing or malformed header."""
        if not content_type:
            return None
        head, *rest = content_type.split(";")
        if "/" not in head:
            return None
        type_, _, subtype = head.strip().lower().partition("/")
        if not type_ or not subtype:
            return None
        params = {}
        for part in rest:
            key, sep, value = part.strip().partition("=")
            if sep:
                params[key.strip().lower()] = value.strip().strip('"')
        return cls(type_, subtype, params)

    @property
    def is_html(self) -> bool:
        return "htm" in self.subtype

    def __repr__(self):
        return f"MediaType({self.type}/{self.subtype})"


# === PAGE FETCHER ===

class PageFetcher:
    """
    FLOW: Checks the response cache -> Executes HTTP GET with the identifying
    User-Agent (following redirects hop by hop) -> Stores cacheable responses ->
    Returns a FetchResult, or raises TransportError on network failure.
    """

    def __init__(self, user_agent=USER_AGENT, timeout=REQUEST_TIMEOUT, cache=None, session=None):
        self.headers = {"User-Agent": user_agent}
        self.timeout = timeout
        self.cache = cache
        self.session = session or requests.Session()
        # Cookies are never sent back
        self.session.cookies.set_policy(_RejectAllCookies())

    def fetch(self, url: str) -> FetchResult:
        if self.cache is not None:
            cached = self.cache.get(url)
            if cached is not None:
                return cached

        r = self._get_following_redirects(url)

        result = FetchResult(
            url=url,
            final_url=LinkUtility.normalize_url(r.url or url),
            status_code=r.status_code,
            content_type=r.headers.get("Content-Type"),
            body=r.content,
            from_cache=False,
        )
        if self.cache is not None and self._is_cacheable(r):
            self.cache.put(result, r.headers)
        return result

    def _get_following_redirects(self, url: str):
        # Every hop is a fresh request carrying only the User-Agent header
        current = url
        for _ in range(MAX_REDIRECTS + 1):
            try:
                r = self.session.get(current, headers=self.headers, timeout=self.timeout, allow_redirects=False)
            except requests.exceptions.RequestException as e:
                raise TransportError(url, str(e)) from e
            if not r.is_redirect:
                return r
            location = r.headers.get("Location", "")
            r.close()
            try:
                current = urljoin(r.url or current, location)
            except ValueError as e:
                raise TransportError(url, f"bad redirect target {location!r}") from e
            if not HostPolicy.is_http(current):
                raise TransportError(url, f"redirect to unsupported scheme: {current}")
        raise TransportError(url, f"exceeded {MAX_REDIRECTS} redirects")

    @staticmethod
    def _is_cacheable(r) -> bool:
        if r.status_code != 200:
            return False
        cache_control = r.headers.get("Cache-Control", "").lower()
        return "no-store" not in cache_control

    def close(self):
        self.session.close()


class _RejectAllCookies(DefaultCookiePolicy):
    def set_ok(self, cookie, request):
        return False


# === LINK EXTRACTOR ===

class LinkExtractor:
    """
    FLOW: Parses HTML using BeautifulSoup -> Selects a[href] anchors ->
    Resolves each href against the base URL -> Drops non-http(s) targets ->
    Normalizes -> Yields absolute URLs lazily.
    """

    def __init__(self, parser="html.parser"):
        self.parser = parser

    def extract_links(self, base_url: str, body: Optional[bytes]) -> Iterator[str]:
        if not body:
            return
        try:
            soup = BeautifulSoup(body, self.parser)
        except ParserRejectedMarkup as e:
            logger.warning(f"[PARSE] Rejected markup from {base_url}: {e}")
            return

        for a in soup.select("a[href]"):
            href = a.get("href", "").strip()
            if not href:
                continue
            try:
                url = urljoin(base_url, href)
            except ValueError:
                logger.debug(f"[PARSE] Unresolvable href {href!r} on {base_url}")
                continue
            if not HostPolicy.is_http(url):
                continue
            yield LinkUtility.normalize_url(url)
