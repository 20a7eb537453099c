"""
Centralized host policy deciding whether a discovered link stays in crawl scope.

Other modules should call HostPolicy instead of comparing hosts ad hoc.
"""

from urllib.parse import urlparse

import tldextract


class HostPolicy:
    """
    Pure host filter. No state, no network.

    Methods:
    - is_http(url): True for http/https
    - host_of(url): lower-cased host without port, or ""
    - accept(url, suffix, mode): single gate used by workers before enqueue
    - default_suffix(seed_url): registrable domain of the seed
    """

    # tldextract must not fetch the public suffix list over the network at runtime
    _EXTRACT = tldextract.TLDExtract(suffix_list_urls=())

    @staticmethod
    def is_http(url: str) -> bool:
        try:
            return urlparse(url).scheme in ("http", "https")
        except ValueError:
            return False

    @staticmethod
    def host_of(url: str) -> str:
        try:
            return (urlparse(url).hostname or "").lower()
        except ValueError:
            return ""

    @classmethod
    def accept(cls, url: str, suffix: str, mode: str = "contains") -> bool:
        """
        "contains": the host contains the suffix anywhere (so "scut.edu.cn.example.org"
        passes). "suffix": the host equals the suffix or ends with "." + suffix.
        Only the host is inspected; paths and queries never grant scope.
        """
        if not cls.is_http(url):
            return False
        host = cls.host_of(url)
        if not host:
            return False
        suffix = (suffix or "").lower().strip(".")
        if not suffix:
            return True
        if mode == "suffix":
            return host == suffix or host.endswith("." + suffix)
        return suffix in host

    @classmethod
    def default_suffix(cls, seed_url: str) -> str:
        """Registrable domain of the seed (e.g. www2.scut.edu.cn -> scut.edu.cn)."""
        extracted = cls._EXTRACT(seed_url)
        if extracted.domain and extracted.suffix:
            return f"{extracted.domain}.{extracted.suffix}".lower()
        return cls.host_of(seed_url)
