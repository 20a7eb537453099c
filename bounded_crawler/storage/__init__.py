from bounded_crawler.storage.response_cache import ResponseCache

__all__ = ["ResponseCache"]
