from __future__ import annotations

import logging
import threading
import webbrowser
from typing import Any

import requests

from hgtui.errors import BrowserError, InvalidVolume, NetworkError
from hgtui.models import Category, GlobalInfo, SearchMode
from hgtui.parsing import parse_global_info

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://hellogithub.com/periodical"
DEFAULT_TIMEOUT_SECONDS = 20
HTTP_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/122.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "zh-CN,zh;q=0.9,en;q=0.8",
}


def resolve_volume(raw_query: str, max_volume: int) -> int:
    text = raw_query[1:].strip() if raw_query.startswith("#") else raw_query.strip()
    if not text.isdigit():
        raise InvalidVolume(f"'{text}' is not a volume number. Try something like #42.")
    return max(1, min(int(text), max_volume))


def resolve_category(raw_query: str) -> Category:
    text = raw_query[1:] if raw_query.startswith("$") else raw_query
    return Category.parse(text)


class Fetcher:
    """HTTP access to the periodical with one request in flight at a time.

    Responses are cached by the full call arguments for the life of the
    process, so paging back to a volume or category page is free.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        session: requests.Session | None = None,
        timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout_seconds = timeout_seconds
        self._lock = threading.Lock()
        self._cache: dict[tuple[Any, ...], str] = {}

    def _get(self, key: tuple[Any, ...], path: str, params: dict[str, Any] | None = None) -> str:
        with self._lock:
            cached = self._cache.get(key)
            if cached is not None:
                logger.debug("Cache hit for %s", key)
                return cached

            url = f"{self.base_url}{path}"
            logger.debug("GET %s params=%s", url, params)
            try:
                response = self.session.get(
                    url,
                    params=params,
                    headers=HTTP_HEADERS,
                    timeout=self.timeout_seconds,
                )
                response.raise_for_status()
            except requests.RequestException as exc:
                logger.warning("Request to %s failed: %s", url, exc)
                raise NetworkError(f"Failed to fetch {url}: {exc}") from exc

            text = response.text
            self._cache[key] = text
            return text

    def search(self, query: str) -> str:
        return self._get(("search", query), "/search", {"q": query})

    def fetch_volume(self, volume: int) -> str:
        return self._get(("volume", volume), f"/volume/{volume:02d}/")

    def fetch_category(self, category: Category, page_no: int) -> str:
        return self._get(
            ("category", category, page_no),
            f"/category/{category.localized}/",
            {"page": page_no},
        )

    def fetch_landing(self) -> str:
        return self._get(("landing",), "/")

    def fetch_global_info(self) -> GlobalInfo:
        return parse_global_info(self.fetch_landing())

    def fetch(self, raw_query: str, mode: SearchMode, max_volume: int, page_no: int = 1) -> str:
        if mode is SearchMode.VOLUME:
            return self.fetch_volume(resolve_volume(raw_query, max_volume))
        if mode is SearchMode.CATEGORY:
            return self.fetch_category(resolve_category(raw_query), max(1, page_no))
        return self.search(raw_query)


def open_link(url: str) -> None:
    target = url.strip()
    if not target.startswith(("http://", "https://")):
        raise BrowserError(f"No web link to open: {url!r}")
    logger.info("Opening %s", target)
    try:
        opened = webbrowser.open_new_tab(target)
    except webbrowser.Error as exc:
        raise BrowserError(f"Could not launch a browser: {exc}") from exc
    if not opened:
        raise BrowserError(f"No browser accepted {target}")
