import logging
import re
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import List, Optional

import feedparser
import httpx

from intel.config import HTTP_TIMEOUT_SECONDS, USER_AGENT
from intel.models import NewsItem
from intel.tracker.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

RATE_LIMIT_RE = re.compile(r"too many requests|rate limit|quota|429", re.IGNORECASE)

RSS_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "application/rss+xml, application/xml;q=0.9, text/xml;q=0.8, */*;q=0.7",
    "Accept-Language": "ja,en-US;q=0.9,en;q=0.8",
}


class BaseFeed(ABC):
    name: str = "feed"
    max_items: int = 5

    def __init__(self, http: httpx.AsyncClient, timeout: float = HTTP_TIMEOUT_SECONDS):
        self.http = http
        self.timeout = timeout

    @abstractmethod
    async def fetch(self, query: str) -> List[NewsItem]:
        pass


class RssFeed(BaseFeed):
    """Feed RSS genérico: baixa o XML e delega o parse ao feedparser."""

    referer: str = ""

    @abstractmethod
    def build_url(self, query: str) -> Optional[str]:
        pass

    def default_source(self, entry) -> str:
        return self.name

    async def fetch(self, query: str) -> List[NewsItem]:
        url = self.build_url(query)
        if not url:
            return []

        headers = dict(RSS_HEADERS)
        if self.referer:
            headers["Referer"] = self.referer
        try:
            response = await self.http.get(url, headers=headers, timeout=self.timeout)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                logger.warning("%s RSS not found for query '%s'", self.name, query)
            else:
                logger.error("%s RSS fetch failed for '%s': %s", self.name, query, e)
            return []
        except httpx.HTTPError as e:
            logger.error("%s RSS fetch failed for '%s': %s", self.name, query, e)
            return []

        content_type = response.headers.get("content-type", "").lower()
        if "xml" not in content_type and "<rss" not in response.text:
            logger.warning("%s RSS unexpected content-type: %s", self.name, content_type)
            return []

        feed = feedparser.parse(response.text)
        news: List[NewsItem] = []
        for entry in feed.entries:
            item = self.to_item(entry)
            if item is None:
                continue
            news.append(item)
            if len(news) >= self.max_items:
                break

        logger.info("%s RSS returned %d items for '%s'", self.name, len(news), query)
        return news

    def to_item(self, entry) -> Optional[NewsItem]:
        title = (entry.get("title") or "").strip()
        link = (entry.get("link") or "").strip()
        if not title or not link:
            return None

        # published_parsed preferencial; se não der, mantém a string crua
        published = entry.get("published") or entry.get("updated") or ""
        parsed = entry.get("published_parsed") or entry.get("updated_parsed")
        if parsed:
            try:
                published = datetime(*parsed[:6], tzinfo=timezone.utc).isoformat()
            except (TypeError, ValueError):
                pass

        return NewsItem(
            title=title,
            url=link,
            published_at=published,
            source=self.default_source(entry),
            summary="",
        )


class MeteredFeed(BaseFeed):
    """API paga/limitada: respeita o cooldown compartilhado do RateLimiter."""

    api_key_env: str = ""

    def __init__(
        self,
        http: httpx.AsyncClient,
        api_key: str = "",
        rate_limiter: Optional[RateLimiter] = None,
        timeout: float = HTTP_TIMEOUT_SECONDS,
    ):
        super().__init__(http, timeout)
        self.api_key = api_key
        self.rate_limiter = rate_limiter or RateLimiter()

    @abstractmethod
    def build_request(self, query: str) -> tuple:
        """Retorna (url, params)."""

    @abstractmethod
    def parse_articles(self, payload: dict) -> List[NewsItem]:
        pass

    async def fetch(self, query: str) -> List[NewsItem]:
        if not self.api_key:
            logger.warning("%s API key is missing (%s).", self.name, self.api_key_env)
            return []

        # durante o backoff nem toca na rede
        if not self.rate_limiter.is_open():
            logger.warning(
                "%s is rate-limited. Skipping until %s",
                self.name,
                datetime.fromtimestamp(self.rate_limiter.backoff_until, timezone.utc).isoformat(),
            )
            return []

        url, params = self.build_request(query)
        logger.info("%s query: %s", self.name, query)
        try:
            response = await self.http.get(url, params=params, timeout=self.timeout)
            if response.status_code == 429:
                self._on_rate_limited(response.text)
                return []
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            message = e.response.text or str(e)
            logger.error("%s error: %s %s", self.name, e.response.status_code, message)
            if RATE_LIMIT_RE.search(message):
                self._on_rate_limited(message)
            return []
        except (httpx.HTTPError, ValueError) as e:
            logger.error("%s error: %s", self.name, e)
            if RATE_LIMIT_RE.search(str(e)):
                self._on_rate_limited(str(e))
            return []

        return self.parse_articles(payload)[: self.max_items]

    def _on_rate_limited(self, message: str):
        self.rate_limiter.record_rate_limited()
        logger.warning(
            "%s rate-limited (%s). Falling back to RSS only for %ss.",
            self.name,
            (message or "")[:120],
            int(self.rate_limiter.cooldown),
        )
