import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional

from intel.feeds.base import BaseFeed
from intel.models import NewsItem, PestleNews, TopicQuerySet
from intel.utils.query_utils import extract_brand_name, normalize_query
from intel.utils.tz_utils import filter_recent

logger = logging.getLogger(__name__)

_MAX_COMPANY_NEWS = 10
_MAX_TOPIC_NEWS = 5


def dedupe_by_url(items: Iterable[NewsItem]) -> List[NewsItem]:
    """Primeira ocorrência vence; ordem preservada."""
    seen = set()
    unique: List[NewsItem] = []
    for item in items:
        if not item.url or item.url in seen:
            continue
        seen.add(item.url)
        unique.append(item)
    return unique


class NewsAggregator:
    def __init__(
        self,
        google: BaseFeed,
        prtimes: BaseFeed,
        gnews: BaseFeed,
        newsapi: Optional[BaseFeed] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.google = google
        self.prtimes = prtimes
        self.gnews = gnews
        self.newsapi = newsapi
        self.clock = clock

    async def _safe_fetch(self, feed: Optional[BaseFeed], query: str) -> List[NewsItem]:
        if feed is None or not query:
            return []
        try:
            return await feed.fetch(query) or []
        except Exception as e:
            # um provedor com defeito não derruba o resto
            logger.error("Feed %s failed for '%s': %s", getattr(feed, "name", feed), query, e)
            return []

    def _finalize(self, items: List[NewsItem], limit: int) -> List[NewsItem]:
        fresh = filter_recent(items, now=self.clock())
        return dedupe_by_url(fresh)[:limit]

    def company_query_variants(self, company_name: str) -> List[str]:
        primary = normalize_query(company_name)
        variants = [primary]
        brand = extract_brand_name(company_name)
        if brand:
            brand_query = normalize_query(brand)
            if brand_query and brand_query != primary:
                variants.append(brand_query)
        return variants

    async def _fetch_variant(self, query: str) -> List[NewsItem]:
        # prioridade: PR Times > Google News RSS > GNews
        prtimes, google, gnews = await asyncio.gather(
            self._safe_fetch(self.prtimes, query),
            self._safe_fetch(self.google, query),
            self._safe_fetch(self.gnews, query),
        )
        return [*prtimes, *google, *gnews]

    async def fetch_company_news(self, company_name: str) -> List[NewsItem]:
        if not company_name or not company_name.strip():
            return []
        variants = self.company_query_variants(company_name)
        logger.info("Company news variants: %s", variants)

        per_variant = await asyncio.gather(*(self._fetch_variant(q) for q in variants))
        merged = [item for items in per_variant for item in items]
        result = self._finalize(merged, _MAX_COMPANY_NEWS)
        logger.info("Company news for '%s': %d raw, %d kept", company_name, len(merged), len(result))
        return result

    async def fetch_topic_news(self, query: str) -> List[NewsItem]:
        query = normalize_query(query) if query else ""
        if not query:
            return []

        merged = await self._fetch_variant(query)
        if not merged and self.newsapi is not None:
            logger.info("No topic news for '%s', trying NewsAPI", query)
            merged = await self._safe_fetch(self.newsapi, query)

        return self._finalize(merged, _MAX_TOPIC_NEWS)

    async def fetch_pestle_news(self, topics: TopicQuerySet) -> PestleNews:
        # 'technology' fica de fora do fan-out
        regulation, client_market, industry = await asyncio.gather(
            self.fetch_topic_news(topics.regulation),
            self.fetch_topic_news(topics.client_market),
            self.fetch_topic_news(topics.industry),
        )
        return PestleNews(regulation=regulation, client_market=client_market, industry=industry)
