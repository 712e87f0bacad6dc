from typing import List

from intel.models import NewsItem

from .base import MeteredFeed


class GNewsFeed(MeteredFeed):
    name = "GNews"
    api_key_env = "GNEWS_API_KEY"
    BASE_URL = "https://gnews.io/api/v4/search"

    def build_request(self, query: str) -> tuple:
        params = {
            "q": query,
            "lang": "ja",
            "country": "jp",
            "max": self.max_items,
            "sortby": "publishedAt",
            "apikey": self.api_key,
        }
        return self.BASE_URL, params

    def parse_articles(self, payload: dict) -> List[NewsItem]:
        news: List[NewsItem] = []
        for article in payload.get("articles") or []:
            title = article.get("title")
            url = article.get("url")
            if not title or not url:
                continue
            news.append(NewsItem(
                title=title,
                url=url,
                published_at=article.get("publishedAt") or "",
                source=(article.get("source") or {}).get("name") or self.name,
                summary=article.get("description") or "",
            ))
        return news
