from typing import List

from intel.models import NewsItem

from .base import MeteredFeed


class NewsApiFeed(MeteredFeed):
    """Fallback para tópicos quando os outros provedores voltam vazios."""

    name = "NewsAPI"
    api_key_env = "NEWSAPI_KEY"
    BASE_URL = "https://newsapi.org/v2/everything"

    def build_request(self, query: str) -> tuple:
        # sem 'language': a API não suporta 'ja'
        params = {
            "q": query,
            "sortBy": "publishedAt",
            "pageSize": self.max_items,
            "apiKey": self.api_key,
        }
        return self.BASE_URL, params

    def parse_articles(self, payload: dict) -> List[NewsItem]:
        if payload.get("status") not in (None, "ok"):
            return []
        news: List[NewsItem] = []
        for article in payload.get("articles") or []:
            title = article.get("title")
            url = article.get("url")
            # artigos removidos vêm como "[Removed]"
            if not title or not url or title == "[Removed]":
                continue
            news.append(NewsItem(
                title=title,
                url=url,
                published_at=article.get("publishedAt") or "",
                source=(article.get("source") or {}).get("name") or self.name,
                summary=article.get("description") or "",
            ))
        return news
