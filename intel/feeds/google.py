from typing import Optional
from urllib.parse import urlencode

from .base import RssFeed


class GoogleNewsFeed(RssFeed):
    name = "Google News"
    BASE_URL = "https://news.google.com/rss/search"
    REGION_CONFIG = {"hl": "ja", "gl": "JP", "ceid": "JP:ja"}

    def build_url(self, query: str) -> Optional[str]:
        if not query:
            return None
        params = {"q": query, **self.REGION_CONFIG}
        return f"{self.BASE_URL}?{urlencode(params)}"

    def to_item(self, entry):
        item = super().to_item(entry)
        if item is None:
            return None

        # Google usa "Título - Fonte"; rsplit para não cortar títulos que têm '-'
        source = getattr(entry, "source", None)
        source_title = source.get("title") if source else ""
        title_only = item.title
        if " - " in item.title:
            title_only, tail = item.title.rsplit(" - ", 1)
            source_title = source_title or tail

        return item.model_copy(update={
            "title": title_only.strip() or item.title,
            "source": (source_title or self.name).strip(),
        })
