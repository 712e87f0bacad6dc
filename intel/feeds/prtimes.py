from typing import Optional
from urllib.parse import quote

from intel.utils.query_utils import looks_like_generic_query

from .base import RssFeed


class PRTimesFeed(RssFeed):
    """Press releases por nome de empresa (o RSS não aceita busca livre)."""

    name = "PR TIMES"
    BASE_URL = "https://prtimes.jp/main/action.php"
    referer = "https://prtimes.jp/"

    def build_url(self, query: str) -> Optional[str]:
        if not query or looks_like_generic_query(query):
            return None
        return f"{self.BASE_URL}?run=rss&company_name={quote(query)}"
