import logging
import re
from typing import List, Optional
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup

from intel.config import PROBE_TIMEOUT_SECONDS, USER_AGENT
from intel.models import NewsItem

from .company_info import origin_of

logger = logging.getLogger(__name__)

MAX_SITE_NEWS = 5
SITE_SOURCE = "公式サイト"

# IR primeiro (empresas listadas)
NEWS_PATHS = [
    "/ir", "/ir/news", "/ir/topics", "/ir/info",
    "/news", "/news/release", "/newsrelease",
    "/press", "/pressrelease", "/press-release",
    "/info", "/topics", "/information",
    "/corporate/news", "/company/news",
    "/oshirase", "/whatsnew",
]
NEWS_TITLE_WORDS = ("news", "お知らせ", "新着", "ir", "投資家", "プレス", "リリース")
NEWS_BODY_WORDS = ("ニュース", "プレスリリース")
NEWS_SELECTORS = [
    ".news-list li", ".newsList li", ".news li", ".news-item",
    ".press-list li", ".pressrelease li", ".ir-list li",
    "dl.news dt", "table.news tr", ".topic-list li",
    "article", ".post", ".entry",
]
NAVIGATION_WORDS = (
    "サイトマップ", "english", "トップ", "ホーム", "top", "home",
    "お問い合わせ", "contact", "アクセス", "access", "プライバシー",
    "privacy", "会社概要", "about", "採用", "recruit", "career",
    "ログイン", "login", "検索", "search", "menu", "メニュー",
    "お近くの", "日本語", "japanese", "language",
    "faq", "よくある質問", "お客様", "customer", "サービス一覧",
)
NEWS_URL_MARKERS = ("/news", "/press", "/ir", "/release", "/info", "/topics")
_DATE_RE = re.compile(r"(\d{4}[年./-]\d{1,2}[月./-]\d{1,2}日?)")
_YEAR_RE = re.compile(r"202[0-9]")


def is_news_page(title: str, body: str) -> bool:
    title, body = title.lower(), body.lower()
    return any(w in title for w in NEWS_TITLE_WORDS) or any(w in body for w in NEWS_BODY_WORDS)


def is_news_link(title: str, url: str) -> bool:
    """Rejeita links de navegação; aceita URL de notícia, data no título ou título longo."""
    if len(title) < 10 or len(title) > 200:
        return False
    lowered = title.lower()
    if any(w in lowered for w in NAVIGATION_WORDS):
        return False
    has_news_url = any(m in url for m in NEWS_URL_MARKERS)
    has_date = bool(_DATE_RE.search(title) or _YEAR_RE.search(title))
    return has_news_url or has_date or len(title) > 20


def parse_news_list(html: str, base_url: str) -> List[NewsItem]:
    soup = BeautifulSoup(html, "html.parser")
    items: List[NewsItem] = []
    for selector in NEWS_SELECTORS:
        for el in soup.select(selector):
            if len(items) >= MAX_SITE_NEWS:
                break
            link = el if el.name == "a" else el.find("a")
            if link is None or not link.get("href"):
                continue
            title = " ".join(link.get_text(" ").split())
            url = urljoin(base_url, link["href"])
            if not is_news_link(title, url):
                continue
            if any(n.title == title for n in items):
                continue
            date = _DATE_RE.search(el.get_text(" "))
            items.append(NewsItem(
                title=title,
                url=url,
                published_at=date.group(1) if date else "",
                source=SITE_SOURCE,
            ))
        if items:
            break
    return items


class SiteNewsScraper:
    """Fallback: lê a página de notícias/IR do próprio site da empresa."""

    def __init__(self, http: httpx.AsyncClient):
        self.http = http

    async def _get(self, url: str) -> Optional[str]:
        try:
            response = await self.http.get(
                url,
                headers={"User-Agent": USER_AGENT},
                timeout=PROBE_TIMEOUT_SECONDS,
                follow_redirects=True,
            )
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL):
            return None
        return response.text

    async def fetch_company_news(self, url: str) -> List[NewsItem]:
        try:
            origin = origin_of(url)
        except ValueError:
            return []

        for path in NEWS_PATHS:
            page_url = f"{origin}{path}"
            html = await self._get(page_url)
            if not html:
                continue
            try:
                soup = BeautifulSoup(html, "html.parser")
                title = soup.title.get_text() if soup.title else ""
                body = (soup.body or soup).get_text(" ")
                if not is_news_page(title, body):
                    continue
                items = parse_news_list(html, origin)
            except Exception as e:
                logger.warning("Could not parse news page %s: %s", page_url, e)
                continue
            if items:
                logger.info("Found %d news items at %s", len(items), page_url)
                return items[:MAX_SITE_NEWS]
        return []
