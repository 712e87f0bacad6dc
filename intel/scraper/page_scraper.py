import logging
from typing import AsyncIterator, Optional
from urllib.parse import unquote, urljoin, urlparse

import fitz  # PyMuPDF
import httpx
from bs4 import BeautifulSoup

from intel.config import PROBE_TIMEOUT_SECONDS, SCRAPE_TIMEOUT_SECONDS, USER_AGENT
from intel.models import CompanyInfo, ScrapedPage

from .company_info import (
    COMPANY_PATHS,
    MAX_SITEMAP_PROBES,
    PARENT_DOMAIN_PATHS,
    SITEMAP_PATHS,
    detect_tech_stack,
    is_sitemap_candidate,
    origin_of,
    parent_hostname,
    parse_company_info,
)
from .ocr import OcrFallback

logger = logging.getLogger(__name__)

MIN_PDF_TEXT_LENGTH = 200
MAX_PDF_TEXT_LENGTH = 15000
MAX_HTML_TEXT_LENGTH = 10000
PDF_ERROR_TEXT = "PDFの読み込みに失敗しました。"
RECRUIT_WORDS = ("recruit", "採用", "career")
_STRIP_TAGS = ("script", "style", "nav", "header", "footer")


def collapse_ws(text: str) -> str:
    return " ".join((text or "").split())


def is_pdf_response(url: str, headers: httpx.Headers, body: bytes) -> bool:
    """Qualquer um dos sinais basta."""
    content_type = headers.get("content-type", "").lower()
    disposition = headers.get("content-disposition", "").lower()
    return (
        "application/pdf" in content_type
        or ".pdf" in url.lower()
        or ".pdf" in disposition
        or body[:5] == b"%PDF-"
    )


def extract_pdf_text(data: bytes) -> str:
    with fitz.open(stream=data, filetype="pdf") as doc:
        return collapse_ws(" ".join(page.get_text() for page in doc))


def page_text(html: str) -> str:
    soup = BeautifulSoup(html, "html.parser")
    body = soup.body or soup
    return body.get_text(" ")


class PageScraper:
    def __init__(self, http: httpx.AsyncClient, ocr: Optional[OcrFallback] = None):
        self.http = http
        self.ocr = ocr
        self.headers = {"User-Agent": USER_AGENT, "Accept-Language": "ja,en;q=0.8"}

    async def fetch_page_content(self, url: str) -> ScrapedPage:
        logger.info("Scraping: %s", url)
        try:
            response = await self.http.get(
                url, headers=self.headers, timeout=SCRAPE_TIMEOUT_SECONDS, follow_redirects=True
            )
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error("Scraping error (%s): %s", url, e)
            return ScrapedPage()

        body = response.content
        if is_pdf_response(url, response.headers, body):
            return await self._parse_pdf(url, body)

        try:
            return await self._parse_html(url, response.text)
        except Exception as e:
            logger.error("HTML parsing error (%s): %s", url, e)
            return ScrapedPage()

    async def _parse_pdf(self, url: str, data: bytes) -> ScrapedPage:
        logger.info("Processing as PDF: %s", url)
        file_name = unquote(urlparse(url).path.rstrip("/").split("/")[-1]) or "Unknown"
        page = ScrapedPage(
            title=f"PDF Document: {file_name}",
            description="PDF content extracted",
        )
        try:
            text = extract_pdf_text(data)
        except Exception as e:
            logger.error("PDF parsing error (%s): %s", url, e)
            page.body_text = PDF_ERROR_TEXT
            return page

        # PDF escaneado: texto curto, tenta OCR nas primeiras páginas
        if len(text) < MIN_PDF_TEXT_LENGTH and self.ocr is not None and self.ocr.available:
            logger.info("PDF text is short (%d chars); trying OCR", len(text))
            ocr_text = await self.ocr.transcribe_pdf(data, hint=f"PDF URL: {url}")
            if len(ocr_text) > len(text):
                text = ocr_text

        page.body_text = text[:MAX_PDF_TEXT_LENGTH]
        logger.info("PDF parsed. Text length: %d", len(page.body_text))
        return page

    async def _parse_html(self, url: str, html: str) -> ScrapedPage:
        soup = BeautifulSoup(html, "html.parser")
        for tag in soup(_STRIP_TAGS):
            tag.decompose()

        title = soup.title.get_text(strip=True) if soup.title else ""
        meta = soup.find("meta", attrs={"name": "description"})
        description = (meta.get("content") or "").strip() if meta else ""

        body = soup.body or soup
        text = body.get_text(" ")

        recruit_links = []
        for a in soup.find_all("a", href=True):
            anchor_text = a.get_text(" ").lower()
            img = a.find("img")
            alt = (img.get("alt") or "").lower() if img else ""
            if any(w in anchor_text or w in alt for w in RECRUIT_WORDS):
                absolute = urljoin(url, a["href"])
                if absolute not in recruit_links:
                    recruit_links.append(absolute)

        info = parse_company_info(text)
        if not info.has_core():
            info = await self.crawl_company_info(url, info)

        return ScrapedPage(
            title=title,
            description=description,
            body_text=collapse_ws(text)[:MAX_HTML_TEXT_LENGTH],
            recruit_links=recruit_links,
            tech_stack=detect_tech_stack(html),
            company_info=info,
        )

    #%% Crawl de dados corporativos

    async def _probe(self, url: str) -> Optional[str]:
        try:
            response = await self.http.get(
                url, headers=self.headers, timeout=PROBE_TIMEOUT_SECONDS, follow_redirects=True
            )
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL):
            return None
        return response.text

    async def _sitemap_candidates(self, origin: str) -> AsyncIterator[str]:
        probes = 0
        for path in SITEMAP_PATHS:
            xml = await self._probe(f"{origin}{path}")
            if not xml:
                continue
            soup = BeautifulSoup(xml, "html.parser")
            for loc in soup.find_all("loc"):
                loc_url = loc.get_text(strip=True)
                if not loc_url or not is_sitemap_candidate(loc_url):
                    continue
                if probes >= MAX_SITEMAP_PROBES:
                    return
                probes += 1
                yield loc_url

    async def candidate_urls(self, url: str) -> AsyncIterator[str]:
        """Sequência preguiçosa: sitemap, caminhos na origem e, se for subdomínio, na raiz."""
        origin = origin_of(url)
        async for loc in self._sitemap_candidates(origin):
            yield loc
        for path in COMPANY_PATHS:
            yield f"{origin}{path}"

        parsed = urlparse(url)
        parent = parent_hostname(parsed.hostname or "")
        if parent:
            for path in PARENT_DOMAIN_PATHS:
                yield f"{parsed.scheme}://{parent}{path}"

    async def crawl_company_info(self, url: str, info: Optional[CompanyInfo] = None) -> CompanyInfo:
        info = info or CompanyInfo()
        visited = {url.rstrip("/")}
        async for candidate in self.candidate_urls(url):
            key = candidate.rstrip("/")
            if key in visited:
                continue
            visited.add(key)

            html = await self._probe(candidate)
            if not html:
                continue
            try:
                info = parse_company_info(page_text(html), info)
            except Exception as e:
                logger.debug("Could not parse %s: %s", candidate, e)
                continue
            if info.has_core():
                logger.info("Found company info at: %s", candidate)
                break
        return info
