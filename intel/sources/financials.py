import logging
from typing import List, Optional
from urllib.parse import quote, urljoin

import httpx
from bs4 import BeautifulSoup

from intel.config import EDINET_API_KEY, HTTP_TIMEOUT_SECONDS, USER_AGENT
from intel.models import FinancialData

logger = logging.getLogger(__name__)


class EdinetSource:
    BASE_URL = "https://disclosure.edinet-fsa.go.jp/api/v2"

    def __init__(self, http: httpx.AsyncClient, api_key: str = EDINET_API_KEY):
        self.http = http
        self.api_key = api_key

    async def get_financials(self, corporate_number: Optional[str]) -> List[FinancialData]:
        if not corporate_number:
            return []
        if not self.api_key:
            logger.warning("EDINET API key is missing.")
            return []
        logger.info("Fetching EDINET data for %s...", corporate_number)
        # TODO: listar /documents.json por data, achar o docID do yuho e ler o XBRL/CSV
        return []


class CatrSource:
    """Balanço publicado no Kanpo, via catr.jp."""

    BASE_URL = "https://catr.jp"

    def __init__(self, http: httpx.AsyncClient):
        self.http = http
        self.headers = {"User-Agent": USER_AGENT}

    async def _get(self, url: str) -> str:
        response = await self.http.get(
            url, headers=self.headers, timeout=HTTP_TIMEOUT_SECONDS, follow_redirects=True
        )
        response.raise_for_status()
        return response.text

    async def get_financials(self, company_name: str) -> List[FinancialData]:
        if not company_name:
            return []
        logger.info("Searching catr.jp for: %s", company_name)
        try:
            search_html = await self._get(f"{self.BASE_URL}/search?word={quote(company_name)}")
            link = BeautifulSoup(search_html, "html.parser").select_one(".company_name a")
            if link is None or not link.get("href"):
                logger.info("No company found on catr.jp")
                return []

            company_html = await self._get(urljoin(self.BASE_URL, link["href"]))
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error("Error scraping catr.jp: %s", e)
            return []

        return parse_catr_financials(company_html)


def _clean(text: str) -> str:
    return " ".join(text.split())


def parse_catr_financials(html: str) -> List[FinancialData]:
    net_income = ""
    total_assets = ""
    for row in BeautifulSoup(html, "html.parser").find_all("tr"):
        text = row.get_text()
        cells = row.find_all("td")
        if not cells:
            continue
        if not net_income and "純利益" in text:
            net_income = _clean(" ".join(c.get_text() for c in cells))
        if not total_assets and any(k in text for k in ("資産の部", "総資産", "資産合計")):
            total_assets = _clean(cells[-1].get_text())

    if not net_income and not total_assets:
        return []
    logger.info("catr.jp found: net_income=%s, total_assets=%s", net_income, total_assets)
    return [FinancialData(
        year="Latest (Kanpo)",
        net_income=net_income or "-",
        total_assets=total_assets or "-",
    )]


class FinancialsProvider:
    """EDINET primeiro (listadas), catr.jp como alternativa; primeiro não vazio vence."""

    def __init__(self, edinet: EdinetSource, catr: CatrSource):
        self.edinet = edinet
        self.catr = catr

    async def get_financials(self, company_name: str, corporate_number: Optional[str] = None) -> List[FinancialData]:
        try:
            edinet = await self.edinet.get_financials(corporate_number)
        except Exception as e:
            logger.error("EDINET lookup failed: %s", e)
            edinet = []
        if edinet:
            return edinet
        try:
            return await self.catr.get_financials(company_name)
        except Exception as e:
            logger.error("catr.jp lookup failed: %s", e)
            return []
