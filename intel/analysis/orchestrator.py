import asyncio
import logging
import re
from typing import Optional

import httpx

from intel.config import GNEWS_API_KEY, GNEWS_COOLDOWN_SECONDS, NEWSAPI_KEY
from intel.feeds import GNewsFeed, GoogleNewsFeed, NewsApiFeed, PRTimesFeed
from intel.generator.gemini_client import GeminiClient
from intel.generator.industry_analyzer import IndustryAnalyzer, default_quick_analysis
from intel.generator.strategy_generator import StrategyGenerator
from intel.models import (
    AnalysisResult,
    AnalyzeRequest,
    CompanyNews,
    InboundHypothesis,
    InboundLeadRequest,
    QuickAnalysisSummary,
    ScrapedPage,
)
from intel.scraper.ocr import OcrFallback
from intel.scraper.page_scraper import PageScraper
from intel.scraper.site_news import SiteNewsScraper
from intel.sources.corporate import CorporateDirectory
from intel.sources.financials import CatrSource, EdinetSource, FinancialsProvider
from intel.tracker.news_aggregator import NewsAggregator
from intel.tracker.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

FREE_MAIL_DOMAINS = {"gmail.com", "yahoo.co.jp"}
_EMAIL_DOMAIN_RE = re.compile(r"@(.+)$")


class InvalidRequest(Exception):
    pass


class CompanyNotFound(Exception):
    pass


def target_url_for(page_url: Optional[str], domain: Optional[str]) -> Optional[str]:
    if page_url and page_url.startswith(("http://", "https://")):
        return page_url
    if domain:
        return f"https://{domain}"
    return None


def email_domain(email: Optional[str]) -> Optional[str]:
    match = _EMAIL_DOMAIN_RE.search(email or "")
    if not match or match.group(1).lower() in FREE_MAIL_DOMAINS:
        return None
    return match.group(1)


class AnalysisOrchestrator:
    def __init__(
        self,
        directory: CorporateDirectory,
        scraper: PageScraper,
        site_news: SiteNewsScraper,
        analyzer: IndustryAnalyzer,
        aggregator: NewsAggregator,
        financials: FinancialsProvider,
        strategy: StrategyGenerator,
    ):
        self.directory = directory
        self.scraper = scraper
        self.site_news = site_news
        self.analyzer = analyzer
        self.aggregator = aggregator
        self.financials = financials
        self.strategy = strategy

    async def _scrape(self, url: Optional[str]) -> Optional[ScrapedPage]:
        if not url:
            return None
        return await self.scraper.fetch_page_content(url)

    async def analyze(self, request: AnalyzeRequest) -> AnalysisResult:
        if not request.company_name and not request.domain:
            raise InvalidRequest("Company name or domain is required")
        logger.info("Analyzing: %s (%s)", request.company_name, request.domain)

        profile = await self.directory.search_company(request.company_name or request.domain)
        if profile is None:
            raise CompanyNotFound("Company not found")

        target_url = target_url_for(request.page_url, request.domain)
        profile = profile.model_copy(update={
            "domain": profile.domain or request.domain,
            "url": profile.url or target_url,
        })
        page = await self._scrape(target_url) or ScrapedPage()

        # sem texto da página não há o que classificar: nenhuma chamada ao modelo
        if page.body_text:
            quick = await self.analyzer.analyze_industry_and_topics(profile, page)
            profile.industry_name = quick.industry
        else:
            quick = default_quick_analysis()
        if not profile.industry_name:
            profile.industry_name = "サービス業"
        logger.info("Industry: %s, topic queries: %s", quick.industry, quick.topic_queries)

        financials, pestle, additional_page = await asyncio.gather(
            self.financials.get_financials(profile.name, profile.corporate_number),
            self.aggregator.fetch_pestle_news(quick.topic_queries),
            self._scrape(request.additional_url),
        )

        company_news = await self.aggregator.fetch_company_news(profile.name)
        if not company_news and target_url:
            logger.info("No provider news for company, trying site scraping...")
            company_news = await self.site_news.fetch_company_news(target_url)

        industry_news = pestle.all_items()
        strategy = await self.strategy.synthesize(
            profile,
            financials,
            company_news,
            industry_news,
            page,
            request.inquiry_body,
            request.business_segment,
            additional_page,
        )

        logger.info(
            "News: company=%d regulation=%d client_market=%d industry=%d",
            len(company_news), len(pestle.regulation), len(pestle.client_market), len(pestle.industry),
        )
        return AnalysisResult(
            company=profile,
            financials=financials,
            news=CompanyNews(company=company_news, industry=industry_news, pestle=pestle),
            quick_analysis=QuickAnalysisSummary(
                industry_code=quick.industry_code,
                business_type=quick.business_type,
                estimated_scale=quick.estimated_scale,
                main_products=quick.main_products,
            ),
            strategy=strategy,
        )

    async def analyze_inbound_lead(self, request: InboundLeadRequest) -> InboundHypothesis:
        logger.info("Analyzing inbound lead: %s via %s", request.company_name or request.email, request.lp_title)
        try:
            search_key = request.company_name or email_domain(request.email)
            if not search_key:
                return InboundHypothesis(
                    pestle_factors=[],
                    hypothesis="法人・ドメインが特定できないため、詳細分析をスキップしました。",
                    sales_hook="",
                )

            profile = await self.directory.search_company(search_key)
            target_url = None
            if profile is not None and profile.url:
                target_url = profile.url
            elif "." in search_key:
                target_url = f"https://{search_key}"

            page = await self._scrape(target_url) or ScrapedPage(title=request.company_name or "")
            company_name = request.company_name or (profile.name if profile else "") or "不明な企業"
            return await self.analyzer.analyze_inbound_lead(
                company_name,
                page,
                request.lp_title or "不明なページ",
                request.lp_url or "",
                request.inflow_type or "アクセス",
            )
        except Exception as e:
            logger.exception("Inbound analysis error: %s", e)
            return InboundHypothesis(
                pestle_factors=[],
                hypothesis="分析中にエラーが発生しました。",
                sales_hook="",
            )


def build_orchestrator(http: httpx.AsyncClient, llm: Optional[GeminiClient] = None) -> AnalysisOrchestrator:
    """Monta o grafo de dependências com o cliente HTTP compartilhado."""
    llm = llm or GeminiClient()
    aggregator = NewsAggregator(
        google=GoogleNewsFeed(http),
        prtimes=PRTimesFeed(http),
        gnews=GNewsFeed(http, api_key=GNEWS_API_KEY, rate_limiter=RateLimiter(GNEWS_COOLDOWN_SECONDS)),
        newsapi=NewsApiFeed(http, api_key=NEWSAPI_KEY, rate_limiter=RateLimiter(GNEWS_COOLDOWN_SECONDS)),
    )
    return AnalysisOrchestrator(
        directory=CorporateDirectory(),
        scraper=PageScraper(http, ocr=OcrFallback(llm)),
        site_news=SiteNewsScraper(http),
        analyzer=IndustryAnalyzer(llm),
        aggregator=aggregator,
        financials=FinancialsProvider(EdinetSource(http), CatrSource(http)),
        strategy=StrategyGenerator(llm),
    )
