# intel/tests/test_orchestrator.py
import json
from datetime import datetime, timezone

import httpx
import pytest

from intel.analysis.orchestrator import (
    AnalysisOrchestrator,
    CompanyNotFound,
    InvalidRequest,
    build_orchestrator,
    email_domain,
    target_url_for,
)
from intel.generator.gemini_client import GeminiClient
from intel.generator.industry_analyzer import IndustryAnalyzer
from intel.generator.strategy_generator import CONCLUSION_PATHS, StrategyGenerator
from intel.models import AnalyzeRequest, FinancialData, InboundLeadRequest, ScrapedPage
from intel.sources.corporate import CorporateDirectory
from intel.tracker.news_aggregator import NewsAggregator

SECURITY_PAGE = ScrapedPage(
    title="サンプル株式会社",
    description="施設の安全を守る",
    body_text="当社は警備とセキュリティのサービスを提供します。",
)


class FakeScraper:
    def __init__(self, page=None):
        self.page = page or ScrapedPage()
        self.urls = []

    async def fetch_page_content(self, url):
        self.urls.append(url)
        return self.page


class FakeSiteNews:
    def __init__(self, items=None):
        self.items = list(items or [])
        self.urls = []

    async def fetch_company_news(self, url):
        self.urls.append(url)
        return list(self.items)


class FakeFinancials:
    def __init__(self):
        self.calls = []

    async def get_financials(self, company_name, corporate_number=None):
        self.calls.append(company_name)
        return [FinancialData(year="2024", revenue="10億円")]


class NoCompanyDirectory:
    async def search_company(self, query):
        return None


def _strategy_json():
    sections = {"summary": "警備の人手不足をDXで補う提案", "score": 80}
    for path in CONCLUSION_PATHS:
        top, _ = path.split(".")
        sections[top] = {"conclusion": f"{top}の結論"}
    return "```json\n" + json.dumps(sections, ensure_ascii=False) + "\n```"


def _feeds(fake_feed, mk_item, empty=False):
    if empty:
        return fake_feed(), fake_feed(), fake_feed()
    prtimes = fake_feed([mk_item(f"PR{i}", f"https://pr/{i}") for i in range(3)])
    google = fake_feed([mk_item("dup", "https://pr/0")] + [mk_item(f"G{i}", f"https://g/{i}") for i in range(4)])
    gnews = fake_feed([mk_item(f"N{i}", f"https://n/{i}") for i in range(2)])
    return prtimes, google, gnews


def _orchestrator(fake_feed, mk_item, fake_llm, fake_sleep, page=None, quick_responses=None,
                  empty_feeds=False, site_news=None, directory=None, inbound_responses=None):
    prtimes, google, gnews = _feeds(fake_feed, mk_item, empty=empty_feeds)
    aggregator = NewsAggregator(
        google=google, prtimes=prtimes, gnews=gnews,
        clock=lambda: datetime(2025, 6, 1, tzinfo=timezone.utc),
    )
    analyzer_llm = fake_llm(list(quick_responses or []) + list(inbound_responses or []))
    strategy_llm = fake_llm([_strategy_json()])
    orchestrator = AnalysisOrchestrator(
        directory=directory or CorporateDirectory(app_id="test"),
        scraper=FakeScraper(page),
        site_news=site_news or FakeSiteNews(),
        analyzer=IndustryAnalyzer(analyzer_llm),
        aggregator=aggregator,
        financials=FakeFinancials(),
        strategy=StrategyGenerator(strategy_llm, sleep=fake_sleep),
    )
    return orchestrator, google, analyzer_llm, strategy_llm


def test_target_url_and_email_domain():
    assert target_url_for("https://example.co.jp/lp", "example.co.jp") == "https://example.co.jp/lp"
    assert target_url_for("chrome://newtab", "example.co.jp") == "https://example.co.jp"
    assert target_url_for(None, None) is None
    assert email_domain("taro@corp.example.jp") == "corp.example.jp"
    assert email_domain("taro@gmail.com") is None
    assert email_domain("") is None


@pytest.mark.asyncio
async def test_full_analysis_with_keyword_fallback(fake_feed, mk_item, fake_llm, fake_sleep):
    generic = json.dumps({
        "industry": "その他サービス業",
        "industryCode": "99",
        "businessType": "B2B",
        "pestleQueries": {"regulation": "警備業法 改正", "clientMarket": "施設管理 市場", "technology": "警備 ロボット"},
    }, ensure_ascii=False)
    orchestrator, google, analyzer_llm, strategy_llm = _orchestrator(
        fake_feed, mk_item, fake_llm, fake_sleep, page=SECURITY_PAGE, quick_responses=[generic],
    )

    result = await orchestrator.analyze(AnalyzeRequest(company_name="株式会社サンプル", domain="example.co.jp"))

    assert orchestrator.scraper.urls == ["https://example.co.jp"]
    assert result.company.domain == "example.co.jp"
    assert result.company.url == "https://example.co.jp"
    # modelo devolveu genérico: tabela de palavras-chave decide
    assert result.company.industry_name == "警備業"
    assert result.quick_analysis.industry_code == "923"
    assert result.quick_analysis.business_type == "B2B"

    assert len(result.news.company) == 9
    assert len({i.url for i in result.news.company}) == 9
    assert "警備 人手不足" in google.queries
    assert "警備業法 改正" in google.queries
    assert "警備 ロボット" not in google.queries
    assert len(result.news.pestle.industry) == 5
    assert len(result.news.industry) == 15

    assert result.financials[0].revenue == "10億円"
    assert result.strategy.summary == "警備の人手不足をDXで補う提案"
    assert result.strategy.score == 80
    assert len(analyzer_llm.calls) == 1
    assert len(strategy_llm.calls) == 1
    assert orchestrator.site_news.urls == []


@pytest.mark.asyncio
async def test_empty_page_skips_model_and_uses_site_news(fake_feed, mk_item, fake_llm, fake_sleep):
    site_news = FakeSiteNews([mk_item("新サービス開始のお知らせ", "https://example.co.jp/news/1", source="公式サイト")])
    orchestrator, _, analyzer_llm, _ = _orchestrator(
        fake_feed, mk_item, fake_llm, fake_sleep, empty_feeds=True, site_news=site_news,
    )

    result = await orchestrator.analyze(AnalyzeRequest(domain="example.co.jp"))

    assert analyzer_llm.calls == []
    assert result.company.name == "example.co.jp"
    assert result.company.industry_name == "サービス業"
    assert result.quick_analysis.industry_code == "99"
    assert site_news.urls == ["https://example.co.jp"]
    assert [i.source for i in result.news.company] == ["公式サイト"]


@pytest.mark.asyncio
async def test_invalid_and_missing_company(fake_feed, mk_item, fake_llm, fake_sleep):
    orchestrator, *_ = _orchestrator(fake_feed, mk_item, fake_llm, fake_sleep)
    with pytest.raises(InvalidRequest):
        await orchestrator.analyze(AnalyzeRequest())

    orchestrator, *_ = _orchestrator(fake_feed, mk_item, fake_llm, fake_sleep, directory=NoCompanyDirectory())
    with pytest.raises(CompanyNotFound):
        await orchestrator.analyze(AnalyzeRequest(company_name="存在しない会社"))


@pytest.mark.asyncio
async def test_inbound_free_mail_skips_analysis(fake_feed, mk_item, fake_llm, fake_sleep):
    orchestrator, _, analyzer_llm, _ = _orchestrator(fake_feed, mk_item, fake_llm, fake_sleep)

    result = await orchestrator.analyze_inbound_lead(InboundLeadRequest(email="taro@gmail.com", lp_title="料金"))

    assert "スキップ" in result.hypothesis
    assert result.pestle_factors == []
    assert analyzer_llm.calls == []


@pytest.mark.asyncio
async def test_inbound_company_email_domain(fake_feed, mk_item, fake_llm, fake_sleep):
    response = json.dumps({"pestle_factors": ["人手不足"], "hypothesis": "省人化に関心", "sales_hook": "夜間の巡回は？"},
                          ensure_ascii=False)
    orchestrator, _, analyzer_llm, _ = _orchestrator(
        fake_feed, mk_item, fake_llm, fake_sleep, page=SECURITY_PAGE, inbound_responses=[response],
    )

    result = await orchestrator.analyze_inbound_lead(
        InboundLeadRequest(email="taro@corp.example.jp", lp_title="警備DX", lp_url="https://lp/1")
    )

    assert orchestrator.scraper.urls == ["https://corp.example.jp"]
    assert result.pestle_factors == ["人手不足"]
    assert result.sales_hook == "夜間の巡回は？"
    assert len(analyzer_llm.calls) == 1


@pytest.mark.asyncio
async def test_inbound_model_failure_returns_fallback(fake_feed, mk_item, fake_llm, fake_sleep):
    orchestrator, *_ = _orchestrator(
        fake_feed, mk_item, fake_llm, fake_sleep, inbound_responses=[RuntimeError("quota")],
    )

    result = await orchestrator.analyze_inbound_lead(
        InboundLeadRequest(company_name="株式会社サンプル", lp_title="料金プラン")
    )

    assert result.hypothesis == "LP「料金プラン」への関心が確認されました。"
    assert "料金プラン" in result.sales_hook


@pytest.mark.asyncio
async def test_build_orchestrator_wires_shared_client():
    async with httpx.AsyncClient() as http:
        orchestrator = build_orchestrator(http, llm=GeminiClient(api_key=""))

    assert orchestrator.scraper.http is http
    assert orchestrator.aggregator.google.http is http
    assert orchestrator.aggregator.gnews.rate_limiter is not orchestrator.aggregator.newsapi.rate_limiter
    assert not orchestrator.scraper.ocr.available
