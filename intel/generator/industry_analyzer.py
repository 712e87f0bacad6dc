import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from intel.classifier.industry_classifier import detect_industry_by_keywords
from intel.models import CompanyProfile, InboundHypothesis, QuickAnalysis, ScrapedPage, TopicQuerySet

from .gemini_client import GeminiClient, GenerationError, ModelTier
from .json_utils import extract_json
from .prompts import inbound_prompt, industry_prompt

logger = logging.getLogger(__name__)

# chaves que o modelo às vezes devolve no lugar das nossas
TOPIC_ALIASES = {
    "regulation": ("regulation", "political", "legal"),
    "client_market": ("clientMarket", "client_market", "economic", "social"),
    "technology": ("technology", "technological"),
    "industry": ("industry",),
}
TOPIC_FILL = {
    "regulation": "法規制",
    "client_market": "市場",
    "technology": "DX",
    "industry": "業界",
}


def normalize_topic_queries(raw: Optional[Dict[str, Any]], industry_name: str) -> TopicQuerySet:
    raw = raw if isinstance(raw, dict) else {}
    values = {}
    for field, aliases in TOPIC_ALIASES.items():
        value = next((raw[a] for a in aliases if isinstance(raw.get(a), str) and raw[a].strip()), "")
        values[field] = value.strip() or f"{industry_name} {TOPIC_FILL[field]}"
    return TopicQuerySet(**values)


def default_quick_analysis() -> QuickAnalysis:
    industry = QuickAnalysis().industry
    return QuickAnalysis(
        industry_news_query=f"{industry} 業界",
        topic_queries=normalize_topic_queries({}, industry),
    )


def apply_keyword_fallback(analysis: QuickAnalysis, page: ScrapedPage) -> QuickAnalysis:
    """Resultado genérico do modelo: tenta a tabela de palavras-chave."""
    if not analysis.is_generic():
        return analysis
    match = detect_industry_by_keywords(f"{page.title} {page.description} {page.body_text}")
    if match is None:
        return analysis

    logger.info("Keyword fallback classified industry as %s (%s)", match.name, match.code)
    topics = analysis.topic_queries.model_copy(update={"industry": match.news_query})
    return analysis.model_copy(update={
        "industry": match.name,
        "industry_code": match.code,
        "industry_news_query": match.news_query,
        "topic_queries": topics,
    })


class IndustryAnalyzer:
    def __init__(self, llm: GeminiClient):
        self.llm = llm

    async def analyze_industry_and_topics(self, profile: CompanyProfile, page: ScrapedPage) -> QuickAnalysis:
        try:
            text = await self.llm.generate(industry_prompt(profile.name, page), ModelTier.LITE)
            parsed = extract_json(text, allow_embedded=True)
            analysis = self._to_quick_analysis(parsed)
        except (GenerationError, ValidationError) as e:
            logger.error("Quick analysis error: %s", e)
            analysis = default_quick_analysis()
        except Exception as e:
            logger.exception("Unexpected quick analysis error: %s", e)
            analysis = default_quick_analysis()

        return apply_keyword_fallback(analysis, page)

    @staticmethod
    def _to_quick_analysis(parsed: Dict[str, Any]) -> QuickAnalysis:
        industry = parsed.get("industry") or "その他サービス業"
        # buckets vazios usam 'サービス業' quando o modelo não disse o setor
        topics = normalize_topic_queries(
            parsed.get("pestleQueries") or parsed.get("topicQueries"),
            parsed.get("industry") or "サービス業",
        )
        return QuickAnalysis(
            industry=industry,
            industry_code=str(parsed.get("industryCode") or "99"),
            industry_news_query=topics.industry,
            topic_queries=topics,
            business_type=parsed.get("businessType") or "Both",
            estimated_scale=parsed.get("estimatedScale") or "中小企業",
            main_products=parsed.get("mainProducts") or [],
            client_industries=parsed.get("clientIndustries") or [],
        )

    async def analyze_inbound_lead(
        self,
        company_name: str,
        page: ScrapedPage,
        lp_title: str,
        lp_url: str,
        inflow_type: str,
    ) -> InboundHypothesis:
        prompt = inbound_prompt(company_name, page, lp_title, lp_url, inflow_type)
        try:
            text = await self.llm.generate(prompt, ModelTier.LITE)
            return InboundHypothesis.model_validate(extract_json(text, allow_embedded=True))
        except Exception as e:
            logger.error("Inbound context analysis failed: %s", e)
            return inbound_fallback(lp_title)


def inbound_fallback(lp_title: str) -> InboundHypothesis:
    return InboundHypothesis(
        pestle_factors=[],
        hypothesis=f"LP「{lp_title}」への関心が確認されました。",
        sales_hook=f"{lp_title}についてのご状況はいかがでしょうか？",
    )
