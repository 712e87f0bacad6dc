import asyncio
import copy
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from pydantic import ValidationError

from intel.models import CompanyProfile, FinancialData, NewsItem, ScrapedPage, StrategyReport

from .gemini_client import GeminiClient, ModelTier, ResponseParseError, is_retryable_error
from .json_utils import extract_json, get_path, pick_sections, set_path
from .prompts import repair_prompt, strategy_prompt

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3
BACKOFF_BASE_SECONDS = 2

CONCLUSION_PATHS = [
    "pestle.conclusion",
    "fiveForces.conclusion",
    "threeC.conclusion",
    "stp.conclusion",
    "marketing.conclusion",
    "businessModel.conclusion",
    "financialHealth.conclusion",
    "swot.conclusion",
    "recruitment.conclusion",
    "businessSummary.conclusion",
    "valueChain.conclusion",
]
PLACEHOLDERS = {"", "-", "不明", "情報取得中...", "分析中"}

SECTION_ALIASES = {
    "industry_summary": "industrySummary",
    "industry_data": "industryData",
    "tech_stack_analysis": "techStackAnalysis",
    "techStack": "techStackAnalysis",
    "business_summary": "businessSummary",
    "value_chain": "valueChain",
    "business_model": "businessModel",
    "financial_health": "financialHealth",
    "seven_s": "sevenS",
    "7S": "sevenS",
    "7s": "sevenS",
    "PESTLE": "pestle",
    "pestel": "pestle",
    "five_forces": "fiveForces",
    "5F": "fiveForces",
    "porter5Forces": "fiveForces",
    "SWOT": "swot",
    "STP": "stp",
    "3C": "threeC",
    "three_c": "threeC",
    "estimated_challenges": "estimatedChallenges",
    "sales_strategy": "salesStrategy",
    "call_talk": "callTalk",
    "form_draft": "formDraft",
}
PESTLE_ALIASES = {
    "politics": "political",
    "economy": "economic",
    "society": "social",
    "technology": "technological",
    "law": "legal",
    "environment": "environmental",
    "future_outlook": "futureOutlook",
}

SleepFn = Callable[[float], Awaitable[Any]]


def is_missing(value: Any) -> bool:
    return not isinstance(value, str) or value.strip() in PLACEHOLDERS


def missing_conclusion_paths(sections: Dict[str, Any]) -> List[str]:
    return [p for p in CONCLUSION_PATHS if is_missing(get_path(sections, p))]


def normalize_strategy_keys(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Renomeia seções/sub-chaves que o modelo escreve de outro jeito."""
    out: Dict[str, Any] = {}
    for key, value in raw.items():
        canonical = SECTION_ALIASES.get(key, key)
        # a chave canônica ganha se vier duplicada
        if canonical in out and canonical != key:
            continue
        out[canonical] = value

    pestle = out.get("pestle")
    if isinstance(pestle, dict):
        normalized = {}
        for key, value in pestle.items():
            canonical = PESTLE_ALIASES.get(key, PESTLE_ALIASES.get(key.lower(), key))
            if canonical in normalized and canonical != key:
                continue
            normalized[canonical] = value
        out["pestle"] = normalized
    return out


def build_report(sections: Dict[str, Any]) -> StrategyReport:
    """Valida seção por seção: seção com formato inesperado volta ao default."""
    valid: Dict[str, Any] = {}
    for key, value in sections.items():
        try:
            StrategyReport.model_validate({key: value})
        except ValidationError as e:
            logger.warning("Dropping malformed strategy section '%s': %s", key, e.errors()[0]["msg"])
            continue
        valid[key] = value
    return StrategyReport.model_validate(valid)


class StrategyGenerator:
    def __init__(self, llm: GeminiClient, sleep: SleepFn = asyncio.sleep):
        self.llm = llm
        self.sleep = sleep

    async def synthesize(
        self,
        profile: CompanyProfile,
        financials: List[FinancialData],
        company_news: List[NewsItem],
        industry_news: List[NewsItem],
        page: ScrapedPage,
        inquiry_body: Optional[str] = None,
        business_segment: Optional[str] = None,
        additional_page: Optional[ScrapedPage] = None,
    ) -> StrategyReport:
        prompt = strategy_prompt(
            profile, financials, company_news, industry_news, page,
            inquiry_body, business_segment, additional_page,
        )

        for attempt in range(1, MAX_ATTEMPTS + 1):
            try:
                logger.info("Strategy generation attempt %d...", attempt)
                text = await self.llm.generate(prompt, ModelTier.FULL)
            except Exception as e:
                if is_retryable_error(e) and attempt < MAX_ATTEMPTS:
                    wait = BACKOFF_BASE_SECONDS ** attempt
                    logger.warning("Retryable error (%s). Waiting %ss before retry...", e, wait)
                    await self.sleep(wait)
                    continue
                logger.error("Strategy generation failed on attempt %d: %s", attempt, e)
                return StrategyReport()

            try:
                sections = normalize_strategy_keys(extract_json(text))
            except ResponseParseError as e:
                # JSON ruim não se resolve repetindo o prompt
                logger.warning("Could not parse strategy response: %s", e)
                return StrategyReport()

            sections = await self.repair_conclusions(sections, profile.name)
            return build_report(sections)

        return StrategyReport()

    async def repair_conclusions(self, sections: Dict[str, Any], company_name: str) -> Dict[str, Any]:
        """Uma única chamada LITE para preencher conclusões vazias. Nunca levanta."""
        missing = missing_conclusion_paths(sections)
        if not missing:
            return sections

        logger.info("Repairing %d missing conclusion(s): %s", len(missing), missing)
        try:
            prompt = repair_prompt(company_name, missing, pick_sections(sections, missing))
            text = await self.llm.generate(prompt, ModelTier.LITE)
            patch = extract_json(text, allow_embedded=True)
        except Exception as e:
            logger.warning("Conclusion repair failed: %s", e)
            return sections

        repaired = copy.deepcopy(sections)
        for path, value in patch.items():
            if path not in missing or not isinstance(value, str) or not value.strip():
                continue
            set_path(repaired, path, value.strip())
        return repaired
