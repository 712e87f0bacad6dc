from typing import Annotated, Any, List, Literal, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def _coerce_text(value: Any) -> Any:
    # o modelo às vezes devolve lista/número/null onde esperamos texto
    if value is None:
        return "-"
    if isinstance(value, (list, tuple)):
        return "\n".join(str(v) for v in value if v is not None)
    if isinstance(value, (int, float)):
        return str(value)
    return value


def _coerce_text_list(value: Any) -> Any:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v is not None]
    return value


Text = Annotated[str, BeforeValidator(_coerce_text)]
TextList = Annotated[List[str], BeforeValidator(_coerce_text_list)]


class CamelModel(BaseModel):
    """Base: snake_case no Python, camelCase no JSON (extensão/cliente)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


#%% Notícias

class NewsItem(CamelModel):
    model_config = ConfigDict(frozen=True)

    title: str
    url: str  # usado como chave única
    published_at: str = ""
    source: str = ""
    summary: str = ""


class TopicQuerySet(CamelModel):
    regulation: str = ""
    client_market: str = ""
    technology: str = ""  # gerado mas não consultado no fan-out PESTLE
    industry: str = ""


class PestleNews(CamelModel):
    regulation: List[NewsItem] = Field(default_factory=list)
    client_market: List[NewsItem] = Field(default_factory=list)
    industry: List[NewsItem] = Field(default_factory=list)

    def all_items(self) -> List[NewsItem]:
        return [*self.regulation, *self.client_market, *self.industry]


#%% Scraping

class TechStack(CamelModel):
    cms: List[str] = Field(default_factory=list)
    crm: List[str] = Field(default_factory=list)
    ma: List[str] = Field(default_factory=list)
    analytics: List[str] = Field(default_factory=list)
    ec: List[str] = Field(default_factory=list)
    js: List[str] = Field(default_factory=list)


class CompanyInfo(CamelModel):
    revenue: str = ""
    capital: str = ""
    employees: str = ""
    founded: str = ""
    fiscal_year_end: str = ""

    def has_core(self) -> bool:
        return bool(self.revenue or self.capital or self.employees)


class ScrapedPage(CamelModel):
    title: str = ""
    description: str = ""
    body_text: str = ""
    recruit_links: List[str] = Field(default_factory=list)
    tech_stack: TechStack = Field(default_factory=TechStack)
    company_info: CompanyInfo = Field(default_factory=CompanyInfo)


#%% Empresa / finanças

class CompanyProfile(CamelModel):
    name: str
    corporate_number: Optional[str] = None
    domain: Optional[str] = None
    url: Optional[str] = None
    address: Optional[str] = None
    industry_name: str = ""
    listing_status: Literal["Listed", "Unlisted", "Unknown"] = "Unknown"


class FinancialData(CamelModel):
    year: str
    revenue: str = "-"
    operating_profit: str = "-"
    net_income: str = "-"
    total_assets: str = "-"


class QuickAnalysis(CamelModel):
    industry: str = "その他サービス業"
    industry_code: str = "99"
    industry_news_query: str = ""
    topic_queries: TopicQuerySet = Field(default_factory=TopicQuerySet)
    business_type: str = "Both"
    estimated_scale: str = "中小企業"
    main_products: TextList = Field(default_factory=list)
    client_industries: TextList = Field(default_factory=list)

    def is_generic(self) -> bool:
        return (
            not self.industry
            or self.industry == "その他サービス業"
            or self.industry_code == "99"
        )


#%% Carte estratégica (saída do Gemini)

class IndustryData(CamelModel):
    market_size: Text = "-"
    growth_rate: Text = "-"
    company_count: Text = "-"
    labor_population: Text = "-"


class TechStackAnalysis(CamelModel):
    maturity: Text = "-"
    tools: TextList = Field(default_factory=list)
    missing: TextList = Field(default_factory=list)
    hypothesis: Text = "-"


class Pestle(CamelModel):
    political: Text = "-"
    economic: Text = "-"
    social: Text = "-"
    technological: Text = "-"
    legal: Text = "-"
    environmental: Text = "-"
    future_outlook: Text = "-"
    conclusion: Text = "-"


class FiveForces(CamelModel):
    rivalry: Text = "-"
    new_entrants: Text = "-"
    substitutes: Text = "-"
    suppliers: Text = "-"
    buyers: Text = "-"
    future_outlook: Text = "-"
    conclusion: Text = "-"


class ThreeC(CamelModel):
    customer: Text = "-"
    competitor: Text = "-"
    company: Text = "-"
    conclusion: Text = "-"


class Stp(CamelModel):
    segmentation: Text = "-"
    targeting: Text = "-"
    positioning: Text = "-"
    conclusion: Text = "-"


class Marketing(CamelModel):
    value_proposition: Text = "-"
    ksf: TextList = Field(default_factory=list)
    conclusion: Text = "-"


class BusinessModel(CamelModel):
    cost_structure: Text = "-"
    unit_economics: Text = "-"
    economic_moat: Text = "-"
    conclusion: Text = "-"


class FinancialHealth(CamelModel):
    status: Text = "-"
    concern: Text = "-"
    investment_capacity: Text = "-"
    budget_cycle: Text = "-"
    decision_speed: Text = "-"
    conclusion: Text = "-"


class Swot(CamelModel):
    strengths: TextList = Field(default_factory=list)
    weaknesses: TextList = Field(default_factory=list)
    opportunities: TextList = Field(default_factory=list)
    threats: TextList = Field(default_factory=list)
    unknowns: TextList = Field(default_factory=list)
    conclusion: Text = "-"


class Recruitment(CamelModel):
    job_types: TextList = Field(default_factory=list)
    count: Text = "-"
    phase: Text = "-"
    conclusion: Text = "-"


class SevenS(CamelModel):
    strategy: Text = "-"
    structure: Text = "-"
    systems: Text = "-"
    shared_values: Text = "-"
    style: Text = "-"
    staff: Text = "-"
    skills: Text = "-"


class BusinessSummary(CamelModel):
    summary: Text = "-"
    service_class: Text = "-"
    customer_segment: Text = "-"
    revenue_model: Text = "-"
    conclusion: Text = "-"


class ValueChainStage(CamelModel):
    name: Text = "-"
    activities: TextList = Field(default_factory=list)
    significance: Text = "-"


class ValueChain(CamelModel):
    ksf: TextList = Field(default_factory=list)
    stages: List[ValueChainStage] = Field(default_factory=list)
    conclusion: Text = "-"


class FormDraft(CamelModel):
    short: Text = "分析中"
    long: Text = "分析中"


class StrategyReport(CamelModel):
    """Carte completa. Construída sem argumentos = resultado placeholder."""

    summary: Text = "情報取得中..."
    industry_summary: Text = "情報取得中..."
    industry_data: IndustryData = Field(default_factory=IndustryData)
    tech_stack_analysis: TechStackAnalysis = Field(default_factory=TechStackAnalysis)
    business_summary: BusinessSummary = Field(default_factory=BusinessSummary)
    value_chain: ValueChain = Field(default_factory=ValueChain)
    business_model: BusinessModel = Field(default_factory=BusinessModel)
    financial_health: FinancialHealth = Field(default_factory=FinancialHealth)
    recruitment: Recruitment = Field(default_factory=Recruitment)
    seven_s: SevenS = Field(default_factory=SevenS)
    pestle: Pestle = Field(default_factory=Pestle)
    five_forces: FiveForces = Field(default_factory=FiveForces)
    swot: Swot = Field(default_factory=Swot)
    stp: Stp = Field(default_factory=Stp)
    three_c: ThreeC = Field(default_factory=ThreeC)
    marketing: Marketing = Field(default_factory=Marketing)
    estimated_challenges: TextList = Field(default_factory=lambda: ["分析中"])
    sales_strategy: Text = "分析中"
    call_talk: Text = "お忙しいところ恐れ入ります。"
    form_draft: FormDraft = Field(default_factory=FormDraft)
    score: int = 0

    @field_validator("score", mode="before")
    @classmethod
    def _clamp_score(cls, value: Any) -> int:
        try:
            score = int(float(value))
        except (TypeError, ValueError):
            return 0
        return max(0, min(100, score))


#%% Resultado final / requests

class QuickAnalysisSummary(CamelModel):
    industry_code: str
    business_type: str
    estimated_scale: str
    main_products: List[str] = Field(default_factory=list)


class CompanyNews(CamelModel):
    company: List[NewsItem] = Field(default_factory=list)
    industry: List[NewsItem] = Field(default_factory=list)
    pestle: PestleNews = Field(default_factory=PestleNews)


class AnalysisResult(CamelModel):
    company: CompanyProfile
    financials: List[FinancialData] = Field(default_factory=list)
    news: CompanyNews = Field(default_factory=CompanyNews)
    quick_analysis: QuickAnalysisSummary
    strategy: StrategyReport = Field(default_factory=StrategyReport)


class AnalyzeRequest(CamelModel):
    company_name: Optional[str] = None
    domain: Optional[str] = None
    page_url: Optional[str] = None
    additional_url: Optional[str] = None
    inquiry_body: Optional[str] = None
    business_segment: Optional[str] = None


class InboundLeadRequest(CamelModel):
    company_name: Optional[str] = None
    email: Optional[str] = None
    lp_title: Optional[str] = None
    lp_url: Optional[str] = None
    inflow_type: Optional[str] = None


class InboundHypothesis(BaseModel):
    # o GAS consome snake_case diretamente
    pestle_factors: TextList = Field(default_factory=list)
    hypothesis: Text = ""
    sales_hook: Text = ""
