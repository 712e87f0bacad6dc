import re
from typing import Dict, List, Optional, Tuple
from urllib.parse import urlparse

from intel.models import CompanyInfo, TechStack

_AMOUNT = r"([0-9,]+(?:\.[0-9]+)?(?:億|万|千万)?円?)"
_SEP = r"[：:\s]*"

# ordem importa: primeiro padrão que casar vence
COMPANY_INFO_PATTERNS: Dict[str, List[re.Pattern]] = {
    "revenue": [
        re.compile(r"売上高" + _SEP + _AMOUNT),
        re.compile(r"売上" + _SEP + _AMOUNT),
        re.compile(r"年商" + _SEP + _AMOUNT),
    ],
    "capital": [
        re.compile(r"資本金" + _SEP + _AMOUNT),
    ],
    "employees": [
        re.compile(r"従業員数?[\s\S]*?([0-9,]+)\s*(?:名|人)"),
        re.compile(r"社員数[\s\S]*?([0-9,]+)\s*(?:名|人)"),
    ],
    "founded": [
        re.compile(r"設立" + _SEP + r"([0-9]{4}年[0-9]{1,2}月?(?:[0-9]{1,2}日)?)"),
        re.compile(r"創業" + _SEP + r"([0-9]{4}年[0-9]{1,2}月?(?:[0-9]{1,2}日)?)"),
        re.compile(r"設立" + _SEP + r"([0-9]{4})"),
    ],
    "fiscal_year_end": [
        re.compile(r"決算(?:期|月)?" + _SEP + r"([0-9]{1,2}月)"),
        re.compile(r"([0-9]{1,2}月)決算"),
    ],
}


def parse_company_info(text: str, info: Optional[CompanyInfo] = None) -> CompanyInfo:
    """Preenche só os campos ainda vazios de ``info`` a partir do texto da página."""
    info = info.model_copy() if info else CompanyInfo()
    text = text or ""
    for field, patterns in COMPANY_INFO_PATTERNS.items():
        if getattr(info, field):
            continue
        for pattern in patterns:
            match = pattern.search(text)
            if match:
                value = match.group(1)
                if field == "employees":
                    value = f"{value}名"
                setattr(info, field, value)
                break
    return info


#%% Tech stack

# (categoria, nome, marcadores) - substring case-insensitive no HTML cru
TECH_FINGERPRINTS: List[Tuple[str, str, Tuple[str, ...]]] = [
    ("cms", "WordPress", ("wp-content",)),
    ("cms", "Shopify", ("shopify",)),
    ("cms", "Wix", ("wix",)),
    ("cms", "Studio", ("studio.design",)),
    ("crm", "HubSpot", ("hubspot",)),
    ("crm", "Salesforce/Pardot", ("salesforce", "pardot")),
    ("ma", "Marketo", ("marketo",)),
    ("crm", "Kintone", ("kintone",)),
    ("crm", "Sansan", ("sansan",)),
    ("analytics", "GA4", ("gtag", "google-analytics")),
    ("analytics", "GTM", ("gtm.js",)),
    ("analytics", "Hotjar", ("hotjar",)),
    ("analytics", "Microsoft Clarity", ("clarity",)),
    ("ec", "MakeShop", ("makeshop",)),
    ("ec", "futureshop", ("futureshop",)),
    ("ec", "ecforce", ("ecforce",)),
    ("ec", "STORES", ("stores.jp",)),
    ("js", "React", ("react",)),
    ("js", "Vue.js", ("vue",)),
    ("js", "jQuery", ("jquery",)),
    ("js", "Next.js", ("next.js", "__next")),
    ("js", "Nuxt.js", ("nuxt",)),
]


def detect_tech_stack(html: str) -> TechStack:
    lowered = (html or "").lower()
    found: Dict[str, List[str]] = {"cms": [], "crm": [], "ma": [], "analytics": [], "ec": [], "js": []}
    for category, name, markers in TECH_FINGERPRINTS:
        if any(m in lowered for m in markers) and name not in found[category]:
            found[category].append(name)
    return TechStack(**found)


#%% Plano de crawl

SITEMAP_PATHS = ["/sitemap.xml", "/sitemap_index.xml"]
SITEMAP_KEYWORDS = (
    "profile", "company", "corporate", "about", "gaiyou", "kaisya",
    "recruit", "career", "saiyo",
)
MAX_SITEMAP_PROBES = 5

# ranqueados: perfil corporativo > IR > recrutamento
COMPANY_PATHS = [
    "/company", "/about", "/corporate", "/about-us", "/company-info",
    "/corporate/profile.html", "/corporate/outline.html", "/company/profile.html",
    "/about/company.html", "/company/about.html", "/corporate/company.html",
    "/company/index.html", "/corporate/index.html", "/about/index.html",
    "/company/profile", "/corporate/profile", "/about/profile",
    "/kaisya", "/gaiyou", "/company/gaiyou", "/corporate/gaiyou",
    "/ir", "/investor", "/ir/library",
    "/recruit", "/recruitment", "/careers", "/saiyo",
]

# na raiz só os caminhos de perfil
PARENT_DOMAIN_PATHS = COMPANY_PATHS[:14]

_SECOND_LEVEL_LABELS = {"co", "ne", "ac", "go", "or"}


def parent_hostname(hostname: str) -> Optional[str]:
    """sub.example.co.jp -> example.co.jp; sub.example.com -> example.com; example.co.jp -> None."""
    parts = (hostname or "").split(".")
    if len(parts) >= 4:
        return ".".join(parts[1:])
    if len(parts) == 3 and parts[-2] not in _SECOND_LEVEL_LABELS:
        return ".".join(parts[1:])
    return None


def origin_of(url: str) -> str:
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}"


def is_sitemap_candidate(loc: str) -> bool:
    path = urlparse(loc).path.lower()
    return any(k in path for k in SITEMAP_KEYWORDS)
