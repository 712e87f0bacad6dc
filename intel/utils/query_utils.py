import re
from typing import Optional

MAX_QUERY_LENGTH = 30

_ENTITY_SUFFIX_RE = re.compile(
    r"株式会社|有限会社|合同会社|\(株\)|（株）"
    r"|\b(?:Co\.,?\s*Ltd\.?|Inc\.?|Corp\.?|Corporation|K\.K\.|Ltd\.?)(?=\s|$|,)",
    re.IGNORECASE,
)
# separadores de "Nome | descrição do serviço"
_SEPARATOR_RE = re.compile(r"[｜|\-–—:：]")
_QUOTE_RE = re.compile(r"[\"'“”‘’()（）<>]")
_OPERATOR_RE = re.compile(r"\b(?:AND|OR|NOT)\b", re.IGNORECASE)
_SPACE_RE = re.compile(r"\s+")

BRAND_PATTERNS = [
    re.compile(r"ALSOK", re.IGNORECASE),
    re.compile(r"セコム"),
    re.compile(r"ソフトバンク"),
    re.compile(r"トヨタ"),
    re.compile(r"ホンダ"),
    re.compile(r"ソニー"),
    re.compile(r"パナソニック"),
    re.compile(r"日立"),
    re.compile(r"NEC", re.IGNORECASE),
    re.compile(r"NTT", re.IGNORECASE),
]


def strip_entity_suffix(name: str) -> str:
    return _SPACE_RE.sub(" ", _ENTITY_SUFFIX_RE.sub("", name or "")).strip(" ,")


def normalize_query(raw: str, max_length: int = MAX_QUERY_LENGTH) -> str:
    """Converte nome de empresa/palavras-chave em termo seguro para os provedores.

    Provedores como o GNews retornam erro de sintaxe com aspas/parênteses ou
    operadores booleanos mal formados, então tudo isso é removido.
    """
    raw = raw or ""
    name = strip_entity_suffix(raw)
    name = _SEPARATOR_RE.split(name)[0].strip()
    name = _QUOTE_RE.sub(" ", name)
    name = _OPERATOR_RE.sub(" ", name)
    name = _SPACE_RE.sub(" ", name).strip()
    if len(name) > max_length:
        name = name[:max_length].strip()
    return name or raw


def extract_brand_name(company_name: str) -> Optional[str]:
    """Alias curto da marca (ex.: 綜合警備保障 ALSOK -> ALSOK)."""
    for pattern in BRAND_PATTERNS:
        match = pattern.search(company_name or "")
        if match:
            return match.group(0)

    simple = strip_entity_suffix(company_name)
    if simple != company_name and len(simple) > 2:
        return simple
    return None


def looks_like_generic_query(name: str) -> bool:
    # RSS do PR Times só serve para busca por nome de empresa
    return bool(
        _QUOTE_RE.search(name)
        or _OPERATOR_RE.search(name)
        or " " in name
        or len(name) > 40
    )
