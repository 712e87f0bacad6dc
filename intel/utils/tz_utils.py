from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

from dateutil import parser as date_parser

from intel.models import NewsItem

FRESHNESS_WINDOW = timedelta(days=365)


def parse_published(value: Optional[str]) -> Optional[datetime]:
    """Converte pubDate RSS / ISO em datetime UTC. Retorna None se não parsear."""
    if not value or not value.strip():
        return None
    try:
        dt = date_parser.parse(value)
    except (ValueError, OverflowError, TypeError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def filter_recent(items: Iterable[NewsItem], now: Optional[datetime] = None) -> List[NewsItem]:
    """Descarta itens com mais de 365 dias; datas ausentes/inválidas passam (fail-open)."""
    now = now or datetime.now(timezone.utc)
    cutoff = now - FRESHNESS_WINDOW
    kept = []
    for item in items:
        published = parse_published(item.published_at)
        if published is not None and published < cutoff:
            continue
        kept.append(item)
    return kept
