import logging
from typing import Optional

from intel.config import NATIONAL_TAX_API_KEY
from intel.models import CompanyProfile

logger = logging.getLogger(__name__)


class CorporateDirectory:
    """Resolve nome/domínio em CompanyProfile.

    Sem integração real com a API de número corporativo: qualquer consulta não
    vazia vira um perfil com o próprio termo como nome.
    """

    BASE_URL = "https://api.houjin-bangou.nta.go.jp/4/name"

    def __init__(self, app_id: str = NATIONAL_TAX_API_KEY):
        self.app_id = app_id
        if not app_id:
            logger.warning("NATIONAL_TAX_API_KEY is missing. Corporate lookup returns a stub profile.")

    async def search_company(self, query: Optional[str]) -> Optional[CompanyProfile]:
        query = (query or "").strip()
        if not query:
            return None
        # TODO: consultar /4/name?id=<app_id>&name=<query>&type=02 quando houver app_id e preencher número/endereço
        return CompanyProfile(name=query, listing_status="Unknown")
