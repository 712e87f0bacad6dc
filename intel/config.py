import os
from dotenv import load_dotenv

# Carrega variáveis do .env antes de qualquer leitura de chave
load_dotenv()

# API keys: ausência desativa a fonte (nunca falha no startup)
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
GNEWS_API_KEY = os.getenv("GNEWS_API_KEY", "")
NEWSAPI_KEY = os.getenv("NEWSAPI_KEY", "")
EDINET_API_KEY = os.getenv("EDINET_API_KEY", "")
NATIONAL_TAX_API_KEY = os.getenv("NATIONAL_TAX_API_KEY", "")

# Timeouts (segundos)
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10"))
SCRAPE_TIMEOUT_SECONDS = float(os.getenv("SCRAPE_TIMEOUT_SECONDS", "15"))
PROBE_TIMEOUT_SECONDS = float(os.getenv("PROBE_TIMEOUT_SECONDS", "5"))
GEMINI_TIMEOUT_SECONDS = float(os.getenv("GEMINI_TIMEOUT_SECONDS", "60"))

# Backoff do provedor de notícias medido (GNews)
GNEWS_COOLDOWN_SECONDS = float(os.getenv("GNEWS_COOLDOWN_SECONDS", "60"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
