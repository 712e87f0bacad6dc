import logging
import time
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from intel.analysis.orchestrator import CompanyNotFound, InvalidRequest, build_orchestrator
from intel.config import LOG_LEVEL
from intel.models import AnalyzeRequest, InboundLeadRequest

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# um único cliente HTTP por processo (pool de conexões compartilhado)
http_client = httpx.AsyncClient(follow_redirects=True)
orchestrator = build_orchestrator(http_client)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await http_client.aclose()


#%% APP

app = FastAPI(lifespan=lifespan)

# a extensão do navegador chama a API direto
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
# a carte completa passa fácil de alguns KB
app.add_middleware(GZipMiddleware, minimum_size=512)


@app.get("/health")
def health():
    return {"status": "ok", "ts": int(time.time())}


@app.post("/analyze")
async def analyze(request: AnalyzeRequest):
    try:
        result = await orchestrator.analyze(request)
    except InvalidRequest as e:
        return JSONResponse(status_code=400, content={"error": str(e)})
    except CompanyNotFound as e:
        return JSONResponse(status_code=404, content={"error": str(e)})
    except Exception as e:
        logger.exception("Analysis error: %s", e)
        return JSONResponse(status_code=500, content={"error": "Internal Server Error"})
    return JSONResponse(content=result.model_dump(mode="json", by_alias=True))


@app.post("/analyze-inbound-lead")
async def analyze_inbound_lead(request: InboundLeadRequest):
    # o chamador (planilha) não trata erro: sempre 200
    try:
        result = await orchestrator.analyze_inbound_lead(request)
    except Exception as e:
        logger.exception("Inbound analysis error: %s", e)
        return {"pestle_factors": [], "hypothesis": "分析中にエラーが発生しました。", "sales_hook": ""}
    return result.model_dump()
