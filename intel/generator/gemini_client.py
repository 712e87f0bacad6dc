import asyncio
import logging
import re
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar

from google import genai
from google.genai import types

from intel.config import GEMINI_API_KEY, GEMINI_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

T = TypeVar("T")


class GenerationError(Exception):
    """Erro fatal do modelo (chave ausente, prompt inválido, 4xx)."""


class ModelCascadeExhausted(GenerationError):
    """Todos os modelos da cascata falharam com erro transitório."""

    def __init__(self, errors: Sequence[BaseException]):
        self.errors = list(errors)
        last = self.errors[-1] if self.errors else None
        super().__init__(f"All candidate models failed (last: {last})")


class ResponseParseError(GenerationError):
    """Resposta sem JSON aproveitável."""


FULL_MODELS = ("gemini-2.5-flash-lite", "gemini-2.0-flash-lite", "gemini-2.0-flash")


class ModelTier(Enum):
    FULL = "full"
    LITE = "lite"
    VISION = "vision"

    @property
    def candidates(self) -> List[str]:
        return list(TIER_MODELS[self])


# tiers podem compartilhar modelos sem virar alias um do outro
TIER_MODELS = {
    ModelTier.FULL: FULL_MODELS,
    ModelTier.LITE: FULL_MODELS[:2],
    ModelTier.VISION: FULL_MODELS,
}


_RETRYABLE_CODES = {429, 503}
_RETRYABLE_RE = re.compile(
    r"429|rate limit|quota|resource.?exhausted|503|unavailable|overloaded",
    re.IGNORECASE,
)


def is_retryable_error(err: BaseException) -> bool:
    if isinstance(err, (asyncio.TimeoutError, ModelCascadeExhausted)):
        return True
    code = getattr(err, "code", None) or getattr(err, "status_code", None)
    try:
        if int(code) in _RETRYABLE_CODES:
            return True
    except (TypeError, ValueError):
        pass
    return bool(_RETRYABLE_RE.search(str(err)))


async def run_cascade(candidates: Sequence[str], call: Callable[[str], Awaitable[T]]) -> T:
    """Tenta cada modelo em ordem.

    Sucesso retorna na hora; erro transitório passa ao próximo; erro fatal
    sobe imediatamente. Se todos falharem: ``ModelCascadeExhausted``.
    """
    errors: List[BaseException] = []
    for model in candidates:
        try:
            return await call(model)
        except Exception as e:
            if not is_retryable_error(e):
                logger.error("Model %s failed with non-retryable error: %s", model, e)
                raise
            logger.warning("Model %s unavailable (%s), trying next candidate", model, e)
            errors.append(e)
    raise ModelCascadeExhausted(errors)


class GeminiClient:
    def __init__(self, api_key: str = GEMINI_API_KEY, timeout: float = GEMINI_TIMEOUT_SECONDS):
        self.api_key = api_key
        self.timeout = timeout
        self._client: Optional[genai.Client] = genai.Client(api_key=api_key) if api_key else None

    @property
    def is_configured(self) -> bool:
        return self._client is not None

    def _require_client(self) -> genai.Client:
        if self._client is None:
            raise GenerationError("GEMINI_API_KEY is not set")
        return self._client

    async def _generate(self, model: str, contents) -> str:
        client = self._require_client()
        response = await asyncio.wait_for(
            client.aio.models.generate_content(model=model, contents=contents),
            timeout=self.timeout,
        )
        text = response.text or ""
        if not text.strip():
            # resposta vazia costuma ser bloqueio/sobrecarga: tenta o próximo modelo
            raise GenerationError(f"Empty response from {model} (unavailable)")
        return text

    async def generate(self, prompt: str, tier: ModelTier = ModelTier.FULL) -> str:
        self._require_client()

        async def call(model: str) -> str:
            logger.info("Calling %s (%s tier)", model, tier.name)
            return await self._generate(model, prompt)

        return await run_cascade(tier.candidates, call)

    async def transcribe_images(self, images: Sequence[bytes], prompt: str) -> str:
        self._require_client()
        parts = [types.Part.from_bytes(data=img, mime_type="image/png") for img in images]

        async def call(model: str) -> str:
            logger.info("Calling %s for OCR of %d page(s)", model, len(parts))
            return await self._generate(model, [prompt, *parts])

        return await run_cascade(ModelTier.VISION.candidates, call)
