import logging
from typing import List, Optional

import fitz  # PyMuPDF

from intel.generator.gemini_client import GeminiClient

logger = logging.getLogger(__name__)

OCR_PROMPT = (
    "以下の画像はPDFの各ページです。画像内の日本語・英語のテキストをできるだけ正確に"
    "書き起こしてください。表は行ごとに「項目: 値」の形式で出力し、説明や前置きは不要です。"
)
RASTER_WIDTH = 1200


def rasterize_pdf(data: bytes, pages: int = 3) -> List[bytes]:
    """Primeiras ``pages`` páginas do PDF como PNG."""
    images: List[bytes] = []
    with fitz.open(stream=data, filetype="pdf") as doc:
        for i, page in enumerate(doc):
            if i >= pages:
                break
            zoom = RASTER_WIDTH / page.rect.width if page.rect.width else 1.0
            pix = page.get_pixmap(matrix=fitz.Matrix(zoom, zoom))
            png = pix.tobytes("png")
            if png:
                images.append(png)
    return images


class OcrFallback:
    def __init__(self, llm: Optional[GeminiClient]):
        self.llm = llm

    @property
    def available(self) -> bool:
        return self.llm is not None and self.llm.is_configured

    async def transcribe(self, images: List[bytes], hint: str = "") -> str:
        if not images or not self.available:
            return ""
        prompt = f"{OCR_PROMPT}\n{hint}".strip()
        try:
            text = await self.llm.transcribe_images(images, prompt)
        except Exception as e:
            logger.warning("OCR transcription failed: %s", e)
            return ""
        return " ".join((text or "").split())

    async def transcribe_pdf(self, data: bytes, hint: str = "", pages: int = 3) -> str:
        if not self.available:
            return ""
        try:
            images = rasterize_pdf(data, pages=pages)
        except Exception as e:
            logger.warning("PDF rasterization failed: %s", e)
            return ""
        return await self.transcribe(images, hint)
