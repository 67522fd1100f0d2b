from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from PIL import Image

from pokescan.config import settings
from pokescan.services.ocr.paddle_adapter import available as paddle_available, run_ocr as paddle_run
from pokescan.services.ocr.tesseract_adapter import normalize_ocr_text, run_ocr as tess_run
from pokescan.services.protocols import TextRecognition

logger = logging.getLogger(__name__)

Engine = Callable[[Image.Image], TextRecognition]


def configured_engines(names: str | None = None) -> list[tuple[str, Engine]]:
    wanted = [e.strip() for e in str(names or settings.ocr_engines).split(",") if e.strip()]
    engines: list[tuple[str, Engine]] = []
    for name in wanted:
        if name == "tesseract":
            engines.append((name, tess_run))
        elif name == "paddle" and paddle_available():
            engines.append((name, paddle_run))
    return engines


def run_ocr_ensemble(image: Image.Image, engines: list[tuple[str, Engine]] | None = None) -> TextRecognition:
    outputs: list[TextRecognition] = []
    for name, engine in engines if engines is not None else configured_engines():
        try:
            rec = engine(image)
        except Exception as e:
            logger.warning("ocr engine %s failed: %s", name, e)
            continue
        outputs.append(TextRecognition(text=normalize_ocr_text(rec.text), confidence=rec.confidence))
    outputs = [o for o in outputs if o.text]
    if not outputs:
        return TextRecognition(text="", confidence=0.0)
    # Prefer the longest non-empty output, then the more confident engine
    return max(outputs, key=lambda o: (len(o.text), o.confidence))


class EnsembleTextRecognizer:
    """Async facade over the blocking OCR engines, bounded by ``ocr_timeout_s``."""

    def __init__(self, engines: list[tuple[str, Engine]] | None = None, timeout_s: float | None = None) -> None:
        self._engines = engines
        self._timeout_s = float(timeout_s if timeout_s is not None else settings.ocr_timeout_s)

    async def recognize_text(self, image: Image.Image) -> TextRecognition:
        loop = asyncio.get_running_loop()
        fut = loop.run_in_executor(None, run_ocr_ensemble, image, self._engines)
        return await asyncio.wait_for(fut, timeout=self._timeout_s)
