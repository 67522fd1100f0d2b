from __future__ import annotations

from typing import Any, List

import numpy as np
from PIL import Image

from pokescan.services.protocols import TextRecognition

_ocr_instances: dict[str, Any] = {}


def available() -> bool:
    try:
        import paddleocr  # noqa: F401
        return True
    except Exception:
        return False


def _get_ocr(lang: str) -> Any:
    ocr = _ocr_instances.get(lang)
    if ocr is None:
        from paddleocr import PaddleOCR

        ocr = PaddleOCR(use_angle_cls=True, lang=lang)
        _ocr_instances[lang] = ocr
    return ocr


def run_ocr(image: Image.Image, lang: str = "en") -> TextRecognition:
    # PaddleOCR expects a file path or numpy array
    arr = np.array(image.convert("RGB"))
    result: List[Any] = _get_ocr(lang).ocr(arr, cls=True)
    lines: list[str] = []
    scores: list[float] = []
    for page in result or []:
        for line in page or []:
            txt, score = line[1][0], line[1][1]
            if txt:
                lines.append(str(txt))
                scores.append(float(score) * 100.0)
    confidence = sum(scores) / len(scores) if scores else 0.0
    return TextRecognition(text="\n".join(lines), confidence=confidence)
