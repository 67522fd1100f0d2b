from __future__ import annotations

import re
from typing import Any, cast

import cv2
import numpy as np
import pytesseract
from PIL import Image, ImageFilter, ImageOps

from pokescan.config import settings
from pokescan.services.protocols import TextRecognition


def _preprocess(img: Image.Image) -> Image.Image:
    mode = (settings.ocr_preprocess or "grayscale").lower()
    scale = max(1.0, float(settings.ocr_scale))
    work = img
    if abs(scale - 1.0) > 1e-3:
        w, h = work.size
        work = work.resize((int(w * scale), int(h * scale)), Image.BICUBIC)
    if mode == "none":
        return work
    # OpenCV adaptive threshold copes with the gradient backgrounds behind the name plate
    if mode in {"auto", "binary"}:
        arr = np.array(work.convert("RGB"))
        gray = cv2.cvtColor(arr, cv2.COLOR_RGB2GRAY)
        gray = cv2.bilateralFilter(gray, d=5, sigmaColor=35, sigmaSpace=35)
        bin_img = cv2.adaptiveThreshold(gray, 255, cv2.ADAPTIVE_THRESH_GAUSSIAN_C, cv2.THRESH_BINARY, 31, 10)
        kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (2, 2))
        bin_img = cv2.morphologyEx(bin_img, cv2.MORPH_OPEN, kernel, iterations=1)
        return Image.fromarray(bin_img)
    work = ImageOps.grayscale(work)
    work = ImageOps.autocontrast(work)
    # very light blur to reduce aliasing
    return work.filter(ImageFilter.MedianFilter(size=3))


def data_to_recognition(data: dict[str, list[Any]]) -> TextRecognition:
    """Rebuild line-broken text and a mean word confidence (0-100) from image_to_data output."""
    lines: dict[tuple[int, int, int], list[str]] = {}
    confs: list[float] = []
    for i, word in enumerate(data.get("text", [])):
        word = str(word).strip()
        if not word:
            continue
        key = (int(data["block_num"][i]), int(data["par_num"][i]), int(data["line_num"][i]))
        lines.setdefault(key, []).append(word)
        conf = float(data["conf"][i])
        if conf >= 0:
            confs.append(conf)
    text = "\n".join(" ".join(words) for _, words in sorted(lines.items()))
    confidence = sum(confs) / len(confs) if confs else 0.0
    return TextRecognition(text=text, confidence=confidence)


def _recognize_once(img: Image.Image, psm: int) -> TextRecognition:
    cfg = f"--psm {psm} --oem {int(settings.ocr_oem)} -c preserve_interword_spaces=1"
    data = cast(
        dict[str, list[Any]],
        pytesseract.image_to_data(img, lang=settings.ocr_language, config=cfg, output_type=pytesseract.Output.DICT),
    )
    return data_to_recognition(data)


def run_ocr(image: Image.Image) -> TextRecognition:
    # Respect explicit Tesseract binary path if provided via env/config
    if settings.tesseract_cmd:
        pytesseract.pytesseract.tesseract_cmd = settings.tesseract_cmd
    img = _preprocess(image)
    best = _recognize_once(img, int(settings.ocr_psm))
    if settings.ocr_multi_pass:
        # sparse text pass; the appraisal screen scatters CP, name and HP around the model
        second = _recognize_once(img, 11)
        if len(second.text) > len(best.text):
            best = second
    return best


def normalize_ocr_text(text: str) -> str:
    """Normalize OCR text for downstream parsing.

    - Unify quotes, strip non-breaking spaces
    - Collapse whitespace runs inside each line, keep line breaks
    """
    t = text.replace("\u00A0", " ")
    t = t.replace("“", '"').replace("”", '"').replace("’", "'").replace("‘", "'")
    lines = [re.sub(r"[ \t\f\v]+", " ", ln).strip() for ln in t.splitlines()]
    return "\n".join(ln for ln in lines if ln)
