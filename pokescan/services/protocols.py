from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from PIL import Image

from pokescan.state.types import RGB, BaseStats, NativeResult


@dataclass(frozen=True)
class TextRecognition:
    text: str
    confidence: float


class TextRecognizer(Protocol):
    async def recognize_text(self, image: Image.Image) -> TextRecognition: ...


class PixelSampler(Protocol):
    async def sample_scan_line(
        self, image: Image.Image, y: int, x_start: int, width: int, sample_count: int
    ) -> list[RGB]: ...


class SpeciesNameValidator(Protocol):
    def is_known_species_name(self, name: str) -> bool: ...


class BaseStatsProvider(Protocol):
    async def fetch_base_stats(self, species: str) -> BaseStats | None: ...


class NativeAnalyzer(Protocol):
    async def analyze(self, image: Image.Image) -> NativeResult | None: ...
