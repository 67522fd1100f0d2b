from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

RGB = tuple[int, int, int]


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class LevelMethod(str, Enum):
    VISION = "vision"
    FORMULA = "formula"
    NATIVE = "native"


@dataclass(frozen=True)
class BaseStats:
    atk: int
    def_: int
    sta: int

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BaseStats:
        return cls(atk=int(data["atk"]), def_=int(data["def"]), sta=int(data["sta"]))


def iv_percent(atk: int, def_: int, sta: int) -> int:
    # round half up, matching how the percentage is shown in the app
    return int(100 * (atk + def_ + sta) / 45 + 0.5)


@dataclass(frozen=True)
class IVs:
    atk: int
    def_: int
    sta: int

    def __post_init__(self) -> None:
        for name in ("atk", "def_", "sta"):
            value = getattr(self, name)
            if not 0 <= value <= 15:
                raise ValueError(f"IV {name.rstrip('_')} out of range: {value}")

    @property
    def percent(self) -> int:
        return iv_percent(self.atk, self.def_, self.sta)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IVs:
        return cls(atk=int(data["atk"]), def_=int(data["def"]), sta=int(data["sta"]))

    def to_dict(self) -> dict[str, int]:
        return {"atk": self.atk, "def": self.def_, "sta": self.sta, "percent": self.percent}


@dataclass(frozen=True)
class OCRResult:
    """Everything one screenshot analysis produced.

    ``level_method`` tells which method the level came from and is ``None``
    whenever ``level`` is.
    """

    name: str | None = None
    cp: int | None = None
    hp: int | None = None
    iv: IVs | None = None
    level: float | None = None
    level_method: LevelMethod | None = None

    def evolve(self, **changes: Any) -> OCRResult:
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "cp": self.cp,
            "hp": self.hp,
            "iv": self.iv.to_dict() if self.iv else None,
            "level": self.level,
            "levelMethod": self.level_method.value if self.level_method else None,
        }


EMPTY_RESULT = OCRResult()


@dataclass(frozen=True)
class VisionLevel:
    level: float | None
    confidence: Confidence


NO_VISION_LEVEL = VisionLevel(level=None, confidence=Confidence.LOW)


@dataclass(frozen=True)
class NativeResult:
    """Level/IV reading supplied by a platform-native analyser."""

    level: float | None = None
    iv: IVs | None = None
