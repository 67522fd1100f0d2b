from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from typing import Any, Literal, Protocol

from pokescan.state.types import IVs, OCRResult
from pokescan.state.validation import validate_result

Status = Literal["complete", "needs_review"]


@dataclass(frozen=True)
class ScannedPokemon:
    """Record handed to the collection store; the store owns its lifecycle."""

    id: str
    name: str
    cp: int | None
    hp: int | None
    level: float | None
    iv: IVs | None
    image_uri: str | None
    scanned_at: int  # epoch milliseconds
    ocr: OCRResult
    status: Status

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "cp": self.cp,
            "hp": self.hp,
            "level": self.level,
            "iv": self.iv.to_dict() if self.iv else None,
            "imageUri": self.image_uri,
            "scannedAt": self.scanned_at,
            "ocr": self.ocr.to_dict(),
            "status": self.status,
        }


class ScanStore(Protocol):
    async def add(self, record: ScannedPokemon) -> None: ...

    async def delete(self, record_id: str) -> None: ...


def record_status(result: OCRResult, errors: dict[str, str] | None = None) -> Status:
    # anything the user had to type in, or that still fails validation, is worth a second look
    if errors:
        return "needs_review"
    if result.name and result.cp and result.hp:
        return "complete"
    return "needs_review"


def build_record(
    result: OCRResult,
    image_uri: str | None = None,
    *,
    name: str | None = None,
    cp: int | None = None,
    hp: int | None = None,
    record_id: str | None = None,
    scanned_at: int | None = None,
) -> ScannedPokemon:
    """Build the stored record from an analysis plus optional manual corrections.

    Manual values win over OCR ones. The record is ``complete`` only when OCR
    alone produced name, CP and HP and the final values validate; callers that
    want to reject invalid scans outright check ``validate_result`` first.
    """
    final_name = (name or "").strip() or result.name or ""
    final_cp = cp if cp is not None else result.cp
    final_hp = hp if hp is not None else result.hp
    errors = validate_result({"name": final_name, "cp": final_cp, "hp": final_hp})
    return ScannedPokemon(
        id=record_id or uuid.uuid4().hex,
        name=final_name,
        cp=final_cp,
        hp=final_hp,
        level=result.level,
        iv=result.iv,
        image_uri=image_uri,
        scanned_at=scanned_at if scanned_at is not None else int(time.time() * 1000),
        ocr=result,
        status=record_status(result, errors),
    )
