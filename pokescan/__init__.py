from pokescan.pipeline.analyze import ScanContext, analyze_screenshot, default_context
from pokescan.state.types import BaseStats, IVs, OCRResult
from pokescan.state.validation import validate_result
from pokescan.stats.level_calc import compute_level

__all__ = [
    "BaseStats",
    "IVs",
    "OCRResult",
    "ScanContext",
    "analyze_screenshot",
    "compute_level",
    "default_context",
    "validate_result",
]
