# band_core/bands.py
from __future__ import annotations
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Tuple

from . import config
from .overrides import Overrides, effective_credit
from .types import PAIRED_TYPES, QuestionResult, SectionBreakdown


def band_for_score(correct: float, total: float) -> float:
    """Step-map a raw section score to a band; a score exactly on a threshold earns that band."""
    if total <= 0:
        return config.ABSENT_BAND
    # compare correct/total >= pct/100 without dividing
    for pct, band in config.BAND_THRESHOLDS:
        if correct * 100 >= pct * total:
            return band
    return config.BAND_FLOOR


def round_half_band(value: float) -> float:
    """Nearest 0.5, halves rounded up (7.25 -> 7.5, 6.75 -> 7.0)."""
    doubled = (Decimal(str(value)) * 2).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    return float(doubled / 2)


def overall_band(reading: float, listening: float, writing: float) -> float:
    present = [Decimal(str(b)) for b in (reading, listening, writing) if b and b > 0]
    if not present:
        return config.BAND_FLOOR
    mean = sum(present) / len(present)
    doubled = (mean * 2).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    band = float(doubled / 2)
    return max(config.BAND_FLOOR, min(config.BAND_CEIL, band))


def _weight(result: QuestionResult) -> int:
    if result.question_type in PAIRED_TYPES and config.MATCHING_DENOMINATOR == "pairs":
        return max(1, result.pair_count)
    return 1


def section_breakdown(
    results: Iterable[QuestionResult], overrides: Optional[Overrides] = None
) -> SectionBreakdown:
    correct = 0.0
    total = 0
    for r in results:
        w = _weight(r)
        correct += effective_credit(r, overrides) * w
        total += w
    # fractional matching credit; keep thirds etc. from drifting across a threshold
    correct = round(correct, 9)
    pct = (correct * 100.0 / total) if total else 0.0
    return SectionBreakdown(correct=correct, total=total, percentage=pct)


def aggregate_section(
    results: Iterable[QuestionResult], overrides: Optional[Overrides] = None
) -> Tuple[SectionBreakdown, float]:
    bd = section_breakdown(results, overrides)
    return bd, band_for_score(bd.correct, bd.total)


def validate_band(value: float, name: str = "band") -> float:
    try:
        v = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be a number, got {value!r}")
    if not 0.0 <= v <= config.BAND_CEIL:
        raise ValueError(f"{name} must be within 0..{config.BAND_CEIL:g}, got {v:g}")
    return v


def band_label(score: float) -> str:
    s = float(score)
    if s >= 8.5: return "Expert User"
    if s >= 7.5: return "Very Good User"
    if s >= 6.5: return "Competent User"
    if s >= 5.5: return "Modest User"
    if s >= 4.5: return "Limited User"
    return "Extremely Limited User"
