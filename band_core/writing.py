from __future__ import annotations
from typing import Any, Dict, Iterable, List, Mapping

from .bands import round_half_band
from .rubrics import CRITERIA_IDS, RUBRICS
from .types import WritingTaskGrade

_CAMEL = {
    "taskAchievement": "task_achievement",
    "coherenceCohesion": "coherence_cohesion",
    "lexicalResource": "lexical_resource",
    "grammarAccuracy": "grammar_accuracy",
}


def _criterion(value: Any, name: str) -> float:
    scale = RUBRICS["writing"]["scale"]
    try:
        v = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be a number, got {value!r}")
    if not scale["min"] <= v <= scale["max"]:
        raise ValueError(f"{name} must be within {scale['min']:g}..{scale['max']:g}, got {v:g}")
    if not (v / scale["step"]).is_integer():
        raise ValueError(f"{name} must be a multiple of {scale['step']:g}, got {v:g}")
    return v


def grade_from_dict(task_id: str, raw: Mapping[str, Any]) -> WritingTaskGrade:
    """Build a task grade from either snake_case or the stored camelCase keys."""
    data = {_CAMEL.get(k, k): v for k, v in raw.items()}
    missing = [c for c in CRITERIA_IDS if c not in data]
    if missing:
        raise ValueError(f"task {task_id}: missing criteria {', '.join(missing)}")
    return WritingTaskGrade(
        task_id=str(task_id),
        comment=str(data.get("comment") or ""),
        **{c: _criterion(data[c], c) for c in CRITERIA_IDS},
    )


def task_band(grade: WritingTaskGrade) -> float:
    """Unrounded mean of the four criteria."""
    scores = [_criterion(getattr(grade, c), c) for c in CRITERIA_IDS]
    return sum(scores) / len(scores)


def writing_band(grades: Iterable[WritingTaskGrade]) -> float:
    """Mean of the per-task bands, to the nearest 0.5.  No tasks -> 0.0 (section absent)."""
    bands: List[float] = [task_band(g) for g in grades]
    if not bands:
        return 0.0
    return round_half_band(sum(bands) / len(bands))


def writing_summary(grades: Iterable[WritingTaskGrade]) -> Dict[str, Any]:
    items = list(grades)
    return {
        "taskGrades": {
            g.task_id: {
                "taskAchievement": g.task_achievement,
                "coherenceCohesion": g.coherence_cohesion,
                "lexicalResource": g.lexical_resource,
                "grammarAccuracy": g.grammar_accuracy,
                "band": task_band(g),
            }
            for g in items
        },
        "taskComments": {g.task_id: g.comment for g in items if g.comment},
        "overallBandScore": writing_band(items),
        "rubric": RUBRICS["writing"]["version"],
    }
