"""Helpers to export per-question grading results in JSON/CSV formats."""
from __future__ import annotations

from typing import Any, Dict, List
import csv
import io

from .overrides import effective_credit, effective_verdict
from .types import GradingResult, QuestionResult

_FIELDS: tuple[str, ...] = (
    "n",
    "section",
    "question_id",
    "type",
    "question_text",
    "user_answer",
    "correct_answer",
    "auto_correct",
    "overridden",
    "is_correct",
    "credit",
    "points",
)


def _row(n: int, r: QuestionResult, overrides: Dict[str, bool]) -> Dict[str, Any]:
    return {
        "n": n,
        "section": r.section,
        "question_id": r.question_id,
        "type": r.question_type,
        "question_text": r.question_text,
        "user_answer": "" if r.user_answer is None else str(r.user_answer),
        "correct_answer": "" if r.correct_answer is None else str(r.correct_answer),
        "auto_correct": r.is_correct,
        "overridden": r.question_id in overrides,
        "is_correct": effective_verdict(r, overrides),
        "credit": round(effective_credit(r, overrides), 4),
        "points": r.points,
    }


def rows(result: GradingResult) -> List[Dict[str, Any]]:
    return [_row(i, r, result.overrides) for i, r in enumerate(result.detailed_results, start=1)]


def to_json(result: GradingResult) -> Dict[str, Any]:
    """Return a JSON-safe payload for results export."""

    return {"results": rows(result)}


def to_csv(result: GradingResult) -> str:
    """Render per-question results as CSV with a fixed header."""

    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=_FIELDS)
    writer.writeheader()
    for row in rows(result):
        writer.writerow(row)
    return buf.getvalue()


__all__ = ["rows", "to_json", "to_csv"]
