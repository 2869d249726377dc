# band_core/reporting.py
from __future__ import annotations
import json
from typing import Any, Dict, List, Mapping

from .bands import band_label
from .overrides import effective_verdict
from .types import (
    GradingResult,
    MatchPair,
    QuestionResult,
    SectionBreakdown,
    SelectionMark,
    SECTIONS,
)


def _result_to_dict(r: QuestionResult) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "questionId": r.question_id,
        "questionText": r.question_text,
        "questionType": r.question_type,
        "section": r.section,
        "userAnswer": r.user_answer,
        "correctAnswer": r.correct_answer,
        "isCorrect": r.is_correct,
        "points": r.points,
        "credit": r.credit,
        "pairCount": r.pair_count,
    }
    if r.explanation:
        d["explanation"] = r.explanation
    if r.pairs:
        d["pairs"] = [
            {"left": p.left, "expected": p.expected, "given": p.given, "isCorrect": p.is_correct}
            for p in r.pairs
        ]
    if r.selections:
        d["selections"] = [
            {"option": s.option, "selected": s.selected, "expected": s.expected} for s in r.selections
        ]
    return d


def _result_from_dict(d: Mapping[str, Any]) -> QuestionResult:
    return QuestionResult(
        question_id=str(d["questionId"]),
        question_type=str(d.get("questionType", "")),
        section=str(d.get("section", "reading")),
        question_text=str(d.get("questionText", "")),
        user_answer=d.get("userAnswer"),
        correct_answer=d.get("correctAnswer"),
        is_correct=bool(d.get("isCorrect", False)),
        points=float(d.get("points", 1.0)),
        explanation=d.get("explanation"),
        credit=float(d.get("credit", 1.0 if d.get("isCorrect") else 0.0)),
        pair_count=int(d.get("pairCount", 1)),
        pairs=tuple(
            MatchPair(left=p["left"], expected=p["expected"], given=p.get("given", ""), is_correct=bool(p["isCorrect"]))
            for p in d.get("pairs") or []
        ),
        selections=tuple(
            SelectionMark(option=s["option"], selected=bool(s["selected"]), expected=bool(s["expected"]))
            for s in d.get("selections") or []
        ),
    )


def to_basic(result: GradingResult) -> Dict[str, Any]:
    """JSON-safe dict using the stored camelCase field names."""
    return {
        "readingBandScore": result.reading_band,
        "listeningBandScore": result.listening_band,
        "writingBandScore": result.writing_band,
        "overallBandScore": result.overall_band,
        "overallLabel": band_label(result.overall_band),
        "breakdown": {
            sec: {
                "correct": bd.correct,
                "total": bd.total,
                "percentage": bd.percentage,
            }
            for sec, bd in result.breakdown.items()
        },
        "detailedResults": [_result_to_dict(r) for r in result.detailed_results],
        "overrides": dict(result.overrides),
    }


def from_basic(data: Mapping[str, Any]) -> GradingResult:
    bd_raw = data.get("breakdown") or {}
    breakdown = {
        sec: SectionBreakdown(
            correct=float((bd_raw.get(sec) or {}).get("correct", 0.0)),
            total=int((bd_raw.get(sec) or {}).get("total", 0)),
            percentage=float((bd_raw.get(sec) or {}).get("percentage", 0.0)),
        )
        for sec in SECTIONS
    }
    return GradingResult(
        reading_band=float(data.get("readingBandScore", 0.0)),
        listening_band=float(data.get("listeningBandScore", 0.0)),
        writing_band=float(data.get("writingBandScore", 0.0)),
        overall_band=float(data.get("overallBandScore", 1.0)),
        breakdown=breakdown,
        detailed_results=[_result_from_dict(d) for d in data.get("detailedResults") or []],
        overrides={str(k): bool(v) for k, v in (data.get("overrides") or {}).items()},
    )


def persisted_columns(result: GradingResult) -> Dict[str, Any]:
    """The four scalar score columns plus the opaque JSON blob."""
    return {
        "reading_score": result.reading_band,
        "listening_score": result.listening_band,
        "writing_score": result.writing_band,
        "total_score": result.overall_band,
        "auto_grading_data": json.dumps(to_basic(result), ensure_ascii=False, sort_keys=True),
    }


def submission_rows(result: GradingResult) -> List[Dict[str, Any]]:
    """Per-question rows in display order, numbered from 1, with overrides applied."""
    rows: List[Dict[str, Any]] = []
    for i, r in enumerate(result.detailed_results, start=1):
        rows.append({
            "question_number": i,
            "student_answer": json.dumps(r.user_answer) if r.user_answer else "",
            "correct_answer": json.dumps(r.correct_answer) if r.correct_answer else "",
            "is_correct": effective_verdict(r, result.overrides),
        })
    return rows
