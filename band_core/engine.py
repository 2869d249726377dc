# band_core/engine.py
from __future__ import annotations
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence
import logging

from .bands import aggregate_section, overall_band, section_breakdown, validate_band
from .errors import MissingSubmissionDataError
from .overrides import OverrideState, effective_verdict
from .scoring import score_question
from .types import PAIRED_TYPES, GradingResult, Question, QuestionResult, SectionBreakdown, Submission, SECTIONS

log = logging.getLogger(__name__)


def _per_pair(qid: str, answers: Mapping[str, Any]) -> Dict[int, Any]:
    prefix = f"{qid}_"
    found: Dict[int, Any] = {}
    for k, v in answers.items():
        suffix = k[len(prefix):] if k.startswith(prefix) else ""
        if suffix.isascii() and suffix.isdigit():
            found[int(suffix)] = v
    return dict(sorted(found.items()))


def answer_for(question: Question, answers: Mapping[str, Any]) -> Any:
    """Raw answer for a question.

    Matching and map pairs may be stored as ``<id>_<index>`` keys; these come
    back as a dict keyed by the integer pair index, never by left-hand text.
    Map boxes saved under bare ``map_*`` keys are collected in submission order.
    """
    qid = str(question.id)
    if qid in answers:
        return answers[qid]
    t = str(question.type).lower()
    if t in PAIRED_TYPES:
        given = _per_pair(qid, answers)
        if given:
            return given
    if t in ("map_labeling", "map_diagram"):
        boxes = [v for k, v in answers.items() if k.startswith("map_")]
        if boxes:
            return boxes
    return None


def _combine(
    results: List[QuestionResult], overrides: Dict[str, bool], writing_band: float
) -> GradingResult:
    by_sec: Dict[str, List[QuestionResult]] = {s: [] for s in SECTIONS}
    for r in results:
        by_sec.setdefault(r.section, []).append(r)

    breakdown: Dict[str, SectionBreakdown] = {}
    bands: Dict[str, float] = {}
    for sec in ("reading", "listening"):
        breakdown[sec], bands[sec] = aggregate_section(by_sec[sec], overrides)
    # writing counts answered tasks for display; its band comes from the rubric
    breakdown["writing"] = section_breakdown(by_sec["writing"], overrides)
    bands["writing"] = writing_band

    overall = overall_band(bands["reading"], bands["listening"], bands["writing"])
    return GradingResult(
        reading_band=bands["reading"],
        listening_band=bands["listening"],
        writing_band=bands["writing"],
        overall_band=overall,
        breakdown=breakdown,
        detailed_results=results,
        overrides=dict(overrides),
    )


def grade(
    questions: Sequence[Question], submission: Optional[Submission], writing_band: float = 0.0
) -> GradingResult:
    """Full grading pass from raw question rows and a submission's answers."""
    if submission is None:
        raise MissingSubmissionDataError(None)
    wb = validate_band(writing_band, "writing_band")
    answers = submission.answers or {}
    seen: set[str] = set()
    results: List[QuestionResult] = []
    for q in questions:
        qid = str(q.id)
        if qid in seen:
            log.info("skipping duplicate question %s", qid)
            continue
        seen.add(qid)
        results.append(score_question(q, answer_for(q, answers)))
    res = _combine(results, {}, wb)
    log.info(
        "graded submission %s: reading=%.1f listening=%.1f writing=%.1f overall=%.1f",
        submission.id, res.reading_band, res.listening_band, res.writing_band, res.overall_band,
    )
    return res


def regrade(
    detailed_results: Iterable[QuestionResult],
    overrides: Optional[Mapping[str, bool]] = None,
    writing_band: float = 0.0,
) -> GradingResult:
    """Recompute breakdowns and bands from existing results with overrides applied."""
    wb = validate_band(writing_band, "writing_band")
    return _combine(list(detailed_results), dict(overrides or {}), wb)


def grade_submission(
    submission_id: str,
    load_submission: Callable[[str], Optional[Submission]],
    load_questions: Callable[[str], Sequence[Question]],
    writing_band: float = 0.0,
) -> GradingResult:
    sub = load_submission(submission_id)
    if sub is None:
        raise MissingSubmissionDataError(submission_id)
    return grade(load_questions(sub.test_id), sub, writing_band)


class ReviewSession:
    """A grader's review of one graded submission: overrides plus writing band."""

    def __init__(self, result: GradingResult, overrides: Optional[Mapping[str, bool]] = None):
        self._results = list(result.detailed_results)
        self._index = {r.question_id: r for r in self._results}
        self.state = OverrideState(dict(overrides if overrides is not None else result.overrides))
        self.state.prune(self._results)
        self.writing_band = result.writing_band
        self.result = regrade(self._results, self.state.forced, self.writing_band)

    def _recompute(self) -> GradingResult:
        self.result = regrade(self._results, self.state.forced, self.writing_band)
        return self.result

    def verdict(self, question_id: str) -> bool:
        return effective_verdict(self._index[question_id], self.state.forced)

    def toggle(self, question_id: str) -> GradingResult:
        r = self._index.get(question_id)
        if r is None:
            raise KeyError(question_id)
        now = self.state.toggle(r)
        log.info("override %s -> %s (auto=%s)", question_id, now, r.is_correct)
        return self._recompute()

    def clear(self) -> GradingResult:
        self.state.clear()
        return self._recompute()

    def set_writing_band(self, band: float) -> GradingResult:
        self.writing_band = validate_band(band, "writing_band")
        return self._recompute()
