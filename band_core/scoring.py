from __future__ import annotations
from typing import Any, Dict, List, Optional
import logging

from . import config
from .encodings import (
    as_index,
    decode_accepted_answers,
    decode_choice_key,
    decode_map_key,
    decode_matching_key,
    decode_options,
    decode_or_none,
    decode_selection_key,
    maybe_json,
    normalize_choice_answer,
    normalize_selection_answer,
)
from .errors import MalformedEncodingError
from .types import MatchPair, Question, QuestionResult, SelectionMark

log = logging.getLogger(__name__)

Scored = Dict[str, Any]


def _emit_trace(question: Question, scored: Scored) -> None:
    if not config.DEBUG_TRACE:
        return
    log.info(
        "trace question=%s type=%s section=%s credit=%.3f user=%r correct=%r",
        question.id, question.type, question.section,
        float(scored.get("credit", 0.0)), scored.get("user_answer"), scored.get("correct_answer"),
    )


def _points(raw: Any) -> float:
    try:
        p = float(raw)
    except (TypeError, ValueError):
        return 1.0
    return p if p > 0 else 1.0


def _display(answer: str) -> str:
    return answer if answer else config.NO_ANSWER


def _unscorable(user_answer: Any) -> Scored:
    return {"credit": 0.0, "user_answer": user_answer, "correct_answer": config.NO_CORRECT_ANSWER}


def _score_choice(question: Question, raw: Any, fixed_options: Optional[List[str]] = None) -> Scored:
    options = fixed_options if fixed_options is not None else question.options
    opts = decode_or_none(decode_options, options)
    user = normalize_choice_answer(raw, opts)
    key = decode_choice_key(question.correct_answer, options, question.correct_index)
    credit = 1.0 if user and user == key else 0.0
    return {"credit": credit, "user_answer": _display(user), "correct_answer": key}


def _score_mcq(question: Question, raw: Any) -> Scored:
    return _score_choice(question, raw)


def _score_tfng(question: Question, raw: Any) -> Scored:
    return _score_choice(question, raw, list(config.TFNG_OPTIONS))


def _score_short(question: Question, raw: Any) -> Scored:
    if isinstance(raw, (list, tuple)):
        raw = raw[0] if raw else None
    user = "" if raw is None else str(raw).strip()
    accepted = decode_accepted_answers(question.correct_answer)
    needle = user.lower()
    credit = 1.0 if needle and any(needle == a.lower() for a in accepted) else 0.0
    return {"credit": credit, "user_answer": _display(user), "correct_answer": ", ".join(accepted)}


def _given_text(v: Any) -> str:
    if isinstance(v, dict):
        v = v.get("answer")
    return "" if v is None else str(v).strip()


def _matching_given(raw: Any, pairs: List[tuple[str, str]]) -> List[str]:
    parsed = maybe_json(raw)
    given = [""] * len(pairs)
    if isinstance(parsed, (list, tuple)):
        for i, v in enumerate(parsed[: len(pairs)]):
            given[i] = _given_text(v)
    elif isinstance(parsed, dict):
        by_left = {left: i for i, (left, _) in enumerate(pairs)}
        for k, v in parsed.items():
            # int keys are pair positions; text keys name the left item first
            idx = k if isinstance(k, int) and not isinstance(k, bool) else by_left.get(str(k).strip())
            if idx is None:
                idx = as_index(k)
            if idx is not None and 0 <= idx < len(pairs) and v is not None:
                given[idx] = _given_text(v)
    elif isinstance(parsed, str) and len(pairs) == 1:
        given[0] = parsed.strip()
    return given


def _score_pairs(pairs: List[tuple[str, str]], raw: Any) -> Scored:
    given = _matching_given(raw, pairs)
    marks = tuple(
        MatchPair(left=left, expected=right, given=g, is_correct=bool(g) and g.lower() == right.lower())
        for (left, right), g in zip(pairs, given)
    )
    matched = sum(1 for m in marks if m.is_correct)
    return {
        "credit": matched / len(marks),
        "user_answer": "; ".join(f"{m.left}: {m.given or '-'}" for m in marks) if any(given) else config.NO_ANSWER,
        "correct_answer": "; ".join(f"{m.left}: {m.expected}" for m in marks),
        "pair_count": len(marks),
        "pairs": marks,
    }


def _score_matching(question: Question, raw: Any) -> Scored:
    return _score_pairs(decode_matching_key(question.correct_answer), raw)


def _score_map(question: Question, raw: Any) -> Scored:
    # one pair per drop box, scored like matching
    return _score_pairs(decode_map_key(question.correct_answer), raw)


def _score_selection(question: Question, raw: Any) -> Scored:
    opts = decode_or_none(decode_options, question.options)
    key = decode_selection_key(question.correct_answer, question.options)
    chosen = normalize_selection_answer(raw, opts)
    universe = list(opts or [])
    for extra in key + chosen:
        if extra not in universe:
            universe.append(extra)
    marks = tuple(SelectionMark(option=o, selected=o in chosen, expected=o in key) for o in universe)
    credit = 1.0 if set(chosen) == set(key) else 0.0
    return {
        "credit": credit,
        "user_answer": ", ".join(chosen) if chosen else config.NO_ANSWER,
        "correct_answer": ", ".join(key),
        "selections": marks,
    }


def _score_writing(question: Question, raw: Any) -> Scored:
    text = raw if isinstance(raw, str) else ""
    answered = bool(text.strip())
    return {
        "credit": 1.0 if answered else 0.0,
        "user_answer": text if answered else config.NO_ANSWER,
        "correct_answer": config.WRITING_MANUAL,
        "explanation": question.explanation or config.WRITING_EXPLANATION,
    }


_SCORERS = {
    "multiple_choice": _score_mcq,
    "true_false_not_given": _score_tfng,
    "short_answer": _score_short,
    "matching": _score_matching,
    "map_labeling": _score_map,
    "map_diagram": _score_map,
    "multiple_selection": _score_selection,
    "writing_task": _score_writing,
}


def _fallback_user_answer(raw: Any) -> Any:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return config.NO_ANSWER
    if isinstance(raw, (list, tuple)):
        return ", ".join(str(r) for r in raw) or config.NO_ANSWER
    return str(raw).strip()


def score_question(question: Question, raw_answer: Any) -> QuestionResult:
    """
    Grade one (question, raw answer) pair.
    Never raises on bad stored encodings: the question is marked incorrect and
    its correct answer displays as "No correct answer set".
    """
    t = str(question.type or "").strip().lower()
    scorer = _SCORERS.get(t)
    if scorer is None:
        log.warning("question %s has unsupported type %r", question.id, question.type)
        scored = _unscorable(_fallback_user_answer(raw_answer))
    else:
        try:
            scored = scorer(question, raw_answer)
        except MalformedEncodingError as e:
            log.warning("question %s (%s): %s", question.id, t, e)
            scored = _unscorable(_fallback_user_answer(raw_answer))
    _emit_trace(question, scored)
    credit = float(scored.get("credit", 0.0))
    return QuestionResult(
        question_id=str(question.id),
        question_type=t or "unknown",
        section=question.section,
        question_text=question.text or "",
        user_answer=scored.get("user_answer"),
        correct_answer=scored.get("correct_answer"),
        is_correct=credit >= 1.0,
        points=_points(question.points),
        explanation=scored.get("explanation", question.explanation),
        credit=credit,
        pair_count=int(scored.get("pair_count", 1)),
        pairs=tuple(scored.get("pairs", ())),
        selections=tuple(scored.get("selections", ())),
    )
