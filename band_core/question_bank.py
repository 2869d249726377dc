from __future__ import annotations
import json, importlib.resources as ir
from pathlib import Path
from typing import Any, List, Mapping, Optional, Tuple, get_args

from .encodings import as_index
from .types import Question, QuestionType, Submission, SECTIONS

QUESTION_TYPES: List[str] = list(get_args(QuestionType))


def _first(row: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for k in keys:
        if k in row and row[k] is not None:
            return row[k]
    return default


def question_from_record(row: Mapping[str, Any], section: Optional[str] = None) -> Question:
    """Adapt a stored question row (snake_case columns or camelCase) to a Question."""
    sec = str(_first(row, "section", "section_type", "sectionType", default=section or "reading")).lower()
    number = as_index(_first(row, "question_number", "number"))
    return Question(
        id=str(_first(row, "id", "question_id", "questionId", default="")),
        type=str(_first(row, "type", "question_type", "questionType", default="")).lower(),
        text=str(_first(row, "text", "question_text", "questionText", default="")),
        section=sec if sec in SECTIONS else (section or "reading"),
        points=_first(row, "points", "points_possible", default=1.0),
        options=_first(row, "options", "options_encoding", "optionsEncoding"),
        correct_answer=_first(row, "correct_answer", "correctAnswer", "correct_answer_encoding", "correctAnswerEncoding"),
        correct_index=as_index(_first(row, "correct_index", "correctIndex")),
        number=number,
        explanation=_first(row, "explanation"),
    )


def questions_from_payload(payload: Any) -> List[Question]:
    """
    Accepts a flat list of question rows, or a dict keyed by section
    ({"reading": [...], "listening": [...], "writing": [...]}), or the nested
    {"<section>_sections": [{"<section>_questions": [...]}, ...]} shape the
    relational store returns.
    """
    if isinstance(payload, list):
        return [question_from_record(r) for r in payload if isinstance(r, Mapping)]
    if not isinstance(payload, Mapping):
        raise ValueError("questions payload must be a list or an object")
    if "questions" in payload:
        return questions_from_payload(payload["questions"])
    out: List[Question] = []
    for sec in SECTIONS:
        for r in payload.get(sec) or []:
            out.append(question_from_record(r, section=sec))
        for block in payload.get(f"{sec}_sections") or []:
            rows = sorted(
                block.get(f"{sec}_questions") or [],
                key=lambda r: as_index(r.get("question_number")) or 0,
            )
            out.extend(question_from_record(r, section=sec) for r in rows)
    return out


def submission_from_record(row: Mapping[str, Any]) -> Submission:
    answers = _first(row, "answers", default={})
    if isinstance(answers, str):
        try:
            answers = json.loads(answers) if answers.strip() else {}
        except ValueError:
            answers = {}
    return Submission(
        id=str(_first(row, "id", "submission_id", default="")),
        test_id=str(_first(row, "test_id", "testId", default="")),
        student_id=str(_first(row, "student_id", "studentId", default="")),
        answers=dict(answers) if isinstance(answers, Mapping) else {},
    )


def load_questions(path: str | Path) -> List[Question]:
    return questions_from_payload(json.loads(Path(path).read_text(encoding="utf-8")))


def load_submission(path: str | Path) -> Submission:
    return submission_from_record(json.loads(Path(path).read_text(encoding="utf-8")))


def load_sample() -> Tuple[List[Question], Submission]:
    data = ir.files(__package__).joinpath("data/sample_test.json").read_text(encoding="utf-8")
    raw = json.loads(data)
    return questions_from_payload(raw["questions"]), submission_from_record(raw["submission"])
