from __future__ import annotations

import importlib.resources as ir
import json

import pytest

from band_core.question_bank import load_sample
from band_core.types import Question, Submission


def mcq(qid: str, options, correct, section: str = "reading", **kw) -> Question:
    return Question(id=qid, type="multiple_choice", text=f"MCQ {qid}", section=section,
                    options=options, correct_answer=correct, **kw)


def short(qid: str, correct, section: str = "reading") -> Question:
    return Question(id=qid, type="short_answer", text=f"Short {qid}", section=section, correct_answer=correct)


def matching(qid: str, left, right, section: str = "reading") -> Question:
    return Question(id=qid, type="matching", text=f"Match {qid}", section=section,
                    correct_answer={"left": list(left), "right": list(right)})


def map_label(qid: str, answers, section: str = "listening", qtype: str = "map_labeling") -> Question:
    boxes = [{"id": f"box{i}", "x": 10 * i, "y": 20, "answer": a} for i, a in enumerate(answers)]
    return Question(id=qid, type=qtype, text=f"Map {qid}", section=section, correct_answer={"boxes": boxes})


def build_section(
    *,
    section: str = "reading",
    correct: int,
    total: int,
    prefix: str | None = None,
) -> tuple[list[Question], dict[str, str]]:
    """Deterministic MCQ block with exactly ``correct`` of ``total`` answered right."""

    pre = prefix or section[0]
    questions: list[Question] = []
    answers: dict[str, str] = {}
    for i in range(total):
        qid = f"{pre}{i + 1}"
        questions.append(mcq(qid, ["A", "B", "C", "D"], 0, section=section))
        answers[qid] = "A" if i < correct else "B"
    return questions, answers


def submission(answers: dict, sid: str = "sub-1", test_id: str = "test-1") -> Submission:
    return Submission(id=sid, test_id=test_id, student_id="student-1", answers=dict(answers))


@pytest.fixture
def sample():
    return load_sample()


def raw_sample() -> dict:
    """The bundled sample as stored JSON (questions keyed by section + submission row)."""

    return json.loads(ir.files("band_core").joinpath("data/sample_test.json").read_text(encoding="utf-8"))
