from __future__ import annotations

import pytest

from band_core import config
from band_core.engine import ReviewSession, answer_for, grade, grade_submission, regrade
from band_core.errors import MissingSubmissionDataError
from band_core.types import Question

from tests.conftest import build_section, map_label, matching, mcq, submission


def test_sample_grades_expected_bands(sample):
    questions, sub = sample
    res = grade(questions, sub)
    assert res.breakdown["reading"].correct == pytest.approx(4.75)
    assert res.breakdown["reading"].total == 5
    assert res.reading_band == 9.0
    assert res.breakdown["listening"].correct == pytest.approx(2.0)
    assert res.listening_band == 5.0
    assert res.writing_band == 0.0
    assert res.overall_band == 7.0
    assert set(res.breakdown) == {"reading", "listening", "writing"}


def test_sample_with_writing_band(sample):
    questions, sub = sample
    res = grade(questions, sub, writing_band=6.5)
    # mean of 9.0, 5.0, 6.5 = 6.83 -> 7.0
    assert res.overall_band == 7.0
    assert res.breakdown["writing"].total == 1


def test_reading_and_listening_scenario():
    rq, ra = build_section(section="reading", correct=14, total=20)
    lq, la = build_section(section="listening", correct=13, total=20)
    res = grade(rq + lq, submission({**ra, **la}))
    assert res.reading_band == 7.0
    assert res.listening_band == 6.0
    assert res.overall_band == 6.5


def test_grade_is_idempotent(sample):
    questions, sub = sample
    assert grade(questions, sub, 6.0) == grade(questions, sub, 6.0)


def test_duplicate_question_ids_are_scored_once():
    qs, answers = build_section(correct=1, total=2)
    res = grade(qs + qs[:1], submission(answers))
    assert len(res.detailed_results) == 2
    assert res.breakdown["reading"].total == 2


def test_missing_submission_raises(sample):
    questions, _ = sample
    with pytest.raises(MissingSubmissionDataError):
        grade(questions, None)
    with pytest.raises(MissingSubmissionDataError) as ei:
        grade_submission("nope", lambda sid: None, lambda tid: questions)
    assert ei.value.submission_id == "nope"


def test_grade_submission_uses_loaders():
    qs, answers = build_section(correct=9, total=10)
    calls = []

    def load_qs(test_id):
        calls.append(test_id)
        return qs

    res = grade_submission("sub-9", lambda sid: submission(answers, sid=sid, test_id="T"), load_qs)
    assert calls == ["T"]
    assert res.reading_band == 9.0


def test_invalid_writing_band_rejected(sample):
    questions, sub = sample
    with pytest.raises(ValueError):
        grade(questions, sub, writing_band=10)


def test_answer_for_collects_matching_pair_keys():
    q = Question(id="m7", type="matching", text="m", correct_answer={"left": ["a", "b"], "right": ["x", "y"]})
    assert answer_for(q, {"m7_1": "y", "m7_0": "x", "m70": "z"}) == {0: "x", 1: "y"}
    assert answer_for(q, {"m7": ["x", "y"]}) == ["x", "y"]
    assert answer_for(mcq("q1", ["A"], 0), {}) is None


def test_pair_keys_with_numbered_left_column():
    q = matching("m1", ["1", "2", "3"], ["A", "B", "C"])
    res = grade([q], submission({"m1_0": "A", "m1_1": "B", "m1_2": "C"}))
    r = res.detailed_results[0]
    assert r.credit == 1.0
    assert r.is_correct
    assert [(p.left, p.given) for p in r.pairs] == [("1", "A"), ("2", "B"), ("3", "C")]
    # a left item named by its text still lands on that item
    by_text = grade([q], submission({"m1": {"2": "B", "3": "C"}})).detailed_results[0]
    assert [p.given for p in by_text.pairs] == ["", "B", "C"]


def test_map_labeling_pair_keys_and_bare_map_keys():
    q = map_label("map_17", ["Library", "Car park", "Cafe"])
    res = grade([q], submission({"map_17_0": "library", "map_17_2": "Cafe"}))
    r = res.detailed_results[0]
    assert r.credit == pytest.approx(2 / 3)
    assert not r.is_correct
    assert res.breakdown["listening"].total == 1
    assert res.breakdown["listening"].correct == pytest.approx(0.666666667)

    boxes = [{"key": "map_a", "answer": "Library"}, {"key": "map_b", "answer": "Car park"},
             {"key": "map_c", "answer": "Cafe"}]
    loose = grade([map_label("m9", ["Library", "Car park", "Cafe"], qtype="map_diagram")],
                  submission({"map_a": "Library", "map_b": "Car park", "map_c": "Cafe"}))
    assert loose.detailed_results[0].is_correct
    # boxes as the editor saves them, one {key, answer} object per label
    saved = grade([map_label("m9", ["Library", "Car park", "Cafe"])], submission({"m9": boxes}))
    assert saved.detailed_results[0].is_correct


def test_map_labeling_counts_boxes_in_pairs_mode(monkeypatch):
    monkeypatch.setattr(config, "MATCHING_DENOMINATOR", "pairs")
    q = map_label("mp", ["North", "South", "East", "West"])
    res = grade([q], submission({"mp": ["North", "South", "East", "x"]}))
    assert res.breakdown["listening"].total == 4
    assert res.breakdown["listening"].correct == 3.0


def test_override_toggle_is_reversible(sample):
    questions, sub = sample
    base = grade(questions, sub, 6.5)
    review = ReviewSession(base)
    first = review.toggle("l2")
    assert review.verdict("l2") is True
    assert first.overrides == {"l2": True}
    assert first.breakdown["listening"].correct == pytest.approx(3.0)
    second = review.toggle("l2")
    assert second.overrides == {}
    assert second == base


def test_override_on_matching_forces_full_credit(sample):
    questions, sub = sample
    review = ReviewSession(grade(questions, sub))
    after = review.toggle("r4")
    assert after.breakdown["reading"].correct == pytest.approx(5.0)
    assert after.detailed_results[3].credit == pytest.approx(0.75)  # underlying result untouched


def test_override_can_mark_correct_answer_wrong():
    qs, answers = build_section(correct=10, total=10)
    review = ReviewSession(grade(qs, submission(answers)))
    res = review.toggle("r1")
    assert res.overrides == {"r1": False}
    assert res.reading_band == 9.0
    res = review.toggle("r2")
    assert res.reading_band == 8.0


def test_toggle_unknown_question_raises(sample):
    questions, sub = sample
    review = ReviewSession(grade(questions, sub))
    with pytest.raises(KeyError):
        review.toggle("zzz")


def test_clear_and_writing_band(sample):
    questions, sub = sample
    base = grade(questions, sub)
    review = ReviewSession(base)
    review.toggle("l2")
    review.toggle("l4")
    assert review.clear() == base
    assert review.set_writing_band(6.5).overall_band == 7.0


def test_regrade_applies_overrides(sample):
    questions, sub = sample
    base = grade(questions, sub)
    res = regrade(base.detailed_results, {"l2": True, "l4": True})
    assert res.listening_band == 9.0
    assert res.overall_band == 9.0


def test_review_session_drops_overrides_for_unknown_ids(sample):
    questions, sub = sample
    review = ReviewSession(grade(questions, sub), overrides={"gone": True, "l2": True})
    assert review.result.overrides == {"l2": True}
