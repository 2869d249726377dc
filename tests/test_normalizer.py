from __future__ import annotations

import json
import logging

import pytest

from band_core import config
from band_core.encodings import (
    decode_accepted_answers,
    decode_choice_key,
    decode_map_key,
    decode_matching_key,
    decode_selection_key,
)
from band_core.errors import MalformedEncodingError
from band_core.scoring import score_question
from band_core.types import Question

from tests.conftest import map_label, matching, mcq, short


def test_mcq_index_key_resolves_to_option_text():
    q = mcq("q1", ["Paris", "London", "Berlin", "Rome"], 0)
    r = score_question(q, "Paris")
    assert r.is_correct
    assert r.credit == 1.0
    assert r.correct_answer == "Paris"


def test_mcq_key_variants():
    opts = json.dumps(["Paris", "London", "Berlin", "Rome"])
    assert score_question(mcq("a", opts, "1"), "London").is_correct
    assert score_question(mcq("b", opts, "Berlin"), " Berlin ").is_correct
    # integer student answers are option indices
    assert score_question(mcq("c", opts, 3), 3).is_correct
    # legacy rows keep the index in a separate column
    assert score_question(mcq("d", opts, None, correct_index=2), "Berlin").is_correct


def test_mcq_is_case_sensitive():
    r = score_question(mcq("q1", ["Paris", "London"], 0), "paris")
    assert not r.is_correct


def test_tfng_uses_fixed_options():
    q = Question(id="t1", type="true_false_not_given", text="stmt", correct_answer="2")
    assert score_question(q, "NOT GIVEN").is_correct
    q2 = Question(id="t2", type="true_false_not_given", text="stmt", correct_answer="FALSE")
    assert not score_question(q2, "TRUE").is_correct


def test_short_answer_multi_accept_case_insensitive():
    r = score_question(short("s1", ["round", "circular"]), "Round")
    assert r.is_correct
    assert r.correct_answer == "round, circular"


@pytest.mark.parametrize("key", ['["colour", "color"]', "colour, color", ["colour", "color"]])
def test_short_answer_key_shapes(key):
    assert score_question(short("s1", key), "  COLOR ").is_correct


def test_short_answer_empty_is_incorrect():
    r = score_question(short("s1", "round"), "   ")
    assert not r.is_correct
    assert r.user_answer == config.NO_ANSWER
    assert not score_question(short("s2", "round"), None).is_correct


def test_matching_partial_credit():
    q = matching("m1", ["a", "b", "c", "d"], ["1", "2", "3", "4"])
    r = score_question(q, ["1", "2", "3", "9"])
    assert r.credit == pytest.approx(0.75)
    assert not r.is_correct
    assert r.pair_count == 4
    assert [p.is_correct for p in r.pairs] == [True, True, True, False]


def test_matching_answer_shapes():
    q = matching("m1", ["Curie", "Newton"], ["radium", "gravity"])
    assert score_question(q, {"Curie": "Radium", "Newton": "gravity "}).is_correct
    assert score_question(q, {"0": "radium", "1": "gravity"}).is_correct
    assert score_question(q, json.dumps(["radium", "gravity"])).is_correct
    assert score_question(q, None).credit == 0.0


def test_matching_legacy_pair_objects():
    q = Question(id="m2", type="matching", text="rooms", section="listening",
                 correct_answer=[{"left": "Kitchen", "right": "B"}, {"left": "Office", "right": "D"}])
    r = score_question(q, ["B", "C"])
    assert r.credit == pytest.approx(0.5)


def test_multiple_selection_set_equality():
    q = Question(id="ms", type="multiple_selection", text="pick two",
                 options=["Dog", "Shark", "Whale", "Eagle"], correct_answer=["Dog", "Whale"])
    assert score_question(q, ["Whale", "Dog"]).is_correct
    partial = score_question(q, ["Dog"])
    assert not partial.is_correct
    marks = {m.option: m for m in partial.selections}
    assert marks["Dog"].is_correct and not marks["Whale"].is_correct
    assert marks["Shark"].is_correct  # not selected, not expected


def test_multiple_selection_legacy_index_key():
    q = Question(id="ms", type="multiple_selection", text="pick two",
                 options='["Dog", "Shark", "Whale", "Eagle"]', correct_answer="[0, 2]")
    r = score_question(q, ["Dog", "Whale"])
    assert r.is_correct
    assert r.correct_answer == "Dog, Whale"
    # a single string is promoted to a one-element list
    assert not score_question(q, "Dog").is_correct


@pytest.mark.parametrize(
    "q",
    [
        mcq("bad1", "not json", 7),
        mcq("bad2", ["A", "B"], 5),
        mcq("bad3", ["A", "B"], ""),
        short("bad4", ""),
        Question(id="bad5", type="matching", text="m", correct_answer='{"left": ["a"], "right": []}'),
        Question(id="bad6", type="matching", text="m", correct_answer="{broken"),
        Question(id="bad7", type="multiple_selection", text="s", options=["A"], correct_answer="[4]"),
        Question(id="bad9", type="map_labeling", text="m", section="listening", correct_answer="{\"boxes\": []}"),
        Question(id="bad8", type="essay_v2", text="?", correct_answer="x"),
    ],
    ids=lambda q: q.id,
)
def test_malformed_encodings_degrade(q, caplog):
    with caplog.at_level(logging.WARNING, logger="band_core.scoring"):
        r = score_question(q, "anything")
    assert r.is_correct is False
    assert r.credit == 0.0
    assert r.correct_answer == config.NO_CORRECT_ANSWER
    assert caplog.records


def test_writing_task_is_manual():
    q = Question(id="w1", type="writing_task", text="Describe", section="writing")
    r = score_question(q, "Some essay")
    assert r.is_correct
    assert r.correct_answer == config.WRITING_MANUAL
    assert not score_question(q, "").is_correct


def test_decoders_raise_on_bad_shapes():
    with pytest.raises(MalformedEncodingError):
        decode_choice_key("9", ["A"])
    with pytest.raises(MalformedEncodingError):
        decode_accepted_answers({"a": 1})
    with pytest.raises(MalformedEncodingError):
        decode_matching_key({"left": ["a", "b"], "right": ["1"]})
    with pytest.raises(MalformedEncodingError):
        decode_selection_key([], ["A"])


def test_selection_key_numeric_option_text_stays_text():
    assert decode_selection_key(["1990"], ["1989", "1990"]) == ["1990"]
    assert decode_selection_key("[1]", ["1989", "1990"]) == ["1990"]


def test_mcq_numeric_option_text_key(caplog):
    q = mcq("y1", ["1989", "1990"], "1990")
    with caplog.at_level(logging.WARNING, logger="band_core.scoring"):
        r = score_question(q, "1990")
    assert r.is_correct
    assert r.correct_answer == "1990"
    assert not caplog.records
    # an in-range number is still an index
    assert decode_choice_key("1", ["1989", "1990"]) == "1990"
    with pytest.raises(MalformedEncodingError):
        decode_choice_key("1991", ["1989", "1990"])


def test_map_key_shapes():
    boxes = [{"id": "b1", "x": 10, "y": 40, "answer": "Bank"}, {"id": "b2", "x": 50, "y": 60, "label": "Gym"}]
    assert decode_map_key(boxes) == [("Label 1", "Bank"), ("Label 2", "Gym")]
    assert decode_map_key(json.dumps({"boxes": boxes})) == [("Label 1", "Bank"), ("Label 2", "Gym")]
    with pytest.raises(MalformedEncodingError):
        decode_map_key({"boxes": []})
    with pytest.raises(MalformedEncodingError):
        decode_map_key([{"id": "b1", "x": 1, "y": 1}])


def test_map_labeling_partial_credit_case_insensitive():
    q = map_label("mp1", ["Bank", "Gym", "Park", "Pool"])
    r = score_question(q, ["bank", "GYM", "Park", "Lake"])
    assert r.credit == 0.75
    assert not r.is_correct
    assert r.pair_count == 4
    assert [p.is_correct for p in r.pairs] == [True, True, True, False]
    assert r.correct_answer == "Label 1: Bank; Label 2: Gym; Label 3: Park; Label 4: Pool"

    diagram = map_label("md1", ["Valve"], qtype="map_diagram")
    assert score_question(diagram, "valve").is_correct
    assert score_question(diagram, None).user_answer == config.NO_ANSWER
