from __future__ import annotations

import json
import logging

from .config import DEBUG_TRACE, MATCHING_DENOMINATOR
from .engine import ReviewSession, grade
from .question_bank import load_sample
from .reporting import persisted_columns, to_basic


def _maybe_enable_trace() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")
    if DEBUG_TRACE:
        logging.getLogger("band_core.scoring").setLevel(logging.INFO)


def run_smoke_grading(writing_band: float = 6.5) -> dict:
    _maybe_enable_trace()

    questions, submission = load_sample()
    logging.info(
        "Grading sample submission %s: %d questions, matching denominator=%s",
        submission.id, len(questions), MATCHING_DENOMINATOR,
    )

    result = grade(questions, submission, writing_band=writing_band)
    for sec, bd in result.breakdown.items():
        logging.info(
            "Section %s: correct=%.2f total=%d pct=%.1f",
            sec, bd.correct, bd.total, bd.percentage,
        )
    for r in result.detailed_results:
        logging.info(
            "  %s %-22s credit=%.2f correct=%s",
            r.question_id, r.question_type, r.credit, r.is_correct,
        )

    review = ReviewSession(result)
    first_miss = next((r for r in result.detailed_results if not r.is_correct), None)
    if first_miss is not None:
        after = review.toggle(first_miss.question_id)
        logging.info(
            "Override %s: overall %.1f -> %.1f",
            first_miss.question_id, result.overall_band, after.overall_band,
        )
        review.toggle(first_miss.question_id)

    columns = persisted_columns(review.result)
    logging.info(
        "Scores: reading=%s listening=%s writing=%s total=%s",
        columns["reading_score"], columns["listening_score"],
        columns["writing_score"], columns["total_score"],
    )
    return to_basic(review.result)


if __name__ == "__main__":  # pragma: no cover
    print(json.dumps(run_smoke_grading(), indent=2))
