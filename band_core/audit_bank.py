from __future__ import annotations

import argparse
import json
import tempfile
from pathlib import Path
from typing import Iterable

from . import config
from .encodings import (
    decode_accepted_answers,
    decode_choice_key,
    decode_map_key,
    decode_matching_key,
    decode_selection_key,
)
from .errors import MalformedEncodingError
from .question_bank import QUESTION_TYPES, load_questions, load_sample
from .types import Question, SECTIONS

DEFAULT_SUMMARY_PATH = Path(tempfile.gettempdir()) / "bank_audit.json"


def _blank_section() -> dict[str, object]:
    return {"types": {t: 0 for t in QUESTION_TYPES}, "malformed": 0}


def _check(q: Question) -> None:
    """Raise MalformedEncodingError when the stored key cannot be decoded."""
    t = q.type
    if t == "multiple_choice":
        decode_choice_key(q.correct_answer, q.options, q.correct_index)
    elif t == "true_false_not_given":
        decode_choice_key(q.correct_answer, list(config.TFNG_OPTIONS), q.correct_index)
    elif t == "short_answer":
        decode_accepted_answers(q.correct_answer)
    elif t == "matching":
        decode_matching_key(q.correct_answer)
    elif t in ("map_labeling", "map_diagram"):
        decode_map_key(q.correct_answer)
    elif t == "multiple_selection":
        decode_selection_key(q.correct_answer, q.options)


def audit_items(questions: Iterable[Question]) -> dict[str, object]:
    coverage: dict[str, dict[str, object]] = {sec: _blank_section() for sec in SECTIONS}
    totals = {"questions": 0, "malformed": 0, "unsupported": 0, "duplicates": 0}
    warnings: list[str] = []
    seen: set[str] = set()

    for q in questions:
        totals["questions"] += 1
        sec = coverage.setdefault(q.section, _blank_section())
        if q.id in seen:
            totals["duplicates"] += 1
            warnings.append(f"{q.section} question {q.id} is duplicated")
            continue
        seen.add(q.id)

        if q.type not in QUESTION_TYPES:
            totals["unsupported"] += 1
            warnings.append(f"{q.section} question {q.id} has unsupported type {q.type!r}")
            continue
        sec["types"][q.type] += 1  # type: ignore[index]

        try:
            _check(q)
        except MalformedEncodingError as e:
            sec["malformed"] += 1  # type: ignore[operator]
            totals["malformed"] += 1
            warnings.append(f"{q.section} {q.type} {q.id}: {e}")

        if q.section == "writing" and q.type != "writing_task":
            warnings.append(f"writing question {q.id} is auto-scored type {q.type}")

    return {"coverage": coverage, "warnings": warnings, "totals": totals}


def print_report(summary: dict[str, object]) -> None:
    coverage: dict[str, dict[str, object]] = summary["coverage"]  # type: ignore[assignment]
    print("=== Question Bank Audit ===")
    for sec in SECTIONS:
        data = coverage.get(sec)
        if not data:
            continue
        counts = data["types"]  # type: ignore[index]
        parts = [f"{t}:{n}" for t, n in counts.items() if n]  # type: ignore[union-attr]
        print(f"\nSection: {sec}")
        print("  " + ("  ".join(parts) if parts else "(empty)"))
        if data["malformed"]:
            print(f"    malformed: {data['malformed']}")

    warnings: list[str] = summary["warnings"]  # type: ignore[assignment]
    if warnings:
        print("\nWarnings:")
        for msg in warnings:
            print(f" - {msg}")
    else:
        print("\nNo warnings.")

    print("\nTotals:", summary["totals"])


def write_summary(summary: dict[str, object], path: Path = DEFAULT_SUMMARY_PATH) -> str:
    text = json.dumps(summary, indent=2, sort_keys=True)
    path.write_text(text + "\n", encoding="utf-8")
    print(text)
    return text


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Audit stored answer encodings of a question bank.")
    ap.add_argument("questions", nargs="?", help="questions JSON file (defaults to the bundled sample)")
    ap.add_argument("--out", type=Path, default=DEFAULT_SUMMARY_PATH)
    a = ap.parse_args(argv)
    questions = load_questions(a.questions) if a.questions else load_sample()[0]
    summary = audit_items(questions)
    print_report(summary)
    write_summary(summary, a.out)
    return 2 if summary["warnings"] else 0


if __name__ == "__main__":
    raise SystemExit(main())
