"""Grader overrides applied as a pure overlay on auto-computed verdicts.

An override map holds ``question_id -> forced verdict``; ids absent from the
map use the auto verdict.  Nothing here mutates a ``QuestionResult``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Optional

from .types import QuestionResult

Overrides = Mapping[str, bool]


def effective_verdict(result: QuestionResult, overrides: Optional[Overrides] = None) -> bool:
    if overrides and result.question_id in overrides:
        return bool(overrides[result.question_id])
    return result.is_correct


def effective_credit(result: QuestionResult, overrides: Optional[Overrides] = None) -> float:
    """Credit feeding aggregation; an override forces full or zero credit."""
    if overrides and result.question_id in overrides:
        return 1.0 if overrides[result.question_id] else 0.0
    return result.credit


def toggle(overrides: Mapping[str, bool], question_id: str, auto_verdict: bool) -> Dict[str, bool]:
    """Return a new map with the effective verdict for ``question_id`` flipped.

    No override yet: seed one with ``not auto_verdict``.  Override present:
    drop it, which reverts to the auto verdict.
    """
    out = dict(overrides)
    if question_id in out:
        out.pop(question_id)
    else:
        out[question_id] = not auto_verdict
    return out


@dataclass
class OverrideState:
    """Review-session override map keyed by question id."""

    forced: Dict[str, bool] = field(default_factory=dict)

    def toggle(self, result: QuestionResult) -> bool:
        self.forced = toggle(self.forced, result.question_id, result.is_correct)
        return effective_verdict(result, self.forced)

    def clear(self) -> None:
        self.forced = {}

    def prune(self, results: Iterable[QuestionResult]) -> None:
        """Drop overrides for question ids no longer present in ``results``."""
        known = {r.question_id for r in results}
        self.forced = {k: v for k, v in self.forced.items() if k in known}
