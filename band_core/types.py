from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Literal

QuestionType = Literal[
    "multiple_choice", "short_answer", "matching",
    "multiple_selection", "true_false_not_given", "writing_task",
    "map_labeling", "map_diagram",
]
# types graded pair by pair for partial credit
PAIRED_TYPES: tuple[str, ...] = ("matching", "map_labeling", "map_diagram")
Section = Literal["reading", "listening", "writing"]
SECTIONS: tuple[str, ...] = ("reading", "listening", "writing")


@dataclass
class Question:
    id: str; type: str; text: str
    section: Section = "reading"
    points: float = 1.0
    options: Any = None
    correct_answer: Any = None
    correct_index: Optional[int] = None
    number: Optional[int] = None
    explanation: Optional[str] = None


@dataclass
class Submission:
    id: str; test_id: str; student_id: str
    answers: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class MatchPair:
    left: str; expected: str; given: str; is_correct: bool


@dataclass(frozen=True)
class SelectionMark:
    option: str; selected: bool; expected: bool

    @property
    def is_correct(self) -> bool:
        return self.selected == self.expected


@dataclass(frozen=True)
class QuestionResult:
    question_id: str
    question_type: str
    section: str
    question_text: str
    user_answer: Any
    correct_answer: Any
    is_correct: bool
    points: float = 1.0
    explanation: Optional[str] = None
    credit: float = 0.0
    pair_count: int = 1
    pairs: tuple[MatchPair, ...] = ()
    selections: tuple[SelectionMark, ...] = ()


@dataclass(frozen=True)
class SectionBreakdown:
    correct: float = 0.0
    total: int = 0
    percentage: float = 0.0


@dataclass(frozen=True)
class GradingResult:
    reading_band: float
    listening_band: float
    writing_band: float
    overall_band: float
    breakdown: Dict[str, SectionBreakdown]
    detailed_results: List[QuestionResult]
    overrides: Dict[str, bool] = field(default_factory=dict)


@dataclass(frozen=True)
class WritingTaskGrade:
    task_id: str
    task_achievement: float
    coherence_cohesion: float
    lexical_resource: float
    grammar_accuracy: float
    comment: str = ""
