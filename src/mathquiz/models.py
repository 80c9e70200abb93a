"""Core domain models for the signed-arithmetic quiz."""

from __future__ import annotations

from dataclasses import dataclass

ADD = "+"
SUBTRACT = "-"
OPERATORS = (ADD, SUBTRACT)

QUESTIONS_PER_LEVEL = 5
POINTS_PER_LEVEL = 10


@dataclass(frozen=True)
class Question:
    """One addition or subtraction problem."""

    operand_a: int
    operand_b: int
    operator: str
    correct_result: int

    @property
    def text(self) -> str:
        """Display form used on screen and in the history, e.g. ``-5 + 3``."""
        return f"{self.operand_a} {self.operator} {self.operand_b}"


@dataclass(frozen=True)
class HistoryEntry:
    """One answered question as stored in the history ledger."""

    id: int
    timestamp: str
    question_text: str
    user_answer: int
    correct_answer: int
    is_correct: bool
    level: int


@dataclass(frozen=True)
class GameState:
    """Score and level counters for one game session."""

    score: int = 0
    level: int = 1
    correct_count: int = 0
    questions_answered: int = 0


@dataclass(frozen=True)
class Feedback:
    """Feedback shown after an answer."""

    kind: str
    message: str
    explanation: str = ""

    @property
    def correct(self) -> bool:
        return self.kind == "correct"


@dataclass(frozen=True)
class AnswerOutcome:
    """Result of answering the current question."""

    correct: bool
    leveled_up: bool
    feedback: Feedback
    entry: HistoryEntry
    state: GameState
    history_saved: bool = True


@dataclass(frozen=True)
class HistoryStats:
    """Aggregate counts over the history ledger."""

    total: int
    correct: int
    incorrect: int

    @property
    def accuracy(self) -> float:
        """Percentage of correct answers, 0.0 for an empty history."""
        if self.total == 0:
            return 0.0
        return 100.0 * self.correct / self.total
